"""
app/api/admin.py

Purpose: Admin dashboard endpoints

Only the admin principal passes the security rules; everyone else gets the
permission-denied response.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from app.api.deps import get_principal, get_store
from app.db.rules import Principal
from app.services import admin_service

router = APIRouter()


@router.get("/stats")
async def stats(store=Depends(get_store), auth: Principal = Depends(get_principal)) -> Dict[str, int]:
    return await admin_service.get_stats(store, auth)


@router.get("/users")
async def users(store=Depends(get_store), auth: Principal = Depends(get_principal)) -> List[Dict[str, Any]]:
    return await admin_service.list_users(store, auth)
