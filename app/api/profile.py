"""
app/api/profile.py

Purpose: Signed-in user's profile

- GET /profile  read users/{uid}
- PUT /profile  update the auth record and users/{uid}
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.api.deps import get_db, get_principal, get_store
from app.core.exceptions import ResourceNotFoundError
from app.db.rules import Principal
from app.schemas.auth import ProfileForm
from app.services import profile_service

router = APIRouter()


@router.get("/profile")
async def read_profile(store=Depends(get_store), auth: Principal = Depends(get_principal)) -> Dict[str, Any]:
    profile = await profile_service.get_profile(store, auth.uid, auth)
    if profile is None:
        raise ResourceNotFoundError("Profile not found")
    return profile


@router.put("/profile")
async def update_profile(
    form: ProfileForm,
    store=Depends(get_store),
    db=Depends(get_db),
    auth: Principal = Depends(get_principal),
) -> Dict[str, Any]:
    return await profile_service.update_profile(store, db, auth.uid, form, auth)
