"""
app/services/admin_service.py

Purpose: Admin dashboard data

- Platform totals (users and records across all users)
- User list
"""

from typing import Any, Dict, List

from app.db.collections import (
    COLLECTION_AMANATS,
    COLLECTION_QARZS,
    COLLECTION_USERS,
    COLLECTION_WASIYATS,
)
from app.db.paths import collection
from app.db.rules import Principal
from app.db.store import DocumentStore


async def get_stats(store: DocumentStore, auth: Principal) -> Dict[str, int]:
    """Counts documents in each tracked collection group."""
    return {
        "users": await store.count_group(COLLECTION_USERS, auth),
        "wasiyats": await store.count_group(COLLECTION_WASIYATS, auth),
        "qarzs": await store.count_group(COLLECTION_QARZS, auth),
        "amanats": await store.count_group(COLLECTION_AMANATS, auth),
    }


async def list_users(store: DocumentStore, auth: Principal) -> List[Dict[str, Any]]:
    users = await store.list(collection(COLLECTION_USERS).order_by("full_name"), auth)
    # Registration secrets never leave the server
    return [{key: value for key, value in user.items() if key != "password_hash"} for user in users]
