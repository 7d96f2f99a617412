"""
app/services/profile_service.py

Purpose: User profile

- Read the users/{uid} profile document
- Update it together with the auth record's display name and photo

The two writes are independent. When one succeeds and the other fails the
partial update is logged and left in place.
"""

from typing import Any, Dict, Optional

from app.core.exceptions import ResourceNotFoundError
from app.core.logging import get_logger, LogContext
from app.db.collections import user_path
from app.db.paths import document
from app.db.rules import Principal
from app.db.store import DocumentStore
from app.schemas.auth import ProfileForm
from app.services import auth_service

logger = get_logger(__name__)


async def get_profile(store: DocumentStore, uid: str, auth: Principal) -> Optional[Dict[str, Any]]:
    return await store.get(document(user_path(uid)), auth)


async def update_profile(store: DocumentStore, database, uid: str, form: ProfileForm, auth: Principal) -> Dict[str, Any]:
    """
    Writes the auth record, then the profile document.

    The email is never taken from the form; it is re-stamped from the
    authenticated principal.

    Raises:
        The first failure of the two writes
    """
    values = form.model_dump()

    with LogContext(user_id=uid, operation="update"):
        auth_error: Optional[Exception] = None
        try:
            found = await auth_service.update_auth_profile(
                database, uid, display_name=form.full_name, photo_url=form.avatar
            )
            if not found:
                raise ResourceNotFoundError("Auth account not found")
        except Exception as e:
            auth_error = e
            logger.error(f"Auth profile update failed: {e}")

        profile = {**values, "email": auth.email}
        try:
            await store.set(document(user_path(uid)), profile, auth, merge=True)
        except Exception:
            if auth_error is None:
                logger.error("Profile document update failed after the auth record was updated")
            raise

        if auth_error is not None:
            logger.error("Profile document updated but the auth record was not")
            raise auth_error

        logger.info("Profile updated")

    return profile
