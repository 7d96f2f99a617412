"""
app/services/auth_service.py

Purpose: Auth provider

- Email/password accounts with bcrypt hashes
- Signed access tokens (JWT)
- Google sign-in through ID token verification
- Auth profile (display name, photo) updates
"""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token
from jose import JWTError, jwt
from passlib.context import CryptContext
from pymongo.errors import DuplicateKeyError

from app.core.config import settings
from app.core.exceptions import AuthenticationError, ValidationError
from app.core.logging import get_logger, LogContext
from app.db.collections import COLLECTION_AUTH_ACCOUNTS
from app.db.rules import Principal
from utils.constants import EMAIL_ALREADY_REGISTERED, INVALID_CREDENTIALS_MESSAGE
from utils.validation_utils import normalize_email

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def create_access_token(account: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    claims = {
        "sub": account["uid"],
        "email": account.get("email"),
        "exp": expire,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Principal:
    """
    Validates a bearer token and returns the principal it was issued to.

    Raises:
        AuthenticationError: If the token is malformed, expired or unsigned
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise AuthenticationError("Invalid or expired token") from e

    uid = payload.get("sub")
    if not uid:
        raise AuthenticationError("Invalid token")

    return Principal(uid=uid, email=payload.get("email"))


async def get_account_by_email(database, email: str) -> Optional[Dict[str, Any]]:
    return await database[COLLECTION_AUTH_ACCOUNTS].find_one({"email": normalize_email(email)})


async def create_account(
    database,
    email: str,
    password_hash: Optional[str],
    display_name: Optional[str] = None,
    photo_url: Optional[str] = None,
    provider: str = "password",
) -> Dict[str, Any]:
    """
    Creates an auth account.

    Raises:
        ValidationError: If the email is already registered
    """
    account = {
        "uid": uuid.uuid4().hex,
        "email": normalize_email(email),
        "password_hash": password_hash,
        "display_name": display_name,
        "photo_url": photo_url,
        "provider": provider,
        "created_at": datetime.utcnow(),
        "last_sign_in": None,
    }

    try:
        await database[COLLECTION_AUTH_ACCOUNTS].insert_one(account)
    except DuplicateKeyError as e:
        raise ValidationError(EMAIL_ALREADY_REGISTERED) from e

    with LogContext(user_id=account["uid"]):
        logger.info(f"Auth account created ({provider})")

    return account


async def _touch_sign_in(database, uid: str) -> None:
    await database[COLLECTION_AUTH_ACCOUNTS].update_one(
        {"uid": uid},
        {"$set": {"last_sign_in": datetime.utcnow()}}
    )


async def sign_in_with_password(database, email: str, password: str) -> Dict[str, Any]:
    """
    Raises:
        AuthenticationError: On unknown email or wrong password
    """
    account = await get_account_by_email(database, email)
    # bcrypt blocks; it runs in a worker thread
    valid = account is not None and await asyncio.to_thread(verify_password, password, account.get("password_hash"))
    if not valid:
        logger.warning("Failed sign-in attempt")
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    await _touch_sign_in(database, account["uid"])
    return account


def verify_google_id_token(token: str) -> Dict[str, Any]:
    """
    Verifies a Google ID token against the configured OAuth client id.

    Raises:
        AuthenticationError: If verification fails
    """
    if not settings.GOOGLE_OAUTH_CLIENT_ID:
        raise AuthenticationError("Google sign-in is not configured")

    try:
        return google_id_token.verify_oauth2_token(
            token,
            google_requests.Request(),
            settings.GOOGLE_OAUTH_CLIENT_ID,
        )
    except ValueError as e:
        raise AuthenticationError("Invalid Google ID token") from e


async def sign_in_with_google(database, token: str) -> Dict[str, Any]:
    # Fetches Google's signing certificates over HTTP
    claims = await asyncio.to_thread(verify_google_id_token, token)

    email = claims.get("email")
    if not email or not claims.get("email_verified", False):
        raise AuthenticationError("Google account email is not verified")

    account = await get_account_by_email(database, email)
    if account is None:
        account = await create_account(
            database,
            email=email,
            password_hash=None,
            display_name=claims.get("name"),
            photo_url=claims.get("picture"),
            provider="google",
        )

    await _touch_sign_in(database, account["uid"])
    return account


async def update_auth_profile(
    database,
    uid: str,
    display_name: Optional[str] = None,
    photo_url: Optional[str] = None,
) -> bool:
    """
    Updates the auth record's display name and photo.

    Returns:
        True if the account exists
    """
    result = await database[COLLECTION_AUTH_ACCOUNTS].update_one(
        {"uid": uid},
        {"$set": {"display_name": display_name, "photo_url": photo_url}}
    )
    return result.matched_count > 0
