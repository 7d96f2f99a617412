"""
app/services/registration_service.py

Purpose: OTP-gated registration

- Generate a numeric OTP and store the pending registration
- Verify the (email, phone, otp) tuple
- Create the auth account and user profile on success
- Consume the pending registration

The OTP itself is delivered by the pending_users on-create trigger
(see app/services/otp_notifier.py).
"""

import asyncio
import secrets
from datetime import datetime
from typing import Any, Dict

from app.core.config import settings
from app.core.exceptions import OtpVerificationError
from app.core.logging import get_logger, LogContext
from app.db.collections import COLLECTION_PENDING_USERS, user_path
from app.db.paths import collection, document
from app.db.rules import SERVICE
from app.db.store import DocumentStore, SERVER_TIMESTAMP
from app.schemas.auth import OtpVerification, RegistrationForm
from app.services import auth_service
from utils.constants import OTP_REJECTED_MESSAGE
from utils.time_utils import calculate_otp_expiry, is_expired
from utils.validation_utils import normalize_email, normalize_phone_number

logger = get_logger(__name__)


def generate_otp(length: int = None) -> str:
    """Random numeric code of `length` digits (leading zeros allowed)."""
    length = length or settings.OTP_LENGTH
    return "".join(secrets.choice("0123456789") for _ in range(length))


async def start_registration(store: DocumentStore, form: RegistrationForm) -> str:
    """
    Stores a pending registration carrying a fresh OTP.

    Returns:
        The pending registration id
    """
    password_hash = await asyncio.to_thread(auth_service.hash_password, form.password)
    now = datetime.utcnow()
    pending = {
        "full_name": form.full_name.strip(),
        "email": normalize_email(form.email),
        "phone": normalize_phone_number(form.phone),
        "cnic": form.cnic,
        "dob": form.dob,
        "address1": form.address1.strip(),
        "address2": (form.address2 or "").strip(),
        "password_hash": password_hash,
        "otp": generate_otp(),
        "created_at": now,
        "expires_at": calculate_otp_expiry(now, settings.OTP_EXPIRY_MINUTES),
    }

    ref = await store.add(collection(COLLECTION_PENDING_USERS), pending, SERVICE)
    logger.info("Pending registration stored", extra={"path": ref.path})
    return ref.id


async def verify_registration(store: DocumentStore, database, verification: OtpVerification) -> Dict[str, Any]:
    """
    Completes a registration whose OTP matches.

    Exactly one unexpired pending registration must match the
    (email, phone, otp) tuple.

    Returns:
        The created auth account

    Raises:
        OtpVerificationError: If nothing (or more than one thing) matches,
            or the match has expired
    """
    query = (
        collection(COLLECTION_PENDING_USERS)
        .where("email", "==", normalize_email(verification.email))
        .where("phone", "==", normalize_phone_number(verification.phone))
        .where("otp", "==", verification.otp)
    )
    matches = await store.list(query, SERVICE)

    if len(matches) != 1:
        logger.warning(f"OTP rejected ({len(matches)} matching registrations)")
        raise OtpVerificationError(OTP_REJECTED_MESSAGE)

    pending = matches[0]
    pending_ref = document(f"{COLLECTION_PENDING_USERS}/{pending['id']}")

    if is_expired(pending.get("expires_at")):
        logger.warning("OTP rejected (expired)", extra={"path": pending_ref.path})
        await store.delete(pending_ref, SERVICE)
        raise OtpVerificationError(OTP_REJECTED_MESSAGE)

    account = await auth_service.create_account(
        database,
        email=pending["email"],
        password_hash=pending.get("password_hash"),
        display_name=pending.get("full_name"),
    )

    with LogContext(user_id=account["uid"]):
        profile = {
            "full_name": pending.get("full_name"),
            "email": pending["email"],
            "phone": pending.get("phone"),
            "cnic": pending.get("cnic"),
            "dob": pending.get("dob"),
            "address1": pending.get("address1"),
            "address2": pending.get("address2", ""),
            "created_at": SERVER_TIMESTAMP,
        }
        await store.set(document(user_path(account["uid"])), profile, SERVICE)
        await store.delete(pending_ref, SERVICE)
        logger.info("Registration verified")

    return account
