"""
app/api/auth.py

Purpose: Registration and sign-in endpoints

- POST /auth/register     store a pending registration (OTP sent by trigger)
- POST /auth/verify-otp   complete registration, returns a token
- POST /auth/login        email/password sign-in
- POST /auth/oauth/google Google sign-in
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from app.api.deps import get_db, get_store
from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from app.schemas.auth import (
    GoogleSignIn,
    LoginRequest,
    OtpVerification,
    PendingRegistration,
    RegistrationForm,
    TokenResponse,
)
from app.services import auth_service, registration_service
from utils.constants import EMAIL_ALREADY_REGISTERED, REGISTRATION_PENDING_MESSAGE

logger = get_logger(__name__)
router = APIRouter()


def _token_response(account: Dict[str, Any]) -> TokenResponse:
    return TokenResponse(
        access_token=auth_service.create_access_token(account),
        uid=account["uid"],
        display_name=account.get("display_name"),
    )


@router.post("/register", response_model=PendingRegistration, status_code=status.HTTP_201_CREATED)
async def register(form: RegistrationForm, store=Depends(get_store), db=Depends(get_db)):
    """
    Starts a registration. The form is fully validated before any write.
    """
    if await auth_service.get_account_by_email(db, form.email):
        raise ValidationError(EMAIL_ALREADY_REGISTERED)

    pending_id = await registration_service.start_registration(store, form)
    return PendingRegistration(
        pending_id=pending_id,
        message=REGISTRATION_PENDING_MESSAGE.format(minutes=settings.OTP_EXPIRY_MINUTES),
    )


@router.post("/verify-otp", response_model=TokenResponse)
async def verify_otp(verification: OtpVerification, store=Depends(get_store), db=Depends(get_db)):
    account = await registration_service.verify_registration(store, db, verification)
    return _token_response(account)


@router.post("/login", response_model=TokenResponse)
async def login(credentials: LoginRequest, db=Depends(get_db)):
    account = await auth_service.sign_in_with_password(db, credentials.email, credentials.password)
    return _token_response(account)


@router.post("/oauth/google", response_model=TokenResponse)
async def google_sign_in(body: GoogleSignIn, db=Depends(get_db)):
    account = await auth_service.sign_in_with_google(db, body.id_token)
    return _token_response(account)
