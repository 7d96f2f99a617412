"""
app/schemas/auth.py

Purpose: Registration, sign-in and profile payloads

- Registration form with cross-field password confirmation
- OTP verification tuple
- Token and profile responses
"""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from app.core.config import settings
from utils.validation_utils import (
    CNIC_FORMAT_MESSAGE,
    normalize_email,
    parse_date,
    validate_cnic,
    validate_otp_format,
    validate_phone_number,
)


class RegistrationForm(BaseModel):
    full_name: str = Field(..., min_length=2, description="Full name")
    email: EmailStr
    cnic: str = Field(..., examples=["12345-1234567-1"])
    phone: str = Field(..., min_length=10)
    dob: str = Field(..., description="Date of birth (YYYY-MM-DD)")
    address1: str = Field(..., min_length=5)
    address2: Optional[str] = None
    password: str = Field(..., min_length=8)
    confirm_password: str
    agreed_to_principles: bool

    @field_validator("cnic")
    @classmethod
    def check_cnic(cls, v: str) -> str:
        if not validate_cnic(v):
            raise ValueError(CNIC_FORMAT_MESSAGE)
        return v.strip()

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str) -> str:
        if not validate_phone_number(v):
            raise ValueError("Invalid phone number")
        return v

    @field_validator("dob")
    @classmethod
    def check_dob(cls, v: str) -> str:
        if parse_date(v) is None:
            raise ValueError("Invalid date of birth")
        return v.strip()

    @field_validator("agreed_to_principles")
    @classmethod
    def must_agree(cls, v: bool) -> bool:
        if v is not True:
            raise ValueError("You must agree to the Shariah principles.")
        return v

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class PendingRegistration(BaseModel):
    pending_id: str
    message: str


class OtpVerification(BaseModel):
    email: EmailStr
    phone: str = Field(..., min_length=10)
    otp: str

    @field_validator("otp")
    @classmethod
    def check_otp(cls, v: str) -> str:
        v = v.strip()
        if not validate_otp_format(v, settings.OTP_LENGTH):
            raise ValueError(f"Verification code must be {settings.OTP_LENGTH} digits")
        return v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return normalize_email(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class GoogleSignIn(BaseModel):
    id_token: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    uid: str
    display_name: Optional[str] = None


class ProfileForm(BaseModel):
    full_name: str = Field(..., min_length=2)
    phone: Optional[str] = None
    address: Optional[str] = None
    avatar: Optional[str] = None

