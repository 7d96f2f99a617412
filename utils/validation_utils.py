"""
utils/validation_utils.py

Purpose: Input validation

- CNIC (national ID) format validation
- OTP format validation
- Phone and email normalization
"""

import re
from datetime import date, datetime
from typing import Optional

CNIC_PATTERN = r"^\d{5}-\d{7}-\d{1}$"
CNIC_FORMAT_MESSAGE = "Invalid CNIC format (e.g., 12345-1234567-1)"


def validate_cnic(cnic: str) -> bool:
    """
    Validates CNIC format.

    Format: 5 digits - 7 digits - 1 digit
    Example: 12345-1234567-1
    """
    if not cnic:
        return False
    return bool(re.match(CNIC_PATTERN, cnic.strip()))


def validate_otp_format(otp: str, length: int = 6) -> bool:
    """
    Validates OTP format (must be exactly `length` digits).
    """
    if not otp:
        return False

    return bool(re.match(rf"^\d{{{length}}}$", otp.strip()))


def validate_phone_number(phone: str) -> bool:
    """
    Loose phone check used by the registration and witness forms:
    at least 10 digits once spaces and dashes are removed.
    """
    if not phone:
        return False

    digits = re.sub(r"[\s\-()]", "", phone)
    if digits.startswith("+"):
        digits = digits[1:]
    return digits.isdigit() and len(digits) >= 10


def normalize_phone_number(phone: str) -> str:
    """
    Strips spaces, dashes and brackets.

    Pakistani local numbers (03xx...) are converted to +92 format.
    """
    phone = re.sub(r"[\s\-()]", "", phone or "")

    if phone.startswith("03") and len(phone) == 11:
        return "+92" + phone[1:]
    if phone.startswith("92") and len(phone) == 12:
        return "+" + phone

    return phone


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def parse_date(value: str) -> Optional[date]:
    """
    Parses an ISO date (YYYY-MM-DD) or datetime string.

    Returns:
        date or None if the value cannot be parsed
    """
    if not value:
        return None

    try:
        return datetime.fromisoformat(value.strip()).date()
    except ValueError:
        return None

