"""
utils/time_utils.py

Purpose: Time and expiry helpers

- OTP expiry checks
"""

from datetime import datetime, timedelta
from typing import Optional


def calculate_otp_expiry(otp_time: datetime, validity_minutes: int = 10) -> datetime:
    """
    Calculates OTP expiry timestamp.
    """
    return otp_time + timedelta(minutes=validity_minutes)


def is_expired(expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """
    Checks whether an absolute expiry time has passed.
    A missing expiry counts as expired.
    """
    if not expires_at:
        return True
    return (now or datetime.utcnow()) > expires_at

