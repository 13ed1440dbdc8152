"""
utils/time_utils.py

Purpose: Time and expiry helpers

- UTC timestamps (naive, as stored by MongoDB)
- OTP expiry calculation and checks
"""

from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime, matching what pymongo returns.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def calculate_otp_expiry(issued_at: datetime, ttl_seconds: int = 300) -> datetime:
    """
    Calculates OTP expiry timestamp.
    """
    return issued_at + timedelta(seconds=ttl_seconds)


def is_otp_expired(expires_at: datetime, now: Optional[datetime] = None) -> bool:
    """
    Checks if an OTP has expired. A code is still valid at exactly expires_at.
    """
    now = now or utcnow()
    return now > expires_at

