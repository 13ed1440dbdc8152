"""
utils/validation_utils.py

Purpose: Input validation

- Phone number normalization (E.164-ish)
- Verification code format checks
- Name sanitization
"""

import re
from typing import Optional

PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 15
OTP_LENGTH = 6

_PHONE_SEPARATORS = re.compile(r"[\s\-\.\(\)]")
_OTP_PATTERN = re.compile(r"^\d{6}$")


def normalize_phone_number(phone: str) -> Optional[str]:
    """
    Normalizes a phone number to the key used for storage.

    Separators (spaces, dashes, dots, parentheses) are stripped and a single
    leading '+' is kept or added.

    Args:
        phone: Raw phone number from the client

    Returns:
        "+<digits>" if the number holds 10-15 digits, None otherwise
    """
    if not phone:
        return None

    cleaned = _PHONE_SEPARATORS.sub("", phone.strip())
    if cleaned.startswith("+"):
        cleaned = cleaned[1:]

    if not cleaned.isdigit() or not cleaned.isascii():
        return None

    if not PHONE_MIN_DIGITS <= len(cleaned) <= PHONE_MAX_DIGITS:
        return None

    return f"+{cleaned}"


def validate_otp_format(otp: str) -> bool:
    """
    Validates OTP format (must be exactly 6 ASCII digits).

    Args:
        otp: OTP string

    Returns:
        True if valid 6-digit OTP
    """
    if not otp:
        return False

    return bool(_OTP_PATTERN.match(otp)) and otp.isascii()


def sanitize_name(name: Optional[str], max_length: int = 100) -> Optional[str]:
    """
    Collapses whitespace and trims a display name.

    Returns None for empty input so optional names are left untouched on update.
    """
    if name is None:
        return None

    cleaned = " ".join(name.split())
    if not cleaned:
        return None

    return cleaned[:max_length]
