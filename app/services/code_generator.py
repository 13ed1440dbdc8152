"""
app/services/code_generator.py

Purpose: One-time code generation

- Uniform over 000000-999999
- Uses the OS CSPRNG so calls are independent under load
"""

import secrets

from utils.validation_utils import OTP_LENGTH


def generate_code(length: int = OTP_LENGTH) -> str:
    """6-digit numeric code, zero padded."""
    return f"{secrets.randbelow(10 ** length):0{length}d}"
