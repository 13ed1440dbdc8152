import re

import pytest

from app.core.logging import mask_phone
from app.services.code_generator import generate_code
from utils.validation_utils import normalize_phone_number, validate_otp_format, sanitize_name


@pytest.mark.parametrize("raw,expected", [
    ("+15551234567", "+15551234567"),
    ("15551234567", "+15551234567"),
    ("+1 (555) 123-4567", "+15551234567"),
    ("555.123.4567", "+5551234567"),
    ("+123456789012345", "+123456789012345"),
])
def test_normalize_phone_number(raw, expected):
    assert normalize_phone_number(raw) == expected


@pytest.mark.parametrize("raw", ["", "123", "+123456789", "1234567890123456", "+1555abc4567", "++15551234567", "١٢٣٤٥٦٧٨٩٠"])
def test_normalize_phone_number_rejects(raw):
    assert normalize_phone_number(raw) is None


@pytest.mark.parametrize("code,valid", [
    ("123456", True),
    ("000000", True),
    ("12345", False),
    ("1234567", False),
    ("12a456", False),
    ("١٢٣٤٥٦", False),
    ("", False),
])
def test_validate_otp_format(code, valid):
    assert validate_otp_format(code) is valid


def test_sanitize_name():
    assert sanitize_name("  Ada   Lovelace ") == "Ada Lovelace"
    assert sanitize_name("   ") is None
    assert sanitize_name(None) is None
    assert len(sanitize_name("x" * 500)) == 100


def test_generate_code_shape():
    for _ in range(200):
        assert re.match(r"^\d{6}$", generate_code())


def test_generate_code_is_not_constant():
    assert len({generate_code() for _ in range(50)}) > 1


def test_mask_phone():
    assert mask_phone("+15551234567") == "+1555***4567"
    assert mask_phone(None) == "unknown"
