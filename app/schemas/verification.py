"""
app/schemas/verification.py

Purpose: Verification request/response schemas

- camelCase JSON on the wire, snake_case in Python
- Shape checks here surface as 400s with field detail before any storage access
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, Literal

from utils.validation_utils import normalize_phone_number, validate_otp_format, sanitize_name


class PhoneNumberRequest(BaseModel):
    phone_number: str = Field(
        ...,
        alias="phoneNumber",
        min_length=10,
        max_length=15,
        description="Phone number, 10-15 digits with optional leading +"
    )

    @validator("phone_number")
    def validate_phone(cls, v):
        normalized = normalize_phone_number(v)
        if normalized is None:
            raise ValueError("Phone number must contain 10-15 digits")
        return normalized

    class Config:
        populate_by_name = True


class SendCodeRequest(PhoneNumberRequest):
    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {"phoneNumber": "+15551234567"}
        }


class VerifyCodeRequest(PhoneNumberRequest):
    code: str = Field(..., min_length=6, max_length=6, description="6-digit code")
    first_name: Optional[str] = Field(default=None, alias="firstName", max_length=100)

    @validator("code")
    def validate_code(cls, v):
        if not validate_otp_format(v):
            raise ValueError("Code must be exactly 6 digits")
        return v

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {"phoneNumber": "+15551234567", "code": "123456"}
        }


class UpdateUserRequest(PhoneNumberRequest):
    first_name: Optional[str] = Field(default=None, alias="firstName", max_length=100)

    @validator("first_name")
    def clean_first_name(cls, v):
        return sanitize_name(v)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {"phoneNumber": "+15551234567", "firstName": "Ada"}
        }


class SendCodeResponse(BaseModel):
    success: bool = True
    code: Optional[str] = None
    mode: Optional[Literal["development"]] = None


class VerifyCodeResponse(BaseModel):
    success: bool = True


class UpdateUserResponse(BaseModel):
    success: bool = True
    new_user: bool = Field(..., alias="newUser")

    class Config:
        populate_by_name = True
