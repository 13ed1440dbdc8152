"""
app/api/verification.py

Purpose: Phone verification endpoints

- POST /verification/send        issue a code and text it
- POST /verification/verify      redeem a code, mark the user verified
- POST /verification/update-user create or update a profile
- POST /verification/create-user alias of update-user
"""

from fastapi import APIRouter, Depends

from app.api.deps import get_verification_service
from app.core.logging import get_logger
from app.schemas.verification import (
    SendCodeRequest,
    SendCodeResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
    UpdateUserRequest,
    UpdateUserResponse,
)
from app.services.verification_service import VerificationService

logger = get_logger(__name__)
router = APIRouter(prefix="/verification")


@router.post("/send", response_model=SendCodeResponse, response_model_exclude_none=True)
async def send_code(
    payload: SendCodeRequest,
    service: VerificationService = Depends(get_verification_service)
):
    """
    Issues a new code for the phone number, superseding any pending one.

    In development mode the code is returned in the response and no SMS is sent.
    """
    result = await service.issue(payload.phone_number)

    if result.mode == "development":
        return SendCodeResponse(code=result.code, mode="development")

    return SendCodeResponse()


@router.post("/verify", response_model=VerifyCodeResponse)
async def verify_code(
    payload: VerifyCodeRequest,
    service: VerificationService = Depends(get_verification_service)
):
    """
    Redeems a code. A code can only be redeemed once; on success the user
    record is created or marked as verified.
    """
    await service.verify_and_upsert(payload.phone_number, payload.code, payload.first_name)
    return VerifyCodeResponse()


@router.post("/update-user", response_model=UpdateUserResponse)
@router.post("/create-user", response_model=UpdateUserResponse)
async def update_user(
    payload: UpdateUserRequest,
    service: VerificationService = Depends(get_verification_service)
):
    """Creates the user if absent, otherwise updates the supplied fields."""
    _, created = await service.update_user(payload.phone_number, payload.first_name)
    return UpdateUserResponse(new_user=created)
