"""
app/services/verification_service.py

Purpose: Phone verification lifecycle

Per phone number:
    NONE --issue--> PENDING --verify ok--> NONE (consumed)
    PENDING --issue--> PENDING' (previous code superseded)
    PENDING --ttl passes--> expired (never matches; replaced by next issue)

- Input shape is checked before any storage access
- Issuing stores the code first, then hands it to the SMS notifier
- Verifying consumes the code in one atomic store call
- Wrong, expired and never-issued codes all fail the same way
"""

from datetime import datetime
from typing import Callable, Literal, Optional, Tuple

from pydantic import BaseModel, validator

from app.core.config import Settings, check_message_template
from app.core.exceptions import (
    DeliveryError,
    InvalidOrExpiredCodeError,
    ProfileUpdateError,
    StorageError,
    ValidationError,
)
from app.core.logging import get_logger, LogContext
from app.models.user import UserRecord
from app.models.verification import VerificationRecord
from app.services.code_generator import generate_code
from app.services.otp_store import OTPStore
from app.services.sms_service import SMSNotifier
from app.services.user_service import UserRepository
from utils.time_utils import utcnow, calculate_otp_expiry
from utils.validation_utils import normalize_phone_number, validate_otp_format, sanitize_name

logger = get_logger(__name__)

DEFAULT_MESSAGE_TEMPLATE = "Your verification code is: {code}. It expires in {ttl} seconds."


class VerificationPolicy(BaseModel):
    """Behaviour switches for the verification flow."""

    development_mode: bool = False
    ttl_seconds: int = 300
    invalidate_on_delivery_failure: bool = False
    message_template: str = DEFAULT_MESSAGE_TEMPLATE

    @validator("message_template")
    def validate_message_template(cls, v):
        return check_message_template(v)

    @classmethod
    def from_settings(cls, settings: Settings) -> "VerificationPolicy":
        return cls(
            development_mode=settings.VERIFICATION_DEV_MODE,
            ttl_seconds=settings.OTP_TTL_SECONDS,
            invalidate_on_delivery_failure=settings.INVALIDATE_CODE_ON_DELIVERY_FAILURE,
            message_template=settings.OTP_MESSAGE_TEMPLATE,
        )


class IssueResult(BaseModel):
    phone_number: str
    code: str
    expires_at: datetime
    delivered: bool
    mode: Literal["production", "development"]


def require_phone_number(phone_number: str) -> str:
    normalized = normalize_phone_number(phone_number)
    if normalized is None:
        raise ValidationError(
            "Invalid phone number",
            details=[{"field": "phoneNumber", "message": "Phone number must contain 10-15 digits"}]
        )
    return normalized


def require_code(code: str) -> str:
    if not validate_otp_format(code):
        raise ValidationError(
            "Invalid verification code",
            details=[{"field": "code", "message": "Code must be exactly 6 digits"}]
        )
    return code


class VerificationService:
    """
    Issues and redeems one-time codes.

    All collaborators are injected; the service holds no locks and relies on
    the store's atomic replace and find-and-delete.
    """

    def __init__(
        self,
        store: OTPStore,
        notifier: SMSNotifier,
        users: UserRepository,
        policy: Optional[VerificationPolicy] = None,
        clock: Callable[[], datetime] = utcnow,
        code_generator: Callable[[], str] = generate_code,
    ):
        self.store = store
        self.notifier = notifier
        self.users = users
        self.policy = policy or VerificationPolicy()
        self.clock = clock
        self.code_generator = code_generator

    def _render_message(self, code: str) -> str:
        return self.policy.message_template.format(code=code, ttl=self.policy.ttl_seconds)

    async def issue(self, phone_number: str) -> IssueResult:
        """
        Generates and stores a new code, superseding any pending one,
        then delivers it unless running in development mode.

        Raises:
            ValidationError: malformed phone number
            StorageError: the code could not be stored
            DeliveryError: the SMS could not be sent
        """
        phone_number = require_phone_number(phone_number)

        with LogContext(phone_number=phone_number, operation="issue"):
            code = self.code_generator()
            now = self.clock()
            expires_at = calculate_otp_expiry(now, self.policy.ttl_seconds)

            await self.store.put(phone_number, code, expires_at, created_at=now)
            logger.info("Verification code stored")

            if self.policy.development_mode:
                logger.info("Development mode: skipping SMS delivery")
                return IssueResult(
                    phone_number=phone_number,
                    code=code,
                    expires_at=expires_at,
                    delivered=False,
                    mode="development",
                )

            result = await self.notifier.send(phone_number, self._render_message(code))

            if not result.get("success"):
                code_valid = True
                if self.policy.invalidate_on_delivery_failure:
                    try:
                        await self.store.delete(phone_number, code)
                        code_valid = False
                    except StorageError:
                        logger.error("Could not invalidate undelivered code")

                logger.warning(
                    f"SMS delivery failed: {result.get('error')}",
                    extra={"code_valid": code_valid}
                )
                raise DeliveryError(
                    code_valid=code_valid,
                    details={"reason": result.get("error"), "code_valid": code_valid}
                )

            return IssueResult(
                phone_number=phone_number,
                code=code,
                expires_at=expires_at,
                delivered=True,
                mode="production",
            )

    async def verify(self, phone_number: str, code: str) -> VerificationRecord:
        """
        Redeems a code. Succeeds at most once per issued code.

        Raises:
            ValidationError: malformed phone number or code
            InvalidOrExpiredCodeError: no live record matches
            StorageError: the store could not be reached
        """
        phone_number = require_phone_number(phone_number)
        code = require_code(code)

        with LogContext(phone_number=phone_number, operation="verify"):
            record = await self.store.consume(phone_number, code, now=self.clock())

            if record is None:
                logger.info("Verification failed: no live matching code")
                raise InvalidOrExpiredCodeError()

            logger.info("Verification code consumed")
            return record

    async def verify_and_upsert(
        self,
        phone_number: str,
        code: str,
        first_name: Optional[str] = None
    ) -> Tuple[UserRecord, bool]:
        """
        Redeems a code, then marks the user as verified (creating it if needed).

        Raises:
            ProfileUpdateError: the code was spent but the user write failed
        """
        record = await self.verify(phone_number, code)

        try:
            return await self.users.upsert(
                record.phone_number,
                first_name=sanitize_name(first_name),
                phone_verified=True
            )
        except Exception as e:
            logger.error(
                f"Profile update failed after verification: {e}",
                extra={"phone_number": record.phone_number, "operation": "verify"}
            )
            raise ProfileUpdateError() from e

    async def update_user(self, phone_number: str, first_name: Optional[str]) -> Tuple[UserRecord, bool]:
        """
        Creates or updates a user's profile without touching phone_verified.
        """
        phone_number = require_phone_number(phone_number)

        with LogContext(phone_number=phone_number, operation="update_user"):
            return await self.users.upsert(phone_number, first_name=sanitize_name(first_name))
