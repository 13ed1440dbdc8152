"""
app/api/deps.py

Purpose: FastAPI dependencies

- Wires the verification service to MongoDB, Twilio and the configured policy
- Tests replace get_verification_service via app.dependency_overrides
"""

from app.core.config import settings
from app.db.mongo import get_verification_codes_collection, get_users_collection
from app.services.otp_store import MongoOTPStore
from app.services.sms_service import sms_notifier
from app.services.user_service import MongoUserRepository
from app.services.verification_service import VerificationService, VerificationPolicy


def get_verification_service() -> VerificationService:
    return VerificationService(
        store=MongoOTPStore(get_verification_codes_collection()),
        notifier=sms_notifier,
        users=MongoUserRepository(get_users_collection()),
        policy=VerificationPolicy.from_settings(settings),
    )
