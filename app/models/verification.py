"""
app/models/verification.py

Purpose: Verification code document model

- One pending code per phone number (phone_number is the natural key)
- Immutable once written; replaced by a newer code or deleted on use
- Expiry is checked at read time, not by eviction
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from utils.time_utils import utcnow, is_otp_expired


class VerificationRecord(BaseModel):
    """A pending verification code bound to a phone number."""

    phone_number: str
    code: str = Field(..., min_length=6, max_length=6)
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return is_otp_expired(self.expires_at, now)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump()

    @classmethod
    def from_document(cls, doc: Optional[Dict[str, Any]]) -> Optional["VerificationRecord"]:
        if doc is None:
            return None
        return cls.model_validate(doc)
