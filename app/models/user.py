"""
app/models/user.py

Purpose: User document model

- Keyed by normalized phone number (unique)
- Optional first name
- phone_verified only ever set by a successful verification
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from utils.time_utils import utcnow


class UserRecord(BaseModel):
    phone_number: str
    first_name: Optional[str] = None
    phone_verified: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    verified_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Optional[Dict[str, Any]]) -> Optional["UserRecord"]:
        if doc is None:
            return None
        return cls.model_validate(doc)
