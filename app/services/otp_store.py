"""
app/services/otp_store.py

Purpose: Pending verification code storage

- At most one record per phone number; a new code replaces the old one
  in a single atomic write
- Lookups ignore records past expires_at even if not yet deleted
- consume() is a single find-and-delete so a code can be redeemed once
- No in-process locks; mutual exclusion comes from the store itself
"""

import asyncio
import hmac
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Optional

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.exceptions import StorageError
from app.core.logging import get_logger
from app.models.verification import VerificationRecord
from utils.time_utils import utcnow

logger = get_logger(__name__)


class OTPStore(ABC):
    """Storage contract for pending verification codes."""

    @abstractmethod
    async def put(
        self,
        phone_number: str,
        code: str,
        expires_at: datetime,
        created_at: Optional[datetime] = None
    ) -> VerificationRecord:
        """Stores a code, replacing any existing record for the number."""

    @abstractmethod
    async def find(
        self,
        phone_number: str,
        code: str,
        now: Optional[datetime] = None
    ) -> Optional[VerificationRecord]:
        """Returns the live record matching phone and code, if any."""

    @abstractmethod
    async def consume(
        self,
        phone_number: str,
        code: str,
        now: Optional[datetime] = None
    ) -> Optional[VerificationRecord]:
        """Atomically removes and returns the live matching record, if any."""

    @abstractmethod
    async def delete(self, phone_number: str, code: Optional[str] = None) -> bool:
        """Removes the record. Deleting an absent record is not an error."""


class MongoOTPStore(OTPStore):
    """OTP store backed by the verification_codes collection."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    @staticmethod
    def _live_filter(phone_number: str, code: str, now: datetime) -> Dict:
        return {
            "phone_number": phone_number,
            "code": code,
            "expires_at": {"$gte": now},
        }

    async def put(
        self,
        phone_number: str,
        code: str,
        expires_at: datetime,
        created_at: Optional[datetime] = None
    ) -> VerificationRecord:
        record = VerificationRecord(
            phone_number=phone_number,
            code=code,
            created_at=created_at or utcnow(),
            expires_at=expires_at,
        )

        # Two racing upserts on a missing key can both try to insert; the
        # unique index rejects one, and a second attempt turns it into a replace.
        for attempt in (1, 2):
            try:
                await self.collection.replace_one(
                    {"phone_number": phone_number},
                    record.to_document(),
                    upsert=True
                )
                return record
            except DuplicateKeyError as e:
                if attempt == 2:
                    raise StorageError("Could not store verification code") from e
                logger.debug("Upsert raced on phone_number, retrying")
            except (PyMongoError, asyncio.TimeoutError) as e:
                logger.error(f"Failed to store verification code: {e}")
                raise StorageError("Could not store verification code") from e

        return record

    async def find(
        self,
        phone_number: str,
        code: str,
        now: Optional[datetime] = None
    ) -> Optional[VerificationRecord]:
        try:
            doc = await self.collection.find_one(
                self._live_filter(phone_number, code, now or utcnow())
            )
        except (PyMongoError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to look up verification code: {e}")
            raise StorageError("Could not read verification code") from e

        return VerificationRecord.from_document(doc)

    async def consume(
        self,
        phone_number: str,
        code: str,
        now: Optional[datetime] = None
    ) -> Optional[VerificationRecord]:
        try:
            doc = await self.collection.find_one_and_delete(
                self._live_filter(phone_number, code, now or utcnow())
            )
        except (PyMongoError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to consume verification code: {e}")
            raise StorageError("Could not consume verification code") from e

        return VerificationRecord.from_document(doc)

    async def delete(self, phone_number: str, code: Optional[str] = None) -> bool:
        query = {"phone_number": phone_number}
        if code is not None:
            query["code"] = code

        try:
            result = await self.collection.delete_one(query)
        except (PyMongoError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to delete verification code: {e}")
            raise StorageError("Could not delete verification code") from e

        return result.deleted_count > 0


class InMemoryOTPStore(OTPStore):
    """
    Dictionary-backed store for tests and local runs.

    No method awaits between reading and writing, so each operation is
    atomic with respect to other tasks on the same event loop.
    """

    def __init__(self):
        self.records: Dict[str, VerificationRecord] = {}

    @staticmethod
    def _same_code(record: VerificationRecord, code: str) -> bool:
        return hmac.compare_digest(record.code, code)

    def _match(self, phone_number: str, code: str, now: datetime) -> Optional[VerificationRecord]:
        record = self.records.get(phone_number)
        if record is None:
            return None
        if not self._same_code(record, code):
            return None
        if record.is_expired(now):
            return None
        return record

    async def put(
        self,
        phone_number: str,
        code: str,
        expires_at: datetime,
        created_at: Optional[datetime] = None
    ) -> VerificationRecord:
        record = VerificationRecord(
            phone_number=phone_number,
            code=code,
            created_at=created_at or utcnow(),
            expires_at=expires_at,
        )
        self.records[phone_number] = record
        return record

    async def find(
        self,
        phone_number: str,
        code: str,
        now: Optional[datetime] = None
    ) -> Optional[VerificationRecord]:
        return self._match(phone_number, code, now or utcnow())

    async def consume(
        self,
        phone_number: str,
        code: str,
        now: Optional[datetime] = None
    ) -> Optional[VerificationRecord]:
        record = self._match(phone_number, code, now or utcnow())
        if record is not None:
            del self.records[phone_number]
        return record

    async def delete(self, phone_number: str, code: Optional[str] = None) -> bool:
        record = self.records.get(phone_number)
        if record is None:
            return False
        if code is not None and not self._same_code(record, code):
            return False
        del self.records[phone_number]
        return True
