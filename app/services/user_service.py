"""
app/services/user_service.py

Purpose: User data management

- Create or update user records keyed by phone number
- Merge supplied fields; omitted fields are never cleared
- phone_verified is only set by the verification flow
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.exceptions import StorageError
from app.core.logging import get_logger
from app.models.user import UserRecord
from utils.time_utils import utcnow

logger = get_logger(__name__)


class UserRepository(ABC):

    @abstractmethod
    async def get(self, phone_number: str) -> Optional[UserRecord]:
        ...

    @abstractmethod
    async def upsert(
        self,
        phone_number: str,
        first_name: Optional[str] = None,
        phone_verified: Optional[bool] = None
    ) -> Tuple[UserRecord, bool]:
        """
        Creates the user if absent, otherwise merges the supplied fields.

        Args:
            phone_number: Normalized phone number (conflict key)
            first_name: New first name, or None to keep the current one
            phone_verified: New verified flag, or None to keep the current one

        Returns:
            (user record after the write, True if it was created)
        """


class MongoUserRepository(UserRepository):
    """User repository backed by the users collection."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def get(self, phone_number: str) -> Optional[UserRecord]:
        try:
            doc = await self.collection.find_one({"phone_number": phone_number})
        except (PyMongoError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to fetch user: {e}")
            raise StorageError("Could not read user") from e

        return UserRecord.from_document(doc)

    async def upsert(
        self,
        phone_number: str,
        first_name: Optional[str] = None,
        phone_verified: Optional[bool] = None
    ) -> Tuple[UserRecord, bool]:
        now = utcnow()

        set_fields: Dict = {"updated_at": now}
        set_on_insert: Dict = {"created_at": now}

        if first_name is not None:
            set_fields["first_name"] = first_name
        else:
            set_on_insert["first_name"] = None

        if phone_verified is not None:
            set_fields["phone_verified"] = phone_verified
            if phone_verified:
                set_fields["verified_at"] = now
        else:
            set_on_insert["phone_verified"] = False

        update_doc = {"$set": set_fields, "$setOnInsert": set_on_insert}

        for attempt in (1, 2):
            try:
                result = await self.collection.update_one(
                    {"phone_number": phone_number},
                    update_doc,
                    upsert=True
                )
                doc = await self.collection.find_one({"phone_number": phone_number})
                break
            except DuplicateKeyError as e:
                # Lost an insert race; the retry applies as an update.
                if attempt == 2:
                    raise StorageError("Could not save user") from e
                logger.debug("User upsert raced on phone_number, retrying")
            except (PyMongoError, asyncio.TimeoutError) as e:
                logger.error(f"Failed to upsert user: {e}")
                raise StorageError("Could not save user") from e

        created = result.upserted_id is not None

        logger.info(
            f"User {'created' if created else 'updated'}",
            extra={"phone_number": phone_number, "operation": "upsert_user"}
        )

        return UserRecord.from_document(doc), created


class InMemoryUserRepository(UserRepository):
    """Dictionary-backed repository for tests and local runs."""

    def __init__(self):
        self.users: Dict[str, UserRecord] = {}

    async def get(self, phone_number: str) -> Optional[UserRecord]:
        return self.users.get(phone_number)

    async def upsert(
        self,
        phone_number: str,
        first_name: Optional[str] = None,
        phone_verified: Optional[bool] = None
    ) -> Tuple[UserRecord, bool]:
        now = utcnow()
        existing = self.users.get(phone_number)
        created = existing is None

        if created:
            user = UserRecord(phone_number=phone_number, created_at=now, updated_at=now)
        else:
            user = existing.model_copy(update={"updated_at": now})

        if first_name is not None:
            user.first_name = first_name
        if phone_verified is not None:
            user.phone_verified = phone_verified
            if phone_verified:
                user.verified_at = now

        self.users[phone_number] = user
        return user, created
