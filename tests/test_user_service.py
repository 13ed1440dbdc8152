import pytest
from mongomock_motor import AsyncMongoMockClient

from app.core.exceptions import StorageError
from app.services.user_service import InMemoryUserRepository, MongoUserRepository
from tests.fakes import DuplicateKeyCollection

PHONE = "+15551234567"


@pytest.fixture(params=["memory", "mongo"])
def repository(request):
    if request.param == "memory":
        return InMemoryUserRepository()
    return MongoUserRepository(AsyncMongoMockClient()["phoneverify_test"]["users"])


@pytest.mark.asyncio
async def test_upsert_creates_unverified_user(repository):
    user, created = await repository.upsert(PHONE, first_name="Ada")

    assert created is True
    assert user.phone_number == PHONE
    assert user.first_name == "Ada"
    assert user.phone_verified is False


@pytest.mark.asyncio
async def test_upsert_merges_without_clearing_name(repository):
    await repository.upsert(PHONE, first_name="Ada")

    user, created = await repository.upsert(PHONE, phone_verified=True)

    assert created is False
    assert user.first_name == "Ada"
    assert user.phone_verified is True
    assert user.verified_at is not None


@pytest.mark.asyncio
async def test_profile_update_keeps_verified_flag(repository):
    await repository.upsert(PHONE, phone_verified=True)

    user, _ = await repository.upsert(PHONE, first_name="Grace")

    assert user.phone_verified is True
    assert user.first_name == "Grace"


@pytest.mark.asyncio
async def test_get(repository):
    assert await repository.get(PHONE) is None

    await repository.upsert(PHONE, first_name="Ada")

    user = await repository.get(PHONE)
    assert user.first_name == "Ada"


@pytest.mark.asyncio
async def test_mongo_upsert_does_not_duplicate():
    collection = AsyncMongoMockClient()["phoneverify_test"]["users"]
    repository = MongoUserRepository(collection)

    for name in ["Ada", "Grace", None]:
        await repository.upsert(PHONE, first_name=name)

    assert await collection.count_documents({"phone_number": PHONE}) == 1


@pytest.mark.asyncio
async def test_mongo_upsert_retries_after_duplicate_key():
    collection = AsyncMongoMockClient()["phoneverify_test"]["users"]
    await MongoUserRepository(collection).upsert(PHONE, first_name="Ada")
    racing = DuplicateKeyCollection(collection, "update_one")

    user, created = await MongoUserRepository(racing).upsert(PHONE, phone_verified=True)

    assert racing.raised == 1
    assert created is False
    assert user.first_name == "Ada"
    assert user.phone_verified is True
    assert await collection.count_documents({"phone_number": PHONE}) == 1


@pytest.mark.asyncio
async def test_mongo_upsert_gives_up_after_second_duplicate_key():
    collection = AsyncMongoMockClient()["phoneverify_test"]["users"]
    racing = DuplicateKeyCollection(collection, "update_one", failures=2)

    with pytest.raises(StorageError):
        await MongoUserRepository(racing).upsert(PHONE, first_name="Ada")

    assert await collection.count_documents({}) == 0
