import pytest
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import ServerSelectionTimeoutError

from app.db import mongo


class FakeAdmin:
    def __init__(self, client):
        self.client = client

    async def command(self, name):
        if self.client.unreachable:
            raise ServerSelectionTimeoutError("no servers available")
        return {"ok": 1.0}


class FakeMotorClient:
    def __init__(self, unreachable=False):
        self.unreachable = unreachable
        self.closed = False
        self.admin = FakeAdmin(self)
        self._mock = AsyncMongoMockClient()

    def __getitem__(self, name):
        return self._mock[name]

    def close(self):
        self.closed = True


@pytest.fixture
def motor_clients(monkeypatch):
    """Hands out the queued clients in order, one per connection attempt."""
    queue = []
    opened = []

    def _open():
        client = queue.pop(0)
        opened.append(client)
        return client

    monkeypatch.setattr(mongo, "_open_client", _open)
    monkeypatch.setattr(mongo, "CONNECT_BACKOFF_SECONDS", 0)
    yield queue, opened
    mongo._client = None
    mongo._database = None


@pytest.mark.asyncio
async def test_connect_retries_until_server_answers(motor_clients):
    queue, opened = motor_clients
    queue.extend([FakeMotorClient(unreachable=True), FakeMotorClient()])

    await mongo.connect_to_mongo()

    assert opened[0].closed is True
    assert await mongo.check_database_health() is True
    assert mongo.get_verification_codes_collection().name == mongo.VERIFICATION_CODES_COLLECTION
    assert mongo.get_users_collection().name == mongo.USERS_COLLECTION

    await mongo.close_mongo_connection()
    assert opened[1].closed is True
    assert await mongo.check_database_health() is False


@pytest.mark.asyncio
async def test_connect_gives_up_after_all_attempts(motor_clients):
    queue, opened = motor_clients
    queue.extend(FakeMotorClient(unreachable=True) for _ in range(3))

    with pytest.raises(ConnectionError):
        await mongo.connect_to_mongo(attempts=3)

    assert all(client.closed for client in opened)
    with pytest.raises(RuntimeError):
        mongo.get_database()
