import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_verification_service
from app.main import app
from app.services.otp_store import InMemoryOTPStore
from app.services.user_service import InMemoryUserRepository
from app.services.verification_service import VerificationService, VerificationPolicy
from tests.fakes import FakeClock, RecordingNotifier


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemoryOTPStore()


@pytest.fixture
def users():
    return InMemoryUserRepository()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_service(store, users, notifier, clock):
    def _make(**overrides):
        policy = overrides.pop("policy", None) or VerificationPolicy(development_mode=True)
        kwargs = dict(store=store, notifier=notifier, users=users, policy=policy, clock=clock)
        kwargs.update(overrides)
        return VerificationService(**kwargs)
    return _make


@pytest.fixture
def service(make_service):
    return make_service()


@pytest.fixture
def client_for():
    def _client(service):
        app.dependency_overrides[get_verification_service] = lambda: service
        return TestClient(app)

    yield _client
    app.dependency_overrides.clear()


@pytest.fixture
def client(client_for, service):
    return client_for(service)
