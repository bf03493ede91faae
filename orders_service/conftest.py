import pytest
from fastapi.testclient import TestClient

from orders_service.main import app, get_user_lookup
from orders_service.models import orders_db
from orders_service.schemas import UserSnapshot
from orders_service.user_lookup import UserLookup, UserNotFound, UserServiceUnavailable


class FakeUserLookup(UserLookup):
    """Users Service en mémoire: ids connus, ou indisponible."""

    def __init__(self, known_ids=(), unavailable=False):
        self.known_ids = set(known_ids)
        self.unavailable = unavailable
        self.calls = []

    async def get_user(self, user_id, trace_id=None):
        self.calls.append((user_id, trace_id))
        if self.unavailable:
            raise UserServiceUnavailable(user_id, "connection refused")
        if user_id not in self.known_ids:
            raise UserNotFound(user_id)
        return UserSnapshot(id=user_id, first_name="John", last_name="Doe", email=f"user{user_id}@example.com")


@pytest.fixture(autouse=True)
def reset_orders_db():
    """Reset the orders database before each test."""
    orders_db.clear()
    yield
    orders_db.clear()


@pytest.fixture
def fake_users():
    lookup = FakeUserLookup(known_ids={1, 2})
    app.dependency_overrides[get_user_lookup] = lambda: lookup
    yield lookup
    app.dependency_overrides.clear()


@pytest.fixture
def client(fake_users):
    """Test client whose user validation goes through the fake lookup."""
    return TestClient(app)
