"""
Unit tests for Users Service.
Tests business logic, error handling, and endpoint validation.
"""
import pytest
from fastapi.testclient import TestClient

from users_service.main import app
from users_service.metrics import REGISTRY
from users_service.models import users_db


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def reset_users_db():
    """Start every test from an empty store."""
    users_db.clear()
    yield
    users_db.clear()


def create(client, first="John", last="Doe", email="john@example.com"):
    return client.post("/users", json={"firstName": first, "lastName": last, "email": email})


class TestHealthEndpoint:

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "users-service"


class TestMetricsEndpoint:

    def test_metrics_endpoint(self, client):
        """Test that metrics endpoint returns Prometheus format."""
        client.get("/users")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert b"http_requests_total" in response.content

    def test_requests_recorded_in_service_registry(self, client):
        labels = {"service": "users-service", "method": "GET", "endpoint": "/health", "status": "200"}
        before = REGISTRY.get_sample_value("http_requests_total", labels) or 0.0
        client.get("/health")
        assert REGISTRY.get_sample_value("http_requests_total", labels) == before + 1

    def test_not_found_is_counted(self, client):
        client.get("/users/42")
        content = client.get("/metrics").content.decode()
        assert 'error_type="not_found"' in content


class TestListUsers:
    """Tests for GET /users endpoint."""

    def test_empty_store_returns_empty_list(self, client):
        response = client.get("/users")
        assert response.status_code == 200
        assert response.json() == []

    def test_lists_created_users(self, client):
        create(client)
        create(client, "Jane", "Roe", "jane@example.com")
        response = client.get("/users")
        assert response.status_code == 200
        emails = {u["email"] for u in response.json()}
        assert emails == {"john@example.com", "jane@example.com"}


class TestGetUserById:
    """Tests for GET /users/{user_id} endpoint."""

    def test_get_user_after_create(self, client):
        created = create(client).json()
        response = client.get(f"/users/{created['id']}")
        assert response.status_code == 200
        assert response.json() == created

    def test_get_user_by_id_not_found(self, client):
        response = client.get("/users/999")
        assert response.status_code == 404
        assert response.json()["detail"] == "User not found"

    def test_get_user_non_integer_id(self, client):
        response = client.get("/users/abc")
        assert response.status_code == 422


class TestCreateUser:
    """Tests for POST /users endpoint."""

    def test_create_user_success(self, client):
        response = create(client)
        assert response.status_code == 201
        assert response.json() == {
            "id": 1,
            "firstName": "John",
            "lastName": "Doe",
            "email": "john@example.com",
        }

    def test_ids_are_unique(self, client):
        ids = [create(client, email=f"user{i}@example.com").json()["id"] for i in range(5)]
        assert len(set(ids)) == 5
        assert ids == sorted(ids)

    def test_create_user_duplicate_email(self, client):
        create(client)
        response = create(client, "Johnny", "Doe", "JOHN@example.com")
        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"
        assert len(client.get("/users").json()) == 1

    def test_create_user_invalid_email(self, client):
        response = create(client, email="not-an-email")
        assert response.status_code == 422

    @pytest.mark.parametrize("missing", ["firstName", "lastName", "email"])
    def test_create_user_missing_field(self, client, missing):
        body = {"firstName": "John", "lastName": "Doe", "email": "john@example.com"}
        del body[missing]
        response = client.post("/users", json=body)
        assert response.status_code == 422
        assert client.get("/users").json() == []

    def test_create_user_blank_name(self, client):
        response = create(client, first="   ")
        assert response.status_code == 422


class TestCorrelationId:
    """Tests for correlation ID (trace-id) propagation."""

    def test_trace_id_propagation(self, client):
        trace_id = "test-trace-id-12345"
        response = client.get("/users", headers={"X-Trace-ID": trace_id})
        assert response.headers.get("X-Trace-ID") == trace_id

    def test_trace_id_generated_when_not_provided(self, client):
        response = client.get("/users")
        trace_id = response.headers.get("X-Trace-ID")
        assert len(trace_id) == 36  # UUID format
