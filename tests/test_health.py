"""
Tests for the health endpoint and the request context middleware.
"""

from sqlalchemy.exc import OperationalError


class TestHealth:
    async def test_healthy(self, client):
        response = await client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "0.1.0"
        assert data["environment"] == "local"
        assert data["checks"]["database"]["status"] == "healthy"
        assert isinstance(data["checks"]["database"]["duration_ms"], int)

    async def test_degraded_when_database_unreachable(self, client, database, monkeypatch):
        async def failing_ping():
            raise OperationalError("SELECT 1", {}, Exception("unable to open database file"))

        monkeypatch.setattr(database, "ping", failing_ping)

        response = await client.get("/health")
        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["checks"]["database"] == {
            "status": "unhealthy",
            "message": "connection failed",
            "duration_ms": data["checks"]["database"]["duration_ms"],
        }


class TestRequestId:
    async def test_generated_when_absent(self, client):
        response = await client.get("/health")
        assert len(response.headers["x-request-id"]) == 32

    async def test_echoed_when_present(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["x-request-id"] == "abc-123"

    async def test_present_on_error_responses(self, client):
        response = await client.get("/accounts/999", headers={"X-Request-ID": "trace-me"})
        assert response.status_code == 404
        assert response.headers["x-request-id"] == "trace-me"
