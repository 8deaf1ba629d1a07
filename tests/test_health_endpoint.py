"""Test health endpoints"""

import redis


class TestHealthEndpoint:
    """Test health endpoints report service and dependency state"""

    def test_health_endpoint(self, client):
        """Test that the health endpoint is accessible"""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "workshop-registry"
        assert "environment" in data

    def test_detailed_health_checks_dependencies(self, client):
        response = client.get("/health/detailed")

        assert response.status_code == 200
        data = response.json()
        assert data["checks"]["database"] == "healthy"
        assert data["checks"]["redis"] == "healthy"
        assert "integrations" in data["checks"]

    def test_redis_outage_degrades(self, client, redis_client, monkeypatch):
        def ping():
            raise redis.ConnectionError("Connection refused")

        monkeypatch.setattr(redis_client, "ping", ping)

        response = client.get("/health/detailed")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["checks"]["redis"].startswith("unhealthy")
