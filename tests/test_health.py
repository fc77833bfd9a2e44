"""
Health endpoint tests.
"""


def test_health_endpoint(client):
    """Test that the /health endpoint returns 200 OK."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["data"]["status"] == "healthy"
    assert "timestamp" in data["data"]
    assert "version" in data["data"]
    assert "service" in data["data"]


def test_health_ready_without_database_is_degraded(client):
    """Without a startup connection the readiness check reports degraded, not 5xx."""
    response = client.get("/health/ready")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "degraded"
    assert data["checks"]["database"] == "not_connected"
    assert "patient_id_cache_entries" in data["checks"]


def test_health_live_endpoint(client):
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "alive"


def test_root_endpoint(client):
    """Test that the root endpoint returns API information."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "service" in data
    assert "version" in data
    assert data["status"] == "running"
    assert data["endpoints"]["notes"] == "/patients/{patient_id}/notes"


def test_health_does_not_require_token(client):
    response = client.get("/health", headers={"Authorization": "Bearer nonsense"})
    assert response.status_code == 200


def test_request_id_is_generated(client):
    response = client.get("/health")
    assert response.headers.get("X-Request-ID")
    assert response.json()["request_id"] == response.headers["X-Request-ID"]


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_process_time_header_is_set(client):
    response = client.get("/health/live")
    assert float(response.headers["X-Process-Time"]) >= 0


def test_root_endpoint_lists_telemedicine_routes(client):
    endpoints = client.get("/").json()["endpoints"]
    assert endpoints["appointments"] == "/telemedicine/appointments"
    assert endpoints["availability"] == "/telemedicine/availability"


def test_health_detailed_without_database_is_unavailable(client):
    response = client.get("/health/detailed")
    assert response.status_code == 503
    body = response.json()
    assert body["message"] == "Some services unavailable"
    data = body["data"]
    assert data["status"] == "degraded"
    assert data["dependencies"]["mongodb"] == {"status": "unhealthy", "detail": "not_connected"}
    assert data["dependencies"]["patient_id_cache"]["status"] == "healthy"
    assert data["uptime_seconds"] >= 0


class _PingingClient:
    def __init__(self):
        self.admin = self
        self.commands = []

    async def command(self, name):
        self.commands.append(name)
        return {"ok": 1.0}


def test_health_detailed_with_reachable_database(client, monkeypatch):
    from homecare.api.routers import health
    from homecare.core.container import ServiceNames

    mongo = _PingingClient()
    monkeypatch.setattr(
        health, "get_service_or_none", lambda name: mongo if name == ServiceNames.MONGO_CLIENT else None
    )

    response = client.get("/health/detailed")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "healthy"
    assert data["dependencies"]["mongodb"] == {"status": "healthy", "detail": "ok"}
    assert data["dependencies"]["patient_id_cache"]["entries"] == 0
    assert mongo.commands == ["ping"]
