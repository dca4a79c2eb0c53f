"""
Tests for health check API endpoints
"""

from retail_dashboard.api.routers import health as health_router


def test_health_check(client, three_transactions):
    """Test health check endpoint"""
    response = client.get("/api/health")
    assert response.status_code == 200
    health_data = response.json()
    assert health_data["status"] == "ok"
    assert "system" in health_data
    database = health_data["components"]["database"]
    assert database["status"] == "ok"
    assert database["transaction_count"] == 3


def test_health_check_empty_store(client):
    database = client.get("/api/health").json()["components"]["database"]
    assert database["transaction_count"] == 0
    assert "no transactions" in database["message"]


def test_health_check_degraded_without_database(client, monkeypatch):
    monkeypatch.setattr(health_router, "check_database_connection", lambda: False)
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "degraded"


def test_readiness_check(client):
    """Test readiness probe endpoint"""
    response = client.get("/api/readiness")
    assert response.status_code == 200
    assert response.json()["status"] == "ready"


def test_readiness_check_store_down(client, monkeypatch):
    monkeypatch.setattr(health_router, "check_database_connection", lambda: False)
    response = client.get("/api/readiness")
    assert response.status_code == 503
    assert response.json()["message"] == "Transaction store unavailable"


def test_liveness_check(client):
    """Test liveness probe endpoint"""
    response = client.get("/api/liveness")
    assert response.status_code == 200
    assert response.json()["status"] == "alive"


def test_request_id_is_echoed(client):
    response = client.get("/api/liveness", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"
    assert "X-Process-Time" in response.headers


def test_openapi_tags(client):
    schema = client.get("/api/openapi.json").json()
    assert [tag["name"] for tag in schema["tags"]] == ["Transactions", "Health"]
    assert "/api/transactions/stats" in schema["paths"]
