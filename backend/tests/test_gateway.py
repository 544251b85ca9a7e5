from backend.gateway.server import cors_origins


def test_root_ping(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.get_json() == {"status": "gateway_ok"}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.get_json()
    assert data["status"] == "ok"
    assert set(data) == {"status", "timestamp", "uptime"}
    assert data["uptime"] >= 0


def test_unknown_route_is_json(client):
    response = client.get("/nope")
    assert response.status_code == 404
    assert "error" in response.get_json()


def test_wrong_method_is_json(client):
    response = client.patch("/events")
    assert response.status_code == 405
    assert "error" in response.get_json()


def test_cors_origins(monkeypatch):
    monkeypatch.setenv("CORS_ORIGIN", "*")
    assert cors_origins() == "*"

    monkeypatch.setenv("CORS_ORIGIN", "http://localhost:5173, https://events.example.com")
    assert cors_origins() == ["http://localhost:5173", "https://events.example.com"]


def test_cors_header(client):
    response = client.get("/health", headers={"Origin": "http://localhost:5173"})
    assert response.headers.get("Access-Control-Allow-Origin") == "*"
