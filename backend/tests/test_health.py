def test_root_reports_running(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json() == {"message": "NoClash Timetable Conflict Checker API is running!"}


def test_health_endpoints(client):
    assert client.get("/api/health").json() == {"status": "ok"}

    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code == 200
    payload = ready.json()
    assert payload["status"] == "ok"
    assert payload["database"]["dialect"] == "sqlite"
    assert payload["database"]["schema_ok"] is True
    assert payload["booking_lock_strategy"] == "local"
