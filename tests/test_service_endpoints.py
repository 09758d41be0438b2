def test_health_reports_database_status(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "ok"}


def test_metadata_exposes_currency(client):
    data = client.get("/metadata").json()

    assert data["currency"] == "CLP"
    assert set(data) == {"service", "environment", "currency"}


def test_metrics_start_empty(client):
    data = client.get("/metrics").json()

    assert data["pricing"]["quotes"] == 0
    assert data["pricing"]["last_event_at"] is None
    assert data["recent_requests"] == []


def test_metrics_expose_recent_log_records(client):
    client.post("/prices/quote", json={"items": []})

    logs = client.get("/metrics").json()["recent_logs"]

    rejected = [entry for entry in logs if entry["message"].startswith("Rejected cart quote")]
    assert rejected
    assert rejected[0]["level"] == "INFO"
    assert rejected[0]["logger"] == "app.api.routes.prices"
