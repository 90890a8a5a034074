def test_health_endpoints(client):
    assert client.get("/api/health").json() == {"status": "ok"}

    live = client.get("/api/health/live")
    assert live.status_code == 200
    assert live.json()["status"] == "ok"

    ready = client.get("/api/health/ready")
    assert ready.status_code in {200, 503}
    payload = ready.json()
    assert set(payload["database"]) == {"ok", "schema_ok", "missing_tables", "missing_columns", "error"}


def test_schema_status_on_fresh_schema(engine):
    from app.db.bootstrap import schema_status

    status = schema_status(engine)

    assert status["ok"] is True
    assert status["schema_ok"] is True
    assert status["missing_tables"] == []
