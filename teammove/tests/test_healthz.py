from fastapi.testclient import TestClient

import teammove.api.health as health_api
from teammove.core.database import metadata
from teammove.main import app

client = TestClient(app)


def test_healthz_always_ok():
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json().get("status") == "ok"


def test_readyz_ok_with_schema():
    resp = client.get("/readyz")
    assert resp.status_code == 200
    assert resp.json().get("status") == "ok"


def test_readyz_reports_missing_tables(monkeypatch):
    class FakeInspector:
        def has_table(self, name):
            return name != "plan_history"

    monkeypatch.setattr(health_api, "inspect", lambda engine: FakeInspector())

    resp = client.get("/readyz")
    assert resp.status_code == 503
    assert "plan_history" in resp.json()["detail"]


def test_readyz_checks_every_table(monkeypatch):
    seen = []

    class RecordingInspector:
        def has_table(self, name):
            seen.append(name)
            return True

    monkeypatch.setattr(health_api, "inspect", lambda engine: RecordingInspector())
    client.get("/readyz")
    assert set(seen) == set(metadata.tables)


def test_readyz_handles_db_down(monkeypatch):
    monkeypatch.setattr(health_api, "check_connection", lambda: False)

    resp = client.get("/readyz")
    body = resp.json()
    assert resp.status_code == 503
    assert body.get("status") == "error"
    assert "database" in body.get("detail", "")


def test_readyz_handles_inspection_failure(monkeypatch):
    def boom(engine):
        raise RuntimeError("lost connection")

    monkeypatch.setattr(health_api, "inspect", boom)

    resp = client.get("/readyz")
    assert resp.status_code == 503
    assert resp.json()["detail"] == "database unreachable"


def test_check_connection_reports_failure(monkeypatch):
    import teammove.core.database as database

    def boom():
        raise RuntimeError("db down")

    monkeypatch.setattr(database, "get_engine", boom)
    assert database.check_connection() is False
