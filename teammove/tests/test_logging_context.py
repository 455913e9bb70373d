"""Tests for structured logging and request_id propagation."""

import json
import logging

from fastapi.testclient import TestClient

from teammove.core.logging import JsonFormatter, PrettyFormatter, latency_bucket_ms, log_event
from teammove.main import app


def test_request_id_in_response_and_logs(caplog):
    client = TestClient(app)
    with caplog.at_level(logging.INFO, logger="teammove"):
        response = client.get("/healthz")
    rid = response.headers.get("x-request-id")
    assert rid
    records = [r for r in caplog.records if getattr(r, "request_id", None) == rid]
    assert records, "Expected logs to contain request_id from response"
    assert len({r.request_id for r in records}) == 1


def test_request_id_in_error_response():
    client = TestClient(app)
    response = client.get("/api/plans/current-features", headers={"X-Company-Id": "non-existent"})
    rid = response.headers.get("x-request-id")
    assert response.status_code == 404
    assert rid
    payload = response.json()
    assert payload["error"]["request_id"] == rid


def test_quota_block_is_logged_with_fields(caplog, make_company):
    client = TestClient(app)
    company_id = make_company("DECOUVERTE")
    headers = {"X-Company-Id": company_id}
    client.post("/api/events", json={"title": "One"}, headers=headers)
    client.post("/api/events", json={"title": "Two"}, headers=headers)

    with caplog.at_level(logging.INFO, logger="teammove"):
        client.post("/api/events", json={"title": "Three"}, headers=headers)

    blocks = [r for r in caplog.records if r.getMessage() == "[quotas] BLOCK"]
    assert len(blocks) == 1
    assert blocks[0].company_id == company_id
    assert blocks[0].resource == "events"
    assert blocks[0].limit == 2


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("teammove", logging.INFO, __file__, 1, "plan.changed", (), None)
    record.request_id = "rid-9"
    record.tier = "PRO"
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "plan.changed"
    assert payload["request_id"] == "rid-9"
    assert payload["tier"] == "PRO"


def test_pretty_formatter_prefix():
    record = logging.LogRecord("teammove", logging.WARNING, __file__, 1, "hello", (), None)
    record.request_id = None
    line = PrettyFormatter().format(record)
    assert "WARNING [teammove] hello" in line


def test_log_event_truncates_extra(caplog):
    with caplog.at_level(logging.INFO, logger="teammove"):
        log_event("info", "big.payload", company_id="c1", tier="ESSENTIEL", extra={"blob": "x" * 1000})
    record = next(r for r in caplog.records if r.getMessage() == "big.payload")
    assert record.company_id == "c1"
    assert record.blob.endswith("...<truncated>")
    assert len(record.blob) < 1000


def test_latency_buckets():
    assert latency_bucket_ms(None) == "unknown"
    assert latency_bucket_ms(5) == "<10ms"
    assert latency_bucket_ms(250) == "100-500ms"
    assert latency_bucket_ms(5000) == ">=1000ms"
