"""HTTP tests for event writes and feature-gated views."""


def _headers(company_id):
    return {"X-Company-Id": company_id}


def _create_event(client, company_id, title="Team offsite"):
    return client.post("/api/events", json={"title": title}, headers=_headers(company_id))


def test_create_and_list_events(client, make_company):
    company_id = make_company("ESSENTIEL")
    resp = _create_event(client, company_id)
    assert resp.status_code == 201
    assert resp.json()["title"] == "Team offsite"
    assert resp.json()["companyId"] == company_id

    listed = client.get("/api/events", headers=_headers(company_id)).json()
    assert [e["eventId"] for e in listed] == [resp.json()["eventId"]]


def test_third_event_on_decouverte_has_quota_contract(client, make_company):
    company_id = make_company("DECOUVERTE")
    assert _create_event(client, company_id, "One").status_code == 201
    assert _create_event(client, company_id, "Two").status_code == 201

    resp = _create_event(client, company_id, "Three")
    assert resp.status_code == 403
    body = resp.json()
    assert body["error"]["code"] == "quota_exceeded"
    assert body["error"]["limit"] == 2
    assert body["error"]["current"] == 2
    assert body["error"]["resource"] == "events"
    assert body["error"]["request_id"] == resp.headers["x-request-id"]
    assert "2" in body["detail"]


def test_blank_title_is_422(client, make_company):
    resp = client.post("/api/events", json={"title": "   "}, headers=_headers(make_company()))
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "validation_error"


def test_vehicle_refused_on_decouverte(client, make_company):
    company_id = make_company("DECOUVERTE")
    event_id = _create_event(client, company_id).json()["eventId"]
    resp = client.post(
        f"/api/events/{event_id}/vehicles",
        json={"driverName": "Sam", "seats": 4},
        headers=_headers(company_id),
    )
    assert resp.status_code == 403
    assert resp.json()["error"]["limit"] == 0


def test_vehicle_and_participants_on_essentiel(client, make_company):
    company_id = make_company("ESSENTIEL")
    event_id = _create_event(client, company_id).json()["eventId"]

    resp = client.post(
        f"/api/events/{event_id}/vehicles",
        json={"driverName": "Sam", "seats": 4},
        headers=_headers(company_id),
    )
    assert resp.status_code == 201
    assert resp.json()["driverName"] == "Sam"

    resp = client.post(
        f"/api/events/{event_id}/participants",
        json={"name": "Ada", "email": "ada@example.com", "role": "driver"},
        headers=_headers(company_id),
    )
    assert resp.status_code == 201

    resp = client.get("/api/plans/limits/participants", params={"event_id": event_id}, headers=_headers(company_id))
    assert resp.json()["usage"]["current"] == 1
    assert resp.json()["usage"]["limit"] == 500


def test_duplicate_participant_email_is_409(client, make_company):
    company_id = make_company("ESSENTIEL")
    event_id = _create_event(client, company_id).json()["eventId"]
    payload = {"name": "Ada", "email": "ada@example.com"}
    assert client.post(f"/api/events/{event_id}/participants", json=payload, headers=_headers(company_id)).status_code == 201
    resp = client.post(f"/api/events/{event_id}/participants", json=payload, headers=_headers(company_id))
    assert resp.status_code == 409


def test_other_company_event_is_403(client, make_company):
    owner = make_company("ESSENTIEL")
    other = make_company("ESSENTIEL")
    event_id = _create_event(client, owner).json()["eventId"]
    resp = client.post(f"/api/events/{event_id}/participants", json={"name": "Eve"}, headers=_headers(other))
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "forbidden"


def test_limits_for_foreign_event_is_403(client, make_company):
    owner = make_company("ESSENTIEL")
    other = make_company("ESSENTIEL")
    event_id = _create_event(client, owner).json()["eventId"]
    resp = client.get("/api/plans/limits/vehicles", params={"event_id": event_id}, headers=_headers(other))
    assert resp.status_code == 403


def test_reporting_requires_advanced_reporting(client, make_company):
    resp = client.get("/api/reporting/summary", headers=_headers(make_company("DECOUVERTE")))
    assert resp.status_code == 403
    body = resp.json()
    assert body["error"]["code"] == "feature_unavailable"
    assert body["error"]["feature"] == "hasAdvancedReporting"
    assert "ESSENTIEL" in body["detail"]


def test_reporting_summary_on_essentiel(client, make_company):
    company_id = make_company("ESSENTIEL")
    event_id = _create_event(client, company_id).json()["eventId"]
    client.post(f"/api/events/{event_id}/participants", json={"name": "Ada", "role": "driver"}, headers=_headers(company_id))
    client.post(f"/api/events/{event_id}/participants", json={"name": "Bob"}, headers=_headers(company_id))
    client.post(f"/api/events/{event_id}/vehicles", json={"driverName": "Ada", "seats": 5}, headers=_headers(company_id))

    resp = client.get("/api/reporting/summary", headers=_headers(company_id))
    assert resp.status_code == 200
    assert resp.json() == {"events": 1, "participants": 2, "drivers": 1, "vehicles": 1, "seats": 5}


def test_crm_requires_pro(client, make_company, company_on):
    resp = client.get("/api/crm/contacts", headers=_headers(make_company("ESSENTIEL")))
    assert resp.status_code == 403
    assert "PRO" in resp.json()["error"]["message"]

    company_id = company_on("PRO")
    event_id = _create_event(client, company_id).json()["eventId"]
    client.post(f"/api/events/{event_id}/participants", json={"name": "Ada", "email": "ada@example.com"}, headers=_headers(company_id))

    resp = client.get("/api/crm/contacts", headers=_headers(company_id))
    assert resp.status_code == 200
    assert resp.json() == {"count": 1, "contacts": [{"email": "ada@example.com", "name": "Ada", "eventCount": 1}]}
