"""HTTP tests for admin plan operations (X-Admin-Key)."""


def _headers(company_id):
    return {"X-Company-Id": company_id}


def test_admin_routes_require_key(client, make_company):
    company_id = make_company("PRO")
    assert client.get("/api/admin/quotes").status_code == 401
    assert client.get("/api/admin/quotes", headers={"X-Admin-Key": "wrong"}).status_code == 401
    resp = client.post(f"/api/admin/companies/{company_id}/plan", json={"tier": "PREMIUM"})
    assert resp.status_code == 401


def test_quote_approval_flow(client, make_company, admin_headers):
    company_id = make_company("PREMIUM")

    quotes = client.get("/api/admin/quotes", headers=admin_headers).json()
    assert quotes[0]["companyId"] == company_id
    assert quotes[0]["requestedTier"] == "PREMIUM"

    before = client.get("/api/plans/current-features", headers=_headers(company_id)).json()
    assert before["tier"] == "DECOUVERTE"

    resp = client.post(f"/api/admin/quotes/{company_id}/approve", json={"tier": "PREMIUM"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["tier"] == "PREMIUM"

    # No stale cached plan after approval
    after = client.get("/api/plans/current-features", headers=_headers(company_id)).json()
    assert after["tier"] == "PREMIUM"
    assert after["quotePending"] is False
    assert after["features"]["hasWhiteLabel"] is True

    assert client.get("/api/admin/quotes", headers=admin_headers).json() == []

    history = client.get("/api/plans/history", headers=_headers(company_id)).json()
    assert history[0]["changedBy"].startswith("admin:")


def test_approve_without_quote_is_409(client, make_company, admin_headers):
    company_id = make_company("ESSENTIEL")
    resp = client.post(f"/api/admin/quotes/{company_id}/approve", json={"tier": "PRO"}, headers=admin_headers)
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "no_pending_quote"


def test_manual_downgrade(client, company_on, admin_headers):
    company_id = company_on("PRO")
    resp = client.post(
        f"/api/admin/companies/{company_id}/plan",
        json={"tier": "DECOUVERTE", "reason": "Unpaid invoice"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["tier"] == "DECOUVERTE"

    resp = client.get("/api/crm/contacts", headers=_headers(company_id))
    assert resp.status_code == 403


def test_change_plan_unknown_tier_is_400(client, make_company, admin_headers):
    resp = client.post(f"/api/admin/companies/{make_company()}/plan", json={"tier": "GOLD"}, headers=admin_headers)
    assert resp.status_code == 400


def test_suspend_and_reactivate_company(client, make_company, admin_headers):
    company_id = make_company("ESSENTIEL")
    assert client.get("/api/plans/current-features", headers=_headers(company_id)).json()["isActive"] is True

    resp = client.put(f"/api/admin/companies/{company_id}/status", json={"is_active": False}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["isActive"] is False

    # Cached plan is dropped, so the suspension applies straight away
    assert client.get("/api/plans/current-features", headers=_headers(company_id)).json()["isActive"] is False
    resp = client.post("/api/events", json={"title": "Blocked"}, headers=_headers(company_id))
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "company_inactive"

    resp = client.put(f"/api/admin/companies/{company_id}/status", json={"is_active": True}, headers=admin_headers)
    assert resp.status_code == 200
    resp = client.post("/api/events", json={"title": "Back"}, headers=_headers(company_id))
    assert resp.status_code == 201


def test_status_change_requires_admin_and_known_company(client, make_company, admin_headers):
    company_id = make_company()
    resp = client.put(f"/api/admin/companies/{company_id}/status", json={"is_active": False})
    assert resp.status_code == 401

    resp = client.put("/api/admin/companies/missing/status", json={"is_active": False}, headers=admin_headers)
    assert resp.status_code == 404
