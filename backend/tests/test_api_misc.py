from automart.models import SecurityLog
from automart.utils.security_log import build_envelope


class TestSupport:
    def test_ticket_thread(self, client, user, admin, auth_headers):
        headers = auth_headers(user)
        res = client.post(
            "/api/support/tickets",
            json={"subject": "Payout", "description": "Where is my payout?", "category": "billing"},
            headers=headers,
        )
        assert res.status_code == 201
        ticket = res.get_json()["ticket"]
        assert ticket["status"] == "open"
        assert ticket["priority"] == "medium"

        client.post(f"/api/support/tickets/{ticket['id']}/messages", json={"message": "Any update?"}, headers=headers)
        client.post(f"/api/admin/support/tickets/{ticket['id']}/messages", json={"message": "Sent today"}, headers=auth_headers(admin))

        thread = client.get(f"/api/support/tickets/{ticket['id']}", headers=headers).get_json()
        assert [(m["message"], m["is_admin"]) for m in thread["messages"]] == [("Any update?", False), ("Sent today", True)]

        res = client.post(f"/api/admin/support/tickets/{ticket['id']}/status", json={"status": "resolved"}, headers=auth_headers(admin))
        assert res.get_json()["ticket"]["status"] == "resolved"
        items = client.get("/api/admin/support/tickets?status=resolved", headers=auth_headers(admin)).get_json()["items"]
        assert [t["id"] for t in items] == [ticket["id"]]

    def test_invalid_category(self, client, user, auth_headers):
        res = client.post(
            "/api/support/tickets",
            json={"subject": "Hi", "description": "Hello", "category": "sales"},
            headers=auth_headers(user),
        )
        assert res.status_code == 400

    def test_other_users_ticket_hidden(self, client, user, make_user, auth_headers):
        other = make_user()
        ticket = client.post(
            "/api/support/tickets",
            json={"subject": "Mine", "description": "Private", "category": "general"},
            headers=auth_headers(other),
        ).get_json()["ticket"]
        assert client.get(f"/api/support/tickets/{ticket['id']}", headers=auth_headers(user)).status_code == 404


class TestCustomRequests:
    def test_lifecycle(self, client, user, admin, auth_headers):
        headers = auth_headers(user)
        res = client.post(
            "/api/custom-requests",
            json={"title": "Slack digest", "description": "Daily summary to Slack", "budget_range": "$500-$1000"},
            headers=headers,
        )
        assert res.status_code == 201
        req = res.get_json()["request"]
        assert req["status"] == "pending"

        res = client.put(
            f"/api/admin/custom-requests/{req['id']}",
            json={"status": "quoted", "estimated_cost": "$750", "admin_notes": "Two week build"},
            headers=auth_headers(admin),
        )
        assert res.status_code == 200
        updated = res.get_json()["request"]
        assert updated["status"] == "quoted"
        assert updated["estimated_cost"] == 750.0

        assert [r["id"] for r in client.get("/api/custom-requests", headers=headers).get_json()["items"]] == [req["id"]]
        assert client.delete(f"/api/custom-requests/{req['id']}", headers=headers).status_code == 200

    def test_missing_fields(self, client, user, auth_headers):
        assert client.post("/api/custom-requests", json={"title": "x"}, headers=auth_headers(user)).status_code == 400

    def test_invalid_admin_status(self, client, user, admin, auth_headers):
        req = client.post(
            "/api/custom-requests", json={"title": "t", "description": "d"}, headers=auth_headers(user)
        ).get_json()["request"]
        res = client.put(f"/api/admin/custom-requests/{req['id']}", json={"status": "shipped"}, headers=auth_headers(admin))
        assert res.status_code == 400


class TestProfile:
    def test_get_creates_and_update_validates(self, client, user, auth_headers):
        headers = auth_headers(user)
        profile = client.get("/api/profile", headers=headers).get_json()["profile"]
        assert profile["email"] == user.email

        bad = client.put("/api/profile", json={"phone": "123"}, headers=headers)
        assert bad.status_code == 400

        res = client.put("/api/profile", json={"full_name": "Ada Lovelace", "company": "Engines & Co"}, headers=headers)
        assert res.status_code == 200
        assert res.get_json()["profile"]["full_name"] == "Ada Lovelace"


class TestAnalytics:
    def test_dashboard(self, client, user, auth_headers, make_automation, make_order):
        automation = make_automation()
        make_order(user, automation, agreed=1000.0)
        make_order(user, automation, agreed=500.0, status="order_completed_successfully")
        body = client.get("/api/analytics", headers=auth_headers(user)).get_json()["analytics"]
        assert body["total_orders"] == 2
        assert body["total_revenue"] == 1500.0
        assert body["completed_orders"] == 1
        assert body["top_automations"][0]["sales"] == 2
        assert body["wallet"]["balance"] == 0.0
        assert body["active_automations"] == 0


class TestSecurityLogEndpoint:
    def test_ingest_scores_event(self, client):
        res = client.post(
            "/api/security-log",
            json={"event": "SIGNIN_FAILED", "timestamp": "2024-01-01T00:00:00Z", "details": {"attempts": 7}},
            headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"},
        )
        assert res.status_code == 200
        assert res.get_json() == {"ok": True, "risk_score": 7, "alert_level": "medium"}
        row = SecurityLog.query.one()
        assert row.client_ip == "203.0.113.9"
        assert row.session_id == "anonymous"

    def test_stores_beacon_envelope(self, client):
        envelope = build_envelope("SIGNUP_FAILED", {}, user_agent="Mozilla/5.0", url="/signup", session_id="s-42")
        assert client.post("/api/security-log", json=envelope).status_code == 200
        row = SecurityLog.query.one()
        assert (row.user_agent, row.url, row.session_id) == ("Mozilla/5.0", "/signup", "s-42")

    def test_missing_fields(self, client):
        assert client.post("/api/security-log", json={"event": "X"}).status_code == 400

    def test_admin_listing_filters_by_level(self, client, admin, auth_headers):
        client.post("/api/security-log", json={"event": "UNAUTHORIZED_ACCESS", "timestamp": "t1"})
        client.post("/api/security-log", json={"event": "SIGNUP_FAILED", "timestamp": "t2"})
        items = client.get("/api/admin/security-logs?alert_level=high", headers=auth_headers(admin)).get_json()["items"]
        assert [i["event"] for i in items] == ["UNAUTHORIZED_ACCESS"]


class TestAppShell:
    def test_health(self, client):
        body = client.get("/api/health").get_json()
        assert body["ok"] is True
        assert body["db"] == "ok"
        assert body["env"] == "test"

    def test_version(self, client):
        body = client.get("/api/version").get_json()
        assert body["version"] == "0.1.0"
        assert "alembic_head" in body

    def test_security_headers(self, client):
        res = client.get("/api/health")
        assert res.headers["X-Frame-Options"] == "DENY"
        assert res.headers["X-Content-Type-Options"] == "nosniff"

    def test_api_rate_limit(self, client, ctx):
        ctx.api_limiter.max_attempts = 2
        assert client.get("/api/orders/statuses").status_code == 200
        assert client.get("/api/orders/statuses").status_code == 200
        res = client.get("/api/orders/statuses")
        assert res.status_code == 429
        assert res.get_json()["code"] == "RATE_LIMITED"
        assert client.get("/api/health").status_code == 200
