from automart.extensions import db
from automart.models import Automation, UserAutomation


class TestBrowse:
    def test_category_search_and_flags(self, client, user, auth_headers, make_automation):
        drip = make_automation("Drip Campaign", category=("Email Marketing",))
        make_automation("Lead Scoring", category=("Sales",), platforms=("HubSpot",))
        headers = auth_headers(user)
        client.post(f"/api/automations/{drip.id}/add", headers=headers)

        body = client.get("/api/automations?category=email-marketing", headers=headers).get_json()
        assert [a["id"] for a in body["items"]] == [drip.id]
        assert body["items"][0]["in_my_list"] is True
        assert body["categories"] == {"all": 2, "email-marketing": 1, "sales": 1}

        found = client.get("/api/automations?search=hubspot", headers=headers).get_json()["items"]
        assert [a["title"] for a in found] == ["Lead Scoring"]

    def test_sort_and_available_only(self, client, user, auth_headers, make_automation):
        make_automation("Cheap", suggested_price=100.0)
        make_automation("Pricey", suggested_price=900.0)
        make_automation("Retired", suggested_price=50.0, status="Inactive")
        headers = auth_headers(user)

        items = client.get("/api/automations?sort=price-low", headers=headers).get_json()["items"]
        assert [a["title"] for a in items] == ["Retired", "Cheap", "Pricey"]
        items = client.get("/api/automations?sort=price-low&available_only=true", headers=headers).get_json()["items"]
        assert [a["title"] for a in items] == ["Cheap", "Pricey"]

    def test_exclusive_items_only_visible_to_owner(self, client, user, make_user, auth_headers, make_automation):
        other = make_user()
        private = make_automation("Private", assigned_user_id=other.id)
        assert client.get("/api/automations", headers=auth_headers(user)).get_json()["items"] == []
        assert client.get(f"/api/automations/{private.id}", headers=auth_headers(user)).status_code == 404
        assert client.get(f"/api/automations/{private.id}", headers=auth_headers(other)).status_code == 200


class TestMyList:
    def test_add_duplicate_and_remove(self, client, user, auth_headers, make_automation):
        a = make_automation()
        headers = auth_headers(user)
        res = client.post(f"/api/automations/{a.id}/add", headers=headers)
        assert res.status_code == 201
        assert res.get_json()["item"]["automation_title"] == a.title

        dup = client.post(f"/api/automations/{a.id}/add", headers=headers)
        assert dup.status_code == 409
        assert dup.get_json()["message"] == "This automation is already in your list"

        mine = client.get("/api/my-automations", headers=headers).get_json()["items"]
        assert mine[0]["automation"]["id"] == a.id

        assert client.delete(f"/api/automations/{a.id}/remove", headers=headers).status_code == 200
        assert UserAutomation.query.count() == 0
        assert client.delete(f"/api/automations/{a.id}/remove", headers=headers).status_code == 404

    def test_exclusive_to_someone_else(self, client, user, make_user, auth_headers, make_automation):
        a = make_automation(assigned_user_id=make_user().id)
        assert client.post(f"/api/automations/{a.id}/add", headers=auth_headers(user)).status_code == 403


class TestAdminCatalog:
    def test_create_computes_economics(self, client, admin, auth_headers):
        payload = {
            "title": "Invoice Bot",
            "description": "<p>Chases <script>x()</script>payments</p>",
            "category": ["Finance"],
            "cost": "$150",
            "suggested_price": "600",
        }
        res = client.post("/api/admin/automations", json=payload, headers=auth_headers(admin))
        assert res.status_code == 201
        a = res.get_json()["automation"]
        assert a["profit"] == 450.0
        assert a["margin"] == 75.0
        assert a["description"] == "<p>Chases payments</p>"
        assert a["category"] == ["Finance"]

    def test_create_requires_title(self, client, admin, auth_headers):
        assert client.post("/api/admin/automations", json={"cost": 1}, headers=auth_headers(admin)).status_code == 400

    def test_update_rejects_negative_cost(self, client, admin, auth_headers, make_automation):
        a = make_automation()
        res = client.put(f"/api/admin/automations/{a.id}", json={"cost": -5}, headers=auth_headers(admin))
        assert res.status_code == 400
        assert db.session.get(Automation, a.id).cost == 200.0

    def test_update_rejects_non_string_status(self, client, admin, auth_headers, make_automation):
        a = make_automation()
        res = client.put(f"/api/admin/automations/{a.id}", json={"status": 1}, headers=auth_headers(admin))
        assert res.status_code == 400
        assert db.session.get(Automation, a.id).status == "Active"

    def test_toggle_then_delete(self, client, admin, auth_headers, make_automation):
        a = make_automation()
        headers = auth_headers(admin)
        assert client.delete(f"/api/admin/automations/{a.id}", headers=headers).status_code == 400

        toggled = client.post(f"/api/admin/automations/{a.id}/toggle", headers=headers).get_json()["automation"]
        assert toggled["status"] == "Inactive"
        assert client.delete(f"/api/admin/automations/{a.id}", headers=headers).status_code == 200
        assert Automation.query.count() == 0

    def test_resellers_cannot_manage_catalog(self, client, user, auth_headers):
        assert client.post("/api/admin/automations", json={"title": "x"}, headers=auth_headers(user)).status_code == 403
