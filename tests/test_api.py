"""Tests for the JSON API blueprint.

Covers:
- GET /api/accounts: missing param (400), zero active rows (404), rows (200),
  Inactive accounts excluded, ?id= alias, any failure as a JSON 500
- GET /api/user: 400 / 404 / 200, no password hash in the response
- GET /api/pending-sales-orders: report page as JSON
- POST /api/activities: success, missing fields, unknown status, bad dates,
  non-string selfieUrl
"""

from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from fluxx.models.activity import Activity


class TestFetchAccounts:

    def test_missing_reference_id(self, client, seed_data):
        resp = client.get("/api/accounts")
        assert resp.status_code == 400
        assert resp.get_json() == {"success": False, "error": "Missing reference ID."}

    def test_no_active_accounts(self, client, seed_data):
        resp = client.get("/api/accounts?referenceid=NOBODY")
        assert resp.status_code == 404
        body = resp.get_json()
        assert body["success"] is False
        assert body["error"].startswith("No accounts found")

    def test_returns_active_accounts_only(self, client, seed_data):
        resp = client.get(f"/api/accounts?referenceid={seed_data['reference_id']}")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["success"] is True
        names = [a["companyname"] for a in body["data"]]
        assert "Acme Trading" in names
        assert "Bayside Hardware" in names
        assert "Closed Corp" not in names
        assert "Someone Else Inc" not in names

    def test_id_alias(self, client, seed_data):
        resp = client.get(f"/api/accounts?id={seed_data['reference_id']}")
        assert resp.status_code == 200
        assert len(resp.get_json()["data"]) == 2

    def test_only_inactive_accounts_is_404(self, client, seed_data):
        from fluxx.extensions import db
        from fluxx.models.account import Account

        db.session.add(Account(reference_id="IN-1", company_name="Gone", status="Inactive"))
        db.session.commit()

        resp = client.get("/api/accounts?referenceid=IN-1")
        assert resp.status_code == 404

    @patch("fluxx.blueprints.api.account_service.fetch_active_accounts")
    def test_database_failure(self, mock_fetch, client, seed_data):
        mock_fetch.side_effect = OperationalError("SELECT", {}, Exception("db down"))
        resp = client.get("/api/accounts?referenceid=AC-001")
        assert resp.status_code == 500
        assert resp.get_json()["success"] is False

    @patch("fluxx.blueprints.api.account_service.fetch_active_accounts")
    def test_unexpected_failure_is_json(self, mock_fetch, client, seed_data):
        mock_fetch.side_effect = RuntimeError("boom")
        resp = client.get("/api/accounts?referenceid=AC-001")
        assert resp.status_code == 500
        assert resp.get_json() == {"success": False, "error": "boom"}


class TestFetchUser:

    def test_missing_id(self, client):
        resp = client.get("/api/user")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Missing user ID."

    def test_unknown_user(self, client, seed_data):
        resp = client.get("/api/user?id=does-not-exist")
        assert resp.status_code == 404

    def test_returns_profile_without_password(self, client, seed_data):
        resp = client.get(f"/api/user?id={seed_data['agent_id']}")
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["email"] == seed_data["agent_email"]
        assert data["reference_id"] == "AC-001"
        assert "password_hash" not in data
        assert "password" not in data

    @patch("fluxx.blueprints.api.account_service.get_user")
    def test_unexpected_failure_is_json(self, mock_get, client):
        mock_get.side_effect = KeyError("id")
        resp = client.get("/api/user?id=abc")
        assert resp.status_code == 500
        assert resp.get_json()["success"] is False


class TestPendingSalesOrders:

    def test_missing_reference_id(self, client):
        resp = client.get("/api/pending-sales-orders")
        assert resp.status_code == 400

    def test_sorted_by_amount(self, client, seed_data):
        resp = client.get("/api/pending-sales-orders?referenceid=AC-001")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["total"] == 3
        assert body["total_pages"] == 1
        assert [r["sonumber"] for r in body["data"]] == ["SO-1002", "SO-1001", "SO-1003"]

    def test_date_filter_keeps_unparseable_rows(self, client, seed_data):
        resp = client.get(
            "/api/pending-sales-orders?referenceid=AC-001"
            "&start_date=2024-03-10&end_date=2024-03-31"
        )
        numbers = [r["sonumber"] for r in resp.get_json()["data"]]
        assert numbers == ["SO-1002", "SO-1003"]

    @patch("fluxx.blueprints.api.report_service.build_report")
    def test_unexpected_failure_is_json(self, mock_build, client, seed_data):
        mock_build.side_effect = TypeError("bad row")
        resp = client.get("/api/pending-sales-orders?referenceid=AC-001")
        assert resp.status_code == 500
        assert resp.get_json() == {"success": False, "error": "bad row"}


def _activity_payload(**overrides):
    payload = {
        "referenceid": "AC-001",
        "manager": "MGR-01",
        "tsm": "TSM-07",
        "activitystatus": "Lunch Break",
        "activityremarks": "lunch with the team",
        "startdate": "2024-05-01T12:00:00+08:00",
        "enddate": "2024-05-01T13:00:00+08:00",
    }
    payload.update(overrides)
    return payload


class TestAddActivity:

    def test_create_activity(self, client, seed_data):
        resp = client.post("/api/activities", json=_activity_payload())
        assert resp.status_code == 201
        assert resp.get_json()["success"] is True

        activity = Activity.query.filter_by(reference_id="AC-001").one()
        assert activity.activity_status == "Lunch Break"
        assert activity.tsm == "TSM-07"
        assert activity.selfie_url is None

    def test_create_activity_with_photo(self, client, seed_data):
        resp = client.post(
            "/api/activities",
            json=_activity_payload(
                activitystatus="Client Visit",
                activityremarks="Makati, Metro Manila",
                selfieUrl="https://cdn.example/p.jpg",
            ),
        )
        assert resp.status_code == 201
        activity = Activity.query.one()
        assert activity.selfie_url == "https://cdn.example/p.jpg"

    def test_non_string_selfie_url(self, client, seed_data):
        resp = client.post("/api/activities", json=_activity_payload(selfieUrl=123))
        assert resp.status_code == 400
        assert "Invalid selfieUrl" in resp.get_data(as_text=True)
        assert Activity.query.count() == 0

    def test_remarks_html_is_stripped(self, client, seed_data):
        resp = client.post(
            "/api/activities",
            json=_activity_payload(activityremarks="<b>call</b> back <script>x</script>"),
        )
        assert resp.status_code == 201
        assert "<" not in Activity.query.one().activity_remarks

    def test_missing_fields(self, client):
        resp = client.post("/api/activities", json={"referenceid": "AC-001"})
        assert resp.status_code == 400
        assert "Missing required fields" in resp.get_data(as_text=True)
        assert Activity.query.count() == 0

    def test_unknown_status(self, client):
        resp = client.post("/api/activities", json=_activity_payload(activitystatus="Napping"))
        assert resp.status_code == 400
        assert "Unknown activity status" in resp.get_data(as_text=True)

    def test_end_before_start(self, client):
        resp = client.post(
            "/api/activities",
            json=_activity_payload(enddate="2024-05-01T11:00:00+08:00"),
        )
        assert resp.status_code == 400

    def test_invalid_date(self, client):
        resp = client.post("/api/activities", json=_activity_payload(startdate="yesterday"))
        assert resp.status_code == 400
        assert "Invalid startdate" in resp.get_data(as_text=True)

    def test_empty_body(self, client):
        resp = client.post("/api/activities", data="", content_type="application/json")
        assert resp.status_code == 400

    def test_no_csrf_required(self, app, client):
        """The API blueprint is CSRF-exempt even when CSRF is on."""
        app.config["WTF_CSRF_ENABLED"] = True
        try:
            resp = client.post("/api/activities", json=_activity_payload())
        finally:
            app.config["WTF_CSRF_ENABLED"] = False
        assert resp.status_code == 201
