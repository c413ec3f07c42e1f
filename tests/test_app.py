"""App-level tests.

Covers:
- Security headers on normal and error responses
- Root redirect for anonymous and logged-in users
- Config validation fails hard when either store is unconfigured
- Sales pages (information, activities) require login and render
- Photo storage: validation, path-safe reference IDs, Supabase upload,
  local fallback in debug only, hard failure in production
"""

from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
import requests

from fluxx import create_app
from fluxx.config import Config
from fluxx.extensions import db
from fluxx.models.activity import Activity
from fluxx.services import storage_service


class TestSecurityHeaders:

    def test_headers_present(self, client):
        resp = client.get("/auth/login")
        assert resp.headers.get("X-Content-Type-Options") == "nosniff"
        assert resp.headers.get("X-Frame-Options") == "DENY"
        assert resp.headers.get("Referrer-Policy") == "strict-origin-when-cross-origin"
        assert "default-src 'self'" in resp.headers.get("Content-Security-Policy")

    def test_camera_and_geolocation_allowed_for_self(self, client):
        pp = client.get("/auth/login").headers.get("Permissions-Policy")
        assert "camera=(self)" in pp
        assert "geolocation=(self)" in pp
        assert "microphone=()" in pp

    def test_no_hsts_in_debug(self, client):
        assert client.get("/auth/login").headers.get("Strict-Transport-Security") is None

    def test_headers_on_error_pages(self, client):
        resp = client.get("/nonexistent-page")
        assert resp.status_code == 404
        assert b"Page not found" in resp.data
        assert resp.headers.get("X-Frame-Options") == "DENY"


class TestRoot:

    def test_anonymous_goes_to_login(self, client):
        resp = client.get("/", follow_redirects=False)
        assert resp.status_code == 302
        assert "/auth/login" in resp.headers["Location"]

    def test_logged_in_goes_to_information(self, client, login, seed_data):
        login()
        resp = client.get("/", follow_redirects=False)
        assert resp.status_code == 302
        assert "/sales/information" in resp.headers["Location"]


class TestConfigValidation:

    def test_missing_credentials_database(self, monkeypatch):
        monkeypatch.setenv("SECRET_KEY", "x")
        monkeypatch.setenv("DATABASE_URL", "sqlite://")
        monkeypatch.delenv("CREDENTIALS_DATABASE_URL", raising=False)
        with pytest.raises(RuntimeError, match="CREDENTIALS_DATABASE_URL"):
            Config.validate()

    def test_missing_both_databases(self, monkeypatch):
        monkeypatch.setenv("SECRET_KEY", "x")
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("CREDENTIALS_DATABASE_URL", raising=False)
        with pytest.raises(RuntimeError) as exc:
            Config.validate()
        assert "DATABASE_URL" in str(exc.value)
        assert "CREDENTIALS_DATABASE_URL" in str(exc.value)

    def test_create_app_fails_hard(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("CREDENTIALS_DATABASE_URL", raising=False)
        with pytest.raises(RuntimeError):
            create_app("production")

    def test_all_present(self, monkeypatch):
        monkeypatch.setenv("SECRET_KEY", "x")
        monkeypatch.setenv("DATABASE_URL", "sqlite://")
        monkeypatch.setenv("CREDENTIALS_DATABASE_URL", "sqlite://")
        Config.validate()


class TestSalesPages:

    def test_information_requires_login(self, client):
        resp = client.get("/sales/information", follow_redirects=False)
        assert resp.status_code == 302

    def test_information(self, client, login, seed_data):
        login()
        resp = client.get("/sales/information")
        assert resp.status_code == 200
        assert b"Ana Cruz" in resp.data
        assert b"AC-001" in resp.data

    def test_activities_lists_own_entries(self, client, login, seed_data):
        db.session.add_all([
            Activity(
                reference_id="AC-001",
                activity_status="Client Visit",
                activity_remarks="Makati office",
                start_date=datetime(2024, 5, 1, 9, 0),
                end_date=datetime(2024, 5, 1, 10, 0),
                selfie_url="https://cdn.example/p.jpg",
            ),
            Activity(
                reference_id="ZZ-999",
                activity_status="Lunch Break",
                activity_remarks="someone else",
                start_date=datetime(2024, 5, 1, 12, 0),
                end_date=datetime(2024, 5, 1, 13, 0),
            ),
        ])
        db.session.commit()

        login()
        resp = client.get("/sales/activities")
        html = resp.get_data(as_text=True)
        assert "Makati office" in html
        assert "May 1, 2024 9:00 AM" in html
        assert "someone else" not in html

    def test_activities_empty(self, client, login, seed_data):
        login()
        resp = client.get("/sales/activities")
        assert b"No records available" in resp.data


class TestStorage:

    def test_validate_photo(self):
        assert storage_service.validate_photo(b"abc", "image/jpeg") == (True, None)
        ok, error = storage_service.validate_photo(b"", "image/jpeg")
        assert not ok and "empty" in error
        ok, error = storage_service.validate_photo(b"abc", "application/pdf")
        assert not ok and "not allowed" in error

    def test_too_large(self):
        data = b"x" * (storage_service.MAX_FILE_SIZE + 1)
        ok, error = storage_service.validate_photo(data, "image/png")
        assert not ok and "too large" in error

    def test_upload_rejects_invalid(self):
        with pytest.raises(ValueError):
            storage_service.upload_photo(b"", "AC-001")

    def test_local_fallback(self, app, tmp_path, monkeypatch):
        monkeypatch.setattr(app, "instance_path", str(tmp_path))
        url = storage_service.upload_photo(b"jpeg-bytes", "AC-001", "image/jpeg")
        assert url.startswith("/uploads/AC-001/")
        assert url.endswith(".jpg")
        saved = tmp_path / "uploads" / url[len("/uploads/"):]
        assert saved.read_bytes() == b"jpeg-bytes"

    @patch("fluxx.services.storage_service.requests.post")
    def test_supabase_upload(self, mock_post, app):
        mock_post.return_value = MagicMock()
        app.config.update(SUPABASE_URL="https://xyz.supabase.co/", SUPABASE_SERVICE_KEY="svc")
        try:
            url = storage_service.upload_photo(b"png-bytes", "AC-001", "image/png")
        finally:
            app.config.update(SUPABASE_URL=None, SUPABASE_SERVICE_KEY=None)

        assert url.startswith(
            "https://xyz.supabase.co/storage/v1/object/public/activity-photos/AC-001/"
        )
        assert url.endswith(".png")
        args, kwargs = mock_post.call_args
        assert kwargs["headers"]["Authorization"] == "Bearer svc"
        assert kwargs["headers"]["Content-Type"] == "image/png"
        assert kwargs["data"] == b"png-bytes"


    @pytest.mark.parametrize("reference_id", ["../../escaped", "AC/001", "..", "", "AC-001\n"])
    def test_rejects_unsafe_reference_id(self, app, tmp_path, monkeypatch, reference_id):
        monkeypatch.setattr(app, "instance_path", str(tmp_path / "instance"))
        with pytest.raises(ValueError, match="reference ID"):
            storage_service.upload_photo(b"\xff\xd8jpeg", reference_id)
        assert list(tmp_path.rglob("*.jpg")) == []


@pytest.fixture
def production_storage(app):
    """Non-debug app with Supabase configured."""
    app.config.update(
        DEBUG=False,
        SUPABASE_URL="https://xyz.supabase.co",
        SUPABASE_SERVICE_KEY="svc",
    )
    yield app
    app.config.update(DEBUG=True, SUPABASE_URL=None, SUPABASE_SERVICE_KEY=None)


class TestProductionStorage:

    @patch("fluxx.services.storage_service.requests.post")
    def test_supabase_failure_raises(self, mock_post, production_storage, tmp_path, monkeypatch):
        mock_post.side_effect = requests.ConnectionError("down")
        monkeypatch.setattr(production_storage, "instance_path", str(tmp_path))

        with pytest.raises(storage_service.StorageError):
            storage_service.upload_photo(b"jpeg-bytes", "AC-001")
        assert not (tmp_path / "uploads").exists()

    def test_unconfigured_storage_raises(self, production_storage, tmp_path, monkeypatch):
        production_storage.config.update(SUPABASE_URL=None)
        monkeypatch.setattr(production_storage, "instance_path", str(tmp_path))

        with pytest.raises(storage_service.StorageError, match="not configured"):
            storage_service.upload_photo(b"jpeg-bytes", "AC-001")
        assert not (tmp_path / "uploads").exists()

    @patch("fluxx.services.storage_service.requests.post")
    def test_debug_still_falls_back_to_local(self, mock_post, app, tmp_path, monkeypatch):
        mock_post.side_effect = requests.ConnectionError("down")
        monkeypatch.setattr(app, "instance_path", str(tmp_path))
        app.config.update(SUPABASE_URL="https://xyz.supabase.co", SUPABASE_SERVICE_KEY="svc")
        try:
            url = storage_service.upload_photo(b"jpeg-bytes", "AC-001")
        finally:
            app.config.update(SUPABASE_URL=None, SUPABASE_SERVICE_KEY=None)
        assert url.startswith("/uploads/AC-001/")
