"""
HTTP-level tests for api/routes/resources.py

Exercises the five resource endpoints through TestClient against an on-disk
copy of the seed catalog (see conftest.py).
"""
import sys
from pathlib import Path

import pytest
from fastapi import Request
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from api.app import create_app
from api.database import get_db

URL = "/api/v1/resources"


def _submission(**overrides):
    record = {
        "resource": "https://www.new-site.com",
        "main_category": "Travel",
        "other_categories": "Food & Beverages,Lifestyle",
        "email": "sales@new-site.com",
        "currency": "USD",
        "price": "80",
    }
    record.update(overrides)
    return record


# ── GET /resources ────────────────────────────────────────────────────────────

class TestListResources:
    def test_default_listing(self, client):
        resp = client.get(URL)
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 6
        assert body["total_filtered"] == 6
        assert body["data_count"] == 6
        assert (body["page"], body["limit"], body["sortby"], body["order"]) == (1, 50, "resource", "ASC")
        assert body["page_window"] == "limit"
        assert resp.headers["X-Page-Window"] == "limit"
        assert "X-Request-ID" in resp.headers

    def test_filters(self, client):
        body = client.get(URL, params={"price": "100-200", "currency": "USD"}).json()
        assert [row["id"] for row in body["data"]] == [1, 3]
        assert body["total"] == 6

    def test_bracketed_filters(self, client):
        body = client.get(URL, params={"filters[main_category]": "Auto"}).json()
        assert [row["resource"] for row in body["data"]] == ["gamma.com"]

    def test_malformed_values_ignored(self, client):
        resp = client.get(URL, params={"price": "1-2-3", "page": "abc", "limit": "-4",
                                       "sortby": "bogus", "order": "up"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["total_filtered"] == 6
        assert (body["page"], body["limit"], body["sortby"], body["order"]) == (1, 50, "resource", "ASC")

    def test_limit_clamped(self, client):
        assert client.get(URL, params={"limit": "100000"}).json()["limit"] == 500

    def test_pagination(self, client):
        body = client.get(URL, params={"page": "2", "limit": "4"}).json()
        assert body["data_count"] == 2
        assert [row["resource"] for row in body["data"]] == ["epsilon.com", "gamma.com"]

    def test_legacy_page_window(self, db_path, app_config):
        app_config.legacy_page_window = True
        app = create_app(db_path=db_path, config=app_config)
        with TestClient(app, headers={"X-API-Key": "test-token"}) as c:
            resp = c.get(URL, params={"page": "2", "limit": "2"})
        body = resp.json()
        assert resp.headers["X-Page-Window"] == "legacy"
        assert body["page_window"] == "legacy"
        assert body["data_count"] == 4  # rows 3..6


# ── GET /resources/{id} ───────────────────────────────────────────────────────

class TestGetResource:
    def test_found(self, client):
        resp = client.get(f"{URL}/1")
        assert resp.status_code == 200
        body = resp.json()
        assert body["resource"] == "alpha.com"
        assert len(body["providers"]) == 2

    def test_missing(self, client):
        resp = client.get(f"{URL}/999")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Resource 999 not found"

    @pytest.mark.parametrize("bad_id", ["0", "-1", "abc"])
    def test_invalid_id(self, client, bad_id):
        assert client.get(f"{URL}/{bad_id}").status_code == 422


# ── POST /resources ───────────────────────────────────────────────────────────

class TestCreateResources:
    def test_success(self, client):
        resp = client.post(URL, json={"data": [_submission(), _submission(resource="second.com")]})
        assert resp.status_code == 200
        assert resp.json() == {"status": "success", "code": 200, "message": "Requested successfully!"}
        body = client.get(URL, params={"email": "new-site"}).json()
        assert body["total"] == 8
        assert {row["resource"] for row in body["data"]} == {"new-site.com", "second.com"}

    def test_invalid_record_rejects_batch(self, client):
        resp = client.post(URL, json={"data": [_submission(), _submission(price="cheap")]})
        assert resp.status_code == 500
        assert resp.json() == {
            "status": "error", "code": 500, "message": "price cheap is missing or not valid",
        }
        assert client.get(URL).json()["total"] == 6

    def test_missing_data(self, client):
        resp = client.post(URL, json={})
        assert resp.status_code == 500
        assert resp.json()["message"] == "data field is required"

    def test_empty_data_succeeds(self, client):
        resp = client.post(URL, json={"data": []})
        assert resp.status_code == 200
        assert resp.json()["status"] == "success"
        assert client.get(URL).json()["total"] == 6

    def test_non_numeric_metric_rejected(self, client):
        resp = client.post(URL, json={"data": [_submission(da="high")]})
        assert resp.status_code == 500
        assert resp.json()["message"] == "da high is not valid"
        listing = client.get(URL)
        assert listing.status_code == 200
        assert listing.json()["total"] == 6

    def test_blank_metric_stored_as_null(self, client):
        resp = client.post(URL, json={"data": [_submission(da="", dr="41")]})
        assert resp.status_code == 200
        body = client.get(URL, params={"email": "new-site"}).json()
        assert (body["data"][0]["da"], body["data"][0]["dr"]) == (None, 41)

    @pytest.mark.parametrize("resource", ["https://", "www.", "   "])
    def test_empty_resource_rejected(self, client, resource):
        resp = client.post(URL, json={"data": [_submission(resource=resource)]})
        assert resp.status_code == 500
        assert resp.json()["message"] == "resource field is required"
        assert client.get(URL).json()["total"] == 6

    def test_configured_error_status(self, db_path, app_config):
        app_config.validation_error_status = 422
        app = create_app(db_path=db_path, config=app_config)
        with TestClient(app, headers={"Authorization": "Bearer test-token"}) as c:
            resp = c.post(URL, json={"data": [_submission(main_category="Cooking")]})
        assert resp.status_code == 422
        assert resp.json()["message"] == "main_category Cooking is not valid"


# ── PUT / PATCH /resources/{id} ───────────────────────────────────────────────

class TestUpdateResource:
    @pytest.mark.parametrize("method", ["put", "patch"])
    def test_update(self, client, method):
        resp = getattr(client, method)(f"{URL}/1", json={"price": "175", "dr": "33"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["dr"] == 33
        assert [p["price"] for p in body["providers"]] == [175, 175]

    def test_invalid_field(self, client):
        resp = client.patch(f"{URL}/1", json={"email": "nope"})
        assert resp.status_code == 500
        assert resp.json()["message"] == "email nope is missing or not valid"

    def test_empty_resource_rejected(self, client):
        resp = client.patch(f"{URL}/1", json={"resource": "https://"})
        assert resp.status_code == 500
        assert resp.json()["message"] == "resource field is required"
        assert client.get(f"{URL}/1").json()["resource"] == "alpha.com"

    def test_no_known_fields(self, client):
        resp = client.put(f"{URL}/1", json={"colour": "blue"})
        assert resp.json()["message"] == "no updatable fields supplied"

    def test_missing(self, client):
        assert client.put(f"{URL}/999", json={"notes": "x"}).status_code == 404


# ── DELETE /resources/{id} ────────────────────────────────────────────────────

class TestDeleteResource:
    def test_soft_delete(self, client):
        resp = client.delete(f"{URL}/1")
        assert resp.status_code == 200
        assert resp.json() == {"deleted": True, "force": False, "resource_id": 1}
        assert client.get(f"{URL}/1").status_code == 404
        assert client.get(URL).json()["total"] == 4
        assert client.delete(f"{URL}/1").status_code == 404

    def test_force_delete(self, client):
        resp = client.delete(f"{URL}/2", params={"force": "true"})
        assert resp.json()["force"] is True
        assert client.get(URL).json()["total"] == 5

    def test_missing(self, client):
        assert client.delete(f"{URL}/999").status_code == 404


# ── Authorization ─────────────────────────────────────────────────────────────

_ALL_ENDPOINTS = [
    ("get", URL, None),
    ("get", f"{URL}/1", None),
    ("post", URL, {"data": [_submission()]}),
    ("put", f"{URL}/1", {"notes": "x"}),
    ("patch", f"{URL}/1", {"notes": "x"}),
    ("delete", f"{URL}/1", None),
]


class TestAuthorization:
    @pytest.mark.parametrize("method,url,body", _ALL_ENDPOINTS)
    def test_unauthenticated_never_touches_db(self, app, anon_client, method, url, body):
        calls = []

        def counting_get_db(request: Request):
            calls.append(request.url.path)
            yield from get_db(request)

        app.dependency_overrides[get_db] = counting_get_db
        kwargs = {"json": body} if body is not None else {}
        resp = anon_client.request(method.upper(), url, **kwargs)
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Unauthorized"}
        assert resp.headers["WWW-Authenticate"] == "Bearer"
        assert calls == []

    def test_wrong_token(self, anon_client):
        resp = anon_client.get(URL, headers={"Authorization": "Bearer wrong"})
        assert resp.status_code == 401

    def test_api_key_header(self, anon_client):
        assert anon_client.get(URL, headers={"X-API-Key": "test-token"}).status_code == 200

    def test_nothing_written_when_unauthenticated(self, anon_client, client):
        anon_client.post(URL, json={"data": [_submission()]})
        anon_client.delete(f"{URL}/1")
        assert client.get(URL).json()["total"] == 6

    def test_health_is_public(self, anon_client):
        resp = anon_client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "resources": 5}
