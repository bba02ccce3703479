"""Tests for listbackup_api/handlers/branding.py and listbackup_api/core/domains.py."""

import base64

import pytest

from listbackup_api.core.domains import extract_host, is_protected_domain, sanitize_domain

ACCOUNT = "account:a-1"
PNG = base64.b64encode(b"\x89PNG\r\n\x1a\n" + b"\x00" * 64).decode()


class TestDomainHelpers:

    @pytest.mark.parametrize("raw, expected", [
        ("https://Backups.Example.com/login?x=1", "backups.example.com"),
        ("http://example.com:8080", "example.com"),
        ("  example.com/  ", "example.com"),
        ("example.com", "example.com"),
    ])
    def test_sanitize(self, raw, expected):
        assert sanitize_domain(raw) == expected

    def test_extract_host(self):
        assert extract_host("https://backups.example.com/dashboard") == "backups.example.com"
        assert extract_host("not a url") == ""

    @pytest.mark.parametrize("domain", [
        "listbackup.ai", "app.listbackup.ai", "x.app.listbackup.ai",
        "d123.cloudfront.net", "bucket.s3.amazonaws.com", "LISTBACKUP.COM",
    ])
    def test_protected(self, domain):
        assert is_protected_domain(domain)

    def test_customer_domain_not_protected(self):
        assert not is_protected_domain("backups.example.com")
        assert not is_protected_domain("mylistbackup.ai")


class TestBrandingByDomain:

    @pytest.fixture
    def custom_domain(self, store, settings):
        store.seed(settings.table("domains"), {
            "domainId": "d-1", "domainName": "backups.example.com", "accountId": ACCOUNT,
            "status": "active", "brandingId": "b-1", "certificateArn": "arn:aws:acm:secret",
        })
        store.seed(settings.table("branding"), {
            "brandingId": "b-1", "accountId": ACCOUNT, "name": "Example", "colors": {"primary": "#123456"},
        })
        return store

    async def test_domain_with_branding(self, anon_client, custom_domain):
        resp = await anon_client.get("/branding/domain", params={"domain": "https://backups.example.com/"})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["default"] is False
        assert data["domain"]["accountId"] == "a-1"
        assert "certificateArn" not in data["domain"]
        assert data["branding"]["colors"] == {"primary": "#123456"}

    async def test_domain_from_referer(self, anon_client, custom_domain):
        resp = await anon_client.get("/branding/domain", headers={"Referer": "https://backups.example.com/app"})
        assert resp.json()["data"]["default"] is False

    async def test_falls_back_to_host_header(self, anon_client, custom_domain):
        resp = await anon_client.get("/branding/domain")
        # httpx sends Host: test, which has no domain record
        assert resp.json()["data"] == {"default": True}

    async def test_protected_domain(self, anon_client, store):
        resp = await anon_client.get("/branding/domain", params={"domain": "app.listbackup.ai"})
        assert resp.json() == {"success": True, "data": {"default": True}}

    async def test_inactive_domain(self, anon_client, custom_domain, settings):
        custom_domain.seed(settings.table("domains"), {
            "domainId": "d-1", "domainName": "backups.example.com", "accountId": ACCOUNT, "status": "pending",
        })
        resp = await anon_client.get("/branding/domain", params={"domain": "backups.example.com"})
        assert resp.json()["data"] == {"default": True}

    async def test_missing_branding_returns_domain_only(self, anon_client, custom_domain, settings):
        custom_domain.seed(settings.table("domains"), {
            "domainId": "d-1", "domainName": "backups.example.com", "accountId": ACCOUNT,
            "status": "active", "brandingId": "b-404",
        })
        resp = await anon_client.get("/branding/domain", params={"domain": "backups.example.com"})
        data = resp.json()["data"]
        assert data["default"] is False
        assert "branding" not in data


class TestUploadLogo:

    @pytest.fixture
    def branding(self, store, settings):
        store.seed(settings.table("branding"), {
            "brandingId": "b-1", "accountId": ACCOUNT, "logos": {"dark": {"full": "https://old/dark.png"}},
        })
        return store

    async def test_uploads_and_records_url(self, client, branding, settings, objects):
        resp = await client.post("/branding/b-1/logo", json={
            "imageData": PNG, "contentType": "image/png", "logoType": "compact", "theme": "light",
        })
        assert resp.status_code == 200
        assert resp.json()["message"] == "Logo uploaded successfully"

        bucket, key, body, content_type = objects.put_object.call_args.args
        assert bucket == settings.branding_bucket
        assert key == "branding/b-1/logos/light-compact.png"
        assert body == base64.b64decode(PNG)
        assert content_type == "image/png"

        stored = await branding.get_item(settings.table("branding"), {"brandingId": "b-1"})
        assert stored["logos"]["light"]["compact"] == objects.put_object.return_value
        assert stored["logos"]["dark"]["full"] == "https://old/dark.png"
        assert stored["updatedBy"] == "user:u-1"

    async def test_defaults_and_data_uri(self, client, branding, objects):
        resp = await client.post("/branding/b-1/logo", json={
            "imageData": f"data:image/jpeg;base64,{PNG}", "contentType": "image/jpeg",
        })
        assert resp.status_code == 200
        assert resp.json()["data"]["logoType"] == "full"
        assert resp.json()["data"]["theme"] == "light"
        assert objects.put_object.call_args.args[1] == "branding/b-1/logos/light-full.jpg"

    @pytest.mark.parametrize("overrides", [
        {"imageData": ""},
        {"contentType": "image/gif"},
        {"logoType": "banner"},
        {"theme": "sepia"},
        {"imageData": "!!not-base64!!"},
    ])
    async def test_validation(self, client, branding, objects, overrides):
        body = {"imageData": PNG, "contentType": "image/png", **overrides}
        resp = await client.post("/branding/b-1/logo", json=body)
        assert resp.status_code == 400
        objects.put_object.assert_not_called()

    async def test_too_large(self, client, branding, settings, monkeypatch):
        monkeypatch.setattr(settings, "max_logo_size_kb", 0)
        resp = await client.post("/branding/b-1/logo", json={"imageData": PNG, "contentType": "image/png"})
        assert resp.status_code == 400
        assert "maximum size" in resp.json()["error"]

    async def test_not_found(self, client, objects):
        resp = await client.post("/branding/b-404/logo", json={"imageData": PNG, "contentType": "image/png"})
        assert resp.status_code == 404

    async def test_other_account(self, client, store, settings, objects):
        store.seed(settings.table("branding"), {"brandingId": "b-9", "accountId": "account:other"})
        resp = await client.post("/branding/b-9/logo", json={"imageData": PNG, "contentType": "image/png"})
        assert resp.status_code == 403
        objects.put_object.assert_not_called()

    async def test_requires_auth(self, anon_client, branding):
        resp = await anon_client.post("/branding/b-1/logo", json={"imageData": PNG, "contentType": "image/png"})
        assert resp.status_code == 401
