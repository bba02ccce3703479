"""Tests for listbackup_api/handlers/domains.py."""

import pytest

ACCOUNT = "account:a-1"


@pytest.fixture
def domains(store, settings):
    store.seed(
        settings.table("domains"),
        {"domainId": "d-1", "domainName": "backups.example.com", "accountId": ACCOUNT,
         "status": "pending", "verificationToken": "tok-123", "cloudfrontId": "E123"},
        {"domainId": "d-2", "domainName": "other.example.org", "accountId": "account:other", "status": "active"},
    )
    return store


class TestListDomains:

    async def test_lists_account_domains(self, client, domains):
        resp = await client.get("/domains")
        assert resp.status_code == 200
        listed = resp.json()["data"]["domains"]
        assert [d["domainId"] for d in listed] == ["d-1"]
        assert listed[0]["accountId"] == "a-1"
        assert "cloudfrontId" not in listed[0]


class TestDnsInstructions:

    async def test_instructions(self, client, domains):
        resp = await client.get("/domains/d-1/dns-instructions")
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "DNS instructions retrieved successfully"
        data = body["data"]
        assert data["domainId"] == "d-1"
        assert "backups.example.com" in data["instructions"]
        assert data["records"] == [{
            "type": "TXT",
            "name": "_listbackup-verification",
            "value": "listbackup-verification=tok-123",
            "ttl": 300,
        }]
        assert len(data["steps"]) == 5

    async def test_not_found(self, client, domains):
        resp = await client.get("/domains/d-404/dns-instructions")
        assert resp.status_code == 404

    async def test_other_account(self, client, domains):
        resp = await client.get("/domains/d-2/dns-instructions")
        assert resp.status_code == 403

    async def test_requires_auth(self, anon_client, domains):
        resp = await anon_client.get("/domains/d-1/dns-instructions")
        assert resp.status_code == 401
