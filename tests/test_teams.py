"""Tests for listbackup_api/handlers/teams.py."""

import pytest

from listbackup_api.handlers.teams import permissions_for_role

USER = "user:u-1"
ACCOUNT = "account:a-1"


@pytest.fixture
def teams_table(settings):
    return settings.table("teams")


@pytest.fixture
def members_table(settings):
    return settings.table("team-members")


@pytest.fixture
def team(store, teams_table, members_table):
    store.seed(teams_table, {
        "teamId": "team:t-1", "accountId": ACCOUNT, "name": "Ops", "ownerId": "user:owner", "status": "active",
    })
    store.seed(members_table, {
        "teamId": "team:t-1", "userId": USER, "role": "admin", "permissions": permissions_for_role("admin"),
    })
    return store


class TestPermissions:

    def test_admin_has_everything(self):
        assert all(permissions_for_role("admin").values())

    def test_member(self):
        perms = permissions_for_role("member")
        assert perms["canInviteMembers"] and perms["canViewReports"]
        assert not perms["canManageTeam"]

    def test_viewer(self):
        perms = permissions_for_role("viewer")
        assert [k for k, v in perms.items() if v] == ["canViewReports"]


class TestListTeams:

    async def test_no_memberships(self, client):
        resp = await client.get("/teams")
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "data": []}

    async def test_filters_to_caller_account(self, client, team, teams_table, members_table):
        team.seed(teams_table, {"teamId": "team:t-2", "accountId": "account:other", "name": "Elsewhere"})
        team.seed(members_table, {"teamId": "team:t-2", "userId": USER, "role": "member"})
        team.seed(members_table, {"teamId": "team:gone", "userId": USER, "role": "member"})

        resp = await client.get("/teams")
        data = resp.json()["data"]
        assert len(data) == 1
        assert data[0]["teamId"] == "t-1"
        assert data[0]["accountId"] == "a-1"
        assert data[0]["role"] == "admin"


class TestCreateTeam:

    async def test_creates_team_and_admin_membership(self, client, store, teams_table, members_table):
        resp = await client.post("/teams", json={"name": "  Support  ", "description": "Tier 1"})
        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "Team created successfully"
        team = body["data"]
        assert team["name"] == "Support"
        assert team["ownerId"] == "u-1"
        assert team["status"] == "active"
        assert not team["teamId"].startswith("team:")

        stored = await store.get_item(teams_table, {"teamId": "team:" + team["teamId"]})
        assert stored["accountId"] == ACCOUNT
        membership = await store.get_item(members_table, {"teamId": stored["teamId"], "userId": USER})
        assert membership["role"] == "admin"
        assert membership["permissions"] == permissions_for_role("admin")

    async def test_name_required(self, client):
        resp = await client.post("/teams", json={"name": "  "})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Team name is required"

    async def test_requires_auth(self, anon_client, store, teams_table):
        resp = await anon_client.post("/teams", json={"name": "Support"})
        assert resp.status_code == 401
        assert store.items(teams_table) == []


class TestAddMember:

    async def test_admin_adds_member(self, client, team, members_table):
        resp = await client.post("/teams/t-1/members", json={"userId": "u-2", "role": "viewer"})
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["teamId"] == "t-1"
        assert data["userId"] == "u-2"
        assert data["invitedBy"] == "u-1"

        stored = await team.get_item(members_table, {"teamId": "team:t-1", "userId": "user:u-2"})
        assert stored["permissions"] == permissions_for_role("viewer")

    async def test_default_role_is_member(self, client, team):
        resp = await client.post("/teams/team:t-1/members", json={"userId": "user:u-2"})
        assert resp.status_code == 201
        assert resp.json()["data"]["role"] == "member"

    async def test_invalid_role(self, client, team):
        resp = await client.post("/teams/t-1/members", json={"userId": "u-2", "role": "owner"})
        assert resp.status_code == 400

    async def test_user_required(self, client, team):
        resp = await client.post("/teams/t-1/members", json={"role": "member"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "User ID is required"

    async def test_team_not_found(self, client):
        resp = await client.post("/teams/t-404/members", json={"userId": "u-2"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "Team not found"

    async def test_other_account(self, client, store, teams_table):
        store.seed(teams_table, {"teamId": "team:t-9", "accountId": "account:other", "ownerId": USER})
        resp = await client.post("/teams/t-9/members", json={"userId": "u-2"})
        assert resp.status_code == 403
        assert resp.json()["error"] == "Access denied"

    async def test_non_admin_cannot_invite(self, client, team, members_table):
        team.seed(members_table, {
            "teamId": "team:t-1", "userId": USER, "role": "member", "permissions": permissions_for_role("member"),
        })
        resp = await client.post("/teams/t-1/members", json={"userId": "u-2"})
        assert resp.status_code == 403
        assert resp.json()["error"] == "Insufficient permissions to add members"

    async def test_owner_can_invite_without_membership(self, client, store, teams_table):
        store.seed(teams_table, {"teamId": "team:t-3", "accountId": ACCOUNT, "ownerId": USER})
        resp = await client.post("/teams/t-3/members", json={"userId": "u-2"})
        assert resp.status_code == 201

    async def test_existing_member_conflict(self, client, team, members_table):
        team.seed(members_table, {"teamId": "team:t-1", "userId": "user:u-2", "role": "viewer"})
        resp = await client.post("/teams/t-1/members", json={"userId": "u-2"})
        assert resp.status_code == 409
