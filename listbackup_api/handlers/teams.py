"""Team endpoints.

A team belongs to one account. Membership rows live in their own table
keyed by (teamId, userId) with a UserTeamsIndex for the reverse lookup.
"""

import uuid

from fastapi import APIRouter, Depends

from listbackup_api.api.models import AddTeamMemberRequest, CreateTeamRequest
from listbackup_api.api.response import created_response, success_response
from listbackup_api.core.clock import now_iso
from listbackup_api.core.ids import EntityId, EntityKind, canonical, public_view
from listbackup_api.errors import AccessDeniedError, ConflictError, NotFoundError, ValidationError
from listbackup_api.logging.audit import get_audit_logger
from listbackup_api.security.auth import AuthorizationContext, require_auth_context
from listbackup_api.services.container import Services, get_services
from listbackup_api.store.base import ItemNotFound

router = APIRouter(prefix="/teams", tags=["teams"])

TEAM_ID_FIELDS = {
    "teamId": EntityKind.TEAM,
    "accountId": EntityKind.ACCOUNT,
    "ownerId": EntityKind.USER,
}
MEMBER_ID_FIELDS = {
    "teamId": EntityKind.TEAM,
    "userId": EntityKind.USER,
    "invitedBy": EntityKind.USER,
}

VALID_ROLES = ("admin", "member", "viewer")

ROLE_PERMISSIONS = {
    "admin": {
        "canManageTeam": True,
        "canInviteMembers": True,
        "canRemoveMembers": True,
        "canManageAccounts": True,
        "canViewReports": True,
    },
    "member": {
        "canManageTeam": False,
        "canInviteMembers": True,
        "canRemoveMembers": False,
        "canManageAccounts": False,
        "canViewReports": True,
    },
    "viewer": {
        "canManageTeam": False,
        "canInviteMembers": False,
        "canRemoveMembers": False,
        "canManageAccounts": False,
        "canViewReports": True,
    },
}


def permissions_for_role(role: str) -> dict:
    return dict(ROLE_PERMISSIONS.get(role, ROLE_PERMISSIONS["viewer"]))


def _can_invite(team: dict, membership: dict | None, user_key: str) -> bool:
    if team.get("ownerId") == user_key:
        return True
    if membership is None or membership.get("role") != "admin":
        return False
    return bool(membership.get("permissions", {}).get("canInviteMembers"))


@router.get("")
async def list_teams(
    auth: AuthorizationContext = Depends(require_auth_context),
    services: Services = Depends(get_services),
):
    settings = services.settings
    memberships = await services.store.query_index(
        settings.table("team-members"), "UserTeamsIndex", {"userId": auth.user_key},
    )

    teams = []
    for membership in memberships.items:
        try:
            team = await services.store.get_item(settings.table("teams"), {"teamId": membership["teamId"]})
        except ItemNotFound:
            continue
        if team.get("accountId") != auth.account_key:
            continue
        view = public_view(team, TEAM_ID_FIELDS)
        view["role"] = membership.get("role", "")
        teams.append(view)

    return success_response(teams)


@router.post("")
async def create_team(
    body: CreateTeamRequest,
    auth: AuthorizationContext = Depends(require_auth_context),
    services: Services = Depends(get_services),
):
    name = body.name.strip()
    if not name:
        raise ValidationError("Team name is required")

    settings = services.settings
    now = now_iso()
    team = {
        "teamId": canonical(EntityKind.TEAM, str(uuid.uuid4())),
        "accountId": auth.account_key,
        "name": name,
        "description": body.description,
        "ownerId": auth.user_key,
        "status": "active",
        "createdAt": now,
        "updatedAt": now,
    }
    await services.store.put_item(settings.table("teams"), team)

    owner_membership = {
        "teamId": team["teamId"],
        "userId": auth.user_key,
        "role": "admin",
        "permissions": permissions_for_role("admin"),
        "status": "active",
        "invitedBy": auth.user_key,
        "joinedAt": now,
        "createdAt": now,
        "updatedAt": now,
    }
    await services.store.put_item(settings.table("team-members"), owner_membership)

    get_audit_logger().info(
        "Team created",
        extra={"audit_data": {"team_id": team["teamId"], "account_id": auth.account_key, "user_id": auth.user_id}},
    )
    return created_response(public_view(team, TEAM_ID_FIELDS), message="Team created successfully")


@router.post("/{team_id}/members")
async def add_team_member(
    team_id: str,
    body: AddTeamMemberRequest,
    auth: AuthorizationContext = Depends(require_auth_context),
    services: Services = Depends(get_services),
):
    if not body.user_id:
        raise ValidationError("User ID is required")
    role = body.role or "member"
    if role not in VALID_ROLES:
        raise ValidationError("Invalid role. Must be admin, member, or viewer")

    settings = services.settings
    team_key = EntityId.parse(EntityKind.TEAM, team_id).key
    member_key = canonical(EntityKind.USER, body.user_id)

    try:
        team = await services.store.get_item(settings.table("teams"), {"teamId": team_key})
    except ItemNotFound:
        raise NotFoundError("Team not found")
    if team.get("accountId") != auth.account_key:
        raise AccessDeniedError("Access denied")

    members_table = settings.table("team-members")
    try:
        caller_membership = await services.store.get_item(
            members_table, {"teamId": team_key, "userId": auth.user_key},
        )
    except ItemNotFound:
        caller_membership = None
    if not _can_invite(team, caller_membership, auth.user_key):
        raise AccessDeniedError("Insufficient permissions to add members")

    try:
        await services.store.get_item(members_table, {"teamId": team_key, "userId": member_key})
    except ItemNotFound:
        pass
    else:
        raise ConflictError("User is already a member of this team")

    now = now_iso()
    membership = {
        "teamId": team_key,
        "userId": member_key,
        "role": role,
        "permissions": permissions_for_role(role),
        "status": "active",
        "invitedBy": auth.user_key,
        "joinedAt": now,
        "createdAt": now,
        "updatedAt": now,
    }
    await services.store.put_item(members_table, membership)

    get_audit_logger().info(
        "Team member added",
        extra={"audit_data": {
            "team_id": team_key,
            "member_id": member_key,
            "role": role,
            "invited_by": auth.user_id,
        }},
    )
    return created_response(public_view(membership, MEMBER_ID_FIELDS), message="Team member added successfully")
