"""Platform connection and platform source endpoints."""

import uuid
from datetime import timedelta

from fastapi import APIRouter, Depends

from listbackup_api.api.models import CreateConnectionRequest
from listbackup_api.api.response import created_response, success_response
from listbackup_api.core.clock import now_iso, utc_now
from listbackup_api.core.ids import EntityId, EntityKind, canonical, public_view
from listbackup_api.errors import NotFoundError, ValidationError
from listbackup_api.logging.audit import get_audit_logger
from listbackup_api.security.auth import AuthorizationContext, require_auth_context
from listbackup_api.services.container import Services, get_services
from listbackup_api.store.base import ItemNotFound

router = APIRouter(prefix="/platforms", tags=["platforms"])

CONNECTION_ID_FIELDS = {
    "connectionId": EntityKind.CONNECTION,
    "accountId": EntityKind.ACCOUNT,
    "userId": EntityKind.USER,
    "platformId": EntityKind.PLATFORM,
}
SOURCE_ID_FIELDS = {
    "platformSourceId": EntityKind.PLATFORM_SOURCE,
    "platformId": EntityKind.PLATFORM,
}

AUTH_TYPES = ("oauth", "apikey", "basic")


def connection_view(connection: dict) -> dict:
    """Connections never leave the API with their credentials."""
    return public_view(connection, CONNECTION_ID_FIELDS, exclude=("credentials",))


def supports_auth_type(platform: dict, auth_type: str) -> bool:
    if auth_type == "oauth":
        return bool(platform.get("oauth"))
    configured = (platform.get("apiConfig") or {}).get("authType", "")
    return configured in (auth_type, "multiple")


def token_lifetime(value) -> int | None:
    """Seconds from an OAuth ``expires_in``, which providers send as a number or a numeric string."""
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    return seconds if seconds > 0 else None


@router.get("/{platform_id}/connections")
async def list_connections(
    platform_id: str,
    status: str = "",
    auth: AuthorizationContext = Depends(require_auth_context),
    services: Services = Depends(get_services),
):
    platform = EntityId.parse(EntityKind.PLATFORM, platform_id)
    table = services.settings.table("platform-connections")
    key = {"accountId": auth.account_key, "platformId": platform.key}

    if status:
        page = await services.store.query_index(
            table, "AccountPlatformStatusIndex", {**key, "status": status},
        )
    else:
        page = await services.store.query_index(table, "AccountPlatformIndex", key)

    connections = [connection_view(c) for c in page.items]
    return success_response({
        "connections": connections,
        "total": len(connections),
        "platformId": platform.public,
    })


@router.post("/{platform_id}/connections")
async def create_connection(
    platform_id: str,
    body: CreateConnectionRequest,
    auth: AuthorizationContext = Depends(require_auth_context),
    services: Services = Depends(get_services),
):
    if not body.name.strip():
        raise ValidationError("Connection name is required")
    if not body.auth_type:
        raise ValidationError("Auth type is required")
    if body.auth_type not in AUTH_TYPES:
        raise ValidationError("Invalid auth type. Must be oauth, apikey, or basic")
    if not body.credentials:
        raise ValidationError("Credentials are required")

    settings = services.settings
    platform_key = EntityId.parse(EntityKind.PLATFORM, platform_id).key
    try:
        platform = await services.store.get_item(settings.table("platforms"), {"platformId": platform_key})
    except ItemNotFound:
        raise NotFoundError("Platform not found")
    if not supports_auth_type(platform, body.auth_type):
        raise ValidationError(f"Platform does not support {body.auth_type} authentication")

    now = utc_now()
    connection = {
        "connectionId": canonical(EntityKind.CONNECTION, str(uuid.uuid4())),
        "accountId": auth.account_key,
        "userId": auth.user_key,
        "platformId": platform_key,
        "name": body.name.strip(),
        "status": "active",
        "authType": body.auth_type,
        "credentials": body.credentials,
        "createdAt": now.isoformat(),
        "updatedAt": now.isoformat(),
    }
    expires_in = token_lifetime(body.credentials.get("expires_in"))
    if body.auth_type == "oauth" and expires_in:
        connection["expiresAt"] = (now + timedelta(seconds=expires_in)).isoformat()

    await services.store.put_item(settings.table("platform-connections"), connection)

    get_audit_logger().info(
        "Platform connection created",
        extra={"audit_data": {
            "connection_id": connection["connectionId"],
            "account_id": auth.account_key,
            "platform_id": platform_key,
            "auth_type": body.auth_type,
        }},
    )
    return created_response(
        connection_view(connection),
        message=f"Platform connection '{connection['name']}' created successfully",
    )


@router.get("/{platform_id}/sources")
async def list_platform_sources(
    platform_id: str,
    category: str = "",
    status: str = "",
    services: Services = Depends(get_services),
):
    platform = EntityId.parse(EntityKind.PLATFORM, platform_id)
    table = services.settings.table("platform-sources")

    if category:
        page = await services.store.query_index(
            table, "PlatformCategoryIndex", {"platformId": platform.key, "category": category},
        )
    elif status:
        page = await services.store.query_index(
            table, "PlatformStatusIndex", {"platformId": platform.key, "status": status},
        )
    else:
        page = await services.store.query_index(table, "PlatformIndex", {"platformId": platform.key})

    sources = [public_view(s, SOURCE_ID_FIELDS) for s in page.items]
    return success_response({
        "platformSources": sources,
        "total": len(sources),
        "platformId": platform.public,
    })
