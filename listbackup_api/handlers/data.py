"""Backed-up file and activity feed endpoints."""

import base64
import binascii
import json
import uuid
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query

from listbackup_api.api.response import success_response
from listbackup_api.core.clock import now_millis, utc_now
from listbackup_api.core.ids import EntityId, EntityKind, canonical, public_view
from listbackup_api.errors import AccessDeniedError, DependencyError, NotFoundError, ValidationError
from listbackup_api.logging.audit import get_audit_logger
from listbackup_api.security.auth import AuthorizationContext, require_auth_context
from listbackup_api.services.container import Services, get_services
from listbackup_api.store.base import ItemNotFound, KeyRange

router = APIRouter(tags=["data"])

FILE_ID_FIELDS = {
    "fileId": EntityKind.FILE,
    "accountId": EntityKind.ACCOUNT,
    "jobId": EntityKind.JOB,
    "connectionId": EntityKind.CONNECTION,
    "sourceId": EntityKind.PLATFORM_SOURCE,
}
ACTIVITY_ID_FIELDS = {
    "eventId": EntityKind.ACTIVITY,
    "accountId": EntityKind.ACCOUNT,
    "userId": EntityKind.USER,
}
ACTIVITY_CURSOR_FIELDS = frozenset({"eventId", "accountId", "timestamp"})


def encode_cursor(key: dict | None) -> str | None:
    if not key:
        return None
    return base64.urlsafe_b64encode(json.dumps(key, sort_keys=True).encode()).decode()


def decode_cursor(cursor: str, account_key: str) -> dict:
    """Decode an activity ``lastKey`` back into a start key for ``AccountTimeIndex``.

    The key must name exactly the table and index key attributes and belong
    to the caller's account, otherwise the store would reject it.
    """
    try:
        key = json.loads(base64.urlsafe_b64decode(cursor.encode()))
    except (binascii.Error, ValueError):
        raise ValidationError("Invalid lastKey")
    if (
        not isinstance(key, dict)
        or set(key) != ACTIVITY_CURSOR_FIELDS
        or key["accountId"] != account_key
        or not isinstance(key["eventId"], str)
        or isinstance(key["timestamp"], bool)
        or not isinstance(key["timestamp"], int)
    ):
        raise ValidationError("Invalid lastKey")
    return key


def to_millis(value: datetime) -> int:
    """Epoch milliseconds; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def new_activity_id() -> str:
    return canonical(EntityKind.ACTIVITY, f"{now_millis()}:{uuid.uuid4().hex[:9]}")


@router.get("/data/files")
async def list_files(
    source_id: str = Query("", alias="sourceId"),
    auth: AuthorizationContext = Depends(require_auth_context),
    services: Services = Depends(get_services),
):
    filters = {"sourceId": canonical(EntityKind.PLATFORM_SOURCE, source_id)} if source_id else None
    page = await services.store.query_index(
        services.settings.table("files"), "AccountIndex", {"accountId": auth.account_key}, filters=filters,
    )
    files = [public_view(f, FILE_ID_FIELDS, exclude=("s3Key", "s3Bucket")) for f in page.items]
    return success_response({"files": files, "total": len(files)})


@router.get("/data/files/{file_id}/download")
async def download_file(
    file_id: str,
    auth: AuthorizationContext = Depends(require_auth_context),
    services: Services = Depends(get_services),
):
    settings = services.settings
    file_key = EntityId.parse(EntityKind.FILE, file_id).key
    try:
        file = await services.store.get_item(settings.table("files"), {"fileId": file_key})
    except ItemNotFound:
        raise NotFoundError("File not found")
    if file.get("accountId") != auth.account_key:
        raise AccessDeniedError("Access denied")
    if not file.get("s3Key"):
        raise NotFoundError("File content not available")

    ttl = settings.download_url_ttl_seconds
    url = await services.objects.presigned_download_url(
        file.get("s3Bucket") or settings.data_bucket, file["s3Key"], ttl,
    )

    file_name = file.get("path") or file.get("fileName", "")
    activity = {
        "eventId": new_activity_id(),
        "accountId": auth.account_key,
        "userId": auth.user_key,
        "type": "data",
        "action": "download",
        "status": "success",
        "message": f"Downloaded file: {file_name}",
        "timestamp": now_millis(),
        "ttl": int((utc_now() + timedelta(days=settings.activity_ttl_days)).timestamp()),
        "metadata": {"fileId": file_key, "size": file.get("size", 0)},
    }
    try:
        await services.store.put_item(settings.table("activity"), activity)
    except DependencyError:
        get_audit_logger().warning(
            "Failed to record download activity",
            extra={"audit_data": {"file_id": file_key, "account_id": auth.account_key}},
        )

    get_audit_logger().info(
        "Download URL issued",
        extra={"audit_data": {"file_id": file_key, "account_id": auth.account_key, "expires_in": ttl}},
    )
    return success_response({
        "downloadUrl": url,
        "expiresIn": ttl,
        "fileName": file_name,
        "size": file.get("size", 0),
        "contentType": file.get("contentType", "application/octet-stream"),
    })


@router.get("/activity")
async def list_activity(
    limit: int | None = Query(None, ge=1, le=100),
    last_key: str = Query("", alias="lastKey"),
    activity_type: str = Query("", alias="type"),
    resource_type: str = Query("", alias="resourceType"),
    resource_id: str = Query("", alias="resourceId"),
    date_from: datetime | None = Query(None, alias="dateFrom"),
    date_to: datetime | None = Query(None, alias="dateTo"),
    auth: AuthorizationContext = Depends(require_auth_context),
    services: Services = Depends(get_services),
):
    filters = {
        name: value
        for name, value in (("type", activity_type), ("resourceType", resource_type), ("resourceId", resource_id))
        if value
    }
    lower = to_millis(date_from) if date_from else None
    upper = to_millis(date_to) if date_to else None
    if lower is not None and upper is not None and lower > upper:
        raise ValidationError("dateFrom must not be after dateTo")
    key_range = KeyRange("timestamp", lower, upper) if lower is not None or upper is not None else None

    page = await services.store.query_index(
        services.settings.table("activity"),
        "AccountTimeIndex",
        {"accountId": auth.account_key},
        limit=limit or services.settings.activity_page_size,
        start_key=decode_cursor(last_key, auth.account_key) if last_key else None,
        descending=True,
        filters=filters or None,
        key_range=key_range,
    )
    activities = [public_view(a, ACTIVITY_ID_FIELDS, exclude=("ttl",)) for a in page.items]

    applied = dict(filters)
    if date_from:
        applied["dateFrom"] = date_from.isoformat()
    if date_to:
        applied["dateTo"] = date_to.isoformat()
    return success_response({
        "activities": activities,
        "total": len(activities),
        "hasMore": page.next_key is not None,
        "lastKey": encode_cursor(page.next_key),
        "filters": applied,
    })
