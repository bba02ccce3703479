"""White-label branding endpoints."""

import base64
import binascii

from fastapi import APIRouter, Depends, Request

from listbackup_api.api.models import UploadLogoRequest
from listbackup_api.api.response import success_response
from listbackup_api.core.clock import now_iso
from listbackup_api.core.domains import extract_host, is_protected_domain, sanitize_domain
from listbackup_api.core.ids import EntityKind, public_view
from listbackup_api.errors import AccessDeniedError, NotFoundError, ValidationError
from listbackup_api.handlers.domains import domain_view
from listbackup_api.logging.audit import get_audit_logger
from listbackup_api.security.auth import AuthorizationContext, require_auth_context
from listbackup_api.services.container import Services, get_services
from listbackup_api.store.base import ItemNotFound

router = APIRouter(prefix="/branding", tags=["branding"])

BRANDING_ID_FIELDS = {
    "accountId": EntityKind.ACCOUNT,
    "createdBy": EntityKind.USER,
    "updatedBy": EntityKind.USER,
}

ACTIVE_DOMAIN_STATUSES = ("active", "verified")
LOGO_TYPES = ("full", "compact", "square")
THEMES = ("light", "dark")
LOGO_CONTENT_TYPES = {"image/png": "png", "image/jpeg": "jpg", "image/jpg": "jpg"}


def _default_branding() -> dict:
    return {"default": True}


@router.get("/domain")
async def get_branding_by_domain(
    request: Request,
    domain: str = "",
    services: Services = Depends(get_services),
):
    """Public lookup used by the frontend to theme itself for a custom domain."""
    domain_name = domain
    if not domain_name and request.headers.get("referer"):
        domain_name = extract_host(request.headers["referer"])
    if not domain_name:
        domain_name = request.headers.get("host", "")
    if not domain_name:
        raise ValidationError("Domain parameter is required")

    domain_name = sanitize_domain(domain_name)
    if not domain_name or is_protected_domain(domain_name):
        return success_response(_default_branding())

    settings = services.settings
    record = await services.store.find_one(
        settings.table("domains"), "domainName-index", {"domainName": domain_name},
    )
    if record is None or record.get("status") not in ACTIVE_DOMAIN_STATUSES:
        return success_response(_default_branding())

    result = {"domain": domain_view(record), "default": False}
    branding_id = record.get("brandingId")
    if branding_id:
        try:
            branding = await services.store.get_item(settings.table("branding"), {"brandingId": branding_id})
        except ItemNotFound:
            return success_response(result)
        result["branding"] = public_view(branding, BRANDING_ID_FIELDS)
    return success_response(result)


def _decode_logo(body: UploadLogoRequest, max_size_kb: int) -> bytes:
    if not body.image_data:
        raise ValidationError("Image data is required")
    if body.content_type not in LOGO_CONTENT_TYPES:
        raise ValidationError("Invalid content type. Must be image/png or image/jpeg")
    if body.logo_type not in LOGO_TYPES:
        raise ValidationError("Invalid logo type. Must be full, compact, or square")
    if body.theme not in THEMES:
        raise ValidationError("Invalid theme. Must be light or dark")

    data = body.image_data
    # Accept data URIs as produced by FileReader.readAsDataURL
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        image = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Invalid base64 image data")

    if len(image) > max_size_kb * 1024:
        raise ValidationError(f"Image exceeds maximum size of {max_size_kb}KB")
    return image


@router.post("/{branding_id}/logo")
async def upload_logo(
    branding_id: str,
    body: UploadLogoRequest,
    auth: AuthorizationContext = Depends(require_auth_context),
    services: Services = Depends(get_services),
):
    settings = services.settings
    image = _decode_logo(body, settings.max_logo_size_kb)

    table = settings.table("branding")
    try:
        branding = await services.store.get_item(table, {"brandingId": branding_id})
    except ItemNotFound:
        raise NotFoundError("Branding not found")
    if branding.get("accountId") != auth.account_key:
        raise AccessDeniedError("Access denied")

    extension = LOGO_CONTENT_TYPES[body.content_type]
    object_key = f"branding/{branding_id}/logos/{body.theme}-{body.logo_type}.{extension}"
    url = await services.objects.put_object(settings.branding_bucket, object_key, image, body.content_type)

    logos = dict(branding.get("logos") or {})
    variants = dict(logos.get(body.theme) or {})
    variants[body.logo_type] = url
    logos[body.theme] = variants
    await services.store.update_item(table, {"brandingId": branding_id}, {
        "logos": logos,
        "updatedAt": now_iso(),
        "updatedBy": auth.user_key,
    })

    get_audit_logger().info(
        "Logo uploaded",
        extra={"audit_data": {
            "branding_id": branding_id,
            "account_id": auth.account_key,
            "logo_type": body.logo_type,
            "theme": body.theme,
            "bytes": len(image),
        }},
    )
    return success_response(
        {"brandingId": branding_id, "logoType": body.logo_type, "theme": body.theme, "url": url},
        message="Logo uploaded successfully",
    )
