"""Custom domain endpoints."""

from fastapi import APIRouter, Depends

from listbackup_api.api.response import success_response
from listbackup_api.core.ids import EntityKind, public_view
from listbackup_api.errors import AccessDeniedError, NotFoundError
from listbackup_api.security.auth import AuthorizationContext, require_auth_context
from listbackup_api.services.container import Services, get_services
from listbackup_api.store.base import ItemNotFound

router = APIRouter(prefix="/domains", tags=["domains"])

DOMAIN_ID_FIELDS = {"accountId": EntityKind.ACCOUNT, "createdBy": EntityKind.USER}

VERIFICATION_RECORD_NAME = "_listbackup-verification"
VERIFICATION_TTL = 300


def domain_view(domain: dict) -> dict:
    return public_view(domain, DOMAIN_ID_FIELDS, exclude=("certificateArn", "cloudfrontId"))


def dns_instructions(domain_id: str, domain_name: str, token: str) -> dict:
    target = domain_name or "your domain"
    return {
        "domainId": domain_id,
        "instructions": (
            f"To verify ownership of {target}, add the following TXT record "
            "to your DNS configuration."
        ),
        "records": [
            {
                "type": "TXT",
                "name": VERIFICATION_RECORD_NAME,
                "value": f"listbackup-verification={token}",
                "ttl": VERIFICATION_TTL,
            },
        ],
        "steps": [
            "Log in to your DNS provider's control panel",
            "Navigate to the DNS management section for your domain",
            f"Add a new TXT record with the name {VERIFICATION_RECORD_NAME}",
            "Set the record value to the verification token shown above",
            "Save the record and wait for DNS propagation (up to 48 hours)",
        ],
    }


@router.get("")
async def list_domains(
    auth: AuthorizationContext = Depends(require_auth_context),
    services: Services = Depends(get_services),
):
    page = await services.store.query_index(
        services.settings.table("domains"), "AccountIndex", {"accountId": auth.account_key},
    )
    return success_response({"domains": [domain_view(d) for d in page.items]})


@router.get("/{domain_id}/dns-instructions")
async def get_dns_instructions(
    domain_id: str,
    auth: AuthorizationContext = Depends(require_auth_context),
    services: Services = Depends(get_services),
):
    try:
        domain = await services.store.get_item(services.settings.table("domains"), {"domainId": domain_id})
    except ItemNotFound:
        raise NotFoundError("Domain not found")
    if domain.get("accountId") != auth.account_key:
        raise AccessDeniedError("Access denied")

    token = domain.get("verificationToken") or domain_id
    return success_response(
        dns_instructions(domain_id, domain.get("domainName", ""), token),
        message="DNS instructions retrieved successfully",
    )
