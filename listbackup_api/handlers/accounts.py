"""Account endpoints."""

from fastapi import APIRouter, Depends

from listbackup_api.api.models import UpdateAccountRequest
from listbackup_api.api.response import success_response
from listbackup_api.core.clock import now_iso
from listbackup_api.core.ids import EntityId, EntityKind, public, public_view
from listbackup_api.errors import AccessDeniedError, NotFoundError, ValidationError
from listbackup_api.logging.audit import get_audit_logger
from listbackup_api.security.auth import AuthorizationContext, require_auth_context
from listbackup_api.services.container import Services, get_services
from listbackup_api.store.base import ItemNotFound

router = APIRouter(prefix="/accounts", tags=["accounts"])

ACCOUNT_ID_FIELDS = {
    "accountId": EntityKind.ACCOUNT,
    "parentAccountId": EntityKind.ACCOUNT,
    "ownerUserId": EntityKind.USER,
    "createdBy": EntityKind.USER,
}


async def ensure_account_access(services: Services, user_key: str, account_key: str) -> dict:
    """Return the caller's user-account link or raise AccessDeniedError."""
    page = await services.store.query(
        services.settings.table("user-accounts"),
        {"userId": user_key, "accountId": account_key},
        limit=1,
    )
    if not page.items:
        raise AccessDeniedError("Access denied to this account")
    return page.items[0]


@router.get("")
async def list_accounts(
    auth: AuthorizationContext = Depends(require_auth_context),
    services: Services = Depends(get_services),
):
    settings = services.settings
    links = await services.store.query(settings.table("user-accounts"), {"userId": auth.user_key})

    accounts = []
    for link in links.items:
        try:
            account = await services.store.get_item(
                settings.table("accounts"), {"accountId": link["accountId"]},
            )
        except ItemNotFound:
            get_audit_logger().warning(
                "Dangling user-account link",
                extra={"audit_data": {"user_id": auth.user_id, "account_id": link["accountId"]}},
            )
            continue
        view = public_view(account, ACCOUNT_ID_FIELDS)
        view["role"] = link.get("role", "")
        view["isCurrent"] = account["accountId"] == auth.account_key
        accounts.append(view)

    return success_response({
        "accounts": accounts,
        "currentAccountId": public(EntityKind.ACCOUNT, auth.account_id),
    })


@router.get("/{account_id}")
async def get_account(
    account_id: str,
    auth: AuthorizationContext = Depends(require_auth_context),
    services: Services = Depends(get_services),
):
    account_key = EntityId.parse(EntityKind.ACCOUNT, account_id).key
    await ensure_account_access(services, auth.user_key, account_key)

    try:
        account = await services.store.get_item(
            services.settings.table("accounts"), {"accountId": account_key},
        )
    except ItemNotFound:
        raise NotFoundError("Account not found")

    return success_response(public_view(account, ACCOUNT_ID_FIELDS))


@router.put("/{account_id}")
async def update_account(
    account_id: str,
    body: UpdateAccountRequest,
    auth: AuthorizationContext = Depends(require_auth_context),
    services: Services = Depends(get_services),
):
    account_key = EntityId.parse(EntityKind.ACCOUNT, account_id).key
    await ensure_account_access(services, auth.user_key, account_key)

    updates = body.model_dump(exclude_none=True)
    # Blank name or company leaves the stored value alone
    for field in ("name", "company"):
        if updates.get(field) == "":
            del updates[field]
    if not updates:
        raise ValidationError("No fields to update")
    updates["updatedAt"] = now_iso()

    try:
        account = await services.store.update_item(
            services.settings.table("accounts"), {"accountId": account_key}, updates,
        )
    except ItemNotFound:
        raise NotFoundError("Account not found")

    get_audit_logger().info(
        "Account updated",
        extra={"audit_data": {
            "user_id": auth.user_id,
            "account_id": account_key,
            "fields": sorted(k for k in updates if k != "updatedAt"),
        }},
    )
    return success_response(public_view(account, ACCOUNT_ID_FIELDS), message="Account updated successfully")
