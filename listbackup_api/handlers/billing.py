"""Billing endpoints backed by Stripe."""

import uuid

from fastapi import APIRouter, Depends

from listbackup_api.api.models import CancelSubscriptionRequest
from listbackup_api.api.response import success_response
from listbackup_api.core.clock import now_iso, now_millis
from listbackup_api.errors import ConflictError, DependencyError, NotFoundError
from listbackup_api.logging.audit import get_audit_logger
from listbackup_api.security.auth import AuthorizationContext, require_auth_context
from listbackup_api.services.container import Services, get_services

router = APIRouter(prefix="/billing", tags=["billing"])


def sort_plans(plans: list[dict]) -> list[dict]:
    """Popular plans first, then cheapest first. Stable for equal keys."""
    return sorted(plans, key=lambda p: (not p.get("popular", False), p.get("amount", 0)))


@router.get("/plans")
async def list_plans(services: Services = Depends(get_services)):
    page = await services.store.query_index(
        services.settings.table("billing-plans"), "StatusIndex", {"status": "active"},
    )
    return success_response({"plans": sort_plans(page.items)})


@router.get("/payment-methods")
async def list_payment_methods(
    auth: AuthorizationContext = Depends(require_auth_context),
    services: Services = Depends(get_services),
):
    customer = await services.store.find_one(
        services.settings.table("billing-customers"), "AccountIndex", {"accountId": auth.account_key},
    )
    if customer is None:
        raise NotFoundError("Billing customer not found")

    methods = await services.payments.list_payment_methods(customer["stripeCustomerId"])
    return success_response({"paymentMethods": [m.to_dict() for m in methods]})


@router.post("/subscription/cancel")
async def cancel_subscription(
    body: CancelSubscriptionRequest,
    auth: AuthorizationContext = Depends(require_auth_context),
    services: Services = Depends(get_services),
):
    settings = services.settings
    logger = get_audit_logger()

    subscription = await services.store.find_one(
        settings.table("subscriptions"), "AccountIndex", {"accountId": auth.account_key},
    )
    if subscription is None:
        raise NotFoundError("No subscription found")
    if subscription.get("status") == "canceled":
        raise ConflictError("Subscription is already canceled")
    if body.cancel_at_period_end and subscription.get("cancelAtPeriodEnd"):
        raise ConflictError("Subscription is already scheduled for cancellation")

    await services.payments.cancel_subscription(
        subscription["stripeSubscriptionId"], at_period_end=body.cancel_at_period_end,
    )

    now = now_iso()
    updates = {
        "cancelAtPeriodEnd": body.cancel_at_period_end,
        "cancellationReason": body.cancellation_reason,
        "updatedAt": now,
    }
    if not body.cancel_at_period_end:
        updates["status"] = "canceled"
        updates["canceledAt"] = now
    updated = await services.store.update_item(
        settings.table("subscriptions"), {"subscriptionId": subscription["subscriptionId"]}, updates,
    )

    try:
        await services.store.put_item(settings.table("usage"), {
            "eventId": f"usage:{uuid.uuid4()}",
            "accountId": auth.account_key,
            "userId": auth.user_key,
            "eventType": "subscription_canceled",
            "timestamp": now_millis(),
            "metadata": {
                "subscriptionId": subscription["subscriptionId"],
                "cancelAtPeriodEnd": body.cancel_at_period_end,
                "reason": body.cancellation_reason,
            },
        })
    except DependencyError:
        logger.warning(
            "Failed to record cancellation usage event",
            extra={"audit_data": {"subscription_id": subscription["subscriptionId"]}},
        )

    if body.cancel_at_period_end:
        message = "Subscription will be canceled at the end of the current billing period"
    else:
        message = "Subscription has been canceled immediately"

    logger.info(
        "Subscription canceled",
        extra={"audit_data": {
            "account_id": auth.account_key,
            "subscription_id": subscription["subscriptionId"],
            "at_period_end": body.cancel_at_period_end,
        }},
    )
    return success_response({
        "subscriptionId": subscription["subscriptionId"],
        "status": updated.get("status", subscription.get("status", "")),
        "cancelAtPeriodEnd": body.cancel_at_period_end,
        "message": message,
    }, message=message)
