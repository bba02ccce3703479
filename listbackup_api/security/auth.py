"""Authorization context resolution.

API Gateway attaches the Lambda authorizer's output to every request under
``requestContext.authorizer``. HTTP APIs nest it under a ``lambda`` key,
REST APIs put the fields at the top level. The payload is classified once
into one of the two shapes and resolved into an ``AuthorizationContext``.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from fastapi import Depends, Request

from listbackup_api.core.ids import EntityKind, canonical
from listbackup_api.errors import AuthError


@dataclass(frozen=True)
class AuthorizationContext:
    """Resolved caller identity. Both fields are set, or neither is."""

    user_id: str = ""
    account_id: str = ""

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id and self.account_id)

    @property
    def user_key(self) -> str:
        return canonical(EntityKind.USER, self.user_id)

    @property
    def account_key(self) -> str:
        return canonical(EntityKind.ACCOUNT, self.account_id)


ANONYMOUS = AuthorizationContext()


@dataclass(frozen=True)
class NestedLambdaPayload:
    claims: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FlatPayload:
    claims: Mapping[str, Any] = field(default_factory=dict)


AuthorizerPayload = NestedLambdaPayload | FlatPayload


def classify_payload(raw: Any) -> AuthorizerPayload:
    """Decide which authorizer layout ``raw`` uses."""
    if not isinstance(raw, Mapping):
        return FlatPayload()
    nested = raw.get("lambda")
    if isinstance(nested, Mapping):
        return NestedLambdaPayload(claims=nested)
    return FlatPayload(claims=raw)


def _string_claim(claims: Mapping[str, Any], name: str) -> str:
    value = claims.get(name)
    return value if isinstance(value, str) else ""


def resolve_auth_context(raw: Any) -> AuthorizationContext:
    """Resolve the caller from an authorizer payload.

    The nested ``lambda`` map takes precedence over top-level fields and is
    read exclusively when present. A partial identity resolves to
    ``ANONYMOUS``.
    """
    payload = classify_payload(raw)
    user_id = _string_claim(payload.claims, "userId")
    account_id = _string_claim(payload.claims, "accountId")
    if not user_id or not account_id:
        return ANONYMOUS
    return AuthorizationContext(user_id=user_id, account_id=account_id)


def get_authorizer_payload(request: Request) -> Mapping[str, Any]:
    """Read the authorizer output from the API Gateway event Mangum attached."""
    event = request.scope.get("aws.event") or {}
    request_context = event.get("requestContext") or {}
    return request_context.get("authorizer") or {}


async def optional_auth_context(
    payload: Mapping[str, Any] = Depends(get_authorizer_payload),
) -> AuthorizationContext:
    return resolve_auth_context(payload)


async def require_auth_context(
    context: AuthorizationContext = Depends(optional_auth_context),
) -> AuthorizationContext:
    """FastAPI dependency for account- or user-scoped endpoints."""
    if not context.is_authenticated:
        raise AuthError("User not authenticated")
    return context
