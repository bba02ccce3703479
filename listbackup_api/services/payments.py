"""Payments provider abstraction and the Stripe REST implementation."""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass

import httpx

from listbackup_api.errors import DependencyError
from listbackup_api.logging.audit import get_audit_logger


@dataclass
class CardDetails:
    brand: str = ""
    last4: str = ""
    exp_month: int = 0
    exp_year: int = 0
    country: str = ""


@dataclass
class PaymentMethod:
    id: str
    type: str
    customer: str = ""
    card: CardDetails | None = None

    def to_dict(self) -> dict:
        return asdict(self)


class PaymentsProvider(ABC):

    @abstractmethod
    async def list_payment_methods(self, customer_id: str) -> list[PaymentMethod]:
        ...

    @abstractmethod
    async def cancel_subscription(self, subscription_id: str, at_period_end: bool) -> dict:
        """Cancel now, or flag the subscription to lapse at period end.

        Returns the provider's subscription object.
        """
        ...

    async def close(self) -> None:
        """Cleanup resources. Override if the provider holds connections."""
        pass


class StripeClient(PaymentsProvider):
    """Talks to the Stripe REST API with form-encoded requests."""

    def __init__(self, secret_key: str, api_base: str = "https://api.stripe.com", timeout: float = 20.0):
        self._secret_key = secret_key
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout, connect=5.0))
        return self._client

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        client = await self._get_client()
        headers = {"Authorization": f"Bearer {self._secret_key}"}
        try:
            response = await client.request(method, f"{self._api_base}{path}", headers=headers, **kwargs)
        except httpx.ConnectError as e:
            raise DependencyError("Cannot reach payments provider") from e
        except httpx.TimeoutException as e:
            raise DependencyError("Payments provider timed out") from e
        except httpx.HTTPError as e:
            raise DependencyError(f"Payments provider error: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.status_code >= 400:
            error = body.get("error", {}) if isinstance(body, dict) else {}
            get_audit_logger().error(
                "Stripe request failed",
                extra={"audit_data": {
                    "path": path,
                    "status": response.status_code,
                    "stripe_error_type": error.get("type", ""),
                }},
            )
            raise DependencyError(error.get("message") or f"Stripe returned {response.status_code}")
        return body

    async def list_payment_methods(self, customer_id: str) -> list[PaymentMethod]:
        body = await self._request(
            "GET", "/v1/payment_methods", params={"customer": customer_id, "type": "card"},
        )
        methods = []
        for pm in body.get("data", []):
            card = pm.get("card")
            methods.append(PaymentMethod(
                id=pm["id"],
                type=pm.get("type", ""),
                customer=pm.get("customer") or "",
                card=CardDetails(
                    brand=card.get("brand", ""),
                    last4=card.get("last4", ""),
                    exp_month=card.get("exp_month", 0),
                    exp_year=card.get("exp_year", 0),
                    country=card.get("country") or "",
                ) if card else None,
            ))
        return methods

    async def cancel_subscription(self, subscription_id: str, at_period_end: bool) -> dict:
        path = f"/v1/subscriptions/{subscription_id}"
        if at_period_end:
            return await self._request("POST", path, data={"cancel_at_period_end": "true"})
        return await self._request("DELETE", path)

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
