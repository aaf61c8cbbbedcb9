"""HTTP connector for the marketplace order ledger."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from lumina_checkout.config import CheckoutSettings
from lumina_checkout.connectors.base import OrderLedgerClient, OrderRequest
from lumina_checkout.exceptions import OrderCreateError

logger = logging.getLogger(__name__)

ORDERS_PATH = "/api/marketplace/orders"


def build_order_payload(request: OrderRequest) -> Dict[str, Any]:
    """Serialize an OrderRequest into the ledger's order body."""
    shipping = request.shipping
    payload: Dict[str, Any] = {
        "shopId": request.seller_id,
        "items": [
            {
                "productId": item.product_id,
                "quantity": item.quantity,
                "priceAxm": str(item.unit_price_axm),
            }
            for item in request.items
        ],
        "txHash": request.seller_transaction_id,
        "platformFeeTxHash": request.fee_transaction_id or "",
        "shippingName": shipping.name,
        "shippingEmail": shipping.email,
        "notes": shipping.notes,
    }
    if shipping.address:
        payload["shippingAddress"] = shipping.address
    return payload


class HttpOrderLedgerClient(OrderLedgerClient):
    """Order ledger reached over the marketplace REST API."""

    def __init__(
        self,
        base_url: str,
        api_token: Optional[str] = None,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_token = api_token
        self._timeout = timeout
        self._client = http_client

    @classmethod
    def from_settings(
        cls,
        settings: CheckoutSettings,
        api_token: Optional[str] = None,
    ) -> "HttpOrderLedgerClient":
        return cls(
            base_url=settings.ledger_base_url,
            api_token=api_token,
            timeout=settings.ledger_timeout_seconds,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Content-Type": "application/json"}
            if self._api_token:
                headers["Authorization"] = f"Bearer {self._api_token}"
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=self._timeout,
            )
        return self._client

    async def create_order(self, request: OrderRequest) -> str:
        client = await self._get_client()
        headers = {}
        if request.idempotency_key:
            headers["Idempotency-Key"] = request.idempotency_key

        try:
            response = await client.post(
                ORDERS_PATH,
                json=build_order_payload(request),
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.error(f"Order ledger unreachable for shop {request.seller_id}: {e}")
            raise OrderCreateError(details={"cause": str(e)}) from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {"error": response.text}
            logger.error(
                f"Order ledger rejected order for shop {request.seller_id}: "
                f"{response.status_code} {body}"
            )
            raise OrderCreateError(
                status_code=response.status_code,
                details={"response": body},
            )

        try:
            order = response.json()
        except ValueError as e:
            raise OrderCreateError(details={"cause": "invalid JSON response"}) from e

        order_id = order.get("id") if isinstance(order, dict) else None
        if order_id is None:
            raise OrderCreateError(details={"cause": "response has no order id"})
        return str(order_id)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "HttpOrderLedgerClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
