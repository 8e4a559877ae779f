"""Stripe gateway - PaymentIntent and Refund calls over the Stripe REST API"""

import logging
from typing import Optional

import httpx

from ...config import STRIPE_API_URL, STRIPE_SECRET_KEY, STRIPE_TIMEOUT
from ...security_utils import mask_sensitive_data

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """Stripe answered with an error object (card declined, invalid request, ...)"""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class PaymentGatewayUnavailable(Exception):
    """Stripe could not be reached or is not configured"""


class StripeGateway:
    """Thin async client for the three Stripe operations the booking flow needs"""

    def __init__(
        self,
        api_key: Optional[str] = STRIPE_SECRET_KEY,
        base_url: str = STRIPE_API_URL,
        timeout: float = STRIPE_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

        if not self.api_key:
            logger.warning("STRIPE_SECRET_KEY not set; payment endpoints will fail until configured")

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def _request(self, method: str, path: str, data: Optional[dict] = None) -> dict:
        if not self.api_key:
            raise PaymentGatewayUnavailable("Stripe is not configured")

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self.transport
            ) as http_client:
                response = await http_client.request(
                    method,
                    path,
                    data=data,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Stripe request {method} {path} failed: {type(e).__name__}: {e}")
            raise PaymentGatewayUnavailable("Payment gateway request failed") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400:
            error = body.get("error") or {}
            message = error.get("message") or f"Payment gateway returned HTTP {response.status_code}"
            logger.warning(
                f"⚠️ Stripe {method} {path} -> {response.status_code} "
                f"({error.get('type')}/{error.get('code')}): {message}"
            )
            raise PaymentGatewayError(message, response.status_code, error.get("code"))

        return body

    async def create_payment_intent(
        self, amount: int, currency: str = "usd", metadata: Optional[dict] = None
    ) -> dict:
        """Create a card PaymentIntent for ``amount`` minor units with automatic capture"""
        data = {
            "amount": str(amount),
            "currency": currency,
            "payment_method_types[]": "card",
            "capture_method": "automatic",
        }
        for key, value in (metadata or {}).items():
            if value is not None:
                data[f"metadata[{key}]"] = str(value)

        intent = await self._request("POST", "/payment_intents", data)
        logger.info(
            f"💳 PaymentIntent created: {mask_sensitive_data(intent.get('id', ''), 8)} "
            f"({amount} {currency})"
        )
        return intent

    async def retrieve_payment_intent(self, payment_intent_id: str) -> dict:
        return await self._request("GET", f"/payment_intents/{payment_intent_id}")

    async def create_refund(self, payment_intent_id: str, reason: Optional[str] = None) -> dict:
        """Refund the full captured amount of a PaymentIntent"""
        data = {"payment_intent": payment_intent_id}
        if reason:
            data["reason"] = reason

        refund = await self._request("POST", "/refunds", data)
        logger.info(f"💳 Refund {refund.get('id')} created for {mask_sensitive_data(payment_intent_id, 8)}")
        return refund


# Singleton instance
stripe_gateway = StripeGateway()
