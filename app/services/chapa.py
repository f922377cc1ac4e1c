import json
import logging
import random
import time
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx
from prometheus_client import Counter

from app.core.exceptions import GatewayError
from app.schemas.payment import is_blank

logger = logging.getLogger(__name__)

PROVIDER_CALLS = Counter("chapa_requests_total", "Outbound Chapa API calls", ["operation", "outcome"])

DEFAULT_FIRST_NAME = "User"
DEFAULT_LAST_NAME = "Customer"
DEFAULT_EMAIL = "user@example.com"


def generate_tx_ref() -> str:
    """Build a transaction reference of the form txn_<epoch-millis>_<0-999>"""
    return f"txn_{int(time.time() * 1000)}_{random.randint(0, 999)}"


def format_amount(amount: Any) -> str:
    """Text form of an amount of any JSON type"""
    if isinstance(amount, str):
        return amount
    if isinstance(amount, bool):
        return "true" if amount else "false"
    if isinstance(amount, float) and amount.is_integer():
        return str(int(amount))
    if isinstance(amount, Decimal):
        return format(amount.normalize(), "f")
    if isinstance(amount, (list, dict)):
        return json.dumps(amount, separators=(",", ":"), ensure_ascii=False)
    return str(amount)


def _error_payload(exc: httpx.HTTPError) -> Any:
    """Provider error body when a response exists, otherwise the error message."""
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            return exc.response.json()
        except ValueError:
            if exc.response.text:
                return exc.response.text
    return str(exc) or exc.__class__.__name__


class ChapaClient:
    """Outbound client for the Chapa transaction API.

    One instance is created by the application lifespan and shared by all
    requests. The bearer credential is injected at construction time.
    """

    def __init__(
        self,
        secret_key: str,
        callback_url: str,
        return_url: str,
        base_url: str = "https://api.chapa.co/v1",
        currency: str = "ETB",
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.callback_url = callback_url
        self.return_url = return_url
        self.currency = currency
        self.headers = {
            "Authorization": f"Bearer {secret_key}",
            "Content-Type": "application/json",
        }
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=self.headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def initialize_payment(self, payment_data: Dict[str, Any]) -> Dict[str, Any]:
        """Initialize a Chapa transaction.

        Args:
            payment_data: Mapping with ``amount``, ``email``, ``firstName`` and
                ``lastName`` keys. Falsy names/email are replaced with
                placeholder values before sending.

        Returns:
            Dict: ``success``, ``tx_ref`` and ``checkout_url`` merged with the
            provider's response body

        Raises:
            GatewayError: The provider rejected the call or could not be reached
        """
        tx_ref = generate_tx_ref()

        defaults = {"email": DEFAULT_EMAIL, "firstName": DEFAULT_FIRST_NAME, "lastName": DEFAULT_LAST_NAME}
        customer = {}
        for field, fallback in defaults.items():
            value = payment_data.get(field)
            if is_blank(value):
                logger.warning("Missing %s for %s, substituting %r", field, tx_ref, fallback)
                value = fallback
            customer[field] = value

        payload = {
            "amount": format_amount(payment_data.get("amount")),
            "currency": self.currency,
            "email": customer["email"],
            "first_name": customer["firstName"],
            "last_name": customer["lastName"],
            "tx_ref": tx_ref,
            "callback_url": self.callback_url,
            "return_url": self.return_url,
        }
        logger.info("Sending data to Chapa API: %s", payload)

        try:
            response = await self._client.post("/transaction/initialize", json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            PROVIDER_CALLS.labels(operation="initialize", outcome="error").inc()
            error_payload = _error_payload(e)
            logger.error("Chapa initialization error: %s", error_payload)
            status_code = e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None
            raise GatewayError("initialize", error_payload, status_code) from e

        try:
            data = response.json()
            checkout_url = data["data"]["checkout_url"]
        except (ValueError, KeyError, TypeError) as e:
            PROVIDER_CALLS.labels(operation="initialize", outcome="error").inc()
            logger.error("Chapa initialization returned no checkout_url: %s", response.text)
            raise GatewayError("initialize", f"Unexpected provider response: {response.text}") from e

        PROVIDER_CALLS.labels(operation="initialize", outcome="success").inc()
        logger.info("Chapa API response: %s", data)

        return {
            "success": True,
            "tx_ref": tx_ref,
            "checkout_url": checkout_url,
            **data,
        }

    async def verify_payment(self, tx_ref: str) -> Any:
        """Verify a transaction by reference and return Chapa's body unchanged"""
        if not tx_ref:
            raise ValueError("tx_ref is required")

        try:
            response = await self._client.get(f"/transaction/verify/{tx_ref}")
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            PROVIDER_CALLS.labels(operation="verify", outcome="error").inc()
            error_payload = _error_payload(e)
            logger.error("Chapa verification error: %s", error_payload)
            status_code = e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None
            raise GatewayError("verify", error_payload, status_code) from e
        except ValueError as e:
            PROVIDER_CALLS.labels(operation="verify", outcome="error").inc()
            logger.error("Chapa verification returned non-JSON body: %s", response.text)
            raise GatewayError("verify", response.text or str(e)) from e

        PROVIDER_CALLS.labels(operation="verify", outcome="success").inc()
        return data
