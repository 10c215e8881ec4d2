"""
Transfer processor implementations.
Stripe Connect over HTTP, plus a mock for development.
"""
import uuid
import logging
from typing import Optional, Dict

import httpx

from leadscout.core.exceptions import ExternalServiceError
from leadscout.services.integrations.base import TransferProcessor

logger = logging.getLogger(__name__)


class StripeTransferProcessor(TransferProcessor):
    """
    Stripe Connect transfers.
    API Docs: https://docs.stripe.com/api/transfers/create
    """

    def __init__(
        self,
        api_key: str,
        currency: str = "eur",
        base_url: str = "https://api.stripe.com/v1",
        timeout: float = 30.0
    ):
        self.api_key = api_key
        self.currency = currency
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(timeout=timeout)

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def create_transfer(
        self,
        destination: str,
        amount_minor_units: int,
        metadata: Dict[str, str],
        idempotency_key: Optional[str] = None
    ) -> str:
        if not self.api_key:
            raise ExternalServiceError("Stripe", "API key not configured")

        form = {
            "amount": str(amount_minor_units),
            "currency": self.currency,
            "destination": destination,
        }
        for key, value in metadata.items():
            form[f"metadata[{key}]"] = str(value)

        headers = dict(self.headers)
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key

        try:
            response = await self.client.post(f"{self.base_url}/transfers", data=form, headers=headers)
        except httpx.TimeoutException:
            raise ExternalServiceError("Stripe", "Request timed out")
        except httpx.HTTPError as e:
            raise ExternalServiceError("Stripe", f"Request failed: {e}")

        if response.status_code >= 400:
            try:
                message = response.json().get("error", {}).get("message", response.text)
            except ValueError:
                message = response.text
            logger.warning(f"Stripe transfer to {destination} rejected ({response.status_code}): {message}")
            raise ExternalServiceError("Stripe", message)

        try:
            transfer_id = response.json().get("id")
        except ValueError:
            raise ExternalServiceError("Stripe", "Response was not valid JSON")
        if not transfer_id:
            raise ExternalServiceError("Stripe", "Response did not include a transfer id")
        return transfer_id

    async def close(self):
        await self.client.aclose()


class MockTransferProcessor(TransferProcessor):
    """
    Mock transfer provider for development/testing.
    Destinations containing "fail" are refused.
    """

    def __init__(self):
        self.transfers: Dict[str, Dict] = {}

    async def create_transfer(
        self,
        destination: str,
        amount_minor_units: int,
        metadata: Dict[str, str],
        idempotency_key: Optional[str] = None
    ) -> str:
        if "fail" in destination.lower():
            raise ExternalServiceError("Mock transfer", f"Destination {destination} refused")

        # Same key, same transfer
        key = idempotency_key or str(uuid.uuid4())
        if key not in self.transfers:
            self.transfers[key] = {
                "id": f"tr_mock_{uuid.uuid4().hex[:16]}",
                "destination": destination,
                "amount": amount_minor_units,
                "metadata": dict(metadata),
            }
            logger.info(f"[MOCK TRANSFER] {amount_minor_units} to {destination}")
        return self.transfers[key]["id"]
