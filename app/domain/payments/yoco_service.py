"""Yoco service - Integration with the Yoco Checkout API"""

import logging
from typing import Optional

import httpx

from ... import config

logger = logging.getLogger(__name__)


class YocoAPIError(Exception):
    """Non-success response from the Yoco API"""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class YocoService:
    """Service for Yoco Checkout API operations"""

    def __init__(self, test_mode: bool = False, api_key: Optional[str] = None):
        self.test_mode = test_mode
        self.api_key = api_key or (
            config.YOCO_TEST_SECRET_KEY if test_mode else config.YOCO_SECRET_KEY
        )
        self.base_url = config.YOCO_API_URL.rstrip("/")

        if not self.api_key:
            logger.warning(
                f"{'YOCO_TEST_SECRET_KEY' if test_mode else 'YOCO_SECRET_KEY'} not set; "
                "checkouts will fail until configured"
            )

    def is_available(self) -> bool:
        """Check if a secret key is configured"""
        return bool(self.api_key)

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> dict:
        if not self.api_key:
            raise YocoAPIError(500, "Payment gateway not configured")

        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.request(
                method, f"{self.base_url}{path}", json=payload, headers=headers
            )

        if response.status_code >= 400:
            logger.error(f"❌ Yoco API {method} {path} failed: {response.status_code} {response.text}")
            raise YocoAPIError(response.status_code, response.text or "Yoco API error")

        return response.json()

    async def create_checkout(
        self,
        amount_cents: int,
        currency: str,
        success_url: str,
        cancel_url: str,
        failure_url: str,
        metadata: Optional[dict] = None,
    ) -> dict:
        """Create a hosted checkout; the response carries `id` and `redirectUrl`"""
        checkout = await self._request(
            "POST",
            "/checkouts",
            {
                "amount": amount_cents,
                "currency": currency,
                "cancelUrl": cancel_url,
                "successUrl": success_url,
                "failureUrl": failure_url,
                "metadata": metadata or {},
            },
        )
        logger.info(f"💳 Yoco checkout created: {checkout.get('id')} ({'test' if self.test_mode else 'live'})")
        return checkout

    async def get_checkout(self, checkout_id: str) -> dict:
        return await self._request("GET", f"/checkouts/{checkout_id}")

    async def register_webhook(self, name: str, url: str) -> dict:
        """Subscribe a webhook endpoint; the response includes the signing secret"""
        return await self._request("POST", "/webhooks", {"name": name, "url": url})


async def verify_checkout(checkout_id: str) -> Optional[dict]:
    """
    Fetch a checkout straight from Yoco, trying the live key and then the test key.
    Returns None when neither key can see it.
    """
    for key in (config.YOCO_SECRET_KEY, config.YOCO_TEST_SECRET_KEY):
        if not key:
            continue
        try:
            return await YocoService(api_key=key).get_checkout(checkout_id)
        except (YocoAPIError, httpx.HTTPError) as e:
            logger.warning(f"⚠️ Checkout {checkout_id} not verified with this key: {e}")
    return None
