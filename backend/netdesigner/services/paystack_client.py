"""
Paystack API client
===================
Thin async wrapper over the Paystack REST API. Amounts are in the minor
currency unit (kobo). Every call returns the `data` member of the response;
non-2xx answers or `status: false` raise PaymentProviderError.
"""
import hashlib
import hmac
from typing import Optional, Dict, Any, List

import httpx

from netdesigner.core.config import settings
from netdesigner.core.exceptions import PaymentProviderError
from netdesigner.core.logging_config import logger


def compute_signature(body: bytes, secret: Optional[str] = None) -> str:
    """HMAC-SHA512 hex digest Paystack sends as x-paystack-signature"""
    key = (secret if secret is not None else settings.PAYSTACK_SECRET_KEY).encode()
    return hmac.new(key, body, hashlib.sha512).hexdigest()


def verify_webhook_signature(body: bytes, signature: Optional[str]) -> bool:
    if not signature or not settings.PAYSTACK_SECRET_KEY:
        return False
    return hmac.compare_digest(compute_signature(body), signature)


class PaystackClient:
    """Async Paystack client"""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = secret_key if secret_key is not None else settings.PAYSTACK_SECRET_KEY
        self.base_url = (base_url or settings.PAYSTACK_BASE_URL).rstrip("/")
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        if not self.is_configured:
            raise PaymentProviderError("Payment provider is not configured")

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=settings.PAYSTACK_TIMEOUT,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, json=json, params=params, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error(f"[Paystack] {method} {path} failed: {e}")
            raise PaymentProviderError(f"Payment provider unreachable: {e}")

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400 or not body.get("status", False):
            message = body.get("message") or f"Paystack request failed with status {response.status_code}"
            logger.warning(f"[Paystack] {method} {path} -> {response.status_code}: {message}")
            raise PaymentProviderError(message, provider_status=response.status_code)

        return body.get("data")

    # ==================== Transactions ====================

    async def initialize_transaction(
        self,
        email: str,
        amount: int,
        plan_code: Optional[str] = None,
        callback_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Start a checkout; returns {authorization_url, access_code, reference}"""
        payload: Dict[str, Any] = {"email": email, "amount": amount}
        if plan_code:
            payload["plan"] = plan_code
        if callback_url:
            payload["callback_url"] = callback_url
        if metadata:
            payload["metadata"] = metadata
        return await self._request("POST", "/transaction/initialize", json=payload)

    async def verify_transaction(self, reference: str) -> Dict[str, Any]:
        return await self._request("GET", f"/transaction/verify/{reference}")

    async def list_transactions(self, customer: str, per_page: int = 50) -> List[Dict[str, Any]]:
        return await self._request("GET", "/transaction", params={"customer": customer, "perPage": per_page}) or []

    # ==================== Subscriptions ====================

    async def create_subscription(
        self,
        customer: str,
        plan_code: str,
        authorization: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {"customer": customer, "plan": plan_code}
        if authorization:
            payload["authorization"] = authorization
        return await self._request("POST", "/subscription", json=payload)

    async def disable_subscription(self, code: str, email_token: str) -> Any:
        return await self._request("POST", "/subscription/disable", json={"code": code, "token": email_token})

    async def fetch_subscription(self, code: str) -> Dict[str, Any]:
        return await self._request("GET", f"/subscription/{code}")

    # ==================== Plans & customers ====================

    async def list_plans(self, status: str = "active", per_page: int = 100) -> List[Dict[str, Any]]:
        return await self._request("GET", "/plan", params={"status": status, "perPage": per_page}) or []

    async def create_customer(
        self,
        email: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {"email": email}
        if first_name:
            payload["first_name"] = first_name
        if last_name:
            payload["last_name"] = last_name
        return await self._request("POST", "/customer", json=payload)


paystack_client = PaystackClient()
