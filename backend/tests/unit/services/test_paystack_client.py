"""
Unit Tests for the Paystack client and webhook signatures
"""
import hashlib
import hmac
import json

import httpx
import pytest

from netdesigner.core.exceptions import PaymentProviderError
from netdesigner.services.paystack_client import PaystackClient, compute_signature, verify_webhook_signature


class TestSignatures:

    def test_signature_is_hmac_sha512(self):
        body = b'{"event":"charge.success"}'
        expected = hmac.new(b"sk_test_secret", body, hashlib.sha512).hexdigest()

        assert compute_signature(body) == expected
        assert verify_webhook_signature(body, expected) is True

    def test_tampered_body_rejected(self):
        signature = compute_signature(b'{"amount": 100}')
        assert verify_webhook_signature(b'{"amount": 999}', signature) is False

    def test_missing_signature_rejected(self):
        assert verify_webhook_signature(b"{}", None) is False


def client_with(handler) -> PaystackClient:
    return PaystackClient(secret_key="sk_test_secret", transport=httpx.MockTransport(handler))


class TestClient:

    async def test_returns_data_member(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["auth"] = request.headers["authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "status": True,
                "data": {"authorization_url": "https://checkout.paystack.com/abc", "reference": "ref-1"},
            })

        data = await client_with(handler).initialize_transaction("a@b.com", 500000, plan_code="PLN_pro")

        assert data["reference"] == "ref-1"
        assert captured["auth"] == "Bearer sk_test_secret"
        assert captured["body"] == {"email": "a@b.com", "amount": 500000, "plan": "PLN_pro"}

    async def test_error_status_raises(self):
        def handler(request):
            return httpx.Response(400, json={"status": False, "message": "Invalid plan"})

        with pytest.raises(PaymentProviderError) as exc_info:
            await client_with(handler).list_plans()

        assert exc_info.value.message == "Invalid plan"
        assert exc_info.value.details["provider_status"] == 400
        assert exc_info.value.status_code == 502

    async def test_status_false_raises(self):
        def handler(request):
            return httpx.Response(200, json={"status": False, "message": "Subscription not found"})

        with pytest.raises(PaymentProviderError):
            await client_with(handler).fetch_subscription("SUB_x")

    async def test_unconfigured_client(self):
        with pytest.raises(PaymentProviderError):
            await PaystackClient(secret_key="").verify_transaction("ref")

    async def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        with pytest.raises(PaymentProviderError) as exc_info:
            await client_with(handler).list_plans()
        assert "unreachable" in exc_info.value.message
