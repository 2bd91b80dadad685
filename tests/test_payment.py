"""
Tests for the Paystack adapter, driven through httpx.MockTransport.
"""
import asyncio
import json

import httpx

from restobot.config import Settings
from restobot.payment import (
    DECLINED,
    GATEWAY_ERROR,
    INVALID_AMOUNT,
    NETWORK_ERROR,
    NOT_CONFIGURED,
    PENDING,
    PaystackGateway,
    from_minor_units,
    to_minor_units,
)

BASE_URL = "https://api.paystack.test"


def make_gateway(handler, secret="sk_test_123", callback=""):
    config = Settings(
        paystack_secret_key=secret,
        paystack_base_url=BASE_URL,
        paystack_callback_url=callback,
    )
    return PaystackGateway(config, transport=httpx.MockTransport(handler))


def test_minor_unit_conversion():
    assert to_minor_units(1500) == 150000
    assert from_minor_units(150000) == 1500


class TestInitialize:
    def test_sends_kobo_and_returns_authorization_url(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "message": "Authorization URL created",
                    "data": {
                        "authorization_url": "https://checkout.paystack.com/xyz",
                        "access_code": "xyz",
                        "reference": "ORDER_ABCD1234",
                    },
                },
            )

        gw = make_gateway(handler, callback="http://localhost:7000/")
        result = asyncio.run(gw.initialize("me@example.com", 2900, "ORDER_ABCD1234"))

        assert result.success
        assert result.redirect_url == "https://checkout.paystack.com/xyz"
        assert seen["url"] == f"{BASE_URL}/transaction/initialize"
        assert seen["auth"] == "Bearer sk_test_123"
        assert seen["body"]["amount"] == 290000
        assert seen["body"]["email"] == "me@example.com"
        assert seen["body"]["reference"] == "ORDER_ABCD1234"
        assert seen["body"]["callback_url"] == "http://localhost:7000/"
        assert seen["body"]["metadata"]["custom_fields"][0]["value"] == "ORDER_ABCD1234"

    def test_missing_secret_fails_without_network(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        gw = make_gateway(handler, secret="")
        result = asyncio.run(gw.initialize("me@example.com", 1000, "ORDER_ABCD1234"))

        assert not result.success
        assert result.reason == NOT_CONFIGURED
        assert calls == []

    def test_non_positive_amount(self):
        gw = make_gateway(lambda request: httpx.Response(500))
        result = asyncio.run(gw.initialize("me@example.com", 0, "ORDER_ABCD1234"))
        assert result.reason == INVALID_AMOUNT

    def test_http_error_is_gateway_error(self):
        def handler(request):
            return httpx.Response(401, json={"status": False, "message": "Invalid key"})

        result = asyncio.run(make_gateway(handler).initialize("me@example.com", 1000, "ORDER_ABCD1234"))

        assert not result.success
        assert result.reason == GATEWAY_ERROR

    def test_unsuccessful_body_is_gateway_error(self):
        def handler(request):
            return httpx.Response(200, json={"status": False, "message": "Duplicate Transaction Reference"})

        result = asyncio.run(make_gateway(handler).initialize("me@example.com", 1000, "ORDER_ABCD1234"))

        assert result.reason == GATEWAY_ERROR
        assert result.message == "Duplicate Transaction Reference"

    def test_connection_failure_is_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = asyncio.run(make_gateway(handler).initialize("me@example.com", 1000, "ORDER_ABCD1234"))

        assert not result.success
        assert result.reason == NETWORK_ERROR


class TestVerify:
    @staticmethod
    def _verify_handler(status, amount=290000):
        def handler(request):
            assert request.url.path == "/transaction/verify/ORDER_ABCD1234"
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "message": "Verification successful",
                    "data": {
                        "reference": "ORDER_ABCD1234",
                        "amount": amount,
                        "status": status,
                        "paid_at": "2024-05-01T12:30:00.000Z",
                        "customer": {"email": "me@example.com", "customer_code": "CUS_1"},
                    },
                },
            )

        return handler

    def test_success_converts_back_from_kobo(self):
        gw = make_gateway(self._verify_handler("success"))
        result = asyncio.run(gw.verify("ORDER_ABCD1234"))

        assert result.verified
        assert result.amount == 2900
        assert result.paid_at.year == 2024

    def test_failed_transaction_is_declined(self):
        result = asyncio.run(make_gateway(self._verify_handler("failed")).verify("ORDER_ABCD1234"))

        assert not result.verified
        assert result.reason == DECLINED

    def test_ongoing_transaction_is_pending(self):
        result = asyncio.run(make_gateway(self._verify_handler("ongoing")).verify("ORDER_ABCD1234"))

        assert not result.verified
        assert result.reason == PENDING

    def test_unknown_reference_is_gateway_error(self):
        def handler(request):
            return httpx.Response(400, json={"status": False, "message": "Transaction reference not found"})

        result = asyncio.run(make_gateway(handler).verify("ORDER_ABCD1234"))

        assert not result.verified
        assert result.reason == GATEWAY_ERROR

    def test_reference_cannot_leave_verify_path(self):
        seen = []

        def handler(request):
            seen.append(request.url.raw_path.decode())
            return httpx.Response(
                200,
                json={"status": True, "data": {"reference": "T_OTHER", "amount": 100, "status": "success"}},
            )

        result = asyncio.run(make_gateway(handler).verify("../12345"))

        assert len(seen) == 1
        assert seen[0].startswith("/transaction/verify/")
        assert "%2F12345" in seen[0]
        assert not result.verified
        assert result.reason == GATEWAY_ERROR

    def test_answer_for_another_reference_is_not_verified(self):
        def handler(request):
            return httpx.Response(
                200,
                json={"status": True, "data": {"reference": "ORDER_ZZZZ9999", "amount": 290000, "status": "success"}},
            )

        result = asyncio.run(make_gateway(handler).verify("ORDER_ABCD1234"))

        assert not result.verified
        assert result.reason == GATEWAY_ERROR
        assert result.reference == "ORDER_ABCD1234"

    def test_timeout_is_network_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        result = asyncio.run(make_gateway(handler).verify("ORDER_ABCD1234"))

        assert result.reason == NETWORK_ERROR
