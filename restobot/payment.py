"""
Payment gateway adapter.

The ordering engine talks to a ``PaymentGateway``: ``initialize`` returns a
redirect URL for a checkout reference, ``verify`` reports whether that reference
was paid. ``PaystackGateway`` is the production implementation.

Amounts cross this boundary in whole currency units (naira). Paystack bills in
the minor unit (kobo), so the conversion happens here and nowhere else.

Environment variables (see restobot.config):
- PAYSTACK_SECRET_KEY: secret API key; without it every initialize fails fast
- PAYSTACK_BASE_URL: API root (default: https://api.paystack.co)
- PAYSTACK_CALLBACK_URL: optional redirect-back URL after payment
- PAYMENT_TIMEOUT_SECONDS: per-request timeout (default: 10)
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from .config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

MINOR_UNITS_PER_UNIT = 100

# Failure reasons
NOT_CONFIGURED = "not_configured"
NETWORK_ERROR = "network_error"
GATEWAY_ERROR = "gateway_error"
INVALID_AMOUNT = "invalid_amount"
DECLINED = "declined"
PENDING = "pending"

_DECLINED_STATUSES = {"failed", "abandoned", "reversed"}


class PaymentInit(BaseModel):
    success: bool
    redirect_url: Optional[str] = None
    reason: Optional[str] = None
    message: str = ""


class PaymentVerification(BaseModel):
    verified: bool
    reference: str
    amount: Optional[int] = None
    paid_at: Optional[datetime] = None
    reason: Optional[str] = None
    message: str = ""


def to_minor_units(amount: int) -> int:
    return int(amount) * MINOR_UNITS_PER_UNIT


def from_minor_units(amount_minor: int) -> int:
    return int(amount_minor) // MINOR_UNITS_PER_UNIT


class PaymentGateway(ABC):
    """What the ordering engine needs from a payment provider."""

    @abstractmethod
    async def initialize(self, email: str, amount: int, reference: str) -> PaymentInit:
        ...

    @abstractmethod
    async def verify(self, reference: str) -> PaymentVerification:
        ...


class PaystackGateway(PaymentGateway):
    def __init__(
        self,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config or default_settings
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.config.paystack_secret_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.paystack_secret_key}",
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.paystack_base_url,
            headers=self._headers(),
            timeout=self.config.payment_timeout_seconds,
            transport=self._transport,
        )

    async def initialize(self, email: str, amount: int, reference: str) -> PaymentInit:
        if not self.is_configured:
            logger.warning("PAYSTACK_SECRET_KEY is not set; cannot initialize payment %s", reference)
            return PaymentInit(
                success=False,
                reason=NOT_CONFIGURED,
                message="Payment service is not configured. Please contact support.",
            )

        if amount <= 0:
            return PaymentInit(success=False, reason=INVALID_AMOUNT, message="Invalid amount")

        payload: Dict[str, Any] = {
            "email": email,
            "amount": to_minor_units(amount),
            "reference": reference,
            "metadata": {
                "custom_fields": [
                    {
                        "display_name": "Order Reference",
                        "variable_name": "order_ref",
                        "value": reference,
                    }
                ]
            },
        }
        if self.config.paystack_callback_url:
            payload["callback_url"] = self.config.paystack_callback_url

        try:
            async with self._client() as client:
                resp = await client.post("/transaction/initialize", json=payload)
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Paystack initialize rejected for %s: HTTP %s %s",
                reference,
                e.response.status_code,
                e.response.text[:200],
            )
            return PaymentInit(success=False, reason=GATEWAY_ERROR, message="Failed to initialize payment")
        except httpx.HTTPError as e:
            logger.error("Paystack initialize failed for %s: %s", reference, e)
            return PaymentInit(success=False, reason=NETWORK_ERROR, message="Error initializing payment")
        except ValueError as e:
            logger.error("Paystack initialize returned unreadable body for %s: %s", reference, e)
            return PaymentInit(success=False, reason=GATEWAY_ERROR, message="Failed to initialize payment")

        data = body.get("data") or {}
        url = data.get("authorization_url")
        if not body.get("status") or not url:
            logger.error("Paystack initialize unsuccessful for %s: %s", reference, body.get("message"))
            return PaymentInit(
                success=False,
                reason=GATEWAY_ERROR,
                message=body.get("message") or "Failed to initialize payment",
            )

        logger.info("Payment initialized for %s", reference)
        return PaymentInit(success=True, redirect_url=url, message="Payment initialized successfully")

    async def verify(self, reference: str) -> PaymentVerification:
        if not self.is_configured:
            logger.warning("PAYSTACK_SECRET_KEY is not set; cannot verify payment %s", reference)
            return PaymentVerification(
                verified=False,
                reference=reference,
                reason=NOT_CONFIGURED,
                message="Payment service is not configured. Please contact support.",
            )

        try:
            async with self._client() as client:
                resp = await client.get(f"/transaction/verify/{quote(reference, safe='')}")
                resp.raise_for_status()
                data = resp.json().get("data") or {}
        except httpx.HTTPStatusError as e:
            logger.error(
                "Paystack verify rejected for %s: HTTP %s %s",
                reference,
                e.response.status_code,
                e.response.text[:200],
            )
            return PaymentVerification(
                verified=False, reference=reference, reason=GATEWAY_ERROR, message="Failed to verify payment"
            )
        except httpx.HTTPError as e:
            logger.error("Paystack verify failed for %s: %s", reference, e)
            return PaymentVerification(
                verified=False, reference=reference, reason=NETWORK_ERROR, message="Error verifying payment"
            )
        except ValueError as e:
            logger.error("Paystack verify returned unreadable body for %s: %s", reference, e)
            return PaymentVerification(
                verified=False, reference=reference, reason=GATEWAY_ERROR, message="Failed to verify payment"
            )

        status = str(data.get("status") or "").lower()
        amount_minor = data.get("amount")
        amount = from_minor_units(amount_minor) if amount_minor is not None else None

        if data.get("reference") != reference:
            logger.error(
                "Paystack verify for %s answered for reference %r", reference, data.get("reference")
            )
            return PaymentVerification(
                verified=False, reference=reference, reason=GATEWAY_ERROR, message="Failed to verify payment"
            )

        if status == "success":
            logger.info("Payment verified for %s", reference)
            return PaymentVerification(
                verified=True,
                reference=reference,
                amount=amount,
                paid_at=data.get("paid_at"),
                message="Payment verified",
            )

        reason = DECLINED if status in _DECLINED_STATUSES else PENDING
        logger.info("Payment %s not successful (status=%s)", reference, status or "unknown")
        return PaymentVerification(
            verified=False,
            reference=reference,
            amount=amount,
            reason=reason,
            message="Payment failed" if reason == DECLINED else "Payment not completed yet",
        )
