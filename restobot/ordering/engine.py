# restobot/ordering/engine.py
from __future__ import annotations

import logging
import re
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel

from . import render
from .catalog import Catalog
from .state import (
    ConversationMode,
    ConversationState,
    OrderLine,
    PaymentStatus,
    PlacedOrder,
    order_total,
)
from ..payment import DECLINED, NOT_CONFIGURED, PaymentGateway

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "ORDER_"

# Commands
PLACE_ORDER = 1
CHECKOUT = 99
ORDER_HISTORY = 98
CURRENT_ORDER = 97
CANCEL = 0

UNDERPAID = "underpaid"

# ASCII digits only; a zero fraction ("1.0") still names option 1
_INT_RE = re.compile(r"^[+-]?([0-9]+)(?:\.0*)?$")


class Reply(BaseModel):
    reply: str
    redirect_url: Optional[str] = None


class PaymentOutcome(BaseModel):
    success: bool
    message: str
    redirect_url: Optional[str] = None
    reason: Optional[str] = None


def parse_option(raw: Optional[str]) -> Optional[int]:
    text = (raw or "").strip()
    m = _INT_RE.match(text)
    if not m:
        return None
    value = int(m.group(1))
    return -value if text.startswith("-") else value


def new_reference() -> str:
    return REFERENCE_PREFIX + uuid4().hex[:8].upper()


# ----------------------------
# Ordering
# ----------------------------

def add_item(item_id: int, state: ConversationState, catalog: Catalog) -> str:
    item = catalog.find_by_id(item_id)
    if not item:
        return render.invalid_item()

    line = OrderLine(item_id=item.id, name=item.name, price=item.price)
    state.current_order.append(line)
    return render.item_added(line)


def checkout(state: ConversationState, catalog: Catalog) -> Reply:
    if not state.current_order:
        return Reply(reply=render.nothing_to_checkout())

    reference = new_reference()
    while state.find_placed(reference):
        reference = new_reference()

    lines = [line.model_copy() for line in state.current_order]
    placed = PlacedOrder(reference=reference, lines=lines, total=order_total(lines))
    state.order_history.append(placed)

    state.payment_reference = reference
    state.current_order = []
    state.mode = ConversationMode.AWAITING_PAYMENT

    logger.info("Order %s placed: %d item(s), total %d", reference, len(lines), placed.total)
    return Reply(reply=render.order_placed(placed, catalog.currency_symbol))


def cancel_order(state: ConversationState) -> Reply:
    had_items = bool(state.current_order)
    state.current_order = []
    if state.is_ordering:
        state.mode = ConversationMode.IDLE

    if not had_items:
        return Reply(reply=render.nothing_to_cancel())
    return Reply(reply=render.order_cancelled())


def handle_menu_selection(option: int, state: ConversationState, catalog: Catalog) -> Reply:
    cur = catalog.currency_symbol

    if option == PLACE_ORDER:
        state.mode = ConversationMode.ORDERING
        return Reply(reply=render.menu_listing(catalog))

    if option == CHECKOUT:
        return checkout(state, catalog)

    if option == ORDER_HISTORY:
        return Reply(reply=render.order_history(state, cur))

    if option == CURRENT_ORDER:
        return Reply(reply=render.current_order(state, cur))

    if option == CANCEL:
        return cancel_order(state)

    return Reply(reply=render.invalid_option())


async def handle_input(
    raw_input: Optional[str],
    state: ConversationState,
    catalog: Catalog,
    gateway: PaymentGateway,
    customer_email: str = "customer@restaurant.com",
) -> Reply:
    """Apply one chat message to the conversation.

    Validation runs before any state-dependent dispatch. While a payment is
    pending only 1 (pay) and 0 (cancel payment) are intercepted; any other
    number falls through to the regular command set.
    """
    if not (raw_input or "").strip():
        return Reply(reply=render.EMPTY_INPUT)

    option = parse_option(raw_input)
    if option is None:
        return Reply(reply=render.INVALID_INPUT)

    if state.awaiting_payment:
        if option == PLACE_ORDER:
            return await _pay_pending_order(state, catalog, gateway, customer_email)
        if option == CANCEL:
            state.mode = ConversationMode.IDLE
            return Reply(reply=render.payment_cancelled())

    if state.is_ordering and option not in (CHECKOUT, CANCEL):
        return Reply(reply=add_item(option, state, catalog))

    return handle_menu_selection(option, state, catalog)


# ----------------------------
# Payments
# ----------------------------

async def _pay_pending_order(
    state: ConversationState,
    catalog: Catalog,
    gateway: PaymentGateway,
    email: str,
) -> Reply:
    reference = state.payment_reference or ""
    placed = state.find_placed(reference)
    amount = placed.total if placed else 0

    outcome = await initialize_payment(state, gateway, amount=amount, email=email, reference=reference)
    if outcome.success:
        return Reply(
            reply=render.payment_redirect(amount, reference, catalog.currency_symbol),
            redirect_url=outcome.redirect_url,
        )
    if outcome.reason == NOT_CONFIGURED:
        return Reply(reply=render.payment_unavailable())
    return Reply(reply=render.payment_failed())


async def initialize_payment(
    state: ConversationState,
    gateway: PaymentGateway,
    amount: int,
    email: str,
    reference: Optional[str] = None,
) -> PaymentOutcome:
    """Start a gateway payment for the session's pending checkout.

    ``reference`` defaults to the pending one; any other value is rejected
    without calling the gateway. Failures leave the state untouched so the
    user can retry with the same reference.
    """
    pending = state.payment_reference
    if not pending:
        return PaymentOutcome(success=False, message="No order reference found", reason="no_reference")

    reference = reference or pending
    if reference != pending:
        return PaymentOutcome(success=False, message="Unknown order reference", reason="unknown_reference")

    if amount is None or amount <= 0:
        return PaymentOutcome(success=False, message="Invalid amount", reason="invalid_amount")

    result = await gateway.initialize(email, amount, reference)
    if not result.success or not result.redirect_url:
        logger.info("Payment initialization for %s failed: %s", reference, result.reason)
        return PaymentOutcome(
            success=False,
            message=result.message or "Failed to initialize payment",
            reason=result.reason,
        )

    if state.awaiting_payment:
        state.mode = ConversationMode.IDLE
    return PaymentOutcome(
        success=True,
        message="Payment initialized successfully",
        redirect_url=result.redirect_url,
    )


async def verify_payment(
    state: ConversationState,
    gateway: PaymentGateway,
    reference: str,
) -> PaymentOutcome:
    result = await gateway.verify(reference)
    placed = state.find_placed(reference)

    if not result.verified:
        if placed and result.reason == DECLINED:
            placed.payment_status = PaymentStatus.FAILED
        return PaymentOutcome(
            success=False,
            message="Payment verification failed",
            reason=result.reason,
        )

    if placed and result.amount is not None and result.amount < placed.total:
        logger.warning(
            "Payment %s underpaid: received %d of %d", reference, result.amount, placed.total
        )
        placed.payment_status = PaymentStatus.FAILED
        return PaymentOutcome(
            success=False,
            message="Payment verification failed: amount paid does not cover the order",
            reason=UNDERPAID,
        )

    if placed:
        placed.payment_status = PaymentStatus.PAID
    if state.payment_reference == reference:
        state.payment_reference = None
        if state.awaiting_payment:
            state.mode = ConversationMode.IDLE

    logger.info("Payment %s verified", reference)
    return PaymentOutcome(
        success=True,
        message="✅ Payment verified successfully! Your order will be processed soon.",
    )
