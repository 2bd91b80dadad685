# restobot/ordering/state.py
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError


class ConversationMode(str, Enum):
    IDLE = "idle"
    ORDERING = "ordering"
    AWAITING_PAYMENT = "awaiting_payment"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    FAILED = "failed"


class OrderLine(BaseModel):
    # name/price are captured when the line is added; later menu edits don't apply
    item_id: int
    name: str
    price: int


class PlacedOrder(BaseModel):
    reference: str
    lines: List[OrderLine]
    total: int
    placed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    payment_status: PaymentStatus = PaymentStatus.UNPAID


class ConversationState(BaseModel):
    current_order: List[OrderLine] = Field(default_factory=list)
    order_history: List[PlacedOrder] = Field(default_factory=list)
    mode: ConversationMode = ConversationMode.IDLE
    payment_reference: Optional[str] = None

    @property
    def is_ordering(self) -> bool:
        return self.mode is ConversationMode.ORDERING

    @property
    def awaiting_payment(self) -> bool:
        return self.mode is ConversationMode.AWAITING_PAYMENT

    def find_placed(self, reference: str) -> Optional[PlacedOrder]:
        for placed in reversed(self.order_history):
            if placed.reference == reference:
                return placed
        return None


def order_total(lines: List[OrderLine]) -> int:
    return sum(line.price for line in lines)


def load_state(state_json: Optional[str]) -> ConversationState:
    """Parse a stored state; anything unreadable starts a fresh conversation."""
    if not state_json:
        return ConversationState()
    try:
        return ConversationState.model_validate_json(state_json)
    except ValidationError:
        return ConversationState()


def dump_state(state: ConversationState) -> str:
    return state.model_dump_json()
