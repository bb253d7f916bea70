"""
Fulfillment State Machine.

Orders move forward through ``pending -> confirmed -> shipped -> delivered``
with a single side exit, ``pending -> cancelled``. This module owns those
transitions, the progress timeline rendered from them and the payment
verdict shown next to it.
"""

import logging
from dataclasses import asdict, dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from ..errors import CancellationReasonRequired, IllegalTransition
from ..models import Order, OrderStatus, PaymentMethod, PaymentStatus, parse_enum
from .money import Totals, compute_totals, format_money

logger = logging.getLogger(__name__)


FORWARD_STATES: Tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)


class Action(str, Enum):
    CONFIRM = "confirm"
    SHIP = "ship"
    DELIVER = "deliver"
    CANCEL = "cancel"


TRANSITIONS = {
    (OrderStatus.PENDING, Action.CONFIRM): OrderStatus.CONFIRMED,
    (OrderStatus.CONFIRMED, Action.SHIP): OrderStatus.SHIPPED,
    (OrderStatus.SHIPPED, Action.DELIVER): OrderStatus.DELIVERED,
    (OrderStatus.PENDING, Action.CANCEL): OrderStatus.CANCELLED,
}

ALREADY_CONFIRMED = "cannot cancel order that is already confirmed/shipped"

CANCEL_REFUSALS = {
    OrderStatus.CONFIRMED: ALREADY_CONFIRMED,
    OrderStatus.SHIPPED: ALREADY_CONFIRMED,
    OrderStatus.DELIVERED: ALREADY_CONFIRMED,
    OrderStatus.CANCELLED: "order is already cancelled",
}

# (label, description) per forward state
STEP_COPY = {
    OrderStatus.PENDING: ("Order Placed", "Your order has been placed"),
    OrderStatus.CONFIRMED: ("Confirmed", "Order confirmed by seller"),
    OrderStatus.SHIPPED: ("Shipped", "Order has been shipped"),
    OrderStatus.DELIVERED: ("Delivered", "Order delivered successfully"),
}


def parse_status(value: Union[str, OrderStatus]) -> OrderStatus:
    """Parse an order status, raising ``UnknownStatus`` if unrecognized."""
    return parse_enum(OrderStatus, "order_status", value)


def advance(current: Union[str, OrderStatus], action: Union[str, Action]) -> OrderStatus:
    """
    Apply ``action`` to an order in state ``current``.

    Raises:
        UnknownStatus: if ``current`` or ``action`` is not recognized
        IllegalTransition: if the action is not permitted from ``current``
    """
    status = parse_status(current)
    action = parse_enum(Action, "action", action)

    if action == Action.CANCEL and status in CANCEL_REFUSALS:
        raise IllegalTransition(CANCEL_REFUSALS[status], current=status.value, action=action.value)

    next_status = TRANSITIONS.get((status, action))
    if next_status is None:
        raise IllegalTransition(
            f"cannot {action.value} an order that is {status.value}",
            current=status.value,
            action=action.value,
        )
    return next_status


def cancellation_refusal(status: OrderStatus) -> Optional[str]:
    """The reason an order in ``status`` cannot be cancelled, if any."""
    return CANCEL_REFUSALS.get(status)


def can_cancel(order: Order) -> bool:
    return order.status == OrderStatus.PENDING


def cancel(order: Order, reason: Optional[str] = None) -> OrderStatus:
    """
    Cancel a pending order.

    The state check runs first so an ineligible order is always reported
    as such, whatever the reason field holds.

    Raises:
        IllegalTransition: if the order is not pending
        CancellationReasonRequired: if ``reason`` is missing or blank
    """
    refusal = cancellation_refusal(order.status)
    if refusal:
        logger.info(f"Refused cancellation of order {order.id} in status {order.status.value}")
        raise IllegalTransition(refusal, current=order.status.value, action=Action.CANCEL.value, order_id=order.id)
    if not reason or not reason.strip():
        raise CancellationReasonRequired()
    return advance(order.status, Action.CANCEL)


def progress_index(status: Union[str, OrderStatus]) -> Optional[int]:
    """
    Position of ``status`` on the forward path (0-3).

    ``cancelled`` is a side exit and has no position.
    """
    status = parse_status(status)
    if status == OrderStatus.CANCELLED:
        return None
    return FORWARD_STATES.index(status)


# =============================================================================
# TIMELINE
# =============================================================================

@dataclass(frozen=True)
class TimelineStep:
    """One node of the progress timeline."""
    index: int
    key: str
    label: str
    description: str
    completed: bool
    current: bool
    is_return: bool = False
    terminal: bool = False
    outcome: Optional[str] = None
    refund_amount: Optional[Decimal] = None
    admin_notes: Optional[str] = None
    return_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Timeline:
    """Fulfillment progress for one order."""
    order_id: str
    status: OrderStatus
    steps: Tuple[TimelineStep, ...]

    @property
    def cancelled(self) -> bool:
        return self.status == OrderStatus.CANCELLED

    @property
    def current_step(self) -> Optional[TimelineStep]:
        for step in self.steps:
            if step.current:
                return step
        return None

    @property
    def completed_count(self) -> int:
        return sum(1 for step in self.steps if step.completed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_id": self.order_id,
            "status": self.status.value,
            "cancelled": self.cancelled,
            "steps": [step.to_dict() for step in self.steps],
        }


def build_timeline(order: Order, return_active: bool = False) -> Timeline:
    """
    Build the four-step fulfillment timeline.

    Every step up to and including the order's status is completed. The
    step at the status is current unless a return overlay takes over.
    A cancelled order has no completed or current step.
    """
    position = progress_index(order.status)
    steps = []
    for index, state in enumerate(FORWARD_STATES):
        label, description = STEP_COPY[state]
        reached = position is not None and index <= position
        steps.append(TimelineStep(
            index=index,
            key=state.value,
            label=label,
            description=description,
            completed=reached,
            current=position == index and not return_active,
        ))
    return Timeline(order_id=order.id, status=order.status, steps=tuple(steps))


# =============================================================================
# PAYMENT VERDICT
# =============================================================================

class Settlement(str, Enum):
    SETTLED = "settled"
    DUE = "due"
    PENDING = "pending"
    FAILED = "failed"


SETTLEMENT_LABELS = {
    Settlement.SETTLED: "Paid",
    Settlement.DUE: "To Pay",
    Settlement.PENDING: "Pending",
    Settlement.FAILED: "Failed",
}


@dataclass(frozen=True)
class PaymentVerdict:
    """The single source of payment status text and badges."""
    state: Settlement
    description: str
    payment_method: PaymentMethod
    amount_due: Optional[Decimal] = None

    @property
    def label(self) -> str:
        return SETTLEMENT_LABELS[self.state]

    @property
    def is_settled(self) -> bool:
        return self.state == Settlement.SETTLED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "label": self.label,
            "description": self.description,
            "payment_method": self.payment_method.value,
            "amount_due": self.amount_due,
        }


def payment_verdict(order: Order, totals: Optional[Totals] = None) -> PaymentVerdict:
    """
    Derive the settlement verdict from payment method, payment status
    and fulfillment status.

    Cash on delivery is settled once the order is delivered and due
    (for the current order total) until then. Other methods follow the
    payment status.

    Args:
        order: The order
        totals: Precomputed totals; computed with the default policy
            when omitted and needed

    Raises:
        InvalidLineItem: if the amount due has to be computed and a line is invalid
    """
    method = order.payment_method
    if method == PaymentMethod.CASH_ON_DELIVERY:
        if order.status == OrderStatus.DELIVERED:
            return PaymentVerdict(Settlement.SETTLED, "cash on delivery — collected", method)
        totals = totals or compute_totals(order.items)
        return PaymentVerdict(
            Settlement.DUE,
            f"pay {format_money(totals.total)} on delivery",
            method,
            amount_due=totals.total,
        )

    if order.payment_status == PaymentStatus.PAID:
        return PaymentVerdict(Settlement.SETTLED, "payment completed online", method)
    if order.payment_status == PaymentStatus.FAILED:
        return PaymentVerdict(Settlement.FAILED, "payment failed", method)
    return PaymentVerdict(Settlement.PENDING, "payment pending", method)
