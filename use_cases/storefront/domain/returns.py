"""
Return Overlay.

A return or exchange request sits on top of a delivered order. When one
exists, the fulfillment timeline gains a fifth node describing the
request and the "current" marker moves to it. The overlay only renders
what the admin workflow has decided; it never changes order financials.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional

from ..errors import IllegalTransition, ReturnAlreadyActive
from ..models import Order, OrderStatus, ReturnRequest, ReturnStatus
from .fulfillment import Timeline, TimelineStep, build_timeline

logger = logging.getLogger(__name__)


TERMINAL_RETURN_STATES = frozenset({
    ReturnStatus.REJECTED,
    ReturnStatus.COMPLETED,
    ReturnStatus.CANCELLED,
})

# States from which the customer may withdraw the request
CUSTOMER_CANCELLABLE = frozenset({ReturnStatus.REQUESTED, ReturnStatus.APPROVED})

# States in which a refund amount is shown alongside the node
REFUND_VISIBLE = frozenset({
    ReturnStatus.APPROVED,
    ReturnStatus.PROCESSING,
    ReturnStatus.COMPLETED,
})


@dataclass(frozen=True)
class ReturnNodeRule:
    label: str
    description: str
    completed: bool
    outcome: str


RETURN_NODE_RULES = {
    ReturnStatus.REQUESTED: ReturnNodeRule(
        "Return Requested",
        "Your return/exchange request has been submitted and is awaiting review",
        completed=False,
        outcome="pending",
    ),
    ReturnStatus.APPROVED: ReturnNodeRule(
        "Return Approved",
        "Your return has been approved! Please ship the item back",
        completed=True,
        outcome="pending",
    ),
    ReturnStatus.PROCESSING: ReturnNodeRule(
        "Return Processing",
        "Your return is being processed",
        completed=False,
        outcome="pending",
    ),
    ReturnStatus.COMPLETED: ReturnNodeRule(
        "Return Completed",
        "Return completed! Refund has been initiated",
        completed=True,
        outcome="success",
    ),
    ReturnStatus.REJECTED: ReturnNodeRule(
        "Return Rejected",
        "Your return request was rejected. Check admin notes for details",
        completed=False,
        outcome="failure",
    ),
    ReturnStatus.CANCELLED: ReturnNodeRule(
        "Return Cancelled",
        "Return request was cancelled",
        completed=False,
        outcome="neutral",
    ),
}


def is_active(return_request: Optional[ReturnRequest]) -> bool:
    """True for a request that is not rejected, completed or cancelled."""
    return return_request is not None and return_request.status not in TERMINAL_RETURN_STATES


@dataclass(frozen=True)
class ExtendedTimeline(Timeline):
    """The fulfillment timeline plus an optional return node."""
    return_id: Optional[str] = None
    return_status: Optional[ReturnStatus] = None

    @property
    def has_return(self) -> bool:
        return self.return_status is not None

    @property
    def return_step(self) -> Optional[TimelineStep]:
        return self.steps[-1] if self.has_return else None

    @property
    def progress_ratio(self) -> float:
        """Share of nodes counted toward completion, for progress bars."""
        if not self.steps:
            return 0.0
        return self.completed_count / len(self.steps)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "return_id": self.return_id,
            "return_status": self.return_status.value if self.return_status else None,
            "completed_count": self.completed_count,
            "progress_ratio": self.progress_ratio,
        })
        return data


def _return_node(index: int, return_request: ReturnRequest) -> TimelineStep:
    rule = RETURN_NODE_RULES[return_request.status]
    refund = return_request.refund_amount if return_request.status in REFUND_VISIBLE else None
    return TimelineStep(
        index=index,
        key=f"return_{return_request.status.value}",
        label=rule.label,
        description=rule.description,
        completed=rule.completed,
        current=True,
        is_return=True,
        terminal=return_request.status in TERMINAL_RETURN_STATES,
        outcome=rule.outcome,
        refund_amount=refund,
        admin_notes=return_request.admin_notes,
        return_type=return_request.type.value,
    )


def overlay(order: Order, return_request: Optional[ReturnRequest] = None) -> ExtendedTimeline:
    """
    Extend the fulfillment timeline with the return node, if any.

    Without a return request the result carries the same four steps as
    ``build_timeline(order)``.
    """
    has_return = return_request is not None
    base = build_timeline(order, return_active=has_return)
    if not has_return:
        return ExtendedTimeline(order_id=base.order_id, status=base.status, steps=base.steps)

    if return_request.order_id and return_request.order_id != order.id:
        logger.warning(f"Return {return_request.id} references order {return_request.order_id}, rendered on {order.id}")
    if order.status != OrderStatus.DELIVERED:
        logger.warning(f"Return {return_request.id} overlaid on order {order.id} in status {order.status.value}")

    return ExtendedTimeline(
        order_id=base.order_id,
        status=base.status,
        steps=base.steps + (_return_node(len(base.steps), return_request),),
        return_id=return_request.id,
        return_status=return_request.status,
    )


def blocks_new_request(existing: Optional[ReturnRequest], strict: bool = True) -> bool:
    """
    Whether ``existing`` prevents a new request on the same order.

    In strict mode any existing record blocks; otherwise only an active one.
    """
    if existing is None:
        return False
    return strict or is_active(existing)


def can_request_return(order: Order, existing_return: Optional[ReturnRequest] = None, strict: bool = True) -> bool:
    """Shared answer for every "Request Return" button."""
    return order.status == OrderStatus.DELIVERED and not blocks_new_request(existing_return, strict)


def ensure_can_request_return(
    order: Order,
    existing_return: Optional[ReturnRequest] = None,
    strict: bool = True,
) -> None:
    """
    Raise the specific reason a return cannot be requested.

    Raises:
        IllegalTransition: if the order has not been delivered
        ReturnAlreadyActive: if an existing request blocks a new one
    """
    if order.status != OrderStatus.DELIVERED:
        raise IllegalTransition(
            "returns can only be requested for delivered orders",
            current=order.status.value,
            action="request_return",
            order_id=order.id,
        )
    if blocks_new_request(existing_return, strict):
        raise ReturnAlreadyActive(
            "a return request already exists for this order",
            order_id=order.id,
            return_id=existing_return.id,
            return_status=existing_return.status.value,
        )


def can_cancel_return(return_request: Optional[ReturnRequest]) -> bool:
    return return_request is not None and return_request.status in CUSTOMER_CANCELLABLE


def cancel_return(return_request: Optional[ReturnRequest]) -> ReturnStatus:
    """
    Customer withdrawal of a return request.

    Raises:
        IllegalTransition: if there is no request, or unless the request
            is requested or approved
    """
    if return_request is None:
        raise IllegalTransition("there is no return request to cancel", action="cancel_return")
    if not can_cancel_return(return_request):
        raise IllegalTransition(
            f"cannot cancel a return that is {return_request.status.value}",
            current=return_request.status.value,
            action="cancel_return",
            return_id=return_request.id,
        )
    return ReturnStatus.CANCELLED


@dataclass(frozen=True)
class ReturnSummary:
    """Counts for the customer's "Returns" card."""
    total: int = 0
    active: int = 0
    completed: int = 0
    refunded_total: Decimal = Decimal("0")
    by_status: Dict[str, int] = field(default_factory=dict)


def summarize_returns(returns: Iterable[ReturnRequest]) -> ReturnSummary:
    """Tally a customer's return requests by status."""
    by_status: Dict[str, int] = {}
    total = active = completed = 0
    refunded = Decimal("0")
    for request in returns:
        total += 1
        by_status[request.status.value] = by_status.get(request.status.value, 0) + 1
        if is_active(request):
            active += 1
        if request.status == ReturnStatus.COMPLETED:
            completed += 1
            refunded += request.refund_amount or Decimal("0")
    return ReturnSummary(
        total=total,
        active=active,
        completed=completed,
        refunded_total=refunded,
        by_status=by_status,
    )
