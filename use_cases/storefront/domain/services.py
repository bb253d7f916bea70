"""
Domain Services - Business Operations.

``OrderLifecycle`` is the one derivation every storefront view consumes:
totals, payment verdict, timeline and the eligibility flags behind the
action buttons all come from a single ``LifecycleSnapshot``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from config import settings
from core.domain import DomainService

from ..errors import ValidationFailed
from ..models import (
    RETURN_REASON_ALIASES,
    Order,
    OrderStatus,
    ReturnReason,
    ReturnRequest,
    ReturnStatus,
    ReturnType,
    parse_enum,
)
from .fulfillment import PaymentVerdict, cancel, can_cancel, payment_verdict
from .money import DEFAULT_SHIPPING_POLICY, ShippingPolicy, Totals, compute_totals
from .policies import ReturnRequestValidator
from .returns import (
    ExtendedTimeline,
    can_cancel_return,
    can_request_return,
    ensure_can_request_return,
    overlay,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LifecycleSnapshot:
    """Everything a view needs to render one order consistently."""
    order: Order
    totals: Totals
    verdict: PaymentVerdict
    timeline: ExtendedTimeline
    can_cancel: bool
    can_request_return: bool
    can_cancel_return: bool
    return_request: Optional[ReturnRequest] = None


class OrderLifecycle(DomainService):
    """
    Derives the lifecycle snapshot for an order and its optional return.

    This is pure business logic with no I/O. One instance can be shared
    by every caller; it holds only read-only configuration.
    """

    def __init__(
        self,
        shipping_policy: Optional[ShippingPolicy] = None,
        strict_returns: Optional[bool] = None,
    ):
        self.shipping_policy = shipping_policy or DEFAULT_SHIPPING_POLICY
        if strict_returns is None:
            strict_returns = settings.returns_block_on_any_existing
        self.strict_returns = strict_returns

    def execute(self, order: Order, return_request: Optional[ReturnRequest] = None) -> LifecycleSnapshot:
        """
        Build the snapshot.

        Raises:
            InvalidLineItem: if any line has a bad price or quantity
        """
        totals = self.totals(order)
        return LifecycleSnapshot(
            order=order,
            totals=totals,
            verdict=payment_verdict(order, totals),
            timeline=overlay(order, return_request),
            can_cancel=can_cancel(order),
            can_request_return=can_request_return(order, return_request, strict=self.strict_returns),
            can_cancel_return=can_cancel_return(return_request),
            return_request=return_request,
        )

    def totals(self, order: Order) -> Totals:
        return compute_totals(order.items, self.shipping_policy)

    def cancel(self, order: Order, reason: Optional[str]) -> OrderStatus:
        """
        Validate a customer cancellation.

        Returns the status the order moves to; the caller submits the
        request to the Order API.
        """
        new_status = cancel(order, reason)
        logger.info(f"Order {order.id} cleared for cancellation")
        return new_status


@dataclass(frozen=True)
class ReturnDraft:
    """A validated return request, ready for the Return API."""
    order_id: str
    type: ReturnType
    items: List[Dict[str, Any]]
    description: str = ""
    status: ReturnStatus = ReturnStatus.REQUESTED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the payload the Return API accepts."""
        return {
            "order_id": self.order_id,
            "type": self.type.value,
            "items": self.items,
            "description": self.description,
        }


class ReturnRequestBuilder(DomainService):
    """
    Builds a validated return request.

    This service:
    1. Checks the order may take a new return
    2. Validates the selected lines
    3. Produces a ReturnDraft with canonical reason codes
    """

    def __init__(self, strict: Optional[bool] = None):
        self.validator = ReturnRequestValidator()
        if strict is None:
            strict = settings.returns_block_on_any_existing
        self.strict = strict

    def execute(
        self,
        order: Order,
        return_type: str,
        items: List[Dict[str, Any]],
        description: str = "",
        existing_return: Optional[ReturnRequest] = None,
    ) -> ReturnDraft:
        """
        Build a return request.

        Args:
            order: The delivered order
            return_type: "return" or "exchange"
            items: Selected lines, each {order_item_id?, product_id?, quantity, reason}
            description: Free-text description from the customer
            existing_return: Any return already on file for the order

        Returns:
            A ReturnDraft

        Raises:
            IllegalTransition: if the order is not delivered
            ReturnAlreadyActive: if an existing request blocks a new one
            ValidationFailed: if the form is invalid
        """
        ensure_can_request_return(order, existing_return, strict=self.strict)

        errors = self.validator.validate({
            "order": order,
            "type": return_type,
            "items": items,
            "description": description,
        })
        if errors:
            messages = [f"{e.field}: {e.message}" for e in errors]
            raise ValidationFailed(f"Invalid return request: {'; '.join(messages)}", errors)

        lines = []
        for line in items:
            item = order.find_item(line.get("order_item_id"), line.get("product_id"))
            lines.append({
                "order_item_id": item.id,
                "product_id": item.product_id,
                "quantity": line["quantity"],
                "reason": parse_enum(ReturnReason, "reason", line["reason"], RETURN_REASON_ALIASES).value,
            })

        return ReturnDraft(
            order_id=order.id,
            type=parse_enum(ReturnType, "type", return_type),
            items=lines,
            description=(description or "").strip(),
        )
