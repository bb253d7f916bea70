"""
Order & Return Policies - Pure Business Rules.

These policies answer "may the customer do this?" for the buttons on the
order list and order detail pages, and validate the forms behind them.
They have NO dependencies on databases or external services.
All data needed for evaluation is passed in as parameters.
"""

from typing import Any, Dict, List, Optional

from core.domain import (
    PolicyDecision,
    PolicyEngine,
    ValidationError,
    Validator,
)

from ..errors import UnknownStatus
from ..models import (
    RETURN_REASON_ALIASES,
    Order,
    OrderStatus,
    ReturnReason,
    ReturnRequest,
    ReturnType,
    parse_enum,
)
from .fulfillment import cancellation_refusal, parse_status
from .returns import blocks_new_request


# =============================================================================
# POLICIES
# =============================================================================

class CancellationPolicy(PolicyEngine):
    """
    Policy for customer-initiated order cancellation.

    Context required:
        - order_status: Order status (string or OrderStatus)
        - reason: Optional cancellation reason entered by the customer;
          only checked when ``require_reason`` is set
    """

    def __init__(self, require_reason: bool = False):
        self.require_reason = require_reason

    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        status = parse_status(context.get("order_status"))

        refusal = cancellation_refusal(status)
        if refusal:
            return PolicyDecision.deny(refusal, order_status=status.value)

        reason = context.get("reason") or ""
        if self.require_reason and not reason.strip():
            return PolicyDecision.deny("Cancellation reason is required", order_status=status.value)

        return PolicyDecision.approve("Order can be cancelled", order_status=status.value)


class ReturnEligibilityPolicy(PolicyEngine):
    """
    Policy for starting a return or exchange.

    Context required:
        - order: The Order
        - existing_return: Optional ReturnRequest already on file
    """

    def __init__(self, strict: bool = True):
        self.strict = strict

    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        order: Order = context["order"]
        existing: Optional[ReturnRequest] = context.get("existing_return")

        if order.status != OrderStatus.DELIVERED:
            return PolicyDecision.deny(
                f"Order status '{order.status.value}' is not eligible for returns. Order must be delivered.",
                order_status=order.status.value,
            )

        if blocks_new_request(existing, self.strict):
            return PolicyDecision.deny(
                "A return request already exists for this order",
                return_id=existing.id,
                return_status=existing.status.value,
            )

        return PolicyDecision.approve("Order is eligible for return or exchange", order_status=order.status.value)


# =============================================================================
# VALIDATORS
# =============================================================================

class ReturnRequestValidator(Validator):
    """
    Validates a return/exchange form before it is submitted.

    Expected data:
        - order: The Order the request is for
        - type: "return" or "exchange"
        - items: list of {order_item_id?, product_id?, quantity, reason}
        - description: optional free text
    """

    MAX_DESCRIPTION_LENGTH = 1000

    def validate(self, data: Dict[str, Any]) -> List[ValidationError]:
        errors = []
        order: Order = data["order"]

        try:
            parse_enum(ReturnType, "type", data.get("type"))
        except UnknownStatus:
            errors.append(ValidationError(
                field="type",
                message=f"Invalid type. Must be one of: {', '.join(t.value for t in ReturnType)}",
                code="invalid_choice",
            ))

        items = data.get("items") or []
        if not items:
            errors.append(ValidationError(
                field="items",
                message="Please select at least one item to return",
                code="min_length",
            ))

        seen = set()
        for i, line in enumerate(items):
            errors.extend(self._validate_line(i, line, order, seen))

        description = data.get("description") or ""
        if len(description) > self.MAX_DESCRIPTION_LENGTH:
            errors.append(ValidationError(
                field="description",
                message=f"Description must be at most {self.MAX_DESCRIPTION_LENGTH} characters",
                code="max_length",
            ))

        return errors

    def _validate_line(self, i: int, line: Dict[str, Any], order: Order, seen: set) -> List[ValidationError]:
        errors = []
        item = order.find_item(line.get("order_item_id"), line.get("product_id"))
        if item is None:
            return [ValidationError(
                field=f"items[{i}]",
                message="Item is not part of this order",
                code="not_found",
            )]

        key = item.id or item.product_id
        if key in seen:
            errors.append(ValidationError(
                field=f"items[{i}]",
                message=f"{item.product_name or item.product_id} is selected more than once",
                code="duplicate",
            ))
        seen.add(key)

        quantity = line.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or not 1 <= quantity <= item.quantity:
            errors.append(ValidationError(
                field=f"items[{i}].quantity",
                message=f"Quantity must be between 1 and {item.quantity}",
                code="out_of_range",
            ))

        try:
            parse_enum(ReturnReason, "reason", line.get("reason"), RETURN_REASON_ALIASES)
        except UnknownStatus:
            errors.append(ValidationError(
                field=f"items[{i}].reason",
                message=f"Invalid reason. Must be one of: {', '.join(r.value for r in ReturnReason)}",
                code="invalid_choice",
            ))

        return errors
