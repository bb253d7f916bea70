"""
Storefront Order Lifecycle Use Case.

Turns an order record plus an optional return/exchange record into the
totals, payment verdict and progress timeline shown on the order list,
order detail, tracking and invoice views.

Components:
- models: Order, OrderItem, ReturnRequest records parsed from the API
- domain: Money model, fulfillment state machine, return overlay
- presentation: View models for the four order views

Usage:
    from use_cases.storefront import Order, OrderLifecycle

    lifecycle = OrderLifecycle()
    snapshot = lifecycle.execute(Order.from_api(payload))
"""

from use_cases.storefront.errors import (
    CancellationReasonRequired,
    IllegalTransition,
    InvalidLineItem,
    InvalidRecord,
    LifecycleError,
    ReturnAlreadyActive,
    UnknownStatus,
    ValidationFailed,
)
from use_cases.storefront.models import (
    Customer,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ReturnLine,
    ReturnReason,
    ReturnRequest,
    ReturnStatus,
    ReturnType,
    normalize_payment_method,
)
from use_cases.storefront.domain import (
    OrderLifecycle,
    ReturnRequestBuilder,
    ShippingPolicy,
    compute_totals,
    overlay,
    payment_verdict,
)

__all__ = [
    # Errors
    "CancellationReasonRequired",
    "IllegalTransition",
    "InvalidLineItem",
    "InvalidRecord",
    "LifecycleError",
    "ReturnAlreadyActive",
    "UnknownStatus",
    "ValidationFailed",
    # Records
    "Customer",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "ReturnLine",
    "ReturnReason",
    "ReturnRequest",
    "ReturnStatus",
    "ReturnType",
    "normalize_payment_method",
    # Domain
    "OrderLifecycle",
    "ReturnRequestBuilder",
    "ShippingPolicy",
    "compute_totals",
    "overlay",
    "payment_verdict",
]
