"""
Storefront Order Lifecycle Domain Layer.

Contains the pure rules every order view shares: the money model, the
fulfillment state machine and the return overlay.
No database access or I/O - just business rules.
"""

from .money import (
    DEFAULT_SHIPPING_POLICY,
    ShippingPolicy,
    Totals,
    compute_totals,
)
from .fulfillment import (
    Action,
    PaymentVerdict,
    Settlement,
    Timeline,
    TimelineStep,
    advance,
    build_timeline,
    can_cancel,
    cancel,
    parse_status,
    payment_verdict,
    progress_index,
)
from .returns import (
    ExtendedTimeline,
    ReturnSummary,
    can_cancel_return,
    can_request_return,
    cancel_return,
    ensure_can_request_return,
    is_active,
    overlay,
    summarize_returns,
)
from .policies import (
    CancellationPolicy,
    ReturnEligibilityPolicy,
    ReturnRequestValidator,
)
from .services import (
    LifecycleSnapshot,
    OrderLifecycle,
    ReturnDraft,
    ReturnRequestBuilder,
)

__all__ = [
    "DEFAULT_SHIPPING_POLICY",
    "ShippingPolicy",
    "Totals",
    "compute_totals",
    "Action",
    "PaymentVerdict",
    "Settlement",
    "Timeline",
    "TimelineStep",
    "advance",
    "build_timeline",
    "can_cancel",
    "cancel",
    "parse_status",
    "payment_verdict",
    "progress_index",
    "ExtendedTimeline",
    "ReturnSummary",
    "can_cancel_return",
    "can_request_return",
    "cancel_return",
    "ensure_can_request_return",
    "is_active",
    "overlay",
    "summarize_returns",
    "CancellationPolicy",
    "ReturnEligibilityPolicy",
    "ReturnRequestValidator",
    "LifecycleSnapshot",
    "OrderLifecycle",
    "ReturnDraft",
    "ReturnRequestBuilder",
]
