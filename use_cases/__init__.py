"""
Use Cases Package.

Each use case is a self-contained module following the layered
architecture defined in core/:
- domain/: Pure business logic (policies, services)
- models.py: Records parsed at the API boundary
- presentation/: View-model composition

Available use cases:
- storefront: Order lifecycle (totals, fulfillment timeline, payment
  verdict) and the return/exchange overlay
"""

from use_cases.storefront import OrderLifecycle, ReturnRequestBuilder

__all__ = [
    "OrderLifecycle",
    "ReturnRequestBuilder",
]
