"""
Money Model - subtotal, shipping fee and grand total.

This is the only place order amounts are derived. The order list, order
detail, tracking page and invoice all read ``Totals`` from here, so the
free-shipping threshold and flat fee exist exactly once, in
``ShippingPolicy``. There is no tax term.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import ClassVar, Dict, Iterable, Optional

from config import Settings, settings

from ..errors import InvalidLineItem
from ..models import OrderItem

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def round_money(amount: Decimal) -> Decimal:
    """Round to 2 places for display. Arithmetic never rounds."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal, symbol: Optional[str] = None) -> str:
    """Format an amount for display, e.g. '₹1,250.00'."""
    if symbol is None:
        symbol = settings.currency_symbol
    return f"{symbol}{round_money(amount):,.2f}"


@dataclass(frozen=True)
class ShippingPolicy:
    """
    Free-shipping threshold and the flat fee charged below it.

    Process-wide configuration: built once from settings at startup
    and shared read-only by every caller.
    """
    threshold: Decimal = Decimal("299")
    flat_fee: Decimal = Decimal("50")

    def __post_init__(self):
        if self.threshold < 0 or self.flat_fee < 0:
            raise ValueError("Shipping threshold and fee must be non-negative")

    @classmethod
    def from_settings(cls, current: Settings) -> "ShippingPolicy":
        return cls(
            threshold=Decimal(current.free_shipping_threshold),
            flat_fee=Decimal(current.shipping_flat_fee),
        )

    def qualifies(self, subtotal: Decimal) -> bool:
        return subtotal >= self.threshold

    def fee_for(self, subtotal: Decimal) -> Decimal:
        return Decimal("0") if self.qualifies(subtotal) else self.flat_fee


DEFAULT_SHIPPING_POLICY = ShippingPolicy.from_settings(settings)


@dataclass(frozen=True)
class Totals:
    """Financial summary of an order. ``total`` never includes tax."""
    subtotal: Decimal
    shipping_fee: Decimal
    is_free_shipping: bool
    total: Decimal
    policy: ShippingPolicy = DEFAULT_SHIPPING_POLICY

    TAX_LABEL: ClassVar[str] = "includes shipping, no tax"

    @property
    def amount_to_free_shipping(self) -> Decimal:
        """How much more the customer would need to spend to ship free."""
        return max(self.policy.threshold - self.subtotal, Decimal("0"))

    @property
    def shipping_saved(self) -> Decimal:
        return self.policy.flat_fee if self.is_free_shipping else Decimal("0")

    def rounded(self) -> Dict[str, Decimal]:
        """Display values, rounded to 2 places."""
        return {
            "subtotal": round_money(self.subtotal),
            "shipping_fee": round_money(self.shipping_fee),
            "total": round_money(self.total),
        }


def _check_line(index: int, item: OrderItem) -> None:
    price = item.unit_price
    quantity = item.quantity
    if not isinstance(price, Decimal) or not price.is_finite() or price < 0:
        raise InvalidLineItem(
            f"Line {index + 1} has an invalid unit price: {price}",
            index=index,
            product_id=item.product_id,
            unit_price=str(price),
        )
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidLineItem(
            f"Line {index + 1} has an invalid quantity: {quantity}",
            index=index,
            product_id=item.product_id,
            quantity=quantity,
        )


def compute_totals(items: Iterable[OrderItem], shipping_policy: Optional[ShippingPolicy] = None) -> Totals:
    """
    Compute subtotal, shipping fee and total for a list of order lines.

    Args:
        items: Order lines in invoice order
        shipping_policy: Policy to apply (defaults to the process-wide policy)

    Returns:
        Totals at full precision

    Raises:
        InvalidLineItem: if any unit price is negative or any quantity
            is not a positive integer
    """
    policy = shipping_policy or DEFAULT_SHIPPING_POLICY

    subtotal = Decimal("0")
    for index, item in enumerate(items):
        _check_line(index, item)
        subtotal += item.line_total

    is_free = policy.qualifies(subtotal)
    shipping_fee = Decimal("0") if is_free else policy.flat_fee

    logger.debug(f"Computed totals: subtotal={subtotal} shipping={shipping_fee}")
    return Totals(
        subtotal=subtotal,
        shipping_fee=shipping_fee,
        is_free_shipping=is_free,
        total=subtotal + shipping_fee,
        policy=policy,
    )
