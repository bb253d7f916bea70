"""
Storefront Records.

Typed, immutable representations of what the Order/Return API returns.
``from_api`` parses the raw snake_case payloads at the system boundary:
free-text payment methods are normalized into a closed enumeration once,
unrecognized status strings are reported as ``UnknownStatus`` rather
than silently rendered as "pending", and any other malformed field is
reported as ``InvalidRecord``. The models are only constructed from
values that have already been parsed.
"""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidLineItem, InvalidRecord, UnknownStatus

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


# =============================================================================
# ENUMERATIONS
# =============================================================================

class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CASH_ON_DELIVERY = "cash-on-delivery"
    CARD = "card"
    UPI = "upi"
    WALLET = "wallet"
    NET_BANKING = "net-banking"
    OTHER = "other"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class ReturnType(str, Enum):
    RETURN = "return"
    EXCHANGE = "exchange"


class ReturnStatus(str, Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    PROCESSING = "processing"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ReturnReason(str, Enum):
    WRONG_ITEM = "wrong_item"
    DAMAGED = "damaged"
    SIZE_ISSUE = "size_issue"
    NOT_MATCHING_DESCRIPTION = "not_matching_description"
    CHANGED_MIND = "changed_mind"
    OTHER = "other"


# Spellings the upstream API is known to emit for canonical values
PAYMENT_STATUS_ALIASES = {
    "completed": PaymentStatus.PAID,
}

RETURN_REASON_ALIASES = {
    "not_matching_desc": ReturnReason.NOT_MATCHING_DESCRIPTION,
    "others": ReturnReason.OTHER,
}

# Substring rules, checked in order; first match wins
PAYMENT_METHOD_RULES = [
    (("cod", "cash"), PaymentMethod.CASH_ON_DELIVERY),
    (("netbanking", "net banking", "net-banking", "net_banking"), PaymentMethod.NET_BANKING),
    (("upi", "gpay", "google pay", "phonepe", "phonepay", "paytm"), PaymentMethod.UPI),
    (("wallet",), PaymentMethod.WALLET),
    (("card", "credit", "debit", "visa", "mastercard"), PaymentMethod.CARD),
]


def parse_enum(
    enum_cls: Type[E],
    field: str,
    value: Any,
    aliases: Optional[Mapping[str, E]] = None,
) -> E:
    """
    Parse an upstream value into ``enum_cls``.

    Matching is case- and whitespace-insensitive. Anything that is not a
    member (or a known alias) raises ``UnknownStatus``.
    """
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        raise UnknownStatus(field, value)
    key = value.strip().lower()
    if aliases and key in aliases:
        return aliases[key]
    try:
        return enum_cls(key)
    except ValueError:
        raise UnknownStatus(field, value) from None


def normalize_payment_method(raw: Optional[str]) -> PaymentMethod:
    """
    Map a free-form payment method string into ``PaymentMethod``.

    A missing method is treated as cash on delivery, which is the
    storefront's default checkout option.
    """
    if isinstance(raw, PaymentMethod):
        return raw
    if not raw or not str(raw).strip():
        return PaymentMethod.CASH_ON_DELIVERY
    text = str(raw).strip().lower()
    try:
        return PaymentMethod(text)
    except ValueError:
        pass
    for needles, method in PAYMENT_METHOD_RULES:
        if any(needle in text for needle in needles):
            return method
    logger.debug(f"Payment method {raw!r} normalized to 'other'")
    return PaymentMethod.OTHER


def to_decimal(value: Any, field: str = "unit_price") -> Decimal:
    """Convert an upstream number to Decimal via its string form."""
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        raise InvalidLineItem(f"{field} is not a number: {value!r}", field=field, value=value)
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidLineItem(f"{field} is not a number: {value!r}", field=field, value=value) from None
    if not number.is_finite():
        raise InvalidLineItem(f"{field} is not a number: {value!r}", field=field, value=value)
    return number


def _to_quantity(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidLineItem(f"quantity is not an integer: {value!r}", field="quantity", value=value)
    try:
        quantity = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidLineItem(f"quantity is not an integer: {value!r}", field="quantity", value=value) from None
    if not quantity.is_finite() or quantity != quantity.to_integral_value():
        raise InvalidLineItem(f"quantity is not an integer: {value!r}", field="quantity", value=value)
    return int(quantity)


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _to_text(value: Any, field: str) -> str:
    """Plain text field; numbers are accepted and stringified."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return str(value)
    raise InvalidRecord(field, value, "text")


def _to_datetime(value: Any, field: str = "created_at") -> Optional[datetime]:
    """Parse an ISO 8601 timestamp; a trailing 'Z' means UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise InvalidRecord(field, value, "an ISO 8601 timestamp")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise InvalidRecord(field, value, "an ISO 8601 timestamp") from None


def _to_mapping(value: Any, field: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidRecord(field, value, "an object")
    return dict(value)


def _to_records(value: Any, field: str) -> List[Mapping[str, Any]]:
    """A list of nested objects, e.g. order lines."""
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise InvalidRecord(field, value, "a list")
    for index, entry in enumerate(value):
        if not isinstance(entry, Mapping):
            raise InvalidRecord(f"{field}[{index}]", entry, "an object")
    return list(value)


def _to_refund(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        amount = to_decimal(value, "refund_amount")
    except InvalidLineItem:
        raise InvalidRecord("refund_amount", value, "a non-negative amount") from None
    if amount < 0:
        raise InvalidRecord("refund_amount", value, "a non-negative amount")
    return amount


# =============================================================================
# RECORDS
# =============================================================================

class Customer(BaseModel):
    """Customer contact details as captured on the order."""
    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: str = ""
    phone: Optional[str] = None
    shipping_address: str = ""


class OrderItem(BaseModel):
    """
    One order line. ``unit_price`` is fixed when the order is created.

    Price and quantity are stored as received; the money model rejects
    invalid lines when totals are computed.
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    product_id: str
    product_name: str = ""
    image: Optional[str] = None
    unit_price: Decimal
    quantity: int
    item_status: Optional[OrderStatus] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def effective_status(self, order_status: OrderStatus) -> OrderStatus:
        """The per-item override, or the order status when absent."""
        return self.item_status or order_status

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "OrderItem":
        item_status = payload.get("item_status")
        return cls(
            id=_optional_str(payload.get("id") or payload.get("order_item_id")),
            product_id=str(payload.get("product_id") or ""),
            product_name=_to_text(payload.get("product_name") or payload.get("name"), "product_name"),
            image=_optional_str(payload.get("image") or payload.get("image_url")),
            unit_price=to_decimal(payload.get("unit_price", payload.get("price"))),
            quantity=_to_quantity(payload.get("quantity")),
            item_status=parse_enum(OrderStatus, "item_status", item_status) if item_status else None,
        )


class Order(BaseModel):
    """An order as returned by the Order API."""
    model_config = ConfigDict(frozen=True)

    id: str
    status: OrderStatus
    payment_method: PaymentMethod = PaymentMethod.CASH_ON_DELIVERY
    payment_status: PaymentStatus = PaymentStatus.PENDING
    items: Tuple[OrderItem, ...] = ()
    customer: Customer = Field(default_factory=Customer)
    created_at: Optional[datetime] = None
    tracking_id: Optional[str] = None

    def find_item(self, order_item_id: Optional[str] = None, product_id: Optional[str] = None) -> Optional[OrderItem]:
        """Locate a line by its item id, falling back to product id."""
        for item in self.items:
            if order_item_id is not None and item.id == order_item_id:
                return item
        if product_id is not None:
            for item in self.items:
                if item.product_id == product_id:
                    return item
        return None

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Order":
        """
        Parse an Order API payload.

        Accepts the flat ``customer_*`` keys the API emits as well as a
        nested ``customer`` object.

        Raises:
            UnknownStatus: if order_status, payment_status or an item_status
                is not recognized
            InvalidLineItem: if a price or quantity is not numeric
            InvalidRecord: if the customer, items, a text field or created_at
                is malformed
        """
        nested: Dict[str, Any] = _to_mapping(payload.get("customer"), "customer")
        customer = Customer(
            name=_to_text(nested.get("name") or payload.get("customer_name"), "customer_name"),
            email=_to_text(nested.get("email") or payload.get("customer_email"), "customer_email"),
            phone=_optional_str(nested.get("phone") or payload.get("customer_phone")),
            shipping_address=_to_text(
                nested.get("shipping_address") or payload.get("shipping_address"), "shipping_address"
            ),
        )
        raw_payment_status = payload.get("payment_status")
        return cls(
            id=str(payload.get("id") or payload.get("order_id") or ""),
            status=parse_enum(OrderStatus, "order_status", payload.get("order_status", payload.get("status"))),
            payment_method=normalize_payment_method(payload.get("payment_method")),
            payment_status=(
                parse_enum(PaymentStatus, "payment_status", raw_payment_status, PAYMENT_STATUS_ALIASES)
                if raw_payment_status else PaymentStatus.PENDING
            ),
            items=tuple(OrderItem.from_api(item) for item in _to_records(payload.get("items"), "items")),
            customer=customer,
            created_at=_to_datetime(payload.get("created_at")),
            tracking_id=_optional_str(payload.get("tracking_id") or payload.get("tracking_number")),
        )


class ReturnLine(BaseModel):
    """One order line selected for return or exchange."""
    model_config = ConfigDict(frozen=True)

    order_item_id: Optional[str] = None
    product_id: Optional[str] = None
    product_name: str = ""
    quantity: int = 1
    reason: ReturnReason = ReturnReason.OTHER

    @classmethod
    def from_api(cls, payload: Mapping[str, Any], default_reason: Any = None) -> "ReturnLine":
        reason = payload.get("reason") or default_reason or ReturnReason.OTHER
        return cls(
            order_item_id=_optional_str(payload.get("order_item_id")),
            product_id=_optional_str(payload.get("product_id")),
            product_name=_to_text(payload.get("product_name"), "product_name"),
            quantity=_to_quantity(payload.get("quantity", 1)),
            reason=parse_enum(ReturnReason, "reason", reason, RETURN_REASON_ALIASES),
        )


class ReturnRequest(BaseModel):
    """A return or exchange request overlaid on a delivered order."""
    model_config = ConfigDict(frozen=True)

    id: str
    order_id: str
    type: ReturnType = ReturnType.RETURN
    status: ReturnStatus = ReturnStatus.REQUESTED
    items: Tuple[ReturnLine, ...] = ()
    description: Optional[str] = None
    admin_notes: Optional[str] = None
    refund_amount: Optional[Decimal] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "ReturnRequest":
        """
        Parse a Return API payload.

        Raises:
            UnknownStatus: if type, status or a line reason is not recognized
            InvalidRecord: if refund_amount is negative or not numeric, or
                another field is malformed
        """
        refund = _to_refund(payload.get("refund_amount"))
        top_reason = payload.get("reason")
        return cls(
            id=str(payload.get("id") or payload.get("return_id") or ""),
            order_id=str(payload.get("order_id") or ""),
            type=parse_enum(ReturnType, "type", payload.get("type") or ReturnType.RETURN),
            status=parse_enum(ReturnStatus, "return_status", payload.get("status") or ReturnStatus.REQUESTED),
            items=tuple(ReturnLine.from_api(line, top_reason) for line in _to_records(payload.get("items"), "items")),
            description=_optional_str(payload.get("description")),
            admin_notes=_optional_str(payload.get("admin_notes")),
            refund_amount=refund,
            created_at=_to_datetime(payload.get("created_at")),
        )
