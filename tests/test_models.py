"""
Unit tests for boundary parsing of Order/Return API payloads.
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from use_cases.storefront import (
    InvalidLineItem,
    InvalidRecord,
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ReturnReason,
    ReturnRequest,
    UnknownStatus,
    normalize_payment_method,
)

from factories import line_payload, order_payload, return_payload


@pytest.mark.unit
class TestPaymentMethodNormalization:

    @pytest.mark.parametrize("raw, expected", [
        ("cash-on-delivery", PaymentMethod.CASH_ON_DELIVERY),
        ("COD", PaymentMethod.CASH_ON_DELIVERY),
        ("Cash on Delivery", PaymentMethod.CASH_ON_DELIVERY),
        (None, PaymentMethod.CASH_ON_DELIVERY),
        ("", PaymentMethod.CASH_ON_DELIVERY),
        ("Credit Card", PaymentMethod.CARD),
        ("debit", PaymentMethod.CARD),
        ("UPI", PaymentMethod.UPI),
        ("Google Pay", PaymentMethod.UPI),
        ("Net Banking", PaymentMethod.NET_BANKING),
        ("wallet", PaymentMethod.WALLET),
        ("barter", PaymentMethod.OTHER),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_payment_method(raw) == expected


@pytest.mark.unit
class TestOrderFromApi:

    def test_flat_payload(self):
        order = Order.from_api(order_payload(status="Shipped", payment_method="UPI", payment_status="paid"))
        assert order.id == "ORD-1001"
        assert order.status == OrderStatus.SHIPPED
        assert order.payment_method == PaymentMethod.UPI
        assert order.payment_status == PaymentStatus.PAID
        assert order.customer.name == "Asha Rao"
        assert order.created_at.year == 2025

    def test_prices_become_decimals(self):
        order = Order.from_api(order_payload(items=[line_payload(19.99, "3")]))
        item = order.items[0]
        assert item.unit_price == Decimal("19.99")
        assert item.quantity == 3
        assert item.line_total == Decimal("59.97")

    def test_nested_customer_and_alternate_keys(self):
        payload = {
            "order_id": "ORD-7",
            "status": "confirmed",
            "customer": {"name": "Ravi", "email": "ravi@example.com", "shipping_address": "Pune"},
            "tracking_number": "TRK-1",
            "items": [],
        }
        order = Order.from_api(payload)
        assert order.id == "ORD-7"
        assert order.status == OrderStatus.CONFIRMED
        assert order.customer.shipping_address == "Pune"
        assert order.tracking_id == "TRK-1"
        assert order.payment_status == PaymentStatus.PENDING
        assert order.payment_method == PaymentMethod.CASH_ON_DELIVERY

    @pytest.mark.parametrize("field, payload", [
        ("order_status", order_payload(status="lost")),
        ("payment_status", order_payload(payment_status="refunded")),
    ])
    def test_unknown_status_not_defaulted(self, field, payload):
        with pytest.raises(UnknownStatus) as exc_info:
            Order.from_api(payload)
        assert exc_info.value.field == field

    def test_item_status_override(self):
        line = dict(line_payload("10", 1), item_status="cancelled")
        order = Order.from_api(order_payload(items=[line], status="confirmed"))
        assert order.items[0].effective_status(order.status) == OrderStatus.CANCELLED

    @pytest.mark.parametrize("price", ["abc", None, "NaN", "Infinity"])
    def test_non_numeric_price(self, price):
        with pytest.raises(InvalidLineItem):
            Order.from_api(order_payload(items=[line_payload(price, 1)]))

    def test_fractional_quantity(self):
        with pytest.raises(InvalidLineItem):
            Order.from_api(order_payload(items=[line_payload("10", "1.5")]))

    def test_utc_timestamp(self):
        order = Order.from_api(dict(order_payload(), created_at="2025-01-15T10:30:00Z"))
        assert order.created_at.utcoffset() == timedelta(0)

    @pytest.mark.parametrize("field, value", [
        ("created_at", "15/01/2025"),
        ("created_at", 1736937000),
        ("customer_name", {"first": "Asha"}),
        ("shipping_address", ["12 MG Road"]),
        ("items", "P-1 x 2"),
    ])
    def test_malformed_fields_are_typed_errors(self, field, value):
        with pytest.raises(InvalidRecord) as exc_info:
            Order.from_api(dict(order_payload(), **{field: value}))
        assert exc_info.value.field == field
        assert exc_info.value.code == "invalid_record"

    def test_non_object_line(self):
        with pytest.raises(InvalidRecord) as exc_info:
            Order.from_api(order_payload(items=["P-1"]))
        assert exc_info.value.field == "items[0]"

    def test_non_object_customer(self):
        with pytest.raises(InvalidRecord):
            Order.from_api(dict(order_payload(), customer="Asha Rao"))

    def test_find_item(self):
        order = Order.from_api(order_payload(items=[line_payload("10", 1, "A"), line_payload("20", 1, "B")]))
        assert order.find_item(order_item_id="LI-B").product_id == "B"
        assert order.find_item(product_id="A").id == "LI-A"
        assert order.find_item(order_item_id="missing") is None


@pytest.mark.unit
class TestReturnFromApi:

    def test_return_payload(self):
        request = ReturnRequest.from_api(return_payload(status="approved", refund_amount=100))
        assert request.refund_amount == Decimal("100")
        assert request.items[0].reason == ReturnReason.DAMAGED

    @pytest.mark.parametrize("raw, expected", [
        ("not_matching_desc", ReturnReason.NOT_MATCHING_DESCRIPTION),
        ("others", ReturnReason.OTHER),
        ("Size_Issue", ReturnReason.SIZE_ISSUE),
    ])
    def test_reason_aliases(self, raw, expected):
        payload = dict(return_payload(), reason=raw)
        assert ReturnRequest.from_api(payload).items[0].reason == expected

    def test_unknown_return_status(self):
        with pytest.raises(UnknownStatus):
            ReturnRequest.from_api(return_payload(status="escalated"))

    @pytest.mark.parametrize("refund", ["-100", -0.01, "lots"])
    def test_refund_must_be_non_negative_amount(self, refund):
        with pytest.raises(InvalidRecord) as exc_info:
            ReturnRequest.from_api(return_payload(status="completed", refund_amount=refund))
        assert exc_info.value.field == "refund_amount"

    def test_zero_refund_allowed(self):
        assert ReturnRequest.from_api(return_payload(refund_amount="0")).refund_amount == Decimal("0")

    def test_malformed_created_at(self):
        with pytest.raises(InvalidRecord):
            ReturnRequest.from_api(dict(return_payload(), created_at="yesterday"))

    def test_records_are_immutable(self):
        request = ReturnRequest.from_api(return_payload())
        with pytest.raises(PydanticValidationError):
            request.status = "approved"
