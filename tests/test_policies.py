"""
Unit tests for cancellation and return policies and the return form validator.
"""
import pytest

from use_cases.storefront.domain import (
    CancellationPolicy,
    ReturnEligibilityPolicy,
    ReturnRequestValidator,
)

from factories import line_payload, make_order, make_return


@pytest.mark.unit
class TestCancellationPolicy:

    def test_pending_is_approved(self):
        decision = CancellationPolicy().evaluate({"order_status": "pending"})
        assert decision.is_approved
        assert decision.metadata["order_status"] == "pending"

    @pytest.mark.parametrize("status", ["confirmed", "shipped", "delivered"])
    def test_confirmed_onwards_denied(self, status):
        decision = CancellationPolicy().evaluate({"order_status": status})
        assert decision.is_denied
        assert decision.reason == "cannot cancel order that is already confirmed/shipped"

    def test_reason_enforced_when_required(self):
        policy = CancellationPolicy(require_reason=True)
        assert policy.evaluate({"order_status": "pending", "reason": " "}).is_denied
        assert policy.evaluate({"order_status": "pending", "reason": "Late delivery"}).is_approved

    def test_explain(self):
        policy = CancellationPolicy()
        assert policy.explain({"order_status": "cancelled"}) == "order is already cancelled"


@pytest.mark.unit
class TestReturnEligibilityPolicy:

    def test_delivered_order_approved(self, delivered_card_order):
        decision = ReturnEligibilityPolicy().evaluate({"order": delivered_card_order})
        assert decision.is_approved

    def test_undelivered_denied(self):
        decision = ReturnEligibilityPolicy().evaluate({"order": make_order(status="shipped")})
        assert decision.is_denied
        assert "must be delivered" in decision.reason

    def test_existing_return_denied(self, delivered_card_order):
        decision = ReturnEligibilityPolicy().evaluate({
            "order": delivered_card_order,
            "existing_return": make_return(status="rejected"),
        })
        assert decision.is_denied
        assert decision.metadata["return_status"] == "rejected"

    def test_relaxed_mode_allows_after_terminal_return(self, delivered_card_order):
        decision = ReturnEligibilityPolicy(strict=False).evaluate({
            "order": delivered_card_order,
            "existing_return": make_return(status="rejected"),
        })
        assert decision.is_approved


@pytest.mark.unit
class TestReturnRequestValidator:

    @pytest.fixture
    def order(self):
        return make_order(
            items=[line_payload("100", 2, "A"), line_payload("50", 1, "B")],
            status="delivered",
        )

    def _codes(self, errors):
        return {(e.field, e.code) for e in errors}

    def test_valid_form(self, order):
        errors = ReturnRequestValidator().validate({
            "order": order,
            "type": "exchange",
            "items": [{"order_item_id": "LI-A", "quantity": 2, "reason": "size_issue"}],
            "description": "Too small",
        })
        assert errors == []

    def test_empty_selection(self, order):
        errors = ReturnRequestValidator().validate({"order": order, "type": "return", "items": []})
        assert self._codes(errors) == {("items", "min_length")}
        assert errors[0].message == "Please select at least one item to return"

    def test_invalid_type(self, order):
        errors = ReturnRequestValidator().validate({
            "order": order,
            "type": "refund",
            "items": [{"product_id": "B", "quantity": 1, "reason": "damaged"}],
        })
        assert self._codes(errors) == {("type", "invalid_choice")}

    def test_line_errors(self, order):
        errors = ReturnRequestValidator().validate({
            "order": order,
            "type": "return",
            "items": [
                {"order_item_id": "LI-A", "quantity": 3, "reason": "damaged"},
                {"order_item_id": "LI-A", "quantity": 1, "reason": "bored"},
                {"product_id": "Z", "quantity": 1, "reason": "damaged"},
            ],
        })
        assert self._codes(errors) == {
            ("items[0].quantity", "out_of_range"),
            ("items[1]", "duplicate"),
            ("items[1].reason", "invalid_choice"),
            ("items[2]", "not_found"),
        }

    def test_description_too_long(self, order):
        errors = ReturnRequestValidator().validate({
            "order": order,
            "type": "return",
            "items": [{"product_id": "B", "quantity": 1, "reason": "others"}],
            "description": "x" * 1001,
        })
        assert self._codes(errors) == {("description", "max_length")}
