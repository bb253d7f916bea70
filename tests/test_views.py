"""
Tests for the storefront view composer.

Every page reads the same snapshot, so amounts and badges must agree
across the list, detail, tracking and invoice views.
"""
import pytest

from use_cases.storefront import OrderLifecycle
from use_cases.storefront.presentation import StorefrontViewComposer

from factories import line_payload, make_order, make_return


@pytest.fixture
def composer():
    return StorefrontViewComposer()


def snapshot_for(order, return_request=None):
    return OrderLifecycle().execute(order, return_request)


@pytest.mark.unit
class TestViewConsistency:

    def test_all_views_show_the_same_total(self, composer):
        snapshot = snapshot_for(make_order(items=[line_payload("120.50", 2)], status="shipped"))
        builders = composer.get_view_builders()

        assert set(builders) == {"list", "detail", "tracking", "invoice"}
        assert builders["list"](snapshot)["total_display"] == "₹291.00"
        assert builders["detail"](snapshot)["money"]["total_display"] == "₹291.00"
        assert builders["tracking"](snapshot)["total_display"] == "₹291.00"
        assert builders["invoice"](snapshot)["money"]["total_display"] == "₹291.00"

    def test_payment_badge_matches_everywhere(self, composer):
        snapshot = snapshot_for(make_order(status="confirmed"))
        badges = [view(snapshot)["payment"] for view in composer.get_view_builders().values()]
        assert all(badge == badges[0] for badge in badges)
        assert badges[0]["label"] == "To Pay"
        assert badges[0]["amount_due"] == "₹300.00"
        assert badges[0]["method_label"] == "Cash on Delivery"


@pytest.mark.unit
class TestOrderViews:

    def test_list_entry(self, composer):
        entry = composer.order_list_entry(snapshot_for(make_order(status="shipped")))
        assert entry["order_id"] == "ORD-1001"
        assert entry["placed_on"] == "15 Jan 2025"
        assert entry["item_count"] == "1 item"
        assert entry["can_cancel"] is False
        assert entry["cancel_hint"] == "cannot cancel order that is already confirmed/shipped"
        assert entry["return_status"] is None

    def test_detail_money_below_threshold(self, composer):
        view = composer.order_detail_view(snapshot_for(make_order(items=[line_payload("249", 1)])))
        money = view["money"]
        assert money["shipping_display"] == "₹50.00"
        assert money["shipping_note"] == "Add ₹50.00 more for free shipping"
        assert money["shipping_saved"] is None
        assert money["tax_label"] == "includes shipping, no tax"

    def test_detail_money_free_shipping(self, composer):
        money = composer.order_detail_view(snapshot_for(make_order()))["money"]
        assert money["shipping_display"] == "FREE"
        assert money["shipping_saved"] == "₹50.00"

    def test_detail_actions(self, composer):
        view = composer.order_detail_view(snapshot_for(make_order(status="delivered")))
        assert view["actions"] == {
            "can_cancel": False,
            "can_request_return": True,
            "can_cancel_return": False,
            "return_hint": None,
        }

    def test_tracking_with_return_node(self, composer):
        request = make_return(status="approved", refund_amount="100")
        view = composer.tracking_view(snapshot_for(make_order(status="delivered"), request))
        steps = view["timeline"]["steps"]

        assert len(steps) == 5
        assert [step["id"] for step in steps] == [1, 2, 3, 4, 5]
        node = steps[-1]
        assert node["label"] == "Return Approved"
        assert node["tone"] == "info"
        assert node["return_type"] == "Return"
        assert node["refund"] == {"label": "Estimated Refund", "amount": "₹100.00", "final": False}

    def test_completed_refund_is_final(self, composer):
        request = make_return(status="completed", refund_amount="100")
        view = composer.tracking_view(snapshot_for(make_order(status="delivered"), request))
        assert view["timeline"]["steps"][-1]["refund"]["label"] == "Refund"

    def test_invoice(self, composer):
        order = make_order(items=[line_payload("99.99", 1, "A"), line_payload("10", 3, "B")])
        invoice = composer.invoice_view(snapshot_for(order))
        assert invoice["invoice_number"] == "INV-ORD-1001"
        assert [line["product_id"] for line in invoice["lines"]] == ["A", "B"]
        assert invoice["lines"][1]["line_total"] == "₹30.00"
        assert invoice["money"]["subtotal_display"] == "₹129.99"
        assert invoice["money"]["total_display"] == "₹179.99"
        assert invoice["bill_to"]["email"] == "asha@example.com"


@pytest.mark.unit
class TestReturnsOverview:

    def test_overview(self, composer):
        overview = composer.returns_overview([
            make_return(status="completed", refund_amount="100", return_id="RET-1"),
            make_return(status="requested", return_type="exchange", return_id="RET-2"),
        ])
        assert overview["total"] == 2
        assert overview["active"] == 1
        assert overview["refunded_total"] == "₹100.00"
        assert [r["return_id"] for r in overview["requests"]] == ["RET-1", "RET-2"]
        assert overview["requests"][1]["type"] == "Exchange"
        assert overview["requests"][0]["reasons"] == ["Damaged"]
        assert overview["requests"][0]["refund"] == "₹100.00"
