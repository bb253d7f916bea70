"""
Storefront View Composer.

Transforms a LifecycleSnapshot into the view models for the order list,
order detail, tracking and invoice pages. Every page reads the same
snapshot, so amounts, payment badges and timelines always agree.
Amounts are rounded and formatted here and nowhere else.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional

from config import settings
from core.presentation import StatusTheme, TextFormatter, ViewComposer

from ..domain.fulfillment import PaymentVerdict, TimelineStep
from ..domain.money import Totals, format_money
from ..domain.policies import CancellationPolicy, ReturnEligibilityPolicy
from ..domain.returns import ExtendedTimeline, summarize_returns
from ..domain.services import LifecycleSnapshot
from ..models import Order, PaymentMethod, ReturnRequest, ReturnStatus


PAYMENT_METHOD_LABELS = {
    PaymentMethod.CASH_ON_DELIVERY: "Cash on Delivery",
    PaymentMethod.CARD: "Credit/Debit Card",
    PaymentMethod.UPI: "UPI Payment",
    PaymentMethod.WALLET: "Wallet",
    PaymentMethod.NET_BANKING: "Net Banking",
    PaymentMethod.OTHER: "Other",
}

RETURN_TYPE_LABELS = {
    "return": "Return",
    "exchange": "Exchange",
}


class StorefrontViewComposer(ViewComposer):
    """
    View composer for the storefront order pages.

    Provides one builder per page; all of them take a LifecycleSnapshot.
    """

    def __init__(self, theme: Optional[StatusTheme] = None, strict_returns: Optional[bool] = None):
        super().__init__(theme=theme)
        if strict_returns is None:
            strict_returns = settings.returns_block_on_any_existing
        self.cancellation_policy = CancellationPolicy()
        self.return_policy = ReturnEligibilityPolicy(strict=strict_returns)

    def get_view_builders(self) -> Dict[str, Callable]:
        """Return mapping of view names to builder methods."""
        return {
            "list": self.order_list_entry,
            "detail": self.order_detail_view,
            "tracking": self.tracking_view,
            "invoice": self.invoice_view,
        }

    # =========================================================================
    # SHARED BLOCKS
    # =========================================================================

    def _money(self, totals: Totals) -> Dict[str, Any]:
        rounded = totals.rounded()
        if totals.is_free_shipping:
            shipping_display = "FREE"
            note = f"Free shipping on orders above {format_money(totals.policy.threshold)}"
        else:
            shipping_display = format_money(totals.shipping_fee)
            note = f"Add {format_money(totals.amount_to_free_shipping)} more for free shipping"
        return {
            "subtotal": rounded["subtotal"],
            "shipping_fee": rounded["shipping_fee"],
            "total": rounded["total"],
            "is_free_shipping": totals.is_free_shipping,
            "subtotal_display": format_money(totals.subtotal),
            "shipping_display": shipping_display,
            "total_display": format_money(totals.total),
            "shipping_note": note,
            "shipping_saved": format_money(totals.shipping_saved) if totals.is_free_shipping else None,
            "tax_label": Totals.TAX_LABEL,
        }

    def _payment(self, verdict: PaymentVerdict) -> Dict[str, Any]:
        return {
            "state": verdict.state.value,
            "label": verdict.label,
            "description": verdict.description,
            "tone": self.theme.settlement_tone(verdict.state.value),
            "method": verdict.payment_method.value,
            "method_label": PAYMENT_METHOD_LABELS[verdict.payment_method],
            "amount_due": format_money(verdict.amount_due) if verdict.amount_due is not None else None,
        }

    def _step(self, step: TimelineStep, return_status: Optional[ReturnStatus] = None) -> Dict[str, Any]:
        view = {
            "id": step.index + 1,
            "key": step.key,
            "label": step.label,
            "description": step.description,
            "completed": step.completed,
            "current": step.current,
            "is_return": step.is_return,
        }
        if step.is_return and return_status is not None:
            status = return_status.value
            view.update({
                "terminal": step.terminal,
                "outcome": step.outcome,
                "tone": self.theme.return_tone(status),
                "return_type": RETURN_TYPE_LABELS.get(step.return_type or "", step.return_type),
                "admin_notes": step.admin_notes,
                "refund": None,
            })
            if step.refund_amount is not None:
                final = return_status == ReturnStatus.COMPLETED
                view["refund"] = {
                    "label": "Refund" if final else "Estimated Refund",
                    "amount": format_money(step.refund_amount),
                    "final": final,
                }
        return view

    def _timeline(self, timeline: ExtendedTimeline) -> Dict[str, Any]:
        return {
            "cancelled": timeline.cancelled,
            "has_return": timeline.has_return,
            "completed_count": timeline.completed_count,
            "progress_ratio": timeline.progress_ratio,
            "steps": [self._step(step, timeline.return_status) for step in timeline.steps],
        }

    def _items(self, order: Order) -> List[Dict[str, Any]]:
        rows = []
        for position, item in enumerate(order.items, start=1):
            status = item.effective_status(order.status).value
            rows.append({
                "line": position,
                "product_id": item.product_id,
                "product_name": item.product_name,
                "image": item.image,
                "quantity": item.quantity,
                "unit_price": format_money(item.unit_price),
                "line_total": format_money(item.line_total),
                "status": status,
                "status_tone": self.theme.order_tone(status),
            })
        return rows

    def _status(self, order: Order) -> Dict[str, Any]:
        return {
            "value": order.status.value,
            "label": order.status.value.upper(),
            "tone": self.theme.order_tone(order.status.value),
        }

    # =========================================================================
    # VIEWS
    # =========================================================================

    def order_list_entry(self, snapshot: LifecycleSnapshot) -> Dict[str, Any]:
        """Compact card for the "My Orders" list."""
        order = snapshot.order
        cancel_decision = self.cancellation_policy.evaluate({"order_status": order.status})
        return {
            "schema_version": self.schema_version,
            "order_id": order.id,
            "placed_on": TextFormatter.date(order.created_at),
            "status": self._status(order),
            "item_count": TextFormatter.pluralize(len(order.items), "item"),
            "total_display": format_money(snapshot.totals.total),
            "payment": self._payment(snapshot.verdict),
            "can_cancel": snapshot.can_cancel,
            "cancel_hint": None if cancel_decision.is_approved else cancel_decision.reason,
            "return_status": snapshot.return_request.status.value if snapshot.return_request else None,
        }

    def order_detail_view(self, snapshot: LifecycleSnapshot) -> Dict[str, Any]:
        """Full order page: progress, items, payment and summary."""
        order = snapshot.order
        return_decision = self.return_policy.evaluate({
            "order": order,
            "existing_return": snapshot.return_request,
        })
        return {
            "schema_version": self.schema_version,
            "order_id": order.id,
            "placed_on": TextFormatter.date(order.created_at),
            "status": self._status(order),
            "timeline": self._timeline(snapshot.timeline),
            "items": self._items(order),
            "money": self._money(snapshot.totals),
            "payment": self._payment(snapshot.verdict),
            "customer": order.customer.model_dump(),
            "actions": {
                "can_cancel": snapshot.can_cancel,
                "can_request_return": snapshot.can_request_return,
                "can_cancel_return": snapshot.can_cancel_return,
                "return_hint": None if return_decision.is_approved else return_decision.reason,
            },
        }

    def tracking_view(self, snapshot: LifecycleSnapshot) -> Dict[str, Any]:
        """Tracking page: timeline first, with the payment badge."""
        order = snapshot.order
        return {
            "schema_version": self.schema_version,
            "order_id": order.id,
            "tracking_id": order.tracking_id,
            "status": self._status(order),
            "timeline": self._timeline(snapshot.timeline),
            "items": self._items(order),
            "total_display": format_money(snapshot.totals.total),
            "tax_label": Totals.TAX_LABEL,
            "payment": self._payment(snapshot.verdict),
            "shipping_address": order.customer.shipping_address,
        }

    def invoice_view(self, snapshot: LifecycleSnapshot) -> Dict[str, Any]:
        """
        Invoice document data.

        The renderer prints these values verbatim and never recomputes
        totals. Lines keep the order's item order.
        """
        order = snapshot.order
        return {
            "schema_version": self.schema_version,
            "invoice_number": f"INV-{order.id}",
            "order_id": order.id,
            "issued_on": TextFormatter.date(order.created_at),
            "bill_to": order.customer.model_dump(),
            "lines": self._items(order),
            "money": self._money(snapshot.totals),
            "payment": self._payment(snapshot.verdict),
        }

    def returns_overview(self, returns: Iterable[ReturnRequest]) -> Dict[str, Any]:
        """The customer's return requests, in the order given."""
        returns = list(returns)
        summary = summarize_returns(returns)
        return {
            "schema_version": self.schema_version,
            "total": summary.total,
            "active": summary.active,
            "completed": summary.completed,
            "refunded_total": format_money(summary.refunded_total),
            "by_status": summary.by_status,
            "requests": [
                {
                    "return_id": request.id,
                    "order_id": request.order_id,
                    "type": RETURN_TYPE_LABELS[request.type.value],
                    "status": request.status.value,
                    "tone": self.theme.return_tone(request.status.value),
                    "reasons": [TextFormatter.humanize(line.reason.value) for line in request.items],
                    "refund": format_money(request.refund_amount) if request.refund_amount is not None else None,
                    "requested_on": TextFormatter.date(request.created_at),
                }
                for request in returns
            ],
        }
