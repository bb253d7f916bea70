"""
FastAPI Application for the Storefront Order Lifecycle service.

The storefront pages post the order (and return) records they fetched
from the Order/Return API and get back the derived totals, payment
verdict, timeline and page view models. The service stores nothing.
"""

import logging
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config import configure_logging, settings
from use_cases.storefront import (
    IllegalTransition,
    InvalidLineItem,
    InvalidRecord,
    LifecycleError,
    Order,
    OrderLifecycle,
    ReturnAlreadyActive,
    ReturnRequest,
    ReturnRequestBuilder,
    UnknownStatus,
    ValidationFailed,
)
from use_cases.storefront.domain import LifecycleSnapshot, Totals
from use_cases.storefront.presentation import StorefrontViewComposer

# Configure logging
configure_logging(settings)
logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"

ERROR_STATUS_CODES = {
    InvalidLineItem: 422,
    InvalidRecord: 422,
    UnknownStatus: 422,
    ValidationFailed: 400,
    IllegalTransition: 409,
    ReturnAlreadyActive: 409,
}

lifecycle = OrderLifecycle()
composer = StorefrontViewComposer()
return_builder = ReturnRequestBuilder()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - handles startup and shutdown."""
    policy = lifecycle.shipping_policy
    logger.info("Starting Order Lifecycle service...")
    logger.info(f"Shipping policy: free at {policy.threshold}, otherwise {policy.flat_fee}")
    yield
    logger.info("Shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Storefront Order Lifecycle",
    description="Totals, payment verdicts and progress timelines for storefront orders and returns",
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc"
)

# CORS middleware for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# REQUEST MODELS
# =============================================================================

class LifecycleRequest(BaseModel):
    """An order payload and its optional return payload, as the API returned them."""
    order: Dict[str, Any]
    return_request: Optional[Dict[str, Any]] = None


class CancelRequest(BaseModel):
    order: Dict[str, Any]
    reason: Optional[str] = None


class ReturnDraftRequest(BaseModel):
    order: Dict[str, Any]
    type: str
    items: List[Dict[str, Any]]
    description: str = ""
    existing_return: Optional[Dict[str, Any]] = None


class ReturnsOverviewRequest(BaseModel):
    returns: List[Dict[str, Any]]


# =============================================================================
# HELPERS
# =============================================================================

def _status_code(error: LifecycleError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(error, error_type):
            return status_code
    return 400


def _jsonable(value: Any) -> Any:
    """Decimals as strings so amounts survive JSON exactly."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def _snapshot(body: LifecycleRequest) -> LifecycleSnapshot:
    order = Order.from_api(body.order)
    return_request = ReturnRequest.from_api(body.return_request) if body.return_request else None
    return lifecycle.execute(order, return_request)


@app.exception_handler(LifecycleError)
async def lifecycle_error_handler(request: Request, exc: LifecycleError):
    """Return typed engine errors as structured JSON."""
    logger.warning(f"{exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=_status_code(exc), content=_jsonable(exc.to_dict()))


# =============================================================================
# ENDPOINTS
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": APP_VERSION,
        "use_case": "storefront_order_lifecycle",
    }


@app.get("/api/shipping-policy")
async def get_shipping_policy():
    """The process-wide shipping policy, for checkout banners."""
    policy = lifecycle.shipping_policy
    return _jsonable({
        "free_shipping_threshold": policy.threshold,
        "flat_fee": policy.flat_fee,
        "currency_symbol": settings.currency_symbol,
        "tax_label": Totals.TAX_LABEL,
    })


@app.post("/api/orders/lifecycle")
async def order_lifecycle(body: LifecycleRequest):
    """Derive totals, payment verdict, timeline and action flags for one order."""
    snapshot = _snapshot(body)
    return _jsonable({
        "order_id": snapshot.order.id,
        "totals": {
            "subtotal": snapshot.totals.subtotal,
            "shipping_fee": snapshot.totals.shipping_fee,
            "is_free_shipping": snapshot.totals.is_free_shipping,
            "total": snapshot.totals.total,
        },
        "payment": snapshot.verdict.to_dict(),
        "timeline": snapshot.timeline.to_dict(),
        "can_cancel": snapshot.can_cancel,
        "can_request_return": snapshot.can_request_return,
        "can_cancel_return": snapshot.can_cancel_return,
    })


@app.post("/api/orders/views/{view_name}")
async def order_view(view_name: str, body: LifecycleRequest):
    """Build the view model for one of the order pages (list, detail, tracking, invoice)."""
    builders = composer.get_view_builders()
    builder = builders.get(view_name)
    if builder is None:
        return JSONResponse(
            status_code=404,
            content={"error": "unknown_view", "message": f"Unknown view: {view_name}", "views": sorted(builders)},
        )
    return _jsonable(builder(_snapshot(body)))


@app.post("/api/orders/cancel")
async def check_cancellation(body: CancelRequest):
    """
    Validate a customer cancellation before it is sent to the Order API.

    Responds 409 when the order is past confirmation and 400 when the
    reason is missing.
    """
    order = Order.from_api(body.order)
    new_status = lifecycle.cancel(order, body.reason)
    return {"order_id": order.id, "status": new_status.value, "reason": body.reason.strip()}


@app.post("/api/returns/draft")
async def draft_return(body: ReturnDraftRequest):
    """Validate a return/exchange form and return the payload to submit."""
    order = Order.from_api(body.order)
    existing = ReturnRequest.from_api(body.existing_return) if body.existing_return else None
    draft = return_builder.execute(
        order=order,
        return_type=body.type,
        items=body.items,
        description=body.description,
        existing_return=existing,
    )
    return draft.to_dict()


@app.post("/api/returns/overview")
async def returns_overview(body: ReturnsOverviewRequest):
    """Summarize a customer's return requests."""
    returns = [ReturnRequest.from_api(payload) for payload in body.returns]
    return _jsonable(composer.returns_overview(returns))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=False,
        log_level=settings.log_level.lower()
    )
