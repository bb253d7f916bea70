"""
Pytest configuration and shared fixtures for the order lifecycle tests.

Provides the common order records and a FastAPI test client.
"""
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from use_cases.storefront import Order
from factories import line_payload, make_order


# ── Order Fixtures ───────────────────────────────────────────────────


@pytest.fixture
def pending_cod_order() -> Order:
    """₹150 x 2, cash on delivery, not yet confirmed."""
    return make_order()


@pytest.fixture
def delivered_card_order() -> Order:
    """₹100 x 1, paid by card, delivered."""
    return make_order(
        items=[line_payload("100", 1)],
        status="delivered",
        payment_method="card",
        payment_status="paid",
    )


# ── Client Fixtures ──────────────────────────────────────────────────


@pytest.fixture
def test_client() -> Generator[TestClient, None, None]:
    """FastAPI test client for the lifecycle service."""
    from main import app

    with TestClient(app) as client:
        yield client
