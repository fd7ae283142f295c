"""Shared test fixtures for polypaper."""

from __future__ import annotations

import pytest

from polypaper.models.portfolio import BuyOrder, PositionSide
from polypaper.portfolio.session import PortfolioSession
from polypaper.portfolio.storage import MemoryStore, PortfolioRepository


def _make_order(
    market_id: str = "M1",
    side: PositionSide | str = PositionSide.YES,
    price: float = 0.40,
    amount: float = 100.0,
    event_id: str = "evt_1",
    event_title: str = "Presidential Election Winner 2028",
    market_title: str = "Will X win?",
    timestamp: str = "2026-10-19T12:00:00+00:00",
) -> BuyOrder:
    """Helper: build a BuyOrder with sensible defaults."""
    return BuyOrder(
        event_id=event_id,
        event_title=event_title,
        market_id=market_id,
        market_title=market_title,
        side=side,
        price=price,
        amount=amount,
        timestamp=timestamp,
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def repository(store) -> PortfolioRepository:
    return PortfolioRepository(store, starting_balance=1000.0)


@pytest.fixture
def session(repository) -> PortfolioSession:
    """Session for a signed-in identity, backed by memory."""
    return PortfolioSession(repository, identity="alice@example.com")


@pytest.fixture
def sample_gamma_market_dict() -> dict:
    """Raw market dict as returned by Gamma API."""
    return {
        "id": "512345",
        "question": "Will the Democratic candidate win?",
        "groupItemTitle": "Democratic",
        "outcomes": '["Yes", "No"]',
        "outcomePrices": '["0.42", "0.58"]',  # JSON string (Gamma API 특성)
    }


@pytest.fixture
def sample_gamma_event(sample_gamma_market_dict) -> dict:
    """Raw event dict as returned by Gamma API."""
    return {
        "id": "evt_900",
        "title": "Presidential Election Winner 2028",
        "slug": "presidential-election-winner-2028",
        "image": "https://example.com/img.png",
        "volume": "1234567.89",
        "endDate": "2028-11-07T00:00:00Z",
        "markets": [
            sample_gamma_market_dict,
            {
                "id": "512346",
                "question": "Will the Republican candidate win?",
                "groupItemTitle": "Republican",
                "outcomePrices": '["0.55", "0.45"]',
            },
        ],
    }


@pytest.fixture
def make_order():
    """Factory fixture for BuyOrder."""
    return _make_order
