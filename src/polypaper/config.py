"""Desk configuration — wallet defaults, feed query, env-based config."""

from __future__ import annotations

import os
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Wallet defaults
# ---------------------------------------------------------------------------

INITIAL_WALLET_BALANCE: float = 1000.0
DEFAULT_TRADE_AMOUNT: float = 25.0
QUICK_FUND_AMOUNTS: tuple[int, ...] = (50, 100, 250, 500)

# Key prefix for persisted portfolios: "<namespace>:<identity>:portfolio"
STORAGE_NAMESPACE = "polypaper"

# ---------------------------------------------------------------------------
# Price feed
# ---------------------------------------------------------------------------

GAMMA_API_URL = "https://gamma-api.polymarket.com"
PRICE_REFRESH_INTERVAL = 30  # seconds
MIN_REFRESH_INTERVAL = 5  # seconds

# 거래량 기준 상위 정치 이벤트
EVENTS_QUERY = (
    "tag_slug=politics&active=true&closed=false"
    "&order=volume&ascending=false&limit=20"
)

# Simulated order placement latency (UX only)
ORDER_PLACEMENT_DELAY = 0.28  # seconds


# ---------------------------------------------------------------------------
# DashboardConfig: 환경변수 기반 설정
# ---------------------------------------------------------------------------


@dataclass
class DashboardConfig:
    """Desk-wide settings. Environment variables or defaults."""

    starting_balance: float = INITIAL_WALLET_BALANCE
    refresh_interval: int = PRICE_REFRESH_INTERVAL
    trade_amount: float = DEFAULT_TRADE_AMOUNT
    state_dir: str = ".polypaper"
    events_query: str = EVENTS_QUERY
    gamma_url: str = GAMMA_API_URL

    def __post_init__(self):
        if self.refresh_interval < MIN_REFRESH_INTERVAL:
            self.refresh_interval = MIN_REFRESH_INTERVAL
        if self.trade_amount <= 0:
            self.trade_amount = DEFAULT_TRADE_AMOUNT

    @classmethod
    def from_env(cls) -> DashboardConfig:
        """환경변수에서 설정 로드. 없으면 안전한 기본값."""
        return cls(
            starting_balance=float(
                os.environ.get("POLYPAPER_STARTING_BALANCE", INITIAL_WALLET_BALANCE)
            ),
            refresh_interval=int(
                os.environ.get("POLYPAPER_REFRESH_INTERVAL", PRICE_REFRESH_INTERVAL)
            ),
            trade_amount=float(
                os.environ.get("POLYPAPER_TRADE_AMOUNT", DEFAULT_TRADE_AMOUNT)
            ),
            state_dir=os.environ.get("POLYPAPER_STATE_DIR", ".polypaper"),
            events_query=os.environ.get("POLYPAPER_EVENTS_QUERY", EVENTS_QUERY),
            gamma_url=os.environ.get("POLYPAPER_GAMMA_URL", GAMMA_API_URL),
        )
