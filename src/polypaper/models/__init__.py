"""Data models for polypaper."""

from polypaper.models.market import MarketPricePoint, NormalizedEvent, NormalizedMarket
from polypaper.models.portfolio import (
    BuyOrder,
    PortfolioState,
    Position,
    PositionSide,
    TradeResult,
)

__all__ = [
    "MarketPricePoint",
    "NormalizedMarket",
    "NormalizedEvent",
    "BuyOrder",
    "PortfolioState",
    "Position",
    "PositionSide",
    "TradeResult",
]
