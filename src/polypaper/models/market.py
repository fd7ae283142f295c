"""Normalized market and event snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class MarketPricePoint:
    """YES/NO probabilities, each clamped into [0, 1] independently."""

    yes: float = 0.0
    no: float = 0.0

    def for_side(self, side: str) -> float:
        """사이드별 가격."""
        return self.yes if side == "YES" else self.no

    def to_dict(self) -> dict:
        return {"yes": self.yes, "no": self.no}


@dataclass(frozen=True)
class NormalizedMarket:
    """A single binary market as seen on one refresh."""

    id: str
    title: str
    price: MarketPricePoint = field(default_factory=MarketPricePoint)

    @property
    def is_actionable(self) -> bool:
        """가격이 하나라도 있으면 거래 가능."""
        return self.price.yes > 0 or self.price.no > 0

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "price": self.price.to_dict()}


@dataclass(frozen=True)
class NormalizedEvent:
    """A group of related markets, rebuilt from scratch on every refresh."""

    id: str
    title: str
    slug: str
    image: Optional[str] = None
    volume: float = 0.0
    end_date: Optional[str] = None
    markets: tuple[NormalizedMarket, ...] = ()

    @property
    def has_actionable_market(self) -> bool:
        return any(m.is_actionable for m in self.markets)

    def to_dict(self) -> dict:
        """camelCase JSON shape served to dashboards."""
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "image": self.image,
            "volume": self.volume,
            "endDate": self.end_date,
            "markets": [m.to_dict() for m in self.markets],
        }
