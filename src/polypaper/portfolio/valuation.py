"""Mark-to-market valuation of open positions.

A position with no live price is marked at its own average price, so its
unrealized P&L is exactly zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from polypaper.models.market import MarketPricePoint
from polypaper.models.portfolio import PortfolioState, Position


@dataclass(frozen=True)
class PositionValuation:
    """단일 포지션 평가."""

    position: Position
    current_price: float
    has_live_price: bool

    @property
    def mark_value(self) -> float:
        return self.current_price * self.position.quantity

    @property
    def unrealized_pnl(self) -> float:
        return (self.current_price - self.position.average_price) * self.position.quantity


@dataclass(frozen=True)
class PortfolioSummary:
    """Aggregate totals across all positions."""

    valuations: tuple[PositionValuation, ...]
    total_invested: float
    mark_value: float
    unrealized_pnl: float
    winners: int

    @property
    def position_count(self) -> int:
        return len(self.valuations)

    @property
    def win_rate(self) -> float:
        """pnl >= 0 포지션 비율 (%). 포지션 없으면 0.0."""
        if not self.valuations:
            return 0.0
        return self.winners / len(self.valuations) * 100.0


def current_price(
    position: Position,
    price: Optional[MarketPricePoint],
) -> float:
    if price is None:
        return position.average_price
    return price.for_side(position.side.value)


def value_position(
    position: Position,
    price_index: Mapping[str, MarketPricePoint],
) -> PositionValuation:
    price = price_index.get(position.market_id)
    return PositionValuation(
        position=position,
        current_price=current_price(position, price),
        has_live_price=price is not None,
    )


def summarize(
    state: PortfolioState,
    price_index: Mapping[str, MarketPricePoint],
) -> PortfolioSummary:
    valuations = tuple(value_position(p, price_index) for p in state.positions)
    return PortfolioSummary(
        valuations=valuations,
        total_invested=sum(v.position.total_invested for v in valuations),
        mark_value=sum(v.mark_value for v in valuations),
        unrealized_pnl=sum(v.unrealized_pnl for v in valuations),
        winners=sum(1 for v in valuations if v.unrealized_pnl >= 0),
    )


def group_by_event(
    valuations: Iterable[PositionValuation],
) -> list[tuple[str, list[PositionValuation]]]:
    """(event_id, event_title)별 그룹. 처음 등장한 순서 유지.

    Returns:
        [(event_title, valuations), ...]
    """
    groups: dict[tuple[str, str], list[PositionValuation]] = {}
    for v in valuations:
        key = (v.position.event_id, v.position.event_title)
        groups.setdefault(key, []).append(v)
    return [(title, items) for (_, title), items in groups.items()]
