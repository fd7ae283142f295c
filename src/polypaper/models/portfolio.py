"""Portfolio data models — positions, wallet state, orders, results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PositionSide(str, Enum):
    """바이너리 마켓의 두 아웃컴."""

    YES = "YES"
    NO = "NO"


def position_id(market_id: str, side: str) -> str:
    """One position per market per side: ``"<market_id>:<side>"``."""
    return f"{market_id}:{PositionSide(side).value}"


@dataclass(frozen=True)
class Position:
    """Accumulated exposure to one (market, side) pair at weighted-average cost."""

    id: str
    event_id: str
    event_title: str
    market_id: str
    market_title: str
    side: PositionSide
    average_price: float
    quantity: float
    total_invested: float
    last_trade_at: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "eventId": self.event_id,
            "eventTitle": self.event_title,
            "marketId": self.market_id,
            "marketTitle": self.market_title,
            "side": self.side.value,
            "averagePrice": self.average_price,
            "quantity": self.quantity,
            "totalInvested": self.total_invested,
            "lastTradeAt": self.last_trade_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Position:
        """Persisted record → Position.

        Raises:
            KeyError: required field missing.
            ValueError: bad side or non-numeric amounts.
            OverflowError: amounts too large for a float.
            TypeError: wrong field types.
        """
        market_id = str(data["marketId"])
        side = PositionSide(data["side"])
        return cls(
            id=position_id(market_id, side),
            event_id=str(data.get("eventId", "")),
            event_title=str(data.get("eventTitle", "")),
            market_id=market_id,
            market_title=str(data.get("marketTitle", "")),
            side=side,
            average_price=float(data["averagePrice"]),
            quantity=float(data["quantity"]),
            total_invested=float(data["totalInvested"]),
            last_trade_at=str(data.get("lastTradeAt", "")),
        )


@dataclass(frozen=True)
class PortfolioState:
    """Wallet balance plus positions in trade order."""

    balance: float
    positions: tuple[Position, ...] = ()

    def find(self, market_id: str, side: str) -> Optional[Position]:
        """(market_id, side) 포지션 조회. 없으면 None."""
        side = PositionSide(side)
        for pos in self.positions:
            if pos.market_id == market_id and pos.side is side:
                return pos
        return None

    def to_dict(self) -> dict:
        return {
            "balance": self.balance,
            "positions": [p.to_dict() for p in self.positions],
        }


def default_state(starting_balance: float) -> PortfolioState:
    return PortfolioState(balance=starting_balance, positions=())


@dataclass(frozen=True)
class BuyOrder:
    """A simulated market buy at a quoted price."""

    event_id: str
    event_title: str
    market_id: str
    market_title: str
    side: PositionSide
    price: float
    amount: float
    timestamp: str

    @property
    def side_label(self) -> str:
        return self.side.value if isinstance(self.side, PositionSide) else str(self.side)


@dataclass(frozen=True)
class TradeResult:
    """Outcome of a user-facing action. Rejections carry a reason."""

    success: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> TradeResult:
        return cls(success=True)

    @classmethod
    def rejected(cls, reason: str) -> TradeResult:
        return cls(success=False, reason=reason)
