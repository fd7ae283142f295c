"""Portfolio ledger — pure state transitions over wallet actions.

The ledger is a reducer: ``transition(state, action) -> state``. It never
mutates its input and never raises for bad orders; validation happens in
:func:`validate_buy` / :func:`validate_add_funds` before an action is built,
and a rejected action simply never reaches :func:`transition`.

Cost basis is a weighted average per ``(market_id, side)``::

    quantity_delta  = amount / price
    total_invested' = total_invested + amount
    quantity'       = quantity + quantity_delta
    average_price'  = total_invested' / quantity'

YES and NO of the same market are separate positions; nothing nets them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Union

from polypaper.models.portfolio import (
    BuyOrder,
    PortfolioState,
    Position,
    PositionSide,
    TradeResult,
    position_id,
)

INVALID_AMOUNT = "Enter a valid amount."
INVALID_ORDER = "Invalid order values."
INSUFFICIENT_BALANCE = "Insufficient wallet balance."


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Load:
    """Replace state wholesale with a restored snapshot."""

    snapshot: PortfolioState


@dataclass(frozen=True)
class Reset:
    """Back to the starting balance with no positions."""


@dataclass(frozen=True)
class AddFunds:
    amount: float


@dataclass(frozen=True)
class Buy:
    order: BuyOrder


Action = Union[Load, Reset, AddFunds, Buy]


# ---------------------------------------------------------------------------
# Validation (calling contract)
# ---------------------------------------------------------------------------


def _is_finite_number(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def validate_add_funds(amount) -> TradeResult:
    """입금액 검증. 유한한 양수만 허용."""
    if not _is_finite_number(amount) or amount <= 0:
        return TradeResult.rejected(INVALID_AMOUNT)
    return TradeResult.ok()


def validate_buy(state: PortfolioState, order: BuyOrder) -> TradeResult:
    """매수 주문 검증. 가격/금액 > 0, 잔고 >= 금액."""
    if not _is_finite_number(order.price) or not _is_finite_number(order.amount):
        return TradeResult.rejected(INVALID_ORDER)
    if order.price <= 0 or order.amount <= 0:
        return TradeResult.rejected(INVALID_ORDER)
    if order.side_label not in (PositionSide.YES.value, PositionSide.NO.value):
        return TradeResult.rejected(INVALID_ORDER)
    if state.balance < order.amount:
        return TradeResult.rejected(INSUFFICIENT_BALANCE)
    return TradeResult.ok()


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def _apply_buy(state: PortfolioState, order: BuyOrder) -> PortfolioState:
    side = PositionSide(order.side)
    quantity = order.amount / order.price
    next_balance = state.balance - order.amount
    existing = state.find(order.market_id, side)

    if existing is None:
        opened = Position(
            id=position_id(order.market_id, side),
            event_id=order.event_id,
            event_title=order.event_title,
            market_id=order.market_id,
            market_title=order.market_title,
            side=side,
            average_price=order.price,
            quantity=quantity,
            total_invested=order.amount,
            last_trade_at=order.timestamp,
        )
        return PortfolioState(
            balance=next_balance,
            positions=state.positions + (opened,),
        )

    next_invested = existing.total_invested + order.amount
    next_quantity = existing.quantity + quantity
    blended = replace(
        existing,
        average_price=next_invested / next_quantity,
        quantity=next_quantity,
        total_invested=next_invested,
        last_trade_at=order.timestamp,
    )
    return PortfolioState(
        balance=next_balance,
        positions=tuple(
            blended if p is existing else p for p in state.positions
        ),
    )


def transition(
    state: PortfolioState,
    action: Action,
    *,
    default_state: PortfolioState,
) -> PortfolioState:
    """Apply one action and return the next state.

    Args:
        state: Current state (not modified).
        action: Load / Reset / AddFunds / Buy.
        default_state: State used by Reset.

    Raises:
        TypeError: unknown action type.
    """
    if isinstance(action, Load):
        return action.snapshot
    if isinstance(action, Reset):
        return default_state
    if isinstance(action, AddFunds):
        return replace(state, balance=state.balance + action.amount)
    if isinstance(action, Buy):
        return _apply_buy(state, action.order)
    raise TypeError(f"Unknown ledger action: {action!r}")
