"""Portfolio session — the active identity's wallet.

Owns the in-memory state for exactly one identity at a time:
- Identity switch loads (or resets) the whole state before returning
- Every accepted action goes through the pure ledger, then is saved
- No identity (demo mode) keeps state in memory only
- Orders placed with a simulated delay are dropped if the identity
  changed while they were in flight
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional

from polypaper.config import ORDER_PLACEMENT_DELAY
from polypaper.models.market import MarketPricePoint
from polypaper.models.portfolio import (
    BuyOrder,
    PortfolioState,
    TradeResult,
    default_state,
)
from polypaper.portfolio.ledger import (
    Action,
    AddFunds,
    Buy,
    Load,
    Reset,
    transition,
    validate_add_funds,
    validate_buy,
)
from polypaper.portfolio.storage import PortfolioRepository
from polypaper.portfolio.valuation import PortfolioSummary, summarize

logger = logging.getLogger(__name__)

SESSION_CHANGED = "Session changed before the order was placed."


class PortfolioSession:
    """Single-writer owner of one identity's PortfolioState."""

    def __init__(
        self,
        repository: PortfolioRepository,
        identity: Optional[str] = None,
    ):
        self.repository = repository
        self._default = default_state(repository.starting_balance)
        self._state: PortfolioState = self._default
        self._identity: Optional[str] = None
        self._generation: int = 0
        self.switch_identity(identity)

    @property
    def state(self) -> PortfolioState:
        return self._state

    @property
    def identity(self) -> Optional[str]:
        return self._identity

    @property
    def generation(self) -> int:
        """Bumped on every identity switch."""
        return self._generation

    @property
    def is_persistent(self) -> bool:
        return bool(self._identity)

    # ------------------------------------------------------------------
    # Identity lifecycle
    # ------------------------------------------------------------------

    def switch_identity(self, identity: Optional[str]) -> PortfolioState:
        """Replace state for a new identity (None = anonymous/demo).

        State is fully loaded or reset before this returns, so no action can
        observe the previous identity's wallet.
        """
        self._generation += 1
        self._identity = identity or None
        if self._identity is None:
            self._dispatch(Reset())
        else:
            # Loaded (possibly repaired) snapshot is written back on dispatch
            self._dispatch(Load(self.repository.load(self._identity)))
        logger.info(
            "Session identity=%s (gen %d): balance=$%.2f, %d positions",
            self._identity or "<demo>", self._generation,
            self._state.balance, len(self._state.positions),
        )
        return self._state

    # ------------------------------------------------------------------
    # User-facing actions
    # ------------------------------------------------------------------

    def add_funds(self, amount: float) -> TradeResult:
        """지갑 입금."""
        result = validate_add_funds(amount)
        if not result.success:
            logger.debug("Add funds rejected (%r): %s", amount, result.reason)
            return result
        self._dispatch(AddFunds(amount))
        logger.info(
            "[PORTFOLIO FUNDS] +$%.2f | Balance: $%.2f",
            amount, self._state.balance,
        )
        return result

    def buy_position(self, order: BuyOrder) -> TradeResult:
        """매수. 거절 시 상태 변경 없음."""
        result = validate_buy(self._state, order)
        if not result.success:
            logger.info(
                "Buy rejected %s %s: %s",
                order.market_id, order.side_label, result.reason,
            )
            return result
        self._dispatch(Buy(order))
        pos = self._state.find(order.market_id, order.side)
        logger.info(
            "[PORTFOLIO BUY] %s | Side: %s @ %.4f | $%.2f (%.2f shares) | "
            "Avg: %.4f | Balance: $%.2f",
            order.market_title, order.side_label, order.price,
            order.amount, order.amount / order.price,
            pos.average_price if pos else order.price, self._state.balance,
        )
        return result

    async def place_order(
        self,
        order: BuyOrder,
        delay: float = ORDER_PLACEMENT_DELAY,
    ) -> TradeResult:
        """buy_position with a simulated placement delay.

        The order is bound to the identity active when it was placed; if the
        identity changes during the delay it is rejected, never applied to
        the next identity's state.
        """
        generation = self._generation
        if delay > 0:
            await asyncio.sleep(delay)
        if generation != self._generation:
            logger.warning(
                "Dropping in-flight order %s %s: identity changed",
                order.market_id, order.side_label,
            )
            return TradeResult.rejected(SESSION_CHANGED)
        return self.buy_position(order)

    def clear_portfolio(self) -> None:
        """Starting balance, no positions."""
        self._dispatch(Reset())
        logger.info("Portfolio cleared for %s", self._identity or "<demo>")

    def valuation(
        self, price_index: Mapping[str, MarketPricePoint],
    ) -> PortfolioSummary:
        return summarize(self._state, price_index)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _dispatch(self, action: Action) -> None:
        next_state = transition(self._state, action, default_state=self._default)
        if next_state is self._state:
            return
        self._state = next_state
        self.repository.save(self._identity, self._state)
