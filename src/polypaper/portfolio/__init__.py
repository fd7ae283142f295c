"""Paper portfolio: ledger, persistence, valuation and the active session.

Provides:
- transition / validate_buy / validate_add_funds: pure ledger over wallet actions
- PortfolioRepository: per-identity load/save with corrupt-data repair
- summarize: mark-to-market totals from a live price index
- PortfolioSession: single-writer owner of the active identity's state
"""

from polypaper.portfolio.ledger import (
    AddFunds,
    Buy,
    Load,
    Reset,
    transition,
    validate_add_funds,
    validate_buy,
)
from polypaper.portfolio.session import PortfolioSession
from polypaper.portfolio.storage import (
    JsonFileStore,
    MemoryStore,
    PortfolioRepository,
    storage_key,
)
from polypaper.portfolio.valuation import PortfolioSummary, PositionValuation, summarize

__all__ = [
    "AddFunds",
    "Buy",
    "Load",
    "Reset",
    "transition",
    "validate_add_funds",
    "validate_buy",
    "PortfolioSession",
    "JsonFileStore",
    "MemoryStore",
    "PortfolioRepository",
    "storage_key",
    "PortfolioSummary",
    "PositionValuation",
    "summarize",
]
