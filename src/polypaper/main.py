"""Paper-trading desk CLI — browse live events, buy, fund, review positions.

Usage:
    python -m polypaper events --search senate --actionable
    python -m polypaper --user alice@example.com buy 512345 YES --amount 50
    python -m polypaper --user alice@example.com fund 250
    python -m polypaper --user alice@example.com positions
    python -m polypaper --demo watch --interval 30
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
from datetime import datetime, timezone
from typing import Optional

from polypaper.config import (
    MIN_REFRESH_INTERVAL,
    ORDER_PLACEMENT_DELAY,
    QUICK_FUND_AMOUNTS,
    DashboardConfig,
)
from polypaper.discovery.gamma_client import GammaClient
from polypaper.discovery.market_filter import count_actionable_markets, filter_events
from polypaper.errors import FeedUnavailableError
from polypaper.feeds.price_feed import FEED_ERROR_MESSAGE, PriceFeed
from polypaper.models.market import NormalizedEvent, NormalizedMarket
from polypaper.models.portfolio import BuyOrder, PositionSide, TradeResult
from polypaper.monitoring.dashboard import DashboardRenderer
from polypaper.monitoring.formatting import format_cents, format_currency
from polypaper.portfolio.session import PortfolioSession
from polypaper.portfolio.storage import JsonFileStore, PortfolioRepository

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Core functions
# ---------------------------------------------------------------------------


def build_session(config: DashboardConfig, identity: Optional[str]) -> PortfolioSession:
    """설정 기반 세션 생성. identity 없으면 데모 (저장 안 함)."""
    repository = PortfolioRepository(
        JsonFileStore(config.state_dir),
        starting_balance=config.starting_balance,
    )
    return PortfolioSession(repository, identity=identity)


def find_market(
    events: list[NormalizedEvent], market_id: str,
) -> Optional[tuple[NormalizedEvent, NormalizedMarket]]:
    """market_id로 (event, market) 조회. 없으면 None."""
    for event in events:
        for market in event.markets:
            if market.id == market_id:
                return event, market
    return None


def build_order(
    event: NormalizedEvent,
    market: NormalizedMarket,
    side: PositionSide,
    amount: float,
) -> BuyOrder:
    """Quote the live price for a side and stamp the order."""
    return BuyOrder(
        event_id=event.id,
        event_title=event.title,
        market_id=market.id,
        market_title=market.title,
        side=side,
        price=market.price.for_side(side.value),
        amount=amount,
        timestamp=datetime.now(tz=timezone.utc).isoformat(),
    )


def format_trade_notification(order: BuyOrder, result: TradeResult) -> str:
    """거래 결과 알림 한 줄."""
    if not result.success:
        return f"✗ {result.reason}"
    return (
        f"✓ Bought {order.side_label} for {order.market_title} at "
        f"{format_cents(order.price)} with {format_currency(order.amount)}."
    )


def format_funding_notification(amount: float, result: TradeResult, balance: float) -> str:
    if not result.success:
        return f"✗ {result.reason}"
    return f"✓ Added {format_currency(amount)}. Balance: {format_currency(balance)}."


def resolve_identity(args: argparse.Namespace) -> Optional[str]:
    """--demo > --user > POLYPAPER_USER."""
    if args.demo:
        return None
    identity = args.user or os.environ.get("POLYPAPER_USER") or None
    if identity is None:
        logger.warning("No identity given, running in demo mode (nothing is saved)")
    return identity


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def cmd_events(args: argparse.Namespace, config: DashboardConfig) -> int:
    async with GammaClient(base_url=config.gamma_url) as client:
        feed = PriceFeed(client, query=config.events_query)
        ok = await feed.refresh()

    renderer = DashboardRenderer()
    shown = filter_events(feed.events, query=args.search, actionable_only=args.actionable)
    print(renderer.render_events(shown, error=feed.error, limit=args.limit))
    if ok:
        print(
            f"{len(shown)}/{len(feed.events)} events · "
            f"{count_actionable_markets(feed.events)} tradeable markets"
        )
    return 0 if ok else 1


async def cmd_positions(args: argparse.Namespace, config: DashboardConfig) -> int:
    session = build_session(config, resolve_identity(args))
    async with GammaClient(base_url=config.gamma_url) as client:
        feed = PriceFeed(client, query=config.events_query)
        await feed.refresh()

    if feed.error:
        # Positions are still shown, marked at cost basis
        print(f"⚠ {feed.error} Prices marked at entry.")
    summary = session.valuation(feed.price_index)
    renderer = DashboardRenderer()
    print(renderer.render_wallet(session.state, session.identity, summary))
    print(renderer.render_positions(summary))
    return 0


async def cmd_buy(args: argparse.Namespace, config: DashboardConfig) -> int:
    session = build_session(config, resolve_identity(args))
    amount = args.amount if args.amount is not None else config.trade_amount

    async with GammaClient(base_url=config.gamma_url) as client:
        try:
            events = await client.fetch_normalized_events(config.events_query)
        except FeedUnavailableError as exc:
            logger.warning("Cannot quote %s: %s", args.market_id, exc)
            print(f"✗ {FEED_ERROR_MESSAGE}")
            return 1

    found = find_market(events, args.market_id)
    if found is None:
        print(f"✗ Market {args.market_id} not found in the current event list.")
        return 1

    event, market = found
    order = build_order(event, market, PositionSide(args.side.upper()), amount)
    result = await session.place_order(order, delay=ORDER_PLACEMENT_DELAY)
    print(format_trade_notification(order, result))
    if result.success:
        print(f"Balance: {format_currency(session.state.balance)}")
    return 0 if result.success else 1


async def cmd_fund(args: argparse.Namespace, config: DashboardConfig) -> int:
    session = build_session(config, resolve_identity(args))
    await asyncio.sleep(ORDER_PLACEMENT_DELAY)
    result = session.add_funds(args.amount)
    print(format_funding_notification(args.amount, result, session.state.balance))
    return 0 if result.success else 1


async def cmd_reset(args: argparse.Namespace, config: DashboardConfig) -> int:
    session = build_session(config, resolve_identity(args))
    session.clear_portfolio()
    print(f"Portfolio reset. Balance: {format_currency(session.state.balance)}")
    return 0


async def cmd_watch(args: argparse.Namespace, config: DashboardConfig) -> int:
    """메인 루프: 주기적 갱신 → 이벤트 + 포지션 대시보드 출력."""
    session = build_session(config, resolve_identity(args))
    renderer = DashboardRenderer()
    interval = max(args.interval or config.refresh_interval, MIN_REFRESH_INTERVAL)

    # Graceful shutdown
    stop_event = asyncio.Event()

    def _handle_signal():
        print("\n⚡ Shutting down gracefully...")
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _handle_signal)
        except NotImplementedError:
            pass  # Windows

    def _render(feed: PriceFeed) -> None:
        summary = session.valuation(feed.price_index)
        shown = filter_events(feed.events, query=args.search, actionable_only=args.actionable)
        print(renderer.render_wallet(session.state, session.identity, summary))
        print(renderer.render_events(shown, error=feed.error, limit=args.limit))
        print(renderer.render_positions(summary))

    async with GammaClient(base_url=config.gamma_url) as client:
        feed = PriceFeed(client, query=config.events_query, refresh_interval=interval)
        await feed.run(stop_event, on_refresh=_render)

    print("Goodbye! 🤙")
    return 0


COMMANDS = {
    "events": cmd_events,
    "positions": cmd_positions,
    "buy": cmd_buy,
    "fund": cmd_fund,
    "reset": cmd_reset,
    "watch": cmd_watch,
}


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _number(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """커맨드라인 인자 파싱."""
    parser = argparse.ArgumentParser(
        prog="polypaper",
        description="Paper-trade live Polymarket events",
    )
    parser.add_argument(
        "--user", type=str, default=None,
        help="Identity whose portfolio to use (default: $POLYPAPER_USER)",
    )
    parser.add_argument(
        "--demo", action="store_true", default=False,
        help="Demo mode: no identity, nothing is saved",
    )
    parser.add_argument(
        "--state-dir", type=str, default=None,
        help="Directory for saved portfolios (default: $POLYPAPER_STATE_DIR)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", default=False,
        help="Debug logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def _add_event_filters(p: argparse.ArgumentParser) -> None:
        p.add_argument("--search", type=str, default="", help="Filter by event/market title")
        p.add_argument(
            "--actionable", action="store_true", default=False,
            help="Only events with at least one priced market",
        )
        p.add_argument("--limit", type=int, default=0, help="Max events to show (0 = all)")

    events_p = sub.add_parser("events", help="List live events and prices")
    _add_event_filters(events_p)

    sub.add_parser("positions", help="Show wallet and mark-to-market positions")

    buy_p = sub.add_parser("buy", help="Buy a side of a market at the live price")
    buy_p.add_argument("market_id", type=str)
    buy_p.add_argument("side", type=str.upper, choices=["YES", "NO"])
    buy_p.add_argument(
        "--amount", type=_number, default=None,
        help="USD to spend (default: $POLYPAPER_TRADE_AMOUNT)",
    )

    fund_p = sub.add_parser("fund", help="Add funds to the wallet")
    fund_p.add_argument(
        "amount", type=_number,
        help="USD to add (quick amounts: %s)" % ", ".join(
            format_currency(a).removesuffix(".00") for a in QUICK_FUND_AMOUNTS
        ),
    )

    sub.add_parser("reset", help="Reset wallet to the starting balance")

    watch_p = sub.add_parser("watch", help="Live dashboard, refreshed periodically")
    watch_p.add_argument(
        "--interval", type=int, default=0,
        help="Refresh interval in seconds (default: $POLYPAPER_REFRESH_INTERVAL, min 5)",
    )
    _add_event_filters(watch_p)

    return parser.parse_args(argv)


def cli_main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    config = DashboardConfig.from_env()
    if args.state_dir:
        config.state_dir = args.state_dir

    raise SystemExit(asyncio.run(COMMANDS[args.command](args, config)))


if __name__ == "__main__":
    cli_main()
