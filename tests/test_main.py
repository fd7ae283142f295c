"""Tests for the CLI: argument parsing, order building, commands."""

from __future__ import annotations

import json
import re

import pytest
from aioresponses import aioresponses

import polypaper.main as main_mod
from polypaper.config import DashboardConfig
from polypaper.feeds.price_feed import FEED_ERROR_MESSAGE
from polypaper.main import (
    build_order,
    build_session,
    cmd_buy,
    cmd_events,
    cmd_fund,
    cmd_positions,
    cmd_reset,
    find_market,
    format_funding_notification,
    format_trade_notification,
    parse_args,
    resolve_identity,
)
from polypaper.models.market import MarketPricePoint, NormalizedEvent, NormalizedMarket
from polypaper.models.portfolio import PositionSide, TradeResult
from polypaper.portfolio.ledger import INSUFFICIENT_BALANCE, INVALID_AMOUNT
from polypaper.portfolio.storage import JsonFileStore, storage_key

EVENTS_PATTERN = re.compile(r"^https://gamma-api\.polymarket\.com/events\b")

EVENT = NormalizedEvent(
    id="evt_900",
    title="Presidential Election Winner 2028",
    slug="presidential-election-winner-2028",
    markets=(
        NormalizedMarket("512345", "Democratic", MarketPricePoint(yes=0.42, no=0.58)),
        NormalizedMarket("512346", "Republican", MarketPricePoint(yes=0.55, no=0.45)),
    ),
)


@pytest.fixture(autouse=True)
def _no_delays(monkeypatch):
    monkeypatch.setattr(main_mod, "ORDER_PLACEMENT_DELAY", 0)
    monkeypatch.delenv("POLYPAPER_USER", raising=False)


@pytest.fixture
def config(tmp_path) -> DashboardConfig:
    return DashboardConfig(state_dir=str(tmp_path))


def _saved(config: DashboardConfig, identity: str) -> dict:
    raw = JsonFileStore(config.state_dir).get(storage_key(identity))
    return json.loads(raw)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


class TestParseArgs:
    def test_events_defaults(self):
        args = parse_args(["events"])
        assert args.command == "events"
        assert args.search == ""
        assert args.actionable is False
        assert args.limit == 0
        assert args.user is None
        assert args.demo is False

    def test_buy(self):
        args = parse_args(["--user", "alice", "buy", "512345", "yes", "--amount", "50"])
        assert args.user == "alice"
        assert args.market_id == "512345"
        assert args.side == "YES"
        assert args.amount == 50.0

    def test_buy_amount_optional(self):
        assert parse_args(["buy", "512345", "NO"]).amount is None

    def test_buy_rejects_unknown_side(self):
        with pytest.raises(SystemExit):
            parse_args(["buy", "512345", "MAYBE"])

    def test_fund_requires_number(self):
        with pytest.raises(SystemExit):
            parse_args(["fund", "lots"])

    def test_fund(self):
        assert parse_args(["fund", "250"]).amount == 250.0

    def test_fund_help_lists_quick_amounts(self, capsys, monkeypatch):
        monkeypatch.setenv("COLUMNS", "200")
        with pytest.raises(SystemExit):
            parse_args(["fund", "--help"])
        out = capsys.readouterr().out
        assert "quick amounts: $50, $100, $250, $500" in out

    def test_watch(self):
        args = parse_args(["--demo", "watch", "--interval", "10", "--search", "senate"])
        assert args.demo is True
        assert args.interval == 10
        assert args.search == "senate"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestResolveIdentity:
    def test_demo_flag_wins(self, monkeypatch):
        monkeypatch.setenv("POLYPAPER_USER", "env-user")
        assert resolve_identity(parse_args(["--demo", "--user", "alice", "positions"])) is None

    def test_user_flag(self, monkeypatch):
        monkeypatch.setenv("POLYPAPER_USER", "env-user")
        assert resolve_identity(parse_args(["--user", "alice", "positions"])) == "alice"

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("POLYPAPER_USER", "env-user")
        assert resolve_identity(parse_args(["positions"])) == "env-user"

    def test_none(self):
        assert resolve_identity(parse_args(["positions"])) is None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestFindMarket:
    def test_found(self):
        event, market = find_market([EVENT], "512346")
        assert event is EVENT
        assert market.title == "Republican"

    def test_missing(self):
        assert find_market([EVENT], "nope") is None


class TestBuildOrder:
    def test_quotes_side_price(self):
        order = build_order(EVENT, EVENT.markets[0], PositionSide.NO, 40.0)
        assert order.price == 0.58
        assert order.side is PositionSide.NO
        assert order.amount == 40.0
        assert order.event_title == "Presidential Election Winner 2028"
        assert order.market_title == "Democratic"
        assert order.timestamp.endswith("+00:00")


class TestNotifications:
    def test_trade_success(self):
        order = build_order(EVENT, EVENT.markets[0], PositionSide.YES, 100.0)
        text = format_trade_notification(order, TradeResult.ok())
        assert text == "✓ Bought YES for Democratic at 42.0 cents with $100.00."

    def test_trade_rejected(self):
        order = build_order(EVENT, EVENT.markets[0], PositionSide.YES, 100.0)
        text = format_trade_notification(order, TradeResult.rejected(INSUFFICIENT_BALANCE))
        assert text == "✗ Insufficient wallet balance."

    def test_funding(self):
        assert format_funding_notification(250, TradeResult.ok(), 1250) == (
            "✓ Added $250.00. Balance: $1,250.00."
        )
        assert format_funding_notification(
            0, TradeResult.rejected(INVALID_AMOUNT), 1000,
        ) == "✗ Enter a valid amount."


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestBuildSession:
    def test_persistent_session(self, config):
        session = build_session(config, "alice")
        assert session.is_persistent is True
        assert session.state.balance == 1000.0

    def test_starting_balance_from_config(self, tmp_path):
        config = DashboardConfig(starting_balance=50.0, state_dir=str(tmp_path))
        assert build_session(config, None).state.balance == 50.0


class TestCmdBuy:
    async def test_buy_persists(self, config, sample_gamma_event, capsys):
        args = parse_args(["--user", "alice", "buy", "512345", "YES", "--amount", "42"])
        with aioresponses() as m:
            m.get(EVENTS_PATTERN, payload=[sample_gamma_event])
            assert await cmd_buy(args, config) == 0

        out = capsys.readouterr().out
        assert "✓ Bought YES for Democratic at 42.0 cents with $42.00." in out
        saved = _saved(config, "alice")
        assert saved["balance"] == pytest.approx(958.0)
        assert saved["positions"][0]["quantity"] == pytest.approx(100.0)

    async def test_default_amount(self, config, sample_gamma_event):
        args = parse_args(["--user", "alice", "buy", "512346", "NO"])
        with aioresponses() as m:
            m.get(EVENTS_PATTERN, payload=[sample_gamma_event])
            assert await cmd_buy(args, config) == 0
        assert _saved(config, "alice")["balance"] == pytest.approx(975.0)

    async def test_unknown_market(self, config, sample_gamma_event, capsys):
        args = parse_args(["--user", "alice", "buy", "999", "YES"])
        with aioresponses() as m:
            m.get(EVENTS_PATTERN, payload=[sample_gamma_event])
            assert await cmd_buy(args, config) == 1
        assert "not found" in capsys.readouterr().out

    async def test_insufficient_balance(self, config, sample_gamma_event, capsys):
        args = parse_args(["--user", "alice", "buy", "512345", "YES", "--amount", "5000"])
        with aioresponses() as m:
            m.get(EVENTS_PATTERN, payload=[sample_gamma_event])
            assert await cmd_buy(args, config) == 1
        assert "✗ Insufficient wallet balance." in capsys.readouterr().out

    async def test_feed_down(self, config, capsys):
        args = parse_args(["--user", "alice", "buy", "512345", "YES"])
        with aioresponses() as m:
            for _ in range(3):
                m.get(EVENTS_PATTERN, status=500)
            assert await cmd_buy(args, config) == 1
        assert FEED_ERROR_MESSAGE in capsys.readouterr().out

    async def test_demo_buy_not_saved(self, config, sample_gamma_event, tmp_path):
        args = parse_args(["--demo", "buy", "512345", "YES"])
        with aioresponses() as m:
            m.get(EVENTS_PATTERN, payload=[sample_gamma_event])
            assert await cmd_buy(args, config) == 0
        assert list(tmp_path.iterdir()) == []


class TestCmdFund:
    async def test_fund(self, config, capsys):
        args = parse_args(["--user", "alice", "fund", "250"])
        assert await cmd_fund(args, config) == 0
        assert "Balance: $1,250.00" in capsys.readouterr().out
        assert _saved(config, "alice")["balance"] == 1250.0

    async def test_fund_invalid(self, config, capsys):
        args = parse_args(["--user", "alice", "fund", "-5"])
        assert await cmd_fund(args, config) == 1
        assert "✗ Enter a valid amount." in capsys.readouterr().out


class TestCmdReset:
    async def test_reset(self, config):
        await cmd_fund(parse_args(["--user", "alice", "fund", "250"]), config)
        assert await cmd_reset(parse_args(["--user", "alice", "reset"]), config) == 0
        assert _saved(config, "alice") == {"balance": 1000.0, "positions": []}


class TestCmdEvents:
    async def test_lists_events(self, config, sample_gamma_event, capsys):
        args = parse_args(["events", "--search", "presidential"])
        with aioresponses() as m:
            m.get(EVENTS_PATTERN, payload=[sample_gamma_event])
            assert await cmd_events(args, config) == 0
        out = capsys.readouterr().out
        assert "Presidential Election Winner 2028" in out
        assert "1/1 events · 2 tradeable markets" in out

    async def test_feed_down(self, config, capsys):
        with aioresponses() as m:
            for _ in range(3):
                m.get(EVENTS_PATTERN, status=500)
            assert await cmd_events(parse_args(["events"]), config) == 1
        assert FEED_ERROR_MESSAGE in capsys.readouterr().out


class TestCmdPositions:
    async def test_positions_marked_live(self, config, sample_gamma_event, capsys):
        args = parse_args(["--user", "alice", "buy", "512345", "YES", "--amount", "42"])
        with aioresponses() as m:
            m.get(EVENTS_PATTERN, payload=[sample_gamma_event])
            await cmd_buy(args, config)
        capsys.readouterr()

        with aioresponses() as m:
            m.get(EVENTS_PATTERN, payload=[sample_gamma_event])
            assert await cmd_positions(parse_args(["--user", "alice", "positions"]), config) == 0
        out = capsys.readouterr().out
        assert "Presidential Election Winner 2028" in out
        assert "Democratic" in out
        assert "Total invested:    $42.00" in out

    async def test_positions_when_feed_down(self, config, capsys):
        with aioresponses() as m:
            for _ in range(3):
                m.get(EVENTS_PATTERN, status=500)
            assert await cmd_positions(parse_args(["--user", "alice", "positions"]), config) == 0
        out = capsys.readouterr().out
        assert "Prices marked at entry." in out
        assert "No positions yet" in out
