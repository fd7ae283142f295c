"""Console dashboard renderer.

박스 그리기 문자 (═║╔╗╚╝)로 이벤트, 지갑, 포지션 표시.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from polypaper.models.market import NormalizedEvent
from polypaper.models.portfolio import PortfolioState
from polypaper.monitoring.formatting import (
    format_compact_currency,
    format_currency,
    format_date,
    format_percent_from_price,
)
from polypaper.portfolio.valuation import PortfolioSummary, group_by_event


def _fit(text: str, width: int) -> str:
    """Truncate with an ellipsis, then left-pad to width."""
    if len(text) > width:
        text = text[: width - 1] + "…"
    return f"{text:<{width}}"


class DashboardRenderer:
    """콘솔 대시보드 렌더링."""

    WIDTH = 72

    def _row(self, text: str) -> str:
        return f"║ {_fit(text, self.WIDTH - 2)} ║"

    def _top(self) -> str:
        return f"╔{'═' * self.WIDTH}╗"

    def _sep(self) -> str:
        return f"╠{'═' * self.WIDTH}╣"

    def _bottom(self) -> str:
        return f"╚{'═' * self.WIDTH}╝"

    def render_wallet(
        self,
        state: PortfolioState,
        identity: Optional[str],
        summary: Optional[PortfolioSummary] = None,
    ) -> str:
        """지갑 헤더 — identity, 잔고, 포지션 수.

        Args:
            state: 현재 포트폴리오 상태.
            identity: 사용자 identity. None이면 데모 모드.
            summary: 평가 요약 (있으면 미실현 손익 표시).
        """
        now = datetime.now(tz=timezone.utc).strftime("%H:%M:%S UTC")
        who = identity or "demo (not saved)"
        lines = [
            self._top(),
            self._row(f"Wallet · {who}"),
            self._row(f"As of {now}"),
            self._sep(),
            self._row(f"Balance:        {format_currency(state.balance)}"),
            self._row(f"Positions:      {len(state.positions)}"),
        ]
        if summary is not None:
            lines.append(
                self._row(f"Unrealized P&L: {format_currency(summary.unrealized_pnl)}")
            )
        lines.append(self._bottom())
        return "\n".join(lines)

    def render_events(
        self,
        events: Iterable[NormalizedEvent],
        error: Optional[str] = None,
        limit: int = 0,
    ) -> str:
        """이벤트 + 마켓별 YES/NO 가격 목록."""
        events = list(events)
        if limit > 0:
            events = events[:limit]

        lines = [self._top()]
        if error:
            lines.append(self._row(f"⚠ {error} (retrying)"))
            lines.append(self._sep())
        if not events:
            lines.append(self._row("No events to show."))
            lines.append(self._bottom())
            return "\n".join(lines)

        for i, event in enumerate(events):
            if i > 0:
                lines.append(self._sep())
            lines.append(self._row(event.title or event.slug or event.id))
            lines.append(self._row(
                f"Vol {format_compact_currency(event.volume)} · "
                f"Ends {format_date(event.end_date)} · id {event.id}"
            ))
            for market in event.markets:
                if market.is_actionable:
                    quote = (
                        f"YES {format_percent_from_price(market.price.yes):>6}  "
                        f"NO {format_percent_from_price(market.price.no):>6}"
                    )
                else:
                    quote = "no price"
                lines.append(self._row(
                    f"  {_fit(market.title, 40)} {quote}  [{market.id}]"
                ))
        lines.append(self._bottom())
        return "\n".join(lines)

    def render_positions(self, summary: PortfolioSummary) -> str:
        """포지션 요약 카드 + 이벤트별 테이블."""
        if not summary.valuations:
            return "\n".join([
                self._top(),
                self._row("No positions yet"),
                self._row("You have not bought any contracts. Start with `buy`."),
                self._bottom(),
            ])

        lines = [
            self._top(),
            self._row(f"Total invested:    {format_currency(summary.total_invested)}"),
            self._row(f"Mark-to-market:    {format_currency(summary.mark_value)}"),
            self._row(f"Unrealized P&L:    {format_currency(summary.unrealized_pnl)}"),
            self._row(f"Winning positions: {summary.win_rate:.1f}%"),
        ]
        for event_title, valuations in group_by_event(summary.valuations):
            lines.append(self._sep())
            lines.append(self._row(event_title))
            lines.append(self._row(
                f"  {'Market':<22} {'Side':<4} {'Avg':>6} {'Cur':>6} "
                f"{'Qty':>9} {'P&L':>12}"
            ))
            for v in valuations:
                p = v.position
                current = format_percent_from_price(v.current_price)
                if not v.has_live_price:
                    current += "*"
                lines.append(self._row(
                    f"  {_fit(p.market_title, 22)} {p.side.value:<4} "
                    f"{format_percent_from_price(p.average_price):>6} {current:>6} "
                    f"{p.quantity:>9.2f} {format_currency(v.unrealized_pnl):>12}"
                ))
        lines.append(self._bottom())
        return "\n".join(lines)
