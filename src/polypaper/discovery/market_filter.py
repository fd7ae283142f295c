"""Event filtering logic — text search and actionable-market filter."""

from __future__ import annotations

from typing import Iterable

from polypaper.models.market import NormalizedEvent


class EventFilter:
    """Static filter methods for normalized events."""

    @staticmethod
    def matches_query(event: NormalizedEvent, query: str) -> bool:
        """이벤트 제목 또는 마켓 제목에 검색어 포함 여부 (대소문자 무시)."""
        needle = query.strip().lower()
        if not needle:
            return True
        if needle in event.title.lower():
            return True
        return any(needle in m.title.lower() for m in event.markets)

    @staticmethod
    def is_actionable(event: NormalizedEvent) -> bool:
        """가격 있는 마켓이 하나라도 있는 이벤트만."""
        return event.has_actionable_market


def filter_events(
    events: Iterable[NormalizedEvent],
    query: str = "",
    actionable_only: bool = False,
) -> list[NormalizedEvent]:
    """Search + actionable filter, order preserved."""
    return [
        e for e in events
        if (not actionable_only or EventFilter.is_actionable(e))
        and EventFilter.matches_query(e, query)
    ]


def count_actionable_markets(events: Iterable[NormalizedEvent]) -> int:
    return sum(
        1 for e in events for m in e.markets if m.is_actionable
    )
