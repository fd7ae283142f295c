"""Gamma API raw events → normalized snapshots.

Gamma 응답은 필드가 빠지거나 타입이 느슨함 (outcomePrices는 JSON 문자열).
Everything here is a pure mapping: bad data degrades to defaults, never raises.
"""

from __future__ import annotations

import json
import math
from typing import Any, Iterable, Optional

from polypaper.models.market import MarketPricePoint, NormalizedEvent, NormalizedMarket

UNTITLED_MARKET = "Untitled market"


def _to_number(value: Any) -> float:
    """Loose numeric coercion. Non-finite or unparsable → nan."""
    if isinstance(value, bool):
        return float(value)
    if value is None:
        return math.nan
    if isinstance(value, str) and not value.strip():
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return math.nan


def normalize_price(value: Any) -> float:
    """가격 하나를 [0, 1]로 clamp. 숫자가 아니면 0."""
    parsed = _to_number(value)
    if not math.isfinite(parsed):
        return 0.0
    return max(0.0, min(1.0, parsed))


def parse_outcome_prices(raw: Any) -> list:
    """outcomePrices (JSON 문자열 또는 리스트) → list. 실패 시 빈 리스트."""
    if isinstance(raw, list):
        return raw
    if not raw or not isinstance(raw, str):
        return []
    try:
        parsed = json.loads(raw)
    except (ValueError, RecursionError):
        return []
    return parsed if isinstance(parsed, list) else []


def normalize_market_price(raw: Any) -> MarketPricePoint:
    prices = parse_outcome_prices(raw)
    yes = normalize_price(prices[0]) if len(prices) > 0 else 0.0
    no = normalize_price(prices[1]) if len(prices) > 1 else 0.0
    return MarketPricePoint(yes=yes, no=no)


def resolve_market_title(raw_mkt: dict) -> str:
    """groupItemTitle → question → title → "Untitled market"."""
    for key in ("groupItemTitle", "question", "title"):
        candidate = raw_mkt.get(key)
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return UNTITLED_MARKET


def normalize_market(raw_mkt: dict) -> NormalizedMarket:
    return NormalizedMarket(
        id=str(raw_mkt.get("id", "")),
        title=resolve_market_title(raw_mkt),
        price=normalize_market_price(raw_mkt.get("outcomePrices")),
    )


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value else None


def normalize_event(event: dict) -> NormalizedEvent:
    volume = _to_number(event.get("volume"))
    return NormalizedEvent(
        id=str(event.get("id", "")),
        title=str(event.get("title") or ""),
        slug=str(event.get("slug") or ""),
        image=_optional_str(event.get("image")),
        volume=volume if math.isfinite(volume) else 0.0,
        end_date=_optional_str(event.get("endDate")),
        markets=tuple(
            normalize_market(m)
            for m in (event.get("markets") or [])
            if isinstance(m, dict)
        ),
    )


def normalize_events(events: Iterable[dict]) -> list[NormalizedEvent]:
    """Raw events → normalized events, same length and order."""
    return [normalize_event(e) for e in events]


def build_price_index(
    events: Iterable[NormalizedEvent],
) -> dict[str, MarketPricePoint]:
    """market_id → latest price. 중복 ID는 나중 것이 우선."""
    index: dict[str, MarketPricePoint] = {}
    for event in events:
        for market in event.markets:
            index[market.id] = market.price
    return index
