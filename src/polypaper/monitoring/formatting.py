"""Display formatting for USD amounts and probabilities."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

_COMPACT_UNITS = (
    (1, ""),
    (1_000, "K"),
    (1_000_000, "M"),
    (1_000_000_000, "B"),
    (1_000_000_000_000, "T"),
)


def format_currency(value: float) -> str:
    """$1,234.56 형식. 음수는 -$12.30."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_compact_currency(value: float) -> str:
    """$12.5K / $3.2M 형식 (소수 1자리, 불필요한 .0 제거)."""
    sign = "-" if value < 0 else ""
    magnitude = abs(value)
    unit = 0
    while unit + 1 < len(_COMPACT_UNITS) and magnitude >= _COMPACT_UNITS[unit + 1][0]:
        unit += 1
    scaled = f"{magnitude / _COMPACT_UNITS[unit][0]:.1f}"
    # 999.95K rounds to 1000.0 → next unit
    if float(scaled) >= 1000 and unit + 1 < len(_COMPACT_UNITS):
        unit += 1
        scaled = f"{magnitude / _COMPACT_UNITS[unit][0]:.1f}"
    suffix = _COMPACT_UNITS[unit][1]
    return f"{sign}${scaled.rstrip('0').rstrip('.')}{suffix}"


def format_percent_from_price(price: float) -> str:
    """0.4 → "40.0%"."""
    return f"{price * 100:.1f}%"


def format_cents(price: float) -> str:
    """0.4 → "40.0 cents"."""
    return f"{price * 100:.1f} cents"


def format_date(value: Optional[str]) -> str:
    """ISO 문자열 → "Nov 3, 2026". 없거나 파싱 실패 시 "N/A"."""
    if not value:
        return "N/A"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return "N/A"
    return f"{parsed:%b} {parsed.day}, {parsed.year}"
