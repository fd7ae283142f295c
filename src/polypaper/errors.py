"""Exception hierarchy for polypaper.

Validation failures are not exceptions: they come back as
:class:`polypaper.models.TradeResult` rejections.
"""

from __future__ import annotations


class PolypaperError(Exception):
    """Base class for polypaper errors."""


class FeedUnavailableError(PolypaperError):
    """Gamma API unreachable, non-OK after retries, or unparsable payload."""

    def __init__(self, url: str, detail: str):
        super().__init__(f"{url}: {detail}")
        self.url = url
        self.detail = detail
