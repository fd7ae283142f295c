"""Gamma API client with retry and error handling."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import aiohttp

from polypaper.config import EVENTS_QUERY, GAMMA_API_URL
from polypaper.discovery.normalizer import normalize_events
from polypaper.errors import FeedUnavailableError
from polypaper.models.market import NormalizedEvent

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15  # seconds
DEFAULT_MAX_RETRIES = 3


class GammaClient:
    """Async client for Polymarket Gamma API.

    Usage:
        async with GammaClient() as client:
            events = await client.fetch_normalized_events()
    """

    def __init__(
        self,
        base_url: str = GAMMA_API_URL,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.max_retries = max_retries
        self._session: Optional[aiohttp.ClientSession] = None

    async def open(self) -> None:
        """Open aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)

    async def close(self) -> None:
        """Close aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> GammaClient:
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch_events(self, query: str = EVENTS_QUERY) -> list[dict]:
        """GET /events?{query} — raw 이벤트 리스트.

        Raises:
            FeedUnavailableError: 재시도 후에도 실패하거나 응답이 리스트가 아닐 때.
        """
        url = f"{self.base_url}/events"
        if query:
            url = f"{url}?{query.lstrip('?')}"
        return await self._get_list(url)

    async def fetch_normalized_events(
        self, query: str = EVENTS_QUERY,
    ) -> list[NormalizedEvent]:
        """Fetch + normalize. Raw Gamma schema never leaves this module."""
        raw = await self.fetch_events(query)
        events = normalize_events(e for e in raw if isinstance(e, dict))
        logger.debug("Normalized %d events from %s", len(events), self.base_url)
        return events

    # ------------------------------------------------------------------
    # HTTP helpers with retry
    # ------------------------------------------------------------------

    async def _get_list(self, url: str) -> list[dict]:
        """GET → list. 429시 지수 백오프. 마지막 시도까지 실패하면 FeedUnavailableError."""
        await self.open()
        last_error = "no attempts made"
        for attempt in range(1, self.max_retries + 1):
            try:
                async with self._session.get(url) as resp:
                    if resp.status == 200:
                        try:
                            data = await resp.json(content_type=None)
                        except (ValueError, RecursionError) as exc:
                            raise FeedUnavailableError(url, f"unparsable payload: {exc}")
                        if not isinstance(data, list):
                            raise FeedUnavailableError(
                                url, f"expected list, got {type(data).__name__}",
                            )
                        return data
                    last_error = f"HTTP {resp.status}"
                    if resp.status == 429:
                        wait = 1.0 * (2 ** (attempt - 1))
                        logger.warning(
                            "API 429 rate limit %s (attempt %d/%d), backing off %.1fs",
                            url, attempt, self.max_retries, wait,
                        )
                        if attempt < self.max_retries:
                            await asyncio.sleep(wait)
                        continue
                    logger.warning(
                        "Gamma API %s returned %d (attempt %d/%d)",
                        url, resp.status, attempt, self.max_retries,
                    )
            except FeedUnavailableError:
                raise
            except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
                last_error = str(exc) or type(exc).__name__
                logger.warning(
                    "Gamma API %s error (attempt %d/%d): %s",
                    url, attempt, self.max_retries, exc,
                )

            # exponential backoff (짧게: 테스트에서 빠르게)
            if attempt < self.max_retries:
                await asyncio.sleep(0.1 * (2 ** (attempt - 1)))

        raise FeedUnavailableError(url, last_error)
