"""Periodic live-price refresher.

Gamma 이벤트를 주기적으로 가져와 price index를 통째로 교체.
The feed never touches portfolio state; it only swaps the read-only
snapshot (events + market_id → price) that valuation reads.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Mapping, Optional

from polypaper.config import EVENTS_QUERY, PRICE_REFRESH_INTERVAL
from polypaper.discovery.gamma_client import GammaClient
from polypaper.discovery.normalizer import build_price_index
from polypaper.errors import FeedUnavailableError
from polypaper.models.market import MarketPricePoint, NormalizedEvent

logger = logging.getLogger(__name__)

FEED_ERROR_MESSAGE = "Could not load live events from Polymarket."

RefreshCallback = Callable[["PriceFeed"], Optional[Awaitable[None]]]


class PriceFeed:
    """Latest normalized events and the price index built from them."""

    def __init__(
        self,
        client: GammaClient,
        query: str = EVENTS_QUERY,
        refresh_interval: float = PRICE_REFRESH_INTERVAL,
    ):
        self.client = client
        self.query = query
        self.refresh_interval = refresh_interval
        self._events: tuple[NormalizedEvent, ...] = ()
        self._price_index: dict[str, MarketPricePoint] = {}
        self.error: Optional[str] = None
        self.is_loading: bool = True
        self.refresh_count: int = 0

    @property
    def events(self) -> tuple[NormalizedEvent, ...]:
        return self._events

    @property
    def price_index(self) -> Mapping[str, MarketPricePoint]:
        return self._price_index

    async def refresh(self) -> bool:
        """한 번 갱신. 실패 시 이전 스냅샷 유지 + error 설정, False 반환."""
        try:
            events = await self.client.fetch_normalized_events(self.query)
        except FeedUnavailableError as exc:
            self.error = FEED_ERROR_MESSAGE
            logger.warning("Price refresh failed: %s", exc)
            return False
        finally:
            self.is_loading = False

        self._events = tuple(events)
        self._price_index = build_price_index(self._events)
        self.error = None
        self.refresh_count += 1
        logger.info(
            "Price refresh #%d: %d events, %d markets",
            self.refresh_count, len(self._events), len(self._price_index),
        )
        return True

    async def run(
        self,
        stop_event: asyncio.Event,
        on_refresh: Optional[RefreshCallback] = None,
    ) -> None:
        """즉시 갱신 후 refresh_interval마다 반복. stop_event로 종료."""
        while not stop_event.is_set():
            await self.refresh()
            if on_refresh is not None:
                try:
                    result = on_refresh(self)
                    if asyncio.iscoroutine(result):
                        await result
                except Exception:
                    logger.exception("Refresh callback error")

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.refresh_interval)
            except asyncio.TimeoutError:
                pass  # normal: time to refresh again
