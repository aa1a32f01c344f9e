"""Ingestion orchestrator - parallel fetch from every source client, then normalize."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Iterable

import structlog

from predictmax.ingestion.base import RawSourceClient
from predictmax.ingestion.normalize import normalize, normalize_many
from predictmax.models import Platform, UnifiedMarket

log = structlog.get_logger(__name__)


class IngestionManager:
    """Fans out fetches to RawSourceClients and joins the normalized results.

    A failing source contributes no markets; it never aborts the batch.
    Client timeouts are owned by the clients themselves.
    """

    def __init__(self, clients: Iterable[RawSourceClient]):
        self.clients: dict[Platform, RawSourceClient] = {c.platform: c for c in clients}

    def _selected(self, platform: Platform | None) -> list[RawSourceClient]:
        if platform is None:
            return list(self.clients.values())
        client = self.clients.get(platform)
        return [client] if client is not None else []

    async def _fetch_source(
        self, client: RawSourceClient, limit: int, now: datetime | None, filters: dict[str, Any]
    ) -> list[UnifiedMarket]:
        records = await asyncio.to_thread(client.fetch_markets, limit, **filters)
        markets = normalize_many(records, client.platform, now)
        log.debug("source_fetched", platform=client.platform.value, raw=len(records), normalized=len(markets))
        return markets

    async def fetch_markets(
        self,
        limit: int = 100,
        platform: Platform | None = None,
        now: datetime | None = None,
        **filters: Any,
    ) -> list[UnifiedMarket]:
        """Fetch from all (or one) source in parallel; all results are available before return."""
        clients = self._selected(platform)
        results = await asyncio.gather(
            *(self._fetch_source(c, limit, now, filters) for c in clients),
            return_exceptions=True,
        )
        markets: list[UnifiedMarket] = []
        for client, result in zip(clients, results):
            if isinstance(result, BaseException):
                log.warning("source_failed", platform=client.platform.value, error=str(result))
                continue
            markets.extend(result)
        return markets

    async def fetch_market(
        self, platform: Platform, market_id: str, now: datetime | None = None
    ) -> UnifiedMarket | None:
        client = self.clients.get(platform)
        if client is None:
            return None
        try:
            raw = await asyncio.to_thread(client.fetch_market, market_id)
        except Exception as e:
            log.warning("market_fetch_failed", platform=platform.value, market_id=market_id, error=str(e))
            return None
        if raw is None:
            return None
        try:
            return normalize(raw, platform, now)
        except ValueError as e:
            log.warning("skip_market", platform=platform.value, market_id=market_id, error=str(e))
            return None
