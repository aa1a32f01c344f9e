"""MarketSearchService: fetch -> filter -> rank -> apply filters -> limit -> persist."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog

from predictmax.ingestion.kalshi.client import SPORT_SERIES
from predictmax.ingestion.manager import IngestionManager
from predictmax.models import MarketCategory, ParsedQuery, Platform, SearchFilters, UnifiedMarket
from predictmax.providers import CacheProvider, PersistenceProvider
from predictmax.search.ranker import ArbitrageOpportunity, SearchRanker

log = structlog.get_logger(__name__)

DEFAULT_LIMIT = 30
SEARCH_FETCH_LIMIT = 200
TRENDING_TTL_SEC = 60.0


class MarketSearchService:
    def __init__(
        self,
        ingestion: IngestionManager,
        ranker: SearchRanker | None = None,
        cache: CacheProvider | None = None,
        persistence: PersistenceProvider | None = None,
        default_limit: int = DEFAULT_LIMIT,
        trending_ttl_sec: float = TRENDING_TTL_SEC,
    ):
        self.ingestion = ingestion
        self.ranker = ranker or SearchRanker()
        self.cache = cache
        self.persistence = persistence
        self.default_limit = default_limit
        self.trending_ttl_sec = trending_ttl_sec

    @staticmethod
    def _source_filters(query: ParsedQuery, filters: SearchFilters) -> dict[str, Any]:
        """Narrow source listings where the clients support it."""
        out: dict[str, Any] = {}
        if query.domain == MarketCategory.SPORTS:
            for word in query.terms():
                if word in SPORT_SERIES:
                    out["sport"] = word
                    break
        if filters.min_end_date is not None:
            out["min_close_ts"] = int(filters.min_end_date.timestamp())
        if filters.max_end_date is not None:
            out["max_close_ts"] = int(filters.max_end_date.timestamp())
        return out

    async def search(
        self, query: ParsedQuery, filters: SearchFilters | None = None, now: datetime | None = None
    ) -> list[UnifiedMarket]:
        filters = filters or SearchFilters()
        platform = filters.platform or query.platform
        markets = await self.ingestion.fetch_markets(
            limit=SEARCH_FETCH_LIMIT, platform=platform, now=now, **self._source_filters(query, filters)
        )
        fetched = len(markets)
        markets = self.ranker.filter(markets, query)
        markets = self.ranker.rank(markets, query, now)
        markets = self.ranker.apply_filters(markets, filters)
        markets = markets[: filters.limit or self.default_limit]
        log.info("search_complete", query=query.original_query, fetched=fetched, returned=len(markets))
        self._persist(markets)
        return markets

    def _persist(self, markets: list[UnifiedMarket]) -> None:
        if self.persistence is None:
            return
        for m in markets:
            try:
                self.persistence.upsert_market(m)
            except Exception as e:
                log.warning("snapshot_failed", platform=m.platform.value, market_id=m.id, error=str(e))

    async def trending(self, limit: int = 20, platform: Platform | None = None) -> list[UnifiedMarket]:
        """Highest 24h-volume markets across sources, cached for the trending TTL."""

        async def load() -> list[UnifiedMarket]:
            markets = await self.ingestion.fetch_markets(limit=limit, platform=platform)
            markets.sort(key=lambda m: m.liquidity.volume_24h, reverse=True)
            return markets[:limit]

        key = f"trending_{limit}_{platform.value if platform else 'both'}"
        log.info("trending_requested", limit=limit, platform=platform.value if platform else "both")
        if self.cache is None:
            return await load()
        return await self.cache.wrap(key, self.trending_ttl_sec, load)

    async def get_market(self, platform: Platform, market_id: str) -> UnifiedMarket | None:
        return await self.ingestion.fetch_market(platform, market_id)

    async def arbitrage(self, limit: int = SEARCH_FETCH_LIMIT) -> list[ArbitrageOpportunity]:
        """Cross-platform pairs of near-identical questions with diverging prices."""
        markets = await self.ingestion.fetch_markets(limit=limit)
        kalshi = [m for m in markets if m.platform == Platform.KALSHI]
        poly = [m for m in markets if m.platform == Platform.POLYMARKET]
        return self.ranker.find_arbitrage(kalshi, poly)
