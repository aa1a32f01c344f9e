"""Two-stage opportunity scan: cheap screen over N markets, exact analysis on the top K."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Protocol, Sequence

import structlog

from predictmax.intelligence.recommendation import RecommendationEngine, quick_signal
from predictmax.models import Action, QuickSignal, ScanCandidate, ScanResult, TradeRecommendation, UnifiedMarket

log = structlog.get_logger(__name__)

TOP_K = 10
ALTERNATIVES = 2


class QuickScorer(Protocol):
    def quick(self, market: UnifiedMarket) -> QuickSignal: ...


class DeepScorer(Protocol):
    async def recommend(
        self, market: UnifiedMarket, bankroll: float | None = None, *, now: datetime | None = None
    ) -> TradeRecommendation: ...

    def conservative_wait(
        self, market: UnifiedMarket, reason: str, now: datetime | None = None
    ) -> TradeRecommendation: ...


class HeuristicQuickScorer:
    def quick(self, market: UnifiedMarket) -> QuickSignal:
        return quick_signal(market)


def _by_volume(markets: Sequence[UnifiedMarket]) -> list[UnifiedMarket]:
    return sorted(markets, key=lambda m: m.liquidity.volume_24h, reverse=True)


class OpportunityScanner:
    """Never returns None for a non-empty input; per-market failures are skipped."""

    def __init__(
        self,
        deep: DeepScorer | None = None,
        quick: QuickScorer | None = None,
        top_k: int = TOP_K,
        alternatives: int = ALTERNATIVES,
    ):
        self.deep = deep or RecommendationEngine()
        self.quick = quick or HeuristicQuickScorer()
        self.top_k = max(1, top_k)
        self.alternatives = max(0, alternatives)

    def screen(self, markets: Sequence[UnifiedMarket]) -> list[UnifiedMarket]:
        """Stage 1: quick-BUY markets, highest volume first, at most top_k."""
        passed = [m for m in markets if self.quick.quick(m).action != Action.WAIT]
        return _by_volume(passed)[: self.top_k]

    async def _analyze(
        self, markets: Sequence[UnifiedMarket], bankroll: float | None, now: datetime | None
    ) -> list[ScanCandidate]:
        """Stage 2: exact analysis with at most top_k in flight; failures drop the market."""
        sem = asyncio.Semaphore(self.top_k)

        async def one(market: UnifiedMarket) -> ScanCandidate | None:
            async with sem:
                try:
                    rec = await self.deep.recommend(market, bankroll, now=now)
                except Exception as e:
                    log.warning("deep_analysis_failed", market_id=market.id, error=str(e))
                    return None
            return ScanCandidate(market=market, recommendation=rec)

        results = await asyncio.gather(*(one(m) for m in markets))
        return [r for r in results if r is not None]

    async def find_best(
        self,
        markets: Sequence[UnifiedMarket],
        bankroll: float | None = None,
        now: datetime | None = None,
    ) -> ScanResult | None:
        if not markets:
            return None
        survivors = self.screen(markets)
        log.info("quick_screen", total=len(markets), survivors=len(survivors))

        if not survivors:
            best = _by_volume(markets)[0]
            candidates = await self._analyze([best], bankroll, now)
            rec = (
                candidates[0].recommendation
                if candidates
                else self.deep.conservative_wait(best, "No market passed the quick screen.", now)
            )
            return ScanResult(best_market=best, recommendation=rec, alternatives=[])

        analyzed = await self._analyze(survivors, bankroll, now)
        if not analyzed:
            best = _by_volume(markets)[0]
            log.warning("all_deep_analyses_failed", survivors=len(survivors))
            return ScanResult(
                best_market=best,
                recommendation=self.deep.conservative_wait(best, "Deep analysis was unavailable.", now),
                alternatives=[],
            )

        actionable = [c for c in analyzed if c.recommendation.action != Action.WAIT]
        if actionable:
            ranked = sorted(actionable, key=lambda c: c.recommendation.expected_value, reverse=True)
        else:
            ranked = sorted(analyzed, key=lambda c: abs(c.recommendation.edge), reverse=True)
        top = ranked[0]
        log.info(
            "best_opportunity",
            market_id=top.market.id,
            action=top.recommendation.action.value,
            edge=round(top.recommendation.edge, 4),
            actionable=len(actionable),
        )
        return ScanResult(
            best_market=top.market,
            recommendation=top.recommendation,
            alternatives=ranked[1 : 1 + self.alternatives],
        )
