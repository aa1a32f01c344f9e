"""Relevance filtering and scoring of UnifiedMarkets against a ParsedQuery."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

import structlog
from pydantic import BaseModel, ConfigDict

from predictmax.ingestion.categorize import contains_keyword
from predictmax.models import LiquidityScore, MarketStatus, ParsedQuery, Platform, SearchFilters, UnifiedMarket
from predictmax.providers import ReferenceDataProvider
from predictmax.reference import StaticReferenceData

log = structlog.get_logger(__name__)

TERM_MATCH_RATIO = 0.5
BASE_SCORE = 10
NAME_PART_POINTS = 20
ALL_ENTITIES_BONUS = 50
DOMAIN_POINTS = 30


class ArbitrageOpportunity(BaseModel):
    """Same question priced differently on two platforms."""

    model_config = ConfigDict(frozen=True)

    question: str
    first: UnifiedMarket
    second: UnifiedMarket
    similarity: float
    spread_percent: float
    opportunity: str


def similarity(text1: str, text2: str) -> float:
    """Word-set Jaccard similarity."""
    words1 = set(text1.lower().split())
    words2 = set(text2.lower().split())
    union = words1 | words2
    if not union:
        return 0.0
    return len(words1 & words2) / len(union)


class SearchRanker:
    """Stateless apart from the injected reference data."""

    def __init__(self, reference: ReferenceDataProvider | None = None):
        self.reference = reference or StaticReferenceData()

    def _name_variants(self, entity: str) -> list[str]:
        return [v for v in (entity.lower().strip(), *self.reference.aliases(entity)) if v]

    def _entity_matches(self, entity: str, text: str) -> bool:
        """Any name part of the entity (or of one of its aliases) appears in text as a whole word."""
        return any(contains_keyword(text, tuple(variant.split())) for variant in self._name_variants(entity))

    def _phrase_matches(self, entity: str, text: str) -> bool:
        """The entity name or one of its aliases appears whole in text."""
        return contains_keyword(text, tuple(self._name_variants(entity)))

    def _single_entity_matches(self, query: ParsedQuery, text: str) -> bool:
        if any(self._entity_matches(p, text) for p in query.players):
            return True
        others = [*query.teams, *([query.asset] if query.asset else [])]
        return any(self._phrase_matches(e, text) for e in others)

    def filter(self, markets: Sequence[UnifiedMarket], query: ParsedQuery) -> list[UnifiedMarket]:
        """Keep markets relevant to query.

        Two or more players: every player must match (head-to-head).
        Any other named entity: at least one must match.
        Otherwise at least half of the free-text terms must appear.
        """
        if query.head_to_head:
            kept = [m for m in markets if all(self._entity_matches(p, m.text) for p in query.players)]
        elif query.entities:
            kept = [m for m in markets if self._single_entity_matches(query, m.text)]
        else:
            terms = query.terms()
            if not terms:
                return list(markets)
            kept = [
                m for m in markets
                if sum(1 for t in terms if t in m.text) >= len(terms) * TERM_MATCH_RATIO
            ]
        log.debug("filter_applied", before=len(markets), after=len(kept))
        return kept

    def score(self, market: UnifiedMarket, query: ParsedQuery, now: datetime | None = None) -> float:
        text = market.text
        score = BASE_SCORE
        entities = query.entities
        for entity in entities:
            for part in entity.lower().split():
                if contains_keyword(text, (part,)):
                    score += NAME_PART_POINTS
        if len(entities) >= 2 and all(self._entity_matches(e, text) for e in entities):
            score += ALL_ENTITIES_BONUS

        if query.domain is not None and market.category == query.domain:
            score += DOMAIN_POINTS

        tier = market.liquidity.liquidity_score
        if tier == LiquidityScore.HIGH:
            score += 15
        elif tier == LiquidityScore.MEDIUM:
            score += 8

        volume = market.liquidity.volume_24h
        if volume > 10000:
            score += 15
        elif volume > 1000:
            score += 8

        days = market.days_to_expiry(now)
        if 1 < days < 30:
            score += 5
        return score

    def rank(
        self, markets: Sequence[UnifiedMarket], query: ParsedQuery, now: datetime | None = None
    ) -> list[UnifiedMarket]:
        """Sort by score desc, then volume24h desc; sorted() keeps input order for full ties."""
        scored = [(self.score(m, query, now), m) for m in markets]
        scored.sort(key=lambda pair: (-pair[0], -pair[1].liquidity.volume_24h))
        return [m for _, m in scored]

    def search(
        self, markets: Sequence[UnifiedMarket], query: ParsedQuery, now: datetime | None = None
    ) -> list[UnifiedMarket]:
        return self.rank(self.filter(markets, query), query, now)

    def apply_filters(self, markets: Sequence[UnifiedMarket], filters: SearchFilters) -> list[UnifiedMarket]:
        out = []
        for m in markets:
            if filters.platform is not None and m.platform != filters.platform:
                continue
            if filters.category is not None and m.category != filters.category:
                continue
            if filters.min_volume is not None and m.liquidity.total_volume < filters.min_volume:
                continue
            if filters.min_liquidity is not None and m.liquidity.open_interest < filters.min_liquidity:
                continue
            expiration = _aware(m.market.expiration_time)
            if filters.min_end_date is not None and expiration < _aware(filters.min_end_date):
                continue
            if filters.max_end_date is not None and expiration > _aware(filters.max_end_date):
                continue
            if filters.active and m.market.status != MarketStatus.OPEN:
                continue
            out.append(m)
        return out

    def find_arbitrage(
        self,
        first: Sequence[UnifiedMarket],
        second: Sequence[UnifiedMarket],
        min_similarity: float = 0.7,
        min_spread: float = 0.03,
    ) -> list[ArbitrageOpportunity]:
        """Pair markets with near-identical questions whose midpoints differ by more than min_spread."""
        found = []
        for a in first:
            for b in second:
                if a.platform == b.platform:
                    continue
                sim = similarity(a.question, b.question)
                if sim < min_similarity:
                    continue
                gap = abs(a.pricing.midpoint - b.pricing.midpoint)
                if gap <= min_spread:
                    continue
                cheap, rich = (b, a) if a.pricing.midpoint > b.pricing.midpoint else (a, b)
                found.append(
                    ArbitrageOpportunity(
                        question=a.question,
                        first=a,
                        second=b,
                        similarity=sim,
                        spread_percent=gap * 100,
                        opportunity=(
                            f"Buy YES on {_platform_name(cheap.platform)} ({cheap.pricing.midpoint * 100:.1f}%), "
                            f"Sell YES on {_platform_name(rich.platform)} ({rich.pricing.midpoint * 100:.1f}%)"
                        ),
                    )
                )
        found.sort(key=lambda o: o.spread_percent, reverse=True)
        log.debug("arbitrage_scan", first=len(first), second=len(second), found=len(found))
        return found


def _platform_name(platform: Platform) -> str:
    return platform.value.capitalize()


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)
