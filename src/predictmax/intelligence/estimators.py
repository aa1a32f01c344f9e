"""Context-driven probability models fed into the ensemble.

Each estimator reads the domain context attached to a market (plus injected
reference data) and returns a ProbabilityModel, or None when it has nothing
to say about the market.
"""

from __future__ import annotations

import math
import re

from predictmax.models import (
    CryptoContext,
    MarketCategory,
    PoliticsContext,
    ProbabilityModel,
    SportsContext,
    UnifiedMarket,
)
from predictmax.models.context import FIRST_MEETING, PlayerStats, RecentForm
from predictmax.models.probability import (
    CRYPTO_STATISTICAL,
    EXTERNAL_ODDS,
    HISTORICAL_BASELINE,
    POLITICS_BASELINE,
    POLITICS_STATISTICAL,
    SPORTS_STATISTICAL,
    CryptoBreakdown,
    ExternalOddsBreakdown,
    HistoricalBreakdown,
    PoliticsBreakdown,
    SportsBreakdown,
)
from predictmax.providers import ReferenceDataProvider
from predictmax.reference import StaticReferenceData

UNRANKED = 100
ELO_SCALE = 50


def normal_cdf(x: float) -> float:
    return 0.5 * (1 + math.erf(x / math.sqrt(2)))


def _head_to_head(record: str | None) -> tuple[int, int] | None:
    if not record or record == FIRST_MEETING:
        return None
    m = re.match(r"\s*(\d+)\s*-\s*(\d+)", record)
    if not m:
        return None
    wins, losses = int(m.group(1)), int(m.group(2))
    return (wins, losses) if wins + losses > 0 else None


class SportsEstimator:
    """Elo-style tennis model from rankings, recent form, surface and head-to-head."""

    def __init__(self, reference: ReferenceDataProvider | None = None):
        self.reference = reference or StaticReferenceData()

    def _ranking(self, player: PlayerStats) -> int | None:
        return player.ranking if player.ranking is not None else self.reference.player_ranking(player.name)

    def _form(self, player: PlayerStats) -> RecentForm:
        if player.recent_form is not None:
            return player.recent_form
        known = self.reference.recent_form(player.name)
        return RecentForm(wins=known[0], losses=known[1]) if known else RecentForm()

    def tennis_probability(self, ctx: SportsContext) -> float:
        p1, p2 = ctx.player1, ctx.player2
        rank1 = self._ranking(p1) or UNRANKED
        rank2 = self._ranking(p2) or UNRANKED
        prob = 1 / (1 + 10 ** (-(rank2 - rank1) / ELO_SCALE))
        prob += (self._form(p1).win_rate - self._form(p2).win_rate) * 0.1
        if p1.surface_record and p2.surface_record:
            prob += (p1.surface_record.win_rate - p2.surface_record.win_rate) * 0.05
        h2h = _head_to_head(ctx.head_to_head)
        if h2h:
            prob += (h2h[0] / (h2h[0] + h2h[1]) - 0.5) * 0.1
        return max(0.05, min(0.95, prob))

    def estimate(self, market: UnifiedMarket) -> ProbabilityModel | None:
        ctx = market.context
        if not isinstance(ctx, SportsContext) or ctx.sport != "tennis":
            return None
        if ctx.player1 is None or ctx.player2 is None:
            return None
        rank1, rank2 = self._ranking(ctx.player1), self._ranking(ctx.player2)
        confidence = 0.6
        if rank1 and rank2:
            confidence += 0.1
        if ctx.head_to_head != FIRST_MEETING:
            confidence += 0.1
        if ctx.external_odds and ctx.external_odds.bookmakers:
            confidence += 0.05
        return ProbabilityModel(
            name=SPORTS_STATISTICAL,
            probability=self.tennis_probability(ctx),
            weight=0.35,
            confidence=min(0.9, confidence),
            breakdown=SportsBreakdown(
                sport=ctx.sport,
                player1_ranking=rank1,
                player2_ranking=rank2,
                head_to_head=ctx.head_to_head,
                surface=ctx.surface,
            ),
        )


def crypto_model(market: UnifiedMarket) -> ProbabilityModel | None:
    """Chance the price crosses the threshold before expiry under a normal move."""
    ctx = market.context
    if not isinstance(ctx, CryptoContext):
        return None
    if not ctx.threshold:
        return ProbabilityModel(
            name=CRYPTO_STATISTICAL,
            probability=market.pricing.midpoint,
            weight=0.25,
            confidence=0.4,
            breakdown=CryptoBreakdown(current_price=ctx.current_price),
        )
    price, threshold = ctx.current_price, ctx.threshold
    volatility = ctx.historical_volatility if ctx.historical_volatility > 0 else 0.05
    days = ctx.days_to_expiry if ctx.days_to_expiry > 0 else 30
    expected_move = volatility * math.sqrt(days / 365) * price
    z = abs(threshold - price) / expected_move
    prob = 1 - normal_cdf(z) if threshold > price else normal_cdf(-z)
    return ProbabilityModel(
        name=CRYPTO_STATISTICAL,
        probability=max(0.0, min(1.0, prob)),
        weight=0.35,
        confidence=0.65,
        breakdown=CryptoBreakdown(
            current_price=price,
            threshold=threshold,
            distance_percent=(threshold - price) / price * 100,
            volatility=volatility,
            days_to_expiry=days,
            z_score=z,
        ),
    )


def politics_model(market: UnifiedMarket) -> ProbabilityModel | None:
    """Polling average, blended 40/60 with the mean expert forecast when one exists."""
    ctx = market.context
    if not isinstance(ctx, PoliticsContext):
        return None
    prob = market.pricing.midpoint
    confidence = 0.5
    rationale = "Market consensus"
    if ctx.poll_average:
        prob = ctx.poll_average / 100
        confidence = 0.7
        rationale = f"Based on polling average: {ctx.poll_average}%"
    if ctx.forecasts:
        expert = sum(f.probability for f in ctx.forecasts) / len(ctx.forecasts)
        prob = prob * 0.4 + expert * 0.6
        confidence = 0.8
        rationale = f"Blended polls and {len(ctx.forecasts)} expert forecasts"
    return ProbabilityModel(
        name=POLITICS_STATISTICAL,
        probability=prob,
        weight=0.4,
        confidence=confidence,
        breakdown=PoliticsBreakdown(
            poll_average=ctx.poll_average,
            poll_trend=ctx.poll_trend,
            forecast_count=len(ctx.forecasts),
            rationale=rationale,
        ),
    )


def politics_baseline(market: UnifiedMarket) -> ProbabilityModel | None:
    """Question-shape baseline for politics markets that carry no context."""
    if market.category != MarketCategory.POLITICS or market.context is not None:
        return None
    q = market.question.lower()
    prob, confidence = 0.5, 0.4
    rationale = "Neutral baseline - insufficient context"
    if "will" in q and ("pass" in q or "sign" in q) and any(w in q for w in ("congress", "senate", "house")):
        prob, confidence = 0.35, 0.6
        rationale = "Historical: ~4% of bills become law"
    if "executive order" in q or "executive action" in q:
        prob, confidence = 0.7, 0.65
        rationale = "Executive actions have high implementation rate"
    if "supreme court" in q or "court ruling" in q:
        prob, confidence = 0.5, 0.45
        rationale = "Court rulings highly case-dependent"
    return ProbabilityModel(
        name=POLITICS_BASELINE,
        probability=prob,
        weight=0.25,
        confidence=confidence,
        breakdown=PoliticsBreakdown(kind=POLITICS_BASELINE, rationale=rationale),
    )


def external_odds_model(market: UnifiedMarket) -> ProbabilityModel | None:
    """Mean bookmaker implied probability; more bookmakers, more confidence."""
    ctx = market.context
    if not isinstance(ctx, SportsContext) or ctx.external_odds is None:
        return None
    books = ctx.external_odds.bookmakers
    if not books:
        return ProbabilityModel(
            name=EXTERNAL_ODDS,
            probability=market.pricing.midpoint,
            weight=0.15,
            confidence=0.3,
        )
    implied = sum(b.implied1 for b in books) / len(books)
    return ProbabilityModel(
        name=EXTERNAL_ODDS,
        probability=implied,
        weight=0.25,
        confidence=min(0.85, 0.6 + len(books) * 0.05),
        breakdown=ExternalOddsBreakdown(
            num_bookmakers=len(books),
            implied_probability=implied,
            bookmakers=[b.bookmaker for b in books],
        ),
    )


# (question must mention all of, probability, rationale); first match wins
DEPORTATION_RANGES: list[tuple[tuple[tuple[str, ...], ...], float, str]] = [
    (
        (("250,000", "250k", "250000"), ("500,000", "500k", "500000")),
        0.45,
        "Historical avg falls in this range (375K/yr). 65% of years hit this range.",
    ),
    (
        (("250,000", "250k", "250000"), ("less than", "under", "fewer")),
        0.15,
        "Only 2020 fell below 250K.",
    ),
    (
        (("500,000", "500k"), ("750,000", "750k")),
        0.25,
        "Above historical avg. Would require policy escalation.",
    ),
    (
        (("500,000", "500k"), ("1,000,000", "1m", "million")),
        0.10,
        "Significantly above all historical precedent.",
    ),
    (
        (("over", "more than", "exceed"), ("1,000,000", "1m", "million")),
        0.05,
        "No administration has achieved >1M annual deportations.",
    ),
]

_PRICE_TARGET = re.compile(r"\$?(\d[\d,]*)(k)?", re.IGNORECASE)


def _price_target(question: str) -> float | None:
    m = _PRICE_TARGET.search(question)
    if not m:
        return None
    value = float(m.group(1).replace(",", ""))
    return value * 1000 if m.group(2) else value


def _deportation_baseline(q: str) -> ProbabilityModel:
    prob, rationale = 0.5, "Historical baseline"
    for groups, p, why in DEPORTATION_RANGES:
        if all(any(w in q for w in group) for group in groups):
            prob, rationale = p, why
            break
    return ProbabilityModel(
        name=HISTORICAL_BASELINE,
        probability=prob,
        weight=0.35,
        confidence=0.75,
        breakdown=HistoricalBreakdown(rationale=rationale, data_source="DHS/ICE Statistics"),
    )


def historical_model(market: UnifiedMarket) -> ProbabilityModel | None:
    """Domain base rates: deportation ranges, incumbency, crypto all-time-high targets."""
    q = market.question.lower()
    if market.category == MarketCategory.POLITICS:
        if re.search(r"\b(deport\w*|immigration|ice)\b", q):
            return _deportation_baseline(q)
        if any(w in q for w in ("election", "win", "president")):
            incumbent = "incumbent" in q or "reelection" in q
            return ProbabilityModel(
                name=HISTORICAL_BASELINE,
                probability=0.65 if incumbent else 0.55,
                weight=0.2,
                confidence=0.6,
                breakdown=HistoricalBreakdown(
                    rationale=(
                        "Incumbents win ~65% of presidential elections historically"
                        if incumbent
                        else "Incumbent advantage historical baseline"
                    ),
                    data_source="Historical US Elections",
                ),
            )
    if market.category == MarketCategory.CRYPTO and re.search(r"\b(bitcoin|btc)\b", q):
        target = _price_target(q)
        high = target is not None and target > 100000
        return ProbabilityModel(
            name=HISTORICAL_BASELINE,
            probability=0.3 if high else 0.5,
            weight=0.2,
            confidence=0.5,
            breakdown=HistoricalBreakdown(
                rationale="Target above ATH - historically challenging" if high else "Within historical range",
                data_source="Historical BTC data",
            ),
        )
    return None


class ContextEstimators:
    """Runs every built-in estimator against a market's attached context."""

    def __init__(self, reference: ReferenceDataProvider | None = None):
        self.sports = SportsEstimator(reference)

    def models(self, market: UnifiedMarket) -> list[ProbabilityModel]:
        candidates = [
            self.sports.estimate(market),
            crypto_model(market),
            politics_model(market),
            politics_baseline(market),
            external_odds_model(market),
            historical_model(market),
        ]
        return [m for m in candidates if m is not None]
