"""Probability ensemble: market consensus + pluggable models -> fair value and confidence.

All functions here are pure. The ensemble knows nothing about how the
non-consensus models were produced; each carries its own weight and confidence.
"""

from __future__ import annotations

from typing import Sequence

from predictmax.models import LiquidityScore, ProbabilityAnalysis, ProbabilityModel, UnifiedMarket
from predictmax.models.probability import (
    EXTERNAL_ODDS,
    HISTORICAL_BASELINE,
    MARKET_CONSENSUS,
    STATISTICAL_MODELS,
    EdgeQuality,
    EnsembleSummary,
    MarketConsensusBreakdown,
)

CONSENSUS_WEIGHT = 0.3
MAX_CONFIDENCE = 0.95
FAIR_VALUE_MIN = 0.01
FAIR_VALUE_MAX = 0.99

_TIER_CONFIDENCE = {
    LiquidityScore.HIGH: 0.85,
    LiquidityScore.MEDIUM: 0.7,
    LiquidityScore.LOW: 0.5,
}


def market_consensus_model(market: UnifiedMarket) -> ProbabilityModel:
    """The market's own midpoint, trusted more when liquid and tight."""
    pricing = market.pricing
    tier = market.liquidity.liquidity_score
    confidence = _TIER_CONFIDENCE.get(tier, 0.5) + max(0.0, 0.1 - pricing.spread) * 2
    return ProbabilityModel(
        name=MARKET_CONSENSUS,
        probability=pricing.midpoint,
        weight=CONSENSUS_WEIGHT,
        confidence=min(MAX_CONFIDENCE, confidence),
        breakdown=MarketConsensusBreakdown(
            yes_bid=pricing.yes_bid,
            yes_ask=pricing.yes_ask,
            midpoint=pricing.midpoint,
            spread=pricing.spread,
            liquidity_score=tier,
        ),
    )


def fair_value(models: Sequence[ProbabilityModel]) -> float:
    """Sum(p*w*c) / Sum(w*c), clamped to [0.01, 0.99]; unweighted mean if the denominator is 0."""
    if not models:
        return 0.5
    total = sum(m.weight * m.confidence for m in models)
    if total == 0:
        value = sum(m.probability for m in models) / len(models)
    else:
        value = sum(m.probability * m.weight * m.confidence for m in models) / total
    return max(FAIR_VALUE_MIN, min(FAIR_VALUE_MAX, value))


def agreement_factor(models: Sequence[ProbabilityModel]) -> float:
    """1 when all models agree; floors at 0.5 as the probability variance grows."""
    probs = [m.probability for m in models]
    mean = sum(probs) / len(probs)
    variance = sum((p - mean) ** 2 for p in probs) / len(probs)
    return max(0.5, 1 - variance * 10)


def ensemble_confidence(models: Sequence[ProbabilityModel]) -> float:
    if not models:
        return 0.0
    total_weight = sum(m.weight for m in models)
    if total_weight == 0:
        weighted = sum(m.confidence for m in models) / len(models)
    else:
        weighted = sum(m.confidence * m.weight for m in models) / total_weight
    return max(0.0, min(MAX_CONFIDENCE, weighted * agreement_factor(models)))


def _first(models: Sequence[ProbabilityModel], names: Sequence[str]) -> float | None:
    for m in models:
        if m.name in names:
            return m.probability
    return None


def summarize(models: Sequence[ProbabilityModel]) -> EnsembleSummary:
    consensus = _first(models, (MARKET_CONSENSUS,))
    statistical = _first(models, STATISTICAL_MODELS)
    return EnsembleSummary(
        market_consensus=consensus,
        statistical_model=statistical if statistical is not None else consensus,
        external_odds=_first(models, (EXTERNAL_ODDS,)),
        historical_pattern=_first(models, (HISTORICAL_BASELINE,)),
    )


def combine(models: Sequence[ProbabilityModel], midpoint: float) -> ProbabilityAnalysis:
    value = fair_value(models)
    return ProbabilityAnalysis(
        fair_value=value,
        models=list(models),
        edge=value - midpoint,
        confidence=ensemble_confidence(models),
        breakdown=summarize(models),
    )


def edge_quality(analysis: ProbabilityAnalysis, market: UnifiedMarket) -> EdgeQuality:
    """Classify the edge for reporting. edge_percent is relative to the market price."""
    midpoint = market.pricing.midpoint
    relative = analysis.edge / midpoint * 100 if midpoint > 0 else 0.0
    abs_edge = abs(analysis.edge) * 100
    conf = analysis.confidence
    if abs_edge < 2:
        quality, reasoning = "LOW", "Edge is too small to be actionable after transaction costs"
    elif abs_edge < 5:
        if conf > 0.75:
            quality, reasoning = "MEDIUM", "Moderate edge with good confidence"
        else:
            quality, reasoning = "LOW", "Small edge with insufficient confidence"
    elif abs_edge < 10:
        if conf > 0.7:
            quality, reasoning = "HIGH", "Good edge with solid model agreement"
        else:
            quality, reasoning = "MEDIUM", "Good edge but models show some disagreement"
    elif conf > 0.65:
        quality, reasoning = "HIGH", "Large edge detected - verify market conditions"
    else:
        quality, reasoning = "MEDIUM", "Large edge but low confidence - investigate further"
    return EdgeQuality(
        edge_percent=relative,
        is_significant=abs_edge > 3 and conf > 0.6,
        quality=quality,
        reasoning=reasoning,
    )


class ProbabilityEnsemble:
    """Stateless wrapper: always prepends the market-consensus model."""

    def evaluate(self, market: UnifiedMarket, models: Sequence[ProbabilityModel] = ()) -> ProbabilityAnalysis:
        extra = [m for m in models if m.name != MARKET_CONSENSUS]
        return combine([market_consensus_model(market), *extra], market.pricing.midpoint)

    def edge_quality(self, analysis: ProbabilityAnalysis, market: UnifiedMarket) -> EdgeQuality:
        return edge_quality(analysis, market)
