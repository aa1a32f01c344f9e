"""Decision policy over ensemble + risk output: action, side, pricing, timing, reasoning."""

from __future__ import annotations

import asyncio
import math
from datetime import datetime
from typing import Any, Awaitable, Sequence

import structlog

from predictmax.config.settings import DEFAULT_BANKROLL, resolve_bankroll
from predictmax.errors import EnrichmentUnavailable, ReasoningUnavailable
from predictmax.intelligence.ensemble import ProbabilityEnsemble
from predictmax.intelligence.estimators import ContextEstimators
from predictmax.intelligence.risk import RiskAssessor, time_bucket
from predictmax.models import (
    Action,
    Decision,
    PositionSizing,
    PricingTargets,
    ProbabilityAnalysis,
    ProbabilityModel,
    QuickSignal,
    RiskAssessment,
    RiskLevel,
    Side,
    SportsContext,
    Timing,
    TradeRecommendation,
    UnifiedMarket,
    Urgency,
)
from predictmax.models.probability import (
    ExternalOddsBreakdown,
    MarketConsensusBreakdown,
    SportsBreakdown,
)
from predictmax.providers import DomainContextProvider, ExternalOddsProvider, ReasoningTextGenerator

log = structlog.get_logger(__name__)

MIN_EDGE_PERCENT = 3.0
MIN_CONFIDENCE = 0.55
HIGH_RISK_THRESHOLD = 0.7
ILLIQUID_MIN_EDGE_PERCENT = 8.0

STOP_LOSS_BAND = 0.15
TAKE_PROFIT_BAND = 0.20
DEFAULT_SLIPPAGE = 0.01
MAX_KEY_FACTORS = 6

QUICK_MIN_VOLUME = 100
QUICK_MAX_SPREAD = 0.10
QUICK_MIN_EDGE = 0.05

# Indexed by risk.TIME_BUCKETS position
EXIT_STRATEGIES = [
    "Hold to settlement unless stop loss hit",
    "Hold to settlement unless stop loss hit",
    "Scale out at +10-15%, full exit at +20% or stop loss",
    "Scale out at +10-15%, full exit at +20% or stop loss",
    "Trail stop at 50% of gains, re-evaluate weekly",
    "Trail stop at 50% of gains, re-evaluate monthly",
]
ENTRY_TIMING = [
    "Enter immediately with limit order; little time left for price discovery",
    "Enter today with limit order at mid-price",
    "Enter with limit order at mid-price, adjust if not filled within 1 hour",
    "Enter with limit order at mid-price, adjust if not filled within 1 hour",
    "Scale in over several days with limit orders at mid-price",
    "Scale in over several weeks with limit orders at mid-price",
]


def decide(analysis: ProbabilityAnalysis, risk: RiskAssessment, market: UnifiedMarket) -> Decision:
    """WAIT unless the edge is large and trusted enough for the market's risk."""
    edge_percent = abs(analysis.edge) * 100
    if risk.overall_risk > HIGH_RISK_THRESHOLD:
        return Decision(action=Action.WAIT)
    if edge_percent < MIN_EDGE_PERCENT or analysis.confidence < MIN_CONFIDENCE:
        return Decision(action=Action.WAIT)
    if risk.liquidity.level == RiskLevel.HIGH and edge_percent < ILLIQUID_MIN_EDGE_PERCENT:
        return Decision(action=Action.WAIT)
    return Decision(
        action=Action.BUY,
        side=Side.YES if analysis.edge > 0 else Side.NO,
        confidence=analysis.confidence * (1 - risk.overall_risk),
    )


def side_price(market: UnifiedMarket, side: Side) -> float:
    """Cost of one contract on side: the ask, or the implied midpoint when no ask is quoted."""
    p = market.pricing
    if side == Side.YES:
        return p.yes_ask if p.yes_ask > 0 else p.midpoint
    return p.no_ask if p.no_ask > 0 else 1 - p.midpoint


def pricing_targets(market: UnifiedMarket, decision: Decision, risk: RiskAssessment) -> PricingTargets:
    if decision.action == Action.WAIT or decision.side is None:
        return PricingTargets()
    slippage = risk.liquidity.details.get("expected_slippage") or DEFAULT_SLIPPAGE
    p = market.pricing
    if decision.side == Side.YES:
        entry, ask = p.yes_bid, p.yes_ask
    else:
        entry, ask = p.no_bid, p.no_ask
    return PricingTargets(
        target_entry=entry,
        limit_price=min(1.0, ask + slippage),
        expected_slippage=slippage,
        stop_loss=max(0.01, entry - STOP_LOSS_BAND),
        take_profit=min(0.99, entry + TAKE_PROFIT_BAND),
    )


def time_horizon(days: int) -> str:
    if days < 1:
        return "Intraday"
    if days < 7:
        return f"{days} days"
    if days < 30:
        return f"{math.ceil(days / 7)} weeks"
    return f"{math.ceil(days / 30)} months"


def timing(analysis: ProbabilityAnalysis, risk: RiskAssessment, decision: Decision) -> Timing:
    edge_percent = abs(analysis.edge) * 100
    days = risk.time.details.get("days_to_expiry", 30)
    if edge_percent > 10 and days < 7:
        urgency = Urgency.HIGH
    elif edge_percent > 5 or days < 14:
        urgency = Urgency.MEDIUM
    else:
        urgency = Urgency.LOW

    bucket = time_bucket(days)
    if decision.action == Action.WAIT:
        exit_strategy = "No position to manage"
        entry = "No entry; re-evaluate if price or fundamentals move"
    else:
        exit_strategy = EXIT_STRATEGIES[bucket]
        if urgency == Urgency.HIGH:
            entry = "Enter now with limit order at ask price"
        elif risk.liquidity.level == RiskLevel.HIGH:
            entry = "Use limit orders over multiple days to build position"
        else:
            entry = ENTRY_TIMING[bucket]
    return Timing(urgency=urgency, time_horizon=time_horizon(days), exit_strategy=exit_strategy, optimal_entry=entry)


def key_factors(market: UnifiedMarket, analysis: ProbabilityAnalysis) -> list[str]:
    factors: list[str] = []
    for model in analysis.models:
        b = model.breakdown
        if isinstance(b, SportsBreakdown):
            if b.head_to_head:
                factors.append(f"Head-to-head: {b.head_to_head}")
            if b.player1_ranking and b.player2_ranking:
                factors.append(f"Rankings: #{b.player1_ranking} vs #{b.player2_ranking}")
            if b.surface:
                factors.append(f"Surface: {b.surface}")
        elif isinstance(b, ExternalOddsBreakdown):
            factors.append(f"External odds imply: {b.implied_probability * 100:.1f}%")
        elif isinstance(b, MarketConsensusBreakdown):
            factors.append(f"Spread: {b.spread_percent}")
            factors.append(f"Liquidity: {b.liquidity_score.value}")
    ctx = market.context
    if isinstance(ctx, SportsContext) and ctx.player1 and ctx.player1.recent_form:
        form = ctx.player1.recent_form
        factors.append(f"{ctx.player1.name} form: {form.wins}-{form.losses} (L10)")
    return factors[:MAX_KEY_FACTORS]


def reasoning_prompt(
    market: UnifiedMarket, analysis: ProbabilityAnalysis, risk: RiskAssessment, decision: Decision
) -> str:
    models = "\n".join(
        f"- {m.name}: {m.probability * 100:.1f}% (confidence: {m.confidence * 100:.0f}%)" for m in analysis.models
    )
    risks = f"Key Risks: {'; '.join(risk.risk_factors)}" if risk.risk_factors else ""
    action = decision.action.value + (f" {decision.side.value}" if decision.side else "")
    return (
        "Generate a 2-3 sentence professional explanation for this prediction market recommendation.\n\n"
        f"MARKET: {market.question}\n"
        f"Platform: {market.platform.value}\n"
        f"Current Price: {market.pricing.midpoint * 100:.1f}%\n\n"
        "ANALYSIS:\n"
        f"Fair Value: {analysis.fair_value * 100:.1f}%\n"
        f"Edge: {analysis.edge * 100:+.1f}%\n"
        f"Confidence: {analysis.confidence * 100:.0f}%\n\n"
        f"Models Used:\n{models}\n\n"
        "RISK:\n"
        f"Liquidity: {risk.liquidity.level.value}\n"
        f"Overall Risk: {risk.overall_risk * 100:.0f}%\n"
        f"{risks}\n\n"
        f"RECOMMENDATION: {action}\n\n"
        'Provide a clear, professional explanation citing specific factors. Do not use phrases like "I recommend" '
        "- be direct and factual."
    )


def template_reasoning(market: UnifiedMarket, analysis: ProbabilityAnalysis, decision: Decision) -> str:
    if decision.action == Action.WAIT or decision.side is None:
        return (
            "Current market conditions do not present a clear opportunity. "
            f"Edge of {analysis.edge * 100:.1f}% is below threshold or risk factors are too high."
        )
    return (
        f"{decision.action.value} {decision.side.value} based on {abs(analysis.edge) * 100:.1f}% edge. "
        f"Fair value of {analysis.fair_value * 100:.1f}% vs market price of {market.pricing.midpoint * 100:.1f}% "
        f"suggests market is {'undervalued' if analysis.edge > 0 else 'overvalued'}."
    )


def quick_signal(market: UnifiedMarket) -> QuickSignal:
    """Cheap stage-1 screen: BUY only on a clear gap to external odds."""
    volume = market.liquidity.volume_24h
    spread = market.pricing.spread
    midpoint = market.pricing.midpoint
    if volume < QUICK_MIN_VOLUME:
        return QuickSignal(action=Action.WAIT, reason="Insufficient volume")
    if spread > QUICK_MAX_SPREAD:
        return QuickSignal(action=Action.WAIT, reason="Wide spread - high transaction cost")
    if not 0.05 < midpoint <= 0.95:
        return QuickSignal(action=Action.WAIT, reason="Extreme probability - limited upside")
    ctx = market.context
    if isinstance(ctx, SportsContext) and ctx.external_odds is not None:
        gap = ctx.external_odds.implied - midpoint
        if abs(gap) > QUICK_MIN_EDGE:
            return QuickSignal(
                action=Action.BUY,
                side=Side.YES if gap > 0 else Side.NO,
                reason=f"{abs(gap) * 100:.1f}% edge vs external odds",
            )
    return QuickSignal(action=Action.WAIT, reason="No clear edge detected")


class RecommendationEngine:
    """Per-market pipeline: models -> ensemble -> risk -> decision -> recommendation.

    Collaborators (domain providers, odds providers, reasoning text) are
    optional; their failures degrade the result but never raise.
    """

    def __init__(
        self,
        ensemble: ProbabilityEnsemble | None = None,
        assessor: RiskAssessor | None = None,
        estimators: ContextEstimators | None = None,
        domain_providers: Sequence[DomainContextProvider] = (),
        odds_providers: Sequence[ExternalOddsProvider] = (),
        reasoner: ReasoningTextGenerator | None = None,
        default_bankroll: float = DEFAULT_BANKROLL,
    ):
        self.ensemble = ensemble or ProbabilityEnsemble()
        self.assessor = assessor or RiskAssessor()
        self.estimators = estimators or ContextEstimators()
        self.domain_providers = list(domain_providers)
        self.odds_providers = list(odds_providers)
        self.reasoner = reasoner
        self.default_bankroll = default_bankroll

    @staticmethod
    async def _guarded(call: Awaitable[Any]) -> ProbabilityModel | None:
        try:
            return await call
        except Exception as e:
            raise EnrichmentUnavailable(f"{type(e).__name__}: {e}") from e

    async def _enrich(self, market: UnifiedMarket) -> list[ProbabilityModel]:
        calls: list[Awaitable[Any]] = [p.estimate(market) for p in self.domain_providers]
        calls += [p.odds(market) for p in self.odds_providers]
        if not calls:
            return []
        results = await asyncio.gather(*(self._guarded(c) for c in calls), return_exceptions=True)
        models = []
        for result in results:
            if isinstance(result, EnrichmentUnavailable):
                log.warning("enrichment_unavailable", market_id=market.id, error=str(result))
            elif isinstance(result, ProbabilityModel):
                models.append(result)
        return models

    async def gather_models(
        self, market: UnifiedMarket, models: Sequence[ProbabilityModel] = ()
    ) -> list[ProbabilityModel]:
        return [*models, *self.estimators.models(market), *(await self._enrich(market))]

    async def _reasoning(
        self, market: UnifiedMarket, analysis: ProbabilityAnalysis, risk: RiskAssessment, decision: Decision
    ) -> str:
        fallback = template_reasoning(market, analysis, decision)
        if self.reasoner is None:
            return fallback
        try:
            text = (await self.reasoner.generate(reasoning_prompt(market, analysis, risk, decision))).strip()
            if not text:
                raise ReasoningUnavailable("empty reasoning text")
            return text
        except Exception as e:
            log.warning("reasoning_unavailable", market_id=market.id, error=str(e))
            return fallback

    def size(
        self, market: UnifiedMarket, analysis: ProbabilityAnalysis, risk: RiskAssessment, decision: Decision, bankroll: float
    ) -> PositionSizing:
        if decision.action == Action.WAIT or decision.side is None:
            return PositionSizing()
        fair = analysis.fair_value if decision.side == Side.YES else 1 - analysis.fair_value
        return self.assessor.size_position(
            risk, abs(analysis.edge), analysis.confidence, bankroll, side_price(market, decision.side), fair
        )

    async def recommend(
        self,
        market: UnifiedMarket,
        bankroll: float | None = None,
        models: Sequence[ProbabilityModel] = (),
        now: datetime | None = None,
    ) -> TradeRecommendation:
        bankroll = resolve_bankroll(bankroll, self.default_bankroll)
        gathered = await self.gather_models(market, models)
        analysis = self.ensemble.evaluate(market, gathered)
        risk = self.assessor.assess(market, now)
        decision = decide(analysis, risk, market)
        reasoning = await self._reasoning(market, analysis, risk, decision)
        log.debug(
            "recommendation",
            market_id=market.id,
            action=decision.action.value,
            edge=round(analysis.edge, 4),
            confidence=round(analysis.confidence, 3),
        )
        return TradeRecommendation(
            action=decision.action,
            side=decision.side,
            confidence=decision.confidence,
            edge=analysis.edge,
            analysis=analysis,
            risk=risk,
            sizing=self.size(market, analysis, risk, decision, bankroll),
            pricing=pricing_targets(market, decision, risk),
            timing=timing(analysis, risk, decision),
            reasoning=reasoning,
            key_factors=key_factors(market, analysis),
            risks=list(risk.risk_factors),
        )

    def quick(self, market: UnifiedMarket) -> QuickSignal:
        return quick_signal(market)

    def conservative_wait(self, market: UnifiedMarket, reason: str, now: datetime | None = None) -> TradeRecommendation:
        """WAIT built from pure scorers only, used when deeper analysis failed."""
        analysis = self.ensemble.evaluate(market)
        risk = self.assessor.assess(market, now)
        decision = Decision(action=Action.WAIT)
        return TradeRecommendation(
            action=Action.WAIT,
            confidence=0.0,
            edge=analysis.edge,
            analysis=analysis,
            risk=risk,
            sizing=PositionSizing(),
            pricing=PricingTargets(),
            timing=timing(analysis, risk, decision),
            reasoning=f"{template_reasoning(market, analysis, decision)} {reason}".strip(),
            key_factors=key_factors(market, analysis),
            risks=list(risk.risk_factors),
        )
