"""Decision policy and the per-market recommendation pipeline."""

import asyncio

import pytest
from pydantic import ValidationError

from predictmax.intelligence.recommendation import (
    RecommendationEngine,
    decide,
    pricing_targets,
    quick_signal,
    template_reasoning,
    time_horizon,
    timing,
)
from predictmax.models import (
    Action,
    Decision,
    ExternalOdds,
    ProbabilityAnalysis,
    ProbabilityModel,
    RiskAssessment,
    RiskMetric,
    Side,
    SportsContext,
    Urgency,
)
from predictmax.models.probability import EXTERNAL_ODDS, POLITICS_STATISTICAL


def risk_with(overall=0.3, liquidity_score=3, days=14, slippage=0.01):
    metric = RiskMetric(score=3)
    return RiskAssessment(
        liquidity=RiskMetric(score=liquidity_score, details={"expected_slippage": slippage}),
        settlement=metric,
        volatility=metric,
        concentration=metric,
        time=RiskMetric(score=3, details={"days_to_expiry": days}),
        overall_risk=overall,
    )


def analysis_with(edge, confidence, fair_value=0.5):
    return ProbabilityAnalysis(fair_value=fair_value, edge=edge, confidence=confidence)


def strong_model(p=0.6):
    return ProbabilityModel(name=POLITICS_STATISTICAL, probability=p, weight=0.4, confidence=0.8)


def test_clear_edge_buys_yes(make_market):
    decision = decide(analysis_with(0.08, 0.8), risk_with(overall=0.3), make_market())
    assert decision.action == Action.BUY
    assert decision.side == Side.YES
    assert decision.confidence == pytest.approx(0.8 * 0.7)


def test_negative_edge_buys_no(make_market):
    decision = decide(analysis_with(-0.08, 0.8), risk_with(), make_market())
    assert decision.side == Side.NO


@pytest.mark.parametrize(
    "edge,confidence,overall,liquidity",
    [
        (0.08, 0.8, 0.75, 3),  # too risky overall
        (0.02, 0.8, 0.3, 3),  # edge under 3%
        (0.08, 0.5, 0.3, 3),  # not confident enough
        (0.05, 0.8, 0.3, 8),  # illiquid needs 8%
    ],
)
def test_wait_conditions(make_market, edge, confidence, overall, liquidity):
    decision = decide(analysis_with(edge, confidence), risk_with(overall, liquidity), make_market())
    assert decision.action == Action.WAIT
    assert decision.side is None


def test_illiquid_market_with_large_edge(make_market):
    decision = decide(analysis_with(0.09, 0.8), risk_with(liquidity_score=8), make_market())
    assert decision.action == Action.BUY


def test_side_must_match_action():
    with pytest.raises(ValidationError):
        Decision(action=Action.BUY)
    with pytest.raises(ValidationError):
        Decision(action=Action.WAIT, side=Side.YES)


def test_pricing_targets(make_market):
    market = make_market(yes_bid=0.40, yes_ask=0.42)
    yes = pricing_targets(market, Decision(action=Action.BUY, side=Side.YES), risk_with())
    assert yes.target_entry == pytest.approx(0.40)
    assert yes.limit_price == pytest.approx(0.43)
    assert yes.stop_loss == pytest.approx(0.25)
    assert yes.take_profit == pytest.approx(0.60)

    no = pricing_targets(market, Decision(action=Action.BUY, side=Side.NO), risk_with())
    assert no.target_entry == pytest.approx(0.58)
    assert no.limit_price == pytest.approx(0.61)

    wait = pricing_targets(market, Decision(action=Action.WAIT), risk_with())
    assert wait.target_entry == 0.0 and wait.stop_loss is None


def test_limit_price_capped(make_market):
    market = make_market(yes_bid=0.97, yes_ask=0.995)
    targets = pricing_targets(market, Decision(action=Action.BUY, side=Side.YES), risk_with(slippage=0.05))
    assert targets.limit_price == 1.0
    assert targets.take_profit == 0.99


@pytest.mark.parametrize(
    "days,expected",
    [(-2, "Intraday"), (0, "Intraday"), (3, "3 days"), (14, "2 weeks"), (60, "2 months")],
)
def test_time_horizon(days, expected):
    assert time_horizon(days) == expected


def test_timing_urgency():
    buy = Decision(action=Action.BUY, side=Side.YES)
    assert timing(analysis_with(0.12, 0.8), risk_with(days=3), buy).urgency == Urgency.HIGH
    assert timing(analysis_with(0.06, 0.8), risk_with(days=60), buy).urgency == Urgency.MEDIUM
    assert timing(analysis_with(0.04, 0.8), risk_with(days=60), buy).urgency == Urgency.LOW
    wait = timing(analysis_with(0.0, 0.8), risk_with(days=60), Decision(action=Action.WAIT))
    assert wait.exit_strategy == "No position to manage"


class FixedReasoner:
    def __init__(self, text):
        self.text = text
        self.prompts = []

    async def generate(self, prompt):
        self.prompts.append(prompt)
        return self.text


class BrokenReasoner:
    async def generate(self, prompt):
        raise RuntimeError("upstream 529")


class BrokenProvider:
    async def estimate(self, market):
        raise TimeoutError("stats feed down")


class OddsProvider:
    async def odds(self, market):
        return ProbabilityModel(name=EXTERNAL_ODDS, probability=0.55, weight=0.25, confidence=0.7)


def test_recommend_buy_end_to_end(make_market, now):
    market = make_market(yes_bid=0.39, yes_ask=0.41)
    rec = asyncio.run(RecommendationEngine().recommend(market, 10000, models=[strong_model()], now=now))
    assert rec.action == Action.BUY
    assert rec.side == Side.YES
    assert rec.edge > 0.03
    assert rec.analysis.models[0].name == "market_consensus"
    assert 0 < rec.sizing.recommended <= rec.sizing.maximum
    assert rec.pricing.target_entry == pytest.approx(0.39)
    assert rec.reasoning.startswith("BUY YES")
    assert rec.timing.time_horizon == "2 weeks"
    assert "Liquidity: HIGH" in rec.key_factors


@pytest.mark.parametrize(
    "bid, ask, model_p, side",
    [
        (0.79, 0.81, 0.99, Side.YES),
        (0.19, 0.21, 0.01, Side.NO),
    ],
)
def test_buy_on_favourite_gets_a_stake(make_market, now, bid, ask, model_p, side):
    market = make_market(yes_bid=bid, yes_ask=ask)
    rec = asyncio.run(RecommendationEngine().recommend(market, 10000, models=[strong_model(model_p)], now=now))
    assert rec.action == Action.BUY
    assert rec.side == side
    fair = rec.analysis.fair_value if side == Side.YES else 1 - rec.analysis.fair_value
    price = market.pricing.yes_ask if side == Side.YES else market.pricing.no_ask
    assert price < fair
    assert rec.sizing.kelly_fraction > 0
    assert 0 < rec.sizing.recommended <= rec.sizing.maximum


def test_recommend_wait_has_no_side_or_size(make_market, now):
    rec = asyncio.run(RecommendationEngine().recommend(make_market(), now=now))
    assert rec.action == Action.WAIT
    assert rec.side is None
    assert rec.sizing.recommended == 0
    assert rec.pricing.stop_loss is None
    assert rec.reasoning.startswith("Current market conditions")


def test_reasoner_text_used(make_market, now):
    reasoner = FixedReasoner("  Fair value sits well above the market.  ")
    engine = RecommendationEngine(reasoner=reasoner)
    rec = asyncio.run(engine.recommend(make_market(), now=now))
    assert rec.reasoning == "Fair value sits well above the market."
    assert "MARKET: Will CPI exceed 3% in March?" in reasoner.prompts[0]


@pytest.mark.parametrize("reasoner", [BrokenReasoner(), FixedReasoner("   ")])
def test_reasoning_falls_back_to_template(make_market, now, reasoner):
    market = make_market(yes_bid=0.39, yes_ask=0.41)
    engine = RecommendationEngine(reasoner=reasoner)
    rec = asyncio.run(engine.recommend(market, models=[strong_model()], now=now))
    decision = Decision(action=rec.action, side=rec.side, confidence=rec.confidence)
    assert rec.reasoning == template_reasoning(market, rec.analysis, decision)


def test_enrichment_failure_is_skipped(make_market, now):
    engine = RecommendationEngine(domain_providers=[BrokenProvider()], odds_providers=[OddsProvider()])
    rec = asyncio.run(engine.recommend(make_market(), now=now))
    names = [m.name for m in rec.analysis.models]
    assert names == ["market_consensus", EXTERNAL_ODDS]


def test_invalid_bankroll_uses_engine_default(make_market, now):
    engine = RecommendationEngine(default_bankroll=5000)
    market = make_market(yes_bid=0.39, yes_ask=0.41)
    bad = asyncio.run(engine.recommend(market, -50, models=[strong_model()], now=now))
    default = asyncio.run(engine.recommend(market, None, models=[strong_model()], now=now))
    explicit = asyncio.run(engine.recommend(market, 5000, models=[strong_model()], now=now))
    assert bad.sizing == default.sizing == explicit.sizing


def test_conservative_wait(make_market, now):
    rec = RecommendationEngine().conservative_wait(make_market(), "Deep analysis was unavailable.", now)
    assert rec.action == Action.WAIT
    assert rec.side is None
    assert rec.reasoning.endswith("Deep analysis was unavailable.")


def test_quick_signal(make_market):
    assert quick_signal(make_market(volume_24h=50)).reason == "Insufficient volume"
    assert quick_signal(make_market(yes_bid=0.3, yes_ask=0.5)).action == Action.WAIT
    assert quick_signal(make_market(yes_bid=0.96, yes_ask=0.98)).action == Action.WAIT
    assert quick_signal(make_market()).reason == "No clear edge detected"

    ctx = SportsContext(sport="tennis", external_odds=ExternalOdds(implied=0.6))
    signal = quick_signal(make_market(context=ctx))
    assert signal.action == Action.BUY
    assert signal.side == Side.YES

    below = SportsContext(sport="tennis", external_odds=ExternalOdds(implied=0.4))
    assert quick_signal(make_market(context=below)).side == Side.NO

    close = SportsContext(sport="tennis", external_odds=ExternalOdds(implied=0.52))
    assert quick_signal(make_market(context=close)).action == Action.WAIT
