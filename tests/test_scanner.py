"""Two-stage opportunity scan."""

import asyncio

from predictmax.intelligence.recommendation import RecommendationEngine
from predictmax.intelligence.scanner import OpportunityScanner
from predictmax.models import Action, ProbabilityModel, QuickSignal, Side
from predictmax.models.probability import POLITICS_STATISTICAL


class PassAll:
    def quick(self, market):
        return QuickSignal(action=Action.BUY, side=Side.YES, reason="test")


class ModelsByMarket:
    """Deep scorer that feeds a fixed extra model per market into the real engine."""

    def __init__(self, probabilities, fail=()):
        self.engine = RecommendationEngine()
        self.probabilities = probabilities
        self.fail = set(fail)
        self.calls = []

    async def recommend(self, market, bankroll=None, *, now=None):
        self.calls.append(market.id)
        if market.id in self.fail:
            raise RuntimeError("analysis crashed")
        model = ProbabilityModel(
            name=POLITICS_STATISTICAL, probability=self.probabilities[market.id], weight=0.4, confidence=0.8
        )
        return await self.engine.recommend(market, bankroll, models=[model], now=now)

    def conservative_wait(self, market, reason, now=None):
        return self.engine.conservative_wait(market, reason, now)


def test_empty_input_returns_none():
    assert asyncio.run(OpportunityScanner().find_best([])) is None


def test_nothing_passes_quick_screen(make_market, now):
    markets = [
        make_market(id="thin", volume_24h=50),
        make_market(id="busy", volume_24h=90000),
        make_market(id="mid", volume_24h=5000),
    ]
    result = asyncio.run(OpportunityScanner().find_best(markets, now=now))
    assert result is not None
    assert result.best_market.id == "busy"
    assert result.alternatives == []


def test_best_by_expected_value(make_market, now):
    markets = [
        make_market(id="a", yes_bid=0.39, yes_ask=0.41, volume_24h=20000),
        make_market(id="b", yes_bid=0.39, yes_ask=0.41, volume_24h=30000),
        make_market(id="c", yes_bid=0.39, yes_ask=0.41, volume_24h=40000),
    ]
    deep = ModelsByMarket({"a": 0.6, "b": 0.5, "c": 0.4})
    result = asyncio.run(OpportunityScanner(deep, PassAll()).find_best(markets, now=now))
    assert result.best_market.id == "a"
    assert result.recommendation.action == Action.BUY
    # c has no edge, so only b remains as an actionable alternative
    assert [alt.market.id for alt in result.alternatives] == ["b"]


def test_no_actionable_ranks_by_edge(make_market, now):
    markets = [
        make_market(id="flat", yes_bid=0.39, yes_ask=0.41),
        make_market(id="tilted", yes_bid=0.39, yes_ask=0.41),
    ]
    # tiny extra signals: both WAIT, tilted has the larger edge
    deep = ModelsByMarket({"flat": 0.4, "tilted": 0.43})
    result = asyncio.run(OpportunityScanner(deep, PassAll()).find_best(markets, now=now))
    assert result.recommendation.action == Action.WAIT
    assert result.best_market.id == "tilted"
    assert [alt.market.id for alt in result.alternatives] == ["flat"]


def test_failed_market_is_dropped(make_market, now):
    markets = [make_market(id="a", yes_bid=0.39, yes_ask=0.41), make_market(id="b", yes_bid=0.39, yes_ask=0.41)]
    deep = ModelsByMarket({"a": 0.6, "b": 0.55}, fail={"a"})
    result = asyncio.run(OpportunityScanner(deep, PassAll()).find_best(markets, now=now))
    assert result.best_market.id == "b"
    assert result.alternatives == []


def test_all_deep_failures_give_conservative_wait(make_market, now):
    markets = [make_market(id="a", volume_24h=1000), make_market(id="b", volume_24h=8000)]
    deep = ModelsByMarket({"a": 0.6, "b": 0.6}, fail={"a", "b"})
    result = asyncio.run(OpportunityScanner(deep, PassAll()).find_best(markets, now=now))
    assert result.best_market.id == "b"
    assert result.recommendation.action == Action.WAIT
    assert result.recommendation.side is None
    assert "Deep analysis was unavailable." in result.recommendation.reasoning


def test_screen_keeps_top_k_by_volume(make_market):
    markets = [make_market(id=str(v), volume_24h=v) for v in (100, 500, 300, 900, 700)]
    scanner = OpportunityScanner(ModelsByMarket({}), PassAll(), top_k=3)
    assert [m.id for m in scanner.screen(markets)] == ["900", "700", "500"]


def test_only_survivors_get_deep_analysis(make_market, now):
    markets = [make_market(id=str(i), volume_24h=1000 * (i + 1), yes_bid=0.39, yes_ask=0.41) for i in range(6)]
    deep = ModelsByMarket({str(i): 0.6 for i in range(6)})
    asyncio.run(OpportunityScanner(deep, PassAll(), top_k=2).find_best(markets, now=now))
    assert sorted(deep.calls) == ["4", "5"]
