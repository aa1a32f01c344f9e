"""Ensemble fair value, confidence and edge classification."""

import pytest

from predictmax.intelligence.ensemble import (
    ProbabilityEnsemble,
    agreement_factor,
    combine,
    edge_quality,
    ensemble_confidence,
    fair_value,
    market_consensus_model,
)
from predictmax.models import ProbabilityAnalysis, ProbabilityModel
from predictmax.models.probability import MARKET_CONSENSUS, POLITICS_STATISTICAL


def model(p, w, c, name="m"):
    return ProbabilityModel(name=name, probability=p, weight=w, confidence=c)


def test_weighted_fair_value():
    analysis = combine([model(0.6, 0.3, 0.8), model(0.4, 0.4, 0.5)], midpoint=0.45)
    # (0.6*0.24 + 0.4*0.20) / 0.44
    assert analysis.fair_value == pytest.approx(0.50909, abs=1e-5)
    assert analysis.edge == pytest.approx(0.50909 - 0.45, abs=1e-5)
    # weighted confidence 0.62857 times agreement 0.9
    assert analysis.confidence == pytest.approx(0.565714, abs=1e-5)


def test_zero_confidence_uses_unweighted_mean():
    models = [model(0.6, 0.3, 0.0), model(0.4, 0.4, 0.0)]
    assert fair_value(models) == pytest.approx(0.5)
    assert ensemble_confidence(models) == 0.0


def test_empty_models():
    assert fair_value([]) == 0.5
    assert ensemble_confidence([]) == 0.0


def test_fair_value_clamped():
    assert fair_value([model(1.0, 0.5, 0.9)]) == 0.99
    assert fair_value([model(0.0, 0.5, 0.9)]) == 0.01


def test_agreement_factor_floors_at_half():
    assert agreement_factor([model(0.5, 1, 1), model(0.5, 1, 1)]) == 1.0
    assert agreement_factor([model(0.0, 1, 1), model(1.0, 1, 1)]) == 0.5


def test_confidence_capped():
    assert ensemble_confidence([model(0.5, 0.5, 1.0)]) == 0.95


def test_market_consensus_model(make_market):
    tight = market_consensus_model(make_market())
    assert tight.name == MARKET_CONSENSUS
    assert tight.probability == pytest.approx(0.5)
    assert tight.weight == 0.3
    assert tight.confidence == 0.95
    assert tight.breakdown.spread_percent == "2.00%"

    thin = market_consensus_model(make_market(volume_24h=50, yes_bid=0.30, yes_ask=0.50))
    assert thin.confidence == pytest.approx(0.5)


def test_evaluate_prepends_consensus_once(make_market):
    market = make_market(yes_bid=0.39, yes_ask=0.41)
    extra = [
        model(0.9, 0.3, 0.9, name=MARKET_CONSENSUS),
        model(0.6, 0.4, 0.8, name=POLITICS_STATISTICAL),
    ]
    analysis = ProbabilityEnsemble().evaluate(market, extra)
    assert [m.name for m in analysis.models] == [MARKET_CONSENSUS, POLITICS_STATISTICAL]
    assert analysis.models[0].probability == pytest.approx(0.4)
    assert analysis.breakdown.market_consensus == pytest.approx(0.4)
    assert analysis.breakdown.statistical_model == pytest.approx(0.6)
    assert analysis.edge == pytest.approx(analysis.fair_value - 0.4)


def test_summary_statistical_falls_back_to_consensus(make_market):
    analysis = ProbabilityEnsemble().evaluate(make_market())
    assert analysis.breakdown.statistical_model == analysis.breakdown.market_consensus
    assert analysis.breakdown.external_odds is None
    assert analysis.edge == pytest.approx(0.0)


@pytest.mark.parametrize(
    "edge,confidence,quality,significant",
    [
        (0.01, 0.9, "LOW", False),
        (0.04, 0.8, "MEDIUM", True),
        (0.04, 0.5, "LOW", False),
        (0.06, 0.8, "HIGH", True),
        (0.06, 0.6, "MEDIUM", False),
        (0.15, 0.7, "HIGH", True),
        (-0.15, 0.5, "MEDIUM", False),
    ],
)
def test_edge_quality(make_market, edge, confidence, quality, significant):
    market = make_market()
    analysis = ProbabilityAnalysis(fair_value=0.5 + edge, edge=edge, confidence=confidence)
    result = edge_quality(analysis, market)
    assert result.quality == quality
    assert result.is_significant is significant
    assert result.edge_percent == pytest.approx(edge / 0.5 * 100)
