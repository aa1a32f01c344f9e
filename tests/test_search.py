"""SearchRanker: relevance filter, scoring, result filters, arbitrage pairing."""

from datetime import timedelta

import pytest

from predictmax.models import MarketCategory, MarketStatus, ParsedQuery, Platform, SearchFilters
from predictmax.search.ranker import SearchRanker, similarity


@pytest.fixture
def ranker():
    return SearchRanker()


def test_head_to_head_requires_every_player(ranker, make_market):
    both = make_market(id="A", question="Will Jannik Sinner beat Carlos Alcaraz in the final?")
    one = make_market(id="B", question="Will Sinner win Wimbledon?")
    other = make_market(id="C", question="Will Alcaraz win the US Open?")
    query = ParsedQuery(players=["Jannik Sinner", "Carlos Alcaraz"])
    assert [m.id for m in ranker.filter([both, one, other], query)] == ["A"]


def test_single_player_matches_on_name_part(ranker, make_market):
    m = make_market(question="Will Sinner win Wimbledon?")
    assert ranker.filter([m], ParsedQuery(players=["Jannik Sinner"])) == [m]


def test_short_name_parts_match_whole_words_only(ranker, make_market, now):
    li_na = make_market(id="A", question="Will Li Na beat Serena Williams?")
    unrelated = make_market(id="B", question="Will Serena Williams win the final?")
    query = ParsedQuery(players=["Li Na", "Serena Williams"])
    assert [m.id for m in ranker.filter([li_na, unrelated], query)] == ["A"]
    # "li" inside "will" and "na" inside "final" earn nothing
    assert ranker.score(unrelated, ParsedQuery(players=["Li Na"]), now) == ranker.score(unrelated, ParsedQuery(), now)


def test_team_aliases(ranker, make_market):
    lal = make_market(id="A", question="Will LAL cover the spread tonight?")
    celtics = make_market(id="B", question="Will the Celtics win tonight?")
    assert [m.id for m in ranker.filter([lal, celtics], ParsedQuery(teams=["Lakers"]))] == ["A"]

    warriors = make_market(id="C", question="Warriors vs Kings: who wins?")
    assert ranker.filter([warriors], ParsedQuery(teams=["Golden State"])) == [warriors]


def test_asset_alias(ranker, make_market):
    m = make_market(question="Will BTC hit 150k in 2026?")
    assert ranker.filter([m], ParsedQuery(asset="bitcoin")) == [m]


def test_terms_need_half_to_match(ranker, make_market):
    fed = make_market(id="A", question="Will the Fed cut rates in March?")
    rain = make_market(id="B", question="Will it rain in March?")
    query = ParsedQuery(search_terms=["fed", "rate", "cut", "march"])
    assert [m.id for m in ranker.filter([fed, rain], query)] == ["A"]


def test_empty_query_keeps_everything(ranker, make_market):
    markets = [make_market(id="A"), make_market(id="B")]
    assert ranker.filter(markets, ParsedQuery()) == markets


def test_score_components(ranker, make_market, now):
    m = make_market(
        question="Will Jannik Sinner beat Carlos Alcaraz in the final?",
        category=MarketCategory.SPORTS,
        volume_24h=60000,
        days=14,
    )
    query = ParsedQuery(players=["Jannik Sinner", "Carlos Alcaraz"], domain=MarketCategory.SPORTS)
    # base 10 + 4 name parts * 20 + all-entities 50 + domain 30 + HIGH 15 + volume 15 + horizon 5
    assert ranker.score(m, query, now) == 205


def test_rank_ties_break_on_volume_then_input_order(ranker, make_market, now):
    low = make_market(id="low", volume_24h=15000)
    high = make_market(id="high", volume_24h=20000)
    twin = make_market(id="twin", volume_24h=15000)
    ranked = ranker.rank([low, high, twin], ParsedQuery(), now)
    assert [m.id for m in ranked] == ["high", "low", "twin"]


def test_rank_prefers_relevance_over_volume(ranker, make_market, now):
    relevant = make_market(id="rel", question="Lakers vs Celtics", volume_24h=2000)
    popular = make_market(id="pop", question="Lakers season wins", volume_24h=90000)
    query = ParsedQuery(teams=["Lakers", "Celtics"])
    assert [m.id for m in ranker.search([popular, relevant], query, now)] == ["rel", "pop"]


def test_apply_filters(ranker, make_market, now):
    k = make_market(id="k", total_volume=5000)
    p = make_market(id="p", platform=Platform.POLYMARKET, total_volume=50000)
    closed = make_market(id="c", status=MarketStatus.CLOSED)
    far = make_market(id="far", days=200)
    markets = [k, p, closed, far]

    assert [m.id for m in ranker.apply_filters(markets, SearchFilters(platform=Platform.POLYMARKET))] == ["p"]
    assert "k" not in [m.id for m in ranker.apply_filters(markets, SearchFilters(min_volume=10000))]
    assert "c" not in [m.id for m in ranker.apply_filters(markets, SearchFilters())]
    assert "c" in [m.id for m in ranker.apply_filters(markets, SearchFilters(active=False))]
    window = SearchFilters(max_end_date=now + timedelta(days=30))
    assert "far" not in [m.id for m in ranker.apply_filters(markets, window)]
    assert [m.id for m in ranker.apply_filters(markets, SearchFilters(min_liquidity=1e9))] == []


def test_similarity():
    assert similarity("a b c", "a b d") == pytest.approx(0.5)
    assert similarity("", "") == 0.0
    assert similarity("Same Words", "same words") == 1.0


def test_find_arbitrage(ranker, make_market):
    question = "Will Bitcoin reach 100k by December?"
    k = make_market(id="k1", question=question, yes_bid=0.39, yes_ask=0.41)
    k_close = make_market(id="k2", question="Will Ethereum reach 5k by December?", yes_bid=0.39, yes_ask=0.41)
    p = make_market(id="p1", platform=Platform.POLYMARKET, question=question, yes_bid=0.49, yes_ask=0.51)
    p_close = make_market(
        id="p2", platform=Platform.POLYMARKET, question="Will Ethereum reach 5k by December?", yes_bid=0.41, yes_ask=0.43
    )
    found = ranker.find_arbitrage([k, k_close], [p, p_close])
    assert len(found) == 1
    opp = found[0]
    assert opp.first.id == "k1" and opp.second.id == "p1"
    assert opp.spread_percent == pytest.approx(10.0)
    assert opp.opportunity == "Buy YES on Kalshi (40.0%), Sell YES on Polymarket (50.0%)"


def test_find_arbitrage_skips_same_platform(ranker, make_market):
    a = make_market(id="a", yes_bid=0.19, yes_ask=0.21)
    b = make_market(id="b", yes_bid=0.69, yes_ask=0.71)
    assert ranker.find_arbitrage([a], [b]) == []
