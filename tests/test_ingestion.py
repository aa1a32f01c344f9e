"""Source clients (mocked HTTP) and the parallel ingestion manager."""

import asyncio

import httpx
import pytest

from predictmax.ingestion.kalshi.client import KalshiClient
from predictmax.ingestion.manager import IngestionManager
from predictmax.ingestion.polymarket.gamma import GammaClient
from predictmax.models import Platform

KALSHI_MARKET = {
    "ticker": "KXBTC-26JAN-100K",
    "title": "Will Bitcoin close above $100k on Jan 31?",
    "yes_bid": 40,
    "yes_ask": 42,
    "volume_24h": 60000,
    "open_interest": 150000,
    "status": "active",
    "expiration_time": "2026-01-31T00:00:00Z",
}

GAMMA_MARKET = {
    "conditionId": "0xabc",
    "question": "Will Bitcoin close above $100k on Jan 31?",
    "outcomePrices": '["0.5", "0.48"]',
    "volume24hr": 8000,
    "active": True,
    "closed": False,
}


class FakeClient:
    def __init__(self, platform, records=(), fail=False, market=None):
        self.platform = platform
        self.records = list(records)
        self.fail = fail
        self.market = market
        self.calls = []

    def fetch_markets(self, limit=100, **filters):
        self.calls.append((limit, filters))
        if self.fail:
            raise httpx.ConnectError("source down")
        return self.records

    def fetch_market(self, market_id):
        if self.fail:
            raise httpx.ReadTimeout("slow")
        return self.market


def test_kalshi_client_params_and_parsing():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"markets": [KALSHI_MARKET, "junk"], "cursor": ""})

    client = KalshiClient("https://kalshi.test/trade-api/v2", transport=httpx.MockTransport(handler))
    markets = client.fetch_markets(limit=5, sport="tennis", min_close_ts=10)
    assert markets == [KALSHI_MARKET]
    assert seen["path"] == "/trade-api/v2/markets"
    assert seen["params"] == {"limit": "5", "status": "open", "series_ticker": "TENNIS", "min_close_ts": "10"}


def test_kalshi_fetch_market_not_found():
    client = KalshiClient("https://kalshi.test", transport=httpx.MockTransport(lambda r: httpx.Response(404)))
    assert client.fetch_market("NOPE") is None


def test_gamma_client_drops_closed_rows():
    closed = dict(GAMMA_MARKET, conditionId="0xdead", closed=True)

    def handler(request):
        assert request.url.params["order"] == "volume24hr"
        return httpx.Response(200, json=[GAMMA_MARKET, closed])

    client = GammaClient("https://gamma.test", transport=httpx.MockTransport(handler))
    assert client.fetch_markets(limit=10) == [GAMMA_MARKET]


def test_manager_merges_sources(now):
    kalshi = FakeClient(Platform.KALSHI, [KALSHI_MARKET])
    poly = FakeClient(Platform.POLYMARKET, [GAMMA_MARKET])
    markets = asyncio.run(IngestionManager([kalshi, poly]).fetch_markets(limit=50, now=now, sport="tennis"))
    assert {m.platform for m in markets} == {Platform.KALSHI, Platform.POLYMARKET}
    assert kalshi.calls == [(50, {"sport": "tennis"})]


def test_manager_tolerates_failing_source(now):
    kalshi = FakeClient(Platform.KALSHI, fail=True)
    poly = FakeClient(Platform.POLYMARKET, [GAMMA_MARKET])
    markets = asyncio.run(IngestionManager([kalshi, poly]).fetch_markets(now=now))
    assert [m.id for m in markets] == ["0xabc"]


def test_manager_platform_filter(now):
    kalshi = FakeClient(Platform.KALSHI, [KALSHI_MARKET])
    poly = FakeClient(Platform.POLYMARKET, [GAMMA_MARKET])
    markets = asyncio.run(IngestionManager([kalshi, poly]).fetch_markets(platform=Platform.KALSHI, now=now))
    assert [m.id for m in markets] == ["KXBTC-26JAN-100K"]
    assert poly.calls == []


def test_manager_fetch_single_market(now):
    manager = IngestionManager(
        [
            FakeClient(Platform.KALSHI, market=KALSHI_MARKET),
            FakeClient(Platform.POLYMARKET, fail=True),
        ]
    )
    market = asyncio.run(manager.fetch_market(Platform.KALSHI, "KXBTC-26JAN-100K", now))
    assert market.pricing.midpoint == pytest.approx(0.41)
    assert asyncio.run(manager.fetch_market(Platform.POLYMARKET, "0xabc", now)) is None
    assert asyncio.run(IngestionManager([]).fetch_market(Platform.KALSHI, "X", now)) is None
    assert asyncio.run(IngestionManager([FakeClient(Platform.KALSHI)]).fetch_market(Platform.KALSHI, "X")) is None
