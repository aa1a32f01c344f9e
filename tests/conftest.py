"""Shared fixtures: a fixed clock and a UnifiedMarket factory."""

from datetime import datetime, timedelta, timezone

import pytest

from predictmax.ingestion.normalize import liquidity_score
from predictmax.models import (
    EventRef,
    Liquidity,
    MarketCategory,
    MarketContract,
    MarketStatus,
    Platform,
    Pricing,
    UnifiedMarket,
)

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def build_market(
    id="M1",
    platform=Platform.KALSHI,
    question="Will CPI exceed 3% in March?",
    category=MarketCategory.ECONOMICS,
    yes_bid=0.49,
    yes_ask=0.51,
    volume_24h=60000.0,
    total_volume=2_000_000.0,
    open_interest=150000.0,
    days=14,
    status=MarketStatus.OPEN,
    context=None,
    description=None,
    now=NOW,
):
    spread = round(yes_ask - yes_bid, 6)
    midpoint = round((yes_bid + yes_ask) / 2, 6)
    expiration = now + timedelta(days=days)
    return UnifiedMarket(
        id=id,
        platform=platform,
        question=question,
        description=description,
        category=category,
        event=EventRef(ticker=f"EV-{id}", title=question),
        market=MarketContract(ticker=id, status=status, close_time=expiration, expiration_time=expiration),
        pricing=Pricing(
            yes_bid=yes_bid,
            yes_ask=yes_ask,
            no_bid=round(1 - yes_ask, 6),
            no_ask=round(1 - yes_bid, 6),
            last_price=midpoint,
            spread=spread,
            midpoint=midpoint,
        ),
        liquidity=Liquidity(
            volume_24h=volume_24h,
            total_volume=total_volume,
            open_interest=open_interest,
            notional_value=total_volume * midpoint,
            liquidity_score=liquidity_score(volume_24h, open_interest, spread),
        ),
        context=context,
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_market():
    return build_market
