"""UnifiedMarket - canonical cross-source representation of a binary contract."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from predictmax.models.context import DomainContext


class Platform(str, Enum):
    KALSHI = "kalshi"
    POLYMARKET = "polymarket"


class MarketCategory(str, Enum):
    SPORTS = "sports"
    POLITICS = "politics"
    CRYPTO = "crypto"
    ECONOMICS = "economics"
    WEATHER = "weather"
    ENTERTAINMENT = "entertainment"
    SCIENCE = "science"
    FINANCE = "finance"
    OTHER = "other"


class MarketStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    SETTLED = "settled"
    INITIALIZED = "initialized"


class LiquidityScore(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class SeriesRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    ticker: str
    frequency: str = ""
    title: str = ""


class EventRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    ticker: str
    title: str = ""
    subtitle: str | None = None


class MarketContract(BaseModel):
    """Contract specifics: ticker, outcomes, lifecycle status and time boundaries."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    type: str = "binary"
    outcomes: list[str] = Field(default_factory=lambda: ["Yes", "No"])
    status: MarketStatus = MarketStatus.OPEN
    open_time: datetime | None = None
    close_time: datetime
    expiration_time: datetime


class Pricing(BaseModel):
    """All prices are probabilities in [0, 1]."""

    model_config = ConfigDict(frozen=True)

    yes_bid: float = Field(0.0, ge=0, le=1)
    yes_ask: float = Field(0.0, ge=0, le=1)
    no_bid: float = Field(0.0, ge=0, le=1)
    no_ask: float = Field(0.0, ge=0, le=1)
    last_price: float = Field(0.0, ge=0, le=1)
    spread: float = Field(0.0, ge=0)
    midpoint: float = Field(0.0, ge=0, le=1)


class Liquidity(BaseModel):
    model_config = ConfigDict(frozen=True)

    volume_24h: float = Field(0.0, ge=0)
    total_volume: float = Field(0.0, ge=0)
    open_interest: float = Field(0.0, ge=0)
    notional_value: float = Field(0.0, ge=0)
    liquidity_score: LiquidityScore = LiquidityScore.LOW


class UnifiedMarket(BaseModel):
    """Canonical market - platform-agnostic, immutable after construction."""

    model_config = ConfigDict(frozen=True)

    id: str
    platform: Platform
    question: str
    description: str | None = None
    category: MarketCategory = MarketCategory.OTHER
    tags: list[str] = Field(default_factory=list)
    series: SeriesRef | None = None
    event: EventRef
    market: MarketContract
    pricing: Pricing
    liquidity: Liquidity
    context: DomainContext | None = None
    platform_data: dict[str, Any] = Field(default_factory=dict)

    @property
    def text(self) -> str:
        """Lower-cased question + description used for matching."""
        return f"{self.question} {self.description or ''}".lower()

    def days_to_expiry(self, now: datetime | None = None) -> int:
        """Whole days until expiration, rounded up (negative once expired)."""
        now = now or datetime.now(timezone.utc)
        expiration = self.market.expiration_time
        if expiration.tzinfo is None:
            expiration = expiration.replace(tzinfo=timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        seconds = (expiration - now).total_seconds()
        return math.ceil(seconds / 86400)
