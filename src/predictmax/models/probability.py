"""ProbabilityModel, typed per-model breakdowns, ProbabilityAnalysis."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from predictmax.models.market import LiquidityScore

MARKET_CONSENSUS = "market_consensus"
SPORTS_STATISTICAL = "sports_statistical"
CRYPTO_STATISTICAL = "crypto_statistical"
POLITICS_STATISTICAL = "politics_statistical"
POLITICS_BASELINE = "politics_baseline"
EXTERNAL_ODDS = "external_odds"
HISTORICAL_BASELINE = "historical_baseline"

STATISTICAL_MODELS = (SPORTS_STATISTICAL, CRYPTO_STATISTICAL, POLITICS_STATISTICAL)


class _Breakdown(BaseModel):
    model_config = ConfigDict(frozen=True)


class MarketConsensusBreakdown(_Breakdown):
    kind: Literal["market_consensus"] = MARKET_CONSENSUS
    yes_bid: float
    yes_ask: float
    midpoint: float
    spread: float
    liquidity_score: LiquidityScore

    @property
    def spread_percent(self) -> str:
        return f"{self.spread * 100:.2f}%"


class SportsBreakdown(_Breakdown):
    kind: Literal["sports_statistical"] = SPORTS_STATISTICAL
    sport: str
    player1_ranking: int | None = None
    player2_ranking: int | None = None
    head_to_head: str | None = None
    surface: str | None = None


class CryptoBreakdown(_Breakdown):
    kind: Literal["crypto_statistical"] = CRYPTO_STATISTICAL
    current_price: float
    threshold: float | None = None
    distance_percent: float | None = None
    volatility: float | None = None
    days_to_expiry: float | None = None
    z_score: float | None = None


class PoliticsBreakdown(_Breakdown):
    kind: Literal["politics_statistical", "politics_baseline"] = POLITICS_STATISTICAL
    poll_average: float | None = None
    poll_trend: str | None = None
    forecast_count: int = 0
    rationale: str = ""


class ExternalOddsBreakdown(_Breakdown):
    kind: Literal["external_odds"] = EXTERNAL_ODDS
    num_bookmakers: int = 0
    implied_probability: float
    bookmakers: list[str] = Field(default_factory=list)


class HistoricalBreakdown(_Breakdown):
    kind: Literal["historical_baseline"] = HISTORICAL_BASELINE
    rationale: str
    data_source: str = ""


ModelBreakdown = Annotated[
    Union[
        MarketConsensusBreakdown,
        SportsBreakdown,
        CryptoBreakdown,
        PoliticsBreakdown,
        ExternalOddsBreakdown,
        HistoricalBreakdown,
    ],
    Field(discriminator="kind"),
]


class ProbabilityModel(BaseModel):
    """One probability estimate of the YES outcome with prior weight and confidence."""

    model_config = ConfigDict(frozen=True)

    name: str
    probability: float = Field(..., ge=0, le=1)
    weight: float = Field(..., ge=0, le=1)
    confidence: float = Field(..., ge=0, le=1)
    breakdown: ModelBreakdown | None = None


class EnsembleSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    market_consensus: float | None = None
    statistical_model: float | None = None
    external_odds: float | None = None
    historical_pattern: float | None = None


class ProbabilityAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    fair_value: float = Field(..., ge=0, le=1)
    models: list[ProbabilityModel] = Field(default_factory=list)
    edge: float
    confidence: float = Field(..., ge=0, le=1)
    breakdown: EnsembleSummary = Field(default_factory=EnsembleSummary)


class EdgeQuality(BaseModel):
    model_config = ConfigDict(frozen=True)

    edge_percent: float
    is_significant: bool
    quality: Literal["LOW", "MEDIUM", "HIGH"]
    reasoning: str
