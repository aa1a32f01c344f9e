"""Decision, TradeRecommendation, ScanResult."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from predictmax.models.market import UnifiedMarket
from predictmax.models.probability import ProbabilityAnalysis
from predictmax.models.risk import PositionSizing, RiskAssessment


class Action(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    WAIT = "WAIT"


class Side(str, Enum):
    YES = "YES"
    NO = "NO"


class Urgency(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Decision(BaseModel):
    """Action/side/confidence. side is None iff action is WAIT."""

    model_config = ConfigDict(frozen=True)

    action: Action
    side: Side | None = None
    confidence: float = Field(0.0, ge=0, le=1)

    @model_validator(mode="after")
    def _side_matches_action(self) -> Decision:
        if (self.action == Action.WAIT) != (self.side is None):
            raise ValueError("side must be absent iff action is WAIT")
        return self


class QuickSignal(BaseModel):
    """Stage-1 screening verdict."""

    model_config = ConfigDict(frozen=True)

    action: Action
    side: Side | None = None
    reason: str = ""


class PricingTargets(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_entry: float = 0.0
    limit_price: float = 0.0
    expected_slippage: float = 0.0
    stop_loss: float | None = None
    take_profit: float | None = None


class Timing(BaseModel):
    model_config = ConfigDict(frozen=True)

    urgency: Urgency
    time_horizon: str
    exit_strategy: str
    optimal_entry: str


class TradeRecommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Action
    side: Side | None = None
    confidence: float = Field(0.0, ge=0, le=1)
    edge: float = Field(..., description="Fair value minus midpoint, as a fraction")
    analysis: ProbabilityAnalysis
    risk: RiskAssessment
    sizing: PositionSizing
    pricing: PricingTargets
    timing: Timing
    reasoning: str = Field(..., min_length=1)
    key_factors: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _side_matches_action(self) -> TradeRecommendation:
        if (self.action == Action.WAIT) != (self.side is None):
            raise ValueError("side must be absent iff action is WAIT")
        return self

    @property
    def edge_percent(self) -> float:
        return self.edge * 100

    @property
    def expected_value(self) -> float:
        return abs(self.edge) * self.confidence


class ScanCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    market: UnifiedMarket
    recommendation: TradeRecommendation


class ScanResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    best_market: UnifiedMarket
    recommendation: TradeRecommendation
    alternatives: list[ScanCandidate] = Field(default_factory=list)
