"""RiskMetric, RiskAssessment, PositionSizing."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


def level_for_score(score: int) -> RiskLevel:
    """<=4 LOW, 5-6 MEDIUM, >=7 HIGH."""
    if score <= 4:
        return RiskLevel.LOW
    if score <= 6:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


class RiskMetric(BaseModel):
    """Score 1-10 (higher is riskier); level is derived from the score."""

    model_config = ConfigDict(frozen=True)

    score: int = Field(..., ge=1, le=10)
    details: dict[str, Any] = Field(default_factory=dict)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def level(self) -> RiskLevel:
        return level_for_score(self.score)


class RiskAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    liquidity: RiskMetric
    settlement: RiskMetric
    volatility: RiskMetric
    concentration: RiskMetric
    time: RiskMetric
    overall_risk: float = Field(..., ge=0, le=1)
    risk_factors: list[str] = Field(default_factory=list)

    def axes(self) -> dict[str, RiskMetric]:
        return {
            "liquidity": self.liquidity,
            "settlement": self.settlement,
            "volatility": self.volatility,
            "concentration": self.concentration,
            "time": self.time,
        }


class PositionSizing(BaseModel):
    model_config = ConfigDict(frozen=True)

    recommended: float = Field(0.0, ge=0)
    maximum: float = Field(0.0, ge=0)
    conservative_unit: float = Field(0.0, ge=0)
    kelly_fraction: float = Field(0.0, ge=0, le=1)
