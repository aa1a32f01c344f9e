"""Canonical schema (Pydantic) - UnifiedMarket, probability, risk, recommendation."""

from predictmax.models.context import (
    CryptoContext,
    DomainContext,
    EconomicsContext,
    ExternalOdds,
    PlayerStats,
    PoliticsContext,
    SportsContext,
)
from predictmax.models.market import (
    EventRef,
    Liquidity,
    LiquidityScore,
    MarketCategory,
    MarketContract,
    MarketStatus,
    Platform,
    Pricing,
    SeriesRef,
    UnifiedMarket,
)
from predictmax.models.probability import EnsembleSummary, ProbabilityAnalysis, ProbabilityModel
from predictmax.models.query import ParsedQuery, SearchFilters
from predictmax.models.recommendation import (
    Action,
    Decision,
    PricingTargets,
    QuickSignal,
    ScanCandidate,
    ScanResult,
    Side,
    Timing,
    TradeRecommendation,
    Urgency,
)
from predictmax.models.risk import PositionSizing, RiskAssessment, RiskLevel, RiskMetric

__all__ = [
    "Action",
    "CryptoContext",
    "Decision",
    "DomainContext",
    "EconomicsContext",
    "EnsembleSummary",
    "EventRef",
    "ExternalOdds",
    "Liquidity",
    "LiquidityScore",
    "MarketCategory",
    "MarketContract",
    "MarketStatus",
    "ParsedQuery",
    "Platform",
    "PlayerStats",
    "PoliticsContext",
    "PositionSizing",
    "Pricing",
    "PricingTargets",
    "ProbabilityAnalysis",
    "ProbabilityModel",
    "QuickSignal",
    "RiskAssessment",
    "RiskLevel",
    "RiskMetric",
    "ScanCandidate",
    "ScanResult",
    "SearchFilters",
    "SeriesRef",
    "Side",
    "SportsContext",
    "Timing",
    "TradeRecommendation",
    "UnifiedMarket",
    "Urgency",
]
