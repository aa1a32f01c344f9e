"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from predictmax.models import (
    MarketCategory,
    ParsedQuery,
    Platform,
    ScanResult,
    SearchFilters,
    TradeRecommendation,
    UnifiedMarket,
)


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"


# --- Error (consistent shape for 4xx/5xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str | None = Field(None, description="Machine-readable code, e.g. market_not_found")


# --- Markets ---
class MarketsResponse(BaseModel):
    markets: list[UnifiedMarket]
    total: int


class SearchRequest(BaseModel):
    """Structured query (parsed upstream) plus result filters."""

    query: str = ""
    domain: MarketCategory | None = None
    players: list[str] = Field(default_factory=list)
    teams: list[str] = Field(default_factory=list)
    asset: str | None = None
    search_terms: list[str] = Field(default_factory=list)
    platform: Platform | None = None
    category: MarketCategory | None = None
    min_volume: float | None = None
    min_liquidity: float | None = None
    min_end_date: datetime | None = None
    max_end_date: datetime | None = None
    active: bool = True
    limit: int | None = Field(None, ge=1, le=200)

    def parsed_query(self) -> ParsedQuery:
        return ParsedQuery(
            original_query=self.query,
            domain=self.domain,
            players=self.players,
            teams=self.teams,
            asset=self.asset,
            search_terms=self.search_terms,
            platform=self.platform,
        )

    def filters(self) -> SearchFilters:
        return SearchFilters(
            platform=self.platform,
            category=self.category,
            search_query=self.query or None,
            min_volume=self.min_volume,
            min_liquidity=self.min_liquidity,
            min_end_date=self.min_end_date,
            max_end_date=self.max_end_date,
            active=self.active,
            limit=self.limit,
        )


# --- Recommendations ---
class RecommendationResponse(BaseModel):
    market: UnifiedMarket
    recommendation: TradeRecommendation


class ScanRequest(SearchRequest):
    bankroll: float | None = Field(None, gt=0)
    candidates: int = Field(100, ge=1, le=500, description="Markets fetched before screening")


class ScanResponse(BaseModel):
    result: ScanResult | None
