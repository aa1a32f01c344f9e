"""Structured search inputs: ParsedQuery (already parsed upstream) and SearchFilters."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from predictmax.models.market import MarketCategory, Platform


class ParsedQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    original_query: str = ""
    domain: MarketCategory | None = None
    players: list[str] = Field(default_factory=list, description="Head-to-head entities, e.g. two players")
    teams: list[str] = Field(default_factory=list)
    asset: str | None = None
    search_terms: list[str] = Field(default_factory=list)
    platform: Platform | None = None

    @property
    def entities(self) -> list[str]:
        """All named entities (players, teams, asset)."""
        out = [*self.players, *self.teams]
        if self.asset:
            out.append(self.asset)
        return out

    @property
    def head_to_head(self) -> bool:
        return len(self.players) >= 2

    def terms(self) -> list[str]:
        if self.search_terms:
            return [t.lower() for t in self.search_terms if t.strip()]
        return [t for t in self.original_query.lower().split() if t]


class SearchFilters(BaseModel):
    model_config = ConfigDict(frozen=True)

    platform: Platform | None = None
    category: MarketCategory | None = None
    search_query: str | None = None
    min_volume: float | None = None
    min_liquidity: float | None = None
    min_end_date: datetime | None = None
    max_end_date: datetime | None = None
    active: bool = True
    limit: int | None = None
