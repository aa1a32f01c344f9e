"""Domain context attached to a market by enrichment providers (tagged by `kind`)."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class RecentForm(_Frozen):
    wins: int = 0
    losses: int = 0

    @property
    def win_rate(self) -> float:
        return self.wins / (self.wins + self.losses + 0.01)


class SurfaceRecord(_Frozen):
    surface: str
    wins: int = 0
    losses: int = 0
    win_rate: float = Field(0.0, ge=0, le=1)


class PlayerStats(_Frozen):
    name: str
    ranking: int | None = None
    recent_form: RecentForm | None = None
    surface_record: SurfaceRecord | None = None
    injury_status: Literal["healthy", "questionable", "injured", "unknown"] = "unknown"


class BookmakerOdds(_Frozen):
    bookmaker: str
    odds1: float
    odds2: float
    implied1: float = Field(..., ge=0, le=1)
    implied2: float = Field(..., ge=0, le=1)


class ExternalOdds(_Frozen):
    implied: float = Field(..., ge=0, le=1, description="Implied YES probability across bookmakers")
    bookmakers: list[BookmakerOdds] = Field(default_factory=list)


FIRST_MEETING = "0-0 (First meeting)"


class SportsContext(_Frozen):
    kind: Literal["sports"] = "sports"
    sport: str = "other"
    match_type: str | None = None
    player1: PlayerStats | None = None
    player2: PlayerStats | None = None
    head_to_head: str = FIRST_MEETING
    surface: str | None = None
    tournament: str | None = None
    external_odds: ExternalOdds | None = None


class CryptoContext(_Frozen):
    kind: Literal["crypto"] = "crypto"
    asset: str
    current_price: float = Field(..., gt=0)
    threshold: float | None = None
    historical_volatility: float = 0.05
    days_to_expiry: float = 30.0


class ExpertForecast(_Frozen):
    source: str
    probability: float = Field(..., ge=0, le=1)
    confidence: float = Field(0.5, ge=0, le=1)


class PoliticsContext(_Frozen):
    kind: Literal["politics"] = "politics"
    election_type: str = "other"
    jurisdiction: str = ""
    poll_average: float | None = Field(None, ge=0, le=100, description="Polling average in percent")
    poll_trend: Literal["improving", "declining", "stable"] = "stable"
    forecasts: list[ExpertForecast] = Field(default_factory=list)
    key_factors: list[str] = Field(default_factory=list)


class EconomicsContext(_Frozen):
    kind: Literal["economics"] = "economics"
    indicator: str
    current_value: float | None = None
    threshold: float | None = None
    consensus: float | None = None


DomainContext = Annotated[
    Union[SportsContext, CryptoContext, PoliticsContext, EconomicsContext],
    Field(discriminator="kind"),
]
