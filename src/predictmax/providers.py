"""Collaborator protocols. Implementations live outside the pure scoring core."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol, TypeVar

from predictmax.ingestion.base import RawSourceClient
from predictmax.models import ProbabilityModel, UnifiedMarket

T = TypeVar("T")

__all__ = [
    "CacheProvider",
    "DomainContextProvider",
    "ExternalOddsProvider",
    "PersistenceProvider",
    "RawSourceClient",
    "ReasoningTextGenerator",
    "ReferenceDataProvider",
]


class DomainContextProvider(Protocol):
    """Returns a ProbabilityModel-shaped estimate for markets in its domain, or None."""

    async def estimate(self, market: UnifiedMarket) -> ProbabilityModel | None: ...


class ExternalOddsProvider(Protocol):
    """Returns an external-odds ProbabilityModel (e.g. bookmaker consensus), or None."""

    async def odds(self, market: UnifiedMarket) -> ProbabilityModel | None: ...


class ReasoningTextGenerator(Protocol):
    async def generate(self, prompt: str) -> str: ...


class CacheProvider(Protocol):
    def get(self, key: str) -> Any | None: ...
    def set(self, key: str, value: Any, ttl_sec: float) -> None: ...
    async def wrap(self, key: str, ttl_sec: float, factory: Callable[[], Awaitable[T]]) -> T: ...


class PersistenceProvider(Protocol):
    def upsert_market(self, market: UnifiedMarket) -> None: ...


class ReferenceDataProvider(Protocol):
    """Read-only lookup tables (aliases, rankings, recent form)."""

    def aliases(self, name: str) -> list[str]: ...
    def player_ranking(self, name: str) -> int | None: ...
    def recent_form(self, name: str) -> tuple[int, int] | None: ...
