"""Source client protocol for pluggable market sources (Kalshi, Polymarket, ...)."""

from __future__ import annotations

from typing import Any, Protocol

from predictmax.models import Platform


class RawSourceClient(Protocol):
    """One per market source. Returns raw, schema-specific records for the normalizer."""

    platform: Platform

    def fetch_markets(self, limit: int = 100, **filters: Any) -> list[dict[str, Any]]: ...
    def fetch_market(self, market_id: str) -> dict[str, Any] | None: ...
