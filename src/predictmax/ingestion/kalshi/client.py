"""Kalshi trade API client - raw market records (prices in cents)."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from predictmax.models import Platform

log = structlog.get_logger(__name__)

KALSHI_API_BASE = "https://api.elections.kalshi.com/trade-api/v2"

# Sport -> Kalshi series ticker used to narrow market listings
SPORT_SERIES = {
    "tennis": "TENNIS",
    "basketball": "NBA",
    "football": "NFL",
    "baseball": "MLB",
    "hockey": "NHL",
}


class KalshiClient:
    """RawSourceClient for Kalshi's public market endpoints."""

    platform = Platform.KALSHI

    def __init__(self, base_url: str | None = None, timeout: float = 30.0, transport: httpx.BaseTransport | None = None):
        self.base_url = (base_url or KALSHI_API_BASE).rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    def fetch_markets(
        self,
        limit: int = 200,
        status: str = "open",
        series_ticker: str | None = None,
        sport: str | None = None,
        min_close_ts: int | None = None,
        max_close_ts: int | None = None,
        **_: Any,
    ) -> list[dict[str, Any]]:
        """GET /markets with optional series and close-time window."""
        params: dict[str, Any] = {"limit": limit, "status": status}
        series = series_ticker or (SPORT_SERIES.get(sport) if sport else None)
        if series:
            params["series_ticker"] = series
        if min_close_ts is not None:
            params["min_close_ts"] = min_close_ts
        if max_close_ts is not None:
            params["max_close_ts"] = max_close_ts
        with self._client() as client:
            resp = client.get("/markets", params=params)
            resp.raise_for_status()
            data = resp.json()
        markets = data.get("markets", []) if isinstance(data, dict) else []
        log.debug("kalshi_markets_fetched", count=len(markets), params=params)
        return [m for m in markets if isinstance(m, dict)]

    def fetch_market(self, market_id: str) -> dict[str, Any] | None:
        with self._client() as client:
            resp = client.get(f"/markets/{market_id}")
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            data = resp.json()
        market = data.get("market") if isinstance(data, dict) else None
        return market if isinstance(market, dict) else None
