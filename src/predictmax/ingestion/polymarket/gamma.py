"""Polymarket Gamma API client - raw market records for normalization."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from predictmax.models import Platform

log = structlog.get_logger(__name__)

GAMMA_API_BASE = "https://gamma-api.polymarket.com"


class GammaClient:
    """RawSourceClient for Polymarket's Gamma REST API."""

    platform = Platform.POLYMARKET

    def __init__(self, base_url: str | None = None, timeout: float = 30.0, transport: httpx.BaseTransport | None = None):
        self.base_url = (base_url or GAMMA_API_BASE).rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    def fetch_markets(
        self,
        limit: int = 100,
        active_only: bool = True,
        tag: str | None = None,
        order: str = "volume24hr",
        **_: Any,
    ) -> list[dict[str, Any]]:
        """Fetch market objects, most active first."""
        params: dict[str, Any] = {"limit": limit, "order": order, "ascending": "false"}
        if active_only:
            params["closed"] = "false"
            params["active"] = "true"
        if tag:
            params["tag_slug"] = tag
        with self._client() as client:
            resp = client.get("/markets", params=params)
            resp.raise_for_status()
            data = resp.json()
        if not isinstance(data, list):
            data = data.get("data", []) if isinstance(data, dict) else []
        rows = [row for row in data if isinstance(row, dict)]
        if active_only:
            rows = [r for r in rows if not (r.get("closed") is True or r.get("active") is False)]
        log.debug("gamma_markets_fetched", count=len(rows), limit=limit)
        return rows

    def fetch_market(self, market_id: str) -> dict[str, Any] | None:
        with self._client() as client:
            resp = client.get(f"/markets/{market_id}")
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            data = resp.json()
        return data if isinstance(data, dict) else None
