"""Market snapshot persistence (PersistenceProvider backed by DuckDB)."""

from __future__ import annotations

import time
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from predictmax.models import UnifiedMarket
from predictmax.storage.db import get_connection, init_schema

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

log = structlog.get_logger(__name__)

SNAPSHOT_COLUMNS = [
    "platform",
    "market_id",
    "ticker",
    "question",
    "category",
    "end_date",
    "yes_price",
    "no_price",
    "volume",
    "liquidity",
    "updated_at",
]


def upsert_market_snapshot(conn: DuckDBPyConnection, market: UnifiedMarket, updated_at: int | None = None) -> None:
    """Insert or replace the snapshot for (platform, market_id)."""
    midpoint = market.pricing.midpoint
    conn.execute(
        """
        INSERT INTO market_snapshots (platform, market_id, ticker, question, category, end_date,
                                      yes_price, no_price, volume, liquidity, raw_data, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT (platform, market_id) DO UPDATE SET
            ticker = excluded.ticker,
            question = excluded.question,
            category = excluded.category,
            end_date = excluded.end_date,
            yes_price = excluded.yes_price,
            no_price = excluded.no_price,
            volume = excluded.volume,
            liquidity = excluded.liquidity,
            raw_data = excluded.raw_data,
            updated_at = excluded.updated_at
        """,
        [
            market.platform.value,
            market.id,
            market.market.ticker,
            market.question,
            market.category.value,
            market.market.expiration_time.isoformat(),
            midpoint,
            1 - midpoint,
            market.liquidity.total_volume,
            market.liquidity.open_interest,
            market.model_dump_json(exclude={"platform_data"}),
            updated_at or int(time.time() * 1000),
        ],
    )


def upsert_market_snapshots(conn: DuckDBPyConnection, markets: list[UnifiedMarket]) -> None:
    for m in markets:
        upsert_market_snapshot(conn, m)


def list_market_snapshots(
    conn: DuckDBPyConnection, platform: str | None = None, limit: int | None = None
) -> list[dict]:
    """Snapshots as dicts, highest volume first."""
    sql = f"SELECT {', '.join(SNAPSHOT_COLUMNS)} FROM market_snapshots"
    params: list = []
    if platform:
        sql += " WHERE platform = ?"
        params.append(platform)
    sql += " ORDER BY volume DESC"
    if limit:
        sql += " LIMIT ?"
        params.append(limit)
    rows = conn.execute(sql, params).fetchall()
    return [dict(zip(SNAPSHOT_COLUMNS, r)) for r in rows]


class DuckDBMarketStore:
    """PersistenceProvider: one short-lived connection per call."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        with get_connection(self.db_path) as conn:
            init_schema(conn)

    def upsert_market(self, market: UnifiedMarket) -> None:
        with get_connection(self.db_path) as conn:
            upsert_market_snapshot(conn, market)

    def upsert_markets(self, markets: list[UnifiedMarket]) -> None:
        if not markets:
            return
        with get_connection(self.db_path) as conn:
            upsert_market_snapshots(conn, markets)
        log.debug("snapshots_saved", count=len(markets), db_path=str(self.db_path))

    def list_markets(self, platform: str | None = None, limit: int | None = None) -> list[dict]:
        with get_connection(self.db_path, read_only=True) as conn:
            return list_market_snapshots(conn, platform, limit)
