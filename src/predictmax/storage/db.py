"""DuckDB connection and schema init."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import duckdb

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

SCHEMA_SQL = """
-- Latest normalized snapshot per (platform, market_id)
CREATE TABLE IF NOT EXISTS market_snapshots (
    platform        VARCHAR NOT NULL,
    market_id       VARCHAR NOT NULL,
    ticker          VARCHAR,
    question        VARCHAR,
    category        VARCHAR,
    end_date        VARCHAR,
    yes_price       DOUBLE,
    no_price        DOUBLE,
    volume          DOUBLE,
    liquidity       DOUBLE,
    raw_data        JSON,
    updated_at      BIGINT NOT NULL,
    PRIMARY KEY (platform, market_id)
);
"""


def get_connection(db_path: str | Path, read_only: bool = False) -> DuckDBPyConnection:
    """Return a DuckDB connection. Caller must close or use as context manager."""
    path = Path(db_path)
    if not read_only:
        path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path), read_only=read_only)


def init_schema(conn: DuckDBPyConnection) -> None:
    """Create tables if they do not exist."""
    for stmt in SCHEMA_SQL.split(";"):
        stmt = stmt.strip()
        if stmt:
            try:
                conn.execute(stmt)
            except duckdb.Error as e:
                if "already exists" not in str(e).lower():
                    raise
