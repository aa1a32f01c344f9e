"""CLI wiring and output formatting (no network)."""

import asyncio

import pytest
import typer
from typer.testing import CliRunner

from predictmax.cli.analyze import format_recommendation
from predictmax.cli.app import app
from predictmax.cli.markets import format_market, parse_platform
from predictmax.intelligence.recommendation import RecommendationEngine
from predictmax.models import Platform
from predictmax.storage.markets import DuckDBMarketStore

runner = CliRunner()


@pytest.fixture
def config_dir(tmp_path):
    db = tmp_path / "data" / "pm.duckdb"
    (tmp_path / "default.toml").write_text(f'[storage]\ndb_path = "{db.as_posix()}"\n\n[logging]\nlevel = "warning"\n')
    return tmp_path


def test_help_lists_commands():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("markets", "analyze", "scan", "api"):
        assert command in result.output


def test_markets_list_reads_snapshots(config_dir, make_market):
    DuckDBMarketStore(config_dir / "data" / "pm.duckdb").upsert_market(make_market(id="KX-TEST", question="Stored market"))
    result = runner.invoke(app, ["--config-dir", str(config_dir), "markets", "list"])
    assert result.exit_code == 0, result.output
    assert "KX-TEST" in result.output
    assert "Total: 1 markets" in result.output


def test_markets_list_rejects_unknown_platform(config_dir):
    result = runner.invoke(app, ["--config-dir", str(config_dir), "markets", "list", "--platform", "betfair"])
    assert result.exit_code != 0


def test_parse_platform():
    assert parse_platform("Kalshi") == Platform.KALSHI
    assert parse_platform(None) is None
    with pytest.raises(typer.BadParameter):
        parse_platform("betfair")


def test_format_market(make_market):
    line = format_market(make_market(id="K1", question="Will CPI exceed 3%?"))
    assert "kalshi" in line
    assert "50.0%" in line
    assert "Will CPI exceed 3%?" in line


def test_format_recommendation(make_market, now):
    rec = asyncio.run(RecommendationEngine().recommend(make_market(), now=now))
    lines = format_recommendation(rec)
    assert lines[0].startswith("Action:       WAIT")
    assert any(line.startswith("Reasoning:") for line in lines)
