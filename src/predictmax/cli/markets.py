"""Markets subcommand: search, trending, arbitrage, list."""

from __future__ import annotations

import asyncio

import typer

from predictmax.models import MarketCategory, ParsedQuery, Platform, SearchFilters, UnifiedMarket
from predictmax.services import build_services
from predictmax.storage.db import get_connection, init_schema
from predictmax.storage.markets import list_market_snapshots

app = typer.Typer(help="Market search and discovery")


def format_market(m: UnifiedMarket) -> str:
    question = m.question[:60]
    return (
        f"  {m.platform.value:<10} {m.id[:24]:<24}  {m.pricing.midpoint * 100:5.1f}%  "
        f"{m.liquidity.volume_24h:>10.0f}  {m.liquidity.liquidity_score.value:<6}  {question}"
    )


def parse_platform(value: str | None) -> Platform | None:
    if value is None:
        return None
    try:
        return Platform(value.lower())
    except ValueError:
        raise typer.BadParameter(f"unknown platform {value!r} (kalshi or polymarket)") from None


def parse_category(value: str | None) -> MarketCategory | None:
    if value is None:
        return None
    try:
        return MarketCategory(value.lower())
    except ValueError:
        raise typer.BadParameter(f"unknown category {value!r}") from None


@app.command("search")
def search(
    ctx: typer.Context,
    terms: list[str] = typer.Argument(None, help="Free-text search terms"),
    player: list[str] = typer.Option([], "--player", help="Player name; two or more requires a head-to-head match"),
    team: list[str] = typer.Option([], "--team", help="Team name"),
    asset: str | None = typer.Option(None, "--asset", help="Crypto asset (e.g. bitcoin)"),
    domain: str | None = typer.Option(None, "--domain", "-d", help="Category to boost (sports, politics, ...)"),
    platform: str | None = typer.Option(None, "--platform", help="kalshi or polymarket"),
    category: str | None = typer.Option(None, "--category", help="Keep only this category"),
    min_volume: float | None = typer.Option(None, "--min-volume", help="Minimum total volume"),
    limit: int | None = typer.Option(None, "--limit", "-n", help="Max results (default from config)"),
) -> None:
    """Search both platforms and print markets ranked by relevance."""
    settings = ctx.obj["settings"]
    services = build_services(settings)
    terms = terms or []
    query = ParsedQuery(
        original_query=" ".join(terms),
        domain=parse_category(domain),
        players=player,
        teams=team,
        asset=asset,
        search_terms=terms,
        platform=parse_platform(platform),
    )
    filters = SearchFilters(
        platform=parse_platform(platform),
        category=parse_category(category),
        search_query=query.original_query or None,
        min_volume=min_volume,
        limit=limit,
    )
    markets = asyncio.run(services.search.search(query, filters))
    for m in markets:
        typer.echo(format_market(m))
    typer.echo(f"Total: {len(markets)} markets")


@app.command("trending")
def trending(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-n", help="Max markets"),
    platform: str | None = typer.Option(None, "--platform", help="kalshi or polymarket"),
) -> None:
    """Highest 24h-volume markets."""
    services = build_services(ctx.obj["settings"], persist=False)
    markets = asyncio.run(services.search.trending(limit, parse_platform(platform)))
    for m in markets:
        typer.echo(format_market(m))
    typer.echo(f"Total: {len(markets)} markets")


@app.command("arbitrage")
def arbitrage(ctx: typer.Context) -> None:
    """Same question priced differently on Kalshi and Polymarket."""
    services = build_services(ctx.obj["settings"], persist=False)
    found = asyncio.run(services.search.arbitrage())
    for opp in found:
        typer.echo(f"  {opp.spread_percent:5.1f}%  {opp.question[:60]}")
        typer.echo(f"         {opp.opportunity}")
    typer.echo(f"Total: {len(found)} opportunities")


@app.command("list")
def list_markets(
    ctx: typer.Context,
    platform: str | None = typer.Option(None, "--platform", help="kalshi or polymarket"),
    limit: int = typer.Option(50, "--limit", "-n", help="Max rows"),
) -> None:
    """List market snapshots saved by previous searches."""
    settings = ctx.obj["settings"]
    conn = get_connection(settings.db_path)
    init_schema(conn)
    try:
        p = parse_platform(platform)
        rows = list_market_snapshots(conn, platform=p.value if p else None, limit=limit)
        for r in rows:
            question = (r.get("question") or "")[:60]
            typer.echo(f"  {r['platform']:<10} {r['market_id'][:24]:<24}  {r.get('volume') or 0:>10.0f}  {question}")
        typer.echo(f"Total: {len(rows)} markets")
    finally:
        conn.close()
