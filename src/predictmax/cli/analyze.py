"""analyze and scan commands: per-market recommendation and best-opportunity search."""

from __future__ import annotations

import asyncio

import typer

from predictmax.cli.markets import format_market, parse_platform
from predictmax.models import ParsedQuery, SearchFilters, TradeRecommendation
from predictmax.services import build_services


def format_recommendation(rec: TradeRecommendation) -> list[str]:
    side = f" {rec.side.value}" if rec.side else ""
    lines = [
        f"Action:       {rec.action.value}{side}  (confidence {rec.confidence * 100:.0f}%)",
        f"Fair value:   {rec.analysis.fair_value * 100:.1f}%   edge {rec.edge_percent:+.1f}%",
        f"Risk:         {rec.risk.overall_risk * 100:.0f}%",
        f"Size:         {rec.sizing.recommended:.2f} (max {rec.sizing.maximum:.2f}, unit {rec.sizing.conservative_unit:.2f})",
    ]
    if rec.side:
        lines.append(
            f"Entry/limit:  {rec.pricing.target_entry * 100:.1f}% / {rec.pricing.limit_price * 100:.1f}%"
        )
    lines.append(f"Timing:       {rec.timing.urgency.value}, {rec.timing.time_horizon}")
    lines.append(f"Reasoning:    {rec.reasoning}")
    for factor in rec.key_factors:
        lines.append(f"  + {factor}")
    for risk in rec.risks:
        lines.append(f"  ! {risk}")
    return lines


def analyze(
    ctx: typer.Context,
    platform: str = typer.Argument(..., help="kalshi or polymarket"),
    market_id: str = typer.Argument(..., help="Kalshi ticker or Polymarket market id"),
    bankroll: float | None = typer.Option(None, "--bankroll", "-b", help="Bankroll (default from config)"),
) -> None:
    """Full recommendation for one market."""
    services = build_services(ctx.obj["settings"], persist=False)
    p = parse_platform(platform)
    market = asyncio.run(services.search.get_market(p, market_id))
    if market is None:
        typer.echo(f"Market not found: {platform}/{market_id}", err=True)
        raise typer.Exit(1)
    rec = asyncio.run(services.engine.recommend(market, bankroll))
    typer.echo(format_market(market))
    for line in format_recommendation(rec):
        typer.echo(line)


def scan(
    ctx: typer.Context,
    terms: list[str] = typer.Argument(None, help="Search terms narrowing the candidate set"),
    platform: str | None = typer.Option(None, "--platform", help="kalshi or polymarket"),
    limit: int = typer.Option(100, "--limit", "-n", help="Candidates to scan"),
    bankroll: float | None = typer.Option(None, "--bankroll", "-b", help="Bankroll (default from config)"),
) -> None:
    """Find the best opportunity across candidate markets."""
    services = build_services(ctx.obj["settings"], persist=False)
    p = parse_platform(platform)

    async def run():
        if terms:
            query = ParsedQuery(original_query=" ".join(terms), search_terms=terms, platform=p)
            candidates = await services.search.search(query, SearchFilters(platform=p, limit=limit))
        else:
            candidates = await services.search.trending(limit, p)
        return await services.scanner.find_best(candidates, bankroll)

    result = asyncio.run(run())
    if result is None:
        typer.echo("No markets to scan.")
        raise typer.Exit(1)
    typer.echo("Best:")
    typer.echo(format_market(result.best_market))
    for line in format_recommendation(result.recommendation):
        typer.echo(line)
    if result.alternatives:
        typer.echo("Alternatives:")
        for alt in result.alternatives:
            rec = alt.recommendation
            side = f" {rec.side.value}" if rec.side else ""
            typer.echo(f"{format_market(alt.market)}  -> {rec.action.value}{side} edge {rec.edge_percent:+.1f}%")
