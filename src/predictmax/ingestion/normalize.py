"""Raw per-source market records -> canonical UnifiedMarket.

Malformed or missing fields never raise: each is resolved via a documented
default (zero prices/volumes, "now + 30 days" for dates, closed for an
unknown status) and logged at debug level.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog

from predictmax.errors import DataError
from predictmax.ingestion.categorize import categorize, extract_tags
from predictmax.models import (
    EventRef,
    Liquidity,
    LiquidityScore,
    MarketContract,
    MarketStatus,
    Platform,
    Pricing,
    SeriesRef,
    UnifiedMarket,
)

log = structlog.get_logger(__name__)

DEFAULT_EXPIRY = timedelta(days=30)

KALSHI_STATUS = {
    "active": MarketStatus.OPEN,
    "open": MarketStatus.OPEN,
    "closed": MarketStatus.CLOSED,
    "settled": MarketStatus.SETTLED,
    "determined": MarketStatus.SETTLED,
    "finalized": MarketStatus.SETTLED,
    "initialized": MarketStatus.INITIALIZED,
    "unopened": MarketStatus.INITIALIZED,
}


def _float(s: str | float | None) -> float:
    if s is None:
        return 0.0
    try:
        return float(s)
    except (TypeError, ValueError):
        return 0.0


def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def _json_list(value: Any) -> list[Any]:
    """Gamma returns some list fields as JSON-encoded strings."""
    if isinstance(value, list):
        return value
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return []
    return parsed if isinstance(parsed, list) else []


def _source_category(raw: dict[str, Any]) -> str | None:
    value = raw.get("category")
    return value if isinstance(value, str) else None


def parse_datetime(value: Any, now: datetime | None = None, field: str = "") -> datetime:
    """Parse an ISO-8601 string or epoch seconds; default to now + 30 days."""
    now = now or datetime.now(timezone.utc)
    try:
        if value is None or value == "":
            raise DataError(f"missing {field or 'timestamp'}")
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, (int, float)):
            parsed = datetime.fromtimestamp(float(value), tz=timezone.utc)
        else:
            parsed = datetime.fromisoformat(str(value).strip())
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    except (DataError, ValueError, OverflowError, OSError) as e:
        log.debug("date_fallback", field=field, value=value, error=str(e))
        return now + DEFAULT_EXPIRY


def liquidity_score(volume_24h: float, secondary_depth: float, spread: float) -> LiquidityScore:
    """Coarse tradability tier: monotone up in volume/depth, down in spread."""
    if volume_24h >= 10000 and (spread <= 0.05 or secondary_depth >= 10000):
        return LiquidityScore.HIGH
    if volume_24h >= 1000 and (spread <= 0.10 or secondary_depth >= 1000):
        return LiquidityScore.MEDIUM
    return LiquidityScore.LOW


def _kalshi_price(raw: dict[str, Any], field: str) -> float:
    """Kalshi prices are integer cents; *_dollars fields are already in [0, 1]."""
    dollars = raw.get(f"{field}_dollars")
    if dollars is not None and dollars != "":
        return _clamp01(_float(dollars))
    return _clamp01(_float(raw.get(field)) / 100)


def normalize_kalshi(raw: dict[str, Any], now: datetime | None = None) -> UnifiedMarket:
    """Convert a Kalshi market object to UnifiedMarket."""
    ticker = str(raw.get("ticker") or "")
    if not ticker:
        log.debug("missing_field", platform="kalshi", field="ticker")
    yes_bid = _kalshi_price(raw, "yes_bid")
    yes_ask = _kalshi_price(raw, "yes_ask")
    no_bid = _kalshi_price(raw, "no_bid")
    no_ask = _kalshi_price(raw, "no_ask")
    last_price = _kalshi_price(raw, "last_price")
    # Spread in cents first so 42 - 40 is exactly 2 before scaling
    if raw.get("yes_ask_dollars") is None and raw.get("yes_bid_dollars") is None:
        spread = abs(_float(raw.get("yes_ask")) - _float(raw.get("yes_bid"))) / 100
    else:
        spread = abs(yes_ask - yes_bid)
    midpoint = _clamp01((yes_bid + yes_ask) / 2)

    volume_24h = max(0.0, _float(raw.get("volume_24h")))
    total_volume = max(0.0, _float(raw.get("volume")))
    open_interest = max(0.0, _float(raw.get("open_interest")))

    status_raw = str(raw.get("status") or "").lower()
    status = KALSHI_STATUS.get(status_raw)
    if status is None:
        log.debug("unknown_status", platform="kalshi", status=status_raw, ticker=ticker)
        status = MarketStatus.CLOSED

    title = str(raw.get("title") or "")
    subtitle = raw.get("subtitle") or raw.get("yes_sub_title") or None
    series_ticker = raw.get("series_ticker")
    return UnifiedMarket(
        id=ticker,
        platform=Platform.KALSHI,
        question=title,
        description=subtitle,
        category=categorize(title, _source_category(raw)),
        tags=extract_tags(title),
        series=SeriesRef(ticker=str(series_ticker)) if series_ticker else None,
        event=EventRef(ticker=str(raw.get("event_ticker") or ticker), title=title, subtitle=subtitle),
        market=MarketContract(
            ticker=ticker,
            outcomes=["Yes", "No"],
            status=status,
            open_time=parse_datetime(raw.get("open_time"), now, "open_time") if raw.get("open_time") else None,
            close_time=parse_datetime(raw.get("close_time"), now, "close_time"),
            expiration_time=parse_datetime(raw.get("expiration_time"), now, "expiration_time"),
        ),
        pricing=Pricing(
            yes_bid=yes_bid,
            yes_ask=yes_ask,
            no_bid=no_bid,
            no_ask=no_ask,
            last_price=last_price,
            spread=spread,
            midpoint=midpoint,
        ),
        liquidity=Liquidity(
            volume_24h=volume_24h,
            total_volume=total_volume,
            open_interest=open_interest,
            notional_value=total_volume * midpoint,
            liquidity_score=liquidity_score(volume_24h, open_interest, spread),
        ),
        platform_data=dict(raw),
    )


def _polymarket_prices(raw: dict[str, Any]) -> tuple[float, float]:
    """(yes, no) from CLOB tokens or Gamma outcomePrices."""
    tokens = raw.get("tokens") or []
    yes = no = None
    for tok in tokens:
        if not isinstance(tok, dict):
            continue
        outcome = str(tok.get("outcome") or "").lower()
        if outcome == "yes":
            yes = _float(tok.get("price"))
        elif outcome == "no":
            no = _float(tok.get("price"))
    prices = _json_list(raw.get("outcomePrices") or raw.get("outcome_prices"))
    if yes is None:
        yes = _float(prices[0]) if len(prices) > 0 else 0.0
    if no is None:
        no = _float(prices[1]) if len(prices) > 1 else 0.0
    return _clamp01(yes), _clamp01(no)


def normalize_polymarket(raw: dict[str, Any], now: datetime | None = None) -> UnifiedMarket:
    """Convert a Polymarket (Gamma or CLOB) market object to UnifiedMarket."""
    market_id = str(
        raw.get("conditionId") or raw.get("condition_id") or raw.get("id") or raw.get("question_id") or ""
    )
    yes, no = _polymarket_prices(raw)
    best_bid, best_ask = raw.get("bestBid"), raw.get("bestAsk")
    if best_bid is not None and best_ask is not None and _float(best_ask) > 0:
        yes_bid, yes_ask = _clamp01(_float(best_bid)), _clamp01(_float(best_ask))
        no_bid, no_ask = _clamp01(1 - yes_ask), _clamp01(1 - yes_bid)
        spread = abs(yes_ask - yes_bid)
        midpoint = (yes_bid + yes_ask) / 2
    else:
        # Single-sided quotes: YES price and NO price imply two YES estimates
        yes_bid = yes_ask = yes
        no_bid = no_ask = no
        spread = abs(yes - (1 - no))
        midpoint = (yes + (1 - no)) / 2
    midpoint = _clamp01(midpoint)

    total_volume = max(0.0, _float(raw.get("volumeNum") or raw.get("volume_num") or raw.get("volume")))
    if raw.get("volume24hr") is not None:
        volume_24h = max(0.0, _float(raw.get("volume24hr")))
    else:
        # No 24h figure on CLOB records; estimate as 10% of lifetime volume
        volume_24h = total_volume * 0.1
    liquidity = max(0.0, _float(raw.get("liquidityNum") or raw.get("liquidity_num") or raw.get("liquidity")))

    if raw.get("closed"):
        status = MarketStatus.CLOSED
    elif raw.get("active", True):
        status = MarketStatus.OPEN
    else:
        status = MarketStatus.SETTLED

    end = parse_datetime(raw.get("endDate") or raw.get("end_date_iso"), now, "end_date")
    question = str(raw.get("question") or raw.get("title") or "")
    outcomes = [str(o) for o in _json_list(raw.get("outcomes"))] or ["Yes", "No"]
    last_trade = raw.get("lastTradePrice")
    return UnifiedMarket(
        id=market_id,
        platform=Platform.POLYMARKET,
        question=question,
        description=raw.get("description") or None,
        category=categorize(question, _source_category(raw)),
        tags=extract_tags(question),
        event=EventRef(ticker=str(raw.get("slug") or market_id), title=question),
        market=MarketContract(
            ticker=market_id,
            outcomes=outcomes,
            status=status,
            open_time=parse_datetime(raw.get("startDate"), now, "start_date") if raw.get("startDate") else None,
            close_time=end,
            expiration_time=end,
        ),
        pricing=Pricing(
            yes_bid=yes_bid,
            yes_ask=yes_ask,
            no_bid=no_bid,
            no_ask=no_ask,
            last_price=_clamp01(_float(last_trade)) if last_trade is not None else yes,
            spread=spread,
            midpoint=midpoint,
        ),
        liquidity=Liquidity(
            volume_24h=volume_24h,
            total_volume=total_volume,
            open_interest=liquidity,
            notional_value=total_volume,
            liquidity_score=liquidity_score(volume_24h, liquidity, spread),
        ),
        platform_data=dict(raw),
    )


_NORMALIZERS = {
    Platform.KALSHI: normalize_kalshi,
    Platform.POLYMARKET: normalize_polymarket,
}


def normalize(raw: dict[str, Any], source: Platform | str, now: datetime | None = None) -> UnifiedMarket:
    """Dispatch a raw record to the normalizer for its source schema."""
    return _NORMALIZERS[Platform(source)](raw, now)


def normalize_many(
    records: list[dict[str, Any]], source: Platform | str, now: datetime | None = None
) -> list[UnifiedMarket]:
    """Normalize a batch; records that cannot be represented at all are skipped."""
    out = []
    for raw in records:
        if not isinstance(raw, dict):
            continue
        try:
            out.append(normalize(raw, source, now))
        except Exception as e:
            log.warning("skip_market", source=Platform(source).value, market_id=raw.get("ticker") or raw.get("conditionId"), error=str(e))
    return out
