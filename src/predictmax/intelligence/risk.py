"""Five-axis market risk scoring and Kelly-based position sizing.

Each axis is an independent pure scorer returning a RiskMetric with an
integer score in [1, 10] (higher is riskier). Levels derive from the score.
"""

from __future__ import annotations

import re
from datetime import datetime

from predictmax.models import (
    MarketCategory,
    MarketStatus,
    Platform,
    PositionSizing,
    RiskAssessment,
    RiskLevel,
    RiskMetric,
    UnifiedMarket,
)

POSITION_CEILING = 10000.0

AXIS_WEIGHTS = {
    "liquidity": 0.30,
    "settlement": 0.15,
    "volatility": 0.25,
    "concentration": 0.15,
    "time": 0.15,
}

RISK_FACTOR_TEXT = {
    "liquidity": "Low liquidity may cause significant slippage",
    "settlement": "Settlement uncertainty or platform risk",
    "volatility": "High price volatility expected",
    "concentration": "Concentrated position risk",
    "time": "Time-related risks (too short or too long horizon)",
}

PLATFORM_TRUST = {
    Platform.KALSHI: 2,
    Platform.POLYMARKET: 4,
}
UNKNOWN_PLATFORM_TRUST = 6

SETTLEMENT_NOTES = {
    Platform.KALSHI: "CFTC-regulated, funds held by regulated custodian",
    Platform.POLYMARKET: "Crypto-based settlement, smart contract risk exists",
}

HEDGE_WORDS = ("approximately", "around", "roughly", "estimated", "close to", "near")
_HEDGE_RE = re.compile(r"\b(" + "|".join(re.escape(w) for w in HEDGE_WORDS) + r")\b")

CATEGORY_VOLATILITY = {
    MarketCategory.SPORTS: 0.6,
    MarketCategory.POLITICS: 0.4,
    MarketCategory.CRYPTO: 0.9,
    MarketCategory.ECONOMICS: 0.5,
    MarketCategory.WEATHER: 0.3,
}
DEFAULT_CATEGORY_VOLATILITY = 0.5

# (days upper bound, score, note, recommended action); also the day buckets for timing text
TIME_BUCKETS: list[tuple[float, int, str, str]] = [
    (1, 9, "Market expires very soon - limited time for price discovery", "Use limit orders only, monitor closely"),
    (3, 7, "Short time horizon - ensure you can monitor position", "Set alerts, be prepared to exit if needed"),
    (7, 5, "Week-long horizon - moderate event risk", "Monitor daily, adjust position as needed"),
    (30, 3, "Good time horizon for position management", "Weekly review recommended"),
    (90, 4, "Medium-term position - watch for fundamental changes", "Monthly review, watch for major developments"),
    (
        float("inf"),
        6,
        "Long-dated market - high uncertainty, may have liquidity issues",
        "Monthly review, watch for major developments",
    ),
]


def time_bucket(days: float) -> int:
    """Index into TIME_BUCKETS for days to expiry."""
    for i, (upper, *_rest) in enumerate(TIME_BUCKETS):
        if days < upper:
            return i
    return len(TIME_BUCKETS) - 1


def max_position(volume_24h: float, open_interest: float, ceiling: float = POSITION_CEILING) -> float:
    """At most 1% of 24h volume, 0.5% of open interest, and the absolute ceiling."""
    return min(volume_24h * 0.01, open_interest * 0.005, ceiling)


def expected_slippage(spread: float, volume_24h: float) -> float:
    slippage = spread / 2
    if volume_24h < 1000:
        slippage *= 2
    elif volume_24h < 10000:
        slippage *= 1.5
    return min(0.05, slippage)


def liquidity_risk(market: UnifiedMarket, ceiling: float = POSITION_CEILING) -> RiskMetric:
    liq = market.liquidity
    spread = market.pricing.spread
    vol, oi = liq.volume_24h, liq.open_interest
    if vol >= 50000 and spread <= 0.02 and oi >= 100000:
        score = 2
    elif vol >= 10000 and spread <= 0.05 and oi >= 10000:
        score = 4
    elif vol >= 1000 and spread <= 0.10:
        score = 6
    elif vol >= 100:
        score = 8
    else:
        score = 9
    return RiskMetric(
        score=score,
        details={
            "volume_24h": vol,
            "total_volume": liq.total_volume,
            "open_interest": oi,
            "spread": spread,
            "spread_percent": f"{spread * 100:.2f}%",
            "max_recommended_position": max_position(vol, oi, ceiling),
            "expected_slippage": expected_slippage(spread, vol),
            "liquidity_score": liq.liquidity_score.value,
        },
    )


def settlement_risk(market: UnifiedMarket) -> RiskMetric:
    score = PLATFORM_TRUST.get(market.platform, UNKNOWN_PLATFORM_TRUST)
    status = market.market.status
    if status != MarketStatus.OPEN:
        score += 2
    ambiguous = bool(_HEDGE_RE.search(market.question.lower()))
    if ambiguous:
        score += 2
    return RiskMetric(
        score=min(10, score),
        details={
            "platform": market.platform.value,
            "status": status.value,
            "regulated": market.platform == Platform.KALSHI,
            "has_ambiguous_resolution": ambiguous,
            "settlement_note": SETTLEMENT_NOTES.get(market.platform, "Unknown settlement venue"),
        },
    )


def volatility_risk(market: UnifiedMarket) -> RiskMetric:
    midpoint = market.pricing.midpoint
    uncertainty = 1 - abs(midpoint - 0.5) * 2
    category_vol = CATEGORY_VOLATILITY.get(market.category, DEFAULT_CATEGORY_VOLATILITY)
    combined = uncertainty * 0.6 + category_vol * 0.4
    if combined < 0.3:
        score = 2
    elif combined < 0.5:
        score = 4
    elif combined < 0.7:
        score = 6
    else:
        score = 8
    return RiskMetric(
        score=score,
        details={
            "current_probability": f"{midpoint * 100:.1f}%",
            "uncertainty_factor": f"{uncertainty * 100:.0f}%",
            "category_volatility": category_vol,
            "combined_volatility": combined,
            "note": (
                "High uncertainty - price could move significantly"
                if 0.4 < midpoint < 0.6
                else "More certain outcome - lower expected volatility"
            ),
        },
    )


def concentration_risk(market: UnifiedMarket) -> RiskMetric:
    total, oi = market.liquidity.total_volume, market.liquidity.open_interest
    if total > 1_000_000 and oi > 100_000:
        score = 2
    elif total > 100_000 and oi > 10_000:
        score = 4
    elif total > 10_000:
        score = 6
    else:
        score = 8
    return RiskMetric(
        score=score,
        details={
            "total_volume": total,
            "open_interest": oi,
            "note": (
                "Small market - individual positions may impact price"
                if total < 10_000
                else "Adequate market depth for position sizing"
            ),
            "recommended_max_exposure": "10% of portfolio",
        },
    )


def time_risk(market: UnifiedMarket, now: datetime | None = None) -> RiskMetric:
    days = market.days_to_expiry(now)
    _, score, note, action = TIME_BUCKETS[time_bucket(days)]
    return RiskMetric(
        score=score,
        details={
            "days_to_expiry": days,
            "expiration_date": market.market.expiration_time.isoformat(),
            "note": note,
            "recommended_action": action,
        },
    )


def overall_risk(axes: dict[str, RiskMetric]) -> float:
    return sum(axes[name].score * w for name, w in AXIS_WEIGHTS.items()) / 10


def assess(market: UnifiedMarket, now: datetime | None = None, ceiling: float = POSITION_CEILING) -> RiskAssessment:
    axes = {
        "liquidity": liquidity_risk(market, ceiling),
        "settlement": settlement_risk(market),
        "volatility": volatility_risk(market),
        "concentration": concentration_risk(market),
        "time": time_risk(market, now),
    }
    factors = [RISK_FACTOR_TEXT[name] for name, metric in axes.items() if metric.level == RiskLevel.HIGH]
    return RiskAssessment(**axes, overall_risk=overall_risk(axes), risk_factors=factors)


def risk_summary(assessment: RiskAssessment) -> str:
    high = [name for name, metric in assessment.axes().items() if metric.level == RiskLevel.HIGH]
    if not high:
        return "Overall risk profile is acceptable. Standard position sizing recommended."
    if len(high) <= 2:
        return f"Elevated risk in: {', '.join(high)}. Consider reduced position size."
    return f"High risk market. Significant concerns in: {', '.join(high)}. Proceed with caution."


def size_position(
    risk: RiskAssessment,
    edge: float,
    confidence: float,
    bankroll: float,
    price: float | None = None,
    probability: float | None = None,
) -> PositionSizing:
    """Kelly stake scaled by confidence squared and risk, capped by liquidity.

    With a price (the chosen side's cost), odds are 1/price - 1 and the win
    probability is that side's fair value: probability when given, else
    price + edge. Without a price both come from 0.5 + edge/2.
    """
    bankroll = max(0.0, bankroll)
    if price is not None and 0 < price < 1:
        basis = price
        p = probability if probability is not None else price + edge
    else:
        p = 0.5 + edge / 2
        basis = p
    p = max(0.0, min(1.0, p))
    if basis <= 0 or basis >= 1:
        raw_kelly = 0.0
    else:
        b = 1 / basis - 1
        raw_kelly = max(0.0, (b * p - (1 - p)) / b)
    confidence = max(0.0, min(1.0, confidence))
    adjusted = min(1.0, raw_kelly * confidence**2 * (1 - risk.overall_risk * 0.5))
    cap = max(0.0, float(risk.liquidity.details.get("max_recommended_position", POSITION_CEILING)))
    full = bankroll * adjusted
    maximum = min(full, cap, bankroll)
    recommended = min(full / 2, maximum)
    conservative = min(full / 4, recommended)
    return PositionSizing(
        recommended=round(recommended, 2),
        maximum=round(maximum, 2),
        conservative_unit=round(conservative, 2),
        kelly_fraction=adjusted,
    )


class RiskAssessor:
    """Stateless facade over the axis scorers, carrying the position ceiling."""

    def __init__(self, position_ceiling: float = POSITION_CEILING):
        self.position_ceiling = position_ceiling

    def assess(self, market: UnifiedMarket, now: datetime | None = None) -> RiskAssessment:
        return assess(market, now, self.position_ceiling)

    def size_position(
        self,
        risk: RiskAssessment,
        edge: float,
        confidence: float,
        bankroll: float,
        price: float | None = None,
        probability: float | None = None,
    ) -> PositionSizing:
        return size_position(risk, edge, confidence, bankroll, price, probability)

    def summary(self, assessment: RiskAssessment) -> str:
        return risk_summary(assessment)
