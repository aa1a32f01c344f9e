"""Market categorization: ordered (keyword set -> MarketCategory) rules."""

from __future__ import annotations

import re
from functools import lru_cache

from predictmax.models import MarketCategory

# Source category substrings, checked first.
SOURCE_CATEGORY_KEYWORDS: list[tuple[tuple[str, ...], MarketCategory]] = [
    (("sport", "nba", "nfl", "mlb", "nhl", "tennis", "soccer"), MarketCategory.SPORTS),
    (("politic", "election"), MarketCategory.POLITICS),
    (("crypto",), MarketCategory.CRYPTO),
    (("econom", "gdp", "unemploy", "inflation"), MarketCategory.ECONOMICS),
    (("financ", "compan", "stock"), MarketCategory.FINANCE),
    (("weather", "climate"), MarketCategory.WEATHER),
]

# Title rules, evaluated in order; first match wins. Generic sports action
# words come last so "win the election" is politics, not sports.
TITLE_RULES: list[tuple[tuple[str, ...], MarketCategory]] = [
    (
        (
            "atp", "wta", "tennis", "wimbledon", "us open", "australian open", "french open",
            "roland garros", "grand slam",
        ),
        MarketCategory.SPORTS,
    ),
    (("nba", "basketball", "lakers", "celtics", "warriors", "nets", "bucks"), MarketCategory.SPORTS),
    (
        ("nfl", "football", "touchdown", "quarterback", "chiefs", "cowboys", "49ers", "patriots", "ravens"),
        MarketCategory.SPORTS,
    ),
    (("nhl", "hockey", "puck", "stanley cup"), MarketCategory.SPORTS),
    (("mlb", "baseball", "yankees", "dodgers", "red sox", "world series"), MarketCategory.SPORTS),
    (("super bowl", "championship", "playoff", "playoffs"), MarketCategory.SPORTS),
    (
        (
            "election", "president", "senate", "congress", "governor", "vote", "poll", "trump",
            "biden", "democrat", "republican", "deport", "deportations",
        ),
        MarketCategory.POLITICS,
    ),
    (("bitcoin", "btc", "ethereum", "eth", "crypto", "solana", "sol", "doge", "blockchain"), MarketCategory.CRYPTO),
    (
        ("fed", "interest rate", "inflation", "gdp", "unemployment", "jobs report", "cpi", "recession"),
        MarketCategory.ECONOMICS,
    ),
    (("temperature", "weather", "hurricane", "rainfall", "snowfall"), MarketCategory.WEATHER),
    (("oscar", "oscars", "grammy", "emmy", "box office", "movie", "album", "billboard"), MarketCategory.ENTERTAINMENT),
    (("nasa", "spacex", "launch", "asteroid", "vaccine", "fda approval"), MarketCategory.SCIENCE),
    (("s&p", "nasdaq", "dow jones", "stock", "ipo", "earnings", "market cap"), MarketCategory.FINANCE),
    (("win", "beat", "vs", "v.", "game", "match", "score", "points", "team", "player"), MarketCategory.SPORTS),
]

# Direct mapping for exact (case-insensitive) source category strings.
SOURCE_CATEGORY_TABLE: dict[str, MarketCategory] = {
    "sports": MarketCategory.SPORTS,
    "politics": MarketCategory.POLITICS,
    "crypto": MarketCategory.CRYPTO,
    "economics": MarketCategory.ECONOMICS,
    "weather": MarketCategory.WEATHER,
    "climate and weather": MarketCategory.WEATHER,
    "entertainment": MarketCategory.ENTERTAINMENT,
    "culture": MarketCategory.ENTERTAINMENT,
    "science": MarketCategory.SCIENCE,
    "science and technology": MarketCategory.SCIENCE,
    "finance": MarketCategory.FINANCE,
    "financials": MarketCategory.FINANCE,
}

TAG_RULES: list[tuple[tuple[str, ...], str]] = [
    (("tennis", "atp", "wta"), "tennis"),
    (("nba", "basketball"), "basketball"),
    (("nfl", "football"), "football"),
    (("mlb", "baseball"), "baseball"),
    (("bitcoin", "btc"), "bitcoin"),
    (("election", "president"), "election"),
]


@lru_cache(maxsize=None)
def _pattern(keyword: str) -> re.Pattern[str]:
    # Word boundaries only where the keyword edge is a word character ("v." ends in punctuation)
    left = r"\b" if keyword[0].isalnum() else ""
    right = r"\b" if keyword[-1].isalnum() else ""
    return re.compile(left + re.escape(keyword) + right)


def contains_keyword(text: str, keywords: tuple[str, ...]) -> bool:
    """True if any keyword appears in text as a whole word or phrase (text lower-cased)."""
    return any(_pattern(k).search(text) for k in keywords)


def categorize(title: str, existing_category: str | None = None) -> MarketCategory:
    """Map a market title and optional source category onto the fixed taxonomy."""
    if existing_category:
        cat = existing_category.lower()
        for needles, category in SOURCE_CATEGORY_KEYWORDS:
            if any(n in cat for n in needles):
                return category

    lower = (title or "").lower()
    for keywords, category in TITLE_RULES:
        if contains_keyword(lower, keywords):
            return category

    if existing_category:
        return SOURCE_CATEGORY_TABLE.get(existing_category.strip().lower(), MarketCategory.OTHER)
    return MarketCategory.OTHER


def extract_tags(title: str) -> list[str]:
    lower = (title or "").lower()
    return [tag for keywords, tag in TAG_RULES if contains_keyword(lower, keywords)]
