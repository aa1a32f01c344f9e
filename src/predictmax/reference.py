"""Static reference data: team aliases, player rankings and recent form.

Injected wherever lookups are needed so tests can substitute their own tables.
Values are fixed; nothing here is randomized.
"""

from __future__ import annotations

from typing import Mapping

TEAM_ALIASES: dict[str, list[str]] = {
    "lakers": ["los angeles lakers", "la lakers", "lal"],
    "celtics": ["boston celtics", "bos"],
    "warriors": ["golden state warriors", "golden state", "gsw"],
    "knicks": ["new york knicks", "nyk"],
    "chiefs": ["kansas city chiefs", "kansas city", "kc"],
    "eagles": ["philadelphia eagles", "philadelphia"],
    "49ers": ["san francisco 49ers", "niners", "sf"],
    "cowboys": ["dallas cowboys", "dallas"],
    "yankees": ["new york yankees", "nyy"],
    "dodgers": ["los angeles dodgers", "lad"],
    "bitcoin": ["btc"],
    "ethereum": ["eth", "ether"],
    "solana": ["sol"],
}

PLAYER_RANKINGS: dict[str, int] = {
    "jannik sinner": 1,
    "carlos alcaraz": 2,
    "alexander zverev": 3,
    "novak djokovic": 4,
    "taylor fritz": 5,
    "aryna sabalenka": 1,
    "iga swiatek": 2,
    "coco gauff": 3,
}

RECENT_FORM: dict[str, tuple[int, int]] = {
    "jannik sinner": (9, 1),
    "carlos alcaraz": (8, 2),
    "alexander zverev": (7, 3),
    "novak djokovic": (7, 3),
    "taylor fritz": (6, 4),
    "aryna sabalenka": (8, 2),
    "iga swiatek": (7, 3),
    "coco gauff": (6, 4),
}


class StaticReferenceData:
    """ReferenceDataProvider backed by in-memory tables."""

    def __init__(
        self,
        aliases: Mapping[str, list[str]] | None = None,
        rankings: Mapping[str, int] | None = None,
        form: Mapping[str, tuple[int, int]] | None = None,
    ) -> None:
        self._aliases = {k.lower(): [a.lower() for a in v] for k, v in (aliases if aliases is not None else TEAM_ALIASES).items()}
        self._rankings = {k.lower(): v for k, v in (rankings if rankings is not None else PLAYER_RANKINGS).items()}
        self._form = {k.lower(): v for k, v in (form if form is not None else RECENT_FORM).items()}

    def aliases(self, name: str) -> list[str]:
        """Known alternative names for name (not including name itself)."""
        key = name.lower().strip()
        if key in self._aliases:
            return list(self._aliases[key])
        # Reverse lookup: an alias maps back to its canonical name and siblings
        for canonical, alts in self._aliases.items():
            if key in alts:
                return [canonical] + [a for a in alts if a != key]
        return []

    def player_ranking(self, name: str) -> int | None:
        return self._rankings.get(name.lower().strip())

    def recent_form(self, name: str) -> tuple[int, int] | None:
        return self._form.get(name.lower().strip())
