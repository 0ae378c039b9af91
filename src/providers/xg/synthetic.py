from __future__ import annotations

import random
from typing import Optional, Tuple

from core.config import Settings, get_settings
from core.models import ExpectedGoals, Fixture, XG_SOURCE_SYNTHETIC


class SyntheticXGProvider:
    """
    Ultimo anello della catena: xG generati in un intervallo plausibile,
    con range away leggermente piu' basso (vantaggio campo generico).
    Non puo' fallire.
    """

    name = XG_SOURCE_SYNTHETIC

    def __init__(
        self,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        settings = settings or get_settings()
        self._home_range: Tuple[float, float] = settings.synthetic_home_xg_range
        self._away_range: Tuple[float, float] = settings.synthetic_away_xg_range
        self._rng = rng or random.Random()

    def generate(self) -> ExpectedGoals:
        home = round(self._rng.uniform(*self._home_range), 2)
        away = round(self._rng.uniform(*self._away_range), 2)
        return ExpectedGoals(home=max(home, 0.01), away=max(away, 0.01), source=XG_SOURCE_SYNTHETIC)

    async def lookup(self, fixture: Fixture) -> ExpectedGoals:
        return self.generate()


__all__ = ["SyntheticXGProvider"]
