from __future__ import annotations

import random
from typing import Optional, Protocol

from core.logging import get_logger
from core.models import Fixture, OddsQuote

logger = get_logger("providers.odds.stub")


class OddsProvider(Protocol):
    async def quote(self, fixture: Fixture) -> Optional[OddsQuote]:
        ...


class NoOddsProvider:
    """Nessuna quota: il value diventa un segnale di ranking (probabilita' nuda)."""

    async def quote(self, fixture: Fixture) -> Optional[OddsQuote]:
        return None


class StubOddsProvider:
    """
    Provider stub:
    - quote pseudo-random negli intervalli tipici 1X2 / Over-Under 2.5
    - seed derivato dal fixture_id: stessa partita -> stesse quote tra ricalcoli
    NOTA: NON rappresenta odds reali, serve solo a esercitare il calcolo EV.
    """

    source = "stub"

    def __init__(self, seed: int = 0) -> None:
        self._seed = seed

    async def quote(self, fixture: Fixture) -> Optional[OddsQuote]:
        rng = random.Random(self._seed * 1_000_003 + fixture.fixture_id)

        def pick(lo: float, span: float) -> float:
            return round(lo + rng.random() * span, 2)

        return OddsQuote(
            home=pick(1.6, 1.6),
            draw=pick(2.0, 1.5),
            away=pick(1.7, 1.6),
            over=pick(1.7, 0.7),
            under=pick(1.8, 0.7),
            source=self.source,
        )


def build_odds_provider(name: str) -> OddsProvider:
    if name == "stub":
        return StubOddsProvider()
    if name != "none":
        logger.warning("Provider odds '%s' non supportato, fallback 'none'.", name)
    return NoOddsProvider()


__all__ = ["OddsProvider", "NoOddsProvider", "StubOddsProvider", "build_odds_provider"]
