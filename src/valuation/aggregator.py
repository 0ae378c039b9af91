from __future__ import annotations

import asyncio
import time
from datetime import date
from typing import Dict, List, Optional, Protocol

from core.config import Settings, get_settings
from core.logging import get_logger
from core.models import Fixture, OddsQuote, ValuedFixture
from monitoring.prometheus_exporter import record_aggregation, record_league_failure
from providers.odds.odds_provider_stub import NoOddsProvider, OddsProvider
from .outcome import compute_outcome_probabilities
from .trend import classify_trend
from .value import compute_value_score
from .xg_resolver import XGResolver

logger = get_logger("valuation.aggregator")


class FixturesSource(Protocol):
    async def fetch_scheduled(self, league: str, competition_id: int, day: date) -> List[Fixture]:
        ...


class FixtureAggregator:
    """
    Fan-out per lega e per fixture, tollerante ai fallimenti parziali.

    Una lega il cui provider fallisce viene loggata e saltata; l'aggregato
    finale e' ordinato per kickoff crescente (poi id), mai per ordine di arrivo.
    """

    def __init__(
        self,
        fixtures_source: FixturesSource,
        resolver: XGResolver,
        odds_provider: Optional[OddsProvider] = None,
        settings: Optional[Settings] = None,
        leagues: Optional[Dict[str, int]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._source = fixtures_source
        self._resolver = resolver
        self._odds = odds_provider or NoOddsProvider()
        self._leagues = dict(leagues if leagues is not None else self._settings.leagues)

    @property
    def leagues(self) -> Dict[str, int]:
        return dict(self._leagues)

    async def _fetch_league(self, league: str, competition_id: int, day: date) -> List[Fixture]:
        try:
            return await self._source.fetch_scheduled(league, competition_id, day)
        except Exception as exc:
            record_league_failure(league)
            logger.warning(
                "Lega saltata: %s",
                exc,
                extra={"league": league, "reason": exc.__class__.__name__},
            )
            return []

    async def _quote(self, fixture: Fixture) -> Optional[OddsQuote]:
        try:
            return await self._odds.quote(fixture)
        except Exception as exc:
            logger.warning("Quote non disponibili: %s", exc, extra={"fixture_id": fixture.fixture_id})
            return None

    async def value_fixture(self, fixture: Fixture) -> ValuedFixture:
        s = self._settings
        xg, odds = await asyncio.gather(self._resolver.resolve(fixture), self._quote(fixture))
        prob = compute_outcome_probabilities(xg.home, xg.away, max_goals=s.max_goals, goal_line=s.goal_line)
        value = compute_value_score(prob, odds)
        trend = classify_trend(
            prob,
            value,
            value_threshold=s.trend_value_threshold,
            draw_gap=s.trend_draw_gap,
        )
        return ValuedFixture(fixture=fixture, xg=xg, prob=prob, value=value, trend=trend, odds=odds)

    async def _value_league(self, league: str, competition_id: int, day: date) -> List[ValuedFixture]:
        fixtures = await self._fetch_league(league, competition_id, day)
        if not fixtures:
            return []
        results = await asyncio.gather(
            *(self.value_fixture(fx) for fx in fixtures),
            return_exceptions=True,
        )
        valued: List[ValuedFixture] = []
        for fx, res in zip(fixtures, results):
            if isinstance(res, asyncio.CancelledError):
                raise res
            if isinstance(res, BaseException):
                logger.error("Fixture scartata: %s", res, extra={"league": league, "fixture_id": fx.fixture_id})
                continue
            valued.append(res)
        return valued

    async def aggregate(self, day: date) -> List[ValuedFixture]:
        start = time.perf_counter()
        per_league = await asyncio.gather(
            *(self._value_league(name, cid, day) for name, cid in self._leagues.items())
        )
        merged: List[ValuedFixture] = [vf for chunk in per_league for vf in chunk]
        # id duplicati (stessa partita in due competizioni configurate): vince la prima
        seen: Dict[int, ValuedFixture] = {}
        for vf in merged:
            seen.setdefault(vf.fixture.fixture_id, vf)
        result = sorted(seen.values(), key=lambda vf: (vf.fixture.kickoff, vf.fixture.fixture_id))

        latency_ms = (time.perf_counter() - start) * 1000
        record_aggregation(len(result), latency_ms)
        logger.info(
            "aggregation_done day=%s",
            day.isoformat(),
            extra={"count": len(result), "latency_ms": round(latency_ms, 1)},
        )
        return result


__all__ = ["FixtureAggregator", "FixturesSource"]
