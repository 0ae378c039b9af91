from __future__ import annotations

import random
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from core.cache import ResultCache
from core.config import Settings, get_settings
from core.logging import get_logger
from core.models import ValuedFixture
from monitoring.prometheus_exporter import record_cache
from providers.football_data.fixtures_provider import FootballDataFixturesProvider
from providers.http_client import AsyncHttpClient
from providers.odds.odds_provider_stub import build_odds_provider
from providers.xg.external_provider import ExternalXGProvider
from providers.xg.synthetic import SyntheticXGProvider
from providers.xg.understat import UnderstatXGProvider
from .aggregator import FixtureAggregator
from .rankings import top_by_over, top_by_value
from .xg_resolver import XGLookup, XGResolver

logger = get_logger("valuation.service")


def _today_utc() -> date:
    return datetime.now(timezone.utc).date()


def cache_key_for(day: Optional[date]) -> str:
    # senza data la chiave e' la data UTC corrente: a mezzanotte cambia chiave
    return (day or _today_utc()).isoformat()


def empty_response(error: Optional[str] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"response": [], "top7Value": [], "top5Over25": []}
    if error:
        payload["error"] = error
    return payload


class GamesService:
    """Punto di ingresso delle richieste: cache -> (miss) aggregatore -> classifiche."""

    def __init__(
        self,
        aggregator: FixtureAggregator,
        cache: ResultCache,
        settings: Optional[Settings] = None,
    ) -> None:
        self._aggregator = aggregator
        self._cache = cache
        self._settings = settings or get_settings()

    @property
    def cache(self) -> ResultCache:
        return self._cache

    async def valued_fixtures(self, day: Optional[date] = None) -> Tuple[ValuedFixture, ...]:
        target = day or _today_utc()
        key = cache_key_for(target)
        computed = False

        async def _compute() -> List[ValuedFixture]:
            nonlocal computed
            computed = True
            return await self._aggregator.aggregate(target)

        entry = await self._cache.get_or_compute(key, _compute)
        record_cache(hit=not computed)
        return entry.fixtures

    async def get_games(self, day: Optional[date] = None) -> Dict[str, Any]:
        try:
            fixtures = await self.valued_fixtures(day)
        except Exception as exc:
            logger.error("Aggregazione fallita: %s", exc, extra={"cache_key": cache_key_for(day)})
            return empty_response(str(exc))

        s = self._settings
        return {
            "response": [vf.to_dict() for vf in fixtures],
            "top7Value": [vf.to_dict() for vf in top_by_value(fixtures, s.top_value_count)],
            "top5Over25": [vf.to_dict() for vf in top_by_over(fixtures, s.top_over_count)],
        }


def build_resolver(
    http: AsyncHttpClient,
    settings: Settings,
    rng: Optional[random.Random] = None,
) -> XGResolver:
    steps: List[Tuple[str, XGLookup]] = []
    if settings.xg_api_url:
        steps.append(("primary", ExternalXGProvider(http, settings).lookup))
    if settings.enable_understat:
        steps.append(("secondary", UnderstatXGProvider(http, settings).lookup))
    steps.append(("synthetic", SyntheticXGProvider(settings, rng=rng).lookup))
    return XGResolver(steps)


def build_games_service(
    http: AsyncHttpClient,
    settings: Optional[Settings] = None,
    cache: Optional[ResultCache] = None,
) -> GamesService:
    settings = settings or get_settings()
    aggregator = FixtureAggregator(
        fixtures_source=FootballDataFixturesProvider(http, settings),
        resolver=build_resolver(http, settings),
        odds_provider=build_odds_provider(settings.odds_provider),
        settings=settings,
    )
    return GamesService(
        aggregator=aggregator,
        cache=cache or ResultCache(ttl_seconds=settings.cache_ttl_seconds),
        settings=settings,
    )


__all__ = [
    "GamesService",
    "build_games_service",
    "build_resolver",
    "cache_key_for",
    "empty_response",
]
