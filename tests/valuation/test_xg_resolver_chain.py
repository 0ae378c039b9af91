import asyncio
import random

import pytest

from core.models import ExpectedGoals
from providers.exceptions import NoMatchFound, ProviderUnreachable
from providers.xg.synthetic import SyntheticXGProvider
from valuation.service import build_resolver
from valuation.xg_resolver import XGResolver, run_step


def _failing(exc):
    async def lookup(fixture):
        raise exc

    return lookup


def _returning(xg, calls=None):
    async def lookup(fixture):
        if calls is not None:
            calls.append(fixture.fixture_id)
        return xg

    return lookup


def test_catena_termina_sul_sintetico(settings, make_fixture):
    resolver = XGResolver(
        [
            ("primary", _failing(ProviderUnreachable("timeout"))),
            ("secondary", _failing(NoMatchFound("nessuna riga"))),
            ("synthetic", SyntheticXGProvider(settings, rng=random.Random(7)).lookup),
        ]
    )
    xg, trace = asyncio.run(resolver.resolve_with_trace(make_fixture()))
    assert xg.source == "synthetic"
    lo_h, hi_h = settings.synthetic_home_xg_range
    lo_a, hi_a = settings.synthetic_away_xg_range
    assert lo_h <= xg.home <= hi_h
    assert lo_a <= xg.away <= hi_a
    assert [r.step for r in trace] == ["primary", "secondary", "synthetic"]
    assert [r.ok for r in trace] == [False, False, True]
    assert "ProviderUnreachable" in trace[0].reason


def test_primo_successo_interrompe_la_catena(make_fixture):
    later_calls = []
    resolver = XGResolver(
        [
            ("primary", _returning(ExpectedGoals(1.9, 0.7, "primary"))),
            ("secondary", _returning(ExpectedGoals(1.0, 1.0, "secondary"), later_calls)),
        ]
    )
    xg = asyncio.run(resolver.resolve(make_fixture()))
    assert xg.source == "primary"
    assert later_calls == []


def test_errore_generico_diventa_failure(make_fixture):
    result = asyncio.run(run_step("secondary", _failing(KeyError("h")), make_fixture()))
    assert result.ok is False
    assert result.step == "secondary"


def test_catena_senza_successi_solleva(make_fixture):
    resolver = XGResolver([("primary", _failing(ProviderUnreachable("x")))])
    with pytest.raises(RuntimeError):
        asyncio.run(resolver.resolve(make_fixture()))


def test_catena_vuota_non_ammessa():
    with pytest.raises(ValueError):
        XGResolver([])


def test_build_resolver_passi_da_configurazione(env):
    from core.config import get_settings

    assert build_resolver(None, get_settings()).step_names == ["secondary", "synthetic"]

    env.setenv("XG_API_URL", "https://xg.test")
    env.setenv("ENABLE_UNDERSTAT", "false")
    from core.config import _reset_settings_cache_for_tests

    _reset_settings_cache_for_tests()
    assert build_resolver(None, get_settings()).step_names == ["primary", "synthetic"]
