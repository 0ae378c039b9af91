import asyncio
import json

import httpx
import pytest

from providers.exceptions import NoMatchFound, ScrapeStructureNotFound
from providers.http_client import AsyncHttpClient
from providers.xg.understat import (
    UnderstatXGProvider,
    _unescape_js,
    find_match_xg,
    names_match,
    parse_embedded_matches,
    team_slug,
)

DATES_DATA = [
    {
        "id": "26602",
        "isResult": True,
        "h": {"id": "89", "title": "Manchester United", "short_title": "MUN"},
        "a": {"id": "228", "title": "Fulham", "short_title": "FLH"},
        "goals": {"h": "1", "a": "0"},
        "xG": {"h": "2.43111", "a": "0.430289"},
        "datetime": "2024-08-16 19:00:00",
    },
    {
        "id": "26610",
        "isResult": True,
        "h": {"id": "220", "title": "Brighton", "short_title": "BRI"},
        "a": {"id": "89", "title": "Manchester United", "short_title": "MUN"},
        "goals": {"h": "2", "a": "1"},
        "xG": {"h": "1.52", "a": "1.18"},
        "datetime": "2024-08-24 11:30:00",
    },
]


def _js_escaped(obj):
    raw = json.dumps(obj)
    return "".join("\\x%02X" % ord(c) if c in '"[]{}:,' else c for c in raw)


def _team_page(data):
    return (
        "<html><head><script src='/js/app.js'></script></head><body>"
        "<script>\n var datesData\t= JSON.parse('" + _js_escaped(data) + "');\n</script>"
        "</body></html>"
    )


def test_unescape_js_sequenze():
    assert _unescape_js(r"Saint\x2DEtienne é l\'a \"q\"") == "Saint-Etienne é l'a \"q\""


def test_parse_embedded_matches():
    matches = parse_embedded_matches(_team_page(DATES_DATA))
    assert len(matches) == 2
    assert matches[0]["h"]["title"] == "Manchester United"


def test_parse_blob_assente():
    with pytest.raises(ScrapeStructureNotFound):
        parse_embedded_matches("<html><script>var x = 1;</script></html>")


def test_parse_blob_non_lista():
    with pytest.raises(ScrapeStructureNotFound):
        parse_embedded_matches(_team_page({"id": "1"}))


def test_team_slug_e_names_match():
    assert team_slug("Manchester United FC") == "Manchester_United"
    assert team_slug("AFC Bournemouth") == "Bournemouth"
    assert names_match("Manchester United FC", "Manchester United")
    assert names_match("Arsenal", "Chelsea") is False
    assert names_match("Atlético Madrid", "Atletico Madrid")


def test_find_match_per_sottostringa_e_data():
    xg = find_match_xg(DATES_DATA, "Manchester United FC", "Fulham FC", "2024-08-16")
    assert (xg.home, xg.away) == (2.43, 0.43)
    assert xg.source == "secondary"


def test_find_match_chiavi_piatte():
    flat = [{"h_team": "Lazio", "a_team": "Roma", "h_xG": 1.234, "a_xG": "0.9", "date": "2024-09-01"}]
    xg = find_match_xg(flat, "SS Lazio", "AS Roma", "2024-09-01")
    assert (xg.home, xg.away) == (1.23, 0.9)


def test_find_match_data_diversa():
    with pytest.raises(NoMatchFound):
        find_match_xg(DATES_DATA, "Manchester United", "Fulham", "2024-08-17")


def test_find_match_nessuna_corrispondenza():
    with pytest.raises(NoMatchFound):
        find_match_xg(DATES_DATA, "Arsenal", "Chelsea", "2024-08-16")


def test_lookup_fallback_pagina_trasferta(settings, make_fixture):
    requested = []

    def handler(request):
        requested.append(request.url.path)
        if request.url.path == "/team/Manchester_United":
            return httpx.Response(404, text="not found")
        if request.url.path == "/team/Fulham":
            return httpx.Response(200, text=_team_page(DATES_DATA))
        return httpx.Response(500)

    http = AsyncHttpClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)), settings=settings)
    provider = UnderstatXGProvider(http, settings)
    fixture = make_fixture(home="Manchester United FC", away="Fulham FC", kickoff="2024-08-16T19:00:00Z")
    xg = asyncio.run(provider.lookup(fixture))

    assert requested == ["/team/Manchester_United", "/team/Fulham"]
    assert (xg.home, xg.away, xg.source) == (2.43, 0.43, "secondary")


def test_lookup_fallisce_su_entrambe_le_pagine(settings, make_fixture):
    http = AsyncHttpClient(
        httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, text="<html></html>"))),
        settings=settings,
    )
    provider = UnderstatXGProvider(http, settings)
    with pytest.raises(NoMatchFound):
        asyncio.run(provider.lookup(make_fixture()))


def test_alias_squadra_da_configurazione(env):
    env.setenv("UNDERSTAT_TEAM_ALIASES", "Wolverhampton Wanderers FC=Wolverhampton_Wanderers")
    from core.config import get_settings

    settings = get_settings()
    provider = UnderstatXGProvider(http=None, settings=settings)
    assert provider.team_url("Wolverhampton Wanderers FC") == "https://understat.test/team/Wolverhampton_Wanderers"
    assert provider.team_url("Newcastle United FC") == "https://understat.test/team/Newcastle_United"


def test_xg_arrotondato_a_zero_passa_alla_pagina_trasferta(settings, make_fixture):
    tiny = [dict(DATES_DATA[0], xG={"h": "0.004", "a": "0.61"})]
    requested = []

    def handler(request):
        requested.append(request.url.path)
        data = tiny if request.url.path == "/team/Manchester_United" else DATES_DATA
        return httpx.Response(200, text=_team_page(data))

    http = AsyncHttpClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)), settings=settings)
    provider = UnderstatXGProvider(http, settings)
    fixture = make_fixture(home="Manchester United FC", away="Fulham FC", kickoff="2024-08-16T19:00:00Z")
    xg = asyncio.run(provider.lookup(fixture))

    assert requested == ["/team/Manchester_United", "/team/Fulham"]
    assert (xg.home, xg.away) == (2.43, 0.43)


def test_xg_fuori_scala_scartato():
    huge = [dict(DATES_DATA[0], xG={"h": "800", "a": "0.61"})]
    with pytest.raises(NoMatchFound):
        find_match_xg(huge, "Manchester United", "Fulham", "2024-08-16")
    xg = find_match_xg(huge, "Manchester United", "Fulham", "2024-08-16", max_xg=1000.0)
    assert xg.home == 800.0
