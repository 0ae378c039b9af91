"""
Arricchimento xG da pagine squadra Understat.

La pagina squadra contiene uno <script> con:
    var datesData = JSON.parse('\\x5B\\x7B\\x22id\\x22 ...');
cioe' un letterale JSON incorporato come stringa JS con escape
(\\xHH, \\uHHHH, \\', \\", \\\\). La struttura dipende dall'HTML interno della
pagina: un errore di parsing qui e' un caso atteso e viene tradotto in
ScrapeStructureNotFound / NoMatchFound, mai propagato oltre il resolver.
"""
from __future__ import annotations

import json
import math
import re
import unicodedata
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from core.config import Settings, get_settings
from core.logging import get_logger
from core.models import ExpectedGoals, Fixture, XG_SOURCE_SECONDARY
from providers.exceptions import NoMatchFound, ProviderError, ScrapeStructureNotFound
from providers.http_client import AsyncHttpClient

logger = get_logger("providers.xg.understat")

_BLOB_RE = re.compile(r"(?:matchesData|datesData)\s*=\s*JSON\.parse\(\s*'(.*?)'\s*\)", re.DOTALL)
_ESCAPE_RE = re.compile(r"\\(x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|.)", re.DOTALL)
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f"}

# token di forma societaria ignorati nel confronto nomi e nello slug
_NAME_NOISE = {"fc", "afc", "cf", "sc"}

_HOME_XG_KEYS = ("h_xG", "hxG", "h_xg", "home_xg", "h_xG_avg")
_AWAY_XG_KEYS = ("a_xG", "axG", "a_xg", "away_xg", "a_xG_avg")
_DATE_KEYS = ("date", "datetime", "formatted_date")


def _unescape_js(raw: str) -> str:
    def repl(m: "re.Match[str]") -> str:
        s = m.group(1)
        if len(s) == 3 and s[0] == "x":
            return chr(int(s[1:], 16))
        if len(s) == 5 and s[0] == "u":
            return chr(int(s[1:], 16))
        return _SIMPLE_ESCAPES.get(s, s)

    return _ESCAPE_RE.sub(repl, raw)


def parse_embedded_matches(html: str) -> List[Dict[str, Any]]:
    """Estrae la lista di partite dal blob JSON incorporato nella pagina."""
    soup = BeautifulSoup(html, "html.parser")
    for script in soup.find_all("script"):
        text = script.string or script.get_text() or ""
        m = _BLOB_RE.search(text)
        if not m:
            continue
        try:
            data = json.loads(_unescape_js(m.group(1)), strict=False)
        except ValueError as e:
            raise ScrapeStructureNotFound(f"Blob partite non parsabile: {e}") from e
        if not isinstance(data, list):
            raise ScrapeStructureNotFound(f"Blob partite non e' una lista: {type(data).__name__}")
        return [d for d in data if isinstance(d, dict)]
    raise ScrapeStructureNotFound("matchesData/datesData non trovato nella pagina")


def _strip_accents(value: str) -> str:
    return "".join(c for c in unicodedata.normalize("NFD", value) if unicodedata.category(c) != "Mn")


def normalize_team_name(name: str) -> str:
    words = re.split(r"[^a-z0-9]+", _strip_accents(name or "").lower())
    return " ".join(w for w in words if w and w not in _NAME_NOISE)


def team_slug(name: str) -> str:
    """'Manchester United FC' -> 'Manchester_United' (convenzione URL Understat)."""
    words = re.split(r"[^A-Za-z0-9]+", _strip_accents(name or ""))
    return "_".join(w for w in words if w and w.lower() not in _NAME_NOISE)


def names_match(a: str, b: str) -> bool:
    """Contenimento in entrambe le direzioni (i nomi variano tra le sorgenti)."""
    na, nb = normalize_team_name(a), normalize_team_name(b)
    if not na or not nb:
        return False
    return na in nb or nb in na


def _title(obj: Dict[str, Any], side: str) -> str:
    nested = obj.get(side)
    if isinstance(nested, dict) and nested.get("title"):
        return str(nested["title"])
    long_side = "home" if side == "h" else "away"
    for key in (f"{side}_team", long_side, f"{long_side}_title"):
        v = obj.get(key)
        if isinstance(v, str) and v:
            return v
    return ""


def _as_xg(value: Any, cap: float) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(f):
        return None
    # controllo dopo l'arrotondamento: 0.004 diventa 0.0
    f = round(f, 2)
    if f <= 0 or f > cap:
        return None
    return f


def _read_xg(obj: Dict[str, Any], side: str, cap: float) -> Optional[float]:
    nested = obj.get("xG")
    if isinstance(nested, dict) and nested.get(side) is not None:
        return _as_xg(nested.get(side), cap)
    keys = _HOME_XG_KEYS if side == "h" else _AWAY_XG_KEYS
    for key in keys:
        if obj.get(key) is not None:
            return _as_xg(obj.get(key), cap)
    return None


def _entry_date(obj: Dict[str, Any]) -> Optional[str]:
    for key in _DATE_KEYS:
        v = obj.get(key)
        if isinstance(v, str) and v:
            return v.replace("T", " ")[:10]
    return None


def find_match_xg(
    matches: List[Dict[str, Any]],
    home: str,
    away: str,
    match_date: Optional[str],
    max_xg: float = 10.0,
) -> ExpectedGoals:
    for obj in matches:
        obj_date = _entry_date(obj)
        if obj_date and match_date and not obj_date.startswith(match_date):
            continue
        if not (names_match(_title(obj, "h"), home) and names_match(_title(obj, "a"), away)):
            continue
        hx, ax = _read_xg(obj, "h", max_xg), _read_xg(obj, "a", max_xg)
        if hx is None or ax is None:
            continue
        return ExpectedGoals(home=hx, away=ax, source=XG_SOURCE_SECONDARY)
    raise NoMatchFound(f"Nessuna partita {home} - {away} ({match_date}) tra {len(matches)} record")


class UnderstatXGProvider:
    name = XG_SOURCE_SECONDARY

    def __init__(self, http: AsyncHttpClient, settings: Optional[Settings] = None) -> None:
        self._http = http
        self._settings = settings or get_settings()

    def team_url(self, team: str) -> str:
        slug = self._settings.understat_team_aliases.get(team.strip().lower()) or team_slug(team)
        if not slug:
            raise NoMatchFound(f"Slug vuoto per la squadra {team!r}")
        return f"{self._settings.understat_base_url}/team/{slug}"

    async def fetch_team_matches(self, team: str) -> List[Dict[str, Any]]:
        html = await self._http.get_text(self.team_url(team), max_attempts=1)
        return parse_embedded_matches(html)

    async def lookup(self, fixture: Fixture) -> ExpectedGoals:
        # prima la pagina della squadra di casa, poi quella in trasferta
        reasons: List[str] = []
        for team in (fixture.home_team, fixture.away_team):
            try:
                matches = await self.fetch_team_matches(team)
                return find_match_xg(
                    matches,
                    fixture.home_team,
                    fixture.away_team,
                    fixture.match_date,
                    max_xg=self._settings.xg_max_value,
                )
            except ProviderError as exc:
                reasons.append(f"{team}: {exc.__class__.__name__}")
                logger.debug("understat_miss team=%s reason=%s", team, exc, extra={"fixture_id": fixture.fixture_id})
        raise NoMatchFound("; ".join(reasons))


__all__ = [
    "UnderstatXGProvider",
    "parse_embedded_matches",
    "find_match_xg",
    "names_match",
    "team_slug",
]
