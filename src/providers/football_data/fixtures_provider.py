from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from core.config import Settings, get_settings
from core.logging import get_logger
from core.models import Fixture, parse_kickoff
from providers.exceptions import MalformedPayload
from providers.http_client import AsyncHttpClient
from .crests import team_logo

logger = get_logger("providers.football_data")

# chiavi note sotto cui i diversi provider annidano l'array delle partite
_PAYLOAD_SHAPES = ("matches", "response", "data")


def extract_matches(payload: Any) -> List[Dict[str, Any]]:
    """
    Estrae l'array di partite provando le forme note in ordine.
    Solleva MalformedPayload se nessuna forma corrisponde.
    """
    if isinstance(payload, list):
        return [m for m in payload if isinstance(m, dict)]
    if isinstance(payload, dict):
        for key in _PAYLOAD_SHAPES:
            items = payload.get(key)
            if isinstance(items, list):
                return [m for m in items if isinstance(m, dict)]
    shape = sorted(payload.keys()) if isinstance(payload, dict) else type(payload).__name__
    raise MalformedPayload(f"Payload fixtures senza array partite (forme attese {_PAYLOAD_SHAPES}, trovato {shape})")


def _team(block: Any) -> Dict[str, Any]:
    return block if isinstance(block, dict) else {}


def normalize_match(m: Dict[str, Any], league: str) -> Optional[Fixture]:
    """
    Converte un record grezzo in Fixture. Supporta:
      - football-data v4: id, utcDate, homeTeam{name, shortName, crest}
      - API-Football:      fixture{id, date}, teams{home{name, logo}}
    Ritorna None se mancano id o data.
    """
    if "fixture" in m and isinstance(m.get("fixture"), dict):
        fx = m["fixture"]
        teams = _team(m.get("teams"))
        home, away = _team(teams.get("home")), _team(teams.get("away"))
        raw_id, raw_date = fx.get("id"), fx.get("date")
        home_crest, away_crest = home.get("logo"), away.get("logo")
    else:
        home, away = _team(m.get("homeTeam")), _team(m.get("awayTeam"))
        raw_id, raw_date = m.get("id"), m.get("utcDate")
        home_crest, away_crest = home.get("crest"), away.get("crest")

    try:
        fixture_id = int(raw_id)
        kickoff = parse_kickoff(str(raw_date))
    except (TypeError, ValueError):
        return None

    home_name = home.get("name") or home.get("shortName") or "Home"
    away_name = away.get("name") or away.get("shortName") or "Away"
    return Fixture(
        fixture_id=fixture_id,
        kickoff=kickoff,
        league=league,
        home_team=home_name,
        away_team=away_name,
        home_crest=team_logo(home_name, home_crest),
        away_crest=team_logo(away_name, away_crest),
    )


class FootballDataFixturesProvider:
    """
    Partite programmate per competizione da football-data.org (v4).
    Header X-Auth-Token dalla configurazione.
    """

    def __init__(self, http: AsyncHttpClient, settings: Optional[Settings] = None) -> None:
        self._http = http
        self._settings = settings or get_settings()

    def _headers(self) -> Dict[str, str]:
        return {"X-Auth-Token": self._settings.football_data_key, "Accept": "application/json"}

    async def fetch_scheduled(
        self,
        league: str,
        competition_id: int,
        day: date,
        window_days: Optional[int] = None,
    ) -> List[Fixture]:
        days = max(1, window_days or self._settings.fixture_window_days)
        params = {
            "status": "SCHEDULED",
            "dateFrom": day.isoformat(),
            "dateTo": (day + timedelta(days=days - 1)).isoformat(),
        }
        url = f"{self._settings.football_data_base_url}/competitions/{competition_id}/matches"
        payload, fetch_stats = await self._http.get_json_with_stats(url, params=params, headers=self._headers())
        raw = extract_matches(payload)

        fixtures: List[Fixture] = []
        skipped = 0
        for m in raw:
            fx = normalize_match(m, league)
            if fx is None:
                skipped += 1
                continue
            fixtures.append(fx)
        if skipped:
            logger.warning("Record fixture scartati (id/data mancanti): %s", skipped, extra={"league": league})
        logger.info(
            "fixtures_fetched",
            extra={"league": league, "count": len(fixtures), "fetch_stats": fetch_stats},
        )
        return fixtures


__all__ = ["FootballDataFixturesProvider", "extract_matches", "normalize_match"]
