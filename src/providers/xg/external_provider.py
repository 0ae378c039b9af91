from __future__ import annotations

import math
from typing import Any, Dict, Optional

from core.config import Settings, get_settings
from core.models import ExpectedGoals, Fixture, XG_SOURCE_PRIMARY
from providers.exceptions import MalformedPayload, ProviderError
from providers.http_client import AsyncHttpClient


def _positive_number(payload: Dict[str, Any], key: str, cap: float) -> float:
    v = payload.get(key)
    # bool e' sottoclasse di int: va escluso esplicitamente
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise MalformedPayload(f"Campo {key} assente o non numerico: {v!r}")
    f = float(v)
    if not math.isfinite(f) or f <= 0:
        raise MalformedPayload(f"Campo {key} deve essere > 0: {v!r}")
    if f > cap:
        raise MalformedPayload(f"Campo {key} fuori scala (max {cap}): {v!r}")
    return f


class ExternalXGProvider:
    """
    Provider xG strutturato opzionale (XG_API_URL).
    GET {XG_API_URL}?home=..&away=..&date=YYYY-MM-DD -> {"homeXG": n, "awayXG": n}
    Con XG_API_KEY aggiunge Authorization: Bearer.
    """

    name = XG_SOURCE_PRIMARY

    def __init__(self, http: AsyncHttpClient, settings: Optional[Settings] = None) -> None:
        self._http = http
        self._settings = settings or get_settings()

    @property
    def enabled(self) -> bool:
        return bool(self._settings.xg_api_url)

    async def lookup(self, fixture: Fixture) -> ExpectedGoals:
        if not self._settings.xg_api_url:
            raise ProviderError("XG_API_URL non configurata")
        headers: Dict[str, str] = {"Accept": "application/json"}
        if self._settings.xg_api_key:
            headers["Authorization"] = f"Bearer {self._settings.xg_api_key}"
        params = {
            "home": fixture.home_team,
            "away": fixture.away_team,
            "date": fixture.match_date,
        }
        payload = await self._http.get_json(
            self._settings.xg_api_url,
            params=params,
            headers=headers,
            max_attempts=1,
        )
        if not isinstance(payload, dict):
            raise MalformedPayload(f"Risposta xG non e' un oggetto: {type(payload).__name__}")
        return ExpectedGoals(
            home=_positive_number(payload, "homeXG", self._settings.xg_max_value),
            away=_positive_number(payload, "awayXG", self._settings.xg_max_value),
            source=XG_SOURCE_PRIMARY,
        )


__all__ = ["ExternalXGProvider"]
