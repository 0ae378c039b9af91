import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional, List, Tuple


DEFAULT_LEAGUES: Dict[str, int] = {
    "Premier League": 2021,
    "Bundesliga": 2002,
    "La Liga": 2014,
    "Serie A": 2019,
    "Ligue 1": 2015,
}


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    v = value.strip().lower()
    if v in {"0", "false", "no"}:
        return False
    return True


def _parse_list(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    parts = [p.strip() for p in value.split(",")]
    clean = [p for p in parts if p]
    return clean or None


def _parse_leagues(value: Optional[str]) -> Dict[str, int]:
    """
    Formato: "Premier League:2021,Serie A:2019".
    Il separatore nome/id e' l'ultimo ':' (i nomi possono contenerne).
    """
    items = _parse_list(value)
    if not items:
        return dict(DEFAULT_LEAGUES)
    out: Dict[str, int] = {}
    for item in items:
        name, sep, raw_id = item.rpartition(":")
        if not sep or not name.strip():
            raise ValueError(f"FOOTBALL_DATA_LEAGUES: voce non valida {item!r} (atteso Nome:id)")
        try:
            out[name.strip()] = int(raw_id)
        except ValueError as e:
            raise ValueError(f"FOOTBALL_DATA_LEAGUES: id non intero in {item!r}") from e
    return out


def _parse_aliases(value: Optional[str]) -> Dict[str, str]:
    # "Man United=manchester-united,Spurs=tottenham"
    out: Dict[str, str] = {}
    for item in _parse_list(value) or []:
        name, sep, slug = item.partition("=")
        if sep and name.strip() and slug.strip():
            out[name.strip().lower()] = slug.strip()
    return out


def _parse_range(name: str, value: Optional[str], default: Tuple[float, float]) -> Tuple[float, float]:
    if not value:
        return default
    lo_raw, sep, hi_raw = value.partition(",")
    try:
        lo, hi = float(lo_raw), float(hi_raw)
    except ValueError as e:
        raise ValueError(f"Variabile {name} deve essere 'min,max' (valore: {value!r})") from e
    if not sep or lo <= 0 or hi < lo:
        raise ValueError(f"Variabile {name}: intervallo non valido {value!r}")
    return lo, hi


@dataclass
class Settings:
    football_data_key: str
    football_data_base_url: str
    leagues: Dict[str, int]
    fixture_window_days: int
    log_level: str

    http_timeout: float
    http_max_attempts: int
    http_backoff_base: float
    http_backoff_factor: float
    http_backoff_jitter: float
    http_user_agent: str
    max_concurrent_requests: int

    cache_ttl_seconds: float

    xg_api_url: Optional[str]
    xg_api_key: Optional[str]
    enable_understat: bool
    understat_base_url: str
    understat_team_aliases: Dict[str, str]
    synthetic_home_xg_range: Tuple[float, float]
    synthetic_away_xg_range: Tuple[float, float]
    xg_max_value: float

    max_goals: int
    goal_line: float
    trend_value_threshold: float
    trend_draw_gap: float
    top_value_count: int
    top_over_count: int

    odds_provider: str

    enable_prometheus_exporter: bool

    @classmethod
    def from_env(cls) -> "Settings":
        key = os.getenv("FOOTBALL_DATA_API_KEY")
        if not key:
            raise ValueError(
                "FOOTBALL_DATA_API_KEY non impostata. Aggiungi a .env: FOOTBALL_DATA_API_KEY=LA_TUA_CHIAVE"
            )

        def _int(name: str, default: int) -> int:
            raw = os.getenv(name)
            if not raw:
                return default
            try:
                return int(raw)
            except ValueError as e:
                raise ValueError(f"Variabile {name} deve essere un intero (valore: {raw!r})") from e

        def _float(name: str, default: float) -> float:
            raw = os.getenv(name)
            if not raw:
                return default
            try:
                return float(raw)
            except ValueError as e:
                raise ValueError(f"Variabile {name} deve essere un numero (valore: {raw!r})") from e

        base_url = os.getenv("FOOTBALL_DATA_BASE_URL", "https://api.football-data.org/v4").rstrip("/")
        leagues = _parse_leagues(os.getenv("FOOTBALL_DATA_LEAGUES"))
        window_days = max(1, _int("FIXTURE_WINDOW_DAYS", 1))
        log_level = os.getenv("XGV_LOG_LEVEL", "INFO").upper()

        timeout = _float("HTTP_TIMEOUT", 10.0)
        max_attempts = max(1, _int("HTTP_MAX_ATTEMPTS", 3))
        backoff_base = _float("HTTP_BACKOFF_BASE", 0.5)
        backoff_factor = _float("HTTP_BACKOFF_FACTOR", 2.0)
        backoff_jitter = _float("HTTP_BACKOFF_JITTER", 0.2)
        user_agent = os.getenv("HTTP_USER_AGENT", "xg-value-tool/1.0")
        max_concurrent = max(1, _int("MAX_CONCURRENT_REQUESTS", 8))

        cache_ttl = _float("CACHE_TTL_SECONDS", 15 * 60.0)
        if cache_ttl < 0:
            cache_ttl = 0.0

        xg_api_url = os.getenv("XG_API_URL") or None
        xg_api_key = os.getenv("XG_API_KEY") or None
        enable_understat = _parse_bool(os.getenv("ENABLE_UNDERSTAT"), True)
        understat_base_url = os.getenv("UNDERSTAT_BASE_URL", "https://understat.com").rstrip("/")
        understat_team_aliases = _parse_aliases(os.getenv("UNDERSTAT_TEAM_ALIASES"))
        home_range = _parse_range("SYNTHETIC_HOME_XG_RANGE", os.getenv("SYNTHETIC_HOME_XG_RANGE"), (0.8, 2.4))
        away_range = _parse_range("SYNTHETIC_AWAY_XG_RANGE", os.getenv("SYNTHETIC_AWAY_XG_RANGE"), (0.6, 2.2))
        xg_max_value = _float("XG_MAX_VALUE", 10.0)
        if xg_max_value <= 0:
            raise ValueError(f"Variabile XG_MAX_VALUE deve essere > 0 (valore: {xg_max_value!r})")

        max_goals = _int("MAX_GOALS", 7)
        if max_goals < 3:
            max_goals = 7
        goal_line = _float("GOAL_LINE", 2.5)
        trend_value_threshold = _float("TREND_VALUE_THRESHOLD", 0.12)
        trend_draw_gap = _float("TREND_DRAW_GAP", 0.08)
        top_value_count = max(0, _int("TOP_VALUE_COUNT", 7))
        top_over_count = max(0, _int("TOP_OVER_COUNT", 5))

        odds_provider = os.getenv("ODDS_PROVIDER", "none").strip().lower()
        if odds_provider not in {"none", "stub"}:
            odds_provider = "none"

        enable_prometheus_exporter = _parse_bool(os.getenv("ENABLE_PROMETHEUS_EXPORTER"), True)

        return cls(
            football_data_key=key,
            football_data_base_url=base_url,
            leagues=leagues,
            fixture_window_days=window_days,
            log_level=log_level,
            http_timeout=timeout,
            http_max_attempts=max_attempts,
            http_backoff_base=backoff_base,
            http_backoff_factor=backoff_factor,
            http_backoff_jitter=backoff_jitter,
            http_user_agent=user_agent,
            max_concurrent_requests=max_concurrent,
            cache_ttl_seconds=cache_ttl,
            xg_api_url=xg_api_url,
            xg_api_key=xg_api_key,
            enable_understat=enable_understat,
            understat_base_url=understat_base_url,
            understat_team_aliases=understat_team_aliases,
            synthetic_home_xg_range=home_range,
            synthetic_away_xg_range=away_range,
            xg_max_value=xg_max_value,
            max_goals=max_goals,
            goal_line=goal_line,
            trend_value_threshold=trend_value_threshold,
            trend_draw_gap=trend_draw_gap,
            top_value_count=top_value_count,
            top_over_count=top_over_count,
            odds_provider=odds_provider,
            enable_prometheus_exporter=enable_prometheus_exporter,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def _reset_settings_cache_for_tests() -> None:
    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "_reset_settings_cache_for_tests", "DEFAULT_LEAGUES"]
