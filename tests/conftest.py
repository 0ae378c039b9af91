import sys
from datetime import datetime, timezone
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from core.config import _reset_settings_cache_for_tests, get_settings  # noqa: E402
from core.models import Fixture  # noqa: E402

# variabili che, se presenti nella shell, altererebbero i default attesi dai test
_ENV_VARS = (
    "FOOTBALL_DATA_LEAGUES",
    "FIXTURE_WINDOW_DAYS",
    "XG_API_URL",
    "XG_API_KEY",
    "ENABLE_UNDERSTAT",
    "UNDERSTAT_TEAM_ALIASES",
    "ODDS_PROVIDER",
    "CACHE_TTL_SECONDS",
    "MAX_CONCURRENT_REQUESTS",
    "HTTP_MAX_ATTEMPTS",
    "TREND_VALUE_THRESHOLD",
    "TREND_DRAW_GAP",
    "SYNTHETIC_HOME_XG_RANGE",
    "SYNTHETIC_AWAY_XG_RANGE",
    "ENABLE_PROMETHEUS_EXPORTER",
    "XG_MAX_VALUE",
)


@pytest.fixture(autouse=True)
def reset_settings_cache():
    _reset_settings_cache_for_tests()
    yield
    _reset_settings_cache_for_tests()


@pytest.fixture
def env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("FOOTBALL_DATA_API_KEY", "DUMMY")
    monkeypatch.setenv("FOOTBALL_DATA_BASE_URL", "https://fd.test/v4")
    monkeypatch.setenv("UNDERSTAT_BASE_URL", "https://understat.test")
    monkeypatch.setenv("HTTP_BACKOFF_JITTER", "0")
    _reset_settings_cache_for_tests()
    return monkeypatch


@pytest.fixture
def settings(env):
    return get_settings()


def _make_fixture(fixture_id: int = 1, home: str = "Arsenal", away: str = "Chelsea",
                  kickoff: str = "2024-08-17T14:00:00Z", league: str = "Premier League") -> Fixture:
    dt = datetime.fromisoformat(kickoff.replace("Z", "+00:00")).astimezone(timezone.utc)
    return Fixture(
        fixture_id=fixture_id,
        kickoff=dt,
        league=league,
        home_team=home,
        away_team=away,
    )


@pytest.fixture
def make_fixture():
    return _make_fixture
