from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

XG_SOURCE_PRIMARY = "primary"
XG_SOURCE_SECONDARY = "secondary"
XG_SOURCE_SYNTHETIC = "synthetic"
XG_SOURCES = (XG_SOURCE_PRIMARY, XG_SOURCE_SECONDARY, XG_SOURCE_SYNTHETIC)

TREND_HOME = "home"
TREND_AWAY = "away"
TREND_DRAW = "draw"
TREND_NEUTRAL = "neutral"


def parse_kickoff(value: str) -> datetime:
    """Parsa un timestamp ISO 8601 (anche con suffisso Z) in datetime UTC."""
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    dt = datetime.fromisoformat(raw)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_kickoff(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class Fixture:
    fixture_id: int
    kickoff: datetime
    league: str
    home_team: str
    away_team: str
    home_crest: Optional[str] = None
    away_crest: Optional[str] = None

    @property
    def match_date(self) -> str:
        return self.kickoff.date().isoformat()


@dataclass(frozen=True)
class ExpectedGoals:
    home: float
    away: float
    source: str = XG_SOURCE_SYNTHETIC

    def __post_init__(self) -> None:
        for side, v in (("home", self.home), ("away", self.away)):
            if not isinstance(v, (int, float)) or not math.isfinite(v) or v <= 0:
                raise ValueError(f"xG {side} deve essere un numero finito > 0 (valore: {v!r})")
        if self.source not in XG_SOURCES:
            raise ValueError(f"Sorgente xG sconosciuta: {self.source!r}")

    @property
    def total(self) -> float:
        return self.home + self.away


@dataclass(frozen=True)
class OutcomeProbabilities:
    home: float
    draw: float
    away: float
    over: float
    under: float
    btts: float


@dataclass(frozen=True)
class OddsQuote:
    """Quote decimali bookmaker (ogni quota >= 1.0)."""

    home: float
    draw: float
    away: float
    over: float
    under: float
    source: str = "unknown"

    def __post_init__(self) -> None:
        for market in ("home", "draw", "away", "over", "under"):
            v = getattr(self, market)
            if not isinstance(v, (int, float)) or not math.isfinite(v) or v < 1.0:
                raise ValueError(f"Quota {market} non valida: {v!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "home": self.home,
            "draw": self.draw,
            "away": self.away,
            "over25": self.over,
            "under25": self.under,
            "source": self.source,
        }


@dataclass(frozen=True)
class ValueScore:
    """
    Value per mercato.
    has_odds=True  -> p * quota - 1 (expected value monetario, con segno)
    has_odds=False -> probabilita' nuda, solo segnale di ranking
    """

    home: float
    draw: float
    away: float
    over: float
    under: float
    has_odds: bool

    def best_1x2(self) -> float:
        return max(self.home, self.draw, self.away)


@dataclass(frozen=True)
class ValuedFixture:
    fixture: Fixture
    xg: ExpectedGoals
    prob: OutcomeProbabilities
    value: ValueScore
    trend: str
    odds: Optional[OddsQuote] = None

    def to_dict(self) -> Dict[str, Any]:
        fx = self.fixture
        return {
            "id": fx.fixture_id,
            "date": format_kickoff(fx.kickoff),
            "league": fx.league,
            "home": fx.home_team,
            "away": fx.away_team,
            "homeLogo": fx.home_crest,
            "awayLogo": fx.away_crest,
            "homeXG": round(self.xg.home, 2),
            "awayXG": round(self.xg.away, 2),
            "totalXG": round(self.xg.total, 2),
            "xgSource": self.xg.source,
            "odds": self.odds.to_dict() if self.odds else None,
            "hasOdds": self.value.has_odds,
            "prob": {
                "home": round(self.prob.home, 4),
                "draw": round(self.prob.draw, 4),
                "away": round(self.prob.away, 4),
                "over25": round(self.prob.over, 4),
                "under25": round(self.prob.under, 4),
            },
            "value": {
                "home": round(self.value.home, 4),
                "draw": round(self.value.draw, 4),
                "away": round(self.value.away, 4),
                "over25": round(self.value.over, 4),
                "under25": round(self.value.under, 4),
            },
            "btts": round(self.prob.btts, 4),
            "trend": self.trend,
        }


__all__ = [
    "Fixture",
    "ExpectedGoals",
    "OutcomeProbabilities",
    "OddsQuote",
    "ValueScore",
    "ValuedFixture",
    "parse_kickoff",
    "format_kickoff",
    "XG_SOURCE_PRIMARY",
    "XG_SOURCE_SECONDARY",
    "XG_SOURCE_SYNTHETIC",
    "TREND_HOME",
    "TREND_AWAY",
    "TREND_DRAW",
    "TREND_NEUTRAL",
]
