from __future__ import annotations

from core.models import (
    OutcomeProbabilities,
    TREND_AWAY,
    TREND_DRAW,
    TREND_HOME,
    TREND_NEUTRAL,
    ValueScore,
)


def classify_trend(
    prob: OutcomeProbabilities,
    value: ValueScore,
    value_threshold: float = 0.12,
    draw_gap: float = 0.08,
) -> str:
    # regole in ordine, vince la prima
    markets = {"home": value.home, "draw": value.draw, "away": value.away}
    probs = {"home": prob.home, "draw": prob.draw, "away": prob.away}

    best = max(markets, key=lambda k: markets[k])
    if markets[best] > value_threshold and best in (TREND_HOME, TREND_AWAY):
        others = [p for k, p in probs.items() if k != best]
        if all(probs[best] > p for p in others):
            return best

    if abs(prob.home - prob.away) < draw_gap and prob.draw >= max(prob.home, prob.away):
        return TREND_DRAW

    return TREND_NEUTRAL


__all__ = ["classify_trend"]
