from __future__ import annotations

import math

from core.models import OutcomeProbabilities


def poisson_pmf(k: int, lam: float) -> float:
    # in log-spazio: lam ** k va in overflow per rate molto grandi
    return math.exp(k * math.log(lam) - lam - math.lgamma(k + 1))


def compute_outcome_probabilities(
    home_xg: float,
    away_xg: float,
    max_goals: int = 7,
    goal_line: float = 2.5,
) -> OutcomeProbabilities:
    """
    Modello Poisson indipendente sui gol delle due squadre.

    - 1X2: somma doppia P(i)P(j) per i, j in 0..max_goals, normalizzata sulla
      somma dei tre esiti (corregge la coda troncata)
    - under: P(i + j <= floor(goal_line)), over = 1 - under
    - btts: approssimazione con eventi indipendenti (1 - P(0)) * (1 - P(0))
    """
    if not (home_xg > 0 and away_xg > 0) or not (math.isfinite(home_xg) and math.isfinite(away_xg)):
        raise ValueError(f"xG devono essere finiti e > 0 (home={home_xg!r}, away={away_xg!r})")

    max_total_under = math.floor(goal_line)
    home_pmf = [poisson_pmf(i, home_xg) for i in range(max_goals + 1)]
    away_pmf = [poisson_pmf(j, away_xg) for j in range(max_goals + 1)]

    home = draw = away = under = 0.0
    for i, ph in enumerate(home_pmf):
        for j, pa in enumerate(away_pmf):
            p = ph * pa
            if i > j:
                home += p
            elif i == j:
                draw += p
            else:
                away += p
            if i + j <= max_total_under:
                under += p

    total = home + draw + away
    btts = (1.0 - home_pmf[0]) * (1.0 - away_pmf[0])
    if total == 0.0:
        # tutta la massa oltre max_goals: limite del modello per rate enormi
        home = 1.0 if home_xg > away_xg else 0.0
        away = 1.0 if away_xg > home_xg else 0.0
        draw = 1.0 - home - away
        total = 1.0
    return OutcomeProbabilities(
        home=home / total,
        draw=draw / total,
        away=away / total,
        over=1.0 - under,
        under=under,
        btts=btts,
    )


__all__ = ["poisson_pmf", "compute_outcome_probabilities"]
