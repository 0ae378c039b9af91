from __future__ import annotations

from typing import Optional

from core.models import OddsQuote, OutcomeProbabilities, ValueScore


def compute_value_score(
    prob: OutcomeProbabilities,
    odds: Optional[OddsQuote] = None,
) -> ValueScore:
    """
    Con quote: value = p * quota - 1 (con segno, negativo = quota sfavorevole).
    Senza quote: value = p e has_odds=False (solo ranking, non EV).
    """
    if odds is None:
        return ValueScore(
            home=prob.home,
            draw=prob.draw,
            away=prob.away,
            over=prob.over,
            under=prob.under,
            has_odds=False,
        )
    return ValueScore(
        home=prob.home * odds.home - 1,
        draw=prob.draw * odds.draw - 1,
        away=prob.away * odds.away - 1,
        over=prob.over * odds.over - 1,
        under=prob.under * odds.under - 1,
        has_odds=True,
    )


__all__ = ["compute_value_score"]
