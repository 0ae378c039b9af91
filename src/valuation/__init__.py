"""
Valuation package.

Contiene:
- outcome: modello Poisson 1X2 / Over-Under / BTTS
- value: value score contro le quote (o segnale di ranking senza quote)
- trend: etichetta home/away/draw/neutral
- xg_resolver: catena di sorgenti xG con fallback sintetico
- aggregator: fan-out per lega e fixture
- service: cache + aggregatore + classifiche per l'API
"""
from .outcome import compute_outcome_probabilities, poisson_pmf  # noqa: F401
from .trend import classify_trend  # noqa: F401
from .value import compute_value_score  # noqa: F401

__all__ = [
    "compute_outcome_probabilities",
    "poisson_pmf",
    "compute_value_score",
    "classify_trend",
]
