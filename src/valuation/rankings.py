from __future__ import annotations

from typing import Iterable, List

from core.models import ValuedFixture


def top_by_value(fixtures: Iterable[ValuedFixture], n: int = 7) -> List[ValuedFixture]:
    """Top N per miglior value su singolo mercato 1X2 (desc)."""
    ordered = sorted(fixtures, key=lambda vf: vf.value.best_1x2(), reverse=True)
    return ordered[: max(0, n)]


def top_by_over(fixtures: Iterable[ValuedFixture], n: int = 5) -> List[ValuedFixture]:
    """Top N per probabilita' Over (desc)."""
    ordered = sorted(fixtures, key=lambda vf: vf.prob.over, reverse=True)
    return ordered[: max(0, n)]


__all__ = ["top_by_value", "top_by_over"]
