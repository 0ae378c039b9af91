from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from core.logging import get_logger
from core.models import ExpectedGoals, Fixture
from monitoring.prometheus_exporter import record_xg_resolution

logger = get_logger("valuation.xg_resolver")

XGLookup = Callable[[Fixture], Awaitable[ExpectedGoals]]


@dataclass(frozen=True)
class StepResult:
    """Esito etichettato di un passo della catena: ok(xg) oppure err(reason)."""

    step: str
    xg: Optional[ExpectedGoals] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.xg is not None

    @classmethod
    def success(cls, step: str, xg: ExpectedGoals) -> "StepResult":
        return cls(step=step, xg=xg)

    @classmethod
    def failure(cls, step: str, reason: str) -> "StepResult":
        return cls(step=step, reason=reason)


async def run_step(name: str, lookup: XGLookup, fixture: Fixture) -> StepResult:
    # ogni passo e' isolato: qualunque eccezione diventa err e la catena prosegue
    try:
        xg = await lookup(fixture)
    except Exception as exc:
        return StepResult.failure(name, f"{exc.__class__.__name__}: {exc}")
    return StepResult.success(name, xg)


class XGResolver:
    """
    Catena ordinata di sorgenti xG, short-circuit al primo successo:
      primary (API strutturata) -> secondary (scraping) -> synthetic
    Con il passo sintetico finale la risoluzione termina sempre con un valore.
    """

    def __init__(self, steps: Sequence[Tuple[str, XGLookup]]) -> None:
        if not steps:
            raise ValueError("XGResolver richiede almeno un passo")
        self._steps: List[Tuple[str, XGLookup]] = list(steps)

    @property
    def step_names(self) -> List[str]:
        return [name for name, _ in self._steps]

    async def resolve_with_trace(self, fixture: Fixture) -> Tuple[ExpectedGoals, List[StepResult]]:
        trace: List[StepResult] = []
        for name, lookup in self._steps:
            result = await run_step(name, lookup, fixture)
            trace.append(result)
            if result.xg is not None:
                record_xg_resolution(result.xg.source)
                logger.debug(
                    "xg_resolved",
                    extra={"fixture_id": fixture.fixture_id, "xg_source": result.xg.source},
                )
                return result.xg, trace
            logger.debug(
                "xg_step_failed step=%s",
                name,
                extra={"fixture_id": fixture.fixture_id, "reason": result.reason},
            )
        reasons = "; ".join(f"{r.step}={r.reason}" for r in trace)
        raise RuntimeError(f"Nessuna sorgente xG disponibile per fixture {fixture.fixture_id}: {reasons}")

    async def resolve(self, fixture: Fixture) -> ExpectedGoals:
        xg, _ = await self.resolve_with_trace(fixture)
        return xg


__all__ = ["StepResult", "XGResolver", "run_step"]
