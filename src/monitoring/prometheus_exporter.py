from __future__ import annotations

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
)

from core.logging import get_logger

logger = get_logger("monitoring.prometheus_exporter")

# Registry dedicato (non il default globale di prometheus_client)
_REGISTRY = CollectorRegistry()

AGGREGATION_RUNS_TOTAL = Counter("xgv_aggregation_runs_total", "Numero aggregazioni eseguite", registry=_REGISTRY)
CACHE_HITS_TOTAL = Counter("xgv_cache_hits_total", "Richieste servite dalla cache", registry=_REGISTRY)
CACHE_MISSES_TOTAL = Counter("xgv_cache_misses_total", "Richieste che hanno richiesto un ricalcolo", registry=_REGISTRY)
LEAGUE_FAILURES_TOTAL = Counter(
    "xgv_league_failures_total",
    "Leghe saltate per errore del provider fixtures",
    ["league"],
    registry=_REGISTRY,
)
XG_RESOLUTIONS_TOTAL = Counter(
    "xgv_xg_resolutions_total",
    "Fixture risolte per sorgente xG",
    ["source"],
    registry=_REGISTRY,
)
FIXTURES_LAST = Gauge("xgv_fixtures_last", "Numero fixtures nell'ultima aggregazione", registry=_REGISTRY)
AGGREGATION_LATENCY_MS = Gauge("xgv_aggregation_latency_ms", "Durata ultima aggregazione in ms", registry=_REGISTRY)


def record_xg_resolution(source: str) -> None:
    XG_RESOLUTIONS_TOTAL.labels(source=source).inc()


def record_league_failure(league: str) -> None:
    LEAGUE_FAILURES_TOTAL.labels(league=league).inc()


def record_cache(hit: bool) -> None:
    if hit:
        CACHE_HITS_TOTAL.inc()
    else:
        CACHE_MISSES_TOTAL.inc()


def record_aggregation(count: int, latency_ms: float) -> None:
    AGGREGATION_RUNS_TOTAL.inc()
    FIXTURES_LAST.set(count)
    AGGREGATION_LATENCY_MS.set(latency_ms)
    logger.debug("Prometheus metrics updated.")


def generate_prometheus_text() -> bytes:
    return generate_latest(_REGISTRY)


__all__ = [
    "record_xg_resolution",
    "record_league_failure",
    "record_cache",
    "record_aggregation",
    "generate_prometheus_text",
    "_REGISTRY",
]
