from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST

from core.logging import get_logger
from monitoring.prometheus_exporter import generate_prometheus_text

router = APIRouter(tags=["metrics"])
logger = get_logger("api.routes.metrics")


@router.get("/metrics", summary="Metriche Prometheus")
def get_metrics(request: Request):
    """
    Esposizione testuale Prometheus del registry della pipeline.
    Se l'exporter e' disabilitato (ENABLE_PROMETHEUS_EXPORTER=0) -> 404.
    """
    settings = getattr(request.app.state, "settings", None)
    if settings is not None and not settings.enable_prometheus_exporter:
        raise HTTPException(status_code=404, detail="prometheus exporter disabled")
    return Response(content=generate_prometheus_text(), media_type=CONTENT_TYPE_LATEST)
