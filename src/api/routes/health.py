from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check")
def health(request: Request):
    """
    Health endpoint minimale: stato, leghe configurate e statistiche cache.
    """
    settings = getattr(request.app.state, "settings", None)
    service = getattr(request.app.state, "games_service", None)
    return {
        "status": "ok" if service is not None else "degraded",
        "leagues": sorted(settings.leagues) if settings is not None else [],
        "xg_primary_enabled": bool(settings and settings.xg_api_url),
        "understat_enabled": bool(settings and settings.enable_understat),
        "odds_provider": settings.odds_provider if settings is not None else None,
        "cache": service.cache.stats() if service is not None else None,
    }
