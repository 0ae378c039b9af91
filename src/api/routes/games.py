from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Query, Request

from core.logging import get_logger
from valuation.service import empty_response

router = APIRouter(prefix="/api", tags=["games"])
logger = get_logger("api.routes.games")


@router.get("/games", summary="Fixtures valorizzate per data")
async def list_games(
    request: Request,
    day: Optional[date] = Query(None, alias="date", description="Data YYYY-MM-DD (default: oggi UTC)"),
):
    """
    Ritorna { response, top7Value, top5Over25 }.

    Anche in caso di fallimento totale risponde 200 con liste vuote
    (disponibilita' dei dati parziali prima di tutto).
    """
    service = getattr(request.app.state, "games_service", None)
    if service is None:
        logger.error("games_service non inizializzato (configurazione mancante?)")
        return empty_response("service unavailable")
    return await service.get_games(day)
