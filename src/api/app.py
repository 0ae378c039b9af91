from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from core.config import Settings, get_settings
from core.logging import get_logger
from providers.http_client import AsyncHttpClient
from valuation.service import GamesService, build_games_service

from api.routes.health import router as health_router
from api.routes.games import router as games_router
from api.routes.metrics import router as metrics_router

logger = get_logger("api.app")


def create_app(
    service: Optional[GamesService] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Costruisce l'app. Se service e' fornito (test) viene usato cosi' com'e';
    altrimenti client HTTP e pipeline vengono creati nel lifespan e chiusi allo shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        http: Optional[AsyncHttpClient] = None
        if app.state.games_service is None and app.state.settings is not None:
            http = AsyncHttpClient(settings=app.state.settings)
            app.state.games_service = build_games_service(http, app.state.settings)
            logger.info("Pipeline inizializzata: leghe=%s", sorted(app.state.settings.leagues))
        try:
            yield
        finally:
            if http is not None:
                await http.aclose()

    app = FastAPI(title="xG Value API", version="0.1.0", lifespan=lifespan)
    if settings is None:
        try:
            settings = get_settings()
        except Exception as exc:  # pragma: no cover
            logger.error("Impossibile caricare settings: %s", exc)
    app.state.settings = settings
    app.state.games_service = service

    app.include_router(health_router)
    app.include_router(games_router)
    app.include_router(metrics_router)
    return app


app = create_app()


# Avvio rapido: python -m api.app
if __name__ == "__main__":
    import uvicorn
    from dotenv import find_dotenv, load_dotenv

    load_dotenv(find_dotenv(usecwd=True), override=True)

    uvicorn.run("api.app:app", host="0.0.0.0", port=10000, reload=False)
