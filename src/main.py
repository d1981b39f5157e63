"""FastAPI application: wires the router, the database, logging, and the error handlers."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.routes import CLOCKS, router
from src.config import SETTINGS
from src.core.exceptions import GameError, RepositoryError
from src.db.database import init_db

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    log.info("Database ready.")
    yield
    await CLOCKS.stop_all()
    log.info("Turn clocks stopped.")


def create_app() -> FastAPI:
    logging.basicConfig(
        level=SETTINGS.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s"
    )
    app = FastAPI(title="Budget Chess", version="1.0.0", lifespan=lifespan)
    app.include_router(router)

    @app.exception_handler(RepositoryError)
    async def handle_not_found(request: Request, error: RepositoryError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(error)})

    @app.exception_handler(GameError)
    async def handle_game_error(request: Request, error: GameError) -> JSONResponse:
        log.info("Request %s %s failed: %s", request.method, request.url.path, error)
        return JSONResponse(status_code=400, content={"detail": str(error)})

    return app


app = create_app()
