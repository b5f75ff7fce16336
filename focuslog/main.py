from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from focuslog.db import dispose_engine
from focuslog.db_init import init_db
from focuslog.routes import dashboard, decisions, export, focus, insights
from focuslog.stats import ComputationError

logger = logging.getLogger("focuslog")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("Journal tables ready")
    try:
        yield
    finally:
        await dispose_engine()


def create_app() -> FastAPI:
    logging.basicConfig(
        level=os.getenv("BACKEND_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    app = FastAPI(title="Focuslog API", version="0.1.0", lifespan=lifespan)

    for module in (focus, decisions, dashboard, insights, export):
        app.include_router(module.router)

    @app.exception_handler(ComputationError)
    async def _computation_error_handler(request: Request, exc: ComputationError):
        logger.warning("Stats computation rejected input on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal error"})

    @app.get("/health")
    async def health():
        return {"ok": True}

    return app


app = create_app()
