from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi_pagination import add_pagination

from app.config import get_settings
from app.core.app_state import AppState
from app.exceptions import PersistenceError, TransportError
from app.infra.logging_config import LoggingConfig, get_logger
from app.routers.advisors_router import advisors_router
from app.routers.conversations_router import conversations_router
from app.routers.logs_router import logs_router
from app.routers.modes_router import modes_router
from app.routers.system import router as system_router
from app.routers.webhooks import router as webhooks_router

logger = get_logger()


def create_app(testing: bool = False, state: Optional[AppState] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Outside tests a missing AI credential aborts startup. Tests pass a prebuilt
    AppState and run without background timers.
    """
    LoggingConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        if not testing:
            settings.require_llm_credentials()
        services = app.state.services or AppState(settings)
        app.state.services = services
        await services.start(run_background=not testing)
        logger.info("%s started", settings.app_name)
        try:
            yield
        finally:
            await services.stop()

    app = FastAPI(title="WhatsPanel API", lifespan=lifespan)
    app.state.services = state

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(_: Request, exc: PersistenceError):
        return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})

    @app.exception_handler(TransportError)
    async def transport_error_handler(_: Request, exc: TransportError):
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(modes_router)
    app.include_router(conversations_router)
    app.include_router(logs_router)
    app.include_router(advisors_router)
    app.include_router(system_router)
    app.include_router(webhooks_router)
    add_pagination(app)
    return app


def main() -> None:
    settings = get_settings()
    uvicorn.run(create_app(), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
