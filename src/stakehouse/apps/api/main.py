from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from uuid import uuid4

import httpx
import uvicorn
from fastapi import FastAPI

from stakehouse.core.config import Settings, load_settings
from stakehouse.core.container import build_container
from stakehouse.core.logging import configure_logging
from stakehouse.core.logging.context import log_context

from .routes_ops import router as ops_router
from .routes_transfers import router as transfers_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        active_settings = settings or load_settings()
        configure_logging(active_settings.state_dir)
        container = build_container(active_settings, transport=transport)
        app.state.container = container

        if active_settings.cron_enabled:
            container.scheduler.start()
            logger.info("Cron jobs started (%s)", ", ".join(container.scheduler.status()) or "none")
        else:
            logger.info("Cron jobs disabled; set STAKEHOUSE_CRON_ENABLED=on to schedule distribution")
        try:
            yield
        finally:
            await container.scheduler.stop()
            await container.aclose()

    app = FastAPI(title="Stakehouse API", lifespan=lifespan)
    app.include_router(ops_router, prefix="/api", tags=["ops"])
    app.include_router(transfers_router, prefix="/api", tags=["transfers"])

    @app.middleware("http")
    async def request_context_middleware(request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid4())
        with log_context(correlation_id=correlation_id):
            response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    settings = load_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
