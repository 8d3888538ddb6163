"""
HeartCart API application.

Storefront and product authoring backend: catalogue, drafts and
publication, cart, favourites, file storage and AI-assisted content.
Health probes are served at the root; everything else lives under /api.
"""
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from heartcart.core.config import settings
from heartcart.core.database import close_db, init_db
from heartcart.core.exceptions import register_exception_handlers
from heartcart.core.logging import configure_logging, get_logger
from heartcart.middleware import ErrorHandlerMiddleware, RequestIdMiddleware
from heartcart.routers import (
    ai_router,
    attributes_router,
    auth_router,
    cart_router,
    categories_router,
    drafts_router,
    favourites_router,
    files_router,
    health_router,
    pricing_router,
    products_router,
    suppliers_router,
)
from heartcart.services.llm_client import get_llm_client

configure_logging()
logger = get_logger(__name__)

API_ROUTERS = (
    auth_router,
    suppliers_router,
    categories_router,
    products_router,
    attributes_router,
    pricing_router,
    drafts_router,
    cart_router,
    favourites_router,
    files_router,
    ai_router,
)


def init_sentry() -> None:
    if not settings.sentry_dsn:
        return
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=f"heartcart@{settings.app_version}",
        traces_sample_rate=0.1,
        send_default_pii=False,
    )
    logger.info("Sentry initialized")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(
        "Starting HeartCart API",
        version=settings.app_version,
        environment=settings.environment,
    )
    init_sentry()
    await init_db()

    storage_root = Path(settings.storage_root).resolve()
    storage_root.mkdir(parents=True, exist_ok=True)
    llm = get_llm_client()
    logger.info(
        "Services ready",
        storage_root=str(storage_root),
        ai_providers=[p.name for p in llm.providers] or None,
    )
    if not llm.is_configured:
        logger.warning("No AI provider key set; /api/ai routes will return 503")

    yield

    await close_db()
    logger.info("HeartCart API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="HeartCart storefront and product authoring API",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    # Last added runs first: CORS, then request id, then the 500 fallback
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID", "If-None-Match"],
        expose_headers=["X-Request-ID", "ETag"],
    )

    app.include_router(health_router)
    for router in API_ROUTERS:
        app.include_router(router, prefix="/api")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "heartcart.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
