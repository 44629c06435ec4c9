"""
FastAPI application entry point.
Mounts routes and /metrics, configures logging, and renders mutation errors.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from app.api.v1.router import api_router
from app.config import get_settings
from app.core.errors import MutationError, PersistenceError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Shutdown: close the Redis pool and database engine."""
    yield
    from app.cache import redis_client
    from app.db.session import engine

    if redis_client._redis is not None:
        await redis_client._redis.aclose()
    await engine.dispose()


async def mutation_error_handler(request: Request, exc: MutationError) -> JSONResponse:
    if isinstance(exc, PersistenceError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(
        title=settings.app_name,
        description="Storefront mutations: items, cart, checkout, accounts and permissions.",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Prometheus metrics at /metrics
    app.mount("/metrics", make_asgi_app())

    app.add_exception_handler(MutationError, mutation_error_handler)
    app.include_router(api_router, prefix="/api")

    return app


app = create_app()
