from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Optional
from starlette.responses import PlainTextResponse, Response
import httpx
import logging

from limo_api.api import bookings, ping, quotes
from limo_api.core.cache import MemoryDistanceCache, RedisDistanceCache
from limo_api.core.config import Settings, get_settings
from limo_api.core.errors import register_error_handlers
from limo_api.core.metrics import get_metrics_text, redis_connected
from limo_api.core.middleware import (
    BodyLimitMiddleware,
    MetricsMiddleware,
    OriginGuardMiddleware,
    SecurityHeadersMiddleware,
)
from limo_api.core.rate_limit import RateLimiter, RedisRateLimiter
from limo_api.core.redis import close_redis, create_redis, init_redis
from limo_api.services.distance import DistanceMatrixClient
from limo_api.services.quotes import QuoteResolver

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info("Application starting...")
    logger.info(f"Google Maps key present: {settings.maps_configured}")
    if not settings.LMS_API_KEY:
        logger.warning("LMS_API_KEY is not set; API key check is disabled")

    redis = app.state.redis
    if redis is not None:
        try:
            await init_redis(redis)
            redis_connected.set(1)
        except Exception as e:
            logger.error(f"Redis connection failed, distance cache writes will be skipped: {e}")
            redis_connected.set(0)

    yield

    logger.info("Application shutting down...")
    await app.state.http.aclose()
    await close_redis(redis)
    redis_connected.set(0)
    logger.info("Shutdown complete")


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the API around one Settings instance.

    ``transport`` replaces the outbound HTTP transport, used by tests to fake
    the distance-matrix provider.
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL.upper())

    application = FastAPI(
        title=settings.API_TITLE,
        description=settings.API_DESCRIPTION,
        version=settings.API_VERSION,
        lifespan=lifespan,
    )

    http = httpx.AsyncClient(transport=transport, timeout=settings.DISTANCE_TIMEOUT)
    redis = create_redis(settings.REDIS_URL)
    if redis is not None:
        cache = RedisDistanceCache(redis, settings.DISTANCE_CACHE_TTL)
    else:
        cache = MemoryDistanceCache(settings.DISTANCE_CACHE_TTL)

    application.state.settings = settings
    application.state.http = http
    application.state.redis = redis
    application.state.resolver = QuoteResolver(settings, DistanceMatrixClient(settings, http), cache)
    limits = {"quote": settings.RATE_LIMIT_QUOTE, "book": settings.RATE_LIMIT_BOOK}
    if redis is not None:
        application.state.rate_limiters = {
            bucket: RedisRateLimiter(redis, bucket, limit, settings.RATE_LIMIT_WINDOW)
            for bucket, limit in limits.items()
        }
    else:
        application.state.rate_limiters = {
            bucket: RateLimiter(bucket, limit, settings.RATE_LIMIT_WINDOW)
            for bucket, limit in limits.items()
        }

    application.add_middleware(MetricsMiddleware)
    application.add_middleware(BodyLimitMiddleware, max_body_bytes=settings.MAX_BODY_BYTES)
    application.add_middleware(SecurityHeadersMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Requested-With", "X-Api-Key"],
        allow_credentials=False,
    )
    application.add_middleware(OriginGuardMiddleware, allowed_origins=settings.ALLOWED_ORIGINS)

    register_error_handlers(application)

    application.include_router(ping.router)
    application.include_router(quotes.router)
    application.include_router(bookings.router)

    @application.get("/", tags=["root"], response_class=PlainTextResponse)
    async def root():
        return "Limo API up"

    @application.get("/health", tags=["monitoring"])
    async def health_check():
        return {
            "status": "healthy",
            "service": settings.API_TITLE,
            "version": settings.API_VERSION,
            "dependencies": {
                "maps": "configured" if settings.maps_configured else "not_configured",
                "cache": "redis" if redis is not None else "memory",
            }
        }

    @application.get("/metrics", tags=["monitoring"])
    async def metrics():
        return Response(
            content=get_metrics_text(),
            media_type="text/plain; version=0.0.4; charset=utf-8"
        )

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("limo_api.main:app", host="0.0.0.0", port=app.state.settings.PORT)
