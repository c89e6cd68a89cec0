"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (tables, Redis, token store).
Middleware, CORS, error handlers, and routers all registered here.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from snapcode import __version__
from snapcode.api import api_router
from snapcode.config import settings
from snapcode.errors import register_error_handlers

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "snapcode.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )
    if settings.access_token_expire_minutes >= settings.refresh_token_expire_days * 24 * 60:
        logger.warning(
            "snapcode.access_window_not_shorter",
            access_minutes=settings.access_token_expire_minutes,
            refresh_days=settings.refresh_token_expire_days,
        )

    from snapcode.db.engine import engine, init_models
    await init_models()

    from snapcode.db.redis import close_redis, init_redis
    redis = None
    try:
        redis = await init_redis()
        logger.info("snapcode.redis_connected", url=settings.redis_url)
    except Exception as e:
        if settings.refresh_token_store == "redis":
            raise
        # Redis is optional with the in-memory store; rate limiting is skipped
        logger.warning("snapcode.redis_unavailable", error=str(e))
        await close_redis()

    from snapcode.auth.token_store import init_token_store
    init_token_store(redis)

    yield

    logger.info("snapcode.shutdown")
    await close_redis()
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="SnapCode API",
        description="Backend for the SnapCode code-snippet design tool",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RateLimit → Security → RequestId → handler

    from snapcode.middleware.rate_limit import RateLimitMiddleware
    from snapcode.middleware.request_id import RequestIdMiddleware
    from snapcode.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request, exc: RequestValidationError):
        # Missing or malformed input is a plain 400 across the API
        return JSONResponse(
            status_code=400,
            content={
                "detail": "Invalid request",
                "errors": [
                    {"loc": list(err["loc"]), "msg": err["msg"]}
                    for err in exc.errors()
                ],
            },
        )

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: snapcode.main:app)
app = create_app()
