"""
api/main.py -- FastAPI application factory for the hospital records service.

Run with:      uvicorn asgi:app --reload
               uvicorn api.main:create_app --factory

Middleware stack (outermost to innermost):
  1. log_requests     -- method, path, status, latency, client host
  2. decode_token     -- decode stage of access control: request.state.identity
  3. CORSMiddleware   -- CORS headers for allowed browser origins
  4. SlowAPIMiddleware -- per-route rate limits, one Limiter per app

The decode stage runs on every request, including routes with no policy. It
never rejects; routes that declare a policy via auth.dependencies.require()
reject when it found no usable identity.

Lifespan builds the store, directory and token service from the injected
Settings on startup and disposes the store on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import create_limiter
from api.models import BadRequestResponse, ErrorResponse, HealthResponse
from api.routes.auth import create_router as create_auth_router
from api.routes.users import router as users_router
from auth.access import decode_identity
from auth.directory import UserDirectory
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import Settings, get_settings

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("hospitalrecords.api")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the ASGI app. settings defaults to the process-wide get_settings()."""
    if settings is None:
        settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Startup: store, then directory (needs store), then token service.

        The signing secret is copied into the TokenService here and nowhere
        else; it does not change for the life of the process.
        """
        logger.info("Hospital records API starting up")
        app.state.user_store = UserStore(settings.database_url)
        app.state.directory = UserDirectory(app.state.user_store, bcrypt_rounds=settings.bcrypt_rounds)
        app.state.tokens = TokenService(settings.secret_key, settings.token_expire_seconds)
        if not app.state.user_store.has_users():
            logger.warning("No users exist yet -- create an admin with: python main.py create-user")
        logger.info("Auth initialized (token lifetime %ds)", settings.token_expire_seconds)

        yield

        app.state.user_store.close()
        logger.info("Hospital records API shutdown complete")

    app = FastAPI(
        title="Hospital Records API",
        description="Users, roles and access control for the hospital records backend.",
        version=__version__,
        lifespan=lifespan,
    )

    # -----------------------------------------------------------------------
    # Middleware stack -- registered innermost first.
    # -----------------------------------------------------------------------

    limiter = create_limiter(enabled=settings.rate_limit_enabled)
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )

    @app.middleware("http")
    async def decode_token(request: Request, call_next):
        request.state.identity = decode_identity(
            request.headers.get("Authorization"),
            request.app.state.tokens,
        )
        return await call_next(request)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms %s",
            request.method,
            request.url.path,
            response.status_code,
            ms,
            request.client.host if request.client else "unknown",
        )
        return response

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------

    app.include_router(create_auth_router(limiter), tags=["Auth"])
    app.include_router(users_router, tags=["Users"])

    @app.get("/health", tags=["Health"])
    def health(request: Request) -> HealthResponse:
        """Liveness plus a database round trip. No authentication."""
        try:
            database = "ok" if request.app.state.user_store.ping() else "error"
        except Exception:
            logger.exception("Health check database ping failed")
            database = "error"
        return HealthResponse(version=__version__, components={"app": "ok", "database": database})

    # -----------------------------------------------------------------------
    # Exception handlers
    # -----------------------------------------------------------------------

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        retry_after = int(getattr(exc, "retry_after", 60))
        response = JSONResponse(
            status_code=429,
            content=ErrorResponse(status=429, error="Too many requests.").model_dump(),
        )
        response.headers["Retry-After"] = str(retry_after)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Unparsable or incomplete bodies are a 400, in the existing client shape."""
        return JSONResponse(
            status_code=400,
            content=BadRequestResponse(message="Incomplete parameters").model_dump(),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Render HTTP errors in the {status, error} envelope.

        require() raises with a ready-made dict detail; use it verbatim.
        Framework errors (404 unknown path, 405 method) carry a string.
        """
        if isinstance(exc.detail, dict):
            content = exc.detail
        else:
            content = ErrorResponse(status=exc.status_code, error=str(exc.detail)).model_dump()
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected server errors. The traceback goes to the log only."""
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(status=500, error="An unexpected error occurred.").model_dump(),
        )

    return app
