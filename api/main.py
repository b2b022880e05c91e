"""
api/main.py -- FastAPI application factory for socialauth.

Run with:      uvicorn asgi:app --reload

create_app() is the composition root. It builds every long-lived object once
and hangs it on app.state; nothing in auth/ reads configuration or global
state on its own:

    Settings -> AuthConfig -> CredentialIssuer / CredentialVerifier
                           -> PasswordAuthenticator
    lifespan:  UserStore   -> Authenticator

AuthConfig raises SigningConfigurationError for an empty JWT_SECRET_KEY, so a
misconfigured process fails while the app is being built, before it can
accept a single request.

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- only when CORS_ORIGINS is set
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter
  4. log_requests          -- method, path, status and latency per request
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.users import router as users_router
from auth.config import AuthConfig
from auth.passwords import PasswordAuthenticator
from auth.service import Authenticator
from auth.store import UserStore
from auth.tokens import CredentialIssuer, CredentialVerifier
from core.config import Settings, load_settings

_LOG_FORMAT = "%(asctime)s %(levelname)-5s %(name)s %(message)s"

logger = logging.getLogger("socialauth.api")

__version__ = "0.1.0"


# ---------------------------------------------------------------------------
# Lifespan -- startup / shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the user store and wire the Authenticator; close the store on shutdown.

    Everything before yield runs on startup; everything after yield runs on
    shutdown, even if a request handler raised.
    """
    settings: Settings = app.state.settings
    logger.info("socialauth API starting up")
    app.state.user_store = UserStore(settings.database_url)
    app.state.authenticator = Authenticator(
        store=app.state.user_store,
        passwords=app.state.passwords,
        issuer=app.state.issuer,
        verifier=app.state.verifier,
    )
    logger.info("Auth initialized (ttl=%ss, bcrypt_rounds=%d)", app.state.issuer.ttl_seconds, settings.bcrypt_rounds)

    yield

    app.state.user_store.close()
    logger.info("socialauth API shutdown complete")


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


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


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded.

    Plain def: SlowAPIMiddleware calls this handler synchronously.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    response = JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error=ErrorDetail(
                code="rate_limited",
                message="Too many requests.",
                detail=str(exc.detail),
            )
        ).model_dump(),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or params fail validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Route handlers raise HTTPException with a dict detail. When detail is
    already a structured dict, use it directly as the error field. Headers set
    on the exception (WWW-Authenticate on 401) are passed through.
    """
    if isinstance(exc.detail, dict):
        content = {"error": exc.detail}
    else:
        content = ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump()
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The traceback goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application. Raises SigningConfigurationError on a bad secret."""
    if settings is None:
        settings = load_settings()

    logging.basicConfig(level=settings.log_level.upper(), format=_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    auth_config = AuthConfig.from_settings(settings)

    app = FastAPI(
        title="socialauth API",
        description="Password login and stateless bearer credentials for the social network services.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.passwords = PasswordAuthenticator(rounds=settings.bcrypt_rounds)
    app.state.issuer = CredentialIssuer(auth_config)
    app.state.verifier = CredentialVerifier(auth_config)
    # SlowAPI looks for app.state.limiter by convention.
    app.state.limiter = limiter

    # Starlette wraps middleware in reverse registration order, so the last
    # one added is outermost.
    app.middleware("http")(log_requests)
    app.add_middleware(SlowAPIMiddleware)
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type", "Authorization"],
            max_age=3600,
        )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
    app.include_router(users_router, prefix="/api/v1", tags=["Users"])
    return app
