"""
api/routes/v1/auth.py -- Registration, login and identity endpoints.

Routes:
  POST /api/v1/auth/register   -- create an account (public)
  POST /api/v1/auth/login      -- password login; returns a bearer credential (public)
  GET  /api/v1/auth/me         -- claims of the presented credential (requires auth)

Security:
  POST /login is rate-limited per client IP (api.limiter.LOGIN_RATE_LIMIT).
  Authenticator.authenticate() equalizes timing between unknown usernames and
  wrong passwords -- use it, never inline get_by_username() + verify().
  Unknown username and wrong password return the identical 401 body.
  Cache-Control: no-store on login responses so credentials are not cached.
  bcrypt runs in Starlette's worker thread pool, never on the event loop.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from api.limiter import LOGIN_RATE_LIMIT, limiter
from api.models import LoginRequest, LoginResponse, PrincipalResponse, RegistrationRequest, UserResponse
from auth.dependencies import get_current_principal
from auth.errors import InvalidCredentials, PasswordPolicyError, UsernameTaken
from auth.models import AuthenticatedPrincipal
from auth.service import Authenticator

# Auth policy:
# - POST /api/v1/auth/register: public
# - POST /api/v1/auth/login:    public -- login endpoint must be unauthenticated
# - GET  /api/v1/auth/me:       requires auth (get_current_principal)
router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=UserResponse, status_code=201)
async def register(request: Request, body: RegistrationRequest) -> UserResponse:
    """Create a new account. display_name defaults to the username."""
    authenticator: Authenticator = request.app.state.authenticator
    try:
        user = await run_in_threadpool(authenticator.register, body.username, body.password, body.display_name)
    except UsernameTaken as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "conflict", "message": "Username already exists."},
        ) from exc
    except PasswordPolicyError as exc:
        raise HTTPException(
            status_code=422,
            detail={"code": "validation_error", "message": str(exc)},
        ) from exc
    return UserResponse.from_user(user)


@router.post("/auth/login", response_model=LoginResponse)
@limiter.limit(LOGIN_RATE_LIMIT)  # brute-force mitigation -- must sit BELOW @router so the wrapped function is registered
async def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; return a bearer credential.

    Returns the same generic error for wrong username and wrong password
    ("bad_credentials") to avoid leaking username existence information.
    """
    authenticator: Authenticator = request.app.state.authenticator
    try:
        user = await run_in_threadpool(authenticator.authenticate, body.username, body.password)
    except InvalidCredentials as exc:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": exc.code, "message": str(exc)}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    token = authenticator.issue(user)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            access_token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=authenticator.issuer.ttl_seconds,
            user=UserResponse.from_user(user),
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=PrincipalResponse)
async def me(principal: AuthenticatedPrincipal = Depends(get_current_principal)) -> PrincipalResponse:
    """Return the identity asserted by the presented credential. No store lookup."""
    return PrincipalResponse.from_principal(principal)
