"""
auth/dependencies.py -- FastAPI Depends() helper for request authorization.

get_current_principal() is the pipeline precondition for protected routes.
It runs before the route body, reads the Authorization header, verifies the
bearer credential with app.state.verifier, and either:

  - stores the AuthenticatedPrincipal on request.state.principal and returns
    it, or
  - raises HTTP 401 with one fixed body, whatever the reason.

The concrete reason (missing header, malformed, bad signature, expired,
missing claims) is only logged, so the response is not an oracle for why a
credential was refused.

Usage:
    @router.get("/protected")
    async def route(principal: AuthenticatedPrincipal = Depends(get_current_principal)): ...

    router = APIRouter(dependencies=[Depends(get_current_principal)])

Layer rule: may import from fastapi because this module is part of the
FastAPI dependency injection system. No imports from api/.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from auth.errors import AuthError
from auth.models import AuthenticatedPrincipal
from auth.service import authorize_headers

logger = logging.getLogger("socialauth.auth")

UNAUTHORIZED_DETAIL = {"code": "unauthorized", "message": "Authentication required."}


def get_current_principal(request: Request) -> AuthenticatedPrincipal:
    """Require a valid bearer credential. Raises HTTP 401 otherwise."""
    try:
        principal = authorize_headers(request.app.state.verifier, request.headers)
    except AuthError as exc:
        logger.info(
            "Unauthorized %s %s: %s (%s)",
            request.method,
            request.url.path,
            exc.code,
            exc,
        )
        raise HTTPException(
            status_code=401,
            detail=UNAUTHORIZED_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    request.state.principal = principal
    return principal
