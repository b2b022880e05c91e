"""
api/routes/v1/users.py -- Read access to user profiles.

Routes:
  GET /api/v1/users/me         -- the caller's own profile (requires auth)
  GET /api/v1/users/{user_id}  -- public profile of an active user (requires auth)

This router plays the part of a downstream service: every route sits behind
get_current_principal, declared once on the router, and reads the user store
only after the credential has been verified. The credential check itself never
touches the store, so a deactivated user's credential still passes here; the
is_active filter below is what hides their profile.

Handlers are plain def: the store is synchronous SQLAlchemy, so Starlette runs
them in its worker thread pool.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request

from api.models import UserResponse
from auth.dependencies import get_current_principal
from auth.models import AuthenticatedPrincipal, User
from auth.store import UserStore

router = APIRouter(dependencies=[Depends(get_current_principal)])


def _active_profile(request: Request, user_id: str) -> UserResponse:
    user_store: UserStore = request.app.state.user_store
    user: User | None = user_store.get_by_id(user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "User not found."},
        )
    return UserResponse.from_user(user)


# /users/me is registered before /users/{user_id} so "me" is never parsed as an id.
@router.get("/users/me", response_model=UserResponse)
def get_current_user_profile(request: Request) -> UserResponse:
    """Return the caller's profile. 404 once the account is deactivated."""
    principal: AuthenticatedPrincipal = request.state.principal
    return _active_profile(request, principal.user_id)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user_profile(request: Request, user_id: UUID) -> UserResponse:
    return _active_profile(request, str(user_id))
