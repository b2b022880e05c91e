"""
API request and response models for socialauth REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Separation of concerns: auth/ models = domain truth; api/ models = API contract.
The password hash never appears in any model here.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import AuthenticatedPrincipal, User

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegistrationRequest(BaseModel):
    """Request body for POST /api/v1/auth/register.

    Password max_length is 72 characters; the core additionally rejects more
    than 72 UTF-8 bytes (bcrypt's input limit), which the route maps to 422.
    """

    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=8, max_length=72)
    display_name: str = Field(default="", max_length=255)


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    Lengths are capped generously so oversized bodies are refused before any
    hashing; a too-long password simply fails to authenticate.
    """

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user record."""

    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    display_name: str
    bio: str
    qr_code_identifier: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    is_active: bool

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            display_name=user.display_name,
            bio=user.bio,
            qr_code_identifier=user.qr_code_identifier,
            created_at=user.created_at,
            updated_at=user.updated_at,
            is_active=user.is_active,
        )


class LoginResponse(BaseModel):
    """Response body for a successful POST /api/v1/auth/login."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class PrincipalResponse(BaseModel):
    """Response for GET /api/v1/auth/me -- the claims of the presented credential."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str
    issued_at: int
    expires_at: int

    @classmethod
    def from_principal(cls, principal: AuthenticatedPrincipal) -> "PrincipalResponse":
        return cls(
            user_id=principal.user_id,
            username=principal.username,
            issued_at=principal.issued_at,
            expires_at=principal.expires_at,
        )


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail
