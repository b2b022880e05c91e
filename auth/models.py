"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the store, issuer and verifier do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered identity, as held by the user-record store.

    id is a UUID string assigned at registration and never changes; username is
    unique and also immutable. hashed_password is the bcrypt string and must not
    leave auth/ -- API response models copy the public fields explicitly.
    """

    username: str
    id: str | None = None
    hashed_password: str | None = None
    display_name: str = ""
    bio: str = ""
    qr_code_identifier: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class AuthenticatedPrincipal:
    """Identity decoded from a verified credential.

    Lives on request.state for exactly one request. Timestamps are Unix seconds
    copied from the credential's iat/exp claims.
    """

    user_id: str
    username: str
    issued_at: int
    expires_at: int
