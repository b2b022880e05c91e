"""
auth/service.py -- The collaborator-facing authentication facade.

Authenticator ties the pieces together for the issuing service:

    login(username, password)  -> credential string   (or InvalidCredentials)
    issue(user)                -> credential string for an authenticated user
    authorize(headers)         -> AuthenticatedPrincipal (or an AuthError)
    register(...)              -> new User             (or UsernameTaken)

Verifier-only services do not need a store or a password hasher; they call
authorize_headers(verifier, headers) directly.

Failure reasons are logged here with their concrete class. What reaches the
client is decided by the HTTP layer and never includes that reason.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol

from sqlalchemy.exc import IntegrityError

from auth.errors import InvalidCredentials, MissingAuthorization, UsernameTaken
from auth.models import AuthenticatedPrincipal, User
from auth.passwords import PasswordAuthenticator
from auth.tokens import CredentialIssuer, CredentialVerifier

logger = logging.getLogger("socialauth.auth")


class UserLookup(Protocol):
    def get_by_username(self, username: str) -> User | None: ...

    def get_by_id(self, user_id: str) -> User | None: ...

    def create_user(self, user: User) -> str: ...


# ---------------------------------------------------------------------------
# Authorization header parsing
# ---------------------------------------------------------------------------


def parse_bearer(header_value: str | None) -> str:
    """Extract the credential from an `Authorization: Bearer <credential>` value.

    The scheme is matched case-insensitively; anything other than exactly two
    space-separated parts is rejected.
    """
    if not header_value:
        raise MissingAuthorization("Authorization header is missing")
    parts = header_value.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
        raise MissingAuthorization("Authorization header is not 'Bearer <credential>'")
    return parts[1]


def authorize_headers(verifier: CredentialVerifier, headers: Mapping[str, str]) -> AuthenticatedPrincipal:
    """Verify the bearer credential in a request's headers.

    headers should be case-insensitive (Starlette's Headers is). A plain dict
    is also accepted as long as it uses the canonical "Authorization" key.
    """
    value = headers.get("Authorization")
    if value is None:
        value = headers.get("authorization")
    return verifier.verify(parse_bearer(value))


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------


class Authenticator:
    """Login, registration and request authorization for the issuing service.

    All collaborators are passed in; nothing here reads configuration or
    module-level state.
    """

    def __init__(
        self,
        store: UserLookup,
        passwords: PasswordAuthenticator,
        issuer: CredentialIssuer,
        verifier: CredentialVerifier,
    ) -> None:
        self.store = store
        self.passwords = passwords
        self.issuer = issuer
        self.verifier = verifier

    def authenticate(self, username: str, password: str) -> User:
        """Return the active user matching username/password.

        Always runs bcrypt, whether or not the user exists, so response time
        does not reveal which usernames are registered.
        """
        user = self.store.get_by_username(username)
        if user is None or not user.is_active or not user.hashed_password:
            self.passwords.equalize(password)
            logger.info("Login rejected: no active account for %r", username)
            raise InvalidCredentials()
        if not self.passwords.verify(password, user.hashed_password):
            logger.info("Login rejected: wrong password for %r", username)
            raise InvalidCredentials()
        return user

    def login(self, username: str, password: str) -> str:
        """Authenticate and return a freshly issued credential."""
        return self.issue(self.authenticate(username, password))

    def issue(self, user: User) -> str:
        """Issue a credential for an already-authenticated user."""
        token = self.issuer.issue(user)
        logger.info("Issued credential for %r (user_id=%s)", user.username, user.id)
        return token

    def authorize(self, headers: Mapping[str, str]) -> AuthenticatedPrincipal:
        return authorize_headers(self.verifier, headers)

    def register(self, username: str, password: str, display_name: str = "") -> User:
        """Create a user with a hashed password.

        Raises PasswordPolicyError for an out-of-bounds password and
        UsernameTaken if the handle is already registered.
        """
        hashed = self.passwords.hash(password)
        try:
            user_id = self.store.create_user(
                User(username=username, hashed_password=hashed, display_name=display_name or username)
            )
        except IntegrityError as exc:
            raise UsernameTaken(f"username {username!r} is already registered") from exc
        logger.info("Registered %r (user_id=%s)", username, user_id)
        return self.store.get_by_id(user_id)
