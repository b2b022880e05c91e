"""
auth/errors.py -- Exception taxonomy for the credential lifecycle.

Two families:

  AuthError -- per-request failures. The pipeline turns every one of them into
      a 401 whose body never says which subclass fired; the subclass name only
      reaches the logs. `code` is the machine-readable label used there.

  SigningConfigurationError -- startup-fatal. Raised while wiring the process
      together (empty secret, non-positive TTL). Not an AuthError, so
      request-level handlers never catch it.

Layer rule: stdlib only.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for per-request authentication failures."""

    code = "unauthorized"


class InvalidCredentials(AuthError):
    """Username/password pair rejected at login.

    Raised for an unknown username and a wrong password alike, with the same
    message, so callers cannot enumerate accounts.
    """

    code = "bad_credentials"

    def __init__(self, message: str = "Invalid username or password.") -> None:
        super().__init__(message)


class UsernameTaken(AuthError):
    code = "conflict"


class MissingAuthorization(AuthError):
    """No Authorization header, or one that is not `Bearer <credential>`."""

    code = "missing_authorization"


class VerificationError(AuthError):
    """A presented credential failed verification."""

    code = "invalid_credential"


class MalformedCredential(VerificationError):
    code = "malformed"


class BadSignature(VerificationError):
    code = "bad_signature"


class Expired(VerificationError):
    code = "expired"


class MissingClaims(VerificationError):
    code = "missing_claims"


class SigningConfigurationError(RuntimeError):
    """The signing configuration is unusable; the process must not start."""


class PasswordPolicyError(ValueError):
    """Password length is outside the accepted bounds."""
