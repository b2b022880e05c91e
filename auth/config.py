"""
auth/config.py -- The signing configuration shared by issuer and verifier.

AuthConfig is built once at startup from core.config.Settings and passed by
reference to CredentialIssuer and CredentialVerifier. It is frozen: the secret
is read-only for the life of the process, so every concurrent issue/verify
call sees the same value without locking. Changing the secret means building
a new AuthConfig and restarting; every outstanding credential becomes invalid
at once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from auth.errors import SigningConfigurationError

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("socialauth.config")

# HMAC-SHA256 keys shorter than the digest size waste most of its strength.
_RECOMMENDED_SECRET_BYTES = 32


@dataclass(frozen=True)
class AuthConfig:
    secret: bytes
    ttl: timedelta = timedelta(hours=72)

    def __post_init__(self) -> None:
        if not self.secret:
            raise SigningConfigurationError(
                "JWT_SECRET_KEY is not set. Refusing to start without a signing secret."
            )
        if self.ttl <= timedelta(0):
            raise SigningConfigurationError("Credential TTL must be positive.")
        if len(self.secret) < _RECOMMENDED_SECRET_BYTES:
            logger.warning(
                "Signing secret is %d bytes; at least %d is recommended.",
                len(self.secret),
                _RECOMMENDED_SECRET_BYTES,
            )

    @property
    def ttl_seconds(self) -> int:
        return int(self.ttl.total_seconds())

    @classmethod
    def from_settings(cls, settings: Settings) -> AuthConfig:
        return cls(
            secret=settings.jwt_secret_key.encode("utf-8"),
            ttl=timedelta(seconds=settings.token_ttl_seconds),
        )
