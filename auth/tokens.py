"""
auth/tokens.py -- Credential issuance and verification (JWT, HS256).

Security design decisions:
  Envelope: python-jose JWS compact serialization -- three dot-joined,
       unpadded base64url segments (header.payload.signature). The header is
       {"alg": "HS256", "typ": "JWT"}; the signature is HMAC-SHA256 over the
       ASCII bytes of "header.payload". This is the format every verifying
       service already parses, so it is kept byte-compatible.

  Issuer and verifier share nothing but an AuthConfig (secret + TTL) and a
       clock. Neither holds mutable state, so a single instance of each is
       safe to call from any number of threads at once.

  Verification is done in explicit steps instead of one jwt.decode() call so
       each failure maps to exactly one error class:
         framing, header    -> MalformedCredential (header segment capped, decoded once)
         alg != HS256       -> BadSignature   (blocks "none"/HS512/RS256 swaps)
         MAC mismatch       -> BadSignature   (hmac.compare_digest in jose; the
                                              signature text must be canonical)
         claim shape        -> MissingClaims
         now >= exp         -> Expired
       Expiry is checked here rather than by jose so the boundary is exact:
       a credential is valid strictly before exp, with no leeway.

  No store lookups. A credential issued to a user who is later deactivated
       stays valid until exp; enforcing deactivation is the handler's job.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import datetime, timezone

from jose import jwk, jws, jwt
from jose.backends.base import Key
from jose.exceptions import JWKError, JWSError
from jose.utils import base64url_decode, base64url_encode
from pydantic import ValidationError

from auth.claims import CredentialClaims
from auth.config import AuthConfig
from auth.errors import BadSignature, Expired, MalformedCredential, MissingClaims, SigningConfigurationError
from auth.models import AuthenticatedPrincipal, User

ALGORITHM = "HS256"

Clock = Callable[[], datetime]

# header and payload must be non-empty; an empty signature is framed correctly
# but can only come from alg=none, which the algorithm check rejects.
_FRAMING_RE = re.compile(r"[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*")

# {"alg":"HS256","typ":"JWT"} encodes to 36 characters. Longer headers are
# refused before json.loads sees them; deeply nested JSON exhausts the stack.
_MAX_HEADER_SEGMENT = 256


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _unix(clock: Clock) -> int:
    return int(clock().timestamp())


def _signing_key(config: AuthConfig) -> Key:
    """Build the HMAC key once so a key jose refuses fails at startup, not per request."""
    try:
        return jwk.construct(config.secret, ALGORITHM)
    except JWKError as exc:
        raise SigningConfigurationError(f"Signing secret is not usable as an HMAC key: {exc}") from exc


# ---------------------------------------------------------------------------
# Issuance
# ---------------------------------------------------------------------------


class CredentialIssuer:
    """Mints signed, time-bounded credentials for already-verified users."""

    def __init__(self, config: AuthConfig, clock: Clock = utc_now) -> None:
        self._config = config
        self._key = _signing_key(config)
        self._clock = clock

    @property
    def ttl_seconds(self) -> int:
        return self._config.ttl_seconds

    def claims_for(self, user: User) -> CredentialClaims:
        now = _unix(self._clock)
        return CredentialClaims(
            user_id=user.id,
            username=user.username,
            iat=now,
            exp=now + self._config.ttl_seconds,
        )

    def issue(self, user: User) -> str:
        """Return an encoded credential for user.

        user.id must be the UUID string assigned by the store.
        """
        claims = self.claims_for(user)
        return jwt.encode(claims.to_wire(), self._key, algorithm=ALGORITHM)


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


class CredentialVerifier:
    """Checks a credential and extracts the principal it asserts.

    verify() either returns an AuthenticatedPrincipal or raises one of the
    VerificationError subclasses. It performs no I/O.
    """

    def __init__(self, config: AuthConfig, clock: Clock = utc_now) -> None:
        self._config = config
        self._key = _signing_key(config)
        self._clock = clock

    def verify(self, token: str) -> AuthenticatedPrincipal:
        header = self._check_framing(token)
        payload = self._check_signature(token, header)
        claims = self._decode_claims(payload)

        now = _unix(self._clock)
        if now >= claims.exp:
            raise Expired(f"credential expired at {claims.exp} (now {now})")

        return AuthenticatedPrincipal(
            user_id=str(claims.user_id),
            username=claims.username,
            issued_at=claims.iat,
            expires_at=claims.exp,
        )

    @staticmethod
    def _check_framing(token: str) -> dict:
        """Return the decoded header of a well-framed credential."""
        if not isinstance(token, str) or not _FRAMING_RE.fullmatch(token):
            raise MalformedCredential("credential is not three base64url segments")
        if len(token.split(".", 1)[0]) > _MAX_HEADER_SEGMENT:
            raise MalformedCredential("credential header is too long")
        try:
            # Decodes all three segments and requires a JSON-object header.
            return jws.get_unverified_header(token)
        except (JWSError, RecursionError) as exc:
            raise MalformedCredential(f"credential cannot be decoded: {exc}") from exc

    def _check_signature(self, token: str, header: dict) -> bytes:
        alg = header.get("alg")
        if alg != ALGORITHM:
            raise BadSignature(f"unexpected signing algorithm {alg!r}")
        # base64url decoding ignores the unused low bits of the last character,
        # so several signature strings decode to the same MAC. Only the
        # canonical one is accepted.
        signature = token.rsplit(".", 1)[1].encode("ascii")
        if base64url_encode(base64url_decode(signature)) != signature:
            raise BadSignature("signature segment is not canonical base64url")
        try:
            return jws.verify(token, self._key, algorithms=[ALGORITHM])
        except JWSError as exc:
            raise BadSignature("signature verification failed") from exc

    @staticmethod
    def _decode_claims(payload: bytes) -> CredentialClaims:
        try:
            return CredentialClaims.model_validate_json(payload, strict=True)
        except ValidationError as exc:
            fields = sorted({".".join(str(p) for p in err["loc"]) or "payload" for err in exc.errors()})
            raise MissingClaims(f"invalid or missing claims: {', '.join(fields)}") from exc
