"""
auth/passwords.py -- Password hashing and verification (bcrypt).

Security design decisions:
  bcrypt directly, no passlib wrapper. bcrypt's cost factor makes every guess
  expensive, the salt is generated per call and embedded in the output, and the
  output string ($2b$<cost>$<salt><digest>) carries everything verify() needs.

  Input bounds: 1..72 UTF-8 bytes. 72 is bcrypt's hard input limit (newer
  releases raise, older ones silently truncate). Checking before hashing also
  caps the CPU an oversized request can burn.

  One opaque outcome: verify() returns False for a mismatch, an out-of-bounds
  password and a stored value that is not a bcrypt hash. Callers cannot tell
  which happened. bcrypt.checkpw compares digests in constant time.

  Timing equalization: equalize() runs a full checkpw against a dummy hash
  computed at construction. The login path calls it when the username is
  unknown so both failure paths pay the same bcrypt cost.

Hashing is CPU-bound by design. Async callers must run it in a worker thread
(Starlette's run_in_threadpool), never on the event loop.
"""

from __future__ import annotations

import bcrypt

from auth.errors import PasswordPolicyError

MIN_PASSWORD_BYTES = 1
MAX_PASSWORD_BYTES = 72


def _encode(plain: str) -> bytes | None:
    raw = plain.encode("utf-8")
    if not MIN_PASSWORD_BYTES <= len(raw) <= MAX_PASSWORD_BYTES:
        return None
    return raw


class PasswordAuthenticator:
    """Stateless bcrypt hasher/verifier with a fixed work factor.

    Usage:
        passwords = PasswordAuthenticator(rounds=12)
        stored = passwords.hash("correcthorsebatterystaple")
        passwords.verify("correcthorsebatterystaple", stored)  # True
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        self._dummy_hash = self.hash("socialauth_timing_dummy")

    def hash(self, plain: str) -> str:
        """Return a salted bcrypt hash of plain.

        Raises PasswordPolicyError if plain is empty or longer than 72 bytes.
        """
        raw = _encode(plain)
        if raw is None:
            raise PasswordPolicyError(
                f"Password must be between {MIN_PASSWORD_BYTES} and {MAX_PASSWORD_BYTES} bytes."
            )
        return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=self.rounds)).decode("ascii")

    def verify(self, plain: str, stored_hash: str | None) -> bool:
        """Return True only if plain matches stored_hash."""
        raw = _encode(plain)
        if raw is None or not stored_hash:
            return False
        try:
            return bcrypt.checkpw(raw, stored_hash.encode("utf-8"))
        except ValueError:
            # Not a bcrypt hash ("Invalid salt"). Same answer as a mismatch.
            return False

    def equalize(self, plain: str) -> None:
        """Spend one verification's worth of CPU without checking anything."""
        self.verify(plain, self._dummy_hash)
