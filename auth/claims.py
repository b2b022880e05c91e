"""
auth/claims.py -- Fixed-shape claim record carried in a credential payload.

Wire names follow the JWT convention the downstream services already read:

    user_id   subject identifier (UUID string)
    username  handle
    iat       issued-at, Unix seconds
    exp       expires-at, Unix seconds

The verifier validates the decoded payload in pydantic strict JSON mode, so a
numeric user_id, a string exp or a missing username fails at decode time
rather than surfacing later as a KeyError in a handler. Unknown extra claims
are ignored.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CredentialClaims(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    user_id: UUID
    username: str = Field(min_length=1)
    iat: int
    exp: int

    def to_wire(self) -> dict:
        """Return the JSON-ready claim dict passed to the JWT encoder."""
        return {
            "user_id": str(self.user_id),
            "username": self.username,
            "iat": self.iat,
            "exp": self.exp,
        }
