"""Caller identity for endpoints that need a signed-in user."""

import re
from dataclasses import dataclass
from typing import Protocol

_BEARER_RE = re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE)


@dataclass(frozen=True)
class AuthContext:
    """Verified caller."""

    uid: str


class TokenVerifier(Protocol):
    """Interface for identity-provider token checks."""

    def verify(self, token: str) -> AuthContext:
        """Return the caller for a valid token or raise AuthError."""


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer`` header."""
    if not authorization:
        return None
    match = _BEARER_RE.match(authorization)
    if not match:
        return None
    token = match.group(1).strip()
    return token or None
