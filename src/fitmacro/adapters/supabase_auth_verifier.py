"""Bearer token verification against Supabase Auth."""

import logging
from dataclasses import dataclass

from supabase import Client

from fitmacro.domain.errors import AuthError
from fitmacro.services.auth import AuthContext, TokenVerifier

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseAuthVerifier(TokenVerifier):
    """Resolves an access token to the Supabase user id."""

    client: Client

    def verify(self, token: str) -> AuthContext:
        """Return the caller's identity or raise AuthError."""
        try:
            response = self.client.auth.get_user(token)
        except Exception as exc:
            _logger.info("Token verification failed: %s", exc)
            raise AuthError("Invalid token") from exc
        user = getattr(response, "user", None) if response is not None else None
        if user is None or not getattr(user, "id", None):
            raise AuthError("Invalid token")
        return AuthContext(uid=str(user.id))
