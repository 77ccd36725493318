"""Identity values consumed by the principal providers."""

from dataclasses import dataclass


@dataclass
class UserContext:
    """Mutable holder for the caller the engine currently acts for.

    The application sets ``user_id`` per request or job; a
    ``ContextPrincipal`` reads it at stamping time.
    """

    user_id: str | None = None


@dataclass
class TokenClaims:
    """Verified bearer token claims (``sub``, ``exp``, ``iat``)."""

    user_id: str
    exp: int = 0
    iat: int = 0
