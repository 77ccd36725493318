"""Principal resolution for audit ("by") fields."""

from modelforge.auth.jwt_service import (
    InvalidTokenError,
    JWTError,
    JWTService,
    TokenExpiredError,
)
from modelforge.auth.principal import (
    ContextPrincipal,
    PrincipalProvider,
    StaticPrincipal,
    TokenPrincipal,
)
from modelforge.auth.types import TokenClaims, UserContext

__all__ = [
    "ContextPrincipal",
    "InvalidTokenError",
    "JWTError",
    "JWTService",
    "PrincipalProvider",
    "StaticPrincipal",
    "TokenClaims",
    "TokenExpiredError",
    "TokenPrincipal",
    "UserContext",
]
