"""Bearer tokens naming the principal stamped into "by" audit fields.

Only the ``sub`` (principal id), ``iat`` and ``exp`` claims are used::

    tokens = JWTService.from_settings(EngineSettings.from_env())
    token = tokens.issue_token("U001")
    tokens.decode_token(token).user_id  # "U001"
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import jwt

from modelforge.auth.types import TokenClaims
from modelforge.core.errors import ConfigurationError

if TYPE_CHECKING:
    from modelforge.config import EngineSettings


class JWTError(Exception):
    """Base exception for bearer token errors."""


class TokenExpiredError(JWTError):
    """The token's ``exp`` claim is in the past."""


class InvalidTokenError(JWTError):
    """The token is malformed, badly signed or lacks required claims."""


class JWTService:
    """HS256 tokens signed with a shared secret."""

    ACCESS_TOKEN_TTL = 15 * 60
    REQUIRED_CLAIMS = ["sub", "exp", "iat"]

    def __init__(self, secret_key: str, algorithm: str = "HS256", leeway: int = 0):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._leeway = leeway

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> JWTService:
        if not settings.token_secret:
            raise ConfigurationError("MODELFORGE_TOKEN_SECRET is not set")
        return cls(settings.token_secret)

    def issue_token(self, user_id: str, ttl: int | None = None) -> str:
        issued = int(time.time())
        lifetime = self.ACCESS_TOKEN_TTL if ttl is None else ttl
        payload = {"sub": str(user_id), "iat": issued, "exp": issued + lifetime}
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode_token(self, token: str) -> TokenClaims:
        """Verify ``token`` and return its claims.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is invalid or malformed
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                leeway=self._leeway,
                options={"require": self.REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        return TokenClaims(user_id=payload["sub"], exp=payload["exp"], iat=payload["iat"])
