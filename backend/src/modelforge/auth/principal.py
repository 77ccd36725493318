"""Principal providers: who is stamped into "by" audit fields."""

import logging
from typing import Any, Protocol, runtime_checkable

from modelforge.auth.jwt_service import JWTError, JWTService
from modelforge.auth.types import UserContext

logger = logging.getLogger(__name__)


@runtime_checkable
class PrincipalProvider(Protocol):
    """Resolves the identifier of the current principal.

    Returns None when nobody is authenticated; the timestamp policy then
    substitutes the configured visitor sentinel.
    """

    def current_user(self) -> Any: ...


class StaticPrincipal:
    """Always reports the same principal (scripts, tests, workers)."""

    def __init__(self, user_id: Any = None):
        self.user_id = user_id

    def current_user(self) -> Any:
        return self.user_id


class ContextPrincipal:
    """Reads the principal from a mutable UserContext.

    The context object is shared with the caller, which updates it per
    request; the provider itself holds no identity.
    """

    def __init__(self, context: UserContext, attribute: str = "user_id"):
        self.context = context
        self.attribute = attribute

    def current_user(self) -> Any:
        return getattr(self.context, self.attribute, None)


class TokenPrincipal:
    """Reads the principal from a bearer token's ``sub`` claim.

    An expired or invalid token is treated as anonymous.
    """

    def __init__(self, service: JWTService, token: str | None = None):
        self.service = service
        self.token = token

    def authenticate(self, token: str | None) -> None:
        self.token = token

    def current_user(self) -> Any:
        if not self.token:
            return None
        try:
            claims = self.service.decode_token(self.token)
        except JWTError as e:
            logger.warning("Ignoring bearer token for audit stamping: %s", e)
            return None
        return claims.user_id or None
