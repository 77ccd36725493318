"""Timestamp policy for "at"/"by" audit fields.

Each model maps timestamp kinds to field names per action, e.g.::

    create_keys = {"at": "_created_at", "by": "_created_by"}

"at" fields receive the clock's current time, "by" fields the current
principal (or the visitor sentinel for anonymous access). ``stamp`` captures
one value per configured field at the moment it is called.
"""

from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from modelforge.auth.principal import PrincipalProvider, StaticPrincipal

TIMESTAMP_AT = "at"
TIMESTAMP_BY = "by"

DEFAULT_VISITOR = "visitor"


@runtime_checkable
class Clock(Protocol):
    def now(self) -> Any: ...


class UTCClock:
    """Wall clock returning ISO-8601 UTC timestamps."""

    def now(self) -> str:
        return datetime.now(timezone.utc).isoformat()


class FixedClock:
    """Clock frozen at a given instant (tests, replays)."""

    def __init__(self, instant: str | datetime):
        self.instant = instant

    def now(self) -> str:
        if isinstance(self.instant, datetime):
            return self.instant.isoformat()
        return self.instant


class TimestampPolicy:
    """Resolves audit field types and values."""

    def __init__(
        self,
        clock: Clock | None = None,
        principal: PrincipalProvider | None = None,
        visitor: str = DEFAULT_VISITOR,
    ):
        self.clock = clock or UTCClock()
        self.principal = principal or StaticPrincipal()
        self.visitor = visitor

    def get_timestamp_type(self, kind: str) -> str | None:
        if kind == TIMESTAMP_AT:
            return "datetime"
        if kind == TIMESTAMP_BY:
            return "string"
        return None

    def get_timestamp_value(self, kind: str) -> Any:
        if kind == TIMESTAMP_AT:
            return self.clock.now()
        if kind == TIMESTAMP_BY:
            user = self.principal.current_user()
            return user if user is not None else self.visitor
        return None

    def stamp(self, keys: dict[str, str]) -> dict[str, Any]:
        """Field name -> value for every configured timestamp kind."""
        return {name: self.get_timestamp_value(kind) for kind, name in keys.items()}
