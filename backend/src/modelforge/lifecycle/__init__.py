"""Clock and audit-stamping collaborators."""

from modelforge.lifecycle.timestamps import (
    DEFAULT_VISITOR,
    TIMESTAMP_AT,
    TIMESTAMP_BY,
    Clock,
    FixedClock,
    TimestampPolicy,
    UTCClock,
)

__all__ = [
    "Clock",
    "DEFAULT_VISITOR",
    "FixedClock",
    "TIMESTAMP_AT",
    "TIMESTAMP_BY",
    "TimestampPolicy",
    "UTCClock",
]
