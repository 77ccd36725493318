"""In-flight data containers."""

from modelforge.data.record import MISSING, NULL, Record, resolve_value

__all__ = ["MISSING", "NULL", "Record", "resolve_value"]
