"""Field types, lifecycle actions and aggregators."""

from enum import Enum


class Action(str, Enum):
    """Canonical lifecycle actions.

    Aliases passed to the engine (e.g. "recycle", "count", "signup") are
    plain strings; only these values select field applicability and
    relationship behavior.
    """

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DESTROY = "destroy"
    RECOVER = "recover"

    def __str__(self) -> str:
        return self.value


class Aggregator(str, Enum):
    """Aggregate functions a synthetic read field can carry."""

    COUNT = "count"
    SUM = "sum"
    MIN = "min"
    MAX = "max"


# Field type name -> SQL storage type
FIELD_TYPES: dict[str, str] = {
    "string": "TEXT",
    "text": "TEXT",
    "hash": "TEXT",  # Client-assignable external identifier
    "integer": "INTEGER",
    "number": "REAL",
    "boolean": "INTEGER",  # 0/1
    "date": "TEXT",  # ISO format
    "datetime": "TEXT",  # ISO format
    "reference": "INTEGER",  # Stores the referenced primary key
}


def get_storage_type(type_name: str) -> str:
    """Get SQL storage type for a field type, TEXT when unknown."""
    return FIELD_TYPES.get(type_name, FIELD_TYPES["string"])
