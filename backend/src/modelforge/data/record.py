"""Record value object carried through every lifecycle operation.

A Record distinguishes three states for a field:
- absent: ``get`` returns ``MISSING``
- explicitly null: the value is the ``NULL`` sentinel (written as SQL NULL)
- set: any other value, including ``None`` read back from a backend

Private fields stay in the record but are hidden from ``keys``, ``values``,
``all`` and iteration until they are made public again.
"""

from collections.abc import Iterator, Mapping
from typing import Any


class _Marker:
    """Singleton marker with a readable repr."""

    def __init__(self, name: str):
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_Marker":
        return self

    def __deepcopy__(self, memo: dict) -> "_Marker":
        return self


MISSING: Any = _Marker("MISSING")
NULL: Any = _Marker("NULL")


def resolve_value(value: Any) -> Any:
    """Convert the explicit-null sentinel to a storable ``None``."""
    if value is NULL:
        return None
    return value


class Record:
    """Ordered name -> value mapping for one row in flight."""

    def __init__(self, values: Mapping[str, Any] | None = None):
        self._values: dict[str, Any] = dict(values or {})
        self._private: set[str] = set()

    @classmethod
    def make(cls, values: Mapping[str, Any] | None = None) -> "Record":
        return cls(values)

    @classmethod
    def parse(cls, value: "Record | Mapping[str, Any] | None") -> "Record":
        """Normalize caller input to a Record.

        An existing Record is returned as-is so hooks and cascades operate
        on the caller's instance.
        """
        if isinstance(value, Record):
            return value
        if value is None:
            return cls()
        if isinstance(value, Mapping):
            return cls(value)
        raise TypeError(f"Cannot build a Record from {type(value).__name__}")

    def get(self, name: str, default: Any = MISSING) -> Any:
        return self._values.get(name, default)

    def set(self, name: str, value: Any) -> "Record":
        self._values[name] = value
        return self

    def has(self, name: str) -> bool:
        return name in self._values

    def remove(self, name: str) -> "Record":
        self._values.pop(name, None)
        self._private.discard(name)
        return self

    def set_private(self, name: str) -> "Record":
        self._private.add(name)
        return self

    def set_public(self, name: str) -> "Record":
        self._private.discard(name)
        return self

    def is_private(self, name: str) -> bool:
        return name in self._private

    def keys(self) -> list[str]:
        return [k for k in self._values if k not in self._private]

    def values(self) -> list[Any]:
        return [v for k, v in self._values.items() if k not in self._private]

    def items(self) -> list[tuple[str, Any]]:
        return [(k, v) for k, v in self._values.items() if k not in self._private]

    def all(self) -> dict[str, Any]:
        """Public fields as a plain dict."""
        return dict(self.items())

    def is_empty(self) -> bool:
        return not self.keys()

    def merge(self, other: "Record | Mapping[str, Any]") -> "Record":
        """Return a new Record with ``self`` as base and ``other`` overlaid.

        Keys absent from ``other`` keep their base value; keys present in
        ``other`` win, including explicit ``NULL``.
        """
        overlay = other.all() if isinstance(other, Record) else dict(other)
        merged = Record(self._values)
        merged._private = set(self._private)
        for key, value in overlay.items():
            merged._values[key] = value
        return merged

    def import_(self, values: "Record | Mapping[str, Any]") -> "Record":
        """Overlay raw values onto this record in place."""
        overlay = values.all() if isinstance(values, Record) else values
        for key, value in overlay.items():
            self._values[key] = value
        return self

    def copy(self) -> "Record":
        duplicate = Record(self._values)
        duplicate._private = set(self._private)
        return duplicate

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self._values[name] = value

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.keys())

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Record):
            return self.all() == other.all()
        if isinstance(other, Mapping):
            return self.all() == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Record({self.all()!r})"
