"""Source Protocol: the persistence collaborator used by the lifecycle engine."""

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from modelforge.schema.fields import Field
from modelforge.schema.filters import FilterNode

JOIN_INNER = "inner"
JOIN_LEFT = "left"

ORDER_ASC = "asc"
ORDER_DESC = "desc"


@dataclass
class Join:
    """Join of ``collection`` on ``collection.referenced = source.references``.

    Attributes:
        collection: Collection being joined in
        referenced: Key on the joined collection
        source: Collection holding the foreign key
        references: Foreign key column on ``source``
        kind: "inner" (parent chains) or "left" (fusion references)
    """

    collection: str
    referenced: str
    source: str
    references: str
    kind: str = JOIN_INNER


@runtime_checkable
class Source(Protocol):
    """Interface all persistence sources must implement.

    Filters arrive as Filter / FilterGroup trees; ``values`` holds their bound
    values flattened in the same order the conditions are rendered.
    """

    def connect(self) -> None: ...

    def close(self) -> None: ...

    def initialize(self, model: Any) -> None: ...

    def register(
        self,
        collection: str,
        fields: list[Field],
        values: list[Any],
        primary_key: str | None = None,
    ) -> Any: ...

    def recover(
        self,
        collection: str,
        fields: list[Field],
        joins: list[Join],
        filters: list[FilterNode],
        values: list[Any],
        order: list[tuple[Field, str]] | tuple = (),
        limit: int | None = None,
        offset: int = 0,
        group: list[Field] | tuple = (),
    ) -> list[dict[str, Any]]: ...

    def change(
        self,
        collection: str,
        fields: list[Field],
        values: list[Any],
        filters: list[FilterNode],
        filter_values: list[Any],
    ) -> bool: ...

    def remove(
        self,
        collection: str,
        filters: list[FilterNode],
        filter_values: list[Any],
    ) -> bool: ...
