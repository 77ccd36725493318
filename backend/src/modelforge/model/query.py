"""Per-call read options.

A QuerySpec is built for one call and discarded afterwards; models hold no
pending clause state between calls.
"""

from dataclasses import dataclass
from typing import Any

from modelforge.persistence.source import ORDER_ASC, ORDER_DESC
from modelforge.schema.fields import Field


@dataclass(frozen=True)
class QuerySpec:
    """Read options.

    Attributes:
        fields: Fields (or names) to select instead of the read fields
        order: Sort keys, "name" ascending or "-name" descending; a
            (name, "asc"|"desc") tuple is accepted too
        limit: Maximum number of rows (None means unlimited)
        offset: Rows to skip
        group: Fields (or names) to group by
    """

    fields: tuple[Any, ...] | list[Any] | None = None
    order: tuple[Any, ...] | list[Any] = ()
    limit: int | None = None
    offset: int = 0
    group: tuple[Any, ...] | list[Any] = ()


def parse_order(item: Any) -> tuple[str | Field, str]:
    """Split an order key into (field name or Field, direction)."""
    if isinstance(item, tuple):
        name, direction = item
        return name, ORDER_DESC if str(direction).lower() == ORDER_DESC else ORDER_ASC
    if isinstance(item, str) and item.startswith("-"):
        return item[1:], ORDER_DESC
    return item, ORDER_ASC
