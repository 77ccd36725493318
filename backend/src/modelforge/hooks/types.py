"""Lifecycle hook interface for models.

Models override only the hooks they need; every hook defaults to a
pass-through. Hooks run inside the engine's pipeline:

- before_<action>: after parent cascades, before any field resolution.
  Returning a falsy value aborts the operation with a HookError. Changes made
  to ``record`` are persisted.
- after_<action>: after the write and relationship synchronization.
  Returning a falsy value raises a HookError; the write is not undone.
- after_read: may return a list of rows that replaces the result set.
- configure_fields_<action> / get_defaults_<action>: used by the
  repository before validation to normalize input and supply defaults.

Actions without a dedicated hook (custom aliases such as "signup" or
"count") go through ``before_alias`` / ``after_alias``.
"""

from typing import Any

from modelforge.data.record import Record

HOOK_BEFORE = "before"
HOOK_AFTER = "after"


class ModelHooks:
    """Default (pass-through) hook implementations."""

    # -- before -------------------------------------------------------------

    def before_create(self, record: Record, previous: Record | None = None) -> bool:
        return True

    def before_read(self, record: Record, previous: Record | None = None) -> bool:
        return True

    def before_update(self, record: Record, previous: Record | None = None) -> bool:
        return True

    def before_destroy(self, record: Record, previous: Record | None = None) -> bool:
        return True

    def before_recycle(self, record: Record, previous: Record | None = None) -> bool:
        return True

    def before_alias(
        self, action: str, record: Record, previous: Record | None = None
    ) -> bool:
        return True

    # -- after --------------------------------------------------------------

    def after_create(self, record: Record) -> bool:
        return True

    def after_read(self, record: Record, rows: list[Record]) -> list[Record] | bool:
        return rows

    def after_update(self, record: Record) -> bool:
        return True

    def after_destroy(self, record: Record) -> bool:
        return True

    def after_recycle(self, record: Record) -> bool:
        return True

    def after_alias(
        self, action: str, record: Record, rows: list[Record] | None = None
    ) -> Any:
        return rows if rows is not None else True

    # -- repository preparation --------------------------------------------

    def configure_fields_create(self, record: Record) -> None:
        pass

    def configure_fields_update(self, record: Record) -> None:
        pass

    def get_defaults_create(self, record: Record) -> dict[str, Any]:
        return {}

    def get_defaults_update(self, record: Record) -> dict[str, Any]:
        return {}
