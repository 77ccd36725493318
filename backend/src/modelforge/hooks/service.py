"""Hook dispatch for the lifecycle engine.

Resolves the hook method for an action from an explicit table, runs it and
turns a rejection into a HookError. Engine errors raised by a hook propagate
unchanged; any other exception is wrapped (and chained) as a HookError.
"""

import logging
from collections.abc import Callable
from typing import Any

from modelforge.core.errors import HookError, ModelForgeError
from modelforge.core.types import Action
from modelforge.data.record import Record
from modelforge.hooks.types import HOOK_AFTER, HOOK_BEFORE, ModelHooks

logger = logging.getLogger(__name__)


def _before_table(hooks: ModelHooks) -> dict[str, Callable[..., Any]]:
    return {
        Action.CREATE.value: hooks.before_create,
        Action.READ.value: hooks.before_read,
        Action.UPDATE.value: hooks.before_update,
        Action.DESTROY.value: hooks.before_destroy,
        "recycle": hooks.before_recycle,
    }


def _after_table(hooks: ModelHooks) -> dict[str, Callable[..., Any]]:
    return {
        Action.CREATE.value: hooks.after_create,
        Action.UPDATE.value: hooks.after_update,
        Action.DESTROY.value: hooks.after_destroy,
        "recycle": hooks.after_recycle,
    }


class HookService:
    """Runs before/after hooks and repository preparation hooks."""

    def before(
        self,
        hooks: ModelHooks,
        model_name: str,
        action: str,
        record: Record,
        previous: Record | None = None,
    ) -> None:
        """Run the before hook for ``action``.

        Raises:
            HookError: If the hook returns a falsy value or fails
        """
        method = _before_table(hooks).get(action)
        if method is not None:
            call = lambda: method(record, previous)  # noqa: E731
        else:
            call = lambda: hooks.before_alias(action, record, previous)  # noqa: E731

        if not self._run(call, model_name, action, HOOK_BEFORE):
            logger.warning("Hook %s.before rejected %s", model_name, action)
            raise HookError(model_name, action, HOOK_BEFORE)

    def after(
        self,
        hooks: ModelHooks,
        model_name: str,
        action: str,
        record: Record,
    ) -> None:
        """Run the after hook for a write action.

        Raises:
            HookError: If the hook returns a falsy value or fails
        """
        method = _after_table(hooks).get(action)
        if method is not None:
            call = lambda: method(record)  # noqa: E731
        else:
            call = lambda: hooks.after_alias(action, record)  # noqa: E731

        if not self._run(call, model_name, action, HOOK_AFTER):
            logger.warning("Hook %s.after rejected %s", model_name, action)
            raise HookError(model_name, action, HOOK_AFTER)

    def after_read(
        self,
        hooks: ModelHooks,
        model_name: str,
        action: str,
        record: Record,
        rows: list[Record],
    ) -> list[Record]:
        """Run the after hook for a read and return the (possibly replaced) rows.

        A list result replaces the rows; ``None`` or any other truthy value
        passes them through; ``False`` is a rejection.
        """
        if action == Action.READ.value:
            call = lambda: hooks.after_read(record, rows)  # noqa: E731
        else:
            call = lambda: hooks.after_alias(action, record, rows)  # noqa: E731

        result = self._run(call, model_name, action, HOOK_AFTER)
        if result is False:
            logger.warning("Hook %s.after rejected %s", model_name, action)
            raise HookError(model_name, action, HOOK_AFTER)
        if isinstance(result, list):
            return result
        return rows

    def configure_fields(self, hooks: ModelHooks, action: str, record: Record) -> None:
        if action == Action.CREATE.value:
            hooks.configure_fields_create(record)
        elif action == Action.UPDATE.value:
            hooks.configure_fields_update(record)

    def get_defaults(
        self, hooks: ModelHooks, action: str, record: Record
    ) -> dict[str, Any]:
        if action == Action.CREATE.value:
            return hooks.get_defaults_create(record) or {}
        if action == Action.UPDATE.value:
            return hooks.get_defaults_update(record) or {}
        return {}

    def _run(
        self,
        call: Callable[[], Any],
        model_name: str,
        action: str,
        hook: str,
    ) -> Any:
        try:
            return call()
        except ModelForgeError:
            raise
        except Exception as e:
            logger.error("Hook %s.%s failed for %s: %s", model_name, hook, action, e)
            raise HookError(model_name, action, hook) from e
