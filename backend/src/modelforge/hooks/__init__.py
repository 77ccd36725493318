"""ModelForge lifecycle hook system.

Provides extension points that run at fixed points of every CRUD pipeline:
- before_<action>: before field resolution (can modify record, can abort)
- after_<action>: after the write and relationship sync (can abort the
  call, but the write stays committed)
- after_read: can replace the returned rows

Usage:
    from modelforge.model import Model

    class Invoice(Model):
        def before_create(self, record, previous=None):
            record.set("status", "draft")
            return True
"""

from modelforge.hooks.service import HookService
from modelforge.hooks.types import HOOK_AFTER, HOOK_BEFORE, ModelHooks

__all__ = [
    "HOOK_AFTER",
    "HOOK_BEFORE",
    "HookService",
    "ModelHooks",
]
