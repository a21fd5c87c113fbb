"""
Lifecycle hooks registry for EmberORM models.
"""

from .dispatcher import HOOK_EVENTS, HookDispatcher, hooks

__all__ = ["HOOK_EVENTS", "HookDispatcher", "hooks"]
