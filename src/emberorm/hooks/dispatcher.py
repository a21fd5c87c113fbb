"""
Hook dispatcher coordinating lifecycle events.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Type

from ..utils import get_logger

if TYPE_CHECKING:
    from ..core.model import Model


HookHandler = Callable[..., None]

HOOK_EVENTS = frozenset(
    {
        "before_save",
        "after_save",
        "before_create",
        "after_create",
        "before_update",
        "after_update",
        "before_destroy",
        "after_destroy",
    }
)


class HookDispatcher:
    """
    Maintains global and per-model hook handlers.

    Handlers are called as ``handler(instance, **context)``. Global handlers
    run before model handlers; within each group registration order is kept.
    """

    def __init__(self) -> None:
        self._global_handlers: Dict[str, List[HookHandler]] = defaultdict(list)
        self._model_handlers: Dict[Type["Model"], Dict[str, List[HookHandler]]] = defaultdict(
            lambda: defaultdict(list)
        )
        self.logger = get_logger("hooks")

    def register(
        self, event: str, handler: HookHandler, *, model: Optional[Type["Model"]] = None
    ) -> None:
        if event not in HOOK_EVENTS:
            raise ValueError(f"Unknown hook event '{event}'")
        if model:
            self._model_handlers[model][event].append(handler)
        else:
            self._global_handlers[event].append(handler)

    def fire(self, event: str, instance: "Model", **context: Any) -> None:
        handlers = list(self._global_handlers.get(event, []))
        handlers.extend(self._model_handlers.get(type(instance), {}).get(event, []))
        if handlers:
            self.logger.debug("Firing %s for %s (%d handlers)", event, type(instance).__name__, len(handlers))
        for handler in handlers:
            handler(instance, **context)

    def clear(self) -> None:
        self._global_handlers.clear()
        self._model_handlers.clear()


hooks = HookDispatcher()
