"""
tablecycle.events  ──  In-process hooks for Table lifecycle changes

    from tablecycle import on

    @on.create
    def seen(table): ...

    @on.update
    def moved(previous, table): ...

``update`` fires for every status rewrite, automatic or manual.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Callable, Dict, List

if TYPE_CHECKING:
    from .core.record import Table


class EventRegistry:
    """Central registry for event handlers"""

    def __init__(self):
        # Maps event type -> handlers in registration order
        self._handlers: Dict[str, List[Callable]] = defaultdict(list)

    def register(self, event_type: str, handler: Callable) -> None:
        if handler not in self._handlers[event_type]:
            self._handlers[event_type].append(handler)

    def emit(self, event_type: str, *args: Table) -> None:
        """Emit event to all matching handlers"""
        for handler in list(self._handlers[event_type]):
            handler(*args)

    def clear(self) -> None:
        self._handlers.clear()


# Global registry instance
_registry = EventRegistry()


class OnDecorator:
    """Namespace for event decorators"""

    @staticmethod
    def create(func: Callable) -> Callable:
        """Decorator for handling table creation events"""
        _registry.register("create", func)
        return func

    @staticmethod
    def update(func: Callable) -> Callable:
        """Decorator for handling table status changes"""
        _registry.register("update", func)
        return func


# Export the decorator interface
on = OnDecorator()


def emit_create(table: Table) -> None:
    _registry.emit("create", table)


def emit_update(previous: Table, table: Table) -> None:
    _registry.emit("update", previous, table)


def clear_handlers() -> None:
    _registry.clear()
