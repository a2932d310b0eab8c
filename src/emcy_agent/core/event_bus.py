"""
Typed publish/subscribe for agent notifications.

Handlers are keyed by notification class and invoked synchronously in
registration order. Dispatch iterates over a snapshot, so a handler may
subscribe or unsubscribe (itself or others) while an event is being
delivered. Handler exceptions are not caught: observers must not raise.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from emcy_agent.models.event_models import AgentNotification, BaseNotification
from emcy_agent.utils.logger import logger

N = TypeVar("N", bound=BaseNotification)


class EventBus:
    """Registry of notification handlers keyed by notification class."""

    def __init__(self) -> None:
        # dict used as an ordered set of handlers per event class
        self._handlers: dict[type[BaseNotification], dict[Callable[[Any], None], None]] = {}

    def subscribe(self, event_type: type[N], handler: Callable[[N], None]) -> None:
        """Register ``handler`` for ``event_type``. Registering twice is a no-op."""
        self._handlers.setdefault(event_type, {})[handler] = None

    def unsubscribe(self, event_type: type[N], handler: Callable[[N], None]) -> None:
        """Remove ``handler``; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type)
        if handlers is not None:
            handlers.pop(handler, None)

    def publish(self, event: AgentNotification) -> None:
        """Deliver ``event`` to every handler registered for its class."""
        handlers = self._handlers.get(type(event))
        if not handlers:
            return

        logger.debug(f"Dispatching {event.type} to {len(handlers)} handler(s)")
        for handler in list(handlers):
            handler(event)

    def handler_count(self, event_type: type[BaseNotification]) -> int:
        return len(self._handlers.get(event_type, {}))

    def clear(self) -> None:
        self._handlers.clear()


__all__ = ["EventBus"]
