"""Lifecycle callbacks that compose instead of overwriting each other."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List

logger = logging.getLogger(__name__)

READY = "ready"
VALID = "valid"
SUBMIT = "submit"
EVENTS = (READY, VALID, SUBMIT)

Callback = Callable[..., Any]


class EventRegistry:
    """Ordered handler lists for the ``ready``, ``valid`` and ``submit`` slots.

    A slot with no handlers is a no-op. Registering never replaces earlier
    handlers: the newest one runs first and the ones registered before it
    follow, so independent extensions all observe the event. Handlers run
    synchronously and an exception aborts the rest of the chain.
    """

    def __init__(self, events: Iterable[str] = EVENTS) -> None:
        self._handlers: Dict[str, List[Callback]] = {event: [] for event in events}
        self._fired: Dict[str, bool] = {event: False for event in self._handlers}

    def _slot(self, event: str) -> List[Callback]:
        try:
            return self._handlers[event]
        except KeyError as exc:
            raise KeyError(f"Unknown event '{event}'") from exc

    def register(self, event: str, callback: Callback) -> None:
        self._slot(event).insert(0, callback)

    def handlers(self, event: str) -> List[Callback]:
        return list(self._slot(event))

    def bound(self, event: str) -> bool:
        return bool(self._slot(event))

    def fired(self, event: str) -> bool:
        self._slot(event)
        return self._fired[event]

    def fire(self, event: str, *args: Any) -> None:
        handlers = self.handlers(event)
        self._fired[event] = True
        logger.debug("Firing %s to %d handler(s)", event, len(handlers))
        for handler in handlers:
            handler(*args)

    def run(self, callback: Callback) -> None:
        """Run ``callback`` once the canvas is ready, or right now if it already is."""

        if self._fired[READY]:
            callback()
        else:
            self.register(READY, callback)


__all__ = ["EVENTS", "EventRegistry", "READY", "SUBMIT", "VALID"]
