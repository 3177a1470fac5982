from __future__ import annotations

import logging
from typing import Callable, Dict, Set

EVENTS = ("after_create", "after_update", "after_delete")


class ServiceEvents:
    """Per-instance ``after_*`` listeners; callbacks receive the entity id."""

    logger: logging.Logger

    def __init__(self) -> None:
        self._listeners: Dict[str, Set[Callable[[str], None]]] = {event: set() for event in EVENTS}

    def subscribe(self, event: str, callback: Callable[[str], None]) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unsupported event: {event}")
        self._listeners[event].add(callback)

    def unsubscribe(self, event: str, callback: Callable[[str], None]) -> None:
        if event not in self._listeners:
            return
        self._listeners[event].discard(callback)

    def _emit(self, event: str, entity_id: str) -> None:
        for listener in list(self._listeners.get(event, ())):
            try:
                listener(entity_id)
            except Exception:
                self.logger.exception("Listener for %s failed", event)


__all__ = ["EVENTS", "ServiceEvents"]
