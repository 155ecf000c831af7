"""
Owner lifecycle extension points. The host persistence layer fires these;
typed_store subscribes callbacks instead of requiring a base class.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Hook = Callable[[Any], Any]

EVENTS = ("before_save", "after_save", "after_reload", "after_destroy")


class LifecycleHooks:
    """Callback lists per lifecycle event, run in subscription order."""

    def __init__(self) -> None:
        self._callbacks: Dict[str, List[Hook]] = {event: [] for event in EVENTS}

    def subscribe(self, event: str, callback: Hook) -> None:
        if event not in self._callbacks:
            raise ValueError(f"Unknown lifecycle event '{event}'. Available: {list(EVENTS)}")
        self._callbacks[event].append(callback)

    def on_before_save(self, callback: Hook) -> Hook:
        self.subscribe("before_save", callback)
        return callback

    def on_after_save(self, callback: Hook) -> Hook:
        self.subscribe("after_save", callback)
        return callback

    def on_after_reload(self, callback: Hook) -> Hook:
        self.subscribe("after_reload", callback)
        return callback

    def on_after_destroy(self, callback: Hook) -> Hook:
        self.subscribe("after_destroy", callback)
        return callback

    def fire(self, event: str, owner: Any) -> None:
        """Run every callback for event. The first exception propagates to the host."""
        callbacks = self._callbacks.get(event)
        if callbacks is None:
            raise ValueError(f"Unknown lifecycle event '{event}'. Available: {list(EVENTS)}")
        logger.debug("Firing %s for %s (%d callback(s))", event, type(owner).__name__, len(callbacks))
        for callback in callbacks:
            callback(owner)

    def before_save(self, owner: Any) -> None:
        self.fire("before_save", owner)

    def after_save(self, owner: Any) -> None:
        self.fire("after_save", owner)

    def after_reload(self, owner: Any) -> None:
        self.fire("after_reload", owner)

    def after_destroy(self, owner: Any) -> None:
        self.fire("after_destroy", owner)

    def callbacks(self, event: str) -> List[Hook]:
        return list(self._callbacks.get(event, ()))
