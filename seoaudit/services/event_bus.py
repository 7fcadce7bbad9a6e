import logging
import threading
from typing import Callable, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

ADD = "add"
IGNORE = "ignore"
ERROR = "error"
DONE = "done"

ENGINE_EVENTS = (ADD, IGNORE, ERROR, DONE)


class EventBus:
    """Small publish/subscribe hub for a fixed set of named events.

    Handlers are called synchronously on the emitting thread, in registration
    order. A handler that raises is logged and does not prevent the remaining
    handlers from running.
    """

    def __init__(self, event_names: Iterable[str] = ENGINE_EVENTS):
        self._lock = threading.Lock()
        self._handlers: Dict[str, List[Callable]] = {name: [] for name in event_names}

    def _check(self, event: str) -> None:
        if event not in self._handlers:
            raise ValueError(f"Unknown event {event!r}; expected one of {sorted(self._handlers)}")

    def on(self, event: str, handler: Callable) -> None:
        self._check(event)
        with self._lock:
            self._handlers[event].append(handler)

    def off(self, event: str, handler: Optional[Callable] = None) -> None:
        """Remove `handler` from `event`, or every handler when none is given."""
        self._check(event)
        with self._lock:
            if handler is None:
                self._handlers[event].clear()
                return
            try:
                self._handlers[event].remove(handler)
            except ValueError:
                pass

    def emit(self, event: str, *args) -> None:
        self._check(event)
        with self._lock:
            handlers = list(self._handlers[event])
        for handler in handlers:
            try:
                handler(*args)
            except Exception:
                logger.exception("Handler %r for %r event failed", handler, event)
