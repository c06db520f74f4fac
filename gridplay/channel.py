"""
Named notification channel.

Publishers emit named notifications; subscribers register handlers per name.
Handlers registered with once() are removed before they run, so they fire at
most one time. A handler that raises is logged and isolated: the remaining
handlers for that notification still run.
"""

from collections import defaultdict
from typing import Any, Callable, DefaultDict, List

from gridplay.logging import get_logger

log = get_logger('channel')

Handler = Callable[..., Any]


class Channel:
    """Publish/subscribe hub keyed by notification name."""

    def __init__(self) -> None:
        self._handlers: DefaultDict[str, List[Handler]] = defaultdict(list)
        self._once: DefaultDict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, name: str, handler: Handler) -> None:
        self._handlers[name].append(handler)

    def once(self, name: str, handler: Handler) -> None:
        """Subscribe a handler that is dropped after its first notification."""
        self._once[name].append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        for registry in (self._handlers, self._once):
            if handler in registry[name]:
                registry[name].remove(handler)

    def subscriber_count(self, name: str) -> int:
        return len(self._handlers[name]) + len(self._once[name])

    def emit(self, name: str, *args: Any) -> None:
        once = self._once.pop(name, [])
        for handler in list(self._handlers[name]) + once:
            try:
                handler(*args)
            except Exception as exc:
                handler_name = getattr(handler, '__qualname__', repr(handler))
                log.error("Handler %s for '%s' failed: %s", handler_name, name, exc)
                log.log_traceback(exc)

    def clear(self) -> None:
        self._handlers.clear()
        self._once.clear()
