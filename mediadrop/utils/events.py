"""Commit event dispatch."""
from typing import Callable, Dict, List
import inspect
import logging

logger = logging.getLogger(__name__)


class EventEmitter:
    """
    Dispatches commit events to listeners in subscription order.

    Listeners may be plain callables or coroutine functions; a failing
    listener is logged and skipped.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {}

    def on(self, event_name: str, callback: Callable):
        """Subscribe to an event (duplicates ignored)."""
        listeners = self._listeners.setdefault(event_name, [])
        if callback not in listeners:
            listeners.append(callback)

    async def emit(self, event_name: str, *args, **kwargs):
        for callback in list(self._listeners.get(event_name, ())):
            try:
                result = callback(*args, **kwargs)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Listener for {event_name} failed: {e}")
