# pyLegoHub/events.py

import logging
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

# Emitted by the block runtime when the user presses the stop button.
PROJECT_STOP_ALL = "PROJECT_STOP_ALL"


class EventSource:
    """
    Minimal event emitter standing in for the block runtime.
    Sessions subscribe at construction and unsubscribe when closed.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = {}

    def on(self, event: str, callback: Callable):
        self._listeners.setdefault(event, []).append(callback)

    def off(self, event: str, callback: Callable):
        listeners = self._listeners.get(event, [])
        if callback in listeners:
            listeners.remove(callback)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def emit(self, event: str, *args):
        for callback in list(self._listeners.get(event, [])):
            try:
                callback(*args)
            except Exception:
                logger.exception("Listener for %s failed", event)
