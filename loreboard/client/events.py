"""In-page custom events, for components of the same page that need to hear each other."""
import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

AVATAR_UPDATED = "profile:avatarUpdated"

EventListener = Callable[[Dict[str, Any]], None]


class PageEvents:
    def __init__(self):
        self._listeners: Dict[str, List[EventListener]] = {}

    def add_listener(self, name: str, listener: EventListener) -> Callable[[], None]:
        self._listeners.setdefault(name, []).append(listener)

        def remove() -> None:
            listeners = self._listeners.get(name, [])
            if listener in listeners:
                listeners.remove(listener)

        return remove

    def dispatch(self, name: str, detail: Dict[str, Any]) -> None:
        for listener in list(self._listeners.get(name, [])):
            try:
                listener(detail)
            except Exception:
                logger.exception(f"Listener for {name} failed")

    def clear(self) -> None:
        self._listeners.clear()
