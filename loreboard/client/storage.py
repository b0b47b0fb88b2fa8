"""Device-local durable key-value store shared by every open tab.

Writes through one tab's handle are announced to the other tabs as a
StorageEvent, never to the writing tab itself.
"""
import json
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from loreboard.core.exceptions import LocalResourceError, StorageQuotaError

logger = logging.getLogger(__name__)

LOGIN_STATE_KEY = "auth:isLoggedIn"
AVATAR_KEY_PREFIX = "profile:avatar:"


@dataclass(frozen=True)
class StorageEvent:
    key: Optional[str]  # None when the whole area was cleared
    old_value: Optional[str]
    new_value: Optional[str]


StorageListener = Callable[[StorageEvent], None]


class DeviceStorage:
    def __init__(self, path: Optional[Path] = None, quota_bytes: Optional[int] = None):
        self.path = Path(path) if path else None
        self.quota_bytes = quota_bytes
        self._items: Dict[str, str] = self._load()
        self._listeners: Dict[str, List[StorageListener]] = {}

    def _load(self) -> Dict[str, str]:
        if self.path is None:
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Unable to read device storage {self.path}: {e}")
            return {}
        return {str(k): str(v) for k, v in data.items()} if isinstance(data, dict) else {}

    def _usage(self, items: Dict[str, str]) -> int:
        # Counted in characters, like the per-origin limit of browser storage
        return sum(len(k) + len(v) for k, v in items.items())

    def _commit(self, items: Dict[str, str]) -> None:
        if self.quota_bytes is not None and self._usage(items) > self.quota_bytes:
            raise StorageQuotaError("Not enough space on this device to save that.")
        if self.path is not None:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.path.write_text(json.dumps(items), encoding="utf-8")
            except OSError as e:
                raise LocalResourceError(f"Unable to write device storage: {e}")
        self._items = items

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str, origin: Optional[str] = None) -> None:
        old_value = self._items.get(key)
        self._commit({**self._items, key: str(value)})
        if old_value != value:
            self._notify(StorageEvent(key, old_value, str(value)), origin)

    def remove_item(self, key: str, origin: Optional[str] = None) -> None:
        if key not in self._items:
            return
        old_value = self._items[key]
        self._commit({k: v for k, v in self._items.items() if k != key})
        self._notify(StorageEvent(key, old_value, None), origin)

    def clear(self, origin: Optional[str] = None) -> None:
        self._commit({})
        self._notify(StorageEvent(None, None, None), origin)

    def add_listener(self, tab_id: str, listener: StorageListener) -> None:
        self._listeners.setdefault(tab_id, []).append(listener)

    def remove_listener(self, tab_id: str) -> None:
        self._listeners.pop(tab_id, None)

    def _notify(self, event: StorageEvent, origin: Optional[str]) -> None:
        for tab_id, listeners in list(self._listeners.items()):
            if tab_id == origin:
                continue
            for listener in list(listeners):
                try:
                    listener(event)
                except Exception:
                    # One tab's broken handler must not stop delivery to the rest
                    logger.exception(f"Storage listener for tab {tab_id} failed")


class TabStorage:
    """One tab's handle on the device storage."""

    def __init__(self, device: DeviceStorage, tab_id: Optional[str] = None):
        self.device = device
        self.tab_id = tab_id or uuid.uuid4().hex

    def get_item(self, key: str) -> Optional[str]:
        return self.device.get_item(key)

    def set_item(self, key: str, value: str) -> None:
        self.device.set_item(key, value, origin=self.tab_id)

    def remove_item(self, key: str) -> None:
        self.device.remove_item(key, origin=self.tab_id)

    def on_change(self, listener: StorageListener) -> None:
        """Receive changes made by other tabs."""
        self.device.add_listener(self.tab_id, listener)

    def close(self) -> None:
        self.device.remove_listener(self.tab_id)
