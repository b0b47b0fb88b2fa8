"""Device-local avatars and the cross-tab sync that keeps their views coherent.

The durable store is the only source of truth. AvatarCache is a per-page
lookup in front of it, and AvatarSync only ever invalidates that lookup and
asks the registered views to re-render.
"""
import asyncio
import base64
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

from loreboard.client.events import AVATAR_UPDATED, PageEvents
from loreboard.client.storage import AVATAR_KEY_PREFIX, StorageEvent, TabStorage
from loreboard.core.exceptions import LocalResourceError

logger = logging.getLogger(__name__)

AvatarRenderer = Callable[[str], None]


def avatar_storage_key(user_id: Optional[str]) -> str:
    return f"{AVATAR_KEY_PREFIX}{user_id}" if user_id else ""


@dataclass
class AvatarUpload:
    """An image the user picked; only read when read() is awaited."""
    filename: str
    content_type: str
    size: int
    reader: Callable[[], Awaitable[bytes]]

    async def read(self) -> bytes:
        return await self.reader()

    @classmethod
    def from_path(cls, path: Path, content_type: Optional[str] = None) -> "AvatarUpload":
        path = Path(path)

        async def reader() -> bytes:
            return await asyncio.to_thread(path.read_bytes)

        return cls(
            filename=path.name,
            content_type=content_type or mimetypes.guess_type(path.name)[0] or "application/octet-stream",
            size=path.stat().st_size,
            reader=reader,
        )

    @classmethod
    def from_bytes(cls, data: bytes, filename: str = "avatar.png", content_type: str = "image/png") -> "AvatarUpload":
        async def reader() -> bytes:
            return data

        return cls(filename=filename, content_type=content_type, size=len(data), reader=reader)


async def read_as_data_url(upload: AvatarUpload) -> str:
    """Read the whole file into a self-contained data URL. Raises LocalResourceError when unreadable."""
    try:
        data = await upload.read()
    except OSError as e:
        raise LocalResourceError(f"Unable to read {upload.filename}: {e}")
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{upload.content_type};base64,{encoded}"


class AvatarCache:
    def __init__(self, storage: TabStorage):
        self.storage = storage
        self._entries: Dict[str, Optional[str]] = {}

    def get(self, user_id: Optional[str]) -> Optional[str]:
        if not user_id:
            return None
        if user_id not in self._entries:
            self._entries[user_id] = self.storage.get_item(avatar_storage_key(user_id))
        return self._entries[user_id]

    def save(self, user_id: str, data_url: str) -> None:
        """Persist first; the lookup only changes once the durable write succeeded."""
        self.storage.set_item(avatar_storage_key(user_id), data_url)
        self._entries[user_id] = data_url

    def remove(self, user_id: str) -> None:
        self.storage.remove_item(avatar_storage_key(user_id))
        self._entries[user_id] = None

    def invalidate(self, user_id: Optional[str] = None) -> None:
        if user_id is None:
            self._entries.clear()
        else:
            self._entries.pop(user_id, None)


class AvatarSync:
    def __init__(self, storage: TabStorage, events: PageEvents, cache: AvatarCache):
        self.storage = storage
        self.events = events
        self.cache = cache
        self._renderers: List[AvatarRenderer] = []
        self._remove_listener: Optional[Callable[[], None]] = None
        self._active = False

    def add_renderer(self, renderer: AvatarRenderer) -> None:
        self._renderers.append(renderer)

    def start(self) -> None:
        if self._active:
            return
        self._active = True
        self.storage.on_change(self._on_storage_change)
        self._remove_listener = self.events.add_listener(AVATAR_UPDATED, self._on_avatar_updated)

    def stop(self) -> None:
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
        self._active = False

    def broadcast(self, user_id: str, src: Optional[str]) -> None:
        self.events.dispatch(AVATAR_UPDATED, {"userId": user_id, "src": src})

    def _on_storage_change(self, event: StorageEvent) -> None:
        if not self._active:
            return
        if event.key is None:
            self.cache.invalidate()
            for renderer in list(self._renderers):
                renderer("")
            return
        if not event.key.startswith(AVATAR_KEY_PREFIX):
            return
        self.refresh(event.key[len(AVATAR_KEY_PREFIX):])

    def _on_avatar_updated(self, detail: Dict[str, Any]) -> None:
        user_id = detail.get("userId")
        if user_id:
            self.refresh(user_id)

    def refresh(self, user_id: str) -> None:
        self.cache.invalidate(user_id)
        for renderer in list(self._renderers):
            renderer(user_id)
