"""Per-page application state: the cached session and its generation.

Every applied session bumps the generation. Async work captures the
generation it started under and checks is_current() before touching a view,
so a slow load can never paint a session that has since been replaced.
Writes made for a member (posting, profile saves) key on the user id
instead, since token refreshes bump the generation too.
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Set

from loreboard.client.events import PageEvents
from loreboard.client.storage import LOGIN_STATE_KEY, TabStorage
from loreboard.core.exceptions import LocalResourceError
from loreboard.modules.auth.schemas import SessionInfo, SessionUser

logger = logging.getLogger(__name__)

SessionListener = Callable[[Optional[SessionInfo], int], None]


class AppState:
    def __init__(self, storage: TabStorage, events: PageEvents):
        self.storage = storage
        self.events = events
        self.session: Optional[SessionInfo] = None
        self.generation = 0
        self._listeners: List[SessionListener] = []
        self._tasks: Set[asyncio.Task] = set()

    @property
    def user(self) -> Optional[SessionUser]:
        return self.session.user if self.session else None

    @property
    def user_id(self) -> Optional[str]:
        return self.session.user.id if self.session else None

    @property
    def is_member(self) -> bool:
        return self.session is not None

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def subscribe(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def apply_session(self, session: Optional[SessionInfo]) -> int:
        """Replace the cached session and notify listeners in order. Returns the new generation."""
        self.generation += 1
        self.session = session
        self._write_login_flag(session is not None)
        generation = self.generation
        for listener in list(self._listeners):
            if not self.is_current(generation):
                # A listener applied a newer session; it already notified everyone
                break
            listener(session, generation)
        return generation

    def update_user(self, user: SessionUser) -> None:
        """Refresh the cached user without starting a new generation (same session, new metadata)."""
        if self.session is not None and self.session.user.id == user.id:
            self.session = self.session.model_copy(update={"user": user})

    def _write_login_flag(self, logged_in: bool) -> None:
        try:
            if logged_in:
                self.storage.set_item(LOGIN_STATE_KEY, "true")
            else:
                self.storage.remove_item(LOGIN_STATE_KEY)
        except LocalResourceError as e:
            logger.warning(f"Unable to persist auth visibility state: {e}")

    def spawn(self, coro: Awaitable) -> asyncio.Task:
        """Run a follow-up render in the background, keeping a reference until it finishes."""
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait until no spawned work is left, including work spawned meanwhile."""
        while self._tasks:
            results = await asyncio.gather(*list(self._tasks), return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    raise result

    async def teardown(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._listeners.clear()
        self.events.clear()
        self.storage.close()
        self.session = None
