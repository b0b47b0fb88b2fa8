"""Shared fixtures for page controller tests: in-memory auth and posts services."""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import pytest

from loreboard.client.collaborators import AuthEvent
from loreboard.client.page import Page, PageKind
from loreboard.client.storage import DeviceStorage
from loreboard.config.settings import Settings
from loreboard.core.exceptions import CollaboratorError, FetchError
from loreboard.modules.auth.schemas import SessionInfo, SessionUser
from loreboard.modules.posts.schemas import PostResponse


class FakeAuth:
    """Auth service double that emits notifications the way Supabase does."""

    def __init__(self) -> None:
        self.accounts: Dict[str, Dict[str, Any]] = {}
        self.session: Optional[SessionInfo] = None
        self.listeners: List[Callable] = []
        self.session_gate: Optional[asyncio.Event] = None
        self.update_gate: Optional[asyncio.Event] = None
        self.fail_get_session: Optional[str] = None
        self.fail_update: Optional[str] = None
        self.fail_sign_out: Optional[str] = None
        self.confirm_email = False
        self.update_calls: List[Dict[str, Any]] = []

    def emit(self, event: AuthEvent, session: Optional[SessionInfo]) -> None:
        for listener in list(self.listeners):
            listener(event, session)

    def make_session(self, email: str = "member@example.com", user_id: str = None, **metadata) -> SessionInfo:
        user = SessionUser(id=user_id or str(uuid.uuid4()), email=email, user_metadata=metadata)
        return SessionInfo(user=user, access_token=f"token-{user.id}")

    def sign_in_as(self, session: SessionInfo) -> None:
        self.session = session
        self.emit(AuthEvent.SIGNED_IN, session)

    async def get_session(self) -> Optional[SessionInfo]:
        session = self.session
        if self.session_gate is not None:
            await self.session_gate.wait()
        if self.fail_get_session:
            raise CollaboratorError(self.fail_get_session)
        return session

    async def sign_up(self, email: str, password: str) -> Optional[SessionInfo]:
        if email in self.accounts:
            raise CollaboratorError("User already registered")
        session = self.make_session(email=email)
        self.accounts[email] = {"password": password, "user": session.user}
        if self.confirm_email:
            return None
        self.sign_in_as(session)
        return session

    async def sign_in_with_password(self, email: str, password: str) -> SessionInfo:
        account = self.accounts.get(email)
        if account is None or account["password"] != password:
            raise CollaboratorError("Invalid login credentials")
        session = SessionInfo(user=account["user"], access_token="token")
        self.sign_in_as(session)
        return session

    async def sign_out(self) -> None:
        if self.fail_sign_out:
            raise CollaboratorError(self.fail_sign_out)
        self.session = None
        self.emit(AuthEvent.SIGNED_OUT, None)

    async def update_user(self, metadata: Dict[str, Any]) -> SessionUser:
        self.update_calls.append(metadata)
        if self.update_gate is not None:
            await self.update_gate.wait()
        if self.fail_update:
            raise CollaboratorError(self.fail_update)
        user = self.session.user.model_copy(update={"user_metadata": {**self.session.user.user_metadata, **metadata}})
        self.session = self.session.model_copy(update={"user": user})
        self.emit(AuthEvent.USER_UPDATED, self.session)
        return user

    def on_auth_state_change(self, callback: Callable) -> Callable[[], None]:
        self.listeners.append(callback)
        return lambda: self.listeners.remove(callback)


class FakePosts:
    """Posts table double: newest first, ids and timestamps assigned by the store."""

    def __init__(self) -> None:
        self.rows: List[Dict[str, Any]] = []
        self.subscribers: List[Callable[[], None]] = []
        self.select_calls = 0
        self.insert_calls = 0
        self.fail_select: Optional[str] = None
        self.fail_insert: Optional[str] = None
        self.select_gate: Optional[asyncio.Event] = None
        self.on_insert: Optional[Callable[[], None]] = None
        self._clock = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def _tick(self) -> str:
        self._clock += timedelta(minutes=1)
        return self._clock.isoformat()

    def seed(self, content: str, user_id: Optional[str] = None, created_at: Optional[str] = "now") -> Dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "content": content,
            "created_at": self._tick() if created_at == "now" else created_at,
        }
        self.rows.append(row)
        return row

    @staticmethod
    def _sort_key(row: Dict[str, Any]) -> str:
        return row.get("created_at") or ""

    async def select_posts(self, author_id: Optional[str] = None, limit: Optional[int] = None) -> List[PostResponse]:
        self.select_calls += 1
        if self.select_gate is not None:
            await self.select_gate.wait()
        if self.fail_select:
            raise FetchError(self.fail_select)
        rows = [r for r in self.rows if author_id is None or r["user_id"] == author_id]
        rows.sort(key=self._sort_key, reverse=True)
        if limit:
            rows = rows[:limit]
        return [PostResponse(**row) for row in rows]

    async def insert_post(self, user_id: str, content: str) -> PostResponse:
        self.insert_calls += 1
        if self.on_insert is not None:
            self.on_insert()
        if self.fail_insert:
            raise CollaboratorError(self.fail_insert)
        return PostResponse(**self.seed(content, user_id=user_id))

    async def delete_post(self, post_id: str) -> None:
        remaining = [r for r in self.rows if r["id"] != post_id]
        if len(remaining) == len(self.rows):
            raise CollaboratorError("Post not found", status=404)
        self.rows = remaining

    async def subscribe(self, callback: Callable[[], None]):
        self.subscribers.append(callback)

        async def unsubscribe() -> None:
            self.subscribers.remove(callback)

        return unsubscribe

    def notify(self) -> None:
        for callback in list(self.subscribers):
            callback()


@pytest.fixture
def fake_auth() -> FakeAuth:
    return FakeAuth()


@pytest.fixture
def fake_posts() -> FakePosts:
    return FakePosts()


@pytest.fixture
def device() -> DeviceStorage:
    return DeviceStorage(quota_bytes=5 * 1024 * 1024)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(profile_saved_delay=0, feed_limit=50, max_post_length=2000)


@pytest.fixture
def make_page(fake_auth: FakeAuth, fake_posts: FakePosts, device: DeviceStorage, test_settings: Settings):
    """Build pages sharing one device, the way several tabs share a browser profile."""
    pages: List[Page] = []

    def factory(kind: PageKind = PageKind.FEED) -> Page:
        page = Page(kind, fake_auth, fake_posts, device, settings=test_settings)
        pages.append(page)
        return page

    return factory
