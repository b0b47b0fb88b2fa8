"""Interfaces of the hosted auth and data services as the page controllers consume them.

Implementations raise CollaboratorError for every failure, carrying the
service's own message when it has one.
"""
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from loreboard.modules.auth.schemas import SessionInfo, SessionUser
from loreboard.modules.posts.schemas import PostResponse


class AuthEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


AuthListener = Callable[[AuthEvent, Optional[SessionInfo]], None]
Unsubscribe = Callable[[], None]
AsyncUnsubscribe = Callable[[], Awaitable[None]]


class AuthCollaborator(Protocol):
    async def get_session(self) -> Optional[SessionInfo]:
        ...

    async def sign_in_with_password(self, email: str, password: str) -> SessionInfo:
        ...

    async def sign_up(self, email: str, password: str) -> Optional[SessionInfo]:
        ...

    async def sign_out(self) -> None:
        ...

    async def update_user(self, metadata: Dict[str, Any]) -> SessionUser:
        ...

    def on_auth_state_change(self, callback: AuthListener) -> Unsubscribe:
        ...


class PostsCollaborator(Protocol):
    async def select_posts(self, author_id: Optional[str] = None, limit: Optional[int] = None) -> List[PostResponse]:
        """Newest first; filtered by author and capped when asked."""
        ...

    async def insert_post(self, user_id: str, content: str) -> PostResponse:
        ...

    async def delete_post(self, post_id: str) -> None:
        ...

    async def subscribe(self, callback: Callable[[], None]) -> AsyncUnsubscribe:
        """Call back whenever the posts table changes. No diff is delivered."""
        ...
