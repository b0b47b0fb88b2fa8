"""Supabase-backed collaborators for the page runtime."""
import logging
from typing import Any, Callable, Dict, List, Optional

from supabase import AsyncClient

from loreboard.client.collaborators import AsyncUnsubscribe, AuthEvent, AuthListener, Unsubscribe
from loreboard.core.exceptions import CollaboratorError, FetchError
from loreboard.modules.auth.schemas import SessionInfo, SessionUser
from loreboard.modules.posts.models import POST_COLUMNS
from loreboard.modules.posts.schemas import PostResponse

logger = logging.getLogger(__name__)


def to_session_user(user: Any) -> Optional[SessionUser]:
    if user is None:
        return None
    return SessionUser(id=str(user.id), email=user.email, user_metadata=user.user_metadata or {})


def to_session(session: Any) -> Optional[SessionInfo]:
    if session is None or getattr(session, "user", None) is None:
        return None
    return SessionInfo(user=to_session_user(session.user), access_token=session.access_token or "")


def to_event(event: Any) -> AuthEvent:
    try:
        return AuthEvent(getattr(event, "value", event))
    except ValueError:
        # Events we do not model still re-run the mode transition
        return AuthEvent.USER_UPDATED


class SupabaseAuthGateway:
    def __init__(self, supabase: AsyncClient):
        self.supabase = supabase

    async def get_session(self) -> Optional[SessionInfo]:
        try:
            session = await self.supabase.auth.get_session()
        except Exception as e:
            logger.error(f"Error checking auth status: {e}")
            raise CollaboratorError.from_exception(e, "Unable to check your session.")
        return to_session(session)

    async def sign_in_with_password(self, email: str, password: str) -> SessionInfo:
        try:
            response = await self.supabase.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            raise CollaboratorError.from_exception(e, "Unable to sign in.")
        session = to_session(response.session)
        if session is None:
            raise CollaboratorError("Invalid email or password")
        return session

    async def sign_up(self, email: str, password: str) -> Optional[SessionInfo]:
        try:
            response = await self.supabase.auth.sign_up({"email": email, "password": password})
        except Exception as e:
            raise CollaboratorError.from_exception(e, "Unable to create your account.")
        return to_session(response.session)

    async def sign_out(self) -> None:
        try:
            await self.supabase.auth.sign_out()
        except Exception as e:
            raise CollaboratorError.from_exception(e, "Unable to sign out.")

    async def update_user(self, metadata: Dict[str, Any]) -> SessionUser:
        try:
            response = await self.supabase.auth.update_user({"data": metadata})
        except Exception as e:
            raise CollaboratorError.from_exception(e, "Unable to save your profile.")
        user = to_session_user(response.user if response else None)
        if user is None:
            raise CollaboratorError("Unable to save your profile.")
        return user

    def on_auth_state_change(self, callback: AuthListener) -> Unsubscribe:
        subscription = self.supabase.auth.on_auth_state_change(
            lambda event, session: callback(to_event(event), to_session(session))
        )
        return subscription.unsubscribe


class SupabasePostsGateway:
    def __init__(self, supabase: AsyncClient, table: str = "posts", channel: str = "community-posts"):
        self.supabase = supabase
        self.table = table
        self.channel_name = channel

    async def select_posts(self, author_id: Optional[str] = None, limit: Optional[int] = None) -> List[PostResponse]:
        query = self.supabase.table(self.table).select(POST_COLUMNS).order("created_at", desc=True)
        if author_id:
            query = query.eq("user_id", author_id)
        if limit:
            query = query.limit(limit)
        try:
            result = await query.execute()
        except Exception as e:
            logger.error(f"Error fetching posts: {e}")
            raise FetchError(CollaboratorError.from_exception(e, "Unable to load posts right now.").message)
        return [PostResponse(**row) for row in (result.data or [])]

    async def insert_post(self, user_id: str, content: str) -> PostResponse:
        try:
            result = await self.supabase.table(self.table).insert({"user_id": user_id, "content": content}).execute()
        except Exception as e:
            logger.error(f"Error creating post: {e}")
            raise CollaboratorError.from_exception(e, "Could not create post. Please try again.")
        if not result.data:
            raise CollaboratorError("Could not create post. Please try again.")
        return PostResponse(**result.data[0])

    async def delete_post(self, post_id: str) -> None:
        try:
            result = await self.supabase.table(self.table).delete().eq("id", post_id).execute()
        except Exception as e:
            logger.error(f"Error deleting post {post_id}: {e}")
            raise CollaboratorError.from_exception(e, "Could not delete post. Please try again.")
        # Row level security turns a foreign or missing post into zero deleted rows
        if not result.data:
            raise CollaboratorError("Post not found", status=404)

    async def subscribe(self, callback: Callable[[], None]) -> AsyncUnsubscribe:
        channel = self.supabase.channel(self.channel_name)
        channel.on_postgres_changes("*", schema="public", table=self.table, callback=lambda _payload: callback())
        try:
            await channel.subscribe()
        except Exception as e:
            raise CollaboratorError.from_exception(e, "Unable to subscribe to live updates.")

        async def unsubscribe() -> None:
            await self.supabase.remove_channel(channel)

        return unsubscribe
