"""Post feed: scoped loads, newest first, with a guard against out-of-order results."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Union

from loreboard.client.collaborators import AsyncUnsubscribe, PostsCollaborator
from loreboard.client.state import AppState
from loreboard.client.views import UNKNOWN_TIME, FeedState, FeedView, PostCard, StatusView
from loreboard.core.exceptions import CollaboratorError, FetchError
from loreboard.modules.posts.schemas import PostResponse

logger = logging.getLogger(__name__)

EMPTY_FEED_MESSAGE = "No posts yet. Be the first to share something!"
LOADING_MESSAGE = "Loading posts..."


@dataclass(frozen=True)
class FeedScope:
    author_id: Optional[str] = None
    limit: Optional[int] = None

    @classmethod
    def all(cls, limit: Optional[int] = None) -> "FeedScope":
        return cls(limit=limit)

    @classmethod
    def by_author(cls, user_id: str) -> "FeedScope":
        # An author's own posts are never capped
        return cls(author_id=user_id)


# PostgREST sends any number of fraction digits and may shorten the offset to "+00"
_TIMESTAMP_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(?::\d{2})?)"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>Z|[+-]\d{2}(?::?\d{2})?)?$"
)


def _normalize_timestamp(value: str) -> str:
    match = _TIMESTAMP_RE.match(value)
    if match is None:
        return value
    text = match.group("base")
    fraction = match.group("fraction")
    if fraction:
        text += "." + fraction.ljust(6, "0")[:6]
    offset = match.group("offset")
    if offset == "Z":
        text += "+00:00"
    elif offset:
        digits = offset[1:].replace(":", "")
        text += f"{offset[0]}{digits[:2]}:{digits[2:] or '00'}"
    return text


def parse_timestamp(value: Union[datetime, str, None]) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.fromisoformat(_normalize_timestamp(value.strip()))
    except ValueError:
        return None


def format_timestamp(value: Union[datetime, str, None]) -> str:
    """Medium date, short time, in local time. Never raises."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return UNKNOWN_TIME
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    hour = parsed.hour % 12 or 12
    return f"{parsed:%b} {parsed.day}, {parsed.year}, {hour}:{parsed:%M} {parsed:%p}"


def render_posts(posts: Iterable[PostResponse], empty_message: str, viewer_id: Optional[str] = None) -> FeedView:
    cards = [
        PostCard(
            post_id=str(post.id),
            timestamp=format_timestamp(post.created_at),
            body=post.content or "",
            deletable=bool(viewer_id) and post.user_id == viewer_id,
        )
        for post in posts
    ]
    if not cards:
        return FeedView(state=FeedState.EMPTY, message=empty_message)
    return FeedView(state=FeedState.READY, cards=cards)


class PostFeedController:
    def __init__(
        self,
        posts: PostsCollaborator,
        state: AppState,
        scope: FeedScope,
        empty_message: str = EMPTY_FEED_MESSAGE,
    ):
        self.posts = posts
        self.state = state
        self.scope = scope
        self.empty_message = empty_message
        self.view = FeedView()
        self.status = StatusView()
        self._fetch_seq = 0
        self._unsubscribe: Optional[AsyncUnsubscribe] = None

    async def _fetch(self, scope: FeedScope):
        try:
            return await self.posts.select_posts(author_id=scope.author_id, limit=scope.limit)
        except FetchError:
            raise
        except CollaboratorError as e:
            raise FetchError(e.message)

    async def load_posts(self, scope: Optional[FeedScope] = None) -> FeedView:
        """Refetch the whole scope. Only the most recently started load is allowed to paint."""
        if scope is not None:
            self.scope = scope
        scope = self.scope
        self._fetch_seq += 1
        seq = self._fetch_seq
        self.view = FeedView(state=FeedState.LOADING, message=LOADING_MESSAGE)
        try:
            posts = await self._fetch(scope)
        except FetchError as e:
            logger.error(f"Error fetching posts: {e.message}")
            if seq == self._fetch_seq:
                self.view = FeedView(state=FeedState.ERROR, message=f"Unable to load posts: {e.message}")
            return self.view
        if seq != self._fetch_seq:
            logger.debug("Discarding superseded feed load")
            return self.view
        self.view = render_posts(posts, self.empty_message, self.state.user_id)
        return self.view

    def clear(self) -> None:
        """Drop whatever is shown and invalidate loads still in flight."""
        self._fetch_seq += 1
        self.view = FeedView()

    async def delete_post(self, post_id: str) -> bool:
        if not self.state.is_member:
            self.status.set("Log in to delete your posts.", "error")
            return False
        try:
            await self.posts.delete_post(post_id)
        except CollaboratorError as e:
            logger.error(f"Error deleting post {post_id}: {e.message}")
            self.status.set(e.message, "error")
            return False
        self.status.set("Post deleted.", "success")
        await self.load_posts()
        return True

    def _on_change(self) -> None:
        self.state.spawn(self.load_posts())

    async def subscribe(self) -> None:
        """Refetch on every realtime change notification for the posts table."""
        if self._unsubscribe is not None:
            return
        try:
            self._unsubscribe = await self.posts.subscribe(self._on_change)
        except CollaboratorError as e:
            logger.error(f"Unable to subscribe to post changes: {e.message}")
            self.status.set("Live updates are unavailable. Reload to see new posts.", "error")

    async def close(self) -> None:
        if self._unsubscribe is not None:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            await unsubscribe()
