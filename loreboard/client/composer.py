"""Post composer: local validation, insert as the current member, then a feed refetch."""
import logging
from typing import Optional

from loreboard.client.collaborators import PostsCollaborator
from loreboard.client.feed import PostFeedController
from loreboard.client.state import AppState
from loreboard.client.views import ComposerView
from loreboard.core.exceptions import CollaboratorError, ValidationError
from loreboard.modules.auth.schemas import SessionInfo
from loreboard.modules.posts.schemas import PostResponse
from loreboard.modules.posts.validation import validate_post_body

logger = logging.getLogger(__name__)

POSTED_MESSAGE = "Posted!"
LOGIN_REQUIRED_MESSAGE = "Please log in to post."


class PostComposer:
    def __init__(self, posts: PostsCollaborator, state: AppState, feed: PostFeedController, max_length: int = 2000):
        self.posts = posts
        self.state = state
        self.feed = feed
        self.max_length = max_length
        self.view = ComposerView()
        state.subscribe(self._on_session)

    def _on_session(self, session: Optional[SessionInfo], generation: int) -> None:
        member = session is not None
        self.view.visible = member
        self.view.login_prompt_visible = not member
        if not member:
            self.view.status.clear()

    async def submit_post(self, body_text: str) -> Optional[PostResponse]:
        """Validate, insert as the current user, then refetch the feed. Returns the stored post or None."""
        self.view.text = body_text
        if not self.state.is_member:
            self.view.status.set(LOGIN_REQUIRED_MESSAGE, "error")
            return None
        try:
            content = validate_post_body(body_text, self.max_length)
        except ValidationError as e:
            self.view.status.set(e.message, "error")
            return None

        user_id = self.state.user_id
        self.view.submitting = True
        self.view.status.clear()
        try:
            post = await self.posts.insert_post(user_id, content)
        except CollaboratorError as e:
            logger.error(f"Error creating post: {e.message}")
            # Keep the text so the user can retry
            self.view.status.set(e.message, "error")
            return None
        finally:
            self.view.submitting = False

        # A token refresh bumps the generation but keeps the same member
        if self.state.user_id == user_id:
            self.view.text = ""
            self.view.status.set(POSTED_MESSAGE, "success")
        await self.feed.load_posts()
        return post
