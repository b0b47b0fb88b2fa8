"""Profile page: remote display name and bio, device-local avatar, own posts.

Modes are guest, member-view and member-edit. Saving needs a non-empty
display name, and the summary stays visible (read-only) while the edit
form is open.
"""
import asyncio
import logging
from typing import Optional

from loreboard.client.avatar import AvatarCache, AvatarSync, AvatarUpload, read_as_data_url
from loreboard.client.collaborators import AuthCollaborator, PostsCollaborator
from loreboard.client.feed import FeedScope, PostFeedController
from loreboard.client.state import AppState
from loreboard.client.views import FeedView, ProfileMode, ProfileView
from loreboard.core.exceptions import CollaboratorError, LocalResourceError
from loreboard.modules.auth.schemas import SessionInfo, SessionUser
from loreboard.modules.profile.service import DISPLAY_NAME_REQUIRED_MESSAGE

logger = logging.getLogger(__name__)

GUEST_MESSAGE = "You're not logged in yet."
SIGNED_OUT_MESSAGE = "Signed out. Log in to view your profile."
NO_AVATAR_MESSAGE = "Choose a picture to personalize your account."
BIO_PLACEHOLDER = "Add a short description to personalize your profile."
OWN_POSTS_EMPTY_MESSAGE = "No posts yet. Share something on the Lore Board to see it here."


def avatar_too_large_message(max_bytes: int) -> str:
    return f"Please choose an image under {max_bytes // (1024 * 1024)} MB."


class ProfileController:
    def __init__(
        self,
        auth: AuthCollaborator,
        posts: PostsCollaborator,
        state: AppState,
        avatars: AvatarCache,
        sync: AvatarSync,
        avatar_max_bytes: int = 2 * 1024 * 1024,
        saved_delay: float = 1.5,
    ):
        self.auth = auth
        self.state = state
        self.avatars = avatars
        self.sync = sync
        self.avatar_max_bytes = avatar_max_bytes
        self.saved_delay = saved_delay
        self.view = ProfileView()
        self.own_posts = PostFeedController(posts, state, FeedScope(), empty_message=OWN_POSTS_EMPTY_MESSAGE)
        self._rendered_user_id: Optional[str] = None
        state.subscribe(self._on_session)
        sync.add_renderer(self._on_avatar_changed)

    @property
    def posts_view(self) -> FeedView:
        return self.own_posts.view

    def _on_session(self, session: Optional[SessionInfo], generation: int) -> None:
        if session is None:
            was_member = self.view.mode != ProfileMode.GUEST
            self.show_guest_state(SIGNED_OUT_MESSAGE if was_member else GUEST_MESSAGE)
            return
        if session.user.id == self._rendered_user_id and self.view.mode == ProfileMode.MEMBER_EDIT:
            # Token refresh or metadata echo while the form is open: keep the user's typing
            self._update_summary(session.user)
            return
        self.render_profile(session.user)

    def show_guest_state(self, message: str = GUEST_MESSAGE) -> None:
        self._rendered_user_id = None
        self.view.mode = ProfileMode.GUEST
        self.view.avatar.visible = False
        self.view.avatar.src = None
        self.view.avatar.status.clear()
        self.view.name_display = "Profile"
        self.view.bio_display = "Share a short description for your profile."
        self.view.bio_muted = True
        self.view.name_input = ""
        self.view.bio_input = ""
        self.view.saving = False
        self.view.form_status.clear()
        self.own_posts.clear()
        self.view.page_status.set(message)

    def render_profile(self, user: SessionUser) -> None:
        self._rendered_user_id = user.id
        self.view.mode = ProfileMode.MEMBER_VIEW
        self.view.avatar.visible = True
        self._sync_avatar(user.id)
        self._fill_form(user)
        self._update_summary(user)
        self.view.form_status.clear()
        self.view.page_status.clear()
        self.state.spawn(self.own_posts.load_posts(FeedScope.by_author(user.id)))

    def _fill_form(self, user: SessionUser) -> None:
        self.view.name_input = user.display_name
        self.view.bio_input = user.bio

    def _update_summary(self, user: SessionUser) -> None:
        self.view.name_display = user.display_name or "Profile"
        self.view.bio_display = user.bio or BIO_PLACEHOLDER
        self.view.bio_muted = not user.bio

    def _sync_avatar(self, user_id: str) -> None:
        src = self.avatars.get(user_id)
        self.view.avatar.src = src
        self.view.avatar.status.set("" if src else NO_AVATAR_MESSAGE)

    def _on_avatar_changed(self, user_id: str) -> None:
        current = self.state.user_id
        if current is None or (user_id and user_id != current):
            return
        self.view.avatar.src = self.avatars.get(current)

    def toggle_editor(self) -> ProfileMode:
        if self.view.mode == ProfileMode.MEMBER_VIEW:
            user = self.state.user
            if user is not None:
                self._fill_form(user)
            self.view.mode = ProfileMode.MEMBER_EDIT
        elif self.view.mode == ProfileMode.MEMBER_EDIT:
            self.view.mode = ProfileMode.MEMBER_VIEW
            self.view.form_status.clear()
        return self.view.mode

    async def update_profile(self, display_name: str, bio: str) -> bool:
        """Replace displayName and bio together. Stays in member-edit on any failure."""
        self.view.name_input = display_name
        self.view.bio_input = bio
        if not self.state.is_member:
            self.view.form_status.set("Log in to update your profile.", "error")
            return False
        display_name = (display_name or "").strip()
        bio = (bio or "").strip()
        if not display_name:
            self.view.form_status.set(DISPLAY_NAME_REQUIRED_MESSAGE, "error")
            return False

        user_id = self.state.user_id
        self.view.saving = True
        self.view.form_status.set("Saving your profile...")
        try:
            user = await self.auth.update_user({"displayName": display_name, "bio": bio})
        except CollaboratorError as e:
            logger.error(f"Unable to save profile: {e.message}")
            if self.state.user_id == user_id:
                self.view.form_status.set(e.message or "Unable to save your profile.", "error")
            return False
        finally:
            self.view.saving = False

        if self.state.user_id != user_id:
            logger.debug("Session changed while saving the profile; not painting the result")
            return False
        self.state.update_user(user)
        self._fill_form(user)
        self._update_summary(user)
        self.view.form_status.set("Profile updated.", "success")
        self.state.spawn(self._return_to_view(user_id))
        return True

    async def _return_to_view(self, user_id: str) -> None:
        await asyncio.sleep(self.saved_delay)
        if self.state.user_id == user_id and self.view.mode == ProfileMode.MEMBER_EDIT:
            self.view.mode = ProfileMode.MEMBER_VIEW
            self.view.form_status.clear()

    async def set_avatar(self, upload: AvatarUpload) -> bool:
        user_id = self.state.user_id
        status = self.view.avatar.status
        if not user_id:
            status.set("Log in to update your picture.")
            return False
        if upload.size > self.avatar_max_bytes:
            status.set(avatar_too_large_message(self.avatar_max_bytes), "error")
            return False

        status.set("Uploading your picture...")
        try:
            data_url = await read_as_data_url(upload)
        except LocalResourceError as e:
            logger.error(f"Unable to read avatar file: {e.message}")
            status.set("Unable to read that file. Try another image.", "error")
            return False
        if self.state.user_id != user_id:
            # Signed out or switched account while the file was being read
            return False
        try:
            self.avatars.save(user_id, data_url)
        except LocalResourceError as e:
            logger.warning(f"Unable to save avatar to storage: {e.message}")
            status.set("Unable to save your picture on this device.", "error")
            return False

        self.view.avatar.src = data_url
        self.sync.broadcast(user_id, data_url)
        status.set("Saved. Your picture now appears in the menu.", "success")
        return True

    def reset_avatar(self) -> bool:
        user_id = self.state.user_id
        if not user_id:
            return False
        try:
            self.avatars.remove(user_id)
        except LocalResourceError as e:
            logger.warning(f"Unable to clear avatar: {e.message}")
            self.view.avatar.status.set("Unable to remove your picture right now.", "error")
            return False
        self.view.avatar.src = None
        self.sync.broadcast(user_id, None)
        self.view.avatar.status.set("Picture removed. You can add one anytime.")
        return True
