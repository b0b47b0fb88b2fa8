"""Navigation menu: the signed-in member's avatar or initial, and the login and profile links."""

from typing import Optional

from loreboard.client.avatar import AvatarCache, AvatarSync
from loreboard.client.state import AppState
from loreboard.client.storage import LOGIN_STATE_KEY
from loreboard.client.views import NavView
from loreboard.modules.auth.schemas import SessionInfo


class NavMenu:
    """Menu avatar and login/profile links shown on every page."""

    def __init__(self, state: AppState, avatars: AvatarCache, sync: AvatarSync):
        self.state = state
        self.avatars = avatars
        self.view = NavView()
        state.subscribe(self._on_session)
        sync.add_renderer(self._on_avatar_changed)

    def render_initial(self) -> None:
        """Paint from the durable login flag before any session is known."""
        self.view.logged_in = self.state.storage.get_item(LOGIN_STATE_KEY) == "true"

    def _on_session(self, session: Optional[SessionInfo], generation: int) -> None:
        self.view.logged_in = session is not None
        self._render_avatar()

    def _on_avatar_changed(self, user_id: str) -> None:
        if user_id and user_id != self.state.user_id:
            return
        self._render_avatar()

    def _render_avatar(self) -> None:
        user = self.state.user
        if user is None:
            self.view.avatar_src = None
            self.view.initial = ""
            return
        self.view.avatar_src = self.avatars.get(user.id)
        label = user.display_name or user.email or ""
        self.view.initial = label[:1].upper()
