"""Entry point of every page: decides guest vs. member and keeps deciding.

The initial session load and the auth notification stream both end in the
same transition. A load that finishes after a newer notification has
already been applied is dropped, so the page always shows the latest
known session.
"""
import logging
from typing import Optional

from loreboard.client.collaborators import AuthCollaborator, AuthEvent, Unsubscribe
from loreboard.client.state import AppState
from loreboard.client.views import SessionView
from loreboard.core.exceptions import CollaboratorError
from loreboard.modules.auth.schemas import SessionInfo
from loreboard.modules.auth.service import CONFIRM_EMAIL_MESSAGE

logger = logging.getLogger(__name__)

GUEST_MESSAGE = "You are browsing as a guest."
SIGNED_OUT_MESSAGE = "Signed out."
SESSION_ERROR_MESSAGE = "Unable to load your session right now."


class SessionGate:
    def __init__(self, auth: AuthCollaborator, state: AppState):
        self.auth = auth
        self.state = state
        self.view = SessionView()
        self._unsubscribe: Optional[Unsubscribe] = None

    async def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.auth.on_auth_state_change(self.handle_auth_event)
        await self.load()

    async def load(self) -> None:
        generation = self.state.generation
        self.view.status.set("Checking your session...")
        try:
            session = await self.auth.get_session()
        except CollaboratorError as e:
            logger.error(f"Unable to load session: {e.message}")
            if not self.state.is_current(generation):
                return
            self._transition(None)
            self.view.status.set(SESSION_ERROR_MESSAGE, "error")
            return
        if not self.state.is_current(generation):
            logger.debug("Discarding session load superseded by an auth notification")
            return
        self._transition(session)

    def handle_auth_event(self, event: AuthEvent, session: Optional[SessionInfo]) -> None:
        logger.info(f"Auth state change: {event.value}")
        self._transition(session)
        if event == AuthEvent.SIGNED_OUT:
            self.view.status.set(SIGNED_OUT_MESSAGE)

    def _transition(self, session: Optional[SessionInfo]) -> None:
        self.view.member = session is not None
        if session is not None:
            self.view.status.set(f"Logged in as {session.user.email or 'member'}")
        else:
            self.view.status.set(GUEST_MESSAGE)
        self.state.apply_session(session)

    async def sign_in(self, email: str, password: str) -> bool:
        self.view.status.set("Signing in...")
        try:
            session = await self.auth.sign_in_with_password(email, password)
        except CollaboratorError as e:
            self.view.status.set(e.message, "error")
            return False
        # Usually the SIGNED_IN notification has applied this session already
        if self.state.user_id != session.user.id:
            self._transition(session)
        return True

    async def sign_up(self, email: str, password: str) -> bool:
        self.view.status.set("Creating account...")
        try:
            session = await self.auth.sign_up(email, password)
        except CollaboratorError as e:
            self.view.status.set(e.message, "error")
            return False
        if session is None:
            self.view.status.set(CONFIRM_EMAIL_MESSAGE)
        elif self.state.user_id != session.user.id:
            self._transition(session)
        return True

    async def sign_out(self) -> bool:
        try:
            await self.auth.sign_out()
        except CollaboratorError as e:
            logger.error(f"Sign out failed: {e.message}")
            # Degrade to guest locally either way
            self._transition(None)
            self.view.status.set(e.message, "error")
            return False
        if self.state.is_member:
            self._transition(None)
        self.view.status.set(SIGNED_OUT_MESSAGE)
        return True

    def close(self) -> None:
        if self._unsubscribe is not None:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            unsubscribe()
