import hashlib
import logging
import time
from typing import Any, Dict, Optional, Tuple

from fastapi import HTTPException
from supabase import Client

from loreboard.core.exceptions import CollaboratorError
from loreboard.modules.auth.schemas import LoginRequest, RegisterRequest, RegisterResponse, TokenResponse

logger = logging.getLogger(__name__)

ACCOUNT_CREATED_MESSAGE = "Account created."
CONFIRM_EMAIL_MESSAGE = "Account created. Check your email to confirm."
INVALID_TOKEN_MESSAGE = "Invalid or expired token"


class MemberCache:
    """Short-lived token -> member lookups, so parallel requests share one auth call."""

    def __init__(self, ttl: float = 60, max_size: int = 500):
        self.ttl = ttl
        self.max_size = max_size
        self._entries: Dict[str, Tuple[Dict[str, Any], float]] = {}

    @staticmethod
    def _key(token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    def get(self, token: str) -> Optional[Dict[str, Any]]:
        key = self._key(token)
        entry = self._entries.get(key)
        if entry is None:
            return None
        member, expiry = entry
        if time.monotonic() >= expiry:
            del self._entries[key]
            return None
        return member

    def put(self, token: str, member: Dict[str, Any]) -> None:
        if len(self._entries) < self.max_size:
            self._entries[self._key(token)] = (member, time.monotonic() + self.ttl)

    def forget(self, token: str) -> None:
        self._entries.pop(self._key(token), None)

    def clear(self) -> None:
        self._entries.clear()


_members = MemberCache()


def clear_auth_cache() -> None:
    _members.clear()


def service_error(exc: Exception, status_code: int, fallback: str) -> HTTPException:
    """Pass the auth service's own message on. Its outages stay 5xx, anything else gets status_code."""
    error = CollaboratorError.from_exception(exc, fallback)
    if error.status and error.status >= 500:
        status_code = error.status
    return HTTPException(status_code=status_code, detail=error.message)


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Create a member. Without a session back, the project wants the email confirmed first."""
        metadata = {}
        display_name = (register_data.display_name or "").strip()
        if display_name:
            metadata["displayName"] = display_name
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {"data": metadata},
            })
        except Exception as e:
            logger.error(f"Registration failed for {register_data.email}: {e}")
            raise service_error(e, 400, "Could not create your account. Please try again.")

        if not auth_response.user:
            raise HTTPException(status_code=400, detail="Could not create your account. Please try again.")
        session = auth_response.session
        return RegisterResponse(
            user_id=auth_response.user.id,
            email=auth_response.user.email or register_data.email,
            message=ACCOUNT_CREATED_MESSAGE if session else CONFIRM_EMAIL_MESSAGE,
            access_token=session.access_token if session else None,
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password,
            })
        except Exception as e:
            logger.warning(f"Login failed for {login_data.email}: {e}")
            raise service_error(e, 401, "Unable to sign in. Please try again.")

        if not auth_response.user or not auth_response.session:
            raise HTTPException(status_code=401, detail="Invalid login credentials")
        return TokenResponse(
            access_token=auth_response.session.access_token,
            user_id=auth_response.user.id,
            email=auth_response.user.email or login_data.email,
        )

    def get_current_user(self, token: str) -> Dict[str, Any]:
        member = _members.get(token)
        if member is not None:
            return member
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.info(f"Token rejected: {e}")
            raise HTTPException(status_code=401, detail=INVALID_TOKEN_MESSAGE)
        if not user_response or not user_response.user:
            raise HTTPException(status_code=401, detail=INVALID_TOKEN_MESSAGE)
        user = user_response.user
        member = {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
        }
        _members.put(token, member)
        return member

    def forget_token(self, token: str) -> None:
        _members.forget(token)

    def logout(self, token: str) -> bool:
        # Tokens are stateless JWTs; dropping our cached lookup is all the server can do
        self.forget_token(token)
        try:
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            return False
