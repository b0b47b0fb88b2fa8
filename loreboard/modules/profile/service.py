from supabase import Client
from loreboard.config.settings import settings
from loreboard.modules.auth.schemas import SessionUser
from loreboard.modules.profile.schemas import ProfileUpdate, ProfileResponse
from typing import Any, Dict
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

DISPLAY_NAME_REQUIRED_MESSAGE = "Add a display name before saving."


def to_profile(user: SessionUser) -> ProfileResponse:
    return ProfileResponse(id=user.id, email=user.email, display_name=user.display_name, bio=user.bio)


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_profile(self, user_data: Dict[str, Any]) -> ProfileResponse:
        return to_profile(SessionUser(**user_data))

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Replace displayName and bio together in user_metadata (requires service role key)"""
        display_name = profile_data.display_name.strip()
        bio = (profile_data.bio or "").strip()
        if not display_name:
            raise HTTPException(status_code=400, detail=DISPLAY_NAME_REQUIRED_MESSAGE)
        if not settings.supabase_service_role_key:
            raise HTTPException(
                status_code=500,
                detail="Service role key not configured. Cannot update user_metadata."
            )
        try:
            response = self.supabase.auth.admin.update_user_by_id(
                user_id,
                {"user_metadata": {"displayName": display_name, "bio": bio}}
            )
            if not response.user:
                raise HTTPException(status_code=404, detail="User not found")
            user = response.user
            return to_profile(SessionUser(id=user.id, email=user.email, user_metadata=user.user_metadata or {}))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Failed to update profile for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to update profile: {str(e)}")
