from fastapi import APIRouter, Depends
from loreboard.database.supabase_client import get_service_supabase
from loreboard.modules.posts.routes import get_post_service
from loreboard.modules.posts.schemas import PostResponse
from loreboard.modules.posts.service import PostService
from loreboard.modules.profile.schemas import ProfileUpdate, ProfileResponse
from loreboard.modules.profile.service import ProfileService
from loreboard.modules.auth.service import AuthService
from loreboard.core.dependencies import get_auth_service, get_current_token, get_current_user
from supabase import Client
from typing import Dict, List

router = APIRouter(prefix="/profile", tags=["profile"])


def get_profile_service(supabase: Client = Depends(get_service_supabase)) -> ProfileService:
    return ProfileService(supabase)


@router.get("", response_model=ProfileResponse)
async def get_profile(
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    """Display name and bio of the current user"""
    return service.get_profile(current_user)


@router.put("", response_model=ProfileResponse)
async def update_profile(
    profile_data: ProfileUpdate,
    token: str = Depends(get_current_token),
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Replace display name and bio (last write wins)"""
    profile = service.update_profile(current_user["id"], profile_data)
    # The cached lookup still holds the old metadata
    auth_service.forget_token(token)
    return profile


@router.get("/posts", response_model=List[PostResponse])
async def list_own_posts(
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
):
    """All of the current user's posts, newest first"""
    return service.list_posts(author_id=current_user["id"])
