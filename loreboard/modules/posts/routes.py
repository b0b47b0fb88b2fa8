from fastapi import APIRouter, Depends, Query
from loreboard.config.settings import settings
from loreboard.database.supabase_client import get_supabase
from loreboard.modules.posts.schemas import PostCreate, PostResponse
from loreboard.modules.posts.service import PostService
from loreboard.core.dependencies import get_current_user
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/posts", tags=["posts"])


def get_post_service(supabase: Client = Depends(get_supabase)) -> PostService:
    return PostService(supabase)


@router.get("", response_model=List[PostResponse])
async def list_posts(
    author_id: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1),
    service: PostService = Depends(get_post_service),
):
    """List posts newest first. All posts are capped at feed_limit; an author's posts are unbounded."""
    if author_id is None and limit is None:
        limit = settings.feed_limit
    return service.list_posts(author_id=author_id, limit=limit)


@router.post("", response_model=PostResponse, status_code=201)
async def create_post(
    post_data: PostCreate,
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
):
    """Create a post as the current user"""
    return service.create_post(post_data, current_user["id"])


@router.delete("/{post_id}", status_code=204)
async def delete_post(
    post_id: str,
    current_user: Dict = Depends(get_current_user),
    service: PostService = Depends(get_post_service),
):
    """Delete one of the current user's posts"""
    service.delete_post(post_id, current_user["id"])
    return None
