from supabase import Client
from loreboard.config.settings import settings
from loreboard.core.exceptions import ValidationError
from loreboard.modules.posts.models import POST_COLUMNS
from loreboard.modules.posts.schemas import PostCreate, PostResponse
from loreboard.modules.posts.validation import validate_post_body
from typing import List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class PostService:
    def __init__(self, supabase: Client, table: str = None):
        self.supabase = supabase
        self.table = table or settings.posts_table

    def list_posts(self, author_id: Optional[str] = None, limit: Optional[int] = None) -> List[PostResponse]:
        """List posts newest first; by author when author_id is given"""
        try:
            query = self.supabase.table(self.table)\
                .select(POST_COLUMNS)\
                .order("created_at", desc=True)
            if author_id:
                query = query.eq("user_id", author_id)
            if limit:
                query = query.limit(limit)
            result = query.execute()
            return [PostResponse(**row) for row in (result.data or [])]
        except Exception as e:
            logger.error(f"Error fetching posts: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def create_post(self, post_data: PostCreate, user_id: str) -> PostResponse:
        """Validate and store a post for the given author"""
        try:
            content = validate_post_body(post_data.content, settings.max_post_length)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=e.message)
        try:
            result = self.supabase.table(self.table).insert({
                "user_id": user_id,
                "content": content
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create post")
            return PostResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating post: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_post(self, post_id: str, user_id: str) -> None:
        """Delete one of the caller's own posts"""
        try:
            result = self.supabase.table(self.table)\
                .delete()\
                .eq("id", post_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting post {post_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Post not found")
