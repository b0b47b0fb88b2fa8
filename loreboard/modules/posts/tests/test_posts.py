"""Tests for post validation, PostService and the posts routes."""

import pytest
from fastapi import HTTPException

from loreboard.core.exceptions import ValidationError
from loreboard.modules.posts.schemas import PostCreate
from loreboard.modules.posts.service import PostService
from loreboard.modules.posts.validation import EMPTY_POST_MESSAGE, too_long_message, validate_post_body

USER_ID = "11111111-1111-1111-1111-111111111111"

ROW = {
    "id": 7,
    "user_id": USER_ID,
    "content": "Hello, Lore Bd!",
    "created_at": "2024-05-01T12:00:00+00:00",
}


class TestValidatePostBody:
    """Tests for validate_post_body."""

    @pytest.mark.parametrize("body", [None, "", "   ", "\n\t"])
    def test_blank_bodies_are_rejected(self, body):
        with pytest.raises(ValidationError) as exc_info:
            validate_post_body(body, 2000)

        assert exc_info.value.message == EMPTY_POST_MESSAGE

    def test_too_long_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_post_body("x" * 2001, 2000)

        assert exc_info.value.message == too_long_message(2000)

    def test_length_is_measured_after_trimming(self):
        assert validate_post_body("  " + "x" * 2000 + "  ", 2000) == "x" * 2000

    def test_returns_trimmed_body(self):
        assert validate_post_body("  hi there \n", 2000) == "hi there"


class TestPostService:
    """Tests for PostService."""

    def test_list_posts_orders_newest_first_and_limits(self, mock_supabase, make_query):
        # Arrange
        query = make_query([ROW])
        mock_supabase.table.return_value = query
        service = PostService(mock_supabase)

        # Act
        posts = service.list_posts(limit=50)

        # Assert
        assert [p.content for p in posts] == ["Hello, Lore Bd!"]
        mock_supabase.table.assert_called_once_with("posts")
        query.order.assert_called_once_with("created_at", desc=True)
        query.limit.assert_called_once_with(50)
        query.eq.assert_not_called()

    def test_list_posts_by_author_is_unbounded(self, mock_supabase, make_query):
        query = make_query([])
        mock_supabase.table.return_value = query

        PostService(mock_supabase).list_posts(author_id="u1")

        query.eq.assert_called_once_with("user_id", "u1")
        query.limit.assert_not_called()

    def test_list_posts_failure_raises_500(self, mock_supabase):
        mock_supabase.table.side_effect = RuntimeError("connection refused")

        with pytest.raises(HTTPException) as exc_info:
            PostService(mock_supabase).list_posts()

        assert exc_info.value.status_code == 500
        assert "connection refused" in exc_info.value.detail

    def test_create_post_stores_trimmed_content(self, mock_supabase, make_query):
        # Arrange
        query = make_query([ROW])
        mock_supabase.table.return_value = query

        # Act
        post = PostService(mock_supabase).create_post(PostCreate(content="  Hello, Lore Bd!  "), USER_ID)

        # Assert
        query.insert.assert_called_once_with({"user_id": USER_ID, "content": "Hello, Lore Bd!"})
        assert post.id == 7

    def test_create_post_rejects_blank_without_insert(self, mock_supabase):
        with pytest.raises(HTTPException) as exc_info:
            PostService(mock_supabase).create_post(PostCreate(content="   "), USER_ID)

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == EMPTY_POST_MESSAGE
        mock_supabase.table.assert_not_called()

    def test_delete_post_scopes_to_owner(self, mock_supabase, make_query):
        query = make_query([ROW])
        mock_supabase.table.return_value = query

        PostService(mock_supabase).delete_post("7", USER_ID)

        assert [c.args for c in query.eq.call_args_list] == [("id", "7"), ("user_id", USER_ID)]

    def test_delete_missing_post_raises_404(self, mock_supabase, make_query):
        mock_supabase.table.return_value = make_query([])

        with pytest.raises(HTTPException) as exc_info:
            PostService(mock_supabase).delete_post("7", USER_ID)

        assert exc_info.value.status_code == 404


class TestPostRoutes:
    """Tests for the /api/v1/posts routes."""

    def test_list_defaults_to_feed_limit(self, client, mock_supabase, make_query):
        query = make_query([ROW])
        mock_supabase.table.return_value = query

        response = client.get("/api/v1/posts")

        assert response.status_code == 200
        assert response.json()[0]["content"] == "Hello, Lore Bd!"
        query.limit.assert_called_once_with(50)

    def test_list_rejects_zero_limit(self, client):
        response = client.get("/api/v1/posts", params={"limit": 0})

        assert response.status_code == 422

    def test_create_returns_201(self, client, mock_supabase, make_query, auth_headers):
        mock_supabase.table.return_value = make_query([ROW])

        response = client.post("/api/v1/posts", json={"content": "Hello, Lore Bd!"}, headers=auth_headers)

        assert response.status_code == 201
        assert response.json()["user_id"] == USER_ID

    def test_create_too_long_returns_400(self, client, auth_headers):
        response = client.post("/api/v1/posts", json={"content": "x" * 2001}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == too_long_message(2000)

    def test_delete_returns_204(self, client, mock_supabase, make_query, auth_headers):
        mock_supabase.table.return_value = make_query([ROW])

        response = client.delete("/api/v1/posts/7", headers=auth_headers)

        assert response.status_code == 204
