"""Tests for the Supabase-backed collaborators."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from loreboard.client.collaborators import AuthEvent
from loreboard.client.supabase_gateway import (
    SupabaseAuthGateway,
    SupabasePostsGateway,
    to_event,
    to_session,
)
from loreboard.core.exceptions import CollaboratorError, FetchError


def async_query(data=None, error=None):
    query = MagicMock()
    for step in ("select", "insert", "delete", "eq", "order", "limit"):
        getattr(query, step).return_value = query
    if error is not None:
        query.execute = AsyncMock(side_effect=error)
    else:
        query.execute = AsyncMock(return_value=SimpleNamespace(data=data))
    return query


def remote_session(user_id="u1", email="a@b.com", metadata=None):
    user = SimpleNamespace(id=user_id, email=email, user_metadata=metadata or {})
    return SimpleNamespace(user=user, access_token="jwt")


class TestConversions:
    """Tests for the session and event conversions."""

    def test_to_session_copies_user(self):
        session = to_session(remote_session(metadata={"displayName": "Ada"}))

        assert session.user.id == "u1"
        assert session.user.display_name == "Ada"
        assert session.access_token == "jwt"

    def test_to_session_none(self):
        assert to_session(None) is None

    def test_known_event_names(self):
        assert to_event("SIGNED_OUT") == AuthEvent.SIGNED_OUT

    def test_unknown_event_still_transitions(self):
        assert to_event("MFA_CHALLENGE_VERIFIED") == AuthEvent.USER_UPDATED


@pytest.mark.asyncio
class TestSupabaseAuthGateway:
    """Tests for SupabaseAuthGateway."""

    async def test_get_session_failure_is_collaborator_error(self):
        supabase = MagicMock()
        supabase.auth.get_session = AsyncMock(side_effect=Exception("Failed to fetch"))

        with pytest.raises(CollaboratorError) as exc_info:
            await SupabaseAuthGateway(supabase).get_session()

        assert exc_info.value.message == "Failed to fetch"

    async def test_update_user_sends_metadata_as_data(self):
        # Arrange
        supabase = MagicMock()
        supabase.auth.update_user = AsyncMock(
            return_value=SimpleNamespace(user=remote_session(metadata={"displayName": "Ada", "bio": ""}).user)
        )

        # Act
        user = await SupabaseAuthGateway(supabase).update_user({"displayName": "Ada", "bio": ""})

        # Assert
        supabase.auth.update_user.assert_awaited_once_with({"data": {"displayName": "Ada", "bio": ""}})
        assert user.display_name == "Ada"

    async def test_sign_in_without_session_is_rejected(self):
        supabase = MagicMock()
        supabase.auth.sign_in_with_password = AsyncMock(return_value=SimpleNamespace(session=None, user=None))

        with pytest.raises(CollaboratorError):
            await SupabaseAuthGateway(supabase).sign_in_with_password("a@b.com", "nope")

    async def test_auth_listener_receives_converted_values(self):
        # Arrange
        supabase = MagicMock()
        received = []
        gateway = SupabaseAuthGateway(supabase)

        # Act
        unsubscribe = gateway.on_auth_state_change(lambda event, session: received.append((event, session)))
        forward = supabase.auth.on_auth_state_change.call_args.args[0]
        forward("SIGNED_IN", remote_session())

        # Assert
        assert received[0][0] == AuthEvent.SIGNED_IN
        assert received[0][1].user.id == "u1"
        assert unsubscribe is supabase.auth.on_auth_state_change.return_value.unsubscribe


@pytest.mark.asyncio
class TestSupabasePostsGateway:
    """Tests for SupabasePostsGateway."""

    async def test_select_by_author(self):
        # Arrange
        supabase = MagicMock()
        query = async_query([{"id": 1, "user_id": "u1", "content": "hi", "created_at": None}])
        supabase.table.return_value = query

        # Act
        posts = await SupabasePostsGateway(supabase).select_posts(author_id="u1")

        # Assert
        supabase.table.assert_called_once_with("posts")
        query.order.assert_called_once_with("created_at", desc=True)
        query.eq.assert_called_once_with("user_id", "u1")
        query.limit.assert_not_called()
        assert [p.content for p in posts] == ["hi"]

    async def test_select_failure_is_fetch_error(self):
        supabase = MagicMock()
        supabase.table.return_value = async_query(error=Exception("permission denied for table posts"))

        with pytest.raises(FetchError) as exc_info:
            await SupabasePostsGateway(supabase).select_posts(limit=50)

        assert exc_info.value.message == "permission denied for table posts"

    async def test_insert_without_rows_is_rejected(self):
        supabase = MagicMock()
        supabase.table.return_value = async_query([])

        with pytest.raises(CollaboratorError):
            await SupabasePostsGateway(supabase).insert_post("u1", "hello there")

    async def test_delete_without_rows_is_not_found(self):
        supabase = MagicMock()
        supabase.table.return_value = async_query([])

        with pytest.raises(CollaboratorError) as exc_info:
            await SupabasePostsGateway(supabase).delete_post("someone-elses-post")

        assert exc_info.value.message == "Post not found"

    async def test_delete_returns_when_row_removed(self):
        supabase = MagicMock()
        query = async_query([{"id": "p1"}])
        supabase.table.return_value = query

        await SupabasePostsGateway(supabase).delete_post("p1")

        query.eq.assert_called_once_with("id", "p1")

    async def test_subscribe_listens_to_every_change(self):
        # Arrange
        supabase = MagicMock()
        channel = MagicMock()
        channel.subscribe = AsyncMock()
        supabase.channel.return_value = channel
        supabase.remove_channel = AsyncMock()
        calls = []

        # Act
        unsubscribe = await SupabasePostsGateway(supabase, table="posts").subscribe(lambda: calls.append(1))
        callback = channel.on_postgres_changes.call_args.kwargs["callback"]
        callback({"eventType": "INSERT"})
        await unsubscribe()

        # Assert
        supabase.channel.assert_called_once_with("community-posts")
        assert channel.on_postgres_changes.call_args.args == ("*",)
        assert channel.on_postgres_changes.call_args.kwargs["table"] == "posts"
        assert calls == [1]
        supabase.remove_channel.assert_awaited_once_with(channel)
