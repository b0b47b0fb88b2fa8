"""Builds everything one loaded page owns, and tears it down on navigation."""
import logging
from enum import Enum
from typing import Optional, Tuple

from loreboard.client.avatar import AvatarCache, AvatarSync
from loreboard.client.collaborators import AuthCollaborator, PostsCollaborator
from loreboard.client.composer import PostComposer
from loreboard.client.events import PageEvents
from loreboard.client.feed import FeedScope, PostFeedController
from loreboard.client.nav import NavMenu
from loreboard.client.profile import ProfileController
from loreboard.client.session_gate import SessionGate
from loreboard.client.state import AppState
from loreboard.client.storage import DeviceStorage, TabStorage
from loreboard.client.supabase_gateway import SupabaseAuthGateway, SupabasePostsGateway
from loreboard.config.settings import Settings, settings as default_settings
from loreboard.database.supabase_client import create_async_supabase

logger = logging.getLogger(__name__)


class PageKind(str, Enum):
    FEED = "feed"
    PROFILE = "profile"


class Page:
    def __init__(
        self,
        kind: PageKind,
        auth: AuthCollaborator,
        posts: PostsCollaborator,
        device: DeviceStorage,
        settings: Settings = default_settings,
        live_updates: bool = True,
    ):
        self.kind = kind
        self.live_updates = live_updates
        self.storage = TabStorage(device)
        self.events = PageEvents()
        self.state = AppState(self.storage, self.events)
        self.avatars = AvatarCache(self.storage)
        self.sync = AvatarSync(self.storage, self.events, self.avatars)
        self.nav = NavMenu(self.state, self.avatars, self.sync)
        self.gate = SessionGate(auth, self.state)

        self.feed: Optional[PostFeedController] = None
        self.composer: Optional[PostComposer] = None
        self.profile: Optional[ProfileController] = None
        if kind == PageKind.FEED:
            self.feed = PostFeedController(posts, self.state, FeedScope.all(settings.feed_limit))
            self.composer = PostComposer(posts, self.state, self.feed, max_length=settings.max_post_length)
            # Refetch on every session change so delete controls follow the viewer
            self.state.subscribe(lambda session, generation: self.state.spawn(self.feed.load_posts()))
        else:
            self.profile = ProfileController(
                auth,
                posts,
                self.state,
                self.avatars,
                self.sync,
                avatar_max_bytes=settings.avatar_max_bytes,
                saved_delay=settings.profile_saved_delay,
            )

    async def open(self) -> None:
        logger.info(f"Opening {self.kind.value} page")
        self.nav.render_initial()
        self.sync.start()
        await self.gate.start()
        if self.feed is not None and self.live_updates:
            await self.feed.subscribe()
        await self.state.drain()

    async def close(self) -> None:
        self.gate.close()
        self.sync.stop()
        if self.feed is not None:
            await self.feed.close()
        await self.state.teardown()


async def connect_supabase(settings: Settings = default_settings) -> Tuple[SupabaseAuthGateway, SupabasePostsGateway]:
    supabase = await create_async_supabase(settings.supabase_url, settings.supabase_key)
    return (
        SupabaseAuthGateway(supabase),
        SupabasePostsGateway(supabase, table=settings.posts_table, channel=settings.realtime_channel),
    )


def open_device_storage(settings: Settings = default_settings, path=None) -> DeviceStorage:
    return DeviceStorage(path, quota_bytes=settings.device_storage_quota_bytes)
