"""View-models the controllers render into.

They hold exactly what a page shows, so a controller can be driven and
checked without a browser. User text is stored raw and only ever escaped
on the way to HTML.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from markupsafe import Markup

UNKNOWN_TIME = "Unknown time"


@dataclass
class StatusView:
    message: str = ""
    tone: str = "muted"  # muted | success | error

    @property
    def hidden(self) -> bool:
        return not self.message

    def set(self, message: str, tone: str = "muted") -> None:
        self.message = message or ""
        self.tone = tone

    def clear(self) -> None:
        self.set("")


@dataclass
class PostCard:
    post_id: str
    timestamp: str
    body: str
    deletable: bool = False

    def to_html(self) -> Markup:
        return Markup(
            '<article class="card" data-id="{id}">'
            '<p class="muted small">{ts}</p>'
            '<p class="post-content" style="white-space: pre-wrap">{body}</p>'
            "</article>"
        ).format(id=self.post_id, ts=self.timestamp, body=self.body)


class FeedState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    EMPTY = "empty"
    READY = "ready"
    ERROR = "error"


@dataclass
class FeedView:
    state: FeedState = FeedState.IDLE
    message: str = ""
    cards: List[PostCard] = field(default_factory=list)

    @property
    def bodies(self) -> List[str]:
        return [card.body for card in self.cards]

    def to_html(self) -> Markup:
        if self.state == FeedState.READY:
            return Markup("").join(card.to_html() for card in self.cards)
        if not self.message:
            return Markup("")
        tone = "error" if self.state == FeedState.ERROR else "muted"
        return Markup('<p class="{tone}">{message}</p>').format(tone=tone, message=self.message)


@dataclass
class SessionView:
    member: bool = False
    status: StatusView = field(default_factory=StatusView)


@dataclass
class ComposerView:
    visible: bool = False
    login_prompt_visible: bool = True
    text: str = ""
    submitting: bool = False
    status: StatusView = field(default_factory=StatusView)

    @property
    def submit_label(self) -> str:
        return "Posting..." if self.submitting else "Post"


@dataclass
class AvatarView:
    visible: bool = False
    src: Optional[str] = None
    status: StatusView = field(default_factory=StatusView)

    @property
    def has_image(self) -> bool:
        return bool(self.src)

    @property
    def placeholder_visible(self) -> bool:
        return not self.src


class ProfileMode(str, Enum):
    GUEST = "guest"
    MEMBER_VIEW = "member-view"
    MEMBER_EDIT = "member-edit"


@dataclass
class ProfileView:
    mode: ProfileMode = ProfileMode.GUEST
    page_status: StatusView = field(default_factory=StatusView)
    name_display: str = "Profile"
    bio_display: str = "Share a short description for your profile."
    bio_muted: bool = True
    name_input: str = ""
    bio_input: str = ""
    saving: bool = False
    form_status: StatusView = field(default_factory=StatusView)
    avatar: AvatarView = field(default_factory=AvatarView)

    @property
    def guest_notice_visible(self) -> bool:
        return self.mode == ProfileMode.GUEST

    @property
    def summary_visible(self) -> bool:
        # The summary stays up, read-only, while the edit form is open
        return self.mode != ProfileMode.GUEST

    @property
    def edit_toggle_visible(self) -> bool:
        return self.mode != ProfileMode.GUEST

    @property
    def edit_toggle_expanded(self) -> bool:
        return self.mode == ProfileMode.MEMBER_EDIT

    @property
    def form_visible(self) -> bool:
        return self.mode == ProfileMode.MEMBER_EDIT

    @property
    def posts_panel_visible(self) -> bool:
        return self.mode != ProfileMode.GUEST

    @property
    def save_label(self) -> str:
        return "Saving..." if self.saving else "Save profile"


@dataclass
class NavView:
    logged_in: bool = False
    avatar_src: Optional[str] = None
    initial: str = ""

    @property
    def login_link_visible(self) -> bool:
        return not self.logged_in

    @property
    def profile_link_visible(self) -> bool:
        return self.logged_in
