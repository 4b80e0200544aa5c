"""Data models for the feed blueprint."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, TypedDict, Union

from clubhouse.core.types import FirestoreDocument


class UserDocument(FirestoreDocument, total=False):
    """A user document in Firestore."""

    displayName: str
    avatar: str
    userType: str
    currentCity: str
    currentState: str
    country: str
    playerCourses: list[int]
    declaredMemberCourses: list[int]


class PartnershipDocument(TypedDict, total=False):
    """A confirmed partnership between two users."""

    user1Id: str
    user2Id: str
    userIds: list[str]


class PostDocument(FirestoreDocument, total=False):
    """A post ("thought") document in Firestore."""

    userId: str
    displayName: str
    avatar: str
    userType: str
    caption: str
    content: str
    imageUrl: str
    imageUrls: list[str]
    videoUrl: str
    videoThumbnailUrl: str
    taggedCourses: list[dict[str, Any]]
    likes: int
    comments: int


class ScoreDocument(FirestoreDocument, total=False):
    """A posted round score document in Firestore."""

    userId: str
    displayName: str
    avatar: str
    userType: str
    courseId: int
    courseName: str
    grossScore: int
    netScore: int
    par: int
    thoughtId: str
    likes: int
    comments: int


@dataclass(frozen=True)
class Location:
    """Self-reported location of a user."""

    city: str = ""
    state: str = ""
    country: str = ""

    @property
    def label(self) -> str:
        """Return a "City, State" label."""
        return ", ".join(part for part in (self.city, self.state) if part)


@dataclass(frozen=True)
class UserContext:
    """The viewer's social, course and geographic graph for one feed request."""

    viewer_id: str
    viewer_category: str
    partner_ids: frozenset[str] = frozenset()
    partners_partner_ids: frozenset[str] = frozenset()
    home_course_ids: tuple[int, ...] = ()
    played_course_ids: frozenset[int] = frozenset()
    location: Location = field(default_factory=Location)


@dataclass(frozen=True)
class ProfileCacheEntry:
    """Actor identity used to label feed items."""

    display_name: str
    avatar_ref: str | None
    category: str


@dataclass(frozen=True)
class CourseRecord:
    """Current best net score holder at a course."""

    holder_id: str | None
    net_score: int | float


@dataclass
class FeedPost:
    """A post surfaced in the feed."""

    id: str
    actor_id: str
    actor_display_name: str
    actor_avatar_ref: str | None
    created_at: datetime.datetime | None
    caption: str = ""
    image_refs: list[str] = field(default_factory=list)
    video_ref: str | None = None
    video_thumbnail_ref: str | None = None
    tagged_courses: list[dict[str, Any]] = field(default_factory=list)
    likes: int = 0
    comments: int = 0
    actor_category: str = ""
    relevance_score: int = 0
    relevance_reason: str = ""

    kind = "post"

    @property
    def identity(self) -> tuple[str, str]:
        """Return the deduplication key of this item."""
        return (self.kind, self.id)


@dataclass
class FeedScore:
    """A posted round score surfaced in the feed."""

    id: str
    actor_id: str
    actor_display_name: str
    actor_avatar_ref: str | None
    created_at: datetime.datetime | None
    course_id: int | str | None = None
    course_name: str = ""
    gross_score: int | None = None
    net_score: int | None = None
    par: int | None = None
    is_new_course_record: bool = False
    likes: int = 0
    comments: int = 0
    actor_category: str = ""
    relevance_score: int = 0
    relevance_reason: str = ""

    kind = "score"

    @property
    def identity(self) -> tuple[str, str]:
        """Return the deduplication key of this item."""
        return (self.kind, self.id)


FeedItem = Union[FeedPost, FeedScore]
