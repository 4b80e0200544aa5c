"""Shared query, batching and item-building helpers for feed tiers."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from itertools import islice
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Sequence, TypeVar

from firebase_admin import firestore

from clubhouse.core.constants import (
    DEFAULT_CATEGORY,
    FIRESTORE_IN_QUERY_LIMIT,
    POSTS_COLLECTION,
    SCORES_COLLECTION,
    UNKNOWN_DISPLAY_NAME,
)

from ..models import FeedPost, FeedScore, ProfileCacheEntry
from ..scoring import category_boost, is_new_course_record

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from ..cache import CourseRecordCache, ProfileCache
    from ..scoring import CategoryBoost

T = TypeVar("T")


@dataclass
class FeedResources:
    """Shared collaborators handed to every tier for one request."""

    profiles: ProfileCache
    records: CourseRecordCache
    boost: CategoryBoost = category_boost


def chunked(values: Iterable[T], size: int = FIRESTORE_IN_QUERY_LIMIT) -> Iterator[list[T]]:
    """Yield lists of at most ``size`` values, in order."""
    iterator = iter(values)
    while True:
        chunk = list(islice(iterator, size))
        if not chunk:
            return
        yield chunk


def first_batch(values: Iterable[T], size: int = FIRESTORE_IN_QUERY_LIMIT) -> list[T]:
    """Return the first "in"-query sized batch of distinct values.

    Only this batch is queried; values beyond it are dropped in favour of a
    single round trip.
    """
    return next(chunked(dict.fromkeys(values), size), [])


def run_parallel(*calls: Callable[[], Any]) -> list[Any]:
    """Run blocking calls concurrently and return their results in order.

    The first exception raised by any call propagates.
    """
    if len(calls) == 1:
        return [calls[0]()]
    with ThreadPoolExecutor(max_workers=len(calls)) as executor:
        futures = [executor.submit(call) for call in calls]
        return [future.result() for future in futures]


def doc_to_dict(doc: Any) -> dict[str, Any]:
    """Flatten a document snapshot into a dict that carries its id."""
    data = doc.to_dict() or {}
    data["id"] = doc.id
    return data


def recent_documents(
    db: Client,
    collection: str,
    limit: int,
    filters: Sequence[tuple[str, str, Any]] = (),
) -> list[dict[str, Any]]:
    """Fetch the most recent documents matching every filter."""
    query: Any = db.collection(collection)
    for field_path, op, value in filters:
        query = query.where(filter=firestore.FieldFilter(field_path, op, value))
    query = query.order_by("createdAt", direction=firestore.Query.DESCENDING).limit(
        limit
    )
    return [doc_to_dict(doc) for doc in query.stream()]


def recent_posts_and_scores(
    db: Client,
    author_ids: Sequence[str],
    post_limit: int,
    score_limit: int,
) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Fetch recent posts and scores by the given authors concurrently."""
    author_filter = [("userId", "in", list(author_ids))]
    posts, scores = run_parallel(
        lambda: recent_documents(db, POSTS_COLLECTION, post_limit, author_filter),
        lambda: recent_documents(db, SCORES_COLLECTION, score_limit, author_filter),
    )
    return posts, scores


def _actor_fields(
    data: dict[str, Any], profile: ProfileCacheEntry | None
) -> dict[str, Any]:
    return {
        "actor_id": data.get("userId", ""),
        "actor_display_name": data.get("displayName")
        or (profile.display_name if profile else None)
        or UNKNOWN_DISPLAY_NAME,
        "actor_avatar_ref": data.get("avatar") or (profile.avatar_ref if profile else None),
        "actor_category": data.get("userType")
        or (profile.category if profile else None)
        or DEFAULT_CATEGORY,
    }


def build_post(data: dict[str, Any], profile: ProfileCacheEntry | None) -> FeedPost:
    """Build an unscored feed post from a post document."""
    images = data.get("imageUrls") or []
    if not images and data.get("imageUrl"):
        images = [data["imageUrl"]]
    return FeedPost(
        id=data["id"],
        created_at=data.get("createdAt"),
        caption=data.get("caption") or data.get("content") or "",
        image_refs=list(images),
        video_ref=data.get("videoUrl"),
        video_thumbnail_ref=data.get("videoThumbnailUrl"),
        tagged_courses=list(data.get("taggedCourses") or []),
        likes=data.get("likes") or 0,
        comments=data.get("comments") or 0,
        **_actor_fields(data, profile),
    )


def build_score(
    data: dict[str, Any], profile: ProfileCacheEntry | None, is_record: bool
) -> FeedScore:
    """Build an unscored feed score from a score document."""
    return FeedScore(
        id=data["id"],
        created_at=data.get("createdAt"),
        course_id=data.get("courseId"),
        course_name=data.get("courseName") or "",
        gross_score=data.get("grossScore"),
        net_score=data.get("netScore"),
        par=data.get("par"),
        is_new_course_record=is_record,
        likes=data.get("likes") or 0,
        comments=data.get("comments") or 0,
        **_actor_fields(data, profile),
    )


def hydrate(
    db: Client,
    resources: FeedResources,
    post_docs: Sequence[dict[str, Any]] = (),
    score_docs: Sequence[dict[str, Any]] = (),
    check_records: bool = True,
) -> tuple[list[FeedPost], list[FeedScore]]:
    """Turn raw documents into feed items with one batched lookup per cache.

    Scores that were already shared as a post are skipped.
    """
    score_docs = [d for d in score_docs if not d.get("thoughtId")]
    actor_ids = [d.get("userId") for d in [*post_docs, *score_docs]]
    course_ids = [d.get("courseId") for d in score_docs] if check_records else []

    if course_ids:
        profiles, records = run_parallel(
            lambda: resources.profiles.resolve_many(db, actor_ids),
            lambda: resources.records.resolve_many(db, course_ids),
        )
    else:
        profiles, records = resources.profiles.resolve_many(db, actor_ids), {}

    posts = [build_post(d, profiles.get(d.get("userId"))) for d in post_docs]
    scores = [
        build_score(
            d,
            profiles.get(d.get("userId")),
            check_records
            and is_new_course_record(d.get("netScore"), records.get(d.get("courseId"))),
        )
        for d in score_docs
    ]
    return posts, scores


def score_items(
    items: Iterable[FeedPost | FeedScore],
    base: int,
    reason: str,
    boost: CategoryBoost | None = None,
    viewer_category: str = "",
) -> list[FeedPost | FeedScore]:
    """Assign ``base`` plus any category boost and a reason to every item."""
    scored = []
    for item in items:
        extra = boost(item.actor_category, viewer_category) if boost else 0
        item.relevance_score = base + extra
        item.relevance_reason = reason
        scored.append(item)
    return scored


def score_scores(
    scores: Iterable[FeedScore],
    record: tuple[int, str],
    ordinary: tuple[int, str],
    boost: CategoryBoost | None = None,
    viewer_category: str = "",
) -> list[FeedPost | FeedScore]:
    """Score round items, using ``record`` for new course records."""
    scored = []
    for item in scores:
        base, reason = record if item.is_new_course_record else ordinary
        scored.extend(score_items([item], base, reason, boost, viewer_category))
    return scored
