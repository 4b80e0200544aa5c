"""Convert feed items into the dictionaries the clients render."""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING, Any

from .models import FeedScore

if TYPE_CHECKING:
    from .models import FeedItem


def relative_time(
    created_at: datetime.datetime | None, now: datetime.datetime | None = None
) -> str:
    """Return a short human description of how long ago ``created_at`` was."""
    if created_at is None:
        return ""
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=datetime.timezone.utc)
    now = now or datetime.datetime.now(datetime.timezone.utc)

    diff = now - created_at
    minutes = int(diff.total_seconds() // 60)
    hours = minutes // 60
    days = hours // 24

    if minutes < 1:
        return "just now"
    if minutes == 1:
        return "1 minute ago"
    if minutes < 60:
        return f"{minutes} minutes ago"
    if hours == 1:
        return "1 hour ago"
    if hours < 24:
        return f"{hours} hours ago"
    if days == 1:
        return "1 day ago"
    if days < 7:
        return f"{days} days ago"
    label = f"{created_at.strftime('%b')} {created_at.day}"
    if created_at.year != now.year:
        label += f", {created_at.year}"
    return label


def score_summary(score: FeedScore) -> str:
    """Describe a posted round, e.g. "Posted 68 (-4) at Pine Valley"."""
    summary = f"Posted {score.net_score}"
    if score.net_score is not None and score.par is not None:
        to_par = score.net_score - score.par
        summary += f" ({'+' if to_par > 0 else ''}{to_par})"
    summary += f" at {score.course_name}"
    if score.is_new_course_record:
        summary += " - NEW LOWMAN!"
    return summary


def to_display_dict(
    item: FeedItem, now: datetime.datetime | None = None
) -> dict[str, Any]:
    """Flatten a feed item for JSON responses."""
    data: dict[str, Any] = {
        "type": item.kind,
        "id": item.id,
        "user_id": item.actor_id,
        "display_name": item.actor_display_name,
        "avatar": item.actor_avatar_ref,
        "user_type": item.actor_category,
        "created_at": item.created_at.isoformat() if item.created_at else None,
        "relative_time": relative_time(item.created_at, now),
        "likes": item.likes,
        "comments": item.comments,
        "relevance_score": item.relevance_score,
        "relevance_reason": item.relevance_reason,
    }
    if isinstance(item, FeedScore):
        data.update(
            {
                "content": score_summary(item),
                "post_type": "low-leader" if item.is_new_course_record else "score",
                "course_id": item.course_id,
                "course_name": item.course_name,
                "gross_score": item.gross_score,
                "net_score": item.net_score,
                "par": item.par,
                "is_new_course_record": item.is_new_course_record,
                "tagged_courses": [
                    {"courseId": item.course_id, "courseName": item.course_name}
                ],
            }
        )
    else:
        data.update(
            {
                "content": item.caption,
                "image_urls": item.image_refs,
                "video_url": item.video_ref,
                "video_thumbnail_url": item.video_thumbnail_ref,
                "tagged_courses": item.tagged_courses,
            }
        )
    return data
