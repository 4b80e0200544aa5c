"""The viewer's own recent activity."""

from __future__ import annotations

from typing import TYPE_CHECKING

from clubhouse.core.constants import OWN_ACTIVITY_LIMIT

from .. import scoring
from .common import hydrate, recent_posts_and_scores, score_items, score_scores

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from ..models import FeedItem, UserContext
    from .common import FeedResources


def fetch_own_activity(
    db: Client, context: UserContext, resources: FeedResources
) -> list[FeedItem]:
    """Return a small sample of the viewer's latest posts and scores."""
    post_docs, score_docs = recent_posts_and_scores(
        db, [context.viewer_id], OWN_ACTIVITY_LIMIT, OWN_ACTIVITY_LIMIT
    )
    posts, scores = hydrate(db, resources, post_docs, score_docs)

    return [
        *score_items(posts, scoring.OWN_POST_SCORE, "Your post"),
        *score_scores(
            scores,
            record=(scoring.OWN_RECORD_SCORE, "Your new record"),
            ordinary=(scoring.OWN_SCORE_SCORE, "Your score"),
        ),
    ]
