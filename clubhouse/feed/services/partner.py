"""Partner activity tier."""

from __future__ import annotations

from typing import TYPE_CHECKING

from clubhouse.core.constants import PARTNER_CONTENT_LIMIT

from .. import scoring
from .common import (
    first_batch,
    hydrate,
    recent_posts_and_scores,
    score_items,
    score_scores,
)

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from ..models import FeedItem, UserContext
    from .common import FeedResources


def fetch_partner_activity(
    db: Client, context: UserContext, resources: FeedResources
) -> list[FeedItem]:
    """Return recent posts and scores from the viewer's partners."""
    if not context.partner_ids:
        return []

    partner_batch = first_batch(sorted(context.partner_ids))
    post_docs, score_docs = recent_posts_and_scores(
        db, partner_batch, PARTNER_CONTENT_LIMIT, PARTNER_CONTENT_LIMIT
    )
    posts, scores = hydrate(db, resources, post_docs, score_docs)

    return [
        *score_items(posts, scoring.PARTNER_POST_SCORE, "Partner posted"),
        *score_scores(
            scores,
            record=(scoring.PARTNER_RECORD_SCORE, "Partner's new record"),
            ordinary=(scoring.PARTNER_SCORE_SCORE, "Partner posted score"),
        ),
    ]
