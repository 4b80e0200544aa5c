"""Home course activity tier."""

from __future__ import annotations

from typing import TYPE_CHECKING

from clubhouse.core.constants import HOME_COURSE_SCORE_LIMIT, SCORES_COLLECTION

from .. import scoring
from .common import first_batch, hydrate, recent_documents, score_scores

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from ..models import FeedItem, UserContext
    from .common import FeedResources


def fetch_home_course_activity(
    db: Client, context: UserContext, resources: FeedResources
) -> list[FeedItem]:
    """Return recent scores by other players at the viewer's home courses."""
    course_ids = first_batch(context.home_course_ids)
    if not course_ids:
        return []

    score_docs = recent_documents(
        db,
        SCORES_COLLECTION,
        HOME_COURSE_SCORE_LIMIT,
        [("courseId", "in", course_ids), ("userId", "!=", context.viewer_id)],
    )
    _, scores = hydrate(db, resources, score_docs=score_docs)

    return score_scores(
        scores,
        record=(scoring.HOME_COURSE_RECORD_SCORE, "Record at your course"),
        ordinary=(scoring.HOME_COURSE_SCORE_SCORE, "Score at your course"),
        boost=resources.boost,
        viewer_category=context.viewer_category,
    )
