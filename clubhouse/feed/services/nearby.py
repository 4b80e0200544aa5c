"""Nearby players tier with same-city then same-state expansion."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from clubhouse.core.constants import (
    NEARBY_ACCOUNT_LIMIT,
    NEARBY_CITY_CONTENT_LIMIT,
    NEARBY_EXPANSION_THRESHOLD,
    NEARBY_REGION_CONTENT_LIMIT,
    USERS_COLLECTION,
)

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

logger = logging.getLogger(__name__)


def _account_ids(docs: Any, viewer_id: str) -> list[str]:
    account_ids = []
    for doc in docs:
        if doc.id == viewer_id:
            continue
        account_ids.append(doc.id)
        if len(account_ids) >= NEARBY_ACCOUNT_LIMIT:
            break
    return account_ids


def find_city_accounts(db: Client, context: UserContext) -> list[str]:
    """Return ids of accounts in the viewer's city and state."""
    docs = (
        db.collection(USERS_COLLECTION)
        .where(filter=firestore.FieldFilter("currentCity", "==", context.location.city))
        .where(
            filter=firestore.FieldFilter("currentState", "==", context.location.state)
        )
        .limit(NEARBY_ACCOUNT_LIMIT + 1)
        .stream()
    )
    return _account_ids(docs, context.viewer_id)


def find_region_accounts(db: Client, context: UserContext) -> list[str]:
    """Return ids of accounts in the viewer's state but another city.

    A viewer without a city matches every account in the state.
    """
    query = db.collection(USERS_COLLECTION).where(
        filter=firestore.FieldFilter("currentState", "==", context.location.state)
    )
    if context.location.city:
        query = query.where(
            filter=firestore.FieldFilter("currentCity", "!=", context.location.city)
        )
    docs = query.limit(NEARBY_ACCOUNT_LIMIT + 1).stream()
    return _account_ids(docs, context.viewer_id)


def _fetch_stage(
    db: Client,
    context: UserContext,
    resources: FeedResources,
    account_ids: list[str],
    content_limit: int,
    post: tuple[int, str],
    record: tuple[int, str],
    ordinary: tuple[int, str],
) -> list[FeedItem]:
    batch = first_batch(account_ids)
    if not batch:
        return []
    post_docs, score_docs = recent_posts_and_scores(
        db, batch, content_limit, content_limit
    )
    posts, scores = hydrate(db, resources, post_docs, score_docs)
    return [
        *score_items(posts, *post, resources.boost, context.viewer_category),
        *score_scores(
            scores, record, ordinary, resources.boost, context.viewer_category
        ),
    ]


def fetch_city_stage(
    db: Client, context: UserContext, resources: FeedResources
) -> list[FeedItem]:
    """Score recent content from accounts in the viewer's city."""
    return _fetch_stage(
        db,
        context,
        resources,
        find_city_accounts(db, context),
        NEARBY_CITY_CONTENT_LIMIT,
        post=(scoring.NEARBY_CITY_POST_SCORE, f"Nearby in {context.location.label}"),
        record=(scoring.NEARBY_CITY_RECORD_SCORE, "New record nearby"),
        ordinary=(scoring.NEARBY_CITY_SCORE_SCORE, "Nearby score"),
    )


def fetch_region_stage(
    db: Client, context: UserContext, resources: FeedResources
) -> list[FeedItem]:
    """Score recent content from accounts elsewhere in the viewer's state."""
    state = context.location.state
    return _fetch_stage(
        db,
        context,
        resources,
        find_region_accounts(db, context),
        NEARBY_REGION_CONTENT_LIMIT,
        post=(scoring.NEARBY_REGION_POST_SCORE, f"Nearby in {state}"),
        record=(scoring.NEARBY_REGION_RECORD_SCORE, f"New record in {state}"),
        ordinary=(scoring.NEARBY_REGION_SCORE_SCORE, f"Score in {state}"),
    )


def fetch_nearby_activity(
    db: Client, context: UserContext, resources: FeedResources
) -> list[FeedItem]:
    """Return content from nearby players, widening to the state if sparse."""
    location = context.location
    if not location.state:
        return []

    items: list[FeedItem] = []
    if location.city:
        items = fetch_city_stage(db, context, resources)

    if len(items) < NEARBY_EXPANSION_THRESHOLD:
        logger.debug(
            f"Only {len(items)} items in {location.label}, expanding to {location.state}"
        )
        items.extend(fetch_region_stage(db, context, resources))
    return items
