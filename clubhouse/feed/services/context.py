"""Build the viewer context that drives every feed tier."""

from __future__ import annotations

import logging
from itertools import islice
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from clubhouse.core.constants import (
    DEFAULT_CATEGORY,
    PARTNERS_COLLECTION,
    PLAYED_COURSES_SAMPLE,
    SCORES_COLLECTION,
    SECOND_DEGREE_SAMPLE,
    SECOND_DEGREE_SOURCE_LIMIT,
    USERS_COLLECTION,
)
from clubhouse.errors import ViewerNotFoundError

from ..models import Location, UserContext
from .common import run_parallel

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


def get_partner_ids(db: Client, user_id: str) -> set[str]:
    """Return the ids of everyone with a confirmed partnership with the user."""
    partnerships = (
        db.collection(PARTNERS_COLLECTION)
        .where(filter=firestore.FieldFilter("userIds", "array_contains", user_id))
        .stream()
    )
    partner_ids = set()
    for doc in partnerships:
        data = doc.to_dict() or {}
        for side in (data.get("user1Id"), data.get("user2Id")):
            if side and side != user_id:
                partner_ids.add(side)
    return partner_ids


def get_played_course_ids(db: Client, user_id: str) -> set[Any]:
    """Return course ids from a capped sample of the user's score history."""
    scores = (
        db.collection(SCORES_COLLECTION)
        .where(filter=firestore.FieldFilter("userId", "==", user_id))
        .limit(PLAYED_COURSES_SAMPLE)
        .stream()
    )
    course_ids = set()
    for doc in scores:
        course_id = (doc.to_dict() or {}).get("courseId")
        if course_id is not None:
            course_ids.add(course_id)
    return course_ids


def get_second_degree_partner_ids(
    db: Client, user_id: str, partner_ids: set[str]
) -> set[str]:
    """Return partners of the first partners, minus the user and their partners."""
    if not partner_ids:
        return set()
    sources = sorted(partner_ids)[:SECOND_DEGREE_SOURCE_LIMIT]
    results = run_parallel(*[_partner_lookup(db, pid) for pid in sources])
    second_degree = set().union(*results) - partner_ids - {user_id}
    return set(islice(sorted(second_degree), SECOND_DEGREE_SAMPLE))


def _partner_lookup(db: Client, user_id: str):
    return lambda: get_partner_ids(db, user_id)


def _degrade(label: str, viewer_id: str, lookup, default):
    """Run a context lookup, falling back to ``default`` if the store fails."""
    try:
        return lookup()
    except Exception as e:
        logger.warning(f"Could not load {label} for {viewer_id}: {e}")
        return default


def build_user_context(db: Client, viewer_id: str) -> UserContext:
    """Assemble the viewer's partners, courses and location.

    Raises ViewerNotFoundError if the viewer has no profile document.
    """
    user_doc = db.collection(USERS_COLLECTION).document(viewer_id).get()
    if not user_doc.exists:
        raise ViewerNotFoundError(viewer_id)
    user_data = user_doc.to_dict() or {}

    partner_ids, played_course_ids = run_parallel(
        lambda: _degrade(
            "partners", viewer_id, lambda: get_partner_ids(db, viewer_id), set()
        ),
        lambda: _degrade(
            "played courses",
            viewer_id,
            lambda: get_played_course_ids(db, viewer_id),
            set(),
        ),
    )
    partners_partner_ids = _degrade(
        "second degree partners",
        viewer_id,
        lambda: get_second_degree_partner_ids(db, viewer_id, partner_ids),
        set(),
    )

    home_courses = [
        *(user_data.get("playerCourses") or []),
        *(user_data.get("declaredMemberCourses") or []),
    ]

    context = UserContext(
        viewer_id=viewer_id,
        viewer_category=user_data.get("userType") or DEFAULT_CATEGORY,
        partner_ids=frozenset(partner_ids),
        partners_partner_ids=frozenset(partners_partner_ids),
        home_course_ids=tuple(dict.fromkeys(home_courses)),
        played_course_ids=frozenset(played_course_ids),
        location=Location(
            city=user_data.get("currentCity") or "",
            state=user_data.get("currentState") or "",
            country=user_data.get("country") or "",
        ),
    )
    logger.debug(
        f"Context for {viewer_id}: {len(context.partner_ids)} partners, "
        f"{len(context.home_course_ids)} home courses, "
        f"location '{context.location.label}'"
    )
    return context
