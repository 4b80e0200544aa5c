"""Relevance scoring policy for feed tiers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from clubhouse.core.constants import (
    CATEGORY_COURSE,
    CATEGORY_GOLFER,
    CATEGORY_JUNIOR,
    CATEGORY_PROFESSIONAL,
)

if TYPE_CHECKING:
    from .models import CourseRecord

CategoryBoost = Callable[[str, str], int]

# Applied only when the viewer is a junior.
JUNIOR_VIEWER_BOOSTS = {
    CATEGORY_JUNIOR: 10,
    CATEGORY_PROFESSIONAL: 7,
    CATEGORY_COURSE: 4,
    CATEGORY_GOLFER: 0,
}

# Partner tier
PARTNER_POST_SCORE = 100
PARTNER_RECORD_SCORE = 100
PARTNER_SCORE_SCORE = 98

# Nearby tier, same city
NEARBY_CITY_POST_SCORE = 90
NEARBY_CITY_RECORD_SCORE = 95
NEARBY_CITY_SCORE_SCORE = 88

# Nearby tier, same state
NEARBY_REGION_POST_SCORE = 85
NEARBY_REGION_RECORD_SCORE = 88
NEARBY_REGION_SCORE_SCORE = 83

# Home course tier
HOME_COURSE_RECORD_SCORE = 85
HOME_COURSE_SCORE_SCORE = 80

# Own activity tier
OWN_POST_SCORE = 65
OWN_RECORD_SCORE = 70
OWN_SCORE_SCORE = 62

# Global fallback tier
GLOBAL_POST_SCORE = 35
GLOBAL_SCORE_SCORE = 30


def category_boost(target_category: str, viewer_category: str) -> int:
    """Return the ranking boost for content from ``target_category``.

    Junior viewers see other juniors, professionals and courses ahead of
    ordinary players. Every other viewer category gets no boost.
    """
    if viewer_category != CATEGORY_JUNIOR:
        return 0
    return JUNIOR_VIEWER_BOOSTS.get(target_category, 0)


def no_category_boost(target_category: str, viewer_category: str) -> int:
    """Boost policy that never adjusts scores."""
    return 0


def is_new_course_record(net_score: int | float | None, record: CourseRecord | None) -> bool:
    """Return True if ``net_score`` beats the cached course record.

    A course with no record yet is always a new record. Equal scores do not
    take the record.
    """
    if record is None:
        return True
    if net_score is None:
        return False
    return net_score < record.net_score
