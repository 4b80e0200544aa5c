"""Feed retrieval tiers and ranking."""

from .common import FeedResources, chunked, first_batch
from .context import build_user_context, get_partner_ids
from .global_fallback import fetch_global_activity, needs_global_fallback
from .home_course import fetch_home_course_activity
from .nearby import fetch_nearby_activity
from .own_activity import fetch_own_activity
from .partner import fetch_partner_activity
from .ranking import deduplicate, rank_feed_items

__all__ = [
    "FeedResources",
    "build_user_context",
    "chunked",
    "deduplicate",
    "fetch_global_activity",
    "fetch_home_course_activity",
    "fetch_nearby_activity",
    "fetch_own_activity",
    "fetch_partner_activity",
    "first_batch",
    "get_partner_ids",
    "needs_global_fallback",
    "rank_feed_items",
]
