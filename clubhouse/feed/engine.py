"""Feed orchestration: context, tier fan-out, fallback and ranking."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from clubhouse.core.constants import DEFAULT_FEED_SIZE
from clubhouse.errors import (
    CacheResolutionFailed,
    FeedError,
    TierQueryFailed,
    ViewerNotFoundError,
)

from .cache import CourseRecordCache, ProfileCache
from .scoring import category_boost
from .services import (
    FeedResources,
    build_user_context,
    fetch_global_activity,
    fetch_home_course_activity,
    fetch_nearby_activity,
    fetch_own_activity,
    fetch_partner_activity,
    needs_global_fallback,
    rank_feed_items,
)

if TYPE_CHECKING:
    from flask import Flask
    from google.cloud.firestore_v1.client import Client

    from .models import FeedItem
    from .scoring import CategoryBoost

logger = logging.getLogger(__name__)

PRIMARY_TIERS: tuple[tuple[str, Callable[..., list[Any]]], ...] = (
    ("partner", fetch_partner_activity),
    ("nearby", fetch_nearby_activity),
    ("home_course", fetch_home_course_activity),
    ("own_activity", fetch_own_activity),
)
GLOBAL_TIER = "global"


@dataclass
class TierResult:
    """Items from one tier, or the error that emptied it."""

    name: str
    items: list[FeedItem] = field(default_factory=list)
    error: FeedError | None = None

    @property
    def ok(self) -> bool:
        """Return True if the tier completed without error."""
        return self.error is None


def run_tier(name: str, fetch: Callable[..., list[FeedItem]], *args: Any) -> TierResult:
    """Run a tier, converting any failure into an empty result."""
    try:
        return TierResult(name, list(fetch(*args)))
    except CacheResolutionFailed as e:
        error: FeedError = e
    except Exception as e:
        error = TierQueryFailed(name, e)
    logger.error(f"Feed tier '{name}' contributed no items: {error.message}")
    return TierResult(name, error=error)


class FeedEngine:
    """Builds ranked feeds and owns the caches shared between requests."""

    def __init__(
        self,
        app: Flask | None = None,
        profiles: ProfileCache | None = None,
        records: CourseRecordCache | None = None,
        boost: CategoryBoost = category_boost,
        deadline: float | None = None,
        max_workers: int = len(PRIMARY_TIERS),
    ) -> None:
        """Initialize the engine, optionally binding it to an app."""
        self.profiles = profiles or ProfileCache()
        self.records = records or CourseRecordCache()
        self.boost = boost
        self.deadline = deadline
        self.max_workers = max_workers
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Size the caches and deadline from the app config."""
        ttl = app.config.get("FEED_CACHE_TTL_SECONDS")
        self.profiles = ProfileCache(
            maxsize=app.config.get("FEED_PROFILE_CACHE_SIZE", 2048), ttl=ttl
        )
        self.records = CourseRecordCache(
            maxsize=app.config.get("FEED_RECORD_CACHE_SIZE", 1024), ttl=ttl
        )
        self.deadline = app.config.get("FEED_DEADLINE_SECONDS", self.deadline)
        self.max_workers = app.config.get("FEED_MAX_WORKERS", self.max_workers)
        app.extensions["feed_engine"] = self

    def _resources(self) -> FeedResources:
        return FeedResources(profiles=self.profiles, records=self.records, boost=self.boost)

    def _run_tiers(
        self, calls: dict[str, tuple[Any, ...]], timeout: float | None
    ) -> list[TierResult]:
        """Run tiers concurrently; tiers still running at ``timeout`` are dropped."""
        executor = ThreadPoolExecutor(
            max_workers=max(1, min(self.max_workers, len(calls))),
            thread_name_prefix="feed-tier",
        )
        try:
            futures = {
                name: executor.submit(run_tier, name, *args)
                for name, args in calls.items()
            }
            done, _ = wait(futures.values(), timeout=timeout)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        results = []
        for name, future in futures.items():
            if future in done:
                results.append(future.result())
            else:
                logger.warning(f"Feed tier '{name}' missed the deadline")
                results.append(TierResult(name, error=TierQueryFailed(name, "timeout")))
        return results

    def _remaining(self, started: float) -> float | None:
        if self.deadline is None:
            return None
        return self.deadline - (time.monotonic() - started)

    def generate_feed(
        self, db: Client, viewer_id: str, max_items: int = DEFAULT_FEED_SIZE
    ) -> list[FeedItem]:
        """Return the viewer's ranked feed of at most ``max_items`` items.

        Raises ViewerNotFoundError if the viewer does not exist. Any other
        data failure shortens the feed instead of failing it.
        """
        started = time.monotonic()
        try:
            context = build_user_context(db, viewer_id)
        except ViewerNotFoundError:
            raise
        except Exception as e:
            logger.error(f"Could not build feed context for {viewer_id}: {e}")
            return []

        resources = self._resources()
        results = self._run_tiers(
            {name: (fetch, db, context, resources) for name, fetch in PRIMARY_TIERS},
            self._remaining(started),
        )
        candidates = [item for result in results for item in result.items]

        fallback_fired = False
        if needs_global_fallback(len(candidates)):
            remaining = self._remaining(started)
            if remaining is not None and remaining <= 0:
                logger.warning(f"Skipping global fallback for {viewer_id}: deadline passed")
            else:
                fallback_fired = True
                results.extend(
                    self._run_tiers(
                        {
                            GLOBAL_TIER: (
                                fetch_global_activity,
                                db,
                                context,
                                resources,
                                len(candidates),
                                max_items,
                            )
                        },
                        remaining,
                    )
                )
                candidates.extend(results[-1].items)

        feed = rank_feed_items(candidates, max_items)
        logger.info(
            f"Feed for {viewer_id}: "
            + ", ".join(f"{r.name}={len(r.items)}{'' if r.ok else '!'}" for r in results)
            + f", fallback={fallback_fired}, returned={len(feed)}"
        )
        return feed


def generate_feed(
    db: Client,
    viewer_id: str,
    max_items: int = DEFAULT_FEED_SIZE,
    engine: FeedEngine | None = None,
) -> list[FeedItem]:
    """Build a feed with ``engine``, or with a fresh engine and empty caches."""
    return (engine or FeedEngine()).generate_feed(db, viewer_id, max_items)
