"""Read-through caches for actor profiles and course records."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, Callable, Iterable

from clubhouse.core.constants import (
    COURSE_LEADERS_COLLECTION,
    DEFAULT_CATEGORY,
    UNKNOWN_DISPLAY_NAME,
    USERS_COLLECTION,
)
from clubhouse.errors import CacheResolutionFailed

from .models import CourseRecord, ProfileCacheEntry

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

_MISSING = object()
MAX_READ_WORKERS = 8


class BoundedTTLCache:
    """Thread-safe LRU mapping whose entries expire after ``ttl`` seconds."""

    def __init__(
        self,
        maxsize: int = 1024,
        ttl: float | None = 600.0,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache."""
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self.maxsize = maxsize
        self.ttl = ttl
        self._timer = timer
        self._data: OrderedDict[Any, tuple[float, Any]] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: Any) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def get(self, key: Any, default: Any = None) -> Any:
        """Return the live value for ``key`` or ``default``."""
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return default
            stored_at, value = entry
            if self.ttl is not None and self._timer() - stored_at >= self.ttl:
                del self._data[key]
                return default
            self._data.move_to_end(key)
            return value

    def set(self, key: Any, value: Any) -> None:
        """Store ``value``, evicting the least recently used entry if full."""
        with self._lock:
            self._data[key] = (self._timer(), value)
            self._data.move_to_end(key)
            while len(self._data) > self.maxsize:
                self._data.popitem(last=False)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._data.clear()


class _ReadThroughCache:
    """Resolve many keys at once, reading only the misses from Firestore."""

    kind = "entry"

    def __init__(self, maxsize: int = 1024, ttl: float | None = 600.0, **kwargs: Any) -> None:
        self.entries = BoundedTTLCache(maxsize=maxsize, ttl=ttl, **kwargs)

    def seed(self, key: Any, value: Any) -> None:
        """Insert a pre-computed entry."""
        self.entries.set(key, value)

    def _load(self, db: Client, key: Any) -> Any:
        raise NotImplementedError

    def resolve_many(self, db: Client, keys: Iterable[Any]) -> dict[Any, Any]:
        """Return entries for every key, reading misses in parallel.

        Entries that load successfully are cached even when others fail;
        any failure raises ``CacheResolutionFailed`` afterwards.
        """
        resolved: dict[Any, Any] = {}
        misses = []
        for key in dict.fromkeys(keys):
            if key is None:
                continue
            value = self.entries.get(key, _MISSING)
            if value is _MISSING:
                misses.append(key)
            else:
                resolved[key] = value

        if not misses:
            return resolved

        failed = []
        workers = min(len(misses), MAX_READ_WORKERS)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {key: executor.submit(self._load, db, key) for key in misses}
            for key, future in futures.items():
                try:
                    value = future.result()
                except Exception as e:
                    logger.warning(f"Error loading {self.kind} {key}: {e}")
                    failed.append(key)
                    continue
                self.entries.set(key, value)
                resolved[key] = value

        if failed:
            raise CacheResolutionFailed(self.kind, failed)
        return resolved


class ProfileCache(_ReadThroughCache):
    """Maps user ids to display name, avatar and category."""

    kind = "profile"

    def _load(self, db: Client, user_id: str) -> ProfileCacheEntry:
        user_doc = db.collection(USERS_COLLECTION).document(user_id).get()
        data = (user_doc.to_dict() or {}) if user_doc.exists else {}
        return ProfileCacheEntry(
            display_name=data.get("displayName") or UNKNOWN_DISPLAY_NAME,
            avatar_ref=data.get("avatar"),
            category=data.get("userType") or DEFAULT_CATEGORY,
        )


class CourseRecordCache(_ReadThroughCache):
    """Maps course ids to their current lowman, or None if unset."""

    kind = "course record"

    def _load(self, db: Client, course_id: Any) -> CourseRecord | None:
        leader_doc = (
            db.collection(COURSE_LEADERS_COLLECTION).document(str(course_id)).get()
        )
        if not leader_doc.exists:
            return None
        lowman = (leader_doc.to_dict() or {}).get("lowman")
        # Older documents store the leaderboard as a list, best first.
        if isinstance(lowman, list):
            lowman = lowman[0] if lowman else None
        if not isinstance(lowman, dict) or lowman.get("netScore") is None:
            return None
        return CourseRecord(
            holder_id=lowman.get("userId"), net_score=lowman["netScore"]
        )
