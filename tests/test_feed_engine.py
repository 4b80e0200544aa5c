"""End-to-end tests for feed generation."""

from __future__ import annotations

import threading
import unittest
from unittest.mock import MagicMock, patch

from clubhouse.errors import CacheResolutionFailed, TierQueryFailed, ViewerNotFoundError
from clubhouse.feed import engine as engine_module
from clubhouse.feed import generate_feed
from clubhouse.feed.cache import ProfileCache
from clubhouse.feed.engine import FeedEngine, run_tier
from clubhouse.feed.models import FeedPost, ProfileCacheEntry
from clubhouse.feed.scoring import no_category_boost
from tests.helpers import BASE_TIME, FeedStore


def make_post(item_id: str, score: int) -> FeedPost:
    return FeedPost(
        id=item_id,
        actor_id="someone",
        actor_display_name="Someone",
        actor_avatar_ref=None,
        created_at=BASE_TIME,
        relevance_score=score,
    )


class FeedEngineTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.store = FeedStore()
        self.store.add_user(
            "viewer",
            city="Greensboro",
            state="NC",
            playerCourses=[101],
        )
        self.engine = FeedEngine()

    def test_unknown_viewer_raises(self) -> None:
        with self.assertRaises(ViewerNotFoundError):
            self.engine.generate_feed(self.store.db, "nobody")

    def test_context_store_failure_returns_empty_feed(self) -> None:
        db = MagicMock()
        db.collection.side_effect = RuntimeError("unavailable")
        self.assertEqual(self.engine.generate_feed(db, "viewer"), [])

    def test_partner_score_at_home_course_is_deduplicated(self) -> None:
        self.store.add_user("p1")
        self.store.add_partnership("viewer", "p1")
        self.store.add_course_record(101, "someone", 60)
        score_id = self.store.add_score("p1", course_id=101, net_score=70)

        feed = self.engine.generate_feed(self.store.db, "viewer")

        matches = [item for item in feed if item.id == score_id]
        self.assertEqual(len(matches), 1)
        self.assertEqual(matches[0].relevance_score, 98)
        self.assertEqual(matches[0].relevance_reason, "Partner posted score")

    def test_result_is_bounded_sorted_and_unique(self) -> None:
        self.store.add_user("p1")
        self.store.add_partnership("viewer", "p1")
        self.store.add_user("local", city="Greensboro", state="NC")
        for _ in range(20):
            self.store.add_post("p1")
            self.store.add_score("p1", course_id=101)
            self.store.add_post("local")
        self.store.add_post("viewer")

        feed = self.engine.generate_feed(self.store.db, "viewer", max_items=25)

        self.assertEqual(len(feed), 25)
        self.assertEqual(len({item.identity for item in feed}), 25)
        keys = [(item.relevance_score, item.created_at) for item in feed]
        self.assertEqual(keys, sorted(keys, reverse=True))

    def test_global_fallback_fills_empty_feed(self) -> None:
        self.store.add_user("stranger")
        for _ in range(15):
            self.store.add_post("stranger")
            self.store.add_score("stranger", course_id=900)

        feed = self.engine.generate_feed(self.store.db, "viewer")

        self.assertEqual(len(feed), 20)
        self.assertTrue(all(30 <= item.relevance_score <= 35 for item in feed))

    def test_global_fallback_skipped_at_thirty_items(self) -> None:
        self.store.add_user("p1")
        self.store.add_partnership("viewer", "p1")
        for _ in range(20):
            self.store.add_post("p1")
        for _ in range(10):
            self.store.add_score("p1", course_id=500)

        with patch.object(
            engine_module, "fetch_global_activity", return_value=[]
        ) as mock_global:
            self.engine.generate_feed(self.store.db, "viewer")

        mock_global.assert_not_called()

    def test_global_fallback_runs_below_thirty_items(self) -> None:
        self.store.add_user("p1")
        self.store.add_partnership("viewer", "p1")
        for _ in range(20):
            self.store.add_post("p1")
        for _ in range(9):
            self.store.add_score("p1", course_id=500)

        with patch.object(
            engine_module, "fetch_global_activity", return_value=[]
        ) as mock_global:
            self.engine.generate_feed(self.store.db, "viewer")

        mock_global.assert_called_once()
        self.assertEqual(mock_global.call_args.args[3:], (29, 50))

    def test_failing_tier_does_not_abort_siblings(self) -> None:
        def broken(db, context, resources):
            raise RuntimeError("missing composite index")

        def working(db, context, resources):
            return [make_post("ok", 90)]

        tiers = (("broken", broken), ("working", working))
        with patch.object(engine_module, "PRIMARY_TIERS", tiers), patch.object(
            engine_module, "fetch_global_activity", return_value=[]
        ):
            feed = self.engine.generate_feed(self.store.db, "viewer")

        self.assertEqual([item.id for item in feed], ["ok"])

    def test_deadline_returns_partial_results(self) -> None:
        release = threading.Event()
        self.addCleanup(release.set)

        def slow(db, context, resources):
            release.wait(5)
            return [make_post("slow", 100)]

        def fast(db, context, resources):
            return [make_post("fast", 90)]

        engine = FeedEngine(deadline=0.2)
        tiers = (("slow", slow), ("fast", fast))
        with patch.object(engine_module, "PRIMARY_TIERS", tiers):
            feed = engine.generate_feed(self.store.db, "viewer")

        self.assertEqual([item.id for item in feed], ["fast"])

    def test_injected_boost_policy(self) -> None:
        self.store.add_user(
            "kid_viewer", user_type="Junior", city="Greensboro", state="NC"
        )
        self.store.add_user("kid", user_type="Junior", city="Greensboro", state="NC")
        self.store.add_post("kid")

        boosted = FeedEngine().generate_feed(self.store.db, "kid_viewer")
        flat = FeedEngine(boost=no_category_boost).generate_feed(
            self.store.db, "kid_viewer"
        )

        self.assertEqual(boosted[0].relevance_score, 100)
        self.assertEqual(flat[0].relevance_score, 90)

    def test_pre_seeded_profile_cache_labels_items(self) -> None:
        profiles = ProfileCache()
        profiles.seed("p1", ProfileCacheEntry("Seeded Name", None, "Golfer"))
        self.store.add_partnership("viewer", "p1")
        self.store.add_post("p1")

        feed = FeedEngine(profiles=profiles).generate_feed(self.store.db, "viewer")

        self.assertEqual(feed[0].actor_display_name, "Seeded Name")


class RunTierTestCase(unittest.TestCase):
    def test_success(self) -> None:
        result = run_tier("partner", lambda: [make_post("a", 100)])
        self.assertTrue(result.ok)
        self.assertEqual(len(result.items), 1)

    def test_store_failure(self) -> None:
        def fail():
            raise RuntimeError("unavailable")

        result = run_tier("nearby", fail)

        self.assertFalse(result.ok)
        self.assertEqual(result.items, [])
        self.assertIsInstance(result.error, TierQueryFailed)
        self.assertEqual(result.error.tier, "nearby")

    def test_cache_failure(self) -> None:
        def fail():
            raise CacheResolutionFailed("profile", ["u1"])

        result = run_tier("home_course", fail)

        self.assertEqual(result.items, [])
        self.assertIsInstance(result.error, CacheResolutionFailed)


class GenerateFeedFunctionTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.store = FeedStore()
        self.store.add_user("viewer")
        self.store.add_user("p1")
        self.store.add_partnership("viewer", "p1")
        self.post_id = self.store.add_post("p1")

    def test_uses_fresh_engine_by_default(self) -> None:
        feed = generate_feed(self.store.db, "viewer")

        self.assertEqual([item.id for item in feed], [self.post_id])
        self.assertEqual(feed[0].relevance_reason, "Partner posted")

    def test_uses_given_engine(self) -> None:
        engine = FeedEngine()

        generate_feed(self.store.db, "viewer", max_items=5, engine=engine)

        self.assertIn("p1", engine.profiles.entries)

    def test_unknown_viewer_raises(self) -> None:
        with self.assertRaises(ViewerNotFoundError):
            generate_feed(self.store.db, "nobody")


if __name__ == "__main__":
    unittest.main()
