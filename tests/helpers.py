"""Builders for seeding an in-memory Firestore with feed content."""

from __future__ import annotations

import datetime
import itertools
from typing import Any

from mockfirestore import MockFirestore

from tests.conftest import patch_mockfirestore

BASE_TIME = datetime.datetime(2026, 10, 1, 12, 0, tzinfo=datetime.timezone.utc)


class FeedStore:
    """A MockFirestore with helpers for users, partnerships, posts and scores."""

    def __init__(self) -> None:
        patch_mockfirestore()
        self.db = MockFirestore()
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    def _next_time(self) -> datetime.datetime:
        return BASE_TIME + datetime.timedelta(minutes=next(self._clock))

    def add_user(
        self,
        user_id: str,
        user_type: str = "Golfer",
        city: str = "",
        state: str = "",
        **extra: Any,
    ) -> str:
        data = {
            "displayName": user_id.title(),
            "avatar": f"https://img.example.com/{user_id}.png",
            "userType": user_type,
            "currentCity": city,
            "currentState": state,
            "country": "US",
            "playerCourses": [],
            "declaredMemberCourses": [],
            "createdAt": BASE_TIME,
        }
        data.update(extra)
        self.db.collection("users").document(user_id).set(data)
        return user_id

    def add_partnership(self, user1: str, user2: str) -> None:
        self.db.collection("partners").document(f"{user1}_{user2}").set(
            {"user1Id": user1, "user2Id": user2, "userIds": [user1, user2]}
        )

    def add_post(self, user_id: str, **extra: Any) -> str:
        post_id = f"post{next(self._ids)}"
        data = {
            "userId": user_id,
            "caption": f"Round recap from {user_id}",
            "imageUrls": [],
            "taggedCourses": [],
            "likes": 0,
            "comments": 0,
            "createdAt": self._next_time(),
        }
        data.update(extra)
        self.db.collection("thoughts").document(post_id).set(data)
        return post_id

    def add_score(
        self,
        user_id: str,
        course_id: int = 101,
        net_score: int = 72,
        **extra: Any,
    ) -> str:
        score_id = f"score{next(self._ids)}"
        data = {
            "userId": user_id,
            "courseId": course_id,
            "courseName": f"Course {course_id}",
            "grossScore": net_score + 4,
            "netScore": net_score,
            "par": 72,
            "likes": 0,
            "comments": 0,
            "createdAt": self._next_time(),
        }
        data.update(extra)
        self.db.collection("scores").document(score_id).set(data)
        return score_id

    def add_course_record(self, course_id: int, holder_id: str, net_score: int) -> None:
        self.db.collection("course_leaders").document(str(course_id)).set(
            {
                "courseId": course_id,
                "lowman": {"userId": holder_id, "netScore": net_score},
            }
        )
