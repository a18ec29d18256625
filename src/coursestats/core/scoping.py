"""Scoping rules for counting contributions against a course.

Shared by the cache refresher and the aggregator so that both apply
the same predicate. All functions here are pure.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

from coursestats.models.domain import (
    CourseEntity,
    MembershipCache,
    RevisionEntity,
    UploadEntity,
)


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching stored values."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def course_span(courses: Iterable[CourseEntity]) -> tuple[datetime, datetime]:
    """Earliest start and latest end across courses, which must be non-empty."""
    courses = list(courses)
    return min(c.start for c in courses), max(c.end for c in courses)


def tracked_revisions(
    course: CourseEntity,
    revisions: Iterable[RevisionEntity],
    untracked_article_ids: set[int],
) -> list[RevisionEntity]:
    """Select revisions that count toward course.

    A revision counts when its article is not untracked for the course
    and its date is inside the course window.
    """
    return [
        rev
        for rev in revisions
        if rev.article_id not in untracked_article_ids and course.contains(rev.date)
    ]


def uploads_in_window(
    course: CourseEntity, uploads: Iterable[UploadEntity]
) -> list[UploadEntity]:
    """Select uploads made inside the course window."""
    return [upload for upload in uploads if course.contains(upload.uploaded_at)]


def compute_membership_cache(revisions: list[RevisionEntity]) -> MembershipCache:
    """Reduce already-scoped revisions to cached membership figures."""
    return MembershipCache(
        revision_count=len(revisions),
        characters_added=sum(rev.characters for rev in revisions),
        articles_touched_count=len({rev.article_id for rev in revisions}),
    )
