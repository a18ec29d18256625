"""Domain models for coursestats.

Pure Python dataclasses representing domain entities.
These models are independent of SQLAlchemy and used throughout
the application for clean separation from the database layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


# ============================================================================
# Membership Roles
# ============================================================================


class Roles:
    """Integer role codes stored on a membership."""

    STUDENT = 0
    INSTRUCTOR = 1
    CAMPUS_VOLUNTEER = 2
    ONLINE_VOLUNTEER = 3
    STAFF = 4


class Namespaces:
    """Wiki namespace numbers."""

    MAINSPACE = 0


# ============================================================================
# Course Domain
# ============================================================================


@dataclass(frozen=True)
class CourseEntity:
    """Domain model for a course and its inclusion window."""

    course_id: int
    slug: str
    start: datetime
    end: datetime
    title: str | None = None

    def contains(self, timestamp: datetime) -> bool:
        """Whether timestamp falls inside [start, end], both ends inclusive."""
        return self.start <= timestamp <= self.end


@dataclass
class MembershipEntity:
    """Domain model for a user's enrollment in a course."""

    membership_id: int
    course_id: int
    user_id: int
    role: int
    revision_count: int = 0
    characters_added: int = 0
    articles_touched_count: int = 0
    cache_refreshed_at: datetime | None = None

    @property
    def is_student(self) -> bool:
        return self.role == Roles.STUDENT


# ============================================================================
# Contribution Domain
# ============================================================================


@dataclass(frozen=True)
class ArticleEntity:
    """Domain model for an article. Hashable so it can be collected in sets."""

    article_id: int
    title: str
    namespace: int = Namespaces.MAINSPACE


@dataclass(frozen=True)
class RevisionEntity:
    """Domain model for a revision."""

    revision_id: int
    article_id: int
    user_id: int
    date: datetime
    characters: int


@dataclass(frozen=True)
class UploadEntity:
    """Domain model for an uploaded file."""

    upload_id: int
    user_id: int
    uploaded_at: datetime
    usage_count: int
    file_name: str | None = None


@dataclass(frozen=True)
class MembershipCache:
    """Values the refresher writes onto a membership."""

    revision_count: int
    characters_added: int
    articles_touched_count: int
