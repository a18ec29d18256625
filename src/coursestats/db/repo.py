"""Repository pattern for database operations.

Encapsulates all SQLAlchemy queries, keeping domain logic pure.
Returns domain models (not SQLAlchemy entities) to external callers.
"""

from __future__ import annotations

from collections.abc import Collection
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from coursestats.db.schema import (
    Article,
    ArticlesCourses,
    CommonsUpload,
    Course,
    CoursesUsers,
    Revision,
)
from coursestats.models.domain import (
    ArticleEntity,
    CourseEntity,
    MembershipCache,
    MembershipEntity,
    RevisionEntity,
    Roles,
    UploadEntity,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session as DbSession
else:
    DbSession = Session

# Re-export for external use
__all__ = ["DbSession"]


# ============================================================================
# Converters: SQLAlchemy -> Domain
# ============================================================================


def _course_to_entity(course: Course) -> CourseEntity:
    """Convert SQLAlchemy Course to domain entity."""
    return CourseEntity(
        course_id=course.id,
        slug=course.slug,
        title=course.title,
        start=course.start,
        end=course.end,
    )


def _membership_to_entity(cu: CoursesUsers) -> MembershipEntity:
    """Convert SQLAlchemy CoursesUsers to domain entity."""
    return MembershipEntity(
        membership_id=cu.id,
        course_id=cu.course_id,
        user_id=cu.user_id,
        role=cu.role,
        revision_count=cu.revision_count,
        characters_added=cu.characters_added,
        articles_touched_count=cu.articles_touched_count,
        cache_refreshed_at=cu.cache_refreshed_at,
    )


def _article_to_entity(article: Article) -> ArticleEntity:
    """Convert SQLAlchemy Article to domain entity."""
    return ArticleEntity(
        article_id=article.id,
        title=article.title,
        namespace=article.namespace,
    )


def _revision_to_entity(rev: Revision) -> RevisionEntity:
    """Convert SQLAlchemy Revision to domain entity."""
    return RevisionEntity(
        revision_id=rev.id,
        article_id=rev.article_id,
        user_id=rev.user_id,
        date=rev.date,
        characters=rev.characters,
    )


def _upload_to_entity(upload: CommonsUpload) -> UploadEntity:
    """Convert SQLAlchemy CommonsUpload to domain entity."""
    return UploadEntity(
        upload_id=upload.id,
        user_id=upload.user_id,
        file_name=upload.file_name,
        uploaded_at=upload.uploaded_at,
        usage_count=upload.usage_count,
    )


# ============================================================================
# Course Repository
# ============================================================================


def get_courses(session: DbSession, course_ids: Collection[int]) -> list[CourseEntity]:
    """Get all existing courses among course_ids. Unknown IDs are ignored."""
    if not course_ids:
        return []
    courses = session.query(Course).filter(Course.id.in_(list(course_ids))).all()
    return [_course_to_entity(c) for c in courses]


def get_untracked_article_ids(
    session: DbSession, course_ids: Collection[int]
) -> dict[int, set[int]]:
    """Map course ID to the article IDs explicitly marked untracked for it."""
    if not course_ids:
        return {}
    rows = (
        session.query(ArticlesCourses.course_id, ArticlesCourses.article_id)
        .filter(
            ArticlesCourses.course_id.in_(list(course_ids)),
            ArticlesCourses.tracked.is_(False),
        )
        .all()
    )
    untracked: dict[int, set[int]] = {}
    for course_id, article_id in rows:
        untracked.setdefault(course_id, set()).add(article_id)
    return untracked


# ============================================================================
# Membership Repository
# ============================================================================


def get_student_memberships(
    session: DbSession, course_ids: Collection[int]
) -> list[MembershipEntity]:
    """Get student memberships for the given courses."""
    if not course_ids:
        return []
    memberships = (
        session.query(CoursesUsers)
        .filter(
            CoursesUsers.course_id.in_(list(course_ids)),
            CoursesUsers.role == Roles.STUDENT,
        )
        .all()
    )
    return [_membership_to_entity(m) for m in memberships]


def get_memberships(session: DbSession, membership_ids: Collection[int]) -> list[MembershipEntity]:
    """Get memberships by ID."""
    if not membership_ids:
        return []
    memberships = (
        session.query(CoursesUsers)
        .filter(CoursesUsers.id.in_(list(membership_ids)))
        .all()
    )
    return [_membership_to_entity(m) for m in memberships]


def get_memberships_in_courses_active_between(
    session: DbSession, since: datetime, until: datetime
) -> list[MembershipEntity]:
    """Get memberships whose course started by `until` and ended no earlier than `since`."""
    memberships = (
        session.query(CoursesUsers)
        .join(Course, Course.id == CoursesUsers.course_id)
        .filter(Course.start <= until, Course.end >= since)
        .all()
    )
    return [_membership_to_entity(m) for m in memberships]


def update_membership_cache(
    session: DbSession,
    membership_id: int,
    cache: MembershipCache,
    refreshed_at: datetime,
) -> None:
    """Write refreshed cache values onto a membership."""
    cu = session.query(CoursesUsers).filter(CoursesUsers.id == membership_id).first()
    if cu:
        cu.revision_count = cache.revision_count
        cu.characters_added = cache.characters_added
        cu.articles_touched_count = cache.articles_touched_count
        cu.cache_refreshed_at = refreshed_at


# ============================================================================
# Contribution Repository
# ============================================================================


def get_revisions_for_users(
    session: DbSession,
    user_ids: Collection[int],
    *,
    since: datetime | None = None,
    until: datetime | None = None,
) -> list[RevisionEntity]:
    """Get revisions authored by the given users, optionally dated within [since, until]."""
    if not user_ids:
        return []
    query = session.query(Revision).filter(Revision.user_id.in_(list(user_ids)))
    if since is not None:
        query = query.filter(Revision.date >= since)
    if until is not None:
        query = query.filter(Revision.date <= until)
    revisions = query.all()
    return [_revision_to_entity(r) for r in revisions]


def get_uploads_for_users(
    session: DbSession,
    user_ids: Collection[int],
    *,
    since: datetime | None = None,
    until: datetime | None = None,
) -> list[UploadEntity]:
    """Get uploads by the given users, optionally made within [since, until]."""
    if not user_ids:
        return []
    query = session.query(CommonsUpload).filter(CommonsUpload.user_id.in_(list(user_ids)))
    if since is not None:
        query = query.filter(CommonsUpload.uploaded_at >= since)
    if until is not None:
        query = query.filter(CommonsUpload.uploaded_at <= until)
    uploads = query.all()
    return [_upload_to_entity(u) for u in uploads]


def get_articles(session: DbSession, article_ids: Collection[int]) -> list[ArticleEntity]:
    """Get articles by ID. IDs with no article row are skipped."""
    if not article_ids:
        return []
    articles = session.query(Article).filter(Article.id.in_(list(article_ids))).all()
    return [_article_to_entity(a) for a in articles]


# ============================================================================
# Batch Operations
# ============================================================================


def flush(session: DbSession) -> None:
    """Flush pending changes without committing."""
    session.flush()
