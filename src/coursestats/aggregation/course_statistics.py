"""Statistics across a set of courses.

Revision and character totals come from the cached fields on student
memberships, so the cache refresher should run first. Edited articles
and uploads are scoped here from the underlying records using the same
role, tracking and window rules.

Domain logic is pure - database operations go through repo.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from coursestats.config import get_settings
from coursestats.core.scoping import course_span, tracked_revisions, uploads_in_window
from coursestats.core.word_count import check_characters_per_word, words_from_characters
from coursestats.db import repo
from coursestats.db.repo import DbSession
from coursestats.errors import RetrievalError
from coursestats.models.domain import (
    ArticleEntity,
    CourseEntity,
    MembershipEntity,
    RevisionEntity,
    UploadEntity,
)
from coursestats.models.types import CourseStatisticsReport

logger = logging.getLogger(__name__)


@dataclass
class CourseScope:
    """Records needed to scope contributions, loaded in one pass."""

    courses: dict[int, CourseEntity]
    memberships: list[MembershipEntity]
    untracked: dict[int, set[int]]


class CourseStatistics:
    """Aggregate impact statistics for the student memberships of some courses.

    Args:
        session: Database session.
        course_ids: Course IDs to aggregate. Duplicates collapse; unknown
            IDs contribute nothing.
        characters_per_word: Word-length divisor for words_added.
            Defaults to settings.characters_per_word.
    """

    def __init__(
        self,
        session: DbSession,
        course_ids: Iterable[int],
        *,
        characters_per_word: float | None = None,
    ):
        self.session = session
        self.course_ids = set(course_ids)
        if characters_per_word is None:
            characters_per_word = get_settings().characters_per_word
        self.characters_per_word = check_characters_per_word(characters_per_word)

    def report_statistics(self) -> dict[str, int]:
        """Compute the metrics mapping for the course set.

        Raises:
            RetrievalError: If reading from the database fails.
        """
        if not self.course_ids:
            return CourseStatisticsReport().model_dump()

        try:
            scope = self._load_scope()
            articles = self._edited_articles(scope)
            uploads = self._uploads(scope)
        except SQLAlchemyError as e:
            raise RetrievalError(f"Failed to read course statistics: {e}") from e

        report = _build_report(
            course_count=len(self.course_ids),
            memberships=scope.memberships,
            articles=articles,
            uploads=uploads,
            characters_per_word=self.characters_per_word,
        )
        logger.debug(f"Statistics for {len(self.course_ids)} courses: {report}")
        return report.model_dump()

    def articles_edited(self) -> set[ArticleEntity]:
        """Distinct tracked articles edited by students inside their course windows.

        Raises:
            RetrievalError: If reading from the database fails.
        """
        if not self.course_ids:
            return set()

        try:
            return self._edited_articles(self._load_scope())
        except SQLAlchemyError as e:
            raise RetrievalError(f"Failed to read edited articles: {e}") from e

    def _load_scope(self) -> CourseScope:
        courses = {c.course_id: c for c in repo.get_courses(self.session, self.course_ids)}
        memberships = [
            m
            for m in repo.get_student_memberships(self.session, self.course_ids)
            if m.is_student and m.course_id in courses
        ]
        untracked = repo.get_untracked_article_ids(self.session, self.course_ids)
        return CourseScope(courses=courses, memberships=memberships, untracked=untracked)

    def _edited_articles(self, scope: CourseScope) -> set[ArticleEntity]:
        if not scope.memberships:
            return set()

        since, until = course_span(scope.courses.values())
        revisions = repo.get_revisions_for_users(
            self.session, {m.user_id for m in scope.memberships}, since=since, until=until
        )
        revisions_by_user: dict[int, list[RevisionEntity]] = defaultdict(list)
        for rev in revisions:
            revisions_by_user[rev.user_id].append(rev)

        article_ids: set[int] = set()
        for membership in scope.memberships:
            course = scope.courses[membership.course_id]
            for rev in tracked_revisions(
                course,
                revisions_by_user[membership.user_id],
                scope.untracked.get(course.course_id, set()),
            ):
                article_ids.add(rev.article_id)

        return set(repo.get_articles(self.session, article_ids))

    def _uploads(self, scope: CourseScope) -> list[UploadEntity]:
        if not scope.memberships:
            return []

        since, until = course_span(scope.courses.values())
        uploads = repo.get_uploads_for_users(
            self.session, {m.user_id for m in scope.memberships}, since=since, until=until
        )
        uploads_by_user: dict[int, list[UploadEntity]] = defaultdict(list)
        for upload in uploads:
            uploads_by_user[upload.user_id].append(upload)

        # Keyed by upload ID so overlapping memberships count a file once
        selected: dict[int, UploadEntity] = {}
        for membership in scope.memberships:
            course = scope.courses[membership.course_id]
            for upload in uploads_in_window(course, uploads_by_user[membership.user_id]):
                selected[upload.upload_id] = upload
        return list(selected.values())


def _build_report(
    course_count: int,
    memberships: list[MembershipEntity],
    articles: set[ArticleEntity],
    uploads: list[UploadEntity],
    characters_per_word: float,
) -> CourseStatisticsReport:
    """Reduce scoped records to the report.

    Pure function - no database access.
    """
    characters_added = sum(m.characters_added for m in memberships)
    return CourseStatisticsReport(
        course_count=course_count,
        students_excluding_instructors=len(memberships),
        revisions=sum(m.revision_count for m in memberships),
        characters_added=characters_added,
        words_added=words_from_characters(characters_added, characters_per_word),
        articles_edited=len(articles),
        file_uploads=len(uploads),
        files_in_use=sum(1 for u in uploads if u.usage_count > 0),
        global_usages=sum(u.usage_count for u in uploads),
    )
