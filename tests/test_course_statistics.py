"""Tests for course-set statistics.

Each course in the set has:
1. A student who edits and uploads inside the course window
2. A second student, enrolled in a course outside the set, whose
   activity predates their own course
"""

from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from coursestats.aggregation import CourseStatistics
from coursestats.cache import update_all_caches
from coursestats.db import repo
from coursestats.errors import ConfigurationError, RetrievalError
from coursestats.models.domain import ArticleEntity, Roles

COURSE_IDS = [1, 2, 3, 10001, 10002, 10003]


@pytest.fixture
def seeded(session, records, now):
    """Six courses following the layout described in the module docstring."""
    for course_id in COURSE_IDS:
        other_id = course_id + 100

        records.course(course_id)
        records.user(course_id)
        records.membership(course_id, course_id, course_id, role=Roles.STUDENT)
        records.revision(
            course_id, course_id, course_id, now - timedelta(days=1), characters=1000
        )
        records.article(course_id)
        records.upload(course_id, course_id, now - timedelta(days=1), usage_count=1)

        records.course(other_id)
        records.user(other_id)
        records.membership(other_id, other_id, other_id, role=Roles.STUDENT)
        records.revision(other_id, other_id, other_id, now - timedelta(days=730))
        records.article(other_id)
        records.upload(other_id, other_id, now - timedelta(days=730), usage_count=1)
    session.flush()

    membership_ids = COURSE_IDS + [course_id + 100 for course_id in COURSE_IDS]
    update_all_caches(session, repo.get_memberships(session, membership_ids))
    return session


class TestEmptyCourseSet:
    """No course IDs means no activity."""

    def test_report_is_all_zero(self, session):
        """Every metric should be zero."""
        output = CourseStatistics(session, []).report_statistics()
        assert output["course_count"] == 0
        assert output["students_excluding_instructors"] == 0
        assert all(value == 0 for value in output.values())

    def test_articles_edited_is_empty(self, session):
        """No articles for an empty set."""
        assert CourseStatistics(session, []).articles_edited() == set()

    def test_does_not_touch_database(self):
        """Empty input must not query memberships, even on a broken store."""
        broken = Session(create_engine("sqlite:///:memory:"))
        try:
            output = CourseStatistics(broken, []).report_statistics()
        finally:
            broken.close()
        assert output["revisions"] == 0


class TestReportStatistics:
    """Counts articles, revisions and uploads from during courses."""

    def test_counts_in_window_activity(self, seeded):
        """One of each per course; out-of-window activity is ignored."""
        output = CourseStatistics(seeded, COURSE_IDS).report_statistics()
        count = len(COURSE_IDS)

        assert output["course_count"] == count
        assert output["students_excluding_instructors"] == count
        assert output["revisions"] == count
        assert output["articles_edited"] == count
        assert output["file_uploads"] == count
        assert output["files_in_use"] == count
        assert output["global_usages"] == count
        assert output["characters_added"] == 6000
        assert output["words_added"] > 0

    def test_words_derived_from_characters(self, seeded):
        """words_added is characters divided by the word-length constant, floored."""
        output = CourseStatistics(
            seeded, COURSE_IDS, characters_per_word=5.5
        ).report_statistics()
        assert output["words_added"] == 1090

    def test_counts_only_tracked_revisions_and_articles(self, seeded, records):
        """Untracking course 1's article removes exactly course 1's contribution."""
        records.articles_course(course_id=1, article_id=1, tracked=False)
        seeded.flush()
        update_all_caches(seeded, repo.get_memberships(seeded, [1]))

        output = CourseStatistics(seeded, COURSE_IDS).report_statistics()
        assert output["articles_edited"] == len(COURSE_IDS) - 1
        assert output["revisions"] == len(COURSE_IDS) - 1
        assert output["characters_added"] == 5000

    def test_uses_stored_cache_values(self, seeded, records):
        """Revision totals come from the cache until it is refreshed."""
        records.articles_course(course_id=1, article_id=1, tracked=False)
        seeded.flush()

        output = CourseStatistics(seeded, COURSE_IDS).report_statistics()
        assert output["revisions"] == len(COURSE_IDS)
        assert output["articles_edited"] == len(COURSE_IDS) - 1

    def test_idempotent(self, seeded):
        """Two calls without data changes give identical output."""
        stats = CourseStatistics(seeded, COURSE_IDS)
        assert stats.report_statistics() == stats.report_statistics()

    def test_duplicate_ids_collapse(self, seeded):
        """Course IDs are treated as a set."""
        output = CourseStatistics(seeded, [1, 1, 2]).report_statistics()
        assert output["course_count"] == 2
        assert output["revisions"] == 2

    def test_unknown_course_contributes_nothing(self, seeded):
        """Nonexistent course IDs count toward course_count only."""
        output = CourseStatistics(seeded, [1, 99999]).report_statistics()
        assert output["course_count"] == 2
        assert output["students_excluding_instructors"] == 1
        assert output["revisions"] == 1

    def test_files_in_use_not_more_than_uploads(self, seeded, records, now):
        """Unused uploads count as uploads but not as files in use."""
        records.upload(50000, 1, now - timedelta(days=2), usage_count=0)
        seeded.flush()

        output = CourseStatistics(seeded, COURSE_IDS).report_statistics()
        assert output["file_uploads"] == len(COURSE_IDS) + 1
        assert output["files_in_use"] == len(COURSE_IDS)
        assert output["files_in_use"] <= output["file_uploads"]


    def test_upload_outside_window_excluded(self, seeded, records, now):
        """An in-set student's upload after their course ended is not counted."""
        records.upload(50001, 1, now + timedelta(days=3), usage_count=5)
        seeded.flush()

        output = CourseStatistics(seeded, COURSE_IDS).report_statistics()
        assert output["file_uploads"] == len(COURSE_IDS)
        assert output["files_in_use"] == len(COURSE_IDS)
        assert output["global_usages"] == len(COURSE_IDS)

    def test_invalid_characters_per_word(self, session):
        """A NaN divisor is rejected up front."""
        with pytest.raises(ConfigurationError):
            CourseStatistics(session, [1], characters_per_word=float("nan"))


class TestRoleFiltering:
    """Only student memberships contribute."""

    def test_instructor_excluded(self, session, records, now):
        """An instructor's edits and uploads are not counted."""
        records.course(1)
        records.user(1)
        records.user(2)
        records.membership(1, 1, 1, role=Roles.STUDENT)
        records.membership(2, 2, 1, role=Roles.INSTRUCTOR)
        records.article(1)
        records.article(2)
        records.revision(1, 1, 1, now - timedelta(days=1), characters=100)
        records.revision(2, 2, 2, now - timedelta(days=1), characters=300)
        records.upload(1, 2, now - timedelta(days=1), usage_count=4)
        session.flush()
        update_all_caches(session, repo.get_memberships(session, [1, 2]))

        stats = CourseStatistics(session, [1])
        output = stats.report_statistics()
        assert output["students_excluding_instructors"] == 1
        assert output["revisions"] == 1
        assert output["characters_added"] == 100
        assert output["file_uploads"] == 0
        assert {a.article_id for a in stats.articles_edited()} == {1}

    def test_volunteer_excluded(self, session, records, now):
        """Non-student roles other than instructor are excluded too."""
        records.course(1)
        records.user(1)
        records.membership(1, 1, 1, role=Roles.ONLINE_VOLUNTEER)
        records.article(1)
        records.revision(1, 1, 1, now - timedelta(days=1), characters=100)
        session.flush()

        output = CourseStatistics(session, [1]).report_statistics()
        assert output["students_excluding_instructors"] == 0
        assert output["articles_edited"] == 0


class TestOverlappingMemberships:
    """A student enrolled in two aggregated courses."""

    @pytest.fixture
    def two_courses(self, session, records, now):
        records.course(1, start=now - timedelta(days=100), end=now)
        records.course(2, start=now - timedelta(days=50), end=now)
        records.user(1)
        records.membership(1, 1, 1)
        records.membership(2, 1, 2)
        records.article(1)
        records.revision(1, 1, 1, now - timedelta(days=10), characters=200)
        records.upload(1, 1, now - timedelta(days=10), usage_count=3)
        session.flush()
        update_all_caches(session, repo.get_memberships(session, [1, 2]))
        return session

    def test_memberships_counted_per_course(self, two_courses):
        """students_excluding_instructors counts memberships, not people."""
        output = CourseStatistics(two_courses, [1, 2]).report_statistics()
        assert output["students_excluding_instructors"] == 2

    def test_article_deduplicated(self, two_courses):
        """The same article edited under both courses appears once."""
        stats = CourseStatistics(two_courses, [1, 2])
        assert stats.articles_edited() == {ArticleEntity(article_id=1, title="Article_1")}
        assert stats.report_statistics()["articles_edited"] == 1

    def test_upload_deduplicated(self, two_courses):
        """An upload inside both windows counts once."""
        output = CourseStatistics(two_courses, [1, 2]).report_statistics()
        assert output["file_uploads"] == 1
        assert output["global_usages"] == 3

    def test_windows_not_merged(self, two_courses, records, now):
        """Activity inside only the wider window counts only for that course."""
        records.article(2)
        records.revision(2, 2, 1, now - timedelta(days=80), characters=50)
        two_courses.flush()

        narrow = CourseStatistics(two_courses, [2])
        wide = CourseStatistics(two_courses, [1])
        assert {a.article_id for a in narrow.articles_edited()} == {1}
        assert {a.article_id for a in wide.articles_edited()} == {1, 2}

    def test_untracked_in_one_course_only(self, two_courses, records):
        """Untracked under course 2 but still tracked under course 1."""
        records.articles_course(course_id=2, article_id=1, tracked=False)
        two_courses.flush()
        update_all_caches(two_courses, repo.get_memberships(two_courses, [1, 2]))

        both = CourseStatistics(two_courses, [1, 2])
        only_second = CourseStatistics(two_courses, [2])
        assert len(both.articles_edited()) == 1
        assert both.report_statistics()["revisions"] == 1
        assert only_second.articles_edited() == set()
        assert only_second.report_statistics()["characters_added"] == 0


class TestArticlesEdited:
    """Returns articles edited during courses."""

    def test_includes_in_window_article(self, seeded):
        """Article 1 is in; article 101 (edited long before) is not."""
        output = CourseStatistics(seeded, COURSE_IDS).articles_edited()
        ids = {a.article_id for a in output}
        assert 1 in ids
        assert 101 not in ids

    def test_returns_article_entities(self, seeded):
        """Entities carry title and namespace."""
        output = CourseStatistics(seeded, [1]).articles_edited()
        assert output == {ArticleEntity(article_id=1, title="Article_1", namespace=0)}

    def test_count_matches_set(self, seeded):
        """The articles_edited count is the size of the returned set."""
        stats = CourseStatistics(seeded, COURSE_IDS)
        assert stats.report_statistics()["articles_edited"] == len(stats.articles_edited())


class TestNegativeCharacters:
    """Character deltas are summed as-is."""

    def test_raw_signed_sum(self, session, records, now):
        """A net removal gives negative characters and zero words."""
        records.course(1)
        records.user(1)
        records.membership(1, 1, 1)
        records.article(1)
        records.revision(1, 1, 1, now - timedelta(days=3), characters=200)
        records.revision(2, 1, 1, now - timedelta(days=2), characters=-500)
        session.flush()
        update_all_caches(session, repo.get_memberships(session, [1]))

        output = CourseStatistics(session, [1]).report_statistics()
        assert output["characters_added"] == -300
        assert output["words_added"] == 0
        assert output["revisions"] == 2


class TestRetrievalFailure:
    """Storage errors surface as RetrievalError."""

    def test_missing_tables(self):
        """A store without the schema raises instead of returning partial counts."""
        broken = Session(create_engine("sqlite:///:memory:"))
        try:
            with pytest.raises(RetrievalError):
                CourseStatistics(broken, [1]).report_statistics()
            with pytest.raises(RetrievalError):
                CourseStatistics(broken, [1]).articles_edited()
        finally:
            broken.close()
