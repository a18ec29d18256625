"""Shared pytest fixtures for coursestats tests."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from coursestats.db.schema import (
    Article,
    ArticlesCourses,
    Base,
    CommonsUpload,
    Course,
    CoursesUsers,
    Revision,
    User,
)
from coursestats.models.domain import Roles

# Fixed reference time so window arithmetic is deterministic
NOW = datetime(2024, 6, 1, 12, 0, 0)


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def session(engine):
    """Create a database session for testing."""
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()


class Records:
    """Small helpers for inserting rows with sensible defaults."""

    def __init__(self, session):
        self.session = session

    def course(self, id, start=None, end=None):
        course = Course(
            id=id,
            slug=f"foo/{id}",
            start=start or NOW - timedelta(days=365),
            end=end or NOW,
        )
        self.session.add(course)
        return course

    def user(self, id):
        user = User(id=id, username=f"user{id}")
        self.session.add(user)
        return user

    def membership(self, id, user_id, course_id, role=Roles.STUDENT):
        cu = CoursesUsers(id=id, user_id=user_id, course_id=course_id, role=role)
        self.session.add(cu)
        return cu

    def article(self, id, title=None, namespace=0):
        article = Article(id=id, title=title or f"Article_{id}", namespace=namespace)
        self.session.add(article)
        return article

    def articles_course(self, course_id, article_id, tracked=True):
        ac = ArticlesCourses(course_id=course_id, article_id=article_id, tracked=tracked)
        self.session.add(ac)
        return ac

    def revision(self, id, article_id, user_id, date, characters=0):
        rev = Revision(
            id=id, article_id=article_id, user_id=user_id, date=date, characters=characters
        )
        self.session.add(rev)
        return rev

    def upload(self, id, user_id, uploaded_at, usage_count=0):
        upload = CommonsUpload(
            id=id, user_id=user_id, uploaded_at=uploaded_at, usage_count=usage_count
        )
        self.session.add(upload)
        return upload


@pytest.fixture
def records(session):
    """Row factory bound to the test session."""
    return Records(session)


@pytest.fixture
def now():
    """Reference time used by the row factory defaults."""
    return NOW
