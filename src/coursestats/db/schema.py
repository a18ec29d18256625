"""Database schema for coursestats.

Record store for courses, enrollments and the contributions made
during them. Unique constraints enforce the association invariants.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Course(Base):
    """A time-bounded course. Contributions count only within [start, end]."""

    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    start: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class User(Base):
    """A participant."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)


class CoursesUsers(Base):
    """Membership of a user in a course.

    The cached aggregate columns are written by the cache refresher
    and read as-is by the aggregator.

    Invariant: UNIQUE(course_id, user_id, role)
    """

    __tablename__ = "courses_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    role: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    revision_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    characters_added: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    articles_touched_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cache_refreshed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("course_id", "user_id", "role", name="uq_membership_identity"),
    )


class Article(Base):
    """A wiki page."""

    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    namespace: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class ArticlesCourses(Base):
    """Per-course attributes of an article.

    An article with no row for a course is tracked for that course.

    Invariant: UNIQUE(course_id, article_id)
    """

    __tablename__ = "articles_courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), nullable=False)
    article_id: Mapped[int] = mapped_column(Integer, ForeignKey("articles.id"), nullable=False)
    tracked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("course_id", "article_id", name="uq_article_course"),
    )


class Revision(Base):
    """A single edit. characters is the signed size delta."""

    __tablename__ = "revisions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    article_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    characters: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class CommonsUpload(Base):
    """An uploaded media file and how many pages use it."""

    __tablename__ = "commons_uploads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    file_name: Mapped[str | None] = mapped_column(String(512), nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
