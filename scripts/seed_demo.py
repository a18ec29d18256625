#!/usr/bin/env python3
"""Seed a demo database and print course statistics.

Usage:
    python scripts/seed_demo.py

This script:
1. Initializes the demo database
2. Seeds courses with one in-window and one out-of-window student each
3. Refreshes membership caches
4. Prints the aggregated statistics
"""

from __future__ import annotations

import logging
import sys
from datetime import timedelta
from pathlib import Path

# Add src to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from coursestats.aggregation import CourseStatistics  # noqa: E402
from coursestats.cache import ready_for_update, update_all_caches  # noqa: E402
from coursestats.core.scoping import utcnow  # noqa: E402
from coursestats.db.schema import (  # noqa: E402
    Article,
    CommonsUpload,
    Course,
    CoursesUsers,
    Revision,
    User,
)
from coursestats.db.session import get_db_session, init_db  # noqa: E402
from coursestats.models.domain import Roles  # noqa: E402

# Constants
DEMO_DB_PATH = PROJECT_ROOT / "demo.db"

# Demo course identifiers
DEMO_COURSE_IDS = [1, 2, 3]

# Offset between a course and the out-of-set course its second user joins
SECOND_USER_OFFSET = 100


def seed_database() -> None:
    """Seed the demo database with courses, users and contributions."""
    now = utcnow()

    with get_db_session(DEMO_DB_PATH) as session:
        if session.query(Course).filter(Course.id.in_(DEMO_COURSE_IDS)).first():
            print("Demo courses already exist")
            return

        for course_id in DEMO_COURSE_IDS:
            other_id = course_id + SECOND_USER_OFFSET
            print(f"  Creating course {course_id}...")

            session.add_all(
                [
                    Course(
                        id=course_id,
                        slug=f"demo/course_{course_id}",
                        title=f"Demo course {course_id}",
                        start=now - timedelta(days=365),
                        end=now + timedelta(days=1),
                    ),
                    # First user edits within course dates
                    User(id=course_id, username=f"user{course_id}"),
                    CoursesUsers(
                        id=course_id, user_id=course_id, course_id=course_id, role=Roles.STUDENT
                    ),
                    Article(id=course_id, title=f"Article_{course_id}"),
                    Revision(
                        id=course_id,
                        article_id=course_id,
                        user_id=course_id,
                        date=now - timedelta(days=1),
                        characters=1000,
                    ),
                    CommonsUpload(
                        id=course_id,
                        user_id=course_id,
                        file_name=f"File:Demo_{course_id}.jpg",
                        uploaded_at=now - timedelta(days=1),
                        usage_count=1,
                    ),
                    # Second user edits long before their own course began
                    Course(
                        id=other_id,
                        slug=f"demo/course_{other_id}",
                        start=now - timedelta(days=365),
                        end=now + timedelta(days=1),
                    ),
                    User(id=other_id, username=f"second_user{course_id}"),
                    CoursesUsers(
                        id=other_id, user_id=other_id, course_id=other_id, role=Roles.STUDENT
                    ),
                    Article(id=other_id, title=f"Article_{other_id}"),
                    Revision(
                        id=other_id,
                        article_id=other_id,
                        user_id=other_id,
                        date=now - timedelta(days=730),
                        characters=500,
                    ),
                ]
            )

    print("Database seeded successfully!")


def refresh_caches() -> None:
    """Refresh caches for every membership due for an update."""
    with get_db_session(DEMO_DB_PATH) as session:
        count = update_all_caches(session, ready_for_update(session))
        print(f"Refreshed {count} memberships")


def report() -> None:
    """Print statistics for the demo course set."""
    with get_db_session(DEMO_DB_PATH) as session:
        stats = CourseStatistics(session, DEMO_COURSE_IDS)
        for key, value in stats.report_statistics().items():
            print(f"  {key}: {value}")
        titles = sorted(a.title for a in stats.articles_edited())
        print(f"  articles: {', '.join(titles)}")


def main() -> int:
    """Main entry point."""
    logging.basicConfig(level=logging.INFO)

    print("=" * 60)
    print("Course Statistics Demo")
    print("=" * 60)

    print("\n[1/3] Seeding database...")
    init_db(DEMO_DB_PATH)
    seed_database()

    print("\n[2/3] Refreshing membership caches...")
    refresh_caches()

    print("\n[3/3] Aggregating statistics...")
    report()

    print("\n" + "=" * 60)
    print(f"Database: {DEMO_DB_PATH}")
    print("=" * 60)

    return 0


if __name__ == "__main__":
    sys.exit(main())
