"""Membership cache refresher.

Recomputes the cached aggregate fields on memberships (revision
count, characters added, articles touched) from the revisions their
users made on tracked articles inside the course window.

Must be run before aggregation when fresh figures are needed; the
aggregator reads whatever values are stored.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timedelta

from coursestats.config import get_settings
from coursestats.core.scoping import (
    compute_membership_cache,
    course_span,
    tracked_revisions,
    utcnow,
)
from coursestats.db import repo
from coursestats.db.repo import DbSession
from coursestats.models.domain import MembershipEntity, RevisionEntity

logger = logging.getLogger(__name__)


def ready_for_update(
    session: DbSession,
    now: datetime | None = None,
    grace_days: int | None = None,
) -> list[MembershipEntity]:
    """Memberships whose caches are due for a refresh.

    A membership qualifies when its course has started and has not
    been over for more than grace_days.

    Args:
        session: Database session.
        now: Reference time. Defaults to current UTC time.
        grace_days: Days after course end that still qualify.
            Defaults to settings.update_grace_days.
    """
    if now is None:
        now = utcnow()
    if grace_days is None:
        grace_days = get_settings().update_grace_days
    since = now - timedelta(days=grace_days)
    return repo.get_memberships_in_courses_active_between(session, since, now)


def update_all_caches(session: DbSession, memberships: Iterable[MembershipEntity]) -> int:
    """Refresh cached fields for each membership.

    Idempotent: running twice over unchanged records stores identical
    values. Memberships whose course is missing are skipped and keep
    their previous values.

    Args:
        session: Database session. Changes are flushed, not committed.
        memberships: Memberships to refresh.

    Returns:
        Number of memberships refreshed.
    """
    memberships = list(memberships)
    if not memberships:
        return 0

    course_ids = {m.course_id for m in memberships}
    courses = {c.course_id: c for c in repo.get_courses(session, course_ids)}
    untracked = repo.get_untracked_article_ids(session, course_ids)

    # Group revisions by author for efficient lookup
    revisions_by_user: dict[int, list[RevisionEntity]] = defaultdict(list)
    if courses:
        since, until = course_span(courses.values())
        revisions = repo.get_revisions_for_users(
            session, {m.user_id for m in memberships}, since=since, until=until
        )
        for rev in revisions:
            revisions_by_user[rev.user_id].append(rev)

    refreshed_at = utcnow()
    refreshed = 0
    for membership in memberships:
        course = courses.get(membership.course_id)
        if course is None:
            logger.warning(
                f"Skipping membership {membership.membership_id}: "
                f"course {membership.course_id} not found"
            )
            continue

        scoped = tracked_revisions(
            course,
            revisions_by_user[membership.user_id],
            untracked.get(course.course_id, set()),
        )
        cache = compute_membership_cache(scoped)
        repo.update_membership_cache(session, membership.membership_id, cache, refreshed_at)
        logger.debug(
            f"Membership {membership.membership_id}: revisions={cache.revision_count}, "
            f"characters={cache.characters_added}, articles={cache.articles_touched_count}"
        )
        refreshed += 1

    repo.flush(session)
    logger.info(f"Refreshed caches for {refreshed} of {len(memberships)} memberships")
    return refreshed
