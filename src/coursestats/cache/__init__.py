"""Cache module for per-membership aggregate fields.

- Recomputes and stores cached fields on memberships
- Forbidden: course-set aggregation
"""

from coursestats.cache.refresher import ready_for_update, update_all_caches

__all__ = ["ready_for_update", "update_all_caches"]
