"""Aggregation module for course-set statistics.

- Reads memberships, contributions and cached figures, produces totals
- Forbidden: writing records, refreshing caches
"""

from coursestats.aggregation.course_statistics import CourseStatistics

__all__ = ["CourseStatistics"]
