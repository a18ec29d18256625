"""Exceptions raised by coursestats."""


class CourseStatsError(Exception):
    """Base class for coursestats errors."""


class RetrievalError(CourseStatsError):
    """Reading from the record store failed.

    Wraps the underlying database error. No partial results are
    returned when this is raised.
    """


class ConfigurationError(CourseStatsError):
    """Settings are missing or out of range."""
