"""Pydantic models for coursestats output."""

from pydantic import BaseModel, Field


class CourseStatisticsReport(BaseModel):
    """Aggregate statistics over a set of courses.

    All counts are non-negative except characters_added, which is the
    raw signed sum of character deltas.
    """

    course_count: int = Field(0, ge=0)
    students_excluding_instructors: int = Field(0, ge=0)
    revisions: int = Field(0, ge=0)
    characters_added: int = 0
    words_added: int = Field(0, ge=0)
    articles_edited: int = Field(0, ge=0)
    file_uploads: int = Field(0, ge=0)
    files_in_use: int = Field(0, ge=0)
    global_usages: int = Field(0, ge=0)
