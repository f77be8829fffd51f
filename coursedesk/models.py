"""Domain records and status values shared across the application."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timezone

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
"""Timestamp used where a record has not been given a time yet."""


class ResponseStatus(str, enum.Enum):
    """Outcome reported in every API response."""

    SUCCESS = "success"
    FAILURE = "failure"

    def __str__(self) -> str:
        return self.value


class EnrollmentStatus(enum.IntEnum):
    """State of a student's enrollment in a course."""

    CANCELLED = 0
    ACTIVE = 1


@dataclass(frozen=True)
class _Record:
    """Identity and timestamps every stored record carries."""

    id: int = 0
    create_time: datetime = ZERO_TIME
    update_time: datetime = ZERO_TIME


@dataclass(frozen=True)
class Student(_Record):
    """A registered student."""

    email: str = ""


@dataclass(frozen=True)
class Course(_Record):
    """A course students can sign up for."""

    name: str = ""


@dataclass(frozen=True)
class CourseEnrollment(_Record):
    """A student's enrollment in a course."""

    student_id: int = 0
    course_id: int = 0
    status: int = EnrollmentStatus.CANCELLED


def new_course(name: str) -> Course:
    """Return an unsaved course with the given name."""
    return Course(name=name)


def new_course_enrollment(student_id: int, course_id: int, status: int) -> CourseEnrollment:
    """Return an unsaved enrollment linking a student to a course."""
    return CourseEnrollment(student_id=student_id, course_id=course_id, status=status)