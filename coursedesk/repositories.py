"""SQL-backed storage for students, courses and enrollments."""

from __future__ import annotations

import dataclasses
from contextlib import closing, contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, Sequence, TypeVar

from coursedesk.models import Course, CourseEnrollment, Student

T = TypeVar("T")


class RepositoryError(Exception):
    """Raised when the database cannot complete a request."""


class NoRowsAffectedError(RepositoryError):
    """Raised when an update matched no rows."""

    def __init__(self, message: str = "no rows were updated") -> None:
        super().__init__(message)


_ENROLLMENT_COLUMNS = "id, student_id, course_id, status, create_time, update_time"

_STUDENT_BY_ID = "SELECT id, email, create_time, update_time FROM students WHERE id = %s"

_COURSE_BY_ID = "SELECT id, name, create_time, update_time FROM courses WHERE id = %s"

_INSERT_ENROLLMENT = (
    "INSERT INTO course_enrollments (student_id, course_id, status, create_time, update_time) "
    "VALUES (%s, %s, %s, %s, %s)"
)

_ACTIVE_ENROLLMENTS_BY_STUDENT = (
    f"SELECT {_ENROLLMENT_COLUMNS} "
    "FROM course_enrollments WHERE student_id = %s and status = 1"
)

_ENROLLMENTS_BY_STUDENT_AND_COURSE = (
    f"SELECT {_ENROLLMENT_COLUMNS} "
    "FROM course_enrollments WHERE student_id = %s AND course_id = %s"
)

_UPDATE_ENROLLMENT_STATUS = (
    "UPDATE course_enrollments SET status = %s, update_time = %s "
    "WHERE student_id = %s AND course_id = %s"
)

_CLASSMATES = (
    "SELECT ce.id, ce.student_id, ce.course_id, ce.status, ce.create_time, ce.update_time "
    "FROM course_enrollments ce "
    "JOIN course_enrollments ce2 ON ce.course_id = ce2.course_id "
    "WHERE ce2.student_id = %s AND ce.student_id != %s and ce2.status = 1 and ce.status = 1"
)


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    raise TypeError(f"cannot read {value!r} as a timestamp")


def _record_fields(row_id: Any, create_time: Any, update_time: Any) -> dict[str, Any]:
    return {
        "id": int(row_id),
        "create_time": _to_datetime(create_time),
        "update_time": _to_datetime(update_time),
    }


def _student_from_row(row: Sequence[Any]) -> Student:
    row_id, email, create_time, update_time = row
    return Student(email=str(email), **_record_fields(row_id, create_time, update_time))


def _course_from_row(row: Sequence[Any]) -> Course:
    row_id, name, create_time, update_time = row
    return Course(name=str(name), **_record_fields(row_id, create_time, update_time))


def _enrollment_from_row(row: Sequence[Any]) -> CourseEnrollment:
    row_id, student_id, course_id, status, create_time, update_time = row
    return CourseEnrollment(
        student_id=int(student_id),
        course_id=int(course_id),
        status=int(status),
        **_record_fields(row_id, create_time, update_time),
    )


class _SQLRepository:
    """Shared access to a DB-API connection using the %s parameter style."""

    def __init__(self, connection: Any) -> None:
        self.connection = connection

    @contextmanager
    def _cursor(self, action: str) -> Iterator[Any]:
        try:
            with closing(self.connection.cursor()) as cursor:
                yield cursor
        except RepositoryError:
            raise
        except Exception as exc:
            raise RepositoryError(f"failed to {action}: {exc}") from exc

    def _fetch_one(
        self,
        query: str,
        params: Sequence[Any],
        action: str,
        build: Callable[[Sequence[Any]], T],
    ) -> T | None:
        with self._cursor(action) as cursor:
            cursor.execute(query, tuple(params))
            row = cursor.fetchone()
            return None if row is None else build(row)

    def _fetch_enrollments(
        self, query: str, params: Sequence[Any], action: str
    ) -> list[CourseEnrollment]:
        with self._cursor(action) as cursor:
            cursor.execute(query, tuple(params))
            return [_enrollment_from_row(row) for row in cursor.fetchall()]

    def _write(self, query: str, params: Sequence[Any], action: str, result: str) -> Any:
        """Run a statement, commit it and return the named cursor attribute."""
        with self._cursor(action) as cursor:
            cursor.execute(query, tuple(params))
            value = getattr(cursor, result)
            self.connection.commit()
        return value


class SQLStudentRepository(_SQLRepository):
    """Reads students from the ``students`` table."""

    def get_student_by_id(self, student_id: int) -> Student | None:
        """Return the student with this id, or None if there is none."""
        return self._fetch_one(_STUDENT_BY_ID, (student_id,), "retrieve student", _student_from_row)


class SQLCourseRepository(_SQLRepository):
    """Reads courses from the ``courses`` table."""

    def get_course_by_id(self, course_id: int) -> Course | None:
        """Return the course with this id, or None if there is none."""
        return self._fetch_one(_COURSE_BY_ID, (course_id,), "retrieve course", _course_from_row)


class SQLCourseEnrollmentRepository(_SQLRepository):
    """Reads and writes the ``course_enrollments`` table."""

    def create_enrollment(self, enrollment: CourseEnrollment) -> CourseEnrollment:
        """Insert the enrollment and return it with its new id."""
        new_id = self._write(
            _INSERT_ENROLLMENT,
            (
                enrollment.student_id,
                enrollment.course_id,
                int(enrollment.status),
                enrollment.create_time,
                enrollment.update_time,
            ),
            "create enrollment",
            "lastrowid",
        )
        if new_id is None:
            raise RepositoryError("failed to create enrollment: no id was assigned")
        return dataclasses.replace(enrollment, id=int(new_id))

    def get_enrollment_by_student_id(self, student_id: int) -> list[CourseEnrollment]:
        """Return the student's active enrollments."""
        return self._fetch_enrollments(
            _ACTIVE_ENROLLMENTS_BY_STUDENT, (student_id,), "retrieve enrollments"
        )

    def get_enrollment_by_student_id_and_course_id(
        self, student_id: int, course_id: int
    ) -> list[CourseEnrollment]:
        """Return every enrollment, in any status, of a student in a course."""
        return self._fetch_enrollments(
            _ENROLLMENTS_BY_STUDENT_AND_COURSE,
            (student_id, course_id),
            "retrieve enrollments",
        )

    def update_course_enrollment_status(
        self, student_id: int, course_id: int, new_status: int
    ) -> None:
        """Set the status of a student's enrollment in a course.

        Raises NoRowsAffectedError when no enrollment matched.
        """
        affected = self._write(
            _UPDATE_ENROLLMENT_STATUS,
            (int(new_status), datetime.now(timezone.utc), student_id, course_id),
            "update enrollment status",
            "rowcount",
        )
        if affected == 0:
            raise NoRowsAffectedError()

    def get_list_classmates(self, student_id: int) -> list[CourseEnrollment]:
        """Return the active enrollments of others sharing a course with the student."""
        return self._fetch_enrollments(
            _CLASSMATES, (student_id, student_id), "retrieve classmates"
        )