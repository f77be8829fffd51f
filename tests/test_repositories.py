from datetime import datetime, timezone

import pytest

from coursedesk.models import CourseEnrollment, Course, Student
from coursedesk.repositories import (
    NoRowsAffectedError,
    RepositoryError,
    SQLCourseEnrollmentRepository,
    SQLCourseRepository,
    SQLStudentRepository,
)


def _normalise(query):
    return " ".join(query.split())


class FakeCursor:
    def __init__(self, connection):
        self._connection = connection
        self._rows = []
        self.rowcount = -1
        self.lastrowid = None
        self.closed = False

    def execute(self, query, params):
        self._connection.executed.append((_normalise(query), tuple(params)))
        if self._connection.error is not None:
            raise self._connection.error
        self._rows = list(self._connection.rows)
        self.rowcount = self._connection.rowcount
        self.lastrowid = self._connection.lastrowid

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, rows=(), error=None, rowcount=0, lastrowid=None):
        self.rows = list(rows)
        self.error = error
        self.rowcount = rowcount
        self.lastrowid = lastrowid
        self.executed = []
        self.commits = 0
        self.cursors = []

    def cursor(self):
        cursor = FakeCursor(self)
        self.cursors.append(cursor)
        return cursor

    def commit(self):
        self.commits += 1


CREATE_TIME = datetime(2023, 8, 25, 0, 0, 0, tzinfo=timezone.utc)
UPDATE_TIME = datetime(2023, 8, 25, 1, 0, 0, tzinfo=timezone.utc)


# --- students ---------------------------------------------------------------

STUDENT_QUERY = "SELECT id, email, create_time, update_time FROM students WHERE id = %s"


def test_get_student_by_id_success():
    conn = FakeConnection(rows=[(1, "test@example.com", CREATE_TIME, UPDATE_TIME)])
    got = SQLStudentRepository(conn).get_student_by_id(1)
    assert got == Student(
        id=1, email="test@example.com", create_time=CREATE_TIME, update_time=UPDATE_TIME
    )
    assert conn.executed == [(STUDENT_QUERY, (1,))]
    assert all(cursor.closed for cursor in conn.cursors)


def test_get_student_by_id_no_rows():
    conn = FakeConnection(rows=[])
    assert SQLStudentRepository(conn).get_student_by_id(1) is None


def test_get_student_by_id_error():
    conn = FakeConnection(error=ConnectionError("sql: connection is already closed"))
    with pytest.raises(RepositoryError, match="failed to retrieve student"):
        SQLStudentRepository(conn).get_student_by_id(1)
    assert conn.cursors[0].closed


# --- courses ----------------------------------------------------------------

COURSE_QUERY = "SELECT id, name, create_time, update_time FROM courses WHERE id = %s"


def test_get_course_by_id_success():
    conn = FakeConnection(rows=[(1, "Introduction to Go", CREATE_TIME, UPDATE_TIME)])
    got = SQLCourseRepository(conn).get_course_by_id(1)
    assert got == Course(
        id=1, name="Introduction to Go", create_time=CREATE_TIME, update_time=UPDATE_TIME
    )
    assert conn.executed == [(COURSE_QUERY, (1,))]


def test_get_course_by_id_no_rows():
    conn = FakeConnection(rows=[])
    assert SQLCourseRepository(conn).get_course_by_id(1) is None


def test_get_course_by_id_error():
    conn = FakeConnection(error=ConnectionError("sql: connection is already closed"))
    with pytest.raises(RepositoryError, match="failed to retrieve course"):
        SQLCourseRepository(conn).get_course_by_id(1)


# --- enrollments ------------------------------------------------------------


def test_create_enrollment_success():
    conn = FakeConnection(lastrowid=1, rowcount=1)
    enrollment = CourseEnrollment(
        student_id=1, course_id=101, status=1, create_time=CREATE_TIME, update_time=UPDATE_TIME
    )
    got = SQLCourseEnrollmentRepository(conn).create_enrollment(enrollment)
    assert got == CourseEnrollment(
        id=1, student_id=1, course_id=101, status=1, create_time=CREATE_TIME, update_time=UPDATE_TIME
    )
    query, params = conn.executed[0]
    assert query.startswith("INSERT INTO course_enrollments")
    assert params == (1, 101, 1, CREATE_TIME, UPDATE_TIME)
    assert conn.commits == 1


def test_create_enrollment_error():
    conn = FakeConnection(error=RuntimeError("insert error"))
    enrollment = CourseEnrollment(
        student_id=1, course_id=101, status=1, create_time=CREATE_TIME, update_time=UPDATE_TIME
    )
    with pytest.raises(RepositoryError, match="insert error"):
        SQLCourseEnrollmentRepository(conn).create_enrollment(enrollment)
    assert conn.commits == 0


BY_STUDENT_QUERY = (
    "SELECT id, student_id, course_id, status, create_time, update_time "
    "FROM course_enrollments WHERE student_id = %s and status = 1"
)


def test_get_enrollment_by_student_id_success():
    stamp = datetime(2024, 8, 25, tzinfo=timezone.utc)
    conn = FakeConnection(rows=[(1, 1, 101, 1, stamp, stamp)])
    got = SQLCourseEnrollmentRepository(conn).get_enrollment_by_student_id(1)
    assert got == [
        CourseEnrollment(id=1, student_id=1, course_id=101, status=1, create_time=stamp, update_time=stamp)
    ]
    assert conn.executed == [(BY_STUDENT_QUERY, (1,))]


def test_get_enrollment_by_student_id_no_rows():
    conn = FakeConnection(rows=[])
    assert SQLCourseEnrollmentRepository(conn).get_enrollment_by_student_id(1) == []


def test_get_enrollment_by_student_id_error():
    conn = FakeConnection(error=RuntimeError("query error"))
    with pytest.raises(RepositoryError, match="query error"):
        SQLCourseEnrollmentRepository(conn).get_enrollment_by_student_id(1)


UPDATE_QUERY = (
    "UPDATE course_enrollments SET status = %s, update_time = %s "
    "WHERE student_id = %s AND course_id = %s"
)


def test_update_course_enrollment_status_success():
    conn = FakeConnection(rowcount=1)
    result = SQLCourseEnrollmentRepository(conn).update_course_enrollment_status(1, 101, 1)
    assert result is None
    query, params = conn.executed[0]
    assert query == UPDATE_QUERY
    assert params[0] == 1
    assert isinstance(params[1], datetime)
    assert params[2:] == (1, 101)
    assert conn.commits == 1


def test_update_course_enrollment_status_no_rows_affected():
    conn = FakeConnection(rowcount=0)
    with pytest.raises(NoRowsAffectedError, match="no rows were updated"):
        SQLCourseEnrollmentRepository(conn).update_course_enrollment_status(1, 101, 1)


def test_no_rows_affected_is_a_repository_error():
    conn = FakeConnection(rowcount=0)
    with pytest.raises(RepositoryError):
        SQLCourseEnrollmentRepository(conn).update_course_enrollment_status(1, 101, 1)


def test_update_course_enrollment_status_query_error():
    conn = FakeConnection(error=RuntimeError("update failed"))
    with pytest.raises(RepositoryError, match="update failed"):
        SQLCourseEnrollmentRepository(conn).update_course_enrollment_status(1, 101, 1)


CLASSMATES_QUERY = (
    "SELECT ce.id, ce.student_id, ce.course_id, ce.status, ce.create_time, ce.update_time "
    "FROM course_enrollments ce JOIN course_enrollments ce2 ON ce.course_id = ce2.course_id "
    "WHERE ce2.student_id = %s AND ce.student_id != %s and ce2.status = 1 and ce.status = 1"
)

CLASSMATE_STAMP = datetime(2024, 8, 1, tzinfo=timezone.utc)


def test_get_list_classmates_success():
    conn = FakeConnection(
        rows=[
            (1, 101, 1001, 1, CLASSMATE_STAMP, CLASSMATE_STAMP),
            (2, 102, 1001, 1, CLASSMATE_STAMP, CLASSMATE_STAMP),
        ]
    )
    got = SQLCourseEnrollmentRepository(conn).get_list_classmates(1)
    assert got == [
        CourseEnrollment(id=1, student_id=101, course_id=1001, status=1,
                         create_time=CLASSMATE_STAMP, update_time=CLASSMATE_STAMP),
        CourseEnrollment(id=2, student_id=102, course_id=1001, status=1,
                         create_time=CLASSMATE_STAMP, update_time=CLASSMATE_STAMP),
    ]
    assert conn.executed == [(CLASSMATES_QUERY, (1, 1))]


def test_get_list_classmates_query_error():
    conn = FakeConnection(error=ConnectionError("sql: connection is already closed"))
    with pytest.raises(RepositoryError):
        SQLCourseEnrollmentRepository(conn).get_list_classmates(1)


def test_get_list_classmates_scan_error():
    conn = FakeConnection(rows=[("invalid", 101, 1001, 1, CLASSMATE_STAMP, CLASSMATE_STAMP)])
    with pytest.raises(RepositoryError):
        SQLCourseEnrollmentRepository(conn).get_list_classmates(1)


BY_STUDENT_AND_COURSE_QUERY = (
    "SELECT id, student_id, course_id, status, create_time, update_time "
    "FROM course_enrollments WHERE student_id = %s AND course_id = %s"
)


def test_get_enrollment_by_student_id_and_course_id_success():
    conn = FakeConnection(rows=[(1, 1, 101, 1, CREATE_TIME, CREATE_TIME)])
    got = SQLCourseEnrollmentRepository(conn).get_enrollment_by_student_id_and_course_id(1, 101)
    assert got == [
        CourseEnrollment(id=1, student_id=1, course_id=101, status=1,
                         create_time=CREATE_TIME, update_time=CREATE_TIME)
    ]
    assert conn.executed == [(BY_STUDENT_AND_COURSE_QUERY, (1, 101))]


def test_get_enrollment_by_student_id_and_course_id_error():
    conn = FakeConnection(error=RuntimeError("query error"))
    with pytest.raises(RepositoryError, match="query error"):
        SQLCourseEnrollmentRepository(conn).get_enrollment_by_student_id_and_course_id(1, 101)


def test_string_timestamps_are_parsed():
    conn = FakeConnection(rows=[(1, 1, 101, 1, "2023-08-25T00:00:00+00:00", "2023-08-25T00:00:00+00:00")])
    got = SQLCourseEnrollmentRepository(conn).get_enrollment_by_student_id(1)
    assert got[0].create_time == CREATE_TIME