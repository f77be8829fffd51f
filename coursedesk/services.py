"""Domain services that sit between the use case and the repositories."""

from __future__ import annotations

from datetime import datetime, timezone

from coursedesk.models import Course, CourseEnrollment, Student
from coursedesk.repositories import (
    SQLCourseEnrollmentRepository,
    SQLCourseRepository,
    SQLStudentRepository,
)


class StudentService:
    """Student lookups."""

    def __init__(self, repository: SQLStudentRepository) -> None:
        self.repository = repository

    def get_student_by_id(self, student_id: int) -> Student | None:
        """Return the student with this id, or None."""
        return self.repository.get_student_by_id(student_id)


class CourseService:
    """Course lookups."""

    def __init__(self, repository: SQLCourseRepository) -> None:
        self.repository = repository

    def get_course_by_id(self, course_id: int) -> Course | None:
        """Return the course with this id, or None."""
        return self.repository.get_course_by_id(course_id)


class CourseEnrollmentService:
    """Creation, lookup and status changes of enrollments."""

    def __init__(self, repository: SQLCourseEnrollmentRepository) -> None:
        self.repository = repository

    def create_enrollment(self, student_id: int, course_id: int, status: int) -> CourseEnrollment:
        """Store a new enrollment stamped with the current time."""
        now = datetime.now(timezone.utc)
        return self.repository.create_enrollment(
            CourseEnrollment(
                student_id=student_id,
                course_id=course_id,
                status=status,
                create_time=now,
                update_time=now,
            )
        )

    def get_enrollment_by_student_id(self, student_id: int) -> list[CourseEnrollment]:
        """Return the student's active enrollments."""
        return self.repository.get_enrollment_by_student_id(student_id)

    def get_enrollment_by_student_id_and_course_id(
        self, student_id: int, course_id: int
    ) -> list[CourseEnrollment]:
        """Return all enrollments of the student in the course."""
        return self.repository.get_enrollment_by_student_id_and_course_id(student_id, course_id)

    def update_course_enrollment_status(
        self, student_id: int, course_id: int, new_status: int
    ) -> None:
        """Change the status of the student's enrollment in the course."""
        self.repository.update_course_enrollment_status(student_id, course_id, new_status)

    def get_list_classmates(self, student_id: int) -> list[CourseEnrollment]:
        """Return the active enrollments of the student's classmates."""
        return self.repository.get_list_classmates(student_id)