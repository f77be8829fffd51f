"""Enrollment workflows: sign up, list courses, cancel and list classmates."""

from __future__ import annotations

from typing import Union

from coursedesk.models import EnrollmentStatus, ResponseStatus
from coursedesk.schemas import (
    CancelCourseResponse,
    Classmate,
    ClassmatesCourse,
    CourseDetail,
    CourseSignUpRequest,
    CourseSignUpResponse,
    EnrollmentDetail,
    ListClassmatesResponse,
    ListCoursesResponse,
)
from coursedesk.services import CourseEnrollmentService, CourseService, StudentService

AnyResponse = Union[
    CourseSignUpResponse, ListCoursesResponse, CancelCourseResponse, ListClassmatesResponse
]

_FAILURE = ResponseStatus.FAILURE
_SUCCESS = ResponseStatus.SUCCESS


class EnrollmentError(Exception):
    """Raised when a workflow fails; carries the failure response to send back."""

    def __init__(self, response: AnyResponse) -> None:
        super().__init__(response.message)
        self.response = response


class EnrollmentUseCase:
    """Coordinates the student, course and enrollment services."""

    def __init__(
        self,
        student_service: StudentService,
        course_service: CourseService,
        enrollment_service: CourseEnrollmentService,
    ) -> None:
        self.student_service = student_service
        self.course_service = course_service
        self.enrollment_service = enrollment_service

    def course_sign_up(self, request: CourseSignUpRequest) -> CourseSignUpResponse:
        """Enroll a student in a course they have never enrolled in before."""

        def fail(message: str, exc: Exception) -> EnrollmentError:
            error = EnrollmentError(CourseSignUpResponse(status=_FAILURE, message=message))
            error.__cause__ = exc
            return error

        try:
            student = self.student_service.get_student_by_id(request.student_id)
        except Exception as exc:
            raise fail("failed to retrieve student data", exc) from exc
        if student is None:
            return CourseSignUpResponse(status=_FAILURE, message="student data not found")

        try:
            course = self.course_service.get_course_by_id(request.course_id)
        except Exception as exc:
            raise fail("failed to retrieve course data", exc) from exc
        if course is None:
            return CourseSignUpResponse(status=_FAILURE, message="course data not found")

        try:
            existing = self.enrollment_service.get_enrollment_by_student_id_and_course_id(
                request.student_id, request.course_id
            )
        except Exception as exc:
            raise fail("failed to retrieve course data", exc) from exc
        if existing:
            return CourseSignUpResponse(status=_FAILURE, message="student has enrolled before")

        try:
            created = self.enrollment_service.create_enrollment(
                request.student_id, request.course_id, EnrollmentStatus.ACTIVE
            )
        except Exception as exc:
            raise fail("failed to sign up course", exc) from exc

        return CourseSignUpResponse(
            status=_SUCCESS,
            enrollment_data=EnrollmentDetail(
                id=created.id,
                student_id=created.student_id,
                student_email=student.email,
                course_id=created.course_id,
                course_name=course.name,
                status=EnrollmentStatus.ACTIVE,
                create_time=created.create_time,
                update_time=created.update_time,
            ),
        )

    def list_courses(self, student_id: int) -> ListCoursesResponse:
        """List the courses the student is actively enrolled in."""

        def fail(message: str) -> EnrollmentError:
            return EnrollmentError(ListCoursesResponse(status=_FAILURE, message=message))

        try:
            student = self.student_service.get_student_by_id(student_id)
        except Exception as exc:
            raise fail("failed to retrieve student data") from exc
        if student is None:
            return ListCoursesResponse(status=_FAILURE, message="student data not found")

        try:
            enrollments = self.enrollment_service.get_enrollment_by_student_id(student_id)
        except Exception as exc:
            raise fail("failed to retrieve enrollments") from exc

        courses: list[CourseDetail] = []
        for enrollment in enrollments:
            try:
                course = self.course_service.get_course_by_id(enrollment.course_id)
            except Exception as exc:
                raise fail("failed to retrieve course data") from exc
            if course is None:
                return ListCoursesResponse(
                    status=_FAILURE,
                    message=f"course data is not found for courseID: {enrollment.course_id}",
                )
            courses.append(
                CourseDetail(
                    course_id=course.id,
                    course_name=course.name,
                    status=enrollment.status,
                    create_time=enrollment.create_time,
                    update_time=enrollment.update_time,
                )
            )

        return ListCoursesResponse(status=_SUCCESS, courses=courses)

    def cancel_course(self, student_id: int, course_id: int) -> CancelCourseResponse:
        """Mark the student's enrollment in the course as cancelled."""
        try:
            self.enrollment_service.update_course_enrollment_status(
                student_id, course_id, EnrollmentStatus.CANCELLED
            )
        except Exception as exc:
            raise EnrollmentError(
                CancelCourseResponse(
                    status=_FAILURE, message="failed to cancel course enrollment"
                )
            ) from exc
        return CancelCourseResponse(status=_SUCCESS)

    def list_classmates(self, student_id: int) -> ListClassmatesResponse:
        """List the other students in each of the student's courses."""

        def fail(message: str) -> EnrollmentError:
            return EnrollmentError(ListClassmatesResponse(status=_FAILURE, message=message))

        try:
            student = self.student_service.get_student_by_id(student_id)
        except Exception as exc:
            raise fail("failed to retrieve student data") from exc
        if student is None:
            return ListClassmatesResponse(status=_FAILURE, message="student data not found")

        try:
            enrollments = self.enrollment_service.get_list_classmates(student_id)
        except Exception as exc:
            raise fail("failed to get list of classmates") from exc

        by_course: dict[int, list[int]] = {}
        for enrollment in enrollments:
            by_course.setdefault(enrollment.course_id, []).append(enrollment.student_id)

        courses: list[ClassmatesCourse] = []
        for course_id, member_ids in by_course.items():
            try:
                course = self.course_service.get_course_by_id(course_id)
            except Exception as exc:
                raise fail("failed to retrieve course data") from exc
            if course is None:
                return ListClassmatesResponse(
                    status=_FAILURE,
                    message=f"course data is not found for courseID: {course_id}",
                )

            classmates: list[Classmate] = []
            for member_id in member_ids:
                if member_id == student_id:
                    continue
                try:
                    member = self.student_service.get_student_by_id(member_id)
                except Exception as exc:
                    raise fail(f"failed to retrieve student data: {member_id}") from exc
                if member is None:
                    return ListClassmatesResponse(
                        status=_FAILURE,
                        message=f"student data is not found for studentID: {member_id}",
                    )
                classmates.append(Classmate(student_id=str(member.id), student_email=member.email))

            courses.append(
                ClassmatesCourse(course_id=course.id, course_name=course.name, classmates=classmates)
            )

        return ListClassmatesResponse(status=_SUCCESS, courses=courses)