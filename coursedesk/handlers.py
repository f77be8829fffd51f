"""HTTP handlers for the enrollment API."""

from __future__ import annotations

import json
import re
from typing import Any, Protocol

from werkzeug.wrappers import Request, Response

from coursedesk.enrollment import EnrollmentError
from coursedesk.models import ResponseStatus
from coursedesk.schemas import (
    CancelCourseRequest,
    CancelCourseResponse,
    CourseSignUpRequest,
    CourseSignUpResponse,
    ListClassmatesResponse,
    ListCoursesResponse,
)

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_DECIMAL = re.compile(r"[+-]?[0-9]+")

_HTML_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)

_BAD_REQUEST = 400
_INTERNAL_ERROR = 500
_OK = 200


class _EnrollmentWorkflows(Protocol):
    def course_sign_up(self, request: CourseSignUpRequest) -> CourseSignUpResponse: ...

    def list_courses(self, student_id: int) -> ListCoursesResponse: ...

    def cancel_course(self, student_id: int, course_id: int) -> CancelCourseResponse: ...

    def list_classmates(self, student_id: int) -> ListClassmatesResponse: ...


def _encode_json(payload: Any) -> str:
    """Serialise compactly, escaping HTML-sensitive characters, with a trailing newline."""
    text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    for raw, escaped in _HTML_ESCAPES:
        text = text.replace(raw, escaped)
    return text + "\n"


def _error_response(payload: Any, status: int) -> Response:
    response = Response(
        _encode_json(payload),
        status=status,
        content_type="text/plain; charset=utf-8",
    )
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response


def _failure(message: str, status: int = _BAD_REQUEST) -> Response:
    return _error_response({"status": str(ResponseStatus.FAILURE), "message": message}, status)


def _json_response(payload: Any) -> Response:
    return Response(_encode_json(payload), status=_OK, content_type="application/json")


def _decode_body(request: Request) -> Any:
    """Decode the first JSON value of the request body."""
    text = request.get_data().decode("utf-8")
    stripped = text.lstrip(" \t\r\n")
    if not stripped:
        raise ValueError("request body is empty")
    value, _ = json.JSONDecoder().raw_decode(stripped)
    return value


def _parse_int64(text: str) -> int:
    if not _DECIMAL.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"integer out of range: {text!r}")
    return value


class Handler:
    """Turns HTTP requests into enrollment workflow calls."""

    def __init__(self, enrollment_use_case: _EnrollmentWorkflows) -> None:
        self.enrollment_use_case = enrollment_use_case

    def course_sign_up(self, request: Request) -> Response:
        """Handle a sign-up; the body carries student_id and course_id."""
        try:
            payload = CourseSignUpRequest.from_dict(_decode_body(request))
        except ValueError:
            return _failure("Invalid request payload")
        if payload.student_id == 0 or payload.course_id == 0:
            return _failure("Request Data is empty")

        try:
            result = self.enrollment_use_case.course_sign_up(payload)
        except EnrollmentError as exc:
            return _error_response(exc.response.to_dict(), _INTERNAL_ERROR)
        return _json_response(result.to_dict())

    def list_courses(self, request: Request) -> Response:
        """Handle a listing of a student's courses; student_id is a query parameter."""
        try:
            student_id = _parse_int64(request.args.get("student_id", ""))
        except ValueError:
            return _failure("Invalid student ID")
        if student_id == 0:
            return _failure("Student ID Zero")

        try:
            result = self.enrollment_use_case.list_courses(student_id)
        except EnrollmentError as exc:
            return _error_response(exc.response.to_dict(), _INTERNAL_ERROR)
        return _json_response(result.to_dict())

    def cancel_course(self, request: Request) -> Response:
        """Handle a cancellation; the body carries student_id and course_id."""
        try:
            payload = CancelCourseRequest.from_dict(_decode_body(request))
        except ValueError:
            return _failure("Invalid request payload")
        if payload.course_id == 0 or payload.student_id == 0:
            return _failure("Invalid request payload (empty)")

        try:
            result = self.enrollment_use_case.cancel_course(payload.student_id, payload.course_id)
        except EnrollmentError as exc:
            return _error_response(exc.response.to_dict(), _INTERNAL_ERROR)
        return _json_response(result.to_dict())

    def list_classmates(self, request: Request) -> Response:
        """Handle a listing of a student's classmates; student_id is a query parameter."""
        raw_id = request.args.get("student_id", "")
        if raw_id == "":
            return _failure("student_id is required")
        try:
            student_id = _parse_int64(raw_id)
        except ValueError:
            return _failure("Invalid student_id")
        if student_id == 0:
            return _failure("Invalid request payload (empty)")

        try:
            result = self.enrollment_use_case.list_classmates(student_id)
        except EnrollmentError as exc:
            return _error_response(exc.response.to_dict(), _INTERNAL_ERROR)
        return _json_response(result.to_dict())