"""Request and response bodies of the enrollment API."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from coursedesk.models import ZERO_TIME, ResponseStatus

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_OMIT_EMPTY = {"omit_empty": True}
_NULL_IF_EMPTY = {"null_if_empty": True}


def _format_time(value: datetime) -> str:
    """Render a timestamp in RFC 3339 form with trailing zeros trimmed."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        return text + "Z"
    sign = "+" if offset > timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return _format_time(value)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, list):
        return [_encode_value(item) for item in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


def _encode(record: Any) -> dict[str, Any]:
    """Return the JSON form of a schema dataclass, honouring field metadata."""
    body: dict[str, Any] = {}
    for item in fields(record):
        value = getattr(record, item.name)
        if item.metadata.get("omit_empty") and not value:
            continue
        if item.metadata.get("null_if_empty") and not value:
            encoded = None
        else:
            encoded = _encode_value(value)
        body[item.metadata.get("json", item.name)] = encoded
    return body


def _read_id(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"{key} is out of range: {value}")
    return value


def _read_ids(data: Any) -> tuple[int, int]:
    """Return the student and course ids of a decoded JSON body; missing ids become 0."""
    if data is None:
        return 0, 0
    if not isinstance(data, Mapping):
        raise ValueError("request body must be a JSON object")
    return _read_id(data, "student_id"), _read_id(data, "course_id")


@dataclass(frozen=True)
class CourseSignUpRequest:
    """Body of a sign-up request."""

    student_id: int = 0
    course_id: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> CourseSignUpRequest:
        """Build a request from decoded JSON; missing ids become 0."""
        student_id, course_id = _read_ids(data)
        return cls(student_id=student_id, course_id=course_id)


@dataclass(frozen=True)
class CancelCourseRequest:
    """Body of a cancellation request."""

    student_id: int = 0
    course_id: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> CancelCourseRequest:
        """Build a request from decoded JSON; missing ids become 0."""
        student_id, course_id = _read_ids(data)
        return cls(student_id=student_id, course_id=course_id)


@dataclass
class _StatusResponse:
    """Status and optional message every response carries."""

    status: ResponseStatus
    message: str = field(default="", metadata=_OMIT_EMPTY)


@dataclass
class EnrollmentDetail:
    """A new enrollment together with the student's e-mail and the course name."""

    id: int = 0
    student_id: int = 0
    student_email: str = ""
    course_id: int = 0
    course_name: str = ""
    status: int = 0
    create_time: datetime = ZERO_TIME
    update_time: datetime = ZERO_TIME

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form."""
        return _encode(self)


@dataclass
class CourseSignUpResponse(_StatusResponse):
    """Result of a sign-up."""

    enrollment_data: EnrollmentDetail | None = field(default=None, metadata=_OMIT_EMPTY)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form."""
        return _encode(self)


@dataclass
class CourseDetail:
    """One course a student is enrolled in."""

    course_id: int = 0
    course_name: str = ""
    status: int = 0
    create_time: datetime = ZERO_TIME
    update_time: datetime = ZERO_TIME

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form."""
        return _encode(self)


@dataclass
class ListCoursesResponse(_StatusResponse):
    """The courses a student is enrolled in."""

    courses: list[CourseDetail] = field(default_factory=list, metadata=_OMIT_EMPTY)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form."""
        return _encode(self)


@dataclass
class CancelCourseResponse(_StatusResponse):
    """Result of a cancellation."""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form."""
        return _encode(self)


@dataclass
class Classmate:
    """A fellow student in a course."""

    student_id: str = ""
    student_email: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form."""
        return _encode(self)


@dataclass
class ClassmatesCourse:
    """A course and the other students enrolled in it; no classmates is written as null."""

    course_id: int = 0
    course_name: str = ""
    classmates: list[Classmate] = field(
        default_factory=list, metadata={"json": "class_mates", **_NULL_IF_EMPTY}
    )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form."""
        return _encode(self)


@dataclass
class ListClassmatesResponse(_StatusResponse):
    """A student's classmates grouped by course; no courses is written as null."""

    courses: list[ClassmatesCourse] = field(default_factory=list, metadata=_NULL_IF_EMPTY)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form."""
        return _encode(self)