"""Pydantic models for REST API."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from coursehub.analytics import Dashboard
    from coursehub.enrollment import EnrolledCourse, RosterRecord
    from coursehub.store import Course, Enrollment, User


class CamelModel(BaseModel):
    """Base model serialized with camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class MessageResponse(CamelModel):
    """Plain message body, used for confirmations and errors."""

    message: str


class ErrorResponse(MessageResponse):
    """Error body; ``error`` carries exception detail outside production."""

    error: str | None = None


# Course models


class CourseCreate(CamelModel):
    """Request model for creating a course."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=5000)
    category: str = Field(..., min_length=1, max_length=100)


class CourseUpdate(CamelModel):
    """Request model for updating a course (partial update)."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=5000)
    category: str | None = Field(default=None, min_length=1, max_length=100)


class PersonSummary(CamelModel):
    """Name and email of a user, as shown inside other resources."""

    id: str
    name: str
    email: str


class CourseResponse(CamelModel):
    """Response model for a course."""

    id: str
    title: str
    description: str
    category: str
    instructor: PersonSummary
    enrolled_students: list[str]
    created_at: datetime


def course_to_response(course: Course) -> CourseResponse:
    """Convert a Course model to CourseResponse."""
    return CourseResponse.model_validate(course)


# Enrollment models


class EnrollmentResponse(CamelModel):
    """Response model for an enrollment."""

    id: str
    student_id: str
    course_id: str
    enrollment_date: datetime
    status: str


def enrollment_to_response(enrollment: Enrollment) -> EnrollmentResponse:
    """Convert an Enrollment model to EnrollmentResponse."""
    return EnrollmentResponse.model_validate(enrollment)


class EnrolledCourseResponse(EnrollmentResponse):
    """An active enrollment with its course populated."""

    course: CourseResponse


def enrolled_course_to_response(item: EnrolledCourse) -> EnrolledCourseResponse:
    """Convert an EnrolledCourse to EnrolledCourseResponse."""
    enrollment = item.enrollment
    course = item.course
    return EnrolledCourseResponse(
        id=enrollment.id,
        student_id=enrollment.student_id,
        course_id=enrollment.course_id,
        enrollment_date=enrollment.enrollment_date,
        status=enrollment.status,
        course=CourseResponse(
            id=course.id,
            title=course.title,
            description=course.description,
            category=course.category,
            instructor=PersonSummary(
                id=item.instructor.id,
                name=item.instructor.name,
                email=item.instructor.email,
            ),
            enrolled_students=course.enrolled_students,
            created_at=course.created_at,
        ),
    )


class RosterEntryResponse(EnrollmentResponse):
    """One enrollment of a course with the student's name and email."""

    student: PersonSummary


def roster_record_to_response(record: RosterRecord) -> RosterEntryResponse:
    """Convert a RosterRecord to RosterEntryResponse."""
    enrollment = record.enrollment
    return RosterEntryResponse(
        id=enrollment.id,
        student_id=enrollment.student_id,
        course_id=enrollment.course_id,
        enrollment_date=enrollment.enrollment_date,
        status=enrollment.status,
        student=PersonSummary(
            id=enrollment.student_id,
            name=record.student_name,
            email=record.student_email,
        ),
    )


# Analytics models


class CourseMetricsResponse(CamelModel):
    """Response model for one course in the dashboard."""

    id: str
    title: str
    category: str
    enrolled_students: int


class DashboardResponse(CamelModel):
    """Response model for the instructor dashboard."""

    total_students: int
    total_courses: int
    enrollment_trends: dict[str, int]
    courses: list[CourseMetricsResponse]


def dashboard_to_response(dashboard: Dashboard) -> DashboardResponse:
    """Convert a Dashboard to DashboardResponse."""
    return DashboardResponse.model_validate(dashboard)


# User models


class UserUpdate(CamelModel):
    """Request model for updating one's profile (partial update)."""

    name: str | None = Field(default=None, min_length=2, max_length=50)
    specialization: str | None = Field(default=None, max_length=100)
    experience: int | None = Field(default=None, ge=0, le=100)
    bio: str | None = Field(default=None, max_length=500)


class UserResponse(CamelModel):
    """Response model for a user; the credential is never included."""

    id: str
    name: str
    email: str
    role: str
    specialization: str | None = None
    experience: int | None = None
    bio: str | None = None
    created_at: datetime


def user_to_response(user: User) -> UserResponse:
    """Convert a User model to UserResponse."""
    return UserResponse.model_validate(user)
