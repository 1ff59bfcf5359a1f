"""Enrollment endpoints."""

from fastapi import APIRouter, status

from coursehub.api.dependencies import EnrollmentServiceDep, RequiredPrincipalDep
from coursehub.api.models import (
    EnrolledCourseResponse,
    EnrollmentResponse,
    MessageResponse,
    enrolled_course_to_response,
    enrollment_to_response,
)

router = APIRouter(prefix="/enrollments", tags=["enrollments"])


@router.get("/my-enrollments", response_model=list[EnrolledCourseResponse])
def list_my_enrollments(
    principal: RequiredPrincipalDep, enrollments: EnrollmentServiceDep
) -> list[EnrolledCourseResponse]:
    """Active enrollments of the requesting student, with course populated."""
    active = enrollments.list_active_for_student(principal)
    return [enrolled_course_to_response(item) for item in active]


@router.post(
    "/{course_id}",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def enroll(
    course_id: str, principal: RequiredPrincipalDep, enrollments: EnrollmentServiceDep
) -> EnrollmentResponse:
    """Enroll the requesting student in a course."""
    enrollment = enrollments.enroll(principal, course_id)
    return enrollment_to_response(enrollment)


@router.delete("/{enrollment_id}", response_model=MessageResponse)
def drop(
    enrollment_id: str, principal: RequiredPrincipalDep, enrollments: EnrollmentServiceDep
) -> MessageResponse:
    """Drop an enrollment (the id may also be the course id)."""
    enrollments.drop(principal, enrollment_id)
    return MessageResponse(message="Successfully dropped the course")
