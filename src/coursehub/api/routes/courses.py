"""Course endpoints."""

from fastapi import APIRouter, status

from coursehub.api.dependencies import (
    CatalogServiceDep,
    EnrollmentServiceDep,
    RequiredPrincipalDep,
)
from coursehub.api.models import (
    CourseCreate,
    CourseResponse,
    CourseUpdate,
    MessageResponse,
    RosterEntryResponse,
    course_to_response,
    roster_record_to_response,
)

router = APIRouter(prefix="/courses", tags=["courses"])


@router.get("", response_model=list[CourseResponse])
def list_courses(catalog: CatalogServiceDep) -> list[CourseResponse]:
    """List all courses with their instructor."""
    return [course_to_response(c) for c in catalog.list_courses()]


@router.post("", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
def create_course(
    course: CourseCreate, principal: RequiredPrincipalDep, catalog: CatalogServiceDep
) -> CourseResponse:
    """Create a course owned by the requesting instructor."""
    created = catalog.create_course(
        principal,
        title=course.title,
        description=course.description,
        category=course.category,
    )
    return course_to_response(created)


@router.get("/instructor/{instructor_id}", response_model=list[CourseResponse])
def list_instructor_courses(
    instructor_id: str, principal: RequiredPrincipalDep, catalog: CatalogServiceDep
) -> list[CourseResponse]:
    """List the requesting instructor's own courses (empty list if none)."""
    courses = catalog.list_instructor_courses(principal, instructor_id)
    return [course_to_response(c) for c in courses]


@router.get("/{course_id}", response_model=CourseResponse)
def get_course(course_id: str, catalog: CatalogServiceDep) -> CourseResponse:
    """Get a course by ID."""
    return course_to_response(catalog.get_course(course_id))


@router.put("/{course_id}", response_model=CourseResponse)
def update_course(
    course_id: str,
    course: CourseUpdate,
    principal: RequiredPrincipalDep,
    catalog: CatalogServiceDep,
) -> CourseResponse:
    """Update an owned course (partial update)."""
    updated = catalog.update_course(
        principal,
        course_id,
        title=course.title,
        description=course.description,
        category=course.category,
    )
    return course_to_response(updated)


@router.delete("/{course_id}", response_model=MessageResponse)
def delete_course(
    course_id: str, principal: RequiredPrincipalDep, catalog: CatalogServiceDep
) -> MessageResponse:
    """Delete an owned course; its active enrollments are dropped."""
    catalog.delete_course(principal, course_id)
    return MessageResponse(message="Course deleted successfully")


@router.get("/{course_id}/roster", response_model=list[RosterEntryResponse])
def get_course_roster(
    course_id: str, principal: RequiredPrincipalDep, enrollments: EnrollmentServiceDep
) -> list[RosterEntryResponse]:
    """Enrollment history of an owned course with student names and emails."""
    records = enrollments.list_for_course(principal, course_id)
    return [roster_record_to_response(r) for r in records]
