"""User profile endpoints."""

from fastapi import APIRouter

from coursehub.api.dependencies import CatalogServiceDep, RequiredPrincipalDep
from coursehub.api.models import (
    CourseResponse,
    UserResponse,
    UserUpdate,
    course_to_response,
    user_to_response,
)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str, principal: RequiredPrincipalDep, catalog: CatalogServiceDep
) -> UserResponse:
    """Get a profile: one's own, or an instructor's."""
    return user_to_response(catalog.get_profile(principal, user_id))


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    update: UserUpdate,
    principal: RequiredPrincipalDep,
    catalog: CatalogServiceDep,
) -> UserResponse:
    """Update one's own profile (partial update)."""
    user = catalog.update_profile(
        principal,
        user_id,
        name=update.name,
        specialization=update.specialization,
        experience=update.experience,
        bio=update.bio,
    )
    return user_to_response(user)


@router.get("/{user_id}/courses", response_model=list[CourseResponse])
def list_user_courses(
    user_id: str, principal: RequiredPrincipalDep, catalog: CatalogServiceDep
) -> list[CourseResponse]:
    """Courses of the requesting instructor (profile view)."""
    courses = catalog.list_instructor_courses(principal, user_id)
    return [course_to_response(c) for c in courses]
