"""Unit tests for Entity Store models."""

from datetime import datetime

import pytest

from coursehub.store import Course, Enrollment, EnrollmentStatus, Role, User


@pytest.mark.unit
class TestUser:
    """Tests for the User model."""

    def test_email_is_normalized(self) -> None:
        user = User(name="Grace", email="  Grace@Example.COM ", role="student")

        assert user.email == "grace@example.com"

    def test_generates_id(self) -> None:
        first = User(name="A1", email="a1@example.com", role="student")
        second = User(name="A2", email="a2@example.com", role="student")

        assert first.id and second.id
        assert first.id != second.id

    def test_role_helpers(self) -> None:
        user = User(name="Ada", email="ada@example.com", role=Role.INSTRUCTOR)

        assert user.user_role == Role.INSTRUCTOR
        assert user.is_instructor

    def test_invalid_role_rejected(self) -> None:
        with pytest.raises(ValueError):
            User(name="Eve", email="eve@example.com", role="admin")


@pytest.mark.unit
class TestCourse:
    """Tests for the Course model."""

    def test_new_course_has_empty_roster(self) -> None:
        course = Course(title="T", description="D", category="C", instructor_id="i-1")

        assert course.enrolled_students == []


@pytest.mark.unit
class TestEnrollment:
    """Tests for the Enrollment model."""

    def test_defaults_to_active(self) -> None:
        enrollment = Enrollment(student_id="s-1", course_id="c-1")

        assert enrollment.enrollment_status == EnrollmentStatus.ACTIVE
        assert enrollment.is_active
        assert isinstance(enrollment.enrollment_date, datetime)
        assert enrollment.enrollment_date.tzinfo is None

    def test_explicit_status(self) -> None:
        enrollment = Enrollment(student_id="s-1", course_id="c-1", status="dropped")

        assert not enrollment.is_active
        assert "dropped" in repr(enrollment)
