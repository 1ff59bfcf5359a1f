"""SQLAlchemy models for the Entity Store."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)


class Role(StrEnum):
    """User role enum."""

    STUDENT = "student"
    INSTRUCTOR = "instructor"


class EnrollmentStatus(StrEnum):
    """Enrollment status enum."""

    ACTIVE = "active"
    COMPLETED = "completed"
    DROPPED = "dropped"


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)."""
    return datetime.now(UTC).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class User(Base):
    """User model - a student or an instructor."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('student', 'instructor')", name="ck_users_role"),
        CheckConstraint("experience IS NULL OR experience >= 0", name="ck_users_experience"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    # Always stored lower-cased, so the unique index is case-insensitive
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    specialization: Mapped[str | None] = mapped_column(String(100), nullable=True)
    experience: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bio: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    def __init__(
        self,
        name: str,
        email: str,
        role: str,
        id: str | None = None,
        password_hash: str | None = None,
        specialization: str | None = None,
        experience: int | None = None,
        bio: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.name = name
        self.email = email.strip().lower()
        self.role = Role(role).value
        self.password_hash = password_hash
        self.specialization = specialization
        self.experience = experience
        self.bio = bio

    @property
    def user_role(self) -> Role:
        """Get role as Role enum."""
        return Role(self.role)

    @property
    def is_instructor(self) -> bool:
        return self.role == Role.INSTRUCTOR.value

    def __repr__(self) -> str:
        return f"<User(id={self.id!r}, email={self.email!r}, role={self.role!r})>"


class Course(Base):
    """Course model - owned by one instructor."""

    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    instructor_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    # Relationships
    instructor: Mapped[User] = relationship("User", lazy="joined")
    # Written only through EntityStore roster primitives
    roster: Mapped[list[RosterEntry]] = relationship(
        "RosterEntry",
        lazy="selectin",
        viewonly=True,
        order_by="RosterEntry.added_at",
    )

    def __init__(
        self,
        title: str,
        description: str,
        category: str,
        instructor_id: str,
        id: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.title = title
        self.description = description
        self.category = category
        self.instructor_id = instructor_id

    @property
    def enrolled_students(self) -> list[str]:
        """Student ids currently on the roster."""
        return [entry.student_id for entry in self.roster]

    def __repr__(self) -> str:
        return (
            f"<Course(id={self.id!r}, title={self.title!r}, "
            f"instructor_id={self.instructor_id!r})>"
        )


class RosterEntry(Base):
    """One row of a course's roster cache.

    The roster is derived from active enrollments and can be rebuilt from them.
    """

    __tablename__ = "course_roster"

    course_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True
    )
    student_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), primary_key=True)
    added_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<RosterEntry(course_id={self.course_id!r}, student_id={self.student_id!r})>"


class Enrollment(Base):
    """Enrollment model - the source of truth for enrollment state.

    course_id has no foreign key so history survives course deletion.
    """

    __tablename__ = "enrollments"
    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'completed', 'dropped')", name="ck_enrollments_status"
        ),
        # At most one active enrollment per (student, course); dropped and
        # completed records do not participate.
        Index(
            "uq_enrollments_active_pair",
            "student_id",
            "course_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
        Index("ix_enrollments_course_status", "course_id", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    course_id: Mapped[str] = mapped_column(String(36), nullable=False)
    enrollment_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    status: Mapped[str] = mapped_column(String(20), nullable=False)

    def __init__(
        self,
        student_id: str,
        course_id: str,
        id: str | None = None,
        enrollment_date: datetime | None = None,
        status: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.id = id if id is not None else generate_uuid()
        self.student_id = student_id
        self.course_id = course_id
        self.enrollment_date = enrollment_date if enrollment_date is not None else utcnow()
        self.status = status if status is not None else EnrollmentStatus.ACTIVE.value

    @property
    def enrollment_status(self) -> EnrollmentStatus:
        """Get status as EnrollmentStatus enum."""
        return EnrollmentStatus(self.status)

    @property
    def is_active(self) -> bool:
        return self.status == EnrollmentStatus.ACTIVE.value

    def __repr__(self) -> str:
        return (
            f"<Enrollment(id={self.id!r}, student_id={self.student_id!r}, "
            f"course_id={self.course_id!r}, status={self.status!r})>"
        )
