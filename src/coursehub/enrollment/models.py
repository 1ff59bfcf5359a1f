"""Data models for the enrollment module."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from coursehub.store import Course, Enrollment, User


@dataclass(frozen=True)
class InstructorSummary:
    """Public projection of a course's instructor."""

    id: str
    name: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> InstructorSummary:
        return cls(id=user.id, name=user.name, email=user.email)


@dataclass(frozen=True)
class EnrolledCourse:
    """An active enrollment joined with its course and instructor.

    Attributes:
        enrollment: The active Enrollment record.
        course: The course it refers to.
        instructor: Name and email of the course owner.
    """

    enrollment: Enrollment
    course: Course
    instructor: InstructorSummary


@dataclass(frozen=True)
class RosterRecord:
    """One enrollment of a course, with the student's name and email."""

    enrollment: Enrollment
    student_name: str
    student_email: str


@dataclass
class RosterRepair:
    """Result of replaying active enrollments into one course roster."""

    course_id: str
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)
