"""Data models for instructor analytics."""

from dataclasses import dataclass, field


@dataclass
class CourseMetrics:
    """Current roster size of one course.

    Attributes:
        id: The course's unique ID.
        title: Course title.
        category: Course category.
        enrolled_students: Number of students on the roster.
    """

    id: str
    title: str
    category: str
    enrolled_students: int


@dataclass
class Dashboard:
    """Aggregated metrics for one instructor.

    Attributes:
        total_students: Sum of roster sizes; a student in two courses counts twice.
        total_courses: Number of courses the instructor owns.
        enrollment_trends: "YYYY-MM-DD" -> active enrollments created that day.
            Days without enrollments are absent.
        courses: Per-course metrics.
    """

    total_students: int = 0
    total_courses: int = 0
    enrollment_trends: dict[str, int] = field(default_factory=dict)
    courses: list[CourseMetrics] = field(default_factory=list)
