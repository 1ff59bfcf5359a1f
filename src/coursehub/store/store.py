"""EntityStore - constraint layer over Users, Courses, Enrollments and rosters."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, delete, func, insert, literal, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError

from coursehub.store.database import DEFAULT_TIMEOUT_SECONDS, Database
from coursehub.store.exceptions import (
    CourseNotFoundError,
    EnrollmentExistsError,
    EnrollmentNotFoundError,
    EnrollmentStateError,
    InvalidFieldError,
    UserExistsError,
    UserNotFoundError,
)
from coursehub.store.models import (
    Course,
    Enrollment,
    EnrollmentStatus,
    Role,
    RosterEntry,
    User,
    generate_uuid,
    utcnow,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from datetime import datetime

    from sqlalchemy import Exists
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,})+$")
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
SPECIALIZATION_MAX_LENGTH = 100
BIO_MAX_LENGTH = 500
EXPERIENCE_MAX_YEARS = 100
TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 5000
CATEGORY_MAX_LENGTH = 100


def _validate_name(name: str) -> str:
    name = name.strip()
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise InvalidFieldError(
            f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
        )
    return name


def _validate_email(email: str) -> str:
    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise InvalidFieldError(f"'{email}' is not a valid email")
    return email


def _validate_experience(experience: int | None) -> int | None:
    if experience is not None and experience < 0:
        raise InvalidFieldError("Experience cannot be negative")
    if experience is not None and experience > EXPERIENCE_MAX_YEARS:
        raise InvalidFieldError(f"Experience cannot exceed {EXPERIENCE_MAX_YEARS} years")
    return experience


def _validate_max_length(value: str | None, limit: int, field: str) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if len(value) > limit:
        raise InvalidFieldError(f"{field} cannot exceed {limit} characters")
    return value


def _validate_required_text(value: str, limit: int, field: str) -> str:
    value = value.strip()
    if not value:
        raise InvalidFieldError(f"{field} is required")
    if len(value) > limit:
        raise InvalidFieldError(f"{field} cannot exceed {limit} characters")
    return value


def _active_enrollment_exists(course_id: str, student_id: str) -> Exists:
    return (
        select(Enrollment.id)
        .where(
            Enrollment.course_id == course_id,
            Enrollment.student_id == student_id,
            Enrollment.status == EnrollmentStatus.ACTIVE.value,
        )
        .exists()
    )


class EntityStore:
    """Main API for Entity Store operations.

    Every write that guards an invariant is issued as one conditional SQL
    statement, so concurrent request handlers cannot interleave a check with
    its write.
    """

    def __init__(
        self, db_path: str = "coursehub.db", timeout: float = DEFAULT_TIMEOUT_SECONDS
    ) -> None:
        """Initialize the Entity Store with a SQLite database.

        Creates database and tables if they don't exist.

        Args:
            db_path: Path to SQLite database file
            timeout: Seconds a call may wait on a database lock
        """
        self._db = Database(db_path, timeout=timeout)
        self._db.create_tables()

    @property
    def database(self) -> Database:
        return self._db

    def ping(self) -> bool:
        """Check that the database answers."""
        return self._db.ping()

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    # --- User Operations ---

    def create_user(
        self,
        name: str,
        email: str,
        role: Role | str,
        password_hash: str | None = None,
        specialization: str | None = None,
        experience: int | None = None,
        bio: str | None = None,
    ) -> User:
        """Create a new user.

        Args:
            name: Display name (2-50 characters)
            email: Email address, unique regardless of case
            role: "student" or "instructor"; never changes afterwards
            password_hash: Opaque credential owned by the auth collaborator
            specialization: Instructor specialization
            experience: Instructor years of experience (>= 0)
            bio: Instructor bio

        Returns:
            Created User object with generated ID

        Raises:
            InvalidFieldError: If a field violates its constraint
            UserExistsError: If the email is already registered
        """
        try:
            role_value = Role(role).value
        except ValueError as e:
            raise InvalidFieldError(
                f"'{role}' is not a valid role. Must be either 'student' or 'instructor'"
            ) from e

        user = User(
            name=_validate_name(name),
            email=_validate_email(email),
            role=role_value,
            password_hash=password_hash,
            specialization=_validate_max_length(
                specialization, SPECIALIZATION_MAX_LENGTH, "Specialization"
            ),
            experience=_validate_experience(experience),
            bio=_validate_max_length(bio, BIO_MAX_LENGTH, "Bio"),
        )
        with self._db.session_scope() as session:
            try:
                session.add(user)
                session.commit()
            except IntegrityError as e:
                session.rollback()
                if "users.email" in str(e):
                    raise UserExistsError(f"User with email '{user.email}' already exists") from e
                raise
            session.refresh(user)
            return user

    def get_user(self, user_id: str) -> User:
        """Get user by ID.

        Raises:
            UserNotFoundError: If user doesn't exist
        """
        with self._db.session_scope() as session:
            user = session.get(User, user_id)
            if user is None:
                raise UserNotFoundError(f"User with id '{user_id}' not found")
            return user

    def get_user_by_email(self, email: str) -> User:
        """Get user by email, compared case-insensitively.

        Raises:
            UserNotFoundError: If user doesn't exist
        """
        normalized = email.strip().lower()
        with self._db.session_scope() as session:
            stmt = select(User).where(User.email == normalized)
            user = session.execute(stmt).scalar_one_or_none()
            if user is None:
                raise UserNotFoundError(f"User with email '{normalized}' not found")
            return user

    def update_user(
        self,
        user_id: str,
        name: str | None = None,
        specialization: str | None = None,
        experience: int | None = None,
        bio: str | None = None,
    ) -> User:
        """Update profile fields. Only provided fields are updated.

        Email and role are immutable here.

        Raises:
            UserNotFoundError: If user doesn't exist
            InvalidFieldError: If a field violates its constraint
        """
        with self._db.session_scope() as session:
            user = session.get(User, user_id)
            if user is None:
                raise UserNotFoundError(f"User with id '{user_id}' not found")

            if name is not None:
                user.name = _validate_name(name)
            if specialization is not None:
                user.specialization = _validate_max_length(
                    specialization, SPECIALIZATION_MAX_LENGTH, "Specialization"
                )
            if experience is not None:
                user.experience = _validate_experience(experience)
            if bio is not None:
                user.bio = _validate_max_length(bio, BIO_MAX_LENGTH, "Bio")

            session.commit()
            session.refresh(user)
            return user

    # --- Course Operations ---

    def _load_course(self, session: Session, course_id: str) -> Course | None:
        stmt = (
            select(Course)
            .where(Course.id == course_id)
            .execution_options(populate_existing=True)
        )
        return session.execute(stmt).scalar_one_or_none()

    def create_course(
        self,
        instructor_id: str,
        title: str,
        description: str,
        category: str,
    ) -> Course:
        """Create a new course owned by an instructor.

        Returns:
            Created Course object with generated ID and an empty roster

        Raises:
            UserNotFoundError: If no instructor has this ID
            InvalidFieldError: If a field is blank or too long
        """
        with self._db.session_scope() as session:
            instructor = session.get(User, instructor_id)
            if instructor is None or not instructor.is_instructor:
                raise UserNotFoundError(f"Instructor with id '{instructor_id}' not found")

            course = Course(
                title=_validate_required_text(title, TITLE_MAX_LENGTH, "Title"),
                description=_validate_required_text(
                    description, DESCRIPTION_MAX_LENGTH, "Description"
                ),
                category=_validate_required_text(category, CATEGORY_MAX_LENGTH, "Category"),
                instructor_id=instructor_id,
            )
            session.add(course)
            session.commit()
            loaded = self._load_course(session, course.id)
            assert loaded is not None
            return loaded

    def get_course(self, course_id: str) -> Course:
        """Get course by ID, with instructor and roster loaded.

        Raises:
            CourseNotFoundError: If course doesn't exist
        """
        with self._db.session_scope() as session:
            course = self._load_course(session, course_id)
            if course is None:
                raise CourseNotFoundError(f"Course with id '{course_id}' not found")
            return course

    def list_courses(self, instructor_id: str | None = None) -> list[Course]:
        """List courses, optionally only those of one instructor.

        Returns:
            List of courses, ordered by created_at descending (most recent first)
        """
        with self._db.session_scope() as session:
            stmt = select(Course)
            if instructor_id is not None:
                stmt = stmt.where(Course.instructor_id == instructor_id)
            stmt = stmt.order_by(Course.created_at.desc(), Course.id)
            return list(session.execute(stmt).scalars().all())

    def update_course(
        self,
        course_id: str,
        title: str | None = None,
        description: str | None = None,
        category: str | None = None,
    ) -> Course:
        """Update course fields. Only provided fields are updated.

        The roster and the owner are not writable here.

        Raises:
            CourseNotFoundError: If course doesn't exist
            InvalidFieldError: If a provided field is blank or too long
        """
        with self._db.session_scope() as session:
            course = session.get(Course, course_id)
            if course is None:
                raise CourseNotFoundError(f"Course with id '{course_id}' not found")

            if title is not None:
                course.title = _validate_required_text(title, TITLE_MAX_LENGTH, "Title")
            if description is not None:
                course.description = _validate_required_text(
                    description, DESCRIPTION_MAX_LENGTH, "Description"
                )
            if category is not None:
                course.category = _validate_required_text(
                    category, CATEGORY_MAX_LENGTH, "Category"
                )

            session.commit()
            loaded = self._load_course(session, course_id)
            assert loaded is not None
            return loaded

    def retire_course(self, course_id: str) -> int:
        """Delete a course, dropping its active enrollments in the same transaction.

        Enrollment records are kept for history.

        Returns:
            Number of enrollments moved from active to dropped

        Raises:
            CourseNotFoundError: If course doesn't exist
        """
        with self._db.session_scope() as session:
            if session.get(Course, course_id) is None:
                raise CourseNotFoundError(f"Course with id '{course_id}' not found")

            dropped = session.execute(
                update(Enrollment)
                .where(
                    Enrollment.course_id == course_id,
                    Enrollment.status == EnrollmentStatus.ACTIVE.value,
                )
                .values(status=EnrollmentStatus.DROPPED.value)
                .execution_options(synchronize_session=False)
            ).rowcount
            session.execute(
                delete(RosterEntry)
                .where(RosterEntry.course_id == course_id)
                .execution_options(synchronize_session=False)
            )
            session.execute(
                delete(Course)
                .where(Course.id == course_id)
                .execution_options(synchronize_session=False)
            )
            session.commit()
            return dropped

    # --- Enrollment Operations ---

    def insert_active_enrollment(
        self,
        student_id: str,
        course_id: str,
        enrollment_date: datetime | None = None,
    ) -> Enrollment:
        """Insert an active enrollment in a single conditional statement.

        The row is written only if the course exists and the user is a
        student; the partial unique index on active (student, course) pairs
        rejects a second active record even under concurrent calls.

        Returns:
            The new Enrollment

        Raises:
            CourseNotFoundError: If course doesn't exist
            UserNotFoundError: If no student has this ID
            EnrollmentExistsError: If an active enrollment already exists
        """
        enrollment_id = generate_uuid()
        when = enrollment_date if enrollment_date is not None else utcnow()
        course_exists = select(Course.id).where(Course.id == course_id).exists()
        student_exists = (
            select(User.id)
            .where(User.id == student_id, User.role == Role.STUDENT.value)
            .exists()
        )
        source = select(
            literal(enrollment_id),
            literal(student_id),
            literal(course_id),
            literal(when, DateTime),
            literal(EnrollmentStatus.ACTIVE.value),
        ).where(course_exists, student_exists)
        stmt = insert(Enrollment.__table__).from_select(
            ["id", "student_id", "course_id", "enrollment_date", "status"], source
        )

        with self._db.session_scope() as session:
            try:
                session.execute(stmt)
                enrollment = session.get(Enrollment, enrollment_id)
                session.commit()
            except IntegrityError as e:
                session.rollback()
                if "UNIQUE constraint failed" in str(e):
                    raise EnrollmentExistsError(
                        f"Student '{student_id}' already has an active enrollment "
                        f"in course '{course_id}'"
                    ) from e
                raise

            if enrollment is None:
                if session.get(Course, course_id) is None:
                    raise CourseNotFoundError(f"Course with id '{course_id}' not found")
                raise UserNotFoundError(f"Student with id '{student_id}' not found")
            return enrollment

    def get_enrollment(self, enrollment_id: str) -> Enrollment:
        """Get enrollment by ID.

        Raises:
            EnrollmentNotFoundError: If enrollment doesn't exist
        """
        with self._db.session_scope() as session:
            enrollment = session.get(Enrollment, enrollment_id)
            if enrollment is None:
                raise EnrollmentNotFoundError(f"Enrollment with id '{enrollment_id}' not found")
            return enrollment

    def find_active_enrollment(self, student_id: str, course_id: str) -> Enrollment | None:
        """Return the active enrollment for a pair, if any."""
        with self._db.session_scope() as session:
            stmt = select(Enrollment).where(
                Enrollment.student_id == student_id,
                Enrollment.course_id == course_id,
                Enrollment.status == EnrollmentStatus.ACTIVE.value,
            )
            return session.execute(stmt).scalar_one_or_none()

    def list_enrollments(
        self,
        student_id: str | None = None,
        course_id: str | None = None,
        status: EnrollmentStatus | None = None,
    ) -> list[Enrollment]:
        """List enrollment records with optional filters.

        Returns:
            Enrollments ordered by enrollment_date ascending
        """
        with self._db.session_scope() as session:
            stmt = select(Enrollment)
            if student_id is not None:
                stmt = stmt.where(Enrollment.student_id == student_id)
            if course_id is not None:
                stmt = stmt.where(Enrollment.course_id == course_id)
            if status is not None:
                stmt = stmt.where(Enrollment.status == status.value)
            stmt = stmt.order_by(Enrollment.enrollment_date, Enrollment.id)
            return list(session.execute(stmt).scalars().all())

    def transition_enrollment(
        self,
        enrollment_id: str,
        from_status: EnrollmentStatus,
        to_status: EnrollmentStatus,
    ) -> Enrollment:
        """Compare-and-set an enrollment's status.

        Raises:
            EnrollmentNotFoundError: If enrollment doesn't exist
            EnrollmentStateError: If the current status is not from_status
        """
        with self._db.session_scope() as session:
            changed = session.execute(
                update(Enrollment)
                .where(Enrollment.id == enrollment_id, Enrollment.status == from_status.value)
                .values(status=to_status.value)
                .execution_options(synchronize_session=False)
            ).rowcount
            session.commit()

            enrollment = session.get(Enrollment, enrollment_id, populate_existing=True)
            if enrollment is None:
                raise EnrollmentNotFoundError(f"Enrollment with id '{enrollment_id}' not found")
            if changed == 0:
                raise EnrollmentStateError(
                    f"Enrollment '{enrollment_id}' is {enrollment.status}, not {from_status.value}"
                )
            return enrollment

    def iter_active_enrollments(self, student_id: str) -> Iterator[tuple[Enrollment, Course, User]]:
        """Yield (enrollment, course, instructor) for a student's active enrollments.

        Inner joins drop enrollments whose course or instructor no longer exists.
        The query runs when iteration starts.
        """
        with self._db.session_scope() as session:
            stmt = (
                select(Enrollment, Course, User)
                .join(Course, Course.id == Enrollment.course_id)
                .join(User, User.id == Course.instructor_id)
                .where(
                    Enrollment.student_id == student_id,
                    Enrollment.status == EnrollmentStatus.ACTIVE.value,
                )
                .order_by(Enrollment.enrollment_date.desc(), Enrollment.id)
            )
            rows = [tuple(row) for row in session.execute(stmt).all()]
        yield from rows  # type: ignore[misc]

    def list_course_enrollments(self, course_id: str) -> list[tuple[Enrollment, User]]:
        """Full enrollment history of a course with each student's record.

        Returns:
            (enrollment, student) pairs ordered by enrollment_date ascending
        """
        with self._db.session_scope() as session:
            stmt = (
                select(Enrollment, User)
                .join(User, User.id == Enrollment.student_id)
                .where(Enrollment.course_id == course_id)
                .order_by(Enrollment.enrollment_date, Enrollment.id)
            )
            return [(enrollment, student) for enrollment, student in session.execute(stmt).all()]

    # --- Roster Operations ---

    def add_to_roster(self, course_id: str, student_id: str) -> bool:
        """Add a student to a course roster if an active enrollment backs it.

        Returns:
            True if a roster row was inserted
        """
        source = select(
            literal(course_id), literal(student_id), literal(utcnow(), DateTime)
        ).where(_active_enrollment_exists(course_id, student_id))
        stmt = (
            sqlite_insert(RosterEntry)
            .from_select(["course_id", "student_id", "added_at"], source)
            .on_conflict_do_nothing(index_elements=["course_id", "student_id"])
        )
        with self._db.session_scope() as session:
            inserted = session.execute(stmt).rowcount
            session.commit()
            return bool(inserted)

    def remove_from_roster(self, course_id: str, student_id: str) -> bool:
        """Remove a student from a course roster unless an active enrollment remains.

        Returns:
            True if a roster row was deleted
        """
        stmt = (
            delete(RosterEntry)
            .where(
                RosterEntry.course_id == course_id,
                RosterEntry.student_id == student_id,
                ~_active_enrollment_exists(course_id, student_id),
            )
            .execution_options(synchronize_session=False)
        )
        with self._db.session_scope() as session:
            deleted = session.execute(stmt).rowcount
            session.commit()
            return bool(deleted)

    def rebuild_roster(self, course_id: str) -> tuple[list[str], list[str]]:
        """Replay active enrollments into a course roster.

        Returns:
            (added, removed) student ids, each sorted

        Raises:
            CourseNotFoundError: If course doesn't exist
        """
        active_ids = (
            select(Enrollment.student_id)
            .where(
                Enrollment.course_id == course_id,
                Enrollment.status == EnrollmentStatus.ACTIVE.value,
            )
        )
        with self._db.session_scope() as session:
            if session.get(Course, course_id) is None:
                raise CourseNotFoundError(f"Course with id '{course_id}' not found")

            active = set(session.execute(active_ids).scalars())
            cached = set(
                session.execute(
                    select(RosterEntry.student_id).where(RosterEntry.course_id == course_id)
                ).scalars()
            )

            session.execute(
                delete(RosterEntry)
                .where(
                    RosterEntry.course_id == course_id,
                    RosterEntry.student_id.not_in(active_ids.scalar_subquery()),
                )
                .execution_options(synchronize_session=False)
            )
            source = select(
                literal(course_id), Enrollment.student_id, literal(utcnow(), DateTime)
            ).where(
                Enrollment.course_id == course_id,
                Enrollment.status == EnrollmentStatus.ACTIVE.value,
            )
            session.execute(
                sqlite_insert(RosterEntry)
                .from_select(["course_id", "student_id", "added_at"], source)
                .on_conflict_do_nothing(index_elements=["course_id", "student_id"])
            )
            session.commit()

        added = sorted(active - cached)
        removed = sorted(cached - active)
        if added or removed:
            logger.warning(
                "Roster for course %s rebuilt: added=%s removed=%s", course_id, added, removed
            )
        return added, removed

    def list_course_ids(self) -> list[str]:
        """Ids of every course, oldest first."""
        with self._db.session_scope() as session:
            stmt = select(Course.id).order_by(Course.created_at, Course.id)
            return list(session.execute(stmt).scalars().all())

    # --- Analytics Queries ---

    def course_roster_sizes(self, instructor_id: str) -> list[tuple[str, str, str, int]]:
        """Roster size of each course owned by an instructor.

        Returns:
            (course_id, title, category, roster_size) ordered by created_at
        """
        with self._db.session_scope() as session:
            stmt = (
                select(
                    Course.id,
                    Course.title,
                    Course.category,
                    func.count(RosterEntry.student_id),
                )
                .outerjoin(RosterEntry, RosterEntry.course_id == Course.id)
                .where(Course.instructor_id == instructor_id)
                .group_by(Course.id, Course.title, Course.category, Course.created_at)
                .order_by(Course.created_at, Course.id)
            )
            return [
                (course_id, title, category, int(size))
                for course_id, title, category, size in session.execute(stmt).all()
            ]

    def count_active_enrollments_by_day(
        self,
        course_ids: Iterable[str],
        since: datetime,
        until: datetime,
    ) -> dict[str, int]:
        """Count active enrollments per UTC calendar day.

        Args:
            course_ids: Courses to include
            since: Inclusive lower bound on enrollment_date (naive UTC)
            until: Inclusive upper bound on enrollment_date (naive UTC)

        Returns:
            Mapping of "YYYY-MM-DD" to count, only for days with enrollments
        """
        ids = list(course_ids)
        if not ids:
            return {}

        day = func.date(Enrollment.enrollment_date)
        with self._db.session_scope() as session:
            stmt = (
                select(day, func.count(Enrollment.id))
                .where(
                    Enrollment.course_id.in_(ids),
                    Enrollment.status == EnrollmentStatus.ACTIVE.value,
                    Enrollment.enrollment_date >= since,
                    Enrollment.enrollment_date <= until,
                )
                .group_by(day)
                .order_by(day)
            )
            return {str(date): int(count) for date, count in session.execute(stmt).all()}
