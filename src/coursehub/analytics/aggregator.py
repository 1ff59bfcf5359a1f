"""AnalyticsAggregator - instructor dashboard metrics."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from coursehub.access import Action
from coursehub.analytics.models import CourseMetrics, Dashboard

if TYPE_CHECKING:
    from coursehub.access import AuthorizationGate, Principal
    from coursehub.store import EntityStore

logger = logging.getLogger(__name__)

DEFAULT_TREND_WINDOW_DAYS = 30


def _as_naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(UTC).replace(tzinfo=None)


class AnalyticsAggregator:
    """Derives dashboard metrics from current store state. Read-only."""

    def __init__(
        self,
        store: EntityStore,
        gate: AuthorizationGate,
        trend_window_days: int = DEFAULT_TREND_WINDOW_DAYS,
    ) -> None:
        self.store = store
        self.gate = gate
        self.trend_window_days = trend_window_days

    def dashboard(self, principal: Principal | None, now: datetime | None = None) -> Dashboard:
        """Dashboard of the requesting instructor.

        Raises:
            NotAuthenticatedError: No principal.
            ForbiddenError: Principal is not an instructor.
        """
        instructor = self.gate.require(principal, Action.VIEW_ANALYTICS)
        return self.build_dashboard(instructor.user_id, now=now)

    def build_dashboard(self, instructor_id: str, now: datetime | None = None) -> Dashboard:
        """Compute the dashboard for an instructor.

        Args:
            instructor_id: Owner of the courses to aggregate.
            now: End of the trend window; defaults to the current UTC time.

        Returns:
            Dashboard; an instructor without courses gets zeros and empty collections.
        """
        until = _as_naive_utc(now) if now is not None else datetime.now(UTC).replace(tzinfo=None)
        since = until - timedelta(days=self.trend_window_days)

        courses = [
            CourseMetrics(
                id=course_id,
                title=title,
                category=category,
                enrolled_students=size,
            )
            for course_id, title, category, size in self.store.course_roster_sizes(instructor_id)
        ]
        trends = self.store.count_active_enrollments_by_day(
            [course.id for course in courses], since=since, until=until
        )

        dashboard = Dashboard(
            total_students=sum(course.enrolled_students for course in courses),
            total_courses=len(courses),
            enrollment_trends=trends,
            courses=courses,
        )
        logger.debug(
            "Dashboard for %s: %d course(s), %d student(s)",
            instructor_id,
            dashboard.total_courses,
            dashboard.total_students,
        )
        return dashboard
