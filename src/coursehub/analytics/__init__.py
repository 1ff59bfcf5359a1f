"""Analytics package - instructor dashboard metrics."""

from coursehub.analytics.aggregator import AnalyticsAggregator
from coursehub.analytics.models import CourseMetrics, Dashboard

__all__ = ["AnalyticsAggregator", "CourseMetrics", "Dashboard"]
