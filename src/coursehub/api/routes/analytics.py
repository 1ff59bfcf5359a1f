"""Instructor analytics endpoints."""

from fastapi import APIRouter

from coursehub.api.dependencies import AnalyticsDep, RequiredPrincipalDep
from coursehub.api.models import DashboardResponse, dashboard_to_response

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    principal: RequiredPrincipalDep, analytics: AnalyticsDep
) -> DashboardResponse:
    """Dashboard metrics for the requesting instructor."""
    return dashboard_to_response(analytics.dashboard(principal))
