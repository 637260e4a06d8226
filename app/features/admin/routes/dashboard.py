from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.admin.schemas.dashboard import (
    ScoreDistributionResponse,
    SignupActivityChartResponse,
    TimePeriod,
    WaitlistStatsResponse,
)
from app.features.admin.services.dashboard import AdminDashboardService
from app.platform.db.session import get_db
from app.platform.response import api_response

router = APIRouter(prefix="/dashboard", tags=["Admin - Dashboard"])


@router.get(
    "/stats",
    summary="Get waitlist statistics",
)
async def get_dashboard_stats(db: AsyncSession = Depends(get_db)):
    """
    Get overall waitlist statistics including:
    - Signups per role
    - Entries per review status
    - Today's and referred signups
    """
    service = AdminDashboardService(db)
    stats = await service.get_dashboard_stats()

    return api_response(
        data=WaitlistStatsResponse(**stats),
        message="Dashboard statistics retrieved successfully",
    )


@router.get(
    "/score-distribution",
    summary="Get vendor priority score distribution",
)
async def get_score_distribution(db: AsyncSession = Depends(get_db)):
    """
    Get score distribution for vendor signups:
    - Low (0-3)
    - Mid (4-6)
    - High (7-10)
    """
    service = AdminDashboardService(db)
    distribution = await service.get_score_distribution()

    return api_response(
        data=ScoreDistributionResponse(**distribution),
        message="Score distribution retrieved successfully",
    )


@router.get(
    "/signup-activity",
    summary="Get signup activity chart data",
)
async def get_signup_activity_chart(
    period: TimePeriod = Query(
        TimePeriod.WEEKLY, description="Time period: daily, weekly, or monthly"
    ),
    db: AsyncSession = Depends(get_db),
):
    """
    Get signup counts for charts with time period filtering.
    Includes percentage change compared to previous period.
    """
    service = AdminDashboardService(db)
    chart_data = await service.get_signup_activity_chart(period)

    return api_response(
        data=SignupActivityChartResponse(**chart_data),
        message="Signup activity chart data retrieved successfully",
    )


@router.get(
    "/comprehensive",
    summary="Get comprehensive dashboard data",
)
async def get_comprehensive_dashboard(
    period: TimePeriod = Query(
        TimePeriod.WEEKLY, description="Time period: daily, weekly, or monthly"
    ),
    db: AsyncSession = Depends(get_db),
):
    """
    Get all dashboard data in a single unified endpoint.
    """
    service = AdminDashboardService(db)
    dashboard_data = await service.get_comprehensive_dashboard(period)

    return api_response(
        data=dashboard_data,
        message="Comprehensive dashboard data retrieved successfully",
    )
