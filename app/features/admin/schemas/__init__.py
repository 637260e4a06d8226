from .dashboard import (
    ChartDataPoint,
    ScoreDistributionResponse,
    SignupActivityChartResponse,
    TimePeriod,
    WaitlistStatsResponse,
)
from .review import ReviewUpdateRequest, WaitlistPage

__all__ = [
    "ChartDataPoint",
    "ScoreDistributionResponse",
    "SignupActivityChartResponse",
    "TimePeriod",
    "WaitlistStatsResponse",
    "ReviewUpdateRequest",
    "WaitlistPage",
]
