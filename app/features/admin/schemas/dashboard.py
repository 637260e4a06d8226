from enum import Enum
from typing import List

from pydantic import BaseModel


class TimePeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class WaitlistStatsResponse(BaseModel):
    total_signups: int
    consumers: int
    vendors: int
    pending: int
    reviewed: int
    approved: int
    rejected: int
    todays_signups: int
    referred_signups: int
    average_vendor_score: float


class ScoreDistributionResponse(BaseModel):
    low_percentage: float  # 0-3
    mid_percentage: float  # 4-6
    high_percentage: float  # 7-10
    total_vendors: int
    low_count: int
    mid_count: int
    high_count: int


class ChartDataPoint(BaseModel):
    period: str
    signup_count: int


class SignupActivityChartResponse(BaseModel):
    period: str
    chart_data: List[ChartDataPoint]
    total_signups: int
    previous_total: int
    percentage_change: float
    comparison_period: str
    current_period: str
