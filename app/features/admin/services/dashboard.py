from collections import Counter
from datetime import datetime, timedelta, timezone

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.admin.schemas.dashboard import TimePeriod
from app.features.waitlist.models.waitlist import ReviewStatus, WaitlistEntry, WaitlistRole
from app.features.waitlist.services.waitlist import database_error

LOW_SCORE_MAX = 3
MID_SCORE_MAX = 6


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def period_bucket(created_at: datetime, period: TimePeriod) -> str:
    day = as_utc(created_at).date()
    if period == TimePeriod.WEEKLY:
        return (day - timedelta(days=day.weekday())).isoformat()
    if period == TimePeriod.MONTHLY:
        return day.replace(day=1).isoformat()
    return day.isoformat()


def period_window(period: TimePeriod, now: datetime) -> tuple[datetime, datetime]:
    if period == TimePeriod.DAILY:
        span = timedelta(days=7)
    elif period == TimePeriod.WEEKLY:
        span = timedelta(weeks=4)
    else:
        span = timedelta(days=180)
    current_start = now - span
    return current_start, current_start - span


class AdminDashboardService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _count(self, *conditions) -> int:
        try:
            count = await self.db.scalar(select(func.count(WaitlistEntry.id)).where(*conditions))
        except SQLAlchemyError as exc:
            raise database_error(exc, "counting waitlist entries")
        return count or 0

    async def get_dashboard_stats(self) -> dict:
        today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)

        by_status = {
            review_status.value: await self._count(WaitlistEntry.review_status == review_status)
            for review_status in ReviewStatus
        }

        try:
            average_score = await self.db.scalar(
                select(func.avg(WaitlistEntry.vendor_priority_score)).where(
                    WaitlistEntry.role == WaitlistRole.VENDOR
                )
            )
        except SQLAlchemyError as exc:
            raise database_error(exc, "averaging vendor scores")

        return {
            "total_signups": await self._count(),
            "consumers": await self._count(WaitlistEntry.role == WaitlistRole.CONSUMER),
            "vendors": await self._count(WaitlistEntry.role == WaitlistRole.VENDOR),
            **by_status,
            "todays_signups": await self._count(WaitlistEntry.created_at >= today),
            "referred_signups": await self._count(WaitlistEntry.referred_by.isnot(None)),
            "average_vendor_score": round(float(average_score or 0), 2),
        }

    async def get_score_distribution(self) -> dict:
        is_vendor = WaitlistEntry.role == WaitlistRole.VENDOR
        total_vendors = await self._count(is_vendor)

        if total_vendors == 0:
            return {
                "low_percentage": 0.0,
                "mid_percentage": 0.0,
                "high_percentage": 0.0,
                "total_vendors": 0,
                "low_count": 0,
                "mid_count": 0,
                "high_count": 0,
            }

        score = WaitlistEntry.vendor_priority_score
        low_count = await self._count(is_vendor, score <= LOW_SCORE_MAX)
        mid_count = await self._count(is_vendor, score > LOW_SCORE_MAX, score <= MID_SCORE_MAX)
        high_count = await self._count(is_vendor, score > MID_SCORE_MAX)

        return {
            "low_percentage": round((low_count / total_vendors) * 100, 2),
            "mid_percentage": round((mid_count / total_vendors) * 100, 2),
            "high_percentage": round((high_count / total_vendors) * 100, 2),
            "total_vendors": total_vendors,
            "low_count": low_count,
            "mid_count": mid_count,
            "high_count": high_count,
        }

    async def _signup_times(self, start: datetime, end: datetime) -> list[datetime]:
        try:
            result = await self.db.execute(
                select(WaitlistEntry.created_at)
                .where(WaitlistEntry.created_at >= start)
                .where(WaitlistEntry.created_at < end)
            )
        except SQLAlchemyError as exc:
            raise database_error(exc, "loading signup activity")
        return [created_at for created_at in result.scalars().all() if created_at is not None]

    async def get_signup_activity_chart(self, period: TimePeriod = TimePeriod.WEEKLY) -> dict:
        """
        Signups per day, week (starting Monday) or month over the recent window,
        compared with the window of the same length just before it.
        """
        now = datetime.now(timezone.utc)
        current_start, previous_start = period_window(period, now)

        # date_trunc is Postgres-only, so bucket in Python
        current_times = await self._signup_times(current_start, now + timedelta(seconds=1))
        previous_times = await self._signup_times(previous_start, current_start)

        buckets = Counter(period_bucket(created_at, period) for created_at in current_times)
        current_total = len(current_times)
        previous_total = len(previous_times)

        percentage_change = 0.0
        if previous_total > 0:
            percentage_change = round(((current_total - previous_total) / previous_total) * 100, 2)

        return {
            "period": period.value,
            "chart_data": [
                {"period": bucket, "signup_count": buckets[bucket]} for bucket in sorted(buckets)
            ],
            "total_signups": current_total,
            "previous_total": previous_total,
            "percentage_change": percentage_change,
            "comparison_period": f"{previous_start.date()} to {current_start.date()}",
            "current_period": f"{current_start.date()} to {now.date()}",
        }

    async def get_recent_signups(self, limit: int = 5) -> list[dict]:
        try:
            result = await self.db.execute(
                select(WaitlistEntry)
                .order_by(desc(WaitlistEntry.created_at), desc(WaitlistEntry.id))
                .limit(limit)
            )
        except SQLAlchemyError as exc:
            raise database_error(exc, "loading recent signups")

        return [
            {
                "id": entry.id,
                "role": entry.role.value,
                "full_name": entry.full_name,
                "email": entry.email,
                "score": entry.score,
                "review_status": entry.review_status.value,
                "created_at": entry.created_at.isoformat() if entry.created_at else None,
            }
            for entry in result.scalars().all()
        ]

    async def get_comprehensive_dashboard(self, period: TimePeriod = TimePeriod.WEEKLY) -> dict:
        return {
            "dashboard_stats": await self.get_dashboard_stats(),
            "score_distribution": await self.get_score_distribution(),
            "signup_activity_chart": await self.get_signup_activity_chart(period),
            "recent_signups": await self.get_recent_signups(),
            "period": period.value,
        }
