"""
Dashboard Composition
=====================
Period-over-period summaries and today's cost projection.
"""

import calendar
from collections.abc import Sequence
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from backend.config import settings
from backend.core.pricing import COST_QUANTUM, CostModel
from backend.core.statistics import growth_percentage
from backend.schemas.analytics import (
    CostAnalysis,
    CostBreakdown,
    CostComparison,
    DashboardSummary,
    DateRange,
    Growth,
    HealthIndicators,
    Overview,
    TodayCost,
    TopCostModule,
    TopModule,
    TopPerformers,
    TopUniversity,
)
from backend.schemas.events import ChatMessageEvent
from backend.schemas.filters import DashboardPeriod
from backend.services.aggregation import (
    average_response_time,
    distinct_students,
    group_by,
    top_n,
)
from backend.services.quality import grade_for
from backend.services.scope import HierarchySnapshot

ZERO = Decimal("0")
HOURS_PER_DAY = Decimal("24")

PERIOD_MONTHS = {"month": 1, "quarter": 3, "year": 12}

SYSTEM_HEALTH = {"A": "excellent", "B": "good", "C": "fair"}

# Event-store bounds are inclusive; windows end one tick before the next begins
BOUND_RESOLUTION = timedelta(milliseconds=1)


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def day_range(day_start: datetime) -> tuple[datetime, datetime]:
    """The calendar day beginning at day_start, excluding the next midnight."""
    return day_start, day_start + timedelta(days=1) - BOUND_RESOLUTION


def shift_months(value: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def period_range(period: DashboardPeriod, now: datetime) -> tuple[datetime, datetime]:
    """
    Current-period bounds ending now.

    "today" is the current UTC calendar day; the rest are trailing
    windows (7 days, or 1/3/12 calendar months).
    """
    if period == "today":
        return day_range(start_of_day(now))
    if period == "week":
        return now - timedelta(days=7), now
    return shift_months(now, -PERIOD_MONTHS.get(period, 1)), now


def previous_range(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    """The equal-length window immediately before start, not overlapping it."""
    return start - (end - start), start - BOUND_RESOLUTION


def system_health(average_response_ms: float) -> str:
    return SYSTEM_HEALTH.get(grade_for(average_response_ms), "poor")


def project_daily(observed: Decimal, elapsed_hours: float, min_hours: Optional[float] = None) -> Decimal:
    """
    Linear full-day projection of a partial-day amount.

    Before min_hours of the day have elapsed the observed amount is
    returned unchanged.
    """
    min_hours = settings.projection_min_hours if min_hours is None else min_hours
    if elapsed_hours < min_hours or elapsed_hours <= 0:
        return observed
    projected = observed / Decimal(str(elapsed_hours)) * HOURS_PER_DAY
    return projected.quantize(COST_QUANTUM)


def today_cost(
    now: datetime,
    today: CostAnalysis,
    yesterday: CostAnalysis,
    min_hours: Optional[float] = None,
) -> TodayCost:
    """Today's cost, projected to a full day and compared to yesterday."""
    elapsed_hours = (now - start_of_day(now)).total_seconds() / 3600

    comparison = None
    if yesterday.estimated_cost_usd > 0:
        change = today.estimated_cost_usd - yesterday.estimated_cost_usd
        comparison = CostComparison(
            percentage_change=float(change / yesterday.estimated_cost_usd * 100),
            absolute_change=change,
        )

    return TodayCost(
        date=now.date(),
        total_messages=today.total_messages,
        total_tokens=today.total_tokens,
        estimated_cost_usd=today.estimated_cost_usd,
        cost_by_provider={k: v.estimated_cost_usd for k, v in today.cost_by_provider.items()},
        projected_daily_cost=project_daily(today.estimated_cost_usd, elapsed_hours, min_hours),
        compared_to_yesterday=comparison,
        transcription_cost_usd=today.transcription_cost_usd,
        transcription_video_count=today.transcription_video_count,
        projected_daily_transcription_cost=project_daily(today.transcription_cost_usd, elapsed_hours, min_hours),
    )


class DashboardComposer:
    """Assemble dashboard objects from already-fetched event snapshots."""

    def __init__(self, cost_model: CostModel, snapshot: HierarchySnapshot):
        self.cost_model = cost_model
        self.snapshot = snapshot

    def summary(
        self,
        period: DashboardPeriod,
        date_range: tuple[datetime, datetime],
        current: Sequence[ChatMessageEvent],
        previous: Sequence[ChatMessageEvent],
    ) -> DashboardSummary:
        """Current-period overview with growth against the previous period."""
        start, end = date_range
        current_cost = self.cost_model.total_cost(current)
        previous_cost = self.cost_model.total_cost(previous)

        modules_in_use = {e.module_id for e in current}
        courses = {self.snapshot.course_of(m) for m in modules_in_use} - {None}
        universities = {self.snapshot.university_of(m) for m in modules_in_use} - {None}
        average_ms = average_response_time(current)

        return DashboardSummary(
            period=period,
            date_range=DateRange(start=start, end=end),
            overview=Overview(
                total_messages=len(current),
                total_cost_usd=current_cost,
                unique_students=distinct_students(current),
                active_modules=len(modules_in_use),
                active_courses=len(courses),
                active_universities=len(universities),
            ),
            growth=Growth(
                messages_growth=growth_percentage(len(previous), len(current)),
                student_growth=growth_percentage(distinct_students(previous), distinct_students(current)),
                cost_growth=growth_percentage(previous_cost, current_cost),
            ),
            top_performers=TopPerformers(
                most_active_module=self._most_active_module(current),
                most_active_university=self._most_active_university(current),
            ),
            cost_breakdown=CostBreakdown(
                by_provider={
                    provider: self.cost_model.total_cost(events)
                    for provider, events in group_by(current, lambda e: e.provider.lower()).items()
                },
                top_cost_module=self._top_cost_module(current),
            ),
            health_indicators=HealthIndicators(
                system_health=system_health(average_ms),
                average_response_time=average_ms,
            ),
        )

    def _most_active_module(self, events: Sequence[ChatMessageEvent]) -> Optional[TopModule]:
        ranked = top_n(group_by(events, lambda e: e.module_id).items(), key=lambda item: len(item[1]), limit=1)
        if not ranked:
            return None
        module_id, module_events = ranked[0]
        return TopModule(id=module_id, name=self.snapshot.module_name(module_id), messages=len(module_events))

    def _most_active_university(self, events: Sequence[ChatMessageEvent]) -> Optional[TopUniversity]:
        resolved = [e for e in events if self.snapshot.university_of(e.module_id) is not None]
        universities = group_by(resolved, lambda e: self.snapshot.university_of(e.module_id))
        ranked = top_n(universities.items(), key=lambda item: len(item[1]), limit=1)
        if not ranked:
            return None
        university_id, university_events = ranked[0]
        return TopUniversity(id=university_id, messages=len(university_events))

    def _top_cost_module(self, events: Sequence[ChatMessageEvent]) -> Optional[TopCostModule]:
        costs = {
            module_id: self.cost_model.total_cost(module_events)
            for module_id, module_events in group_by(events, lambda e: e.module_id).items()
        }
        ranked = top_n(costs.items(), key=lambda item: item[1], limit=1)
        if not ranked:
            return None
        module_id, cost = ranked[0]
        return TopCostModule(id=module_id, name=self.snapshot.module_name(module_id), cost=cost)
