"""
Filter Schemas
==============
Query parameters shared by the analytics operations.
"""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field, model_validator

DashboardPeriod = Literal["today", "week", "month", "quarter", "year"]


def as_utc(value: datetime | None) -> datetime | None:
    """Read naive datetimes as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class DateRangeFilter(BaseModel):
    """
    Optional date range.

    Missing bounds mean unbounded on that side. Naive datetimes are
    read as UTC and an inverted range is swapped rather than rejected.
    """

    start_date: datetime | None = None
    end_date: datetime | None = None

    @model_validator(mode="after")
    def normalize_range(self):
        start = as_utc(self.start_date)
        end = as_utc(self.end_date)
        if start is not None and end is not None and start > end:
            start, end = end, start
        self.start_date = start
        self.end_date = end
        return self


class AnalyticsFilter(DateRangeFilter):
    """Common filters narrowing the authorized module scope."""

    university_id: int | None = None
    course_id: int | None = None
    module_id: int | None = None

    def with_range(self, start: datetime | None, end: datetime | None) -> "AnalyticsFilter":
        """Copy of this filter over a different date range."""
        return AnalyticsFilter(
            start_date=start,
            end_date=end,
            university_id=self.university_id,
            course_id=self.course_id,
            module_id=self.module_id,
        )


class TopStudentsFilter(AnalyticsFilter):
    """Filters for the top-active-students ranking."""

    limit: int = Field(default=10, ge=1, le=100)


class ModuleComparisonFilter(DateRangeFilter):
    """Modules to compare side by side."""

    module_ids: list[int] = Field(default_factory=list)


class DashboardFilter(BaseModel):
    """Dashboard period selection."""

    period: DashboardPeriod = "month"
    university_id: int | None = None
