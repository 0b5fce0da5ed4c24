"""
Analytics Endpoints
===================
Read-only analytics over the chat event log, scoped to the caller.

Every endpoint answers 200 with a possibly-zeroed body; failures inside
the analytics engine are logged and degraded, not surfaced as errors.
"""

from datetime import date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from backend.api.deps import AnalyticsServiceDep, CallerDep
from backend.schemas.analytics import (
    ConversationMetrics,
    CostAnalysis,
    DashboardSummary,
    FaqItem,
    FrequentlyAskedQuestionsResponse,
    HourlyUsageResponse,
    ModuleComparisonResponse,
    ModuleSummary,
    ResponseQuality,
    TodayCost,
    TopActiveStudentsResponse,
    UnifiedDashboard,
    UsageStats,
    UsageTrendsResponse,
)
from backend.schemas.filters import (
    AnalyticsFilter,
    DashboardFilter,
    DashboardPeriod,
    ModuleComparisonFilter,
    TopStudentsFilter,
)

router = APIRouter()


def get_analytics_filter(
    start_date: Annotated[datetime | None, Query(description="Range start (ISO 8601, UTC if naive)")] = None,
    end_date: Annotated[datetime | None, Query(description="Range end (ISO 8601, UTC if naive)")] = None,
    university_id: Annotated[int | None, Query(description="Restrict to one university")] = None,
    course_id: Annotated[int | None, Query(description="Restrict to one course")] = None,
    module_id: Annotated[int | None, Query(description="Restrict to one module")] = None,
) -> AnalyticsFilter:
    return AnalyticsFilter(
        start_date=start_date,
        end_date=end_date,
        university_id=university_id,
        course_id=course_id,
        module_id=module_id,
    )


def get_dashboard_filter(
    period: Annotated[DashboardPeriod, Query(description="Reporting period")] = "month",
    university_id: Annotated[int | None, Query(description="Restrict to one university")] = None,
) -> DashboardFilter:
    return DashboardFilter(period=period, university_id=university_id)


FilterDep = Annotated[AnalyticsFilter, Depends(get_analytics_filter)]
DashboardFilterDep = Annotated[DashboardFilter, Depends(get_dashboard_filter)]


# ---------------------------------------------------------------------------
# Cost
# ---------------------------------------------------------------------------


@router.get(
    "/costs",
    response_model=CostAnalysis,
    summary="Cost analysis",
    description="Estimated cost by provider, model, module, course and university, plus transcription spend",
)
async def get_cost_analysis(
    caller: CallerDep,
    service: AnalyticsServiceDep,
    filters: FilterDep,
) -> CostAnalysis:
    return await service.get_cost_analysis(caller, filters)


@router.get(
    "/costs/today",
    response_model=TodayCost,
    summary="Today's cost",
    description="Cost of the current UTC day with a full-day projection and comparison to yesterday",
)
async def get_today_cost(
    caller: CallerDep,
    service: AnalyticsServiceDep,
    filters: FilterDep,
) -> TodayCost:
    return await service.get_today_cost(caller, filters)


# ---------------------------------------------------------------------------
# Usage
# ---------------------------------------------------------------------------


@router.get(
    "/usage/today",
    response_model=UsageStats,
    summary="Today's usage",
)
async def get_today_usage(
    caller: CallerDep,
    service: AnalyticsServiceDep,
    filters: FilterDep,
) -> UsageStats:
    return await service.get_today_usage_stats(caller, filters)


@router.get(
    "/usage/trends",
    response_model=UsageTrendsResponse,
    summary="Daily usage trends",
    description="One row per day with activity, plus growth rate and trend direction",
)
async def get_usage_trends(
    caller: CallerDep,
    service: AnalyticsServiceDep,
    filters: FilterDep,
) -> UsageTrendsResponse:
    return await service.get_usage_trends(caller, filters)


@router.get(
    "/usage/hourly",
    response_model=HourlyUsageResponse,
    summary="Hourly usage",
    description="Per-hour activity for one UTC day, defaulting to today",
)
async def get_hourly_usage(
    caller: CallerDep,
    service: AnalyticsServiceDep,
    filters: FilterDep,
    day: Annotated[date | None, Query(alias="date", description="Day (YYYY-MM-DD)")] = None,
) -> HourlyUsageResponse:
    return await service.get_hourly_usage(caller, filters, day)


# ---------------------------------------------------------------------------
# Students, engagement and quality
# ---------------------------------------------------------------------------


@router.get(
    "/students/top",
    response_model=TopActiveStudentsResponse,
    summary="Most active students",
)
async def get_top_active_students(
    caller: CallerDep,
    service: AnalyticsServiceDep,
    filters: FilterDep,
    limit: Annotated[int, Query(ge=1, le=100, description="Number of students")] = 10,
) -> TopActiveStudentsResponse:
    top_filters = TopStudentsFilter(**filters.model_dump(), limit=limit)
    return await service.get_top_active_students(caller, top_filters)


@router.get(
    "/engagement/conversations",
    response_model=ConversationMetrics,
    summary="Conversation engagement",
)
async def get_conversation_engagement(
    caller: CallerDep,
    service: AnalyticsServiceDep,
    filters: FilterDep,
) -> ConversationMetrics:
    return await service.get_conversation_engagement(caller, filters)


@router.get(
    "/performance/response-quality",
    response_model=ResponseQuality,
    summary="Response quality",
    description="Response-time percentiles, distribution and performance grade",
)
async def get_response_quality(
    caller: CallerDep,
    service: AnalyticsServiceDep,
    filters: FilterDep,
) -> ResponseQuality:
    return await service.get_response_quality(caller, filters)


# ---------------------------------------------------------------------------
# Modules
# ---------------------------------------------------------------------------


@router.get(
    "/modules/compare",
    response_model=ModuleComparisonResponse,
    summary="Compare modules",
    description="Side-by-side metrics for the requested modules the caller may see",
)
async def get_module_comparison(
    caller: CallerDep,
    service: AnalyticsServiceDep,
    module_ids: Annotated[list[int], Query(description="Modules to compare")],
    start_date: Annotated[datetime | None, Query()] = None,
    end_date: Annotated[datetime | None, Query()] = None,
) -> ModuleComparisonResponse:
    filters = ModuleComparisonFilter(module_ids=module_ids, start_date=start_date, end_date=end_date)
    return await service.get_module_comparison(caller, filters)


@router.get(
    "/modules/{module_id}/summary",
    response_model=ModuleSummary,
    summary="Module summary",
)
async def get_module_summary(
    module_id: int,
    caller: CallerDep,
    service: AnalyticsServiceDep,
    start_date: Annotated[datetime | None, Query()] = None,
    end_date: Annotated[datetime | None, Query()] = None,
) -> ModuleSummary:
    return await service.get_module_summary(caller, module_id, start_date, end_date)


@router.get(
    "/modules/{module_id}/faq",
    response_model=list[FaqItem],
    summary="Module FAQ",
    description="Representative question and answer pairs from the module's chat history",
)
async def generate_module_faq(
    module_id: int,
    caller: CallerDep,
    service: AnalyticsServiceDep,
    min_occurrences: Annotated[int, Query(ge=1)] = 1,
    max_results: Annotated[int, Query(ge=1, le=100)] = 10,
) -> list[FaqItem]:
    return await service.generate_module_faq(caller, module_id, min_occurrences, max_results)


# ---------------------------------------------------------------------------
# Dashboard and questions
# ---------------------------------------------------------------------------


@router.get(
    "/dashboard/summary",
    response_model=DashboardSummary,
    summary="Dashboard summary",
    description="Period overview with growth against the preceding period",
)
async def get_dashboard_summary(
    caller: CallerDep,
    service: AnalyticsServiceDep,
    filters: DashboardFilterDep,
) -> DashboardSummary:
    return await service.get_dashboard_summary(caller, filters)


@router.get(
    "/dashboard/unified",
    response_model=UnifiedDashboard,
    summary="Unified dashboard",
    description="Summary, trends, today's usage and today's cost in one response",
)
async def get_unified_dashboard(
    caller: CallerDep,
    service: AnalyticsServiceDep,
    filters: DashboardFilterDep,
) -> UnifiedDashboard:
    return await service.get_unified_dashboard(caller, filters)


@router.get(
    "/questions/frequent",
    response_model=FrequentlyAskedQuestionsResponse,
    summary="Frequently asked questions",
)
async def get_frequently_asked_questions(
    caller: CallerDep,
    service: AnalyticsServiceDep,
    filters: FilterDep,
) -> FrequentlyAskedQuestionsResponse:
    return await service.get_frequently_asked_questions(caller, filters)
