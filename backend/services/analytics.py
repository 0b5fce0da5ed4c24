"""
Analytics Service
=================
Public analytics operations over the chat event log.

Each operation resolves the caller's module scope, fans out the event
reads, loads pricing and reference data, and hands the merged snapshot
to the reducers. Operations never raise to the caller: any failure is
logged, counted and turned into the empty result of the operation.
"""

import asyncio
import functools
from collections.abc import Callable
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, TypeVar

import structlog

from backend.config import settings
from backend.core.pricing import CostModel
from backend.metrics import FETCH_FAILURES, OPERATION_FAILURES, OPERATION_SECONDS
from backend.schemas.analytics import (
    ConversationMetrics,
    CostAnalysis,
    DashboardSummary,
    FaqItem,
    FrequentlyAskedQuestionsResponse,
    FrequentQuestion,
    FrequentQuestionSummary,
    HourlyUsageResponse,
    ModuleComparisonResponse,
    ModuleSummary,
    ResponseQuality,
    TodayCost,
    TopActiveStudentsResponse,
    TranscriptionCosts,
    UnifiedDashboard,
    UsageStats,
    UsageTrendsResponse,
)
from backend.schemas.events import Caller, ChatMessageEvent
from backend.schemas.filters import (
    AnalyticsFilter,
    DashboardFilter,
    ModuleComparisonFilter,
    TopStudentsFilter,
)
from backend.services import aggregation
from backend.services.dashboard import (
    DashboardComposer,
    day_range,
    period_range,
    previous_range,
    start_of_day,
    today_cost,
)
from backend.services.engagement import ConversationEngagementAnalyzer
from backend.services.faq import FAQClusterer
from backend.services.fetch import EventFetchOrchestrator
from backend.services.quality import ResponseQualityGrader
from backend.services.scope import AuthorizationScopeResolver, HierarchySnapshot
from backend.sources.base import EventStore, HierarchySource, PricingSource, TranscriptionSource

logger = structlog.get_logger()

T = TypeVar("T")

FAQ_VARIATIONS_SHOWN = 5
FAQ_TOP_CATEGORIES = 5
MODULE_FAQ_QUERY_LIMIT = 5000


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def analytics_operation(empty: Callable[[], T]) -> Callable:
    """
    Time an operation and turn any failure into its empty result.

    The wrapped coroutine must take the caller as its first argument.
    Cancellation is not caught.
    """

    def decorator(func: Callable) -> Callable:
        operation = func.__name__

        @functools.wraps(func)
        async def wrapper(self, caller: Caller, *args, **kwargs):
            with OPERATION_SECONDS.labels(operation=operation).time():
                try:
                    return await func(self, caller, *args, **kwargs)
                except Exception as e:
                    OPERATION_FAILURES.labels(operation=operation).inc()
                    logger.error(
                        "Analytics operation failed, returning empty result",
                        operation=operation,
                        user_id=caller.user_id,
                        role=caller.role,
                        error=str(e),
                    )
                    return empty()

        return wrapper

    return decorator


class AnalyticsService:
    """Read-only analytics over chat events, scoped per caller."""

    def __init__(
        self,
        event_store: EventStore,
        hierarchy: HierarchySource,
        pricing: PricingSource,
        transcriptions: TranscriptionSource,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.fetcher = EventFetchOrchestrator(event_store)
        self.scope = AuthorizationScopeResolver(hierarchy)
        self.pricing = pricing
        self.transcriptions = transcriptions
        self.clock = clock or utc_now

    # -------------------------------------------------------------------
    # Cost
    # -------------------------------------------------------------------

    @analytics_operation(CostAnalysis)
    async def get_cost_analysis(self, caller: Caller, filters: AnalyticsFilter) -> CostAnalysis:
        """Cost by provider, model, module, course and university, plus transcriptions."""
        return await self._cost_analysis(caller, filters)

    @analytics_operation(TodayCost)
    async def get_today_cost(
        self,
        caller: Caller,
        filters: AnalyticsFilter,
        *,
        snapshot: Optional[HierarchySnapshot] = None,
    ) -> TodayCost:
        """
        Cost of the current UTC day with a full-day projection.

        The projection only kicks in after projection_min_hours of the
        day have elapsed; the comparison to yesterday is omitted when
        yesterday cost nothing. Both days are resolved against the
        same hierarchy snapshot.
        """
        now = self.clock()
        today = start_of_day(now)
        if snapshot is None:
            snapshot = await self.scope.load_snapshot()

        today_analysis, yesterday_analysis = await asyncio.gather(
            self._cost_analysis(caller, filters.with_range(*day_range(today)), snapshot),
            self._cost_analysis(caller, filters.with_range(*day_range(today - timedelta(days=1))), snapshot),
        )
        return today_cost(now, today_analysis, yesterday_analysis)

    # -------------------------------------------------------------------
    # Usage
    # -------------------------------------------------------------------

    @analytics_operation(UsageStats)
    async def get_today_usage_stats(
        self,
        caller: Caller,
        filters: AnalyticsFilter,
        *,
        snapshot: Optional[HierarchySnapshot] = None,
    ) -> UsageStats:
        today = start_of_day(self.clock())
        day_filters = filters.with_range(*day_range(today))

        events, cost_model = await asyncio.gather(
            self._fetch_scoped(caller, day_filters, settings.daily_query_limit, snapshot),
            self._cost_model(),
        )
        return aggregation.usage_stats(events, cost_model, day=today.date())

    @analytics_operation(UsageTrendsResponse)
    async def get_usage_trends(
        self,
        caller: Caller,
        filters: AnalyticsFilter,
        *,
        snapshot: Optional[HierarchySnapshot] = None,
    ) -> UsageTrendsResponse:
        """Daily usage rows with growth and trend direction."""
        events, cost_model = await asyncio.gather(
            self._fetch_scoped(caller, filters, snapshot=snapshot),
            self._cost_model(),
        )
        return aggregation.usage_trends(events, cost_model)

    @analytics_operation(HourlyUsageResponse)
    async def get_hourly_usage(
        self,
        caller: Caller,
        filters: AnalyticsFilter,
        day: Optional[date] = None,
    ) -> HourlyUsageResponse:
        """Per-hour activity for one UTC day (today by default)."""
        day = day or self.clock().date()
        start = datetime.combine(day, time.min, tzinfo=timezone.utc)

        events = await self._fetch_scoped(
            caller,
            filters.with_range(*day_range(start)),
            settings.daily_query_limit,
        )
        return aggregation.hourly_usage(events, day)


    @analytics_operation(TopActiveStudentsResponse)
    async def get_top_active_students(
        self, caller: Caller, filters: TopStudentsFilter
    ) -> TopActiveStudentsResponse:
        events = await self._fetch_scoped(caller, filters)
        return aggregation.top_active_students(events, filters.limit)

    # -------------------------------------------------------------------
    # Engagement and quality
    # -------------------------------------------------------------------

    @analytics_operation(ConversationMetrics)
    async def get_conversation_engagement(
        self, caller: Caller, filters: AnalyticsFilter
    ) -> ConversationMetrics:
        events = await self._fetch_scoped(caller, filters)
        return ConversationEngagementAnalyzer().analyze(events)

    @analytics_operation(ResponseQuality)
    async def get_response_quality(self, caller: Caller, filters: AnalyticsFilter) -> ResponseQuality:
        events = await self._fetch_scoped(caller, filters)
        return ResponseQualityGrader().grade(events)

    # -------------------------------------------------------------------
    # Modules
    # -------------------------------------------------------------------

    @analytics_operation(ModuleComparisonResponse)
    async def get_module_comparison(
        self, caller: Caller, filters: ModuleComparisonFilter
    ) -> ModuleComparisonResponse:
        """
        Compare the requested modules side by side.

        Modules outside the caller's scope are silently dropped.
        """
        snapshot = await self.scope.load_snapshot()
        authorized = set(await self.scope.resolve(caller, AnalyticsFilter(), snapshot))
        requested = [m for m in dict.fromkeys(filters.module_ids) if m in authorized]
        if not requested:
            return ModuleComparisonResponse()

        events_by_module, cost_model = await asyncio.gather(
            self.fetcher.fetch_by_module(requested, filters.start_date, filters.end_date),
            self._cost_model(),
        )
        return aggregation.module_comparison(events_by_module, cost_model, snapshot)

    @analytics_operation(ModuleSummary)
    async def get_module_summary(
        self,
        caller: Caller,
        module_id: int,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> ModuleSummary:
        filters = AnalyticsFilter(module_id=module_id, start_date=start_date, end_date=end_date)
        events = await self._fetch_scoped(caller, filters)
        return aggregation.module_summary(module_id, events)

    # -------------------------------------------------------------------
    # Dashboard
    # -------------------------------------------------------------------

    @analytics_operation(DashboardSummary)
    async def get_dashboard_summary(
        self,
        caller: Caller,
        filters: DashboardFilter,
        *,
        snapshot: Optional[HierarchySnapshot] = None,
    ) -> DashboardSummary:
        """Period overview with growth against the preceding equal-length period."""
        start, end = period_range(filters.period, self.clock())
        previous_start, previous_end = previous_range(start, end)

        if snapshot is None:
            snapshot = await self.scope.load_snapshot()
        module_ids = await self.scope.resolve(
            caller,
            AnalyticsFilter(start_date=start, end_date=end, university_id=filters.university_id),
            snapshot,
        )

        limit = settings.daily_query_limit
        current, previous, cost_model = await asyncio.gather(
            self.fetcher.fetch(module_ids, start, end, limit),
            self.fetcher.fetch(module_ids, previous_start, previous_end, limit),
            self._cost_model(),
        )
        composer = DashboardComposer(cost_model, snapshot)
        return composer.summary(filters.period, (start, end), current, previous)

    @analytics_operation(UnifiedDashboard)
    async def get_unified_dashboard(self, caller: Caller, filters: DashboardFilter) -> UnifiedDashboard:
        """
        Summary, trends, today's usage and today's cost in one call.

        Every section is resolved against one hierarchy snapshot.
        """
        start, end = period_range(filters.period, self.clock())
        analytics_filters = AnalyticsFilter(
            start_date=start, end_date=end, university_id=filters.university_id
        )
        snapshot = await self.scope.load_snapshot()

        summary, trends, today_usage, cost = await asyncio.gather(
            self.get_dashboard_summary(caller, filters, snapshot=snapshot),
            self.get_usage_trends(caller, analytics_filters, snapshot=snapshot),
            self.get_today_usage_stats(caller, analytics_filters, snapshot=snapshot),
            self.get_today_cost(caller, analytics_filters, snapshot=snapshot),
        )
        return UnifiedDashboard(summary=summary, trends=trends, today_usage=today_usage, today_cost=cost)

    # -------------------------------------------------------------------
    # Frequently asked questions
    # -------------------------------------------------------------------

    @analytics_operation(FrequentlyAskedQuestionsResponse)
    async def get_frequently_asked_questions(
        self, caller: Caller, filters: AnalyticsFilter
    ) -> FrequentlyAskedQuestionsResponse:
        """Most common question clusters across the caller's modules."""
        events = await self._fetch_scoped(caller, filters)
        clusters = FAQClusterer().top_clusters(events, settings.faq_max_questions)

        questions = [
            FrequentQuestion(
                question=c.representative_question,
                count=c.count,
                percentage=c.count / len(events) * 100,
                similar_questions=c.variations[:FAQ_VARIATIONS_SHOWN],
                category=c.category,
                first_asked_at=c.first_asked_at,
                last_asked_at=c.last_asked_at,
            )
            for c in clusters
        ]

        categories = aggregation.group_by(questions, lambda q: q.category)
        top_categories = aggregation.top_n(categories.items(), key=lambda item: len(item[1]), limit=FAQ_TOP_CATEGORIES)
        students = aggregation.distinct_students(events)

        return FrequentlyAskedQuestionsResponse(
            questions=questions,
            summary=FrequentQuestionSummary(
                total_unique_questions=len(questions),
                total_questions=len(events),
                average_questions_per_student=len(events) / students if students else 0.0,
                top_categories=[category for category, _ in top_categories],
            ),
        )

    @analytics_operation(list)
    async def generate_module_faq(
        self,
        caller: Caller,
        module_id: int,
        min_occurrences: int = 1,
        max_results: int = 10,
    ) -> list[FaqItem]:
        """Representative question/answer pairs for one module."""
        events = await self._fetch_scoped(
            caller, AnalyticsFilter(module_id=module_id), MODULE_FAQ_QUERY_LIMIT
        )
        clusters = FAQClusterer(min_occurrences=min_occurrences).top_clusters(events, max_results)
        return [
            FaqItem(
                question=c.representative_question,
                answer=c.representative_answer,
                occurrences=c.count,
                similarity_score=1.0,
            )
            for c in clusters
        ]

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------

    async def _cost_analysis(
        self,
        caller: Caller,
        filters: AnalyticsFilter,
        snapshot: Optional[HierarchySnapshot] = None,
    ) -> CostAnalysis:
        if snapshot is None:
            snapshot = await self.scope.load_snapshot()
        module_ids = await self.scope.resolve(caller, filters, snapshot)
        if not module_ids:
            return CostAnalysis()

        events, cost_model, transcriptions = await asyncio.gather(
            self.fetcher.fetch(module_ids, filters.start_date, filters.end_date),
            self._cost_model(),
            self._transcription_costs(module_ids, filters.start_date, filters.end_date),
        )
        analysis = aggregation.cost_analysis(events, cost_model, snapshot)
        return aggregation.merge_transcription_costs(analysis, transcriptions)

    async def _fetch_scoped(
        self,
        caller: Caller,
        filters: AnalyticsFilter,
        limit: Optional[int] = None,
        snapshot: Optional[HierarchySnapshot] = None,
    ) -> list[ChatMessageEvent]:
        module_ids = await self.scope.resolve(caller, filters, snapshot)
        return await self.fetcher.fetch(module_ids, filters.start_date, filters.end_date, limit)

    async def _cost_model(self) -> CostModel:
        return CostModel(await self.pricing.get_active_models())

    async def _transcription_costs(
        self,
        module_ids: list[int],
        start_date: Optional[datetime],
        end_date: Optional[datetime],
    ) -> TranscriptionCosts:
        """Transcription totals; a failed lookup counts as no transcription spend."""
        try:
            records = await self.transcriptions.get_completed_transcriptions(module_ids, start_date, end_date)
        except Exception as e:
            FETCH_FAILURES.labels(source="transcriptions").inc()
            logger.error(
                "Transcription cost lookup failed, reporting zero",
                module_count=len(module_ids),
                error=str(e),
            )
            return TranscriptionCosts()
        return aggregation.transcription_costs(records)
