"""
Aggregation Pipelines
=====================
Stateless reducers over a merged chat event snapshot.

Every reducer accepts an empty collection and returns the zero form of
its result object.
"""

from collections.abc import Callable, Hashable, Iterable, Sequence
from datetime import date
from decimal import Decimal
from typing import Optional, TypeVar

from backend.core.pricing import COST_QUANTUM, CostModel
from backend.core.statistics import mean, median
from backend.schemas.analytics import (
    CostAnalysis,
    HourlyInsights,
    HourlyUsage,
    HourlyUsageResponse,
    ModelCost,
    ModuleComparisonDetail,
    ModuleComparisonInsights,
    ModuleComparisonResponse,
    ModuleSummary,
    PeakHour,
    ProviderCost,
    StudentSummary,
    TopActiveStudent,
    TopActiveStudentsResponse,
    TopPerformer,
    TranscriptionCosts,
    UsageStats,
    UsageSummary,
    UsageTrend,
    UsageTrendsResponse,
)
from backend.schemas.events import ChatMessageEvent, TranscriptionRecord
from backend.services.scope import HierarchySnapshot

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")

ZERO = Decimal("0")

# Hours counted as business hours, inclusive (UTC).
BUSINESS_HOURS = range(8, 19)

# Growth beyond +/- this percentage counts as a trend.
TREND_THRESHOLD = 10.0

# Cost per message above which a module is flagged as expensive.
HIGH_COST_PER_MESSAGE = Decimal("0.01")


def group_by(items: Iterable[T], key: Callable[[T], K]) -> dict[K, list[T]]:
    """Group items by key, keeping first-encounter order of groups."""
    groups: dict[K, list[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


def top_n(items: Iterable[T], key: Callable[[T], float], limit: int) -> list[T]:
    """Highest `limit` items by key; ties keep encounter order."""
    return sorted(items, key=key, reverse=True)[:max(limit, 0)]


def total_tokens(events: Iterable[ChatMessageEvent]) -> int:
    return sum(e.token_count or 0 for e in events)


def average_response_time(events: Iterable[ChatMessageEvent]) -> float:
    return mean([e.response_time_ms for e in events if e.response_time_ms is not None])


def distinct_students(events: Iterable[ChatMessageEvent]) -> int:
    return len({e.student_id for e in events})


def distinct_conversations(events: Iterable[ChatMessageEvent]) -> int:
    return len({e.conversation_id for e in events})


# ---------------------------------------------------------------------------
# Cost by dimension
# ---------------------------------------------------------------------------


def cost_analysis(
    events: Sequence[ChatMessageEvent],
    cost_model: CostModel,
    snapshot: HierarchySnapshot,
) -> CostAnalysis:
    """
    Cost attributed by provider, model, module, course and university.

    Events whose module does not resolve to a course (or course to a
    university) are left out of that dimension instead of being
    bucketed under a placeholder key.
    """
    if not events:
        return CostAnalysis()

    costs = [cost_model.message_cost(e) for e in events]

    by_provider: dict[str, ProviderCost] = {}
    by_model: dict[str, ModelCost] = {}
    by_module: dict[int, Decimal] = {}
    by_course: dict[int, Decimal] = {}
    by_university: dict[int, Decimal] = {}

    for event, cost in zip(events, costs):
        tokens = event.token_count or 0

        provider_key = event.provider.lower()
        provider = by_provider.get(provider_key)
        if provider is None:
            provider = by_provider[provider_key] = ProviderCost(provider=event.provider)
        provider.message_count += 1
        provider.total_tokens += tokens
        provider.estimated_cost_usd += cost

        model = by_model.get(event.model_used)
        if model is None:
            pricing = cost_model.get_model_pricing(event.model_used)
            model = by_model[event.model_used] = ModelCost(
                model=event.model_used,
                provider=event.provider,
                input_cost_per_1m=pricing.input_cost_per_1m if pricing else ZERO,
                output_cost_per_1m=pricing.output_cost_per_1m if pricing else ZERO,
            )
        model.message_count += 1
        model.total_tokens += tokens
        model.estimated_cost_usd += cost

        by_module[event.module_id] = by_module.get(event.module_id, ZERO) + cost

        course_id = snapshot.course_of(event.module_id)
        if course_id is not None:
            by_course[course_id] = by_course.get(course_id, ZERO) + cost

        university_id = snapshot.university_of(event.module_id)
        if university_id is not None:
            by_university[university_id] = by_university.get(university_id, ZERO) + cost

    return CostAnalysis(
        total_messages=len(events),
        total_tokens=total_tokens(events),
        estimated_cost_usd=sum(costs, ZERO),
        cost_by_provider=by_provider,
        cost_by_model=by_model,
        cost_by_module=by_module,
        cost_by_course=by_course,
        cost_by_university=by_university,
    )


def transcription_costs(records: Iterable[TranscriptionRecord]) -> TranscriptionCosts:
    """Totals over completed video transcriptions."""
    result = TranscriptionCosts()
    for record in records:
        result.total_cost_usd += record.cost_usd
        result.video_count += 1
        result.total_duration_seconds += record.duration_seconds
        result.cost_by_module[record.module_id] = (
            result.cost_by_module.get(record.module_id, ZERO) + record.cost_usd
        )
    return result


def merge_transcription_costs(analysis: CostAnalysis, costs: TranscriptionCosts) -> CostAnalysis:
    """Attach transcription spend as its own category of a cost analysis."""
    return analysis.model_copy(
        update={
            "transcription_cost_usd": costs.total_cost_usd,
            "transcription_video_count": costs.video_count,
            "transcription_total_duration_seconds": costs.total_duration_seconds,
            "transcription_cost_by_module": dict(costs.cost_by_module),
        }
    )


# ---------------------------------------------------------------------------
# Usage statistics
# ---------------------------------------------------------------------------


def peak_hour(events: Iterable[ChatMessageEvent]) -> Optional[PeakHour]:
    """Hour of day with the most messages; ties go to the first hour seen."""
    hours = group_by(events, lambda e: e.occurred_at.hour)
    ranked = top_n(hours.items(), key=lambda item: len(item[1]), limit=1)
    if not ranked:
        return None
    hour, hour_events = ranked[0]
    return PeakHour(hour=hour, message_count=len(hour_events))


def usage_stats(
    events: Sequence[ChatMessageEvent],
    cost_model: CostModel,
    day: Optional[date] = None,
) -> UsageStats:
    """Usage totals, per-provider/model message counts and peak hour."""
    if not events:
        return UsageStats(date=day)

    return UsageStats(
        date=day,
        total_messages=len(events),
        unique_students=distinct_students(events),
        unique_conversations=distinct_conversations(events),
        active_modules=len({e.module_id for e in events}),
        total_tokens=total_tokens(events),
        average_response_time=average_response_time(events),
        estimated_cost_usd=cost_model.total_cost(events),
        messages_by_provider={k: len(v) for k, v in group_by(events, lambda e: e.provider).items()},
        messages_by_model={k: len(v) for k, v in group_by(events, lambda e: e.model_used).items()},
        peak_hour=peak_hour(events),
    )


def module_summary(module_id: int, events: Sequence[ChatMessageEvent]) -> ModuleSummary:
    """Totals for a single module's events."""
    return ModuleSummary(
        module_id=module_id,
        total_messages=len(events),
        unique_students=distinct_students(events),
        unique_conversations=distinct_conversations(events),
        average_response_time=average_response_time(events),
        total_tokens_used=total_tokens(events),
        model_usage={k: len(v) for k, v in group_by(events, lambda e: e.model_used).items()},
        provider_usage={k: len(v) for k, v in group_by(events, lambda e: e.provider).items()},
    )


# ---------------------------------------------------------------------------
# Trend series
# ---------------------------------------------------------------------------


def growth_rate(trends: Sequence[UsageTrend]) -> float:
    """
    Message growth from the first to the last dated bucket, in percent.

    Only the two end points are compared; 0 with fewer than two buckets.
    """
    if len(trends) < 2:
        return 0.0
    first = trends[0].total_messages
    last = trends[-1].total_messages
    return (last - first) / first * 100 if first > 0 else 0.0


def trend_direction(trends: Sequence[UsageTrend]) -> str:
    if len(trends) < 2:
        return "stable"
    rate = growth_rate(trends)
    if rate > TREND_THRESHOLD:
        return "increasing"
    if rate < -TREND_THRESHOLD:
        return "decreasing"
    return "stable"


def usage_trends(events: Sequence[ChatMessageEvent], cost_model: CostModel) -> UsageTrendsResponse:
    """One row per calendar day present in the data, oldest first."""
    days = group_by(events, lambda e: e.occurred_at.date())

    trends = [
        UsageTrend(
            date=day,
            total_messages=len(day_events),
            unique_students=distinct_students(day_events),
            unique_conversations=distinct_conversations(day_events),
            total_tokens=total_tokens(day_events),
            estimated_cost_usd=cost_model.total_cost(day_events),
            average_response_time=average_response_time(day_events),
        )
        for day, day_events in sorted(days.items())
    ]

    if not trends:
        return UsageTrendsResponse()

    total_cost = sum((t.estimated_cost_usd for t in trends), ZERO)
    summary = UsageSummary(
        total_period_messages=sum(t.total_messages for t in trends),
        total_period_cost=total_cost,
        average_daily_messages=mean([t.total_messages for t in trends]),
        average_daily_cost=(total_cost / len(trends)).quantize(COST_QUANTUM),
        growth_rate=growth_rate(trends),
        trend_direction=trend_direction(trends),
    )
    return UsageTrendsResponse(trends=trends, summary=summary)


def hourly_usage(events: Sequence[ChatMessageEvent], day: Optional[date] = None) -> HourlyUsageResponse:
    """Per-hour breakdown (hours present only) with peak/quiet insights."""
    hours = group_by(events, lambda e: e.occurred_at.hour)

    breakdown = [
        HourlyUsage(
            hour=hour,
            message_count=len(hour_events),
            unique_students=distinct_students(hour_events),
            unique_conversations=distinct_conversations(hour_events),
            average_response_time=average_response_time(hour_events),
        )
        for hour, hour_events in sorted(hours.items())
    ]

    if not breakdown:
        return HourlyUsageResponse(date=day)

    busiest = top_n(breakdown, key=lambda h: h.message_count, limit=1)[0]
    quietest = min(breakdown, key=lambda h: h.message_count)
    insights = HourlyInsights(
        peak_hour=busiest.hour,
        peak_hour_messages=busiest.message_count,
        quietest_hour=quietest.hour,
        quietest_hour_messages=quietest.message_count,
        business_hours_total=sum(h.message_count for h in breakdown if h.hour in BUSINESS_HOURS),
        after_hours_total=sum(h.message_count for h in breakdown if h.hour not in BUSINESS_HOURS),
    )
    return HourlyUsageResponse(date=day, hourly_breakdown=breakdown, insights=insights)


# ---------------------------------------------------------------------------
# Rankings
# ---------------------------------------------------------------------------


def top_active_students(events: Sequence[ChatMessageEvent], limit: int = 10) -> TopActiveStudentsResponse:
    """Most active identified students by message count."""
    students = group_by((e for e in events if not e.is_anonymous), lambda e: e.student_id)

    ranked = top_n(students.items(), key=lambda item: len(item[1]), limit=limit)
    top_students = []
    for student_id, student_events in ranked:
        conversations = group_by(student_events, lambda e: e.conversation_id)
        first = min(student_events, key=lambda e: e.timestamp)
        last = max(student_events, key=lambda e: e.timestamp)
        top_students.append(
            TopActiveStudent(
                student_id=student_id,
                total_messages=len(student_events),
                unique_conversations=len(conversations),
                unique_modules=len({e.module_id for e in student_events}),
                first_message_at=first.occurred_at,
                last_message_at=last.occurred_at,
                average_messages_per_conversation=mean([len(c) for c in conversations.values()]),
            )
        )

    counts = [s.total_messages for s in top_students]
    return TopActiveStudentsResponse(
        top_students=top_students,
        summary=StudentSummary(
            total_students_analyzed=len(students),
            average_messages_per_student=mean(counts),
            median_messages_per_student=median(counts),
        ),
    )


def module_comparison(
    events_by_module: dict[int, list[ChatMessageEvent]],
    cost_model: CostModel,
    snapshot: HierarchySnapshot,
) -> ModuleComparisonResponse:
    """Side-by-side module metrics with best-performer insights."""
    modules = []
    for module_id, events in events_by_module.items():
        students = distinct_students(events)
        per_student = len(events) / students if students else 0.0
        modules.append(
            ModuleComparisonDetail(
                module_id=module_id,
                module_name=snapshot.module_name(module_id),
                total_messages=len(events),
                unique_students=students,
                average_messages_per_student=per_student,
                average_response_time=average_response_time(events),
                total_tokens=total_tokens(events),
                estimated_cost_usd=cost_model.total_cost(events),
                engagement_score=per_student,
            )
        )

    if not modules:
        return ModuleComparisonResponse()

    most_active = top_n(modules, key=lambda m: m.total_messages, limit=1)[0]
    most_engaged = top_n(modules, key=lambda m: m.engagement_score, limit=1)[0]
    most_efficient = min(modules, key=_cost_per_message)

    return ModuleComparisonResponse(
        modules=modules,
        insights=ModuleComparisonInsights(
            most_active_module=TopPerformer(module_id=most_active.module_id, reason="Highest message count"),
            most_engaged_module=TopPerformer(module_id=most_engaged.module_id, reason="Highest messages per student"),
            most_efficient_module=TopPerformer(module_id=most_efficient.module_id, reason="Lowest cost per message"),
            recommendations=_comparison_recommendations(modules),
        ),
    )


def _cost_per_message(module: ModuleComparisonDetail) -> Decimal:
    if module.total_messages == 0:
        return Decimal("Infinity")
    return module.estimated_cost_usd / module.total_messages


def _comparison_recommendations(modules: list[ModuleComparisonDetail]) -> list[str]:
    recommendations = []

    most_engaged = top_n(modules, key=lambda m: m.engagement_score, limit=1)[0]
    least_engaged = min(modules, key=lambda m: m.engagement_score)
    if most_engaged.engagement_score > least_engaged.engagement_score * 2:
        recommendations.append(
            f"{most_engaged.module_name} shows high engagement - analyze best practices"
        )

    priced = [m for m in modules if m.total_messages > 0]
    if priced:
        costliest = top_n(priced, key=_cost_per_message, limit=1)[0]
        if _cost_per_message(costliest) > HIGH_COST_PER_MESSAGE:
            recommendations.append(
                f"{costliest.module_name} has higher costs - review prompt optimization"
            )

    return recommendations
