"""
Analytics Schemas
=================
Derived metric objects returned by the analytics engine.

Every model builds with no arguments into its empty/zero form, which is
what fail-soft paths return.
"""

import datetime as dt
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

ZERO = Decimal("0")


# ---------------------------------------------------------------------------
# Cost analysis
# ---------------------------------------------------------------------------


class ProviderCost(BaseModel):
    """Cost attributed to one provider."""

    provider: str = ""
    message_count: int = 0
    total_tokens: int = 0
    estimated_cost_usd: Decimal = ZERO


class ModelCost(BaseModel):
    """Cost attributed to one model, with its unit pricing."""

    model_config = ConfigDict(protected_namespaces=())

    model: str = ""
    provider: str = ""
    message_count: int = 0
    total_tokens: int = 0
    estimated_cost_usd: Decimal = ZERO
    input_cost_per_1m: Decimal = ZERO
    output_cost_per_1m: Decimal = ZERO


class TranscriptionCosts(BaseModel):
    """Video transcription spend, kept apart from per-message cost."""

    total_cost_usd: Decimal = ZERO
    video_count: int = 0
    total_duration_seconds: int = 0
    cost_by_module: dict[int, Decimal] = Field(default_factory=dict)


class CostAnalysis(BaseModel):
    """Cost breakdown across every attribution dimension."""

    total_messages: int = 0
    total_tokens: int = 0
    estimated_cost_usd: Decimal = ZERO
    cost_by_provider: dict[str, ProviderCost] = Field(default_factory=dict)
    cost_by_model: dict[str, ModelCost] = Field(default_factory=dict)
    cost_by_module: dict[int, Decimal] = Field(default_factory=dict)
    cost_by_course: dict[int, Decimal] = Field(default_factory=dict)
    cost_by_university: dict[int, Decimal] = Field(default_factory=dict)

    transcription_cost_usd: Decimal = ZERO
    transcription_video_count: int = 0
    transcription_total_duration_seconds: int = 0
    transcription_cost_by_module: dict[int, Decimal] = Field(default_factory=dict)


class CostComparison(BaseModel):
    """Change relative to a reference period."""

    percentage_change: float = 0.0
    absolute_change: Decimal = ZERO


class TodayCost(BaseModel):
    """Current-day cost with a full-day projection."""

    date: dt.date | None = None
    total_messages: int = 0
    total_tokens: int = 0
    estimated_cost_usd: Decimal = ZERO
    cost_by_provider: dict[str, Decimal] = Field(default_factory=dict)
    projected_daily_cost: Decimal = ZERO
    compared_to_yesterday: CostComparison | None = None

    transcription_cost_usd: Decimal = ZERO
    transcription_video_count: int = 0
    projected_daily_transcription_cost: Decimal = ZERO


# ---------------------------------------------------------------------------
# Usage statistics and trends
# ---------------------------------------------------------------------------


class PeakHour(BaseModel):
    hour: int = 0
    message_count: int = 0


class UsageStats(BaseModel):
    """Point-in-time usage totals."""

    date: dt.date | None = None
    total_messages: int = 0
    unique_students: int = 0
    unique_conversations: int = 0
    active_modules: int = 0
    total_tokens: int = 0
    average_response_time: float = 0.0
    estimated_cost_usd: Decimal = ZERO
    messages_by_provider: dict[str, int] = Field(default_factory=dict)
    messages_by_model: dict[str, int] = Field(default_factory=dict)
    peak_hour: PeakHour | None = None


class UsageTrend(BaseModel):
    """One calendar day of usage."""

    date: date
    total_messages: int = 0
    unique_students: int = 0
    unique_conversations: int = 0
    total_tokens: int = 0
    estimated_cost_usd: Decimal = ZERO
    average_response_time: float = 0.0


class UsageSummary(BaseModel):
    """Totals and growth over a trend series."""

    total_period_messages: int = 0
    total_period_cost: Decimal = ZERO
    average_daily_messages: float = 0.0
    average_daily_cost: Decimal = ZERO
    growth_rate: float = 0.0
    trend_direction: str = "stable"


class UsageTrendsResponse(BaseModel):
    trends: list[UsageTrend] = Field(default_factory=list)
    summary: UsageSummary = Field(default_factory=UsageSummary)


class HourlyUsage(BaseModel):
    """One hour-of-day bucket."""

    hour: int
    message_count: int = 0
    unique_students: int = 0
    unique_conversations: int = 0
    average_response_time: float = 0.0


class HourlyInsights(BaseModel):
    peak_hour: int = 0
    peak_hour_messages: int = 0
    quietest_hour: int = 0
    quietest_hour_messages: int = 0
    business_hours_total: int = 0
    after_hours_total: int = 0


class HourlyUsageResponse(BaseModel):
    date: dt.date | None = None
    hourly_breakdown: list[HourlyUsage] = Field(default_factory=list)
    insights: HourlyInsights = Field(default_factory=HourlyInsights)


# ---------------------------------------------------------------------------
# Students and engagement
# ---------------------------------------------------------------------------


class TopActiveStudent(BaseModel):
    student_id: int
    total_messages: int = 0
    unique_conversations: int = 0
    unique_modules: int = 0
    first_message_at: datetime | None = None
    last_message_at: datetime | None = None
    average_messages_per_conversation: float = 0.0


class StudentSummary(BaseModel):
    total_students_analyzed: int = 0
    average_messages_per_student: float = 0.0
    median_messages_per_student: float = 0.0


class TopActiveStudentsResponse(BaseModel):
    top_students: list[TopActiveStudent] = Field(default_factory=list)
    summary: StudentSummary = Field(default_factory=StudentSummary)


class ConversationInsights(BaseModel):
    engagement_quality: str = "low"
    dropoff_rate: float = 0.0
    recommended_actions: list[str] = Field(default_factory=list)


class ConversationMetrics(BaseModel):
    """Conversation length, completion and duration profile."""

    total_conversations: int = 0
    average_messages_per_conversation: float = 0.0
    median_messages_per_conversation: float = 0.0
    single_message_conversations: int = 0
    short_conversations: int = 0
    medium_conversations: int = 0
    long_conversations: int = 0
    conversation_completion_rate: float = 0.0
    average_conversation_duration_seconds: float = 0.0
    conversation_distribution: dict[str, int] = Field(default_factory=dict)
    insights: ConversationInsights = Field(default_factory=ConversationInsights)


# ---------------------------------------------------------------------------
# Performance and quality
# ---------------------------------------------------------------------------


class PerformanceInsights(BaseModel):
    status: str = "healthy"
    issues: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class ResponseQuality(BaseModel):
    """Response-time distribution and grade."""

    average_response_time: float = 0.0
    median_response_time: float = 0.0
    p95_response_time: float = 0.0
    p99_response_time: float = 0.0
    average_tokens_per_message: float = 0.0
    token_efficiency_score: float = 0.0
    fast_responses: int = 0
    slow_responses: int = 0
    response_time_distribution: dict[str, int] = Field(default_factory=dict)
    performance_grade: str = "A"
    insights: PerformanceInsights = Field(default_factory=PerformanceInsights)


# ---------------------------------------------------------------------------
# Module comparison
# ---------------------------------------------------------------------------


class ModuleComparisonDetail(BaseModel):
    module_id: int
    module_name: str = ""
    total_messages: int = 0
    unique_students: int = 0
    average_messages_per_student: float = 0.0
    average_response_time: float = 0.0
    total_tokens: int = 0
    estimated_cost_usd: Decimal = ZERO
    engagement_score: float = 0.0


class TopPerformer(BaseModel):
    module_id: int
    reason: str = ""


class ModuleComparisonInsights(BaseModel):
    most_active_module: TopPerformer | None = None
    most_engaged_module: TopPerformer | None = None
    most_efficient_module: TopPerformer | None = None
    recommendations: list[str] = Field(default_factory=list)


class ModuleComparisonResponse(BaseModel):
    modules: list[ModuleComparisonDetail] = Field(default_factory=list)
    insights: ModuleComparisonInsights = Field(default_factory=ModuleComparisonInsights)


class ModuleSummary(BaseModel):
    """Totals for a single module."""

    model_config = ConfigDict(protected_namespaces=())

    module_id: int = 0
    total_messages: int = 0
    unique_students: int = 0
    unique_conversations: int = 0
    average_response_time: float = 0.0
    total_tokens_used: int = 0
    model_usage: dict[str, int] = Field(default_factory=dict)
    provider_usage: dict[str, int] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


class DateRange(BaseModel):
    start: datetime | None = None
    end: datetime | None = None


class Overview(BaseModel):
    total_messages: int = 0
    total_cost_usd: Decimal = ZERO
    unique_students: int = 0
    active_modules: int = 0
    active_courses: int = 0
    active_universities: int = 0


class Growth(BaseModel):
    """Period-over-period change, in percent."""

    messages_growth: float = 0.0
    student_growth: float = 0.0
    cost_growth: float = 0.0


class TopModule(BaseModel):
    id: int
    name: str = ""
    messages: int = 0


class TopUniversity(BaseModel):
    id: int
    messages: int = 0


class TopPerformers(BaseModel):
    most_active_module: TopModule | None = None
    most_active_university: TopUniversity | None = None


class TopCostModule(BaseModel):
    id: int
    name: str = ""
    cost: Decimal = ZERO


class CostBreakdown(BaseModel):
    by_provider: dict[str, Decimal] = Field(default_factory=dict)
    top_cost_module: TopCostModule | None = None


class HealthIndicators(BaseModel):
    system_health: str = "excellent"
    average_response_time: float = 0.0


class DashboardSummary(BaseModel):
    """Executive summary over one period with growth against the prior one."""

    period: str = "month"
    date_range: DateRange = Field(default_factory=DateRange)
    overview: Overview = Field(default_factory=Overview)
    growth: Growth = Field(default_factory=Growth)
    top_performers: TopPerformers = Field(default_factory=TopPerformers)
    cost_breakdown: CostBreakdown = Field(default_factory=CostBreakdown)
    health_indicators: HealthIndicators = Field(default_factory=HealthIndicators)


class UnifiedDashboard(BaseModel):
    summary: DashboardSummary = Field(default_factory=DashboardSummary)
    trends: UsageTrendsResponse = Field(default_factory=UsageTrendsResponse)
    today_usage: UsageStats = Field(default_factory=UsageStats)
    today_cost: TodayCost = Field(default_factory=TodayCost)


# ---------------------------------------------------------------------------
# Frequently asked questions
# ---------------------------------------------------------------------------


class FrequentQuestion(BaseModel):
    question: str
    count: int = 0
    percentage: float = 0.0
    similar_questions: list[str] = Field(default_factory=list)
    category: str = "General"
    first_asked_at: datetime | None = None
    last_asked_at: datetime | None = None


class FrequentQuestionSummary(BaseModel):
    total_unique_questions: int = 0
    total_questions: int = 0
    average_questions_per_student: float = 0.0
    top_categories: list[str] = Field(default_factory=list)


class FrequentlyAskedQuestionsResponse(BaseModel):
    questions: list[FrequentQuestion] = Field(default_factory=list)
    summary: FrequentQuestionSummary = Field(default_factory=FrequentQuestionSummary)


class FaqItem(BaseModel):
    """Representative question/answer pair for a module FAQ."""

    question: str
    answer: str = ""
    occurrences: int = 0
    similarity_score: float = 1.0
