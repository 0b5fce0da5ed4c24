"""
Pydantic Schemas
================
Event value types, query filters and analytics result models.
"""

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
from backend.schemas.events import (
    Caller,
    ChatMessageEvent,
    CourseRef,
    ModelPricing,
    ModuleRef,
    TranscriptionRecord,
    UserRole,
)
from backend.schemas.filters import (
    AnalyticsFilter,
    DashboardFilter,
    ModuleComparisonFilter,
    TopStudentsFilter,
)

__all__ = [
    "Caller",
    "ChatMessageEvent",
    "CourseRef",
    "ModelPricing",
    "ModuleRef",
    "TranscriptionRecord",
    "UserRole",
    "AnalyticsFilter",
    "DashboardFilter",
    "ModuleComparisonFilter",
    "TopStudentsFilter",
    "ConversationMetrics",
    "CostAnalysis",
    "DashboardSummary",
    "FaqItem",
    "FrequentlyAskedQuestionsResponse",
    "HourlyUsageResponse",
    "ModuleComparisonResponse",
    "ModuleSummary",
    "ResponseQuality",
    "TodayCost",
    "TopActiveStudentsResponse",
    "UnifiedDashboard",
    "UsageStats",
    "UsageTrendsResponse",
]
