"""
Response Quality
================
Response-time distribution, percentiles and a letter grade.
"""

from collections.abc import Sequence

from backend.core.statistics import mean, median, percentile
from backend.schemas.analytics import PerformanceInsights, ResponseQuality
from backend.schemas.events import ChatMessageEvent

FAST_RESPONSE_MS = 2000
SLOW_RESPONSE_MS = 10000

# Upper bounds (exclusive) of mean response time per grade; anything else is F.
GRADE_THRESHOLDS = (
    (2000, "A"),
    (3000, "B"),
    (5000, "C"),
    (10000, "D"),
)

GRADE_STATUS = {"A": "healthy", "B": "healthy", "C": "warning"}

# Histogram bucket label -> [low, high) in milliseconds.
DISTRIBUTION_BUCKETS = (
    ("< 1s", 0, 1000),
    ("1-2s", 1000, 2000),
    ("2-5s", 2000, 5000),
    ("5-10s", 5000, 10000),
    ("10s+", 10000, None),
)

SLOW_RATE_ALERT = 2.0
SLOW_MEAN_ALERT_MS = 5000
SLOW_COUNT_ALERT = 10


def grade_for(average_ms: float) -> str:
    """Letter grade for a mean response time."""
    for upper, grade in GRADE_THRESHOLDS:
        if average_ms < upper:
            return grade
    return "F"


def status_for(grade: str) -> str:
    return GRADE_STATUS.get(grade, "critical")


class ResponseQualityGrader:
    """
    Grade response latency over events with a known response time.

    Percentiles use the nearest-rank estimator (index floor(n * p)),
    not interpolation.
    """

    def grade(self, events: Sequence[ChatMessageEvent]) -> ResponseQuality:
        times = sorted(e.response_time_ms for e in events if e.response_time_ms is not None)
        tokens = [e.token_count for e in events if e.token_count is not None]

        average = mean(times)
        average_tokens = mean(tokens)
        fast = sum(1 for t in times if t < FAST_RESPONSE_MS)
        slow = sum(1 for t in times if t > SLOW_RESPONSE_MS)
        grade = grade_for(average)

        distribution = {
            label: sum(1 for t in times if t >= low and (high is None or t < high))
            for label, low, high in DISTRIBUTION_BUCKETS
        }

        return ResponseQuality(
            average_response_time=average,
            median_response_time=median(times),
            p95_response_time=percentile(times, 0.95),
            p99_response_time=percentile(times, 0.99),
            average_tokens_per_message=average_tokens,
            token_efficiency_score=average_tokens / average if average > 0 else 0.0,
            fast_responses=fast,
            slow_responses=slow,
            response_time_distribution=distribution,
            performance_grade=grade,
            insights=PerformanceInsights(
                status=status_for(grade),
                issues=self._issues(slow, len(times)),
                recommendations=self._recommendations(average, slow),
            ),
        )

    def _issues(self, slow: int, total: int) -> list[str]:
        slow_rate = slow / total * 100 if total else 0.0
        if slow_rate > SLOW_RATE_ALERT:
            return [f"{slow_rate:.1f}% of responses exceed 10 seconds"]
        return []

    def _recommendations(self, average: float, slow: int) -> list[str]:
        recommendations = []
        if average > SLOW_MEAN_ALERT_MS:
            recommendations.append("Consider caching for common questions")
            recommendations.append("Review prompt optimization for faster responses")
        if slow > SLOW_COUNT_ALERT:
            recommendations.append("Investigate slow response patterns")
        return recommendations
