"""
Response Quality Tests
======================
Tests for latency percentiles, grading and insights.
"""

import pytest

from backend.services.quality import ResponseQualityGrader, grade_for


class TestResponseQualityGrader:
    """Tests for the response quality grader."""

    def test_grade_c_with_one_slow_response(self, make_event):
        """Test response times 500, 1500, 2500 and 12000 ms."""
        events = [make_event(response_time_ms=t) for t in (500, 1500, 2500, 12000)]

        quality = ResponseQualityGrader().grade(events)

        assert quality.average_response_time == 4125.0
        assert quality.performance_grade == "C"
        assert quality.slow_responses == 1
        assert quality.fast_responses == 2
        assert quality.insights.status == "warning"

    def test_percentiles_are_ordered(self, make_event):
        """Test that p50 <= p95 <= p99."""
        times = [120, 80, 5000, 2300, 950, 15000, 640, 3100, 700, 1800, 420]
        events = [make_event(response_time_ms=t) for t in times]

        quality = ResponseQualityGrader().grade(events)

        assert quality.median_response_time <= quality.p95_response_time <= quality.p99_response_time

    def test_unknown_times_ignored(self, make_event):
        """Test that events without a response time are left out."""
        events = [make_event(response_time_ms=None), make_event(response_time_ms=1000)]

        quality = ResponseQualityGrader().grade(events)

        assert quality.average_response_time == 1000.0
        assert sum(quality.response_time_distribution.values()) == 1

    def test_distribution_buckets(self, make_event):
        """Test the response-time histogram edges."""
        events = [make_event(response_time_ms=t) for t in (999, 1000, 2000, 5000, 10000)]

        quality = ResponseQualityGrader().grade(events)

        assert quality.response_time_distribution == {
            "< 1s": 1,
            "1-2s": 1,
            "2-5s": 1,
            "5-10s": 1,
            "10s+": 1,
        }

    def test_issues_and_recommendations(self, make_event):
        """Test alerts for a slow sample."""
        events = [make_event(response_time_ms=12000) for _ in range(11)]

        quality = ResponseQualityGrader().grade(events)

        assert quality.performance_grade == "F"
        assert quality.insights.status == "critical"
        assert quality.insights.issues == ["100.0% of responses exceed 10 seconds"]
        assert quality.insights.recommendations == [
            "Consider caching for common questions",
            "Review prompt optimization for faster responses",
            "Investigate slow response patterns",
        ]

    def test_token_efficiency(self, make_event):
        """Test mean tokens per mean millisecond."""
        events = [make_event(token_count=1000, response_time_ms=2000)]

        quality = ResponseQualityGrader().grade(events)

        assert quality.average_tokens_per_message == 1000.0
        assert quality.token_efficiency_score == 0.5

    def test_empty_input(self):
        """Test the zero form of the report."""
        quality = ResponseQualityGrader().grade([])

        assert quality.average_response_time == 0.0
        assert quality.performance_grade == "A"
        assert quality.insights.issues == []


class TestGrades:
    """Tests for the grade thresholds."""

    @pytest.mark.parametrize(
        "average,grade",
        [(0, "A"), (1999, "A"), (2000, "B"), (2999, "B"), (3000, "C"), (4999, "C"),
         (5000, "D"), (9999, "D"), (10000, "F")],
    )
    def test_thresholds(self, average, grade):
        """Test each grade boundary."""
        assert grade_for(average) == grade

    def test_grade_is_monotonic(self):
        """Test that a slower mean never earns a better grade."""
        grades = [grade_for(ms) for ms in range(0, 20000, 250)]
        assert grades == sorted(grades)
