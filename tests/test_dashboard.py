"""
Dashboard Tests
===============
Tests for period ranges, growth, projections and the summary composer.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from backend.core.pricing import CostModel
from backend.schemas.analytics import CostAnalysis, ProviderCost
from backend.services.dashboard import (
    DashboardComposer,
    day_range,
    period_range,
    previous_range,
    project_daily,
    shift_months,
    system_health,
    today_cost,
)
from backend.services.scope import HierarchySnapshot
from tests.conftest import NOW


class TestPeriods:
    """Tests for dashboard period arithmetic."""

    def test_today_is_calendar_day(self):
        """Test that today spans midnight to midnight UTC."""
        start, end = period_range("today", NOW)

        assert start == datetime(2026, 3, 10, tzinfo=timezone.utc)
        assert end == datetime(2026, 3, 10, 23, 59, 59, 999000, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        "period,expected_start",
        [
            ("week", datetime(2026, 3, 3, 15, 30, tzinfo=timezone.utc)),
            ("month", datetime(2026, 2, 10, 15, 30, tzinfo=timezone.utc)),
            ("quarter", datetime(2025, 12, 10, 15, 30, tzinfo=timezone.utc)),
            ("year", datetime(2025, 3, 10, 15, 30, tzinfo=timezone.utc)),
        ],
    )
    def test_trailing_periods(self, period, expected_start):
        """Test trailing windows ending now."""
        assert period_range(period, NOW) == (expected_start, NOW)

    def test_month_shift_clamps_day(self):
        """Test that 31 March minus a month lands on 28 February."""
        value = datetime(2026, 3, 31, 9, 0, tzinfo=timezone.utc)
        assert shift_months(value, -1) == datetime(2026, 2, 28, 9, 0, tzinfo=timezone.utc)

    def test_previous_range_is_adjacent(self):
        """Test that the previous window has equal length and stops just before start."""
        start, end = period_range("week", NOW)

        previous_start, previous_end = previous_range(start, end)

        assert previous_start == start - (end - start)
        assert previous_end == start - timedelta(milliseconds=1)

    def test_day_range_excludes_next_midnight(self):
        """Test that consecutive days never share a bound."""
        today = datetime(2026, 3, 10, tzinfo=timezone.utc)

        _, yesterday_end = day_range(today - timedelta(days=1))
        today_start, today_end = day_range(today)

        assert yesterday_end < today_start
        assert today_end == datetime(2026, 3, 10, 23, 59, 59, 999000, tzinfo=timezone.utc)


class TestProjection:
    """Tests for the full-day cost projection."""

    def test_no_projection_before_gate(self):
        """Test that early in the day the observed cost is returned."""
        assert project_daily(Decimal("0.30"), elapsed_hours=2.5, min_hours=3) == Decimal("0.30")

    def test_linear_projection(self):
        """Test that half a day of spend doubles."""
        assert project_daily(Decimal("0.50"), elapsed_hours=12, min_hours=3) == Decimal("1.00")

    def test_today_cost_without_yesterday(self):
        """Test that the comparison is omitted when yesterday cost nothing."""
        today = CostAnalysis(total_messages=4, estimated_cost_usd=Decimal("0.01"))

        result = today_cost(NOW, today, CostAnalysis(), min_hours=3)

        assert result.compared_to_yesterday is None
        assert result.date == NOW.date()

    def test_today_cost_against_yesterday(self):
        """Test absolute and percentage change to yesterday."""
        today = CostAnalysis(
            estimated_cost_usd=Decimal("0.30"),
            cost_by_provider={"openai": ProviderCost(provider="openai", estimated_cost_usd=Decimal("0.30"))},
            transcription_cost_usd=Decimal("1.00"),
        )
        yesterday = CostAnalysis(estimated_cost_usd=Decimal("0.20"))
        now = NOW.replace(hour=6, minute=0)

        result = today_cost(now, today, yesterday, min_hours=3)

        assert result.compared_to_yesterday.absolute_change == Decimal("0.10")
        assert result.compared_to_yesterday.percentage_change == pytest.approx(50.0)
        assert result.cost_by_provider == {"openai": Decimal("0.30")}
        assert result.projected_daily_cost == Decimal("1.20")
        assert result.projected_daily_transcription_cost == Decimal("4.00")


class TestDashboardComposer:
    """Tests for the period summary."""

    @pytest.fixture
    def composer(self, hierarchy, pricing_rows) -> DashboardComposer:
        snapshot = HierarchySnapshot.build(hierarchy.modules, hierarchy.courses)
        return DashboardComposer(CostModel(pricing_rows, input_token_ratio=Decimal("0.25")), snapshot)

    def test_growth_from_empty_previous_is_zero(self, composer, make_event):
        """Test that growth against an empty period is 0, not infinite."""
        current = [make_event(), make_event()]

        summary = composer.summary("week", period_range("week", NOW), current, [])

        assert summary.growth.messages_growth == 0.0
        assert summary.growth.student_growth == 0.0
        assert summary.growth.cost_growth == 0.0

    def test_growth_against_previous(self, composer, make_event):
        """Test message growth against the previous period."""
        previous = [make_event(at=NOW - timedelta(days=10)) for _ in range(2)]
        current = [make_event() for _ in range(3)]

        summary = composer.summary("week", period_range("week", NOW), current, previous)

        assert summary.growth.messages_growth == 50.0
        assert summary.growth.cost_growth == pytest.approx(50.0)

    def test_overview_and_top_performers(self, composer, make_event):
        """Test activity counts and the most active module and university."""
        current = [
            make_event(module_id=100, student_id=1),
            make_event(module_id=100, student_id=2),
            make_event(module_id=101, student_id=2, provider="Anthropic", model_used="claude-3-haiku"),
            make_event(module_id=200, student_id=3),
            make_event(module_id=300, student_id=4),
        ]

        summary = composer.summary("month", period_range("month", NOW), current, [])

        assert summary.period == "month"
        assert summary.overview.total_messages == 5
        assert summary.overview.unique_students == 4
        assert summary.overview.active_modules == 4
        assert summary.overview.active_courses == 4
        assert summary.overview.active_universities == 2
        assert summary.top_performers.most_active_module.name == "Algebra"
        assert summary.top_performers.most_active_university.id == 1
        assert summary.top_performers.most_active_university.messages == 3
        assert set(summary.cost_breakdown.by_provider) == {"openai", "anthropic"}
        assert summary.cost_breakdown.top_cost_module.id == 100

    def test_empty_period(self, composer):
        """Test that a quiet period yields the zero summary."""
        summary = composer.summary("today", period_range("today", NOW), [], [])

        assert summary.overview.total_messages == 0
        assert summary.top_performers.most_active_module is None
        assert summary.cost_breakdown.top_cost_module is None
        assert summary.health_indicators.system_health == "excellent"


class TestSystemHealth:
    """Tests for the grade-derived health label."""

    @pytest.mark.parametrize(
        "average,label",
        [(500, "excellent"), (2500, "good"), (4000, "fair"), (7000, "poor"), (15000, "poor")],
    )
    def test_labels(self, average, label):
        """Test the health label for each grade band."""
        assert system_health(average) == label
