"""
API Tests
=========
Tests for Tutoria Analytics REST API endpoints.
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from backend.database import get_session
from backend.main import app

SUPER_ADMIN = {"X-User-Id": "1", "X-User-Role": "super_admin"}
PROFESSOR = {"X-User-Id": "7", "X-User-Role": "professor", "X-University-Id": "1"}


class StubSession:
    def __init__(self, fail: bool = False):
        self.fail = fail

    async def execute(self, statement):
        if self.fail:
            raise ConnectionError("connection refused")
        return None


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, client: TestClient):
        """Test the liveness check."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "version" in data

    def test_ready_connected(self, client: TestClient):
        """Test readiness with a reachable database."""
        app.dependency_overrides[get_session] = lambda: StubSession()

        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["database"] == "connected"
        assert response.json()["status"] == "ok"

    def test_ready_degraded(self, client: TestClient):
        """Test that an unreachable database reports degraded, not 5xx."""
        app.dependency_overrides[get_session] = lambda: StubSession(fail=True)

        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["database"] == "disconnected"


class TestCallerHeaders:
    """Tests for caller identity headers."""

    def test_missing_headers(self, client: TestClient):
        """Test that identity headers are required."""
        response = client.get("/analytics/costs")
        assert response.status_code == 422

    def test_malformed_user_id(self, client: TestClient):
        """Test that a non-numeric user ID is rejected."""
        response = client.get("/analytics/costs", headers={"X-User-Id": "abc", "X-User-Role": "super_admin"})
        assert response.status_code == 400

    def test_blank_user_id(self, client: TestClient):
        """Test that an empty user ID is rejected."""
        response = client.get("/analytics/costs", headers={"X-User-Id": "", "X-User-Role": "super_admin"})
        assert response.status_code == 400

    def test_malformed_university_id(self, client: TestClient):
        """Test that a non-numeric university ID is rejected."""
        headers = {**PROFESSOR, "X-University-Id": "one"}
        response = client.get("/analytics/costs", headers=headers)
        assert response.status_code == 400

    def test_unknown_role_gets_empty_result(self, client: TestClient):
        """Test that an unrecognized role sees nothing rather than an error."""
        response = client.get("/analytics/costs", headers={"X-User-Id": "5", "X-User-Role": "student"})
        assert response.status_code == 200
        assert response.json()["total_messages"] == 0


class TestCostEndpoints:
    """Tests for cost endpoints."""

    def test_costs(self, client: TestClient):
        """Test cost analysis across every module."""
        response = client.get("/analytics/costs", headers=SUPER_ADMIN)
        assert response.status_code == 200
        data = response.json()

        assert data["total_messages"] == 3
        assert Decimal(data["estimated_cost_usd"]) == Decimal("0.0075")
        assert set(data["cost_by_module"]) == {"100", "200"}

    def test_costs_scoped_to_professor(self, client: TestClient):
        """Test that a professor only sees assigned courses."""
        response = client.get("/analytics/costs", headers=PROFESSOR)
        assert response.status_code == 200
        assert response.json()["total_messages"] == 2

    def test_costs_university_filter(self, client: TestClient):
        """Test narrowing by query parameter."""
        response = client.get("/analytics/costs", params={"university_id": 2}, headers=SUPER_ADMIN)
        assert response.json()["total_messages"] == 1

    def test_today_cost(self, client: TestClient):
        """Test today's cost response shape."""
        response = client.get("/analytics/costs/today", headers=SUPER_ADMIN)
        assert response.status_code == 200
        data = response.json()

        assert data["date"] == "2026-03-10"
        assert data["total_messages"] == 3
        assert data["compared_to_yesterday"] is None


class TestUsageEndpoints:
    """Tests for usage endpoints."""

    def test_today_usage(self, client: TestClient):
        """Test today's usage counts."""
        response = client.get("/analytics/usage/today", headers=SUPER_ADMIN)
        assert response.status_code == 200
        data = response.json()

        assert data["total_messages"] == 3
        assert data["unique_students"] == 3
        assert data["active_modules"] == 2

    def test_trends(self, client: TestClient):
        """Test daily trend rows."""
        response = client.get("/analytics/usage/trends", headers=SUPER_ADMIN)
        assert response.status_code == 200
        assert [t["date"] for t in response.json()["trends"]] == ["2026-03-10"]

    def test_hourly_by_date(self, client: TestClient):
        """Test hourly usage for an explicit day."""
        response = client.get("/analytics/usage/hourly", params={"date": "2026-03-10"}, headers=SUPER_ADMIN)
        assert response.status_code == 200
        data = response.json()

        assert data["date"] == "2026-03-10"
        assert data["insights"]["peak_hour"] == 15

    def test_top_students_limit_validated(self, client: TestClient):
        """Test that the limit is bounded."""
        response = client.get("/analytics/students/top", params={"limit": 0}, headers=SUPER_ADMIN)
        assert response.status_code == 422

    def test_top_students(self, client: TestClient):
        """Test the top students ranking."""
        response = client.get("/analytics/students/top", params={"limit": 2}, headers=SUPER_ADMIN)
        assert response.status_code == 200
        assert len(response.json()["top_students"]) == 2


class TestEngagementEndpoints:
    """Tests for engagement and quality endpoints."""

    def test_conversation_engagement(self, client: TestClient):
        """Test conversation metrics."""
        response = client.get("/analytics/engagement/conversations", headers=SUPER_ADMIN)
        assert response.status_code == 200
        assert response.json()["total_conversations"] == 3

    def test_response_quality(self, client: TestClient):
        """Test response quality grading."""
        response = client.get("/analytics/performance/response-quality", headers=SUPER_ADMIN)
        assert response.status_code == 200
        assert response.json()["performance_grade"] == "A"


class TestModuleEndpoints:
    """Tests for module endpoints."""

    def test_compare_drops_foreign_modules(self, client: TestClient):
        """Test that a professor's comparison omits other universities."""
        response = client.get(
            "/analytics/modules/compare",
            params=[("module_ids", 100), ("module_ids", 200)],
            headers=PROFESSOR,
        )
        assert response.status_code == 200
        assert [m["module_id"] for m in response.json()["modules"]] == [100]

    def test_compare_requires_modules(self, client: TestClient):
        """Test that module IDs are required."""
        response = client.get("/analytics/modules/compare", headers=SUPER_ADMIN)
        assert response.status_code == 422

    def test_module_summary(self, client: TestClient):
        """Test a single module summary."""
        response = client.get("/analytics/modules/100/summary", headers=SUPER_ADMIN)
        assert response.status_code == 200
        data = response.json()

        assert data["module_id"] == 100
        assert data["total_messages"] == 2

    def test_module_faq(self, client: TestClient):
        """Test that the module FAQ is a list of question/answer pairs."""
        response = client.get("/analytics/modules/100/faq", headers=SUPER_ADMIN)
        assert response.status_code == 200
        items = response.json()

        assert isinstance(items, list)
        assert all({"question", "answer", "occurrences"} <= set(item) for item in items)


class TestDashboardEndpoints:
    """Tests for dashboard and FAQ endpoints."""

    @pytest.mark.parametrize("period", ["today", "week", "month", "quarter", "year"])
    def test_summary_periods(self, client: TestClient, period: str):
        """Test every supported period."""
        response = client.get("/analytics/dashboard/summary", params={"period": period}, headers=SUPER_ADMIN)
        assert response.status_code == 200
        assert response.json()["period"] == period

    def test_invalid_period(self, client: TestClient):
        """Test that unknown periods are rejected."""
        response = client.get("/analytics/dashboard/summary", params={"period": "decade"}, headers=SUPER_ADMIN)
        assert response.status_code == 422

    def test_unified(self, client: TestClient):
        """Test the combined dashboard payload."""
        response = client.get("/analytics/dashboard/unified", headers=SUPER_ADMIN)
        assert response.status_code == 200
        data = response.json()

        assert set(data) == {"summary", "trends", "today_usage", "today_cost"}
        assert data["summary"]["overview"]["total_messages"] == 3

    def test_frequent_questions(self, client: TestClient):
        """Test the FAQ report."""
        response = client.get("/analytics/questions/frequent", headers=SUPER_ADMIN)
        assert response.status_code == 200
        assert response.json()["summary"]["total_questions"] == 3
