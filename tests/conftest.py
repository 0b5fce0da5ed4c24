"""
Test Configuration
==================
Pytest fixtures for Tutoria Analytics tests.
"""

import asyncio
import itertools
from collections.abc import AsyncGenerator, Callable, Generator, Iterable
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

import backend.models  # noqa: F401  registers tables on Base.metadata
from backend.api.deps import get_analytics_service
from backend.main import app
from backend.models.base import Base
from backend.schemas.events import (
    Caller,
    ChatMessageEvent,
    CourseRef,
    ModelPricing,
    ModuleRef,
    TranscriptionRecord,
)
from backend.services.analytics import AnalyticsService
from backend.services.fetch import to_epoch_ms

# Fixed "current time" for every clock-dependent test
NOW = datetime(2026, 3, 10, 15, 30, tzinfo=timezone.utc)


def to_ms(value: datetime) -> int:
    return to_epoch_ms(value)


# ---------------------------------------------------------------------------
# In-memory sources
# ---------------------------------------------------------------------------


class FakeEventStore:
    """Event store over a list, recording calls and peak concurrency."""

    def __init__(
        self,
        events: Iterable[ChatMessageEvent] = (),
        failing_modules: Iterable[int] = (),
        delay: float = 0.0,
    ):
        self.events = list(events)
        self.failing_modules = set(failing_modules)
        self.delay = delay
        self.calls: list[int] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def query(self, module_id, start_ms=None, end_ms=None, limit=1000):
        self.calls.append(module_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if module_id in self.failing_modules:
                raise ConnectionError("event store unavailable")
            matched = [
                e for e in self.events
                if e.module_id == module_id
                and (start_ms is None or e.timestamp >= start_ms)
                and (end_ms is None or e.timestamp <= end_ms)
            ]
            return sorted(matched, key=lambda e: e.timestamp, reverse=True)[:limit]
        finally:
            self.in_flight -= 1

    async def scan(self, start_ms=None, end_ms=None, limit=10000):
        matched = [
            e for e in self.events
            if (start_ms is None or e.timestamp >= start_ms)
            and (end_ms is None or e.timestamp <= end_ms)
        ]
        return sorted(matched, key=lambda e: e.timestamp, reverse=True)[:limit]


class FakeHierarchy:
    """
    Two universities:

    - university 1: course 10 (module 100), course 11 (module 101)
    - university 2: course 20 (module 200)

    Module 300 points at course 99, which does not exist.
    Professor 7 teaches course 10.
    """

    def __init__(self):
        self.modules = [
            ModuleRef(id=100, course_id=10, name="Algebra"),
            ModuleRef(id=101, course_id=11, name="Biology"),
            ModuleRef(id=200, course_id=20, name="Chemistry"),
            ModuleRef(id=300, course_id=99, name="Orphan"),
        ]
        self.courses = [
            CourseRef(id=10, university_id=1, name="Mathematics"),
            CourseRef(id=11, university_id=1, name="Life Sciences"),
            CourseRef(id=20, university_id=2, name="Chemistry I"),
        ]
        self.assignments = {7: [10]}
        self.module_reads = 0

    async def list_modules(self):
        self.module_reads += 1
        return list(self.modules)

    async def list_courses(self):
        return list(self.courses)

    async def professor_course_ids(self, professor_id, limit):
        return self.assignments.get(professor_id, [])[:limit]


class FakePricing:
    def __init__(self, models: Iterable[ModelPricing] = (), fail: bool = False):
        self.models = list(models)
        self.fail = fail

    async def get_active_models(self):
        if self.fail:
            raise ConnectionError("pricing catalogue unavailable")
        return list(self.models)


class FakeTranscriptions:
    def __init__(self, records: Iterable[TranscriptionRecord] = (), fail: bool = False):
        self.records = list(records)
        self.fail = fail
        self.requested: list[list[int]] = []

    async def get_completed_transcriptions(self, module_ids, start_date=None, end_date=None):
        self.requested.append(list(module_ids))
        if self.fail:
            raise ConnectionError("files table unavailable")
        return [r for r in self.records if r.module_id in module_ids]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def pricing_rows() -> list[ModelPricing]:
    """$1/M input and $3/M output for gpt-4o-mini; cheaper haiku rates."""
    return [
        ModelPricing(
            model_name="gpt-4o-mini",
            provider="openai",
            input_cost_per_1m=Decimal("1"),
            output_cost_per_1m=Decimal("3"),
        ),
        ModelPricing(
            model_name="claude-3-haiku",
            provider="anthropic",
            input_cost_per_1m=Decimal("0.25"),
            output_cost_per_1m=Decimal("1.25"),
        ),
    ]


@pytest.fixture
def make_event() -> Callable[..., ChatMessageEvent]:
    """
    Chat event factory.

    Each call gets a unique conversation and message ID; pass `at` to
    set the event time from a datetime.
    """
    counter = itertools.count(1)

    def factory(**overrides) -> ChatMessageEvent:
        n = next(counter)
        data = {
            "conversation_id": f"conv-{n}",
            "timestamp": to_ms(NOW) - n * 1000,
            "message_id": f"msg-{n}",
            "student_id": 1,
            "module_id": 100,
            "question": f"Question number {n}",
            "response": "Answer",
            "model_used": "gpt-4o-mini",
            "provider": "openai",
            "token_count": 1000,
            "response_time_ms": 1500,
        }
        if "at" in overrides:
            overrides["timestamp"] = to_ms(overrides.pop("at"))
        data.update(overrides)
        return ChatMessageEvent(**data)

    return factory


@pytest.fixture
def hierarchy() -> FakeHierarchy:
    return FakeHierarchy()


@pytest.fixture
def super_admin() -> Caller:
    return Caller(user_id=1, role="super_admin")


@pytest.fixture
def professor() -> Caller:
    return Caller(user_id=7, role="professor", university_id=1)


@pytest.fixture
def admin_professor() -> Caller:
    return Caller(user_id=8, role="admin_professor", university_id=1)


@pytest.fixture
def build_service(hierarchy, pricing_rows) -> Callable[..., AnalyticsService]:
    """Build an AnalyticsService over in-memory sources and a fixed clock."""

    def factory(
        events: Iterable[ChatMessageEvent] = (),
        store: FakeEventStore | None = None,
        pricing: FakePricing | None = None,
        transcriptions: FakeTranscriptions | None = None,
        now: datetime = NOW,
    ) -> AnalyticsService:
        return AnalyticsService(
            event_store=store or FakeEventStore(events),
            hierarchy=hierarchy,
            pricing=pricing or FakePricing(pricing_rows),
            transcriptions=transcriptions or FakeTranscriptions(),
            clock=lambda: now,
        )

    return factory


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite engine so concurrent sessions see the same data."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'analytics.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def client(build_service, make_event) -> Generator[TestClient, None, None]:
    """Test client backed by in-memory sources; lifespan is not run."""
    events = [
        make_event(module_id=100, student_id=1, conversation_id="c1", at=NOW),
        make_event(module_id=100, student_id=2, conversation_id="c2", at=NOW),
        make_event(module_id=200, student_id=3, conversation_id="c3", at=NOW),
    ]
    service = build_service(events)
    app.dependency_overrides[get_analytics_service] = lambda: service

    yield TestClient(app)

    app.dependency_overrides.clear()
