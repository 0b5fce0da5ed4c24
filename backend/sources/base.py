"""
Source Interfaces
=================
Narrow read interfaces over the external collaborators the analytics
engine consumes: the chat event log and the platform reference data.
"""

from datetime import datetime
from typing import Protocol

from backend.schemas.events import (
    ChatMessageEvent,
    CourseRef,
    ModelPricing,
    ModuleRef,
    TranscriptionRecord,
)


class EventStore(Protocol):
    """Indexed, append-only chat event log."""

    async def query(
        self,
        module_id: int,
        start_ms: int | None = None,
        end_ms: int | None = None,
        limit: int = 1000,
    ) -> list[ChatMessageEvent]:
        """Events of one module, newest first, bounded by limit."""
        ...

    async def scan(
        self,
        start_ms: int | None = None,
        end_ms: int | None = None,
        limit: int = 10000,
    ) -> list[ChatMessageEvent]:
        """Events across all modules, for filters the log cannot index."""
        ...


class HierarchySource(Protocol):
    """Module -> course -> university hierarchy and professor assignments."""

    async def list_modules(self) -> list[ModuleRef]: ...

    async def list_courses(self) -> list[CourseRef]: ...

    async def professor_course_ids(self, professor_id: int, limit: int) -> list[int]: ...


class PricingSource(Protocol):
    """Active model pricing rows."""

    async def get_active_models(self) -> list[ModelPricing]: ...


class TranscriptionSource(Protocol):
    """Completed video transcriptions with billed cost."""

    async def get_completed_transcriptions(
        self,
        module_ids: list[int],
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[TranscriptionRecord]: ...
