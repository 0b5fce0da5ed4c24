"""
Event Fetch Orchestration
=========================
Bounded parallel fan-out of per-module event reads.
"""

import asyncio
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog

from backend.config import settings
from backend.metrics import FETCH_FAILURES
from backend.schemas.events import ChatMessageEvent
from backend.sources.base import EventStore

logger = structlog.get_logger()

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_epoch_ms(value: Optional[datetime]) -> Optional[int]:
    """Datetime to epoch milliseconds; naive values are read as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // timedelta(milliseconds=1)


class EventFetchOrchestrator:
    """
    Fan out one event-store query per module and merge the results.

    Concurrency is capped by a semaphore. A failing module read is
    logged, counted and treated as empty so the aggregate stays
    partially available. Cancellation of the caller cancels every
    outstanding read.
    """

    def __init__(self, store: EventStore, concurrency: Optional[int] = None):
        self.store = store
        self.concurrency = concurrency or settings.fetch_concurrency

    async def fetch(
        self,
        module_ids: Sequence[int],
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[ChatMessageEvent]:
        """
        Events of all given modules within the date range.

        Results are concatenated in module order, newest first within a
        module. Events are not deduplicated.
        """
        per_module = await self.fetch_by_module(module_ids, start, end, limit)
        return [event for events in per_module.values() for event in events]

    async def fetch_by_module(
        self,
        module_ids: Sequence[int],
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> dict[int, list[ChatMessageEvent]]:
        """Events keyed by module ID, in the order the modules were given."""
        unique_ids = list(dict.fromkeys(module_ids))
        if not unique_ids:
            return {}

        limit = limit or settings.module_query_limit
        start_ms = to_epoch_ms(start)
        end_ms = to_epoch_ms(end)
        semaphore = asyncio.Semaphore(self.concurrency)

        async def fetch_one(module_id: int) -> list[ChatMessageEvent]:
            async with semaphore:
                try:
                    return await self.store.query(module_id, start_ms, end_ms, limit)
                except Exception as e:
                    FETCH_FAILURES.labels(source="event_store").inc()
                    logger.error(
                        "Module event fetch failed, treating as empty",
                        module_id=module_id,
                        error=str(e),
                    )
                    return []

        results = await asyncio.gather(*(fetch_one(mid) for mid in unique_ids))
        return dict(zip(unique_ids, results))
