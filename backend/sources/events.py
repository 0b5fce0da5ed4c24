"""
SQL Event Store
===============
Event log reads backed by the chat_messages table.
"""

import structlog
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.models.events import ChatMessage
from backend.schemas.events import ChatMessageEvent

logger = structlog.get_logger()


def _apply_range(stmt: Select, start_ms: int | None, end_ms: int | None) -> Select:
    if start_ms is not None:
        stmt = stmt.where(ChatMessage.timestamp >= start_ms)
    if end_ms is not None:
        stmt = stmt.where(ChatMessage.timestamp <= end_ms)
    return stmt


class SqlEventStore:
    """
    Event store over SQLAlchemy.

    Opens a fresh session per read so concurrent module queries never
    share a connection.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def query(
        self,
        module_id: int,
        start_ms: int | None = None,
        end_ms: int | None = None,
        limit: int = 1000,
    ) -> list[ChatMessageEvent]:
        stmt = select(ChatMessage).where(ChatMessage.module_id == module_id)
        stmt = _apply_range(stmt, start_ms, end_ms)
        stmt = stmt.order_by(ChatMessage.timestamp.desc()).limit(limit)
        return await self._fetch(stmt)

    async def scan(
        self,
        start_ms: int | None = None,
        end_ms: int | None = None,
        limit: int = 10000,
    ) -> list[ChatMessageEvent]:
        stmt = _apply_range(select(ChatMessage), start_ms, end_ms)
        stmt = stmt.order_by(ChatMessage.timestamp.desc()).limit(limit)
        return await self._fetch(stmt)

    async def _fetch(self, stmt: Select) -> list[ChatMessageEvent]:
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [ChatMessageEvent.model_validate(row) for row in result.scalars().all()]
