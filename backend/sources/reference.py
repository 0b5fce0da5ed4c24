"""
SQL Reference Sources
=====================
Hierarchy, pricing and transcription reads from the platform tables.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.models.reference import AIModel, Course, File, Module, ProfessorCourse
from backend.schemas.events import (
    CourseRef,
    ModelPricing,
    ModuleRef,
    TranscriptionRecord,
)


class SqlHierarchySource:
    """Module/course hierarchy and professor course assignments."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def list_modules(self) -> list[ModuleRef]:
        async with self.session_factory() as session:
            result = await session.execute(select(Module).order_by(Module.id))
            return [ModuleRef.model_validate(row) for row in result.scalars().all()]

    async def list_courses(self) -> list[CourseRef]:
        async with self.session_factory() as session:
            result = await session.execute(select(Course).order_by(Course.id))
            return [CourseRef.model_validate(row) for row in result.scalars().all()]

    async def professor_course_ids(self, professor_id: int, limit: int) -> list[int]:
        stmt = (
            select(ProfessorCourse.course_id)
            .where(ProfessorCourse.professor_id == professor_id)
            .order_by(ProfessorCourse.course_id)
            .limit(limit)
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())


class SqlPricingSource:
    """Active rows of the ai_models catalogue."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_active_models(self) -> list[ModelPricing]:
        stmt = select(AIModel).where(AIModel.is_active.is_(True)).order_by(AIModel.model_name)
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [
                ModelPricing(
                    model_name=row.model_name,
                    provider=row.provider,
                    input_cost_per_1m=row.input_cost_per_1m or Decimal("0"),
                    output_cost_per_1m=row.output_cost_per_1m or Decimal("0"),
                )
                for row in result.scalars().all()
            ]


class SqlTranscriptionSource:
    """
    Completed YouTube transcriptions with a recorded cost.

    The end bound covers the whole end day.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_completed_transcriptions(
        self,
        module_ids: list[int],
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[TranscriptionRecord]:
        if not module_ids:
            return []

        stmt = select(File).where(
            File.module_id.in_(module_ids),
            File.source_type == "youtube",
            File.transcription_status == "completed",
            File.transcription_cost_usd.is_not(None),
            File.is_active.is_(True),
        )
        if start_date is not None:
            stmt = stmt.where(File.transcripted_at >= start_date)
        if end_date is not None:
            next_day = datetime.combine(end_date.date(), datetime.min.time(), end_date.tzinfo)
            stmt = stmt.where(File.transcripted_at < next_day + timedelta(days=1))

        async with self.session_factory() as session:
            result = await session.execute(stmt.order_by(File.id))
            return [
                TranscriptionRecord(
                    module_id=row.module_id,
                    cost_usd=row.transcription_cost_usd or Decimal("0"),
                    duration_seconds=row.video_duration_seconds or 0,
                )
                for row in result.scalars().all()
            ]
