"""
Reference Models
================
Read-only views of the platform tables the analytics engine consults:
the module/course hierarchy, professor assignments, model pricing and
video transcriptions. These tables are owned by the host application.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from backend.models.base import Base, TimestampMixin


class Course(Base, TimestampMixin):
    """A course offered by a university."""

    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    university_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)


class Module(Base, TimestampMixin):
    """A tutoring module inside a course."""

    __tablename__ = "modules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.id"), nullable=False, index=True
    )


class ProfessorCourse(Base):
    """Assignment of a professor to a course."""

    __tablename__ = "professor_courses"

    professor_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id"), primary_key=True)


class AIModel(Base, TimestampMixin):
    """Model catalogue entry with per-million-token pricing."""

    __tablename__ = "ai_models"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    model_name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    input_cost_per_1m: Mapped[Decimal | None] = mapped_column(Numeric(20, 10), nullable=True)
    output_cost_per_1m: Mapped[Decimal | None] = mapped_column(Numeric(20, 10), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class File(Base, TimestampMixin):
    """Uploaded or linked file; YouTube sources carry transcription cost."""

    __tablename__ = "files"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    module_id: Mapped[int] = mapped_column(
        ForeignKey("modules.id"), nullable=False, index=True
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    source_type: Mapped[str] = mapped_column(String(50), nullable=False, default="upload")
    transcription_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    transcription_cost_usd: Mapped[Decimal | None] = mapped_column(
        Numeric(20, 10), nullable=True
    )
    video_duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    transcripted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
