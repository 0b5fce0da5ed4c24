"""
Event Schemas
=============
Read-side value types consumed by the analytics engine: chat events,
model pricing rows, hierarchy references and transcription records.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ChatMessageEvent(BaseModel):
    """
    A single chat interaction read from the event log.
    Immutable; identity is (conversation_id, timestamp, message_id).
    """

    model_config = ConfigDict(frozen=True, from_attributes=True, protected_namespaces=())

    conversation_id: str
    timestamp: int = Field(..., description="Epoch milliseconds")
    message_id: str
    student_id: int = 0
    module_id: int
    question: str = ""
    response: str = ""
    model_used: str = ""
    provider: str = ""
    token_count: int | None = None
    response_time_ms: int | None = None
    has_file: bool = False
    file_name: str | None = None

    @property
    def occurred_at(self) -> datetime:
        """Event time as an aware UTC datetime."""
        return datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)

    @property
    def is_anonymous(self) -> bool:
        return self.student_id == 0


class ModelPricing(BaseModel):
    """Per-million-token pricing for one model."""

    model_config = ConfigDict(frozen=True, from_attributes=True, protected_namespaces=())

    model_name: str
    provider: str
    input_cost_per_1m: Decimal = Decimal("0")
    output_cost_per_1m: Decimal = Decimal("0")


class ModuleRef(BaseModel):
    """Module node of the hierarchy."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    course_id: int
    name: str = ""


class CourseRef(BaseModel):
    """Course node of the hierarchy."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    university_id: int
    name: str = ""


class TranscriptionRecord(BaseModel):
    """Completed video transcription with its billed cost."""

    model_config = ConfigDict(frozen=True)

    module_id: int
    cost_usd: Decimal = Decimal("0")
    duration_seconds: int = 0


class UserRole(str, Enum):
    """Roles that may query analytics."""

    SUPER_ADMIN = "super_admin"
    PROFESSOR = "professor"
    ADMIN_PROFESSOR = "admin_professor"


class Caller(BaseModel):
    """Identity of the user requesting analytics."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    role: str
    university_id: int | None = None
