"""
Chat Event Models
=================
Append-only log of per-interaction chat events.
"""

from sqlalchemy import BigInteger, Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.models.base import Base


class ChatMessage(Base):
    """
    One question/answer exchange between a student and the tutor.

    Written by the chat runtime; never updated or deleted here.
    Identity is (conversation_id, timestamp, message_id).
    """

    __tablename__ = "chat_messages"

    conversation_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, primary_key=True)  # epoch ms
    message_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    student_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    module_id: Mapped[int] = mapped_column(Integer, nullable=False)
    question: Mapped[str] = mapped_column(Text, nullable=False, default="")
    response: Mapped[str] = mapped_column(Text, nullable=False, default="")
    model_used: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    provider: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    token_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    response_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    has_file: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        Index("idx_chat_module_timestamp", "module_id", "timestamp"),
        Index("idx_chat_student_timestamp", "student_id", "timestamp"),
        Index("idx_chat_provider_timestamp", "provider", "timestamp"),
    )
