"""Chat event log

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:00:01

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261019_000001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # Reference tables (courses, modules, ai_models, files, professor_courses)
    # belong to the host platform and are not managed here.
    op.create_table(
        "chat_messages",
        sa.Column("conversation_id", sa.String(64), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("message_id", sa.String(64), nullable=False),
        sa.Column("student_id", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("module_id", sa.Integer(), nullable=False),
        sa.Column("question", sa.Text(), nullable=False, server_default=""),
        sa.Column("response", sa.Text(), nullable=False, server_default=""),
        sa.Column("model_used", sa.String(255), nullable=False, server_default=""),
        sa.Column("provider", sa.String(50), nullable=False, server_default=""),
        sa.Column("token_count", sa.Integer(), nullable=True),
        sa.Column("response_time_ms", sa.Integer(), nullable=True),
        sa.Column("has_file", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("file_name", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("conversation_id", "timestamp", "message_id"),
    )

    # Per-module range reads are the hot path
    op.create_index("idx_chat_module_timestamp", "chat_messages", ["module_id", "timestamp"])
    op.create_index("idx_chat_student_timestamp", "chat_messages", ["student_id", "timestamp"])
    op.create_index("idx_chat_provider_timestamp", "chat_messages", ["provider", "timestamp"])


def downgrade() -> None:
    op.drop_index("idx_chat_provider_timestamp", table_name="chat_messages")
    op.drop_index("idx_chat_student_timestamp", table_name="chat_messages")
    op.drop_index("idx_chat_module_timestamp", table_name="chat_messages")
    op.drop_table("chat_messages")
