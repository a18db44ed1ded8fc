"""Create conversation, participant, message and read-receipt tables

Revision ID: 20261019_create_chat_tables
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_create_chat_tables"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list:
    return [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    ]


def upgrade() -> None:
    # Create conversation table
    op.create_table(
        "chat_conversations",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("kind", sa.String(16), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("direct_key", sa.String(64), nullable=True),
        sa.Column("deleted_at", sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "kind IN ('direct', 'group')", name="conversation_kind"
        ),
    )

    # Create participant table
    op.create_table(
        "chat_participants",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column(
            "conversation_id",
            sa.BigInteger,
            sa.ForeignKey("chat_conversations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.BigInteger, nullable=False),
        sa.Column(
            "joined_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        *_timestamps(),
        sa.UniqueConstraint(
            "conversation_id", "user_id", name="uq_chat_participants_conversation_user"
        ),
    )

    # Create message table; its id sequence is the global poll cursor
    op.create_table(
        "chat_messages",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column(
            "conversation_id",
            sa.BigInteger,
            sa.ForeignKey("chat_conversations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sender_id", sa.BigInteger, nullable=False),
        sa.Column("body", sa.Text, nullable=False),
        sa.Column("attachments", sa.JSON, nullable=True),
        sa.Column("deleted_at", sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
    )

    # Create read receipt table
    op.create_table(
        "chat_message_reads",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column(
            "message_id",
            sa.BigInteger,
            sa.ForeignKey("chat_messages.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.BigInteger, nullable=False),
        sa.Column(
            "read_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        *_timestamps(),
        sa.UniqueConstraint(
            "message_id", "user_id", name="uq_chat_message_reads_message_user"
        ),
    )

    # Create indexes for efficient querying
    op.create_index(
        "uq_chat_conversations_direct_key",
        "chat_conversations",
        ["direct_key"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
        sqlite_where=sa.text("deleted_at IS NULL"),
    )
    op.create_index("ix_chat_conversations_kind", "chat_conversations", ["kind"])
    op.create_index(
        "ix_chat_participants_user_conversation",
        "chat_participants",
        ["user_id", "conversation_id"],
    )
    op.create_index(
        "ix_chat_messages_conversation_id_id",
        "chat_messages",
        ["conversation_id", "id"],
    )
    op.create_index("ix_chat_messages_sender_id", "chat_messages", ["sender_id"])
    op.create_index(
        "ix_chat_message_reads_message_id", "chat_message_reads", ["message_id"]
    )


def downgrade() -> None:
    # Drop indexes
    op.drop_index("ix_chat_message_reads_message_id", table_name="chat_message_reads")
    op.drop_index("ix_chat_messages_sender_id", table_name="chat_messages")
    op.drop_index("ix_chat_messages_conversation_id_id", table_name="chat_messages")
    op.drop_index(
        "ix_chat_participants_user_conversation", table_name="chat_participants"
    )
    op.drop_index("ix_chat_conversations_kind", table_name="chat_conversations")
    op.drop_index("uq_chat_conversations_direct_key", table_name="chat_conversations")

    # Drop tables
    op.drop_table("chat_message_reads")
    op.drop_table("chat_messages")
    op.drop_table("chat_participants")
    op.drop_table("chat_conversations")
