"""create conversation tables

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a1c3e5f7b9d2"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    """Upgrade schema: sessions, modes, logs, advisors and sale status."""
    op.create_table(
        "user_sessions",
        _id_column(),
        sa.Column("identity", sa.String(length=64), nullable=False),
        sa.Column("chat_address", sa.String(length=256), nullable=True),
        sa.Column(
            "messages", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")
        ),
        sa.Column("selected_service", sa.String(length=256), nullable=True),
        sa.Column("session_mode", sa.String(length=32), nullable=True),
        sa.Column(
            "questions_asked",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "user_data", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")
        ),
        sa.Column(
            "last_activity",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        *_timestamps(),
    )
    op.create_index("ix_user_sessions_identity", "user_sessions", ["identity"], unique=True)
    op.create_index(
        "ix_user_sessions_last_activity", "user_sessions", ["last_activity"], unique=False
    )

    op.create_table(
        "mode_states",
        _id_column(),
        sa.Column("identity", sa.String(length=64), nullable=False),
        sa.Column("mode", sa.String(length=20), nullable=False, server_default="ai"),
        sa.Column("activated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("activated_by", sa.String(length=100), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_mode_states_identity", "mode_states", ["identity"], unique=True)
    op.create_index("ix_mode_states_mode", "mode_states", ["mode"], unique=False)

    op.create_table(
        "conversation_logs",
        _id_column(),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("identity", sa.String(length=64), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("response", sa.Text(), nullable=True),
        sa.Column("responder_id", sa.String(length=100), nullable=True),
    )
    op.create_index(
        "ix_conversation_logs_timestamp", "conversation_logs", ["timestamp"], unique=False
    )
    op.create_index("ix_conversation_logs_role", "conversation_logs", ["role"], unique=False)
    op.create_index(
        "ix_conversation_logs_identity_timestamp",
        "conversation_logs",
        ["identity", "timestamp"],
        unique=False,
    )

    op.create_table(
        "advisor_assignments",
        _id_column(),
        sa.Column("contact_identity", sa.String(length=64), nullable=False),
        sa.Column("advisor_index", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_advisor_assignments_contact_identity",
        "advisor_assignments",
        ["contact_identity"],
        unique=True,
    )

    op.create_table(
        "advisor_rotation",
        _id_column(),
        sa.Column("key", sa.String(length=32), nullable=False, server_default="default"),
        sa.Column("current_index", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("key", name="uq_advisor_rotation_key"),
    )

    op.create_table(
        "sale_status",
        _id_column(),
        sa.Column("identity", sa.String(length=64), nullable=False),
        sa.Column(
            "stage", sa.String(length=32), nullable=False, server_default="initial_contact"
        ),
        sa.Column("interest_level", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "products_interested",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "objections", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")
        ),
        sa.Column("next_action", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("possible_sale", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("analyzed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "appointment_scheduled", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "last_interaction",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        *_timestamps(),
    )
    op.create_index("ix_sale_status_identity", "sale_status", ["identity"], unique=True)
    op.create_index("ix_sale_status_stage", "sale_status", ["stage"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_sale_status_stage", table_name="sale_status")
    op.drop_index("ix_sale_status_identity", table_name="sale_status")
    op.drop_table("sale_status")
    op.drop_table("advisor_rotation")
    op.drop_index("ix_advisor_assignments_contact_identity", table_name="advisor_assignments")
    op.drop_table("advisor_assignments")
    op.drop_index("ix_conversation_logs_identity_timestamp", table_name="conversation_logs")
    op.drop_index("ix_conversation_logs_role", table_name="conversation_logs")
    op.drop_index("ix_conversation_logs_timestamp", table_name="conversation_logs")
    op.drop_table("conversation_logs")
    op.drop_index("ix_mode_states_mode", table_name="mode_states")
    op.drop_index("ix_mode_states_identity", table_name="mode_states")
    op.drop_table("mode_states")
    op.drop_index("ix_user_sessions_last_activity", table_name="user_sessions")
    op.drop_index("ix_user_sessions_identity", table_name="user_sessions")
    op.drop_table("user_sessions")
