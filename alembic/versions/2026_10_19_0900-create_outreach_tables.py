"""Create outreach_records, outreach_messages and stage_changes tables

Revision ID: create_outreach_tables
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "create_outreach_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "outreach_records",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("board_type", sa.String(32), nullable=False),
        sa.Column("stage", sa.String(32), nullable=False),
        sa.Column("company_name", sa.String(256), nullable=False),
        sa.Column("position", sa.String(256), nullable=True),
        sa.Column("contact_name", sa.String(256), nullable=True),
        sa.Column("contact_email", sa.String(320), nullable=True),
        sa.Column("contact_role", sa.String(256), nullable=True),
        sa.Column("contact_linkedin", sa.String(512), nullable=True),
        sa.Column("relationship_goal", sa.String(32), nullable=True),
        sa.Column("warmth_level", sa.String(16), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("gmail_thread_id", sa.String(256), nullable=True),
        sa.Column("last_contacted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_follow_up_at", sa.DateTime(timezone=True), nullable=True),
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
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_outreach_records_stage", "outreach_records", ["stage"], unique=False
    )

    op.create_table(
        "outreach_messages",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("record_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("direction", sa.String(16), nullable=False),
        sa.Column("channel", sa.String(32), nullable=False),
        sa.Column("subject", sa.String(998), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("delivery_status", sa.String(16), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(
            ["record_id"], ["outreach_records.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "record_id", "position", name="uq_outreach_messages_position"
        ),
    )
    op.create_index(
        "ix_outreach_messages_record_id",
        "outreach_messages",
        ["record_id"],
        unique=False,
    )

    op.create_table(
        "stage_changes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("record_id", sa.Uuid(), nullable=False),
        sa.Column("from_stage", sa.String(32), nullable=True),
        sa.Column("to_stage", sa.String(32), nullable=False),
        sa.Column("source", sa.String(16), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(
            ["record_id"], ["outreach_records.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_stage_changes_record_id", "stage_changes", ["record_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_stage_changes_record_id", table_name="stage_changes")
    op.drop_table("stage_changes")
    op.drop_index("ix_outreach_messages_record_id", table_name="outreach_messages")
    op.drop_table("outreach_messages")
    op.drop_index("ix_outreach_records_stage", table_name="outreach_records")
    op.drop_table("outreach_records")
