"""Initial schema: users, sessions, tags, events and their association tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        # Emails are stored lower-cased, so this is case-insensitive uniqueness.
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("length(name) >= 3", name="ck_users_name_len"),
        sa.CheckConstraint("email LIKE '%_@_%'", name="ck_users_email_format"),
        sa.CheckConstraint("role IN (0, 1)", name="ck_users_role"),
    )
    op.create_index("ix_users_email", "users", ["email"])

    # Sessions table
    op.create_table(
        "sessions",
        sa.Column("token", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_sessions_user_id", "sessions", ["user_id"])

    # Tags table
    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(64), nullable=False),
        sa.UniqueConstraint("name", name="uq_tags_name"),
    )

    # Events table
    op.create_table(
        "events",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(2000), nullable=False, server_default=""),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("fee", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("organizer_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("fee >= 0", name="ck_events_fee_non_negative"),
    )
    # Every listing is ordered by date and most filters bound it.
    op.create_index("ix_events_date", "events", ["date"])
    op.create_index("ix_events_fee", "events", ["fee"])
    op.create_index("ix_events_organizer_id", "events", ["organizer_id"])

    # Event <-> tag association
    op.create_table(
        "event_tags",
        sa.Column("event_id", sa.Uuid(), sa.ForeignKey("events.id"), primary_key=True),
        sa.Column("tag_id", sa.Integer(), sa.ForeignKey("tags.id"), primary_key=True),
    )
    # The primary key covers lookups by event; tag filters come in from the other side.
    op.create_index("ix_event_tags_tag_id", "event_tags", ["tag_id"])

    # Attendance: the composite primary key is what rejects a second registration
    op.create_table(
        "attendance",
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("event_id", sa.Uuid(), sa.ForeignKey("events.id"), primary_key=True),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_attendance_event_id", "attendance", ["event_id"])


def downgrade() -> None:
    op.drop_table("attendance")
    op.drop_table("event_tags")
    op.drop_table("events")
    op.drop_table("tags")
    op.drop_table("sessions")
    op.drop_table("users")
