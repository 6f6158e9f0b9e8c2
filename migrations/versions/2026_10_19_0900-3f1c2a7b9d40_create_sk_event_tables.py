"""create_sk_event_tables

Revision ID: 3f1c2a7b9d40
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "3f1c2a7b9d40"
down_revision = None
branch_labels = None
depends_on = None

# Types are created once up front; several columns share the attendance type
event_status = postgresql.ENUM(
    "draft", "published", "completed", "cancelled", name="sk_event_status_enum", create_type=False
)
registration_status = postgresql.ENUM(
    "pending", "approved", "rejected", "cancelled", name="sk_registration_status_enum", create_type=False
)
attendance_status = postgresql.ENUM(
    "present", "absent", "late", name="sk_attendance_status_enum", create_type=False
)
ENUM_TYPES = (event_status, registration_status, attendance_status)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum_type in ENUM_TYPES:
            enum_type.create(bind, checkfirst=True)

    op.create_table(
        "sk_events",
        sa.Column("uuid", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("location", sa.String(length=500), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        sa.Column("status", event_status, nullable=False),
        sa.Column("created_by", sa.UUID(), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("uuid"),
        sa.CheckConstraint(
            "max_participants IS NULL OR max_participants > 0",
            name="ck_sk_events_max_participants_positive",
        ),
    )
    op.create_index("ix_sk_events_event_date", "sk_events", ["event_date"])
    op.create_index("ix_sk_events_category", "sk_events", ["category"])
    op.create_index("ix_sk_events_status", "sk_events", ["status"])

    op.create_table(
        "sk_event_registrations",
        sa.Column("uuid", sa.UUID(), nullable=False),
        sa.Column("event_id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("contact_number", sa.String(length=50), nullable=True),
        sa.Column("contact_email", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", registration_status, nullable=False),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reviewed_by", sa.UUID(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("uuid"),
        sa.ForeignKeyConstraint(["event_id"], ["sk_events.uuid"], ondelete="CASCADE"),
    )
    op.create_index("ix_sk_event_registrations_event_id", "sk_event_registrations", ["event_id"])
    op.create_index("ix_sk_event_registrations_user_id", "sk_event_registrations", ["user_id"])
    op.create_index("ix_sk_event_registrations_status", "sk_event_registrations", ["status"])
    op.create_index(
        "uq_sk_event_registrations_active",
        "sk_event_registrations",
        ["event_id", "user_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('pending', 'approved')"),
        sqlite_where=sa.text("status IN ('pending', 'approved')"),
    )

    op.create_table(
        "sk_attendance_records",
        sa.Column("uuid", sa.UUID(), nullable=False),
        sa.Column("event_id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("check_in_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("check_out_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("attendance_status", attendance_status, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("recorded_by", sa.UUID(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("uuid"),
        sa.ForeignKeyConstraint(["event_id"], ["sk_events.uuid"], ondelete="CASCADE"),
        sa.UniqueConstraint("event_id", "user_id", name="uq_sk_attendance_records_event_user"),
    )
    op.create_index("ix_sk_attendance_records_event_id", "sk_attendance_records", ["event_id"])
    op.create_index("ix_sk_attendance_records_user_id", "sk_attendance_records", ["user_id"])

    op.create_table(
        "sk_attendance_corrections",
        sa.Column("uuid", sa.UUID(), nullable=False),
        sa.Column("attendance_id", sa.UUID(), nullable=False),
        sa.Column("previous_status", attendance_status, nullable=False),
        sa.Column("new_status", attendance_status, nullable=False),
        sa.Column("previous_notes", sa.Text(), nullable=True),
        sa.Column("corrected_by", sa.UUID(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("uuid"),
        sa.ForeignKeyConstraint(
            ["attendance_id"], ["sk_attendance_records.uuid"], ondelete="CASCADE"
        ),
    )
    op.create_index(
        "ix_sk_attendance_corrections_attendance_id", "sk_attendance_corrections", ["attendance_id"]
    )


def downgrade() -> None:
    op.drop_table("sk_attendance_corrections")
    op.drop_table("sk_attendance_records")
    op.drop_index("uq_sk_event_registrations_active", table_name="sk_event_registrations")
    op.drop_table("sk_event_registrations")
    op.drop_table("sk_events")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum_type in reversed(ENUM_TYPES):
            enum_type.drop(bind, checkfirst=True)
