"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "hosts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("timezone", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "availability_schedules",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("host_id", sa.Integer(), sa.ForeignKey("hosts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("timezone", sa.Text(), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "uq_availability_schedules_one_default",
        "availability_schedules",
        ["host_id"],
        unique=True,
        sqlite_where=sa.text("is_default"),
        postgresql_where=sa.text("is_default"),
    )
    op.create_table(
        "availability_rules",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "schedule_id",
            sa.Integer(),
            sa.ForeignKey("availability_schedules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Text(), nullable=False),
        sa.Column("end_time", sa.Text(), nullable=False),
    )
    op.create_table(
        "date_overrides",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "schedule_id",
            sa.Integer(),
            sa.ForeignKey("availability_schedules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("is_blocked", sa.Boolean(), nullable=False),
        sa.Column("start_time", sa.Text()),
        sa.Column("end_time", sa.Text()),
        sa.UniqueConstraint("schedule_id", "date", name="uq_date_override_schedule_date"),
    )
    op.create_table(
        "event_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("host_id", sa.Integer(), sa.ForeignKey("hosts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("slug", sa.Text(), nullable=False, unique=True),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("buffer_time_before", sa.Integer(), nullable=False),
        sa.Column("buffer_time_after", sa.Integer(), nullable=False),
        sa.Column("color", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "availability_schedule_id",
            sa.Integer(),
            sa.ForeignKey("availability_schedules.id", ondelete="SET NULL"),
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "booking_questions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "event_type_id",
            sa.Integer(),
            sa.ForeignKey("event_types.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False),
        sa.Column("options", sa.JSON()),
        sa.Column("order", sa.Integer(), nullable=False),
    )
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "event_type_id",
            sa.Integer(),
            sa.ForeignKey("event_types.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("host_id", sa.Integer(), sa.ForeignKey("hosts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("booker_name", sa.Text(), nullable=False),
        sa.Column("booker_email", sa.Text(), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        sa.Column("timezone", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("rescheduled_from_id", sa.Integer(), sa.ForeignKey("bookings.id", ondelete="SET NULL")),
        sa.Column("cancellation_reason", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_bookings_event_type_status_start",
        "bookings",
        ["event_type_id", "status", "start_time"],
    )
    op.create_table(
        "booking_answers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "question_id",
            sa.Integer(),
            sa.ForeignKey("booking_questions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("answer", sa.Text(), nullable=False),
        sa.UniqueConstraint("booking_id", "question_id", name="uq_booking_answer_question"),
    )


def downgrade():
    op.drop_table("booking_answers")
    op.drop_index("ix_bookings_event_type_status_start", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("booking_questions")
    op.drop_table("event_types")
    op.drop_table("date_overrides")
    op.drop_table("availability_rules")
    op.drop_index("uq_availability_schedules_one_default", table_name="availability_schedules")
    op.drop_table("availability_schedules")
    op.drop_table("hosts")
