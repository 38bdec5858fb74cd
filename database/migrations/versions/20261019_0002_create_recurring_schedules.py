"""create recurring schedules, enabled days and day assignments

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


week_day_enum = sa.Enum("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN", name="week_day")


def upgrade() -> None:
    op.create_table(
        "recurring_schedules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "teacher_id",
            sa.Integer(),
            sa.ForeignKey("teachers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("label", sa.String(length=100), nullable=True),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("max_students", sa.Integer(), nullable=False, server_default="4"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_recurring_schedules_teacher_id", "recurring_schedules", ["teacher_id"])

    op.create_table(
        "recurring_schedule_days",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "recurring_schedule_id",
            sa.Integer(),
            sa.ForeignKey("recurring_schedules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day", week_day_enum, nullable=False),
        sa.UniqueConstraint("recurring_schedule_id", "day", name="uq_recurring_schedule_days_schedule_day"),
    )
    op.create_index(
        "ix_recurring_schedule_days_recurring_schedule_id",
        "recurring_schedule_days",
        ["recurring_schedule_id"],
    )

    op.create_table(
        "recurring_day_assignments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "recurring_schedule_id",
            sa.Integer(),
            sa.ForeignKey("recurring_schedules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day", week_day_enum, nullable=False),
        sa.Column(
            "student_id",
            sa.Integer(),
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "recurring_schedule_id",
            "day",
            "student_id",
            name="uq_recurring_day_assignments_schedule_day_student",
        ),
    )
    op.create_index(
        "ix_recurring_day_assignments_recurring_schedule_id",
        "recurring_day_assignments",
        ["recurring_schedule_id"],
    )
    op.create_index("ix_recurring_day_assignments_student_id", "recurring_day_assignments", ["student_id"])


def downgrade() -> None:
    op.drop_index("ix_recurring_day_assignments_student_id", table_name="recurring_day_assignments")
    op.drop_index(
        "ix_recurring_day_assignments_recurring_schedule_id",
        table_name="recurring_day_assignments",
    )
    op.drop_table("recurring_day_assignments")
    op.drop_index(
        "ix_recurring_schedule_days_recurring_schedule_id",
        table_name="recurring_schedule_days",
    )
    op.drop_table("recurring_schedule_days")
    op.drop_index("ix_recurring_schedules_teacher_id", table_name="recurring_schedules")
    op.drop_table("recurring_schedules")
    week_day_enum.drop(op.get_bind(), checkfirst=True)
