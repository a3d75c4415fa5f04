"""create scheduling core

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

DAY_VALUES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def upgrade() -> None:
    user_role = sa.Enum("Administrator", "Professor", "Student", name="user_role")
    class_type = sa.Enum("Base", "Extra", name="class_type")
    day_of_week = sa.Enum(*DAY_VALUES, name="day_of_week")

    op.create_table(
        "branches",
        sa.Column("branch_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("branch_code", sa.String(length=20), nullable=False),
        sa.Column("branch_name", sa.String(length=200), nullable=False),
        sa.UniqueConstraint("branch_code", name="uq_branches_branch_code"),
    )

    op.create_table(
        "divisions",
        sa.Column("division_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "branch_id",
            sa.Integer(),
            sa.ForeignKey("branches.branch_id", ondelete="RESTRICT", name="fk_divisions_branch_id_branches"),
            nullable=False,
        ),
        sa.Column("division_name", sa.String(length=50), nullable=False),
        sa.UniqueConstraint("branch_id", "division_name", name="uq_divisions_branch_division_name"),
    )

    op.create_table(
        "batches",
        sa.Column("batch_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "division_id",
            sa.Integer(),
            sa.ForeignKey("divisions.division_id", ondelete="RESTRICT", name="fk_batches_division_id_divisions"),
            nullable=False,
        ),
        sa.Column("batch_name", sa.String(length=50), nullable=False),
        sa.UniqueConstraint("division_id", "batch_name", name="uq_batches_division_batch_name"),
    )

    op.create_table(
        "users",
        sa.Column("user_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column(
            "batch_id",
            sa.Integer(),
            sa.ForeignKey("batches.batch_id", ondelete="SET NULL", name="fk_users_batch_id_batches"),
            nullable=True,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "classrooms",
        sa.Column("classroom_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("room_number", sa.String(length=50), nullable=False),
        sa.Column("building", sa.String(length=200), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("building", "room_number", name="uq_classrooms_building_room_number"),
    )

    op.create_table(
        "courses",
        sa.Column("course_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("course_code", sa.String(length=50), nullable=False),
        sa.Column("course_name", sa.String(length=200), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_courses_course_code", "courses", ["course_code"], unique=True)

    op.create_table(
        "schedule",
        sa.Column("schedule_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "course_id",
            sa.Integer(),
            sa.ForeignKey("courses.course_id", ondelete="RESTRICT", name="fk_schedule_course_id_courses"),
            nullable=False,
        ),
        sa.Column(
            "professor_id",
            sa.Integer(),
            sa.ForeignKey("users.user_id", ondelete="RESTRICT", name="fk_schedule_professor_id_users"),
            nullable=False,
        ),
        sa.Column(
            "batch_id",
            sa.Integer(),
            sa.ForeignKey("batches.batch_id", ondelete="RESTRICT", name="fk_schedule_batch_id_batches"),
            nullable=False,
        ),
        sa.Column(
            "classroom_id",
            sa.Integer(),
            sa.ForeignKey("classrooms.classroom_id", ondelete="RESTRICT", name="fk_schedule_classroom_id_classrooms"),
            nullable=False,
        ),
        sa.Column("class_type", class_type, nullable=False),
        sa.Column("day_of_week", day_of_week, nullable=True),
        sa.Column("class_date", sa.Date(), nullable=True),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("start_time < end_time", name="ck_schedule_time_order"),
        sa.CheckConstraint(
            "(class_type = 'Base' AND day_of_week IS NOT NULL AND class_date IS NULL) OR "
            "(class_type = 'Extra' AND class_date IS NOT NULL AND day_of_week IS NULL)",
            name="ck_schedule_recurrence_shape",
        ),
    )
    op.create_index("ix_schedule_classroom_window", "schedule", ["classroom_id", "start_time", "end_time"])
    op.create_index("ix_schedule_professor_window", "schedule", ["professor_id", "start_time", "end_time"])
    op.create_index("ix_schedule_batch_window", "schedule", ["batch_id", "start_time", "end_time"])
    op.create_index("ix_schedule_class_date", "schedule", ["class_date"])
    op.create_index("ix_schedule_day_of_week", "schedule", ["day_of_week"])


def downgrade() -> None:
    op.drop_index("ix_schedule_day_of_week", table_name="schedule")
    op.drop_index("ix_schedule_class_date", table_name="schedule")
    op.drop_index("ix_schedule_batch_window", table_name="schedule")
    op.drop_index("ix_schedule_professor_window", table_name="schedule")
    op.drop_index("ix_schedule_classroom_window", table_name="schedule")
    op.drop_table("schedule")
    op.drop_index("ix_courses_course_code", table_name="courses")
    op.drop_table("courses")
    op.drop_table("classrooms")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    op.drop_table("batches")
    op.drop_table("divisions")
    op.drop_table("branches")

    bind = op.get_bind()
    sa.Enum(name="day_of_week").drop(bind, checkfirst=True)
    sa.Enum(name="class_type").drop(bind, checkfirst=True)
    sa.Enum(name="user_role").drop(bind, checkfirst=True)
