from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_training_programs"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "exercises",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("muscle_group", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("video_file_id", sa.Integer(), nullable=True),
        sa.Column("video_thumbnail_file_id", sa.Integer(), nullable=True),
        sa.Column("original_video_file_name", sa.String(length=255), nullable=True),
        sa.Column("video_duration", sa.Integer(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_exercises_id", "exercises", ["id"])
    op.create_index("ix_exercises_title", "exercises", ["title"])
    op.create_index("ix_exercises_muscle_group", "exercises", ["muscle_group"])

    op.create_table(
        "training_programs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("type", sa.String(length=32), nullable=False, server_default="mixed"),
        *_timestamps(),
    )
    op.create_index("ix_training_programs_id", "training_programs", ["id"])

    op.create_table(
        "training_weeks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "program_id",
            sa.Integer(),
            sa.ForeignKey("training_programs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("order", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("program_id", "order", name="uq_training_weeks_program_order"),
        sa.CheckConstraint('"order" >= 1', name="ck_training_weeks_order_positive"),
    )
    op.create_index("ix_training_weeks_id", "training_weeks", ["id"])
    op.create_index("ix_training_weeks_program_id", "training_weeks", ["program_id"])

    op.create_table(
        "training_days",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "week_id",
            sa.Integer(),
            sa.ForeignKey("training_weeks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False, server_default=""),
        *_timestamps(),
        sa.UniqueConstraint("week_id", "day_of_week", name="uq_training_days_week_day_of_week"),
        sa.CheckConstraint("day_of_week BETWEEN 1 AND 7", name="ck_training_days_day_of_week_range"),
    )
    op.create_index("ix_training_days_id", "training_days", ["id"])
    op.create_index("ix_training_days_week_id", "training_days", ["week_id"])

    op.create_table(
        "workout_exercises",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "day_id",
            sa.Integer(),
            sa.ForeignKey("training_days.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "exercise_id",
            sa.Integer(),
            sa.ForeignKey("exercises.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False, server_default="reps"),
        sa.Column("sets", sa.Integer(), nullable=False),
        sa.Column("reps_or_time", sa.String(length=64), nullable=False),
        sa.Column("rest", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("rpe", sa.Float(), nullable=True),
        sa.Column("rir", sa.Integer(), nullable=True),
        sa.Column("tut", sa.Integer(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column(
            "superset_workout_exercise_id",
            sa.Integer(),
            sa.ForeignKey("workout_exercises.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
        sa.UniqueConstraint("day_id", "order", name="uq_workout_exercises_day_order"),
    )
    op.create_index("ix_workout_exercises_id", "workout_exercises", ["id"])
    op.create_index("ix_workout_exercises_day_id", "workout_exercises", ["day_id"])
    op.create_index("ix_workout_exercises_exercise_id", "workout_exercises", ["exercise_id"])

    op.create_table(
        "program_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "program_id",
            sa.Integer(),
            sa.ForeignKey("training_programs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column(
            "completed",
            sa.Boolean(),
            nullable=False,
            server_default=sa.sql.expression.false(),
        ),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_program_assignments_id", "program_assignments", ["id"])
    op.create_index("ix_program_assignments_program_id", "program_assignments", ["program_id"])
    op.create_index("ix_program_assignments_user_id", "program_assignments", ["user_id"])
    op.create_index(
        "uq_program_assignments_user_incomplete",
        "program_assignments",
        ["user_id"],
        unique=True,
        sqlite_where=sa.text("completed = 0"),
        postgresql_where=sa.text("completed = false"),
    )


def downgrade() -> None:
    op.drop_index("uq_program_assignments_user_incomplete", table_name="program_assignments")
    op.drop_table("program_assignments")
    op.drop_table("workout_exercises")
    op.drop_table("training_days")
    op.drop_table("training_weeks")
    op.drop_table("training_programs")
    op.drop_table("exercises")
