"""initial workout tracker tables

Revision ID: 0001_initial_tracker
Revises:
Create Date: 2026-10-18 10:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial_tracker"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "exercises",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.String(length=255), nullable=True, index=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("met_value", sa.Float, nullable=True),
    )
    op.create_table(
        "user_profiles",
        sa.Column("user_id", sa.String(length=255), primary_key=True),
        sa.Column("weight", sa.Float, nullable=True),
        sa.Column("weight_unit", sa.String(length=8), nullable=False),
    )
    op.create_table(
        "workout_templates",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.String(length=255), nullable=False, index=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String, nullable=True),
        sa.Column("color", sa.String(length=32), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )
    op.create_table(
        "template_exercises",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column(
            "template_id",
            sa.Integer,
            sa.ForeignKey("workout_templates.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("exercise_id", sa.Integer, sa.ForeignKey("exercises.id"), nullable=False),
        sa.Column("order_index", sa.Integer, nullable=False),
        sa.Column("target_sets", sa.Integer, nullable=True),
        sa.Column("target_reps", sa.Integer, nullable=True),
        sa.Column("rest_between_sets", sa.Integer, nullable=True),
        sa.Column("target_duration_minutes", sa.Float, nullable=True),
        sa.Column("target_distance_miles", sa.Float, nullable=True),
        sa.Column("notes", sa.String, nullable=True),
    )
    op.create_table(
        "workouts",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.String(length=255), nullable=False, index=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("template_id", sa.Integer, nullable=True, index=True),
        sa.Column("status", sa.String(length=32), nullable=False, index=True),
        sa.Column("started_at", sa.DateTime, nullable=False),
        sa.Column("completed_at", sa.DateTime, nullable=True),
        sa.Column("total_calories_burned", sa.Integer, nullable=True),
        sa.Column("total_active_time", sa.Integer, nullable=True),
        sa.Column("total_rest_time", sa.Integer, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )
    op.create_table(
        "workout_exercises",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.String(length=255), nullable=False, index=True),
        sa.Column(
            "workout_id",
            sa.Integer,
            sa.ForeignKey("workouts.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("exercise_id", sa.Integer, sa.ForeignKey("exercises.id"), nullable=False, index=True),
        sa.Column("order_index", sa.Integer, nullable=False),
        sa.Column("target_sets", sa.Integer, nullable=False),
        sa.Column("target_reps", sa.Integer, nullable=False),
        sa.Column("target_duration_minutes", sa.Float, nullable=True),
        sa.Column("target_distance_miles", sa.Float, nullable=True),
        sa.Column("suggested_weight", sa.Float, nullable=True),
        sa.Column("rest_between_sets", sa.Integer, nullable=True),
        sa.Column("completed", sa.Boolean, nullable=False),
    )
    op.create_table(
        "workout_sets",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column(
            "workout_exercise_id",
            sa.Integer,
            sa.ForeignKey("workout_exercises.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("set_number", sa.Integer, nullable=False),
        sa.Column("reps", sa.Integer, nullable=True),
        sa.Column("weight", sa.Float, nullable=True),
        sa.Column("rpe", sa.Float, nullable=True),
        sa.Column("duration_minutes", sa.Float, nullable=True),
        sa.Column("distance_miles", sa.Float, nullable=True),
        sa.Column("calories_burned", sa.Integer, nullable=True),
        sa.Column("completed", sa.Boolean, nullable=False),
        sa.Column("notes", sa.String, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )
    op.create_table(
        "exercise_progressions",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.String(length=255), nullable=False, index=True),
        sa.Column("exercise_id", sa.Integer, sa.ForeignKey("exercises.id"), nullable=False),
        sa.Column("last_workout_id", sa.Integer, nullable=True),
        sa.Column("avg_weight", sa.Float, nullable=False),
        sa.Column("avg_reps", sa.Float, nullable=False),
        sa.Column("recommendation", sa.String(length=32), nullable=False),
        sa.Column("recommendation_details", sa.String, nullable=False),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
        sa.UniqueConstraint("user_id", "exercise_id", name="uq_exercise_progressions_user_exercise"),
    )


def downgrade() -> None:
    op.drop_table("exercise_progressions")
    op.drop_table("workout_sets")
    op.drop_table("workout_exercises")
    op.drop_table("workouts")
    op.drop_table("template_exercises")
    op.drop_table("workout_templates")
    op.drop_table("user_profiles")
    op.drop_table("exercises")
