from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from .enums import ExerciseType, TimeRange


class WeeklyComparison(BaseModel):
    this_week: float
    last_week: float
    percent_change: float


class WorkoutStatsResponse(BaseModel):
    total_workouts: int
    week_workouts: int
    volume: WeeklyComparison
    calories: WeeklyComparison


class ExerciseHistoryPoint(BaseModel):
    """One completed workout's performance of an exercise (completed sets only)."""

    workout_id: int
    date: datetime
    # Strength
    avg_weight: float | None = None
    max_weight: float | None = None
    avg_reps: float | None = None
    total_volume: float | None = None
    # Cardio
    avg_duration: float | None = None
    total_distance: float | None = None
    total_calories: int | None = None


class ExerciseHistoryResponse(BaseModel):
    exercise_id: int
    exercise_name: str
    exercise_type: ExerciseType
    range: TimeRange
    data: list[ExerciseHistoryPoint]


class PersonalRecord(BaseModel):
    exercise_id: int
    exercise_name: str
    exercise_type: ExerciseType
    date: datetime
    max_weight: float | None = None
    reps: int | None = None
    max_distance: float | None = None
    best_time: float | None = None
