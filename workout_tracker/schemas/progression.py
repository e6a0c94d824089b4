from datetime import datetime

from pydantic import BaseModel

from .enums import ProgressionRecommendation


class ProgressionResponse(BaseModel):
    exercise_id: int
    exercise_name: str | None = None
    last_workout_id: int | None = None
    last_workout_date: datetime | None = None
    avg_weight: float
    avg_reps: float
    completion_rate: float | None = None
    recommendation: ProgressionRecommendation
    recommendation_details: str


class RecommendationResponse(BaseModel):
    exercise_id: int
    exercise_name: str | None = None
    recommendation: ProgressionRecommendation
    recommendation_details: str
    last_updated: datetime


class ProgressionResetResponse(BaseModel):
    deleted: int
