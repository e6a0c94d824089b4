from datetime import datetime

from pydantic import BaseModel, Field


class TemplateExerciseResponse(BaseModel):
    id: int
    exercise_id: int
    order_index: int
    target_sets: int | None = None
    target_reps: int | None = None
    rest_between_sets: int | None = None
    target_duration_minutes: float | None = None
    target_distance_miles: float | None = None
    notes: str | None = None

    class Config:
        from_attributes = True


class TemplateResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    color: str | None = None
    is_active: bool
    created_at: datetime
    exercises: list[TemplateExerciseResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True
