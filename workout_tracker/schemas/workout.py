from datetime import datetime

from pydantic import BaseModel, Field

from .enums import ExerciseType, WorkoutStatus


class WorkoutCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)

    class Config:
        extra = "forbid"


class WorkoutFromTemplateCreate(BaseModel):
    template_id: int
    # Creates an already completed, backdated workout when provided
    start_date: datetime | None = None

    class Config:
        extra = "forbid"


class WorkoutFromPreviousCreate(BaseModel):
    source_workout_id: int
    name: str = Field(..., min_length=1, max_length=255)

    class Config:
        extra = "forbid"


class WorkoutExerciseCreate(BaseModel):
    exercise_id: int
    target_sets: int = Field(..., ge=1)
    target_reps: int = Field(..., ge=1)
    rest_between_sets: int | None = Field(None, ge=0)
    target_duration_minutes: float | None = Field(None, ge=0)
    target_distance_miles: float | None = Field(None, ge=0)

    class Config:
        extra = "forbid"


class SetFields(BaseModel):
    reps: int | None = Field(None, ge=0)
    weight: float | None = Field(None, ge=0)
    rpe: float | None = Field(None, ge=1, le=10)
    duration_minutes: float | None = Field(None, ge=0)
    distance_miles: float | None = Field(None, ge=0)
    calories_burned: int | None = Field(None, ge=0)
    completed: bool | None = None
    notes: str | None = None

    class Config:
        extra = "forbid"


class SetCreate(SetFields):
    set_number: int = Field(..., ge=1)


class SetUpdate(SetFields):
    pass


class SaveAsTemplateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    color: str | None = Field(None, max_length=32)

    class Config:
        extra = "forbid"


class ExerciseSummary(BaseModel):
    id: int
    name: str
    type: ExerciseType
    met_value: float | None = None

    class Config:
        from_attributes = True


class SetResponse(BaseModel):
    id: int
    workout_exercise_id: int
    set_number: int
    reps: int | None = None
    weight: float | None = None
    rpe: float | None = None
    duration_minutes: float | None = None
    distance_miles: float | None = None
    calories_burned: int | None = None
    completed: bool
    notes: str | None = None

    class Config:
        from_attributes = True


class WorkoutExerciseResponse(BaseModel):
    id: int
    workout_id: int
    exercise_id: int
    order_index: int
    target_sets: int
    target_reps: int
    target_duration_minutes: float | None = None
    target_distance_miles: float | None = None
    suggested_weight: float | None = None
    rest_between_sets: int | None = None
    completed: bool
    exercise: ExerciseSummary | None = None
    sets: list[SetResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class WorkoutResponse(BaseModel):
    id: int
    name: str
    status: WorkoutStatus
    template_id: int | None = None
    started_at: datetime
    completed_at: datetime | None = None
    total_calories_burned: int | None = None
    total_active_time: int | None = None
    total_rest_time: int | None = None
    exercises: list[WorkoutExerciseResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class WorkoutListResponse(BaseModel):
    items: list[WorkoutResponse]
    total: int


class DerivedComputationFailure(BaseModel):
    step: str
    exercise_id: int | None = None
    error: str


class WorkoutCompletionResponse(BaseModel):
    workout: WorkoutResponse
    failures: list[DerivedComputationFailure] = Field(default_factory=list)
