from .enums import ExerciseType, ProgressionRecommendation, TimeRange, WeightUnit, WorkoutStatus
from .progression import ProgressionResetResponse, ProgressionResponse, RecommendationResponse
from .stats import (
    ExerciseHistoryPoint,
    ExerciseHistoryResponse,
    PersonalRecord,
    WeeklyComparison,
    WorkoutStatsResponse,
)
from .template import TemplateExerciseResponse, TemplateResponse
from .workout import (
    DerivedComputationFailure,
    SaveAsTemplateRequest,
    SetCreate,
    SetResponse,
    SetUpdate,
    WorkoutCompletionResponse,
    WorkoutCreate,
    WorkoutExerciseCreate,
    WorkoutExerciseResponse,
    WorkoutFromPreviousCreate,
    WorkoutFromTemplateCreate,
    WorkoutListResponse,
    WorkoutResponse,
)
