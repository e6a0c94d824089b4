from enum import Enum


class WorkoutStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ExerciseType(str, Enum):
    STRENGTH = "STRENGTH"
    CARDIO = "CARDIO"


class WeightUnit(str, Enum):
    LBS = "LBS"
    KG = "KG"


class ProgressionRecommendation(str, Enum):
    INCREASE_WEIGHT = "INCREASE_WEIGHT"
    MORE_REPS = "MORE_REPS"
    MAINTAIN = "MAINTAIN"


class TimeRange(str, Enum):
    ONE_MONTH = "1month"
    THREE_MONTHS = "3months"
    SIX_MONTHS = "6months"
    ONE_YEAR = "1year"
    ALL = "all"
