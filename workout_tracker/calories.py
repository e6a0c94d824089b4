"""Calorie estimation from logged sets.

All estimates use ``calories = MET x body weight (kg) x duration (hours)``
(Ainsworth et al., Compendium of Physical Activities), rounded to the nearest
whole calorie per set.
"""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .schemas.enums import ExerciseType, WeightUnit

LBS_PER_KG = 2.20462
SECONDS_PER_REP = 5
REST_MET = 1.5
DEFAULT_STRENGTH_MET = 5.0
DEFAULT_CARDIO_MET = 6.0


@dataclass(frozen=True)
class StrengthSet:
    reps: int
    rpe: float | None = None


@dataclass(frozen=True)
class CardioSet:
    duration_minutes: float | None = None
    calories_burned: int | None = None


@dataclass
class CalorieBreakdown:
    calories: int = 0
    active_time: int = 0
    rest_time: int = 0

    def __add__(self, other: "CalorieBreakdown") -> "CalorieBreakdown":
        return CalorieBreakdown(
            calories=self.calories + other.calories,
            active_time=self.active_time + other.active_time,
            rest_time=self.rest_time + other.rest_time,
        )


@dataclass(frozen=True)
class ExerciseLog:
    """Completed sets of one workout exercise, as the estimator sees them."""

    exercise_type: ExerciseType
    strength_sets: Sequence[StrengthSet] = ()
    cardio_sets: Sequence[CardioSet] = ()
    met_value: float | None = None
    rest_between_sets: int | None = None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def rpe_to_met(rpe: float | None) -> float:
    if not rpe:
        return DEFAULT_STRENGTH_MET
    if 1 <= rpe <= 5:
        return 3.5
    if 6 <= rpe <= 7:
        return 5.0
    if 8 <= rpe <= 9:
        return 6.5
    if rpe == 10:
        return 8.0
    # fractional RPE between the bands (e.g. 7.5)
    return DEFAULT_STRENGTH_MET


def to_kilograms(weight: float, unit: WeightUnit | str) -> float:
    if WeightUnit(unit) == WeightUnit.KG:
        return weight
    return weight / LBS_PER_KG


def activity_calories(met_value: float, weight_kg: float, duration_seconds: float) -> int:
    return _round_half_up(met_value * weight_kg * (duration_seconds / 3600))


def estimate_set_duration(reps: int) -> int:
    return reps * SECONDS_PER_REP


def strength_calories(
    sets: Sequence[StrengthSet], weight_kg: float, rest_between_sets: int | None = None
) -> CalorieBreakdown:
    result = CalorieBreakdown()
    for s in sets:
        duration = estimate_set_duration(s.reps)
        result.active_time += duration
        result.calories += activity_calories(rpe_to_met(s.rpe), weight_kg, duration)

    if rest_between_sets and len(sets) > 1:
        result.rest_time = (len(sets) - 1) * rest_between_sets
        result.calories += activity_calories(REST_MET, weight_kg, result.rest_time)
    return result


def cardio_calories(sets: Iterable[CardioSet], weight_kg: float, met_value: float | None = None) -> CalorieBreakdown:
    """Manually entered calories always win over the MET estimate."""
    met = met_value or DEFAULT_CARDIO_MET
    result = CalorieBreakdown()
    for s in sets:
        if s.calories_burned is not None:
            result.calories += s.calories_burned
            if s.duration_minutes:
                result.active_time += _round_half_up(s.duration_minutes * 60)
        elif s.duration_minutes is not None:
            duration = s.duration_minutes * 60
            result.active_time += _round_half_up(duration)
            result.calories += activity_calories(met, weight_kg, duration)
    return result


def exercise_calories(log: ExerciseLog, weight_kg: float) -> CalorieBreakdown:
    if log.exercise_type == ExerciseType.CARDIO:
        return cardio_calories(log.cardio_sets, weight_kg, log.met_value)
    if not log.strength_sets:
        return CalorieBreakdown()
    return strength_calories(log.strength_sets, weight_kg, log.rest_between_sets)


def workout_calories(logs: Iterable[ExerciseLog], weight_kg: float) -> CalorieBreakdown:
    total = CalorieBreakdown()
    for log in logs:
        total = total + exercise_calories(log, weight_kg)
    return total
