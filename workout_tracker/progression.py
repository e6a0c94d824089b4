"""Progression heuristic: turns the latest performance of an exercise into a
recommendation for the next session.

RPE scale used by the thresholds: 1-6 easy, 7-8 moderate, 9-10 very hard.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from .schemas.enums import ProgressionRecommendation

WEIGHT_INCREMENT_LBS = 5.0
REP_INCREMENT = 2
MAX_TARGET_REPS = 15

EASY_RPE = 7.0
HARD_RPE = 8.5
NEAR_COMPLETION = 0.9
NEAR_COMPLETION_NO_RPE = 0.85


@dataclass(frozen=True)
class SetPerformance:
    reps: int | None = None
    weight: float | None = None
    rpe: float | None = None


@dataclass(frozen=True)
class PerformanceSummary:
    avg_weight: float
    avg_reps: float
    avg_rpe: float | None
    set_count: int
    target_sets: int
    target_reps: int

    @property
    def completion_rate(self) -> float:
        return self.avg_reps / self.target_reps if self.target_reps else 0.0

    @property
    def sets_completion_rate(self) -> float:
        return self.set_count / self.target_sets if self.target_sets else 0.0


@dataclass(frozen=True)
class Recommendation:
    recommendation: ProgressionRecommendation
    details: str


@dataclass(frozen=True)
class SeededTargets:
    target_reps: int
    suggested_weight: float | None


def total_volume(sets: Sequence[SetPerformance]) -> float:
    return sum((s.weight or 0.0) * (s.reps or 0) for s in sets)


def summarize(sets: Sequence[SetPerformance], target_sets: int, target_reps: int) -> PerformanceSummary | None:
    """Averages over every logged set, failed ones included.

    RPE is averaged only over the sets that recorded one.
    """
    if not sets:
        return None
    count = len(sets)
    rpes = [s.rpe for s in sets if s.rpe is not None]
    return PerformanceSummary(
        avg_weight=sum(s.weight or 0.0 for s in sets) / count,
        avg_reps=sum(s.reps or 0 for s in sets) / count,
        avg_rpe=sum(rpes) / len(rpes) if rpes else None,
        set_count=count,
        target_sets=target_sets,
        target_reps=target_reps,
    )


def _percent(rate: float) -> int:
    return int(rate * 100 + 0.5)


def recommend(summary: PerformanceSummary) -> Recommendation:
    completion = summary.completion_rate
    all_done = completion >= 1.0 and summary.sets_completion_rate >= 1.0
    rpe = summary.avg_rpe

    if rpe is None:
        if all_done:
            return Recommendation(
                ProgressionRecommendation.INCREASE_WEIGHT,
                "All sets and reps completed. Increase weight by 5 lbs. (Tip: Log RPE for better recommendations!)",
            )
        if completion >= NEAR_COMPLETION_NO_RPE:
            return Recommendation(
                ProgressionRecommendation.MORE_REPS,
                f"Most reps completed. Try to complete all {summary.target_reps} reps next time.",
            )
        return Recommendation(
            ProgressionRecommendation.MAINTAIN,
            "Struggled with current weight. Maintain current weight and reps.",
        )

    if all_done:
        if rpe <= EASY_RPE:
            return Recommendation(
                ProgressionRecommendation.INCREASE_WEIGHT,
                f"Completed all sets/reps with RPE {rpe:.1f}. Increase weight by 5 lbs.",
            )
        if rpe <= HARD_RPE:
            return Recommendation(
                ProgressionRecommendation.MORE_REPS,
                f"Completed all sets/reps but RPE was {rpe:.1f}. Add 2 more reps before increasing weight.",
            )
        return Recommendation(
            ProgressionRecommendation.MAINTAIN,
            f"Completed sets but RPE was very high ({rpe:.1f}). Maintain current weight to build strength.",
        )

    if completion >= NEAR_COMPLETION:
        if rpe <= EASY_RPE:
            return Recommendation(
                ProgressionRecommendation.MORE_REPS,
                f"Slight miss on target reps but RPE was low ({rpe:.1f}). "
                f"Try to hit all {summary.target_reps} reps next time.",
            )
        return Recommendation(
            ProgressionRecommendation.MAINTAIN,
            f"Missed some reps and RPE was {rpe:.1f}. Maintain weight and focus on form.",
        )

    return Recommendation(
        ProgressionRecommendation.MAINTAIN,
        f"Completed {_percent(completion)}% of target reps. Maintain current weight.",
    )


def apply_recommendation(
    recommendation: ProgressionRecommendation | str | None,
    avg_weight: float | None,
    target_reps: int,
) -> SeededTargets:
    """Targets for a freshly seeded exercise given its stored progression."""
    if not avg_weight:
        return SeededTargets(target_reps=target_reps, suggested_weight=None)

    suggested = avg_weight
    if recommendation == ProgressionRecommendation.INCREASE_WEIGHT:
        suggested += WEIGHT_INCREMENT_LBS
    elif recommendation == ProgressionRecommendation.MORE_REPS:
        target_reps = min(target_reps + REP_INCREMENT, MAX_TARGET_REPS)
    return SeededTargets(target_reps=target_reps, suggested_weight=suggested)
