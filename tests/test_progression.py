import itertools

import pytest

from workout_tracker import progression
from workout_tracker.schemas.enums import ProgressionRecommendation as Rec


def _summary(sets, target_sets=3, target_reps=10):
    return progression.summarize(
        [progression.SetPerformance(reps=r, weight=w, rpe=rpe) for r, w, rpe in sets],
        target_sets=target_sets,
        target_reps=target_reps,
    )


def test_summarize_without_sets_returns_none():
    assert progression.summarize([], target_sets=3, target_reps=10) is None


def test_summarize_counts_missing_values_as_zero():
    summary = _summary([(10, 100, 8), (None, None, None), (8, 100, 9)])

    assert summary.avg_reps == pytest.approx(6.0)
    assert summary.avg_weight == pytest.approx(200 / 3)
    assert summary.avg_rpe == pytest.approx(8.5)
    assert summary.set_count == 3


def test_full_completion_at_easy_rpe_increases_weight():
    result = progression.recommend(_summary([(10, 135, 6)] * 3))

    assert result.recommendation == Rec.INCREASE_WEIGHT
    assert "Increase weight by 5 lbs." in result.details
    assert "RPE 6.0" in result.details


def test_full_completion_at_moderate_rpe_adds_reps():
    result = progression.recommend(_summary([(10, 135, 8)] * 3))
    assert result.recommendation == Rec.MORE_REPS


def test_full_completion_at_very_high_rpe_maintains():
    result = progression.recommend(_summary([(10, 135, 9)] * 3))

    assert result.recommendation == Rec.MAINTAIN
    assert "9.0" in result.details


def test_near_completion_low_rpe_adds_reps():
    # 28 of 30 reps: completion 0.933
    result = progression.recommend(_summary([(10, 100, 6), (9, 100, 6), (9, 100, 7)]))
    assert result.recommendation == Rec.MORE_REPS


def test_near_completion_high_rpe_maintains():
    result = progression.recommend(_summary([(10, 100, 8), (9, 100, 9), (9, 100, 9)]))
    assert result.recommendation == Rec.MAINTAIN


def test_low_completion_maintains_with_percentage():
    result = progression.recommend(_summary([(6, 100, 6)] * 3))

    assert result.recommendation == Rec.MAINTAIN
    assert "60%" in result.details


def test_without_rpe():
    assert progression.recommend(_summary([(10, 100, None)] * 3)).recommendation == Rec.INCREASE_WEIGHT
    assert progression.recommend(_summary([(9, 100, None)] * 3)).recommendation == Rec.MORE_REPS
    assert progression.recommend(_summary([(8, 100, None)] * 3)).recommendation == Rec.MAINTAIN


def test_missing_sets_block_weight_increase():
    # every rep hit but only two of three sets logged
    result = progression.recommend(_summary([(10, 100, 6)] * 2))
    assert result.recommendation != Rec.INCREASE_WEIGHT


@pytest.mark.parametrize(
    "reps, set_count, rpe",
    list(itertools.product([6, 9, 10, 12], [1, 3, 4], [None, 5, 7, 8, 10])),
)
def test_weight_increase_requires_full_completion(reps, set_count, rpe):
    summary = _summary([(reps, 100, rpe)] * set_count)
    result = progression.recommend(summary)

    if result.recommendation == Rec.INCREASE_WEIGHT:
        assert summary.completion_rate >= 1.0
        assert summary.sets_completion_rate >= 1.0


def test_recommendation_is_deterministic():
    sets = [(10, 100, 7), (9, 100, 8), (10, 100, 7)]
    assert progression.recommend(_summary(sets)) == progression.recommend(_summary(sets))


def test_total_volume_matches_averages_for_uniform_sets():
    sets = [progression.SetPerformance(reps=10, weight=100)] * 3
    summary = progression.summarize(sets, target_sets=3, target_reps=10)

    assert progression.total_volume(sets) == 3000
    assert progression.total_volume(sets) == summary.avg_weight * summary.avg_reps * summary.set_count


def test_apply_recommendation():
    bump = progression.apply_recommendation(Rec.INCREASE_WEIGHT, 100, 10)
    assert (bump.suggested_weight, bump.target_reps) == (105, 10)

    reps = progression.apply_recommendation(Rec.MORE_REPS, 100, 14)
    assert (reps.suggested_weight, reps.target_reps) == (100, 15)

    hold = progression.apply_recommendation("MAINTAIN", 100, 10)
    assert (hold.suggested_weight, hold.target_reps) == (100, 10)


def test_apply_recommendation_without_weight_history():
    seeded = progression.apply_recommendation(Rec.INCREASE_WEIGHT, 0, 10)
    assert seeded.suggested_weight is None
    assert seeded.target_reps == 10
