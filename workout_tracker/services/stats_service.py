import calendar
from datetime import UTC, datetime, timedelta

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..exceptions import ExerciseNotFoundException
from ..models import Exercise, Workout, WorkoutExercise, WorkoutSet
from ..progression import SetPerformance, total_volume
from ..schemas.enums import ExerciseType, TimeRange, WorkoutStatus
from ..schemas.stats import (
    ExerciseHistoryPoint,
    ExerciseHistoryResponse,
    PersonalRecord,
    WeeklyComparison,
    WorkoutStatsResponse,
)

logger = structlog.get_logger(__name__)


def week_start(moment: datetime) -> datetime:
    """Midnight of the Sunday on or before ``moment``."""
    days_since_sunday = (moment.weekday() + 1) % 7
    return datetime.combine(moment.date() - timedelta(days=days_since_sunday), datetime.min.time())


def percent_change(this_week: float, last_week: float) -> float:
    if last_week <= 0:
        return 0.0
    return (this_week - last_week) / last_week * 100


def months_before(moment: datetime, months: int) -> datetime:
    """Same day ``months`` calendar months earlier, clamped to the end of shorter months."""
    year, month = divmod(moment.year * 12 + moment.month - 1 - months, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


_RANGE_MONTHS = {
    TimeRange.ONE_MONTH: 1,
    TimeRange.THREE_MONTHS: 3,
    TimeRange.SIX_MONTHS: 6,
    TimeRange.ONE_YEAR: 12,
}


def range_start(time_range: TimeRange, now: datetime) -> datetime | None:
    if time_range == TimeRange.ALL:
        return None
    return months_before(now, _RANGE_MONTHS[time_range])


def _mean(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


def history_point(workout_exercise: WorkoutExercise, exercise_type: str) -> ExerciseHistoryPoint:
    sets = [s for s in workout_exercise.sets if s.completed]
    point = ExerciseHistoryPoint(
        workout_id=workout_exercise.workout_id,
        date=workout_exercise.workout.completed_at,
    )
    if exercise_type == ExerciseType.CARDIO.value:
        durations = [s.duration_minutes for s in sets if s.duration_minutes is not None]
        distances = [s.distance_miles for s in sets if s.distance_miles is not None]
        calories = [s.calories_burned for s in sets if s.calories_burned is not None]
        point.avg_duration = _mean(durations)
        point.total_distance = sum(distances) if distances else None
        point.total_calories = sum(calories) if calories else None
        return point

    weights = [s.weight for s in sets if s.weight is not None]
    reps = [s.reps for s in sets if s.reps is not None]
    point.avg_weight = _mean(weights)
    point.max_weight = max(weights) if weights else None
    point.avg_reps = _mean(reps)
    point.total_volume = total_volume([SetPerformance(reps=s.reps, weight=s.weight) for s in sets])
    return point


class StatsService:
    async def _completed_count(self, db: AsyncSession, user_id: str, since: datetime | None = None) -> int:
        stmt = (
            select(func.count(Workout.id))
            .where(Workout.user_id == user_id)
            .where(Workout.status == WorkoutStatus.COMPLETED.value)
        )
        if since is not None:
            stmt = stmt.where(Workout.completed_at >= since)
        return (await db.execute(stmt)).scalar_one()

    async def _volume(self, db: AsyncSession, user_id: str, start: datetime, end: datetime | None) -> float:
        stmt = (
            select(func.coalesce(func.sum(WorkoutSet.weight * WorkoutSet.reps), 0.0))
            .select_from(WorkoutSet)
            .join(WorkoutSet.workout_exercise)
            .join(WorkoutExercise.workout)
            .join(WorkoutExercise.exercise)
            .where(Workout.user_id == user_id)
            .where(Workout.status == WorkoutStatus.COMPLETED.value)
            .where(Workout.completed_at >= start)
            .where(Exercise.type == ExerciseType.STRENGTH.value)
            .where(WorkoutSet.completed.is_(True))
        )
        if end is not None:
            stmt = stmt.where(Workout.completed_at < end)
        return float((await db.execute(stmt)).scalar_one())

    async def _calories(self, db: AsyncSession, user_id: str, start: datetime, end: datetime | None) -> float:
        stmt = (
            select(func.coalesce(func.sum(Workout.total_calories_burned), 0))
            .where(Workout.user_id == user_id)
            .where(Workout.status == WorkoutStatus.COMPLETED.value)
            .where(Workout.completed_at >= start)
        )
        if end is not None:
            stmt = stmt.where(Workout.completed_at < end)
        return float((await db.execute(stmt)).scalar_one())

    async def get_stats(self, db: AsyncSession, user_id: str, now: datetime | None = None) -> WorkoutStatsResponse:
        now = now or datetime.now(UTC).replace(tzinfo=None)
        this_week = week_start(now)
        last_week = this_week - timedelta(days=7)

        total = await self._completed_count(db, user_id)
        recent = await self._completed_count(db, user_id, since=now - timedelta(days=7))

        volume_this = await self._volume(db, user_id, this_week, None)
        volume_last = await self._volume(db, user_id, last_week, this_week)
        calories_this = await self._calories(db, user_id, this_week, None)
        calories_last = await self._calories(db, user_id, last_week, this_week)

        logger.debug("workout_stats_computed", user_id=user_id, total_workouts=total, week_workouts=recent)
        return WorkoutStatsResponse(
            total_workouts=total,
            week_workouts=recent,
            volume=WeeklyComparison(
                this_week=volume_this,
                last_week=volume_last,
                percent_change=percent_change(volume_this, volume_last),
            ),
            calories=WeeklyComparison(
                this_week=calories_this,
                last_week=calories_last,
                percent_change=percent_change(calories_this, calories_last),
            ),
        )

    async def _visible_exercise(self, db: AsyncSession, user_id: str, exercise_id: int) -> Exercise:
        result = await db.execute(
            select(Exercise)
            .where(Exercise.id == exercise_id)
            .where(or_(Exercise.user_id.is_(None), Exercise.user_id == user_id))
        )
        exercise = result.scalars().first()
        if exercise is None:
            raise ExerciseNotFoundException(exercise_id)
        return exercise

    async def _completed_entries(self, db: AsyncSession, user_id: str, *criteria) -> list[WorkoutExercise]:
        stmt = (
            select(WorkoutExercise)
            .join(WorkoutExercise.workout)
            .options(
                selectinload(WorkoutExercise.sets),
                selectinload(WorkoutExercise.workout),
                selectinload(WorkoutExercise.exercise),
            )
            .where(Workout.user_id == user_id)
            .where(Workout.status == WorkoutStatus.COMPLETED.value)
            .order_by(Workout.completed_at.asc(), WorkoutExercise.id.asc())
        )
        if criteria:
            stmt = stmt.where(*criteria)
        return list((await db.execute(stmt)).scalars().all())

    async def exercise_history(
        self,
        db: AsyncSession,
        user_id: str,
        exercise_id: int,
        time_range: TimeRange = TimeRange.THREE_MONTHS,
        now: datetime | None = None,
    ) -> ExerciseHistoryResponse:
        """Per-workout performance of one exercise, oldest first."""
        exercise = await self._visible_exercise(db, user_id, exercise_id)
        now = now or datetime.now(UTC).replace(tzinfo=None)

        criteria = [WorkoutExercise.exercise_id == exercise_id]
        start = range_start(time_range, now)
        if start is not None:
            criteria.append(Workout.completed_at >= start)
        entries = await self._completed_entries(db, user_id, *criteria)

        logger.debug(
            "exercise_history_computed",
            user_id=user_id,
            exercise_id=exercise_id,
            range=time_range.value,
            points=len(entries),
        )
        return ExerciseHistoryResponse(
            exercise_id=exercise.id,
            exercise_name=exercise.name,
            exercise_type=exercise.type,
            range=time_range,
            data=[history_point(entry, exercise.type) for entry in entries],
        )

    async def personal_records(self, db: AsyncSession, user_id: str) -> list[PersonalRecord]:
        """Heaviest completed strength set, or longest cardio distance, per exercise.

        Ties keep the earliest workout.
        """
        records: dict[int, PersonalRecord] = {}
        for entry in await self._completed_entries(db, user_id):
            exercise = entry.exercise
            for workout_set in entry.sets:
                if not workout_set.completed:
                    continue
                current = records.get(exercise.id)
                if exercise.type == ExerciseType.CARDIO.value:
                    if not workout_set.distance_miles:
                        continue
                    if current is not None and workout_set.distance_miles <= current.max_distance:
                        continue
                    records[exercise.id] = PersonalRecord(
                        exercise_id=exercise.id,
                        exercise_name=exercise.name,
                        exercise_type=exercise.type,
                        date=entry.workout.completed_at,
                        max_distance=workout_set.distance_miles,
                        best_time=workout_set.duration_minutes,
                    )
                else:
                    if not (workout_set.weight and workout_set.reps):
                        continue
                    if current is not None and workout_set.weight <= current.max_weight:
                        continue
                    records[exercise.id] = PersonalRecord(
                        exercise_id=exercise.id,
                        exercise_name=exercise.name,
                        exercise_type=exercise.type,
                        date=entry.workout.completed_at,
                        max_weight=workout_set.weight,
                        reps=workout_set.reps,
                    )

        return sorted(records.values(), key=lambda record: (record.exercise_name.lower(), record.exercise_id))
