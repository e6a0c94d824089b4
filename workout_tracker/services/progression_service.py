from datetime import UTC, datetime

import structlog
from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .. import progression
from ..models import ExerciseProgression, Workout, WorkoutExercise
from ..schemas.enums import WorkoutStatus
from ..schemas.progression import ProgressionResponse, RecommendationResponse

logger = structlog.get_logger(__name__)

_UPSERT_BY_DIALECT = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class ProgressionService:
    def __init__(self, lookback_workouts: int = 3):
        self.lookback_workouts = lookback_workouts

    async def _recent_performances(self, db: AsyncSession, user_id: str, exercise_id: int) -> list[WorkoutExercise]:
        result = await db.execute(
            select(WorkoutExercise)
            .join(WorkoutExercise.workout)
            .options(
                selectinload(WorkoutExercise.sets),
                selectinload(WorkoutExercise.workout),
                selectinload(WorkoutExercise.exercise),
            )
            .where(Workout.user_id == user_id)
            .where(Workout.status == WorkoutStatus.COMPLETED.value)
            .where(WorkoutExercise.exercise_id == exercise_id)
            .order_by(Workout.completed_at.desc(), WorkoutExercise.id.desc())
            .limit(self.lookback_workouts)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def _upsert(self, db: AsyncSession, values: dict) -> None:
        dialect = db.get_bind().dialect.name
        insert = _UPSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Progression upsert is not supported on dialect {dialect!r}")

        stmt = insert(ExerciseProgression).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[ExerciseProgression.user_id, ExerciseProgression.exercise_id],
            set_={
                "last_workout_id": stmt.excluded.last_workout_id,
                "avg_weight": stmt.excluded.avg_weight,
                "avg_reps": stmt.excluded.avg_reps,
                "recommendation": stmt.excluded.recommendation,
                "recommendation_details": stmt.excluded.recommendation_details,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await db.execute(stmt)

    async def analyze(self, db: AsyncSession, user_id: str, exercise_id: int) -> ProgressionResponse | None:
        """Recompute and store the recommendation for one exercise.

        Only the most recent completed performance drives the result; the
        remaining lookback rows are fetched but currently unused.
        """
        performances = await self._recent_performances(db, user_id, exercise_id)
        if not performances:
            logger.debug("progression_no_history", user_id=user_id, exercise_id=exercise_id)
            return None

        latest = performances[0]
        summary = progression.summarize(
            [progression.SetPerformance(reps=s.reps, weight=s.weight, rpe=s.rpe) for s in latest.sets],
            target_sets=latest.target_sets,
            target_reps=latest.target_reps,
        )
        if summary is None:
            return None

        outcome = progression.recommend(summary)
        now = datetime.now(UTC).replace(tzinfo=None)
        await self._upsert(
            db,
            {
                "user_id": user_id,
                "exercise_id": exercise_id,
                "last_workout_id": latest.workout_id,
                "avg_weight": summary.avg_weight,
                "avg_reps": summary.avg_reps,
                "recommendation": outcome.recommendation.value,
                "recommendation_details": outcome.details,
                "created_at": now,
                "updated_at": now,
            },
        )
        await db.commit()

        logger.info(
            "progression_updated",
            user_id=user_id,
            exercise_id=exercise_id,
            workout_id=latest.workout_id,
            recommendation=outcome.recommendation.value,
            completion_rate=round(summary.completion_rate, 3),
            avg_rpe=summary.avg_rpe,
        )
        return ProgressionResponse(
            exercise_id=exercise_id,
            exercise_name=latest.exercise.name if latest.exercise else None,
            last_workout_id=latest.workout_id,
            last_workout_date=latest.workout.completed_at,
            avg_weight=summary.avg_weight,
            avg_reps=summary.avg_reps,
            completion_rate=summary.completion_rate,
            recommendation=outcome.recommendation,
            recommendation_details=outcome.details,
        )

    async def stored_progression(self, db: AsyncSession, user_id: str, exercise_id: int) -> ExerciseProgression | None:
        result = await db.execute(
            select(ExerciseProgression)
            .options(selectinload(ExerciseProgression.exercise))
            .where(ExerciseProgression.user_id == user_id)
            .where(ExerciseProgression.exercise_id == exercise_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def seed_targets(
        self, db: AsyncSession, user_id: str, exercise_id: int, target_reps: int
    ) -> progression.SeededTargets:
        current = await self.get_progression(db, user_id, exercise_id)
        if current is None:
            return progression.SeededTargets(target_reps=target_reps, suggested_weight=None)
        return progression.apply_recommendation(current.recommendation, current.avg_weight, target_reps)

    async def get_progression(self, db: AsyncSession, user_id: str, exercise_id: int) -> ProgressionResponse | None:
        record = await self.stored_progression(db, user_id, exercise_id)
        if record is None:
            return await self.analyze(db, user_id, exercise_id)

        return ProgressionResponse(
            exercise_id=record.exercise_id,
            exercise_name=record.exercise.name if record.exercise else None,
            last_workout_id=record.last_workout_id,
            avg_weight=record.avg_weight,
            avg_reps=record.avg_reps,
            recommendation=record.recommendation,
            recommendation_details=record.recommendation_details,
        )

    async def list_recommendations(self, db: AsyncSession, user_id: str) -> list[RecommendationResponse]:
        result = await db.execute(
            select(ExerciseProgression)
            .options(selectinload(ExerciseProgression.exercise))
            .where(ExerciseProgression.user_id == user_id)
            .order_by(ExerciseProgression.updated_at.desc(), ExerciseProgression.id.desc())
        )
        return [
            RecommendationResponse(
                exercise_id=p.exercise_id,
                exercise_name=p.exercise.name if p.exercise else None,
                recommendation=p.recommendation,
                recommendation_details=p.recommendation_details,
                last_updated=p.updated_at,
            )
            for p in result.scalars().all()
        ]

    async def reset_progression(self, db: AsyncSession, user_id: str, exercise_id: int) -> int:
        result = await db.execute(
            delete(ExerciseProgression)
            .where(ExerciseProgression.user_id == user_id)
            .where(ExerciseProgression.exercise_id == exercise_id)
        )
        await db.commit()
        logger.info("progression_reset", user_id=user_id, exercise_id=exercise_id, deleted=result.rowcount)
        return result.rowcount

    async def reset_all_progressions(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(delete(ExerciseProgression).where(ExerciseProgression.user_id == user_id))
        await db.commit()
        logger.info("progressions_reset_all", user_id=user_id, deleted=result.rowcount)
        return result.rowcount
