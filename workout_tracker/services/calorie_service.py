import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .. import calories
from ..exceptions import WorkoutNotFoundException
from ..models import UserProfile, Workout, WorkoutExercise
from ..ownership import assert_ownership
from ..schemas.enums import ExerciseType

logger = structlog.get_logger(__name__)


class CalorieService:
    """Applies the calorie estimator to a stored workout and persists its totals."""

    async def get_user_weight_kg(self, db: AsyncSession, user_id: str) -> float | None:
        profile = await db.get(UserProfile, user_id)
        if profile is None or not profile.weight:
            return None
        return calories.to_kilograms(profile.weight, profile.weight_unit)

    def _exercise_logs(self, workout: Workout) -> list[calories.ExerciseLog]:
        logs: list[calories.ExerciseLog] = []
        for workout_exercise in workout.exercises:
            completed_sets = [s for s in workout_exercise.sets if s.completed]
            if not completed_sets:
                continue

            exercise = workout_exercise.exercise
            if exercise.type == ExerciseType.CARDIO:
                logs.append(
                    calories.ExerciseLog(
                        exercise_type=ExerciseType.CARDIO,
                        cardio_sets=[
                            calories.CardioSet(duration_minutes=s.duration_minutes, calories_burned=s.calories_burned)
                            for s in completed_sets
                        ],
                        met_value=exercise.met_value,
                    )
                )
            else:
                logs.append(
                    calories.ExerciseLog(
                        exercise_type=ExerciseType.STRENGTH,
                        strength_sets=[
                            calories.StrengthSet(reps=s.reps, rpe=s.rpe) for s in completed_sets if s.reps is not None
                        ],
                        rest_between_sets=workout_exercise.rest_between_sets,
                    )
                )
        return logs

    async def calculate_workout_calories(
        self, db: AsyncSession, user_id: str, workout_id: int
    ) -> calories.CalorieBreakdown | None:
        weight_kg = await self.get_user_weight_kg(db, user_id)
        if weight_kg is None:
            logger.info("calorie_calculation_skipped", user_id=user_id, workout_id=workout_id, reason="no_weight")
            return None

        result = await db.execute(
            select(Workout)
            .options(
                selectinload(Workout.exercises).selectinload(WorkoutExercise.sets),
                selectinload(Workout.exercises).selectinload(WorkoutExercise.exercise),
            )
            .where(Workout.id == workout_id)
            .execution_options(populate_existing=True)
        )
        workout = assert_ownership(result.scalars().first(), user_id, WorkoutNotFoundException(workout_id))
        return calories.workout_calories(self._exercise_logs(workout), weight_kg)

    async def update_workout_calories(
        self, db: AsyncSession, user_id: str, workout_id: int
    ) -> calories.CalorieBreakdown | None:
        totals = await self.calculate_workout_calories(db, user_id, workout_id)
        if totals is None:
            return None

        workout = await db.get(Workout, workout_id)
        workout.total_calories_burned = totals.calories
        workout.total_active_time = totals.active_time
        workout.total_rest_time = totals.rest_time
        await db.commit()

        logger.info(
            "workout_calories_updated",
            user_id=user_id,
            workout_id=workout_id,
            calories=totals.calories,
            active_time=totals.active_time,
            rest_time=totals.rest_time,
        )
        return totals
