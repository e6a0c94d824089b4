from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .. import schemas as sm
from ..exceptions import (
    ExerciseNotFoundException,
    SetNotFoundException,
    TemplateNotFoundException,
    WorkoutExerciseNotFoundException,
    WorkoutNotFoundException,
    WorkoutStateException,
)
from ..metrics import (
    DERIVED_COMPUTATION_FAILURES_TOTAL,
    SETS_LOGGED_TOTAL,
    WORKOUTS_COMPLETED_TOTAL,
    WORKOUTS_CREATED_TOTAL,
)
from ..models import (
    Exercise,
    TemplateExercise,
    Workout,
    WorkoutExercise,
    WorkoutSet,
    WorkoutTemplate,
)
from ..ownership import assert_ownership
from ..schemas.enums import ExerciseType, WorkoutStatus
from .calorie_service import CalorieService
from .progression_service import ProgressionService

logger = structlog.get_logger(__name__)

DEFAULT_STRENGTH_SETS = 3
DEFAULT_STRENGTH_REPS = 10
DEFAULT_CARDIO_SETS = 1
DEFAULT_CARDIO_REPS = 1


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class WorkoutService:
    """Lifecycle of a user's workouts, from creation through completion."""

    def __init__(
        self,
        db: AsyncSession,
        user_id: str,
        progressions: ProgressionService,
        calories: CalorieService,
        recent_limit: int = 5,
    ):
        self.db = db
        self.user_id = user_id
        self.progressions = progressions
        self.calories = calories
        self.recent_limit = recent_limit

    # Loading

    def _workout_query(self):
        return (
            select(Workout)
            .options(
                selectinload(Workout.exercises).selectinload(WorkoutExercise.sets),
                selectinload(Workout.exercises).selectinload(WorkoutExercise.exercise),
            )
            .execution_options(populate_existing=True)
        )

    async def _load_workout(self, workout_id: int) -> Workout:
        result = await self.db.execute(self._workout_query().where(Workout.id == workout_id))
        return assert_ownership(result.scalars().first(), self.user_id, WorkoutNotFoundException(workout_id))

    async def _load_workout_exercise(self, workout_exercise_id: int) -> WorkoutExercise:
        result = await self.db.execute(
            select(WorkoutExercise)
            .options(selectinload(WorkoutExercise.workout))
            .where(WorkoutExercise.id == workout_exercise_id)
            .execution_options(populate_existing=True)
        )
        return assert_ownership(
            result.scalars().first(), self.user_id, WorkoutExerciseNotFoundException(workout_exercise_id)
        )

    async def _load_set(self, set_id: int) -> WorkoutSet:
        result = await self.db.execute(
            select(WorkoutSet)
            .options(selectinload(WorkoutSet.workout_exercise).selectinload(WorkoutExercise.workout))
            .where(WorkoutSet.id == set_id)
            .execution_options(populate_existing=True)
        )
        workout_set = result.scalars().first()
        assert_ownership(
            workout_set.workout_exercise if workout_set else None, self.user_id, SetNotFoundException(set_id)
        )
        return workout_set

    async def _load_exercise(self, exercise_id: int) -> Exercise:
        exercise = await self.db.get(Exercise, exercise_id)
        # Library entries (no owner) are visible to everyone
        if exercise is None or exercise.user_id not in (None, self.user_id):
            raise ExerciseNotFoundException(exercise_id)
        return exercise

    # Best-effort derived computations

    async def _best_effort(
        self,
        step: str,
        action: Callable[[], Awaitable[object]],
        exercise_id: int | None = None,
    ) -> sm.DerivedComputationFailure | None:
        try:
            await action()
        except Exception as exc:
            await self.db.rollback()
            DERIVED_COMPUTATION_FAILURES_TOTAL.labels(step=step).inc()
            logger.exception(
                "derived_computation_failed",
                step=step,
                user_id=self.user_id,
                exercise_id=exercise_id,
            )
            return sm.DerivedComputationFailure(step=step, exercise_id=exercise_id, error=str(exc) or type(exc).__name__)
        return None

    async def analyze_workout(self, workout: Workout) -> list[sm.DerivedComputationFailure]:
        exercise_ids = list(dict.fromkeys(we.exercise_id for we in workout.exercises))
        failures = []
        for exercise_id in exercise_ids:
            failure = await self._best_effort(
                "progression",
                lambda exercise_id=exercise_id: self.progressions.analyze(self.db, self.user_id, exercise_id),
                exercise_id=exercise_id,
            )
            if failure is not None:
                failures.append(failure)
        return failures

    async def _refresh_progression_for_set(self, workout_exercise: WorkoutExercise) -> None:
        """Sets edited on a completed (e.g. backdated) workout feed back into progression."""
        if workout_exercise.workout.status != WorkoutStatus.COMPLETED.value:
            return
        exercise_id = workout_exercise.exercise_id
        await self._best_effort(
            "progression",
            lambda: self.progressions.analyze(self.db, self.user_id, exercise_id),
            exercise_id=exercise_id,
        )

    # Creation

    async def create_workout(self, payload: sm.WorkoutCreate) -> Workout:
        workout = Workout(
            user_id=self.user_id,
            name=payload.name,
            status=WorkoutStatus.IN_PROGRESS.value,
            started_at=_utcnow(),
        )
        self.db.add(workout)
        await self.db.commit()

        WORKOUTS_CREATED_TOTAL.labels(source="blank").inc()
        logger.info("workout_created", user_id=self.user_id, workout_id=workout.id, source="blank")
        return await self._load_workout(workout.id)

    async def create_workout_from_template(self, payload: sm.WorkoutFromTemplateCreate) -> Workout:
        result = await self.db.execute(
            select(WorkoutTemplate)
            .options(selectinload(WorkoutTemplate.exercises).selectinload(TemplateExercise.exercise))
            .where(WorkoutTemplate.id == payload.template_id)
            .execution_options(populate_existing=True)
        )
        template = assert_ownership(
            result.scalars().first(), self.user_id, TemplateNotFoundException(payload.template_id)
        )
        template_id = template.id
        template_name = template.name

        # Seeding may analyze history and commit, so targets are resolved before the workout exists
        entries = []
        for te in template.exercises:
            entry = {
                "exercise_id": te.exercise_id,
                "order_index": te.order_index,
                "rest_between_sets": te.rest_between_sets,
            }
            if te.exercise.type == ExerciseType.STRENGTH.value:
                seeded = await self.progressions.seed_targets(
                    self.db, self.user_id, te.exercise_id, te.target_reps or DEFAULT_STRENGTH_REPS
                )
                entry.update(
                    target_sets=te.target_sets or DEFAULT_STRENGTH_SETS,
                    target_reps=seeded.target_reps,
                    suggested_weight=seeded.suggested_weight,
                )
            else:
                entry.update(
                    target_sets=te.target_sets or DEFAULT_CARDIO_SETS,
                    target_reps=te.target_reps or DEFAULT_CARDIO_REPS,
                    target_duration_minutes=te.target_duration_minutes,
                    target_distance_miles=te.target_distance_miles,
                )
            entries.append(entry)

        started_at = _utcnow()
        status = WorkoutStatus.IN_PROGRESS.value
        completed_at = None
        if payload.start_date is not None:
            started_at = completed_at = _as_naive_utc(payload.start_date)
            status = WorkoutStatus.COMPLETED.value

        workout = Workout(
            user_id=self.user_id,
            name=template_name,
            template_id=template_id,
            status=status,
            started_at=started_at,
            completed_at=completed_at,
            exercises=[WorkoutExercise(user_id=self.user_id, **entry) for entry in entries],
        )
        self.db.add(workout)
        await self.db.commit()

        WORKOUTS_CREATED_TOTAL.labels(source="template").inc()
        logger.info(
            "workout_created",
            user_id=self.user_id,
            workout_id=workout.id,
            source="template",
            template_id=template_id,
            backdated=completed_at is not None,
            exercises=len(entries),
        )
        return await self._load_workout(workout.id)

    async def create_workout_from_previous(self, payload: sm.WorkoutFromPreviousCreate) -> Workout:
        source = await self._load_workout(payload.source_workout_id)
        source_id = source.id

        entries = []
        for we in source.exercises:
            entries.append(
                {
                    "exercise_id": we.exercise_id,
                    "order_index": we.order_index,
                    "target_sets": we.target_sets,
                    "target_reps": we.target_reps,
                    "rest_between_sets": we.rest_between_sets,
                    "target_duration_minutes": we.target_duration_minutes,
                    "target_distance_miles": we.target_distance_miles,
                }
            )
        for entry in entries:
            seeded = await self.progressions.seed_targets(
                self.db, self.user_id, entry["exercise_id"], entry["target_reps"]
            )
            entry["target_reps"] = seeded.target_reps
            entry["suggested_weight"] = seeded.suggested_weight

        workout = Workout(
            user_id=self.user_id,
            name=payload.name,
            status=WorkoutStatus.IN_PROGRESS.value,
            started_at=_utcnow(),
            exercises=[WorkoutExercise(user_id=self.user_id, **entry) for entry in entries],
        )
        self.db.add(workout)
        await self.db.commit()

        WORKOUTS_CREATED_TOTAL.labels(source="previous").inc()
        logger.info(
            "workout_created",
            user_id=self.user_id,
            workout_id=workout.id,
            source="previous",
            source_workout_id=source_id,
            exercises=len(entries),
        )
        return await self._load_workout(workout.id)

    # Exercises and sets

    async def add_exercise(self, workout_id: int, payload: sm.WorkoutExerciseCreate) -> WorkoutExercise:
        workout = await self._load_workout(workout_id)
        await self._load_exercise(payload.exercise_id)

        next_index = max((we.order_index for we in workout.exercises), default=-1) + 1
        workout_exercise = WorkoutExercise(
            user_id=self.user_id,
            workout_id=workout.id,
            exercise_id=payload.exercise_id,
            order_index=next_index,
            target_sets=payload.target_sets,
            target_reps=payload.target_reps,
            rest_between_sets=payload.rest_between_sets,
            target_duration_minutes=payload.target_duration_minutes,
            target_distance_miles=payload.target_distance_miles,
        )
        self.db.add(workout_exercise)
        await self.db.commit()

        logger.info(
            "workout_exercise_added",
            user_id=self.user_id,
            workout_id=workout_id,
            workout_exercise_id=workout_exercise.id,
            exercise_id=payload.exercise_id,
            order_index=next_index,
        )
        refreshed = await self._load_workout(workout_id)
        return next(we for we in refreshed.exercises if we.id == workout_exercise.id)

    async def complete_exercise(self, workout_id: int, workout_exercise_id: int) -> WorkoutExercise:
        workout = await self._load_workout(workout_id)
        workout_exercise = next((we for we in workout.exercises if we.id == workout_exercise_id), None)
        if workout_exercise is None:
            raise WorkoutExerciseNotFoundException(workout_exercise_id)

        workout_exercise.completed = True
        await self.db.commit()
        logger.info(
            "workout_exercise_completed",
            user_id=self.user_id,
            workout_id=workout_id,
            workout_exercise_id=workout_exercise_id,
        )
        return workout_exercise

    async def log_set(self, workout_exercise_id: int, payload: sm.SetCreate) -> WorkoutSet:
        workout_exercise = await self._load_workout_exercise(workout_exercise_id)

        fields = payload.model_dump(exclude={"completed"})
        workout_set = WorkoutSet(
            workout_exercise_id=workout_exercise.id,
            completed=payload.completed is not False,
            **fields,
        )
        self.db.add(workout_set)
        await self.db.commit()

        backdated = workout_exercise.workout.status == WorkoutStatus.COMPLETED.value
        SETS_LOGGED_TOTAL.labels(backdated=str(backdated).lower()).inc()
        logger.info(
            "set_logged",
            user_id=self.user_id,
            workout_exercise_id=workout_exercise_id,
            set_id=workout_set.id,
            set_number=workout_set.set_number,
            backdated=backdated,
        )

        await self._refresh_progression_for_set(workout_exercise)
        await self.db.refresh(workout_set)
        return workout_set

    async def update_set(self, set_id: int, payload: sm.SetUpdate) -> WorkoutSet:
        workout_set = await self._load_set(set_id)

        changes = payload.model_dump(exclude_unset=True)
        if changes.get("completed", False) is None:
            del changes["completed"]
        for field, value in changes.items():
            setattr(workout_set, field, value)
        await self.db.commit()

        logger.info("set_updated", user_id=self.user_id, set_id=set_id, fields=sorted(changes))

        await self._refresh_progression_for_set(workout_set.workout_exercise)
        await self.db.refresh(workout_set)
        return workout_set

    async def complete_set(self, set_id: int) -> WorkoutSet:
        return await self.update_set(set_id, sm.SetUpdate(completed=True))

    # State transitions

    async def complete_workout(self, workout_id: int) -> tuple[Workout, list[sm.DerivedComputationFailure]]:
        workout = await self._load_workout(workout_id)

        transitioned = workout.status != WorkoutStatus.COMPLETED.value
        workout.status = WorkoutStatus.COMPLETED.value
        if workout.completed_at is None:
            workout.completed_at = _utcnow()
        await self.db.commit()

        if transitioned:
            WORKOUTS_COMPLETED_TOTAL.inc()
        logger.info(
            "workout_completed",
            user_id=self.user_id,
            workout_id=workout_id,
            already_completed=not transitioned,
        )

        failures = await self.analyze_workout(workout)
        calorie_failure = await self._best_effort(
            "calories",
            lambda: self.calories.update_workout_calories(self.db, self.user_id, workout_id),
        )
        if calorie_failure is not None:
            failures.append(calorie_failure)

        if failures:
            logger.warning(
                "workout_completion_partial",
                user_id=self.user_id,
                workout_id=workout_id,
                failed_steps=[f.step for f in failures],
            )
        return await self._load_workout(workout_id), failures

    async def restart_workout(self, workout_id: int) -> Workout:
        workout = await self._load_workout(workout_id)
        if workout.status != WorkoutStatus.IN_PROGRESS.value:
            raise WorkoutStateException(f"Only an in-progress workout can be restarted (status={workout.status})")

        workout.started_at = _utcnow()
        await self.db.commit()
        logger.info("workout_restarted", user_id=self.user_id, workout_id=workout_id)
        return await self._load_workout(workout_id)

    async def delete_workout(self, workout_id: int) -> None:
        # Exercises and sets are loaded so the ORM cascade removes them too
        workout = await self._load_workout(workout_id)
        await self.db.delete(workout)
        await self.db.commit()
        logger.info("workout_deleted", user_id=self.user_id, workout_id=workout_id)

    async def cancel_workout(self, workout_id: int) -> None:
        await self.delete_workout(workout_id)

    async def save_as_template(self, workout_id: int, payload: sm.SaveAsTemplateRequest) -> WorkoutTemplate:
        workout = await self._load_workout(workout_id)
        if workout.template_id is not None:
            raise WorkoutStateException("Cannot save template-based workout as a new template")
        if not workout.exercises:
            raise WorkoutStateException("Cannot save empty workout as template")

        template = WorkoutTemplate(
            user_id=self.user_id,
            name=payload.name,
            description=payload.description,
            color=payload.color,
            is_active=True,
            exercises=[
                TemplateExercise(
                    exercise_id=we.exercise_id,
                    order_index=we.order_index,
                    target_sets=we.target_sets,
                    target_reps=we.target_reps,
                    rest_between_sets=we.rest_between_sets,
                    target_duration_minutes=we.target_duration_minutes,
                    target_distance_miles=we.target_distance_miles,
                )
                for we in workout.exercises
            ],
        )
        self.db.add(template)
        await self.db.commit()

        logger.info(
            "workout_saved_as_template",
            user_id=self.user_id,
            workout_id=workout_id,
            template_id=template.id,
            exercises=len(template.exercises),
        )
        result = await self.db.execute(
            select(WorkoutTemplate)
            .options(selectinload(WorkoutTemplate.exercises))
            .where(WorkoutTemplate.id == template.id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().one()

    # Queries

    async def get_workout(self, workout_id: int) -> Workout:
        return await self._load_workout(workout_id)

    async def list_workouts(self, limit: int = 20, offset: int = 0) -> tuple[list[Workout], int]:
        result = await self.db.execute(
            self._workout_query()
            .where(Workout.user_id == self.user_id)
            .order_by(Workout.started_at.desc(), Workout.id.desc())
            .limit(limit)
            .offset(offset)
        )
        total = await self.db.execute(select(func.count(Workout.id)).where(Workout.user_id == self.user_id))
        return list(result.scalars().all()), total.scalar_one()

    async def get_active_workout(self) -> Workout | None:
        result = await self.db.execute(
            self._workout_query()
            .where(Workout.user_id == self.user_id)
            .where(Workout.status == WorkoutStatus.IN_PROGRESS.value)
            .order_by(Workout.started_at.desc(), Workout.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def list_recent_workouts(self, limit: int | None = None) -> list[Workout]:
        result = await self.db.execute(
            self._workout_query()
            .where(Workout.user_id == self.user_id)
            .where(Workout.status == WorkoutStatus.COMPLETED.value)
            .order_by(Workout.completed_at.desc(), Workout.id.desc())
            .limit(limit or self.recent_limit)
        )
        return list(result.scalars().all())
