import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from .. import schemas as sm
from ..container import ServiceContainer
from ..database import get_db
from ..dependencies import get_container, get_current_user_id
from ..services.workout_service import WorkoutService

logger = structlog.get_logger(__name__)


def get_workout_service(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
) -> WorkoutService:
    return WorkoutService(
        db,
        user_id,
        progressions=container.progressions,
        calories=container.calories,
        recent_limit=container.settings.RECENT_WORKOUTS_LIMIT,
    )


router = APIRouter(prefix="")


# Static paths are declared before /{workout_id} so they are not captured by it


@router.get("/stats", response_model=sm.WorkoutStatsResponse)
async def get_workout_stats(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    return await container.stats.get_stats(db, user_id)


@router.get("/stats/personal-records", response_model=list[sm.PersonalRecord])
async def get_personal_records(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    return await container.stats.personal_records(db, user_id)


@router.get("/stats/exercises/{exercise_id}/history", response_model=sm.ExerciseHistoryResponse)
async def get_exercise_history(
    exercise_id: int,
    time_range: sm.TimeRange = Query(sm.TimeRange.THREE_MONTHS, alias="range"),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    return await container.stats.exercise_history(db, user_id, exercise_id, time_range)


@router.get("/active", response_model=sm.WorkoutResponse | None)
async def get_active_workout(workout_service: WorkoutService = Depends(get_workout_service)):
    workout = await workout_service.get_active_workout()
    if workout is None:
        return None
    return sm.WorkoutResponse.model_validate(workout)


@router.get("/recent", response_model=list[sm.WorkoutResponse])
async def list_recent_workouts(
    limit: int | None = Query(None, ge=1, le=100),
    workout_service: WorkoutService = Depends(get_workout_service),
):
    workouts = await workout_service.list_recent_workouts(limit)
    return [sm.WorkoutResponse.model_validate(w) for w in workouts]


@router.get("/", response_model=sm.WorkoutListResponse)
async def list_workouts(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    workout_service: WorkoutService = Depends(get_workout_service),
):
    workouts, total = await workout_service.list_workouts(limit=limit, offset=offset)
    return sm.WorkoutListResponse(items=[sm.WorkoutResponse.model_validate(w) for w in workouts], total=total)


@router.post("/", response_model=sm.WorkoutResponse, status_code=status.HTTP_201_CREATED)
async def create_workout(
    payload: sm.WorkoutCreate,
    workout_service: WorkoutService = Depends(get_workout_service),
    user_id: str = Depends(get_current_user_id),
):
    logger.info("workout_create_requested", user_id=user_id, name=payload.name)
    workout = await workout_service.create_workout(payload)
    return sm.WorkoutResponse.model_validate(workout)


@router.post("/from-template", response_model=sm.WorkoutResponse, status_code=status.HTTP_201_CREATED)
async def create_workout_from_template(
    payload: sm.WorkoutFromTemplateCreate,
    workout_service: WorkoutService = Depends(get_workout_service),
    user_id: str = Depends(get_current_user_id),
):
    logger.info(
        "workout_from_template_requested",
        user_id=user_id,
        template_id=payload.template_id,
        start_date=payload.start_date.isoformat() if payload.start_date else None,
    )
    workout = await workout_service.create_workout_from_template(payload)
    return sm.WorkoutResponse.model_validate(workout)


@router.post("/from-previous", response_model=sm.WorkoutResponse, status_code=status.HTTP_201_CREATED)
async def create_workout_from_previous(
    payload: sm.WorkoutFromPreviousCreate,
    workout_service: WorkoutService = Depends(get_workout_service),
    user_id: str = Depends(get_current_user_id),
):
    logger.info("workout_from_previous_requested", user_id=user_id, source_workout_id=payload.source_workout_id)
    workout = await workout_service.create_workout_from_previous(payload)
    return sm.WorkoutResponse.model_validate(workout)


@router.post("/exercises/{workout_exercise_id}/sets", response_model=sm.SetResponse, status_code=status.HTTP_201_CREATED)
async def log_set(
    workout_exercise_id: int,
    payload: sm.SetCreate,
    workout_service: WorkoutService = Depends(get_workout_service),
):
    workout_set = await workout_service.log_set(workout_exercise_id, payload)
    return sm.SetResponse.model_validate(workout_set)


@router.put("/sets/{set_id}", response_model=sm.SetResponse)
async def update_set(
    set_id: int,
    payload: sm.SetUpdate,
    workout_service: WorkoutService = Depends(get_workout_service),
):
    workout_set = await workout_service.update_set(set_id, payload)
    return sm.SetResponse.model_validate(workout_set)


@router.patch("/sets/{set_id}/complete", response_model=sm.SetResponse)
async def complete_set(set_id: int, workout_service: WorkoutService = Depends(get_workout_service)):
    workout_set = await workout_service.complete_set(set_id)
    return sm.SetResponse.model_validate(workout_set)


@router.get("/{workout_id}", response_model=sm.WorkoutResponse)
async def get_workout(workout_id: int, workout_service: WorkoutService = Depends(get_workout_service)):
    workout = await workout_service.get_workout(workout_id)
    return sm.WorkoutResponse.model_validate(workout)


@router.delete("/{workout_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workout(workout_id: int, workout_service: WorkoutService = Depends(get_workout_service)):
    await workout_service.delete_workout(workout_id)
    return None


@router.patch("/{workout_id}/cancel", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_workout(workout_id: int, workout_service: WorkoutService = Depends(get_workout_service)):
    await workout_service.cancel_workout(workout_id)
    return None


@router.patch("/{workout_id}/complete", response_model=sm.WorkoutCompletionResponse)
async def complete_workout(
    workout_id: int,
    workout_service: WorkoutService = Depends(get_workout_service),
    user_id: str = Depends(get_current_user_id),
):
    logger.info("workout_complete_requested", user_id=user_id, workout_id=workout_id)
    workout, failures = await workout_service.complete_workout(workout_id)
    return sm.WorkoutCompletionResponse(workout=sm.WorkoutResponse.model_validate(workout), failures=failures)


@router.patch("/{workout_id}/restart", response_model=sm.WorkoutResponse)
async def restart_workout(workout_id: int, workout_service: WorkoutService = Depends(get_workout_service)):
    workout = await workout_service.restart_workout(workout_id)
    return sm.WorkoutResponse.model_validate(workout)


@router.post(
    "/{workout_id}/save-as-template",
    response_model=sm.TemplateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def save_workout_as_template(
    workout_id: int,
    payload: sm.SaveAsTemplateRequest,
    workout_service: WorkoutService = Depends(get_workout_service),
):
    template = await workout_service.save_as_template(workout_id, payload)
    return sm.TemplateResponse.model_validate(template)


@router.post(
    "/{workout_id}/exercises",
    response_model=sm.WorkoutExerciseResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_exercise(
    workout_id: int,
    payload: sm.WorkoutExerciseCreate,
    workout_service: WorkoutService = Depends(get_workout_service),
):
    workout_exercise = await workout_service.add_exercise(workout_id, payload)
    return sm.WorkoutExerciseResponse.model_validate(workout_exercise)


@router.patch("/{workout_id}/exercises/{workout_exercise_id}/complete", response_model=sm.WorkoutExerciseResponse)
async def complete_exercise(
    workout_id: int,
    workout_exercise_id: int,
    workout_service: WorkoutService = Depends(get_workout_service),
):
    workout_exercise = await workout_service.complete_exercise(workout_id, workout_exercise_id)
    return sm.WorkoutExerciseResponse.model_validate(workout_exercise)
