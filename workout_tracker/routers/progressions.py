import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .. import schemas as sm
from ..container import ServiceContainer
from ..database import get_db
from ..dependencies import get_container, get_current_user_id
from ..exceptions import ProgressionNotFoundException

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="")


@router.get("/recommendations", response_model=list[sm.RecommendationResponse])
async def list_recommendations(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    return await container.progressions.list_recommendations(db, user_id)


@router.get("/exercises/{exercise_id}", response_model=sm.ProgressionResponse)
async def get_progression(
    exercise_id: int,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    progression = await container.progressions.get_progression(db, user_id, exercise_id)
    if progression is None:
        raise ProgressionNotFoundException(exercise_id)
    return progression


@router.delete("/exercises/{exercise_id}", response_model=sm.ProgressionResetResponse)
async def reset_progression(
    exercise_id: int,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    deleted = await container.progressions.reset_progression(db, user_id, exercise_id)
    return sm.ProgressionResetResponse(deleted=deleted)


@router.delete("/", response_model=sm.ProgressionResetResponse)
async def reset_all_progressions(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    container: ServiceContainer = Depends(get_container),
):
    logger.info("progressions_reset_all_requested", user_id=user_id)
    deleted = await container.progressions.reset_all_progressions(db, user_id)
    return sm.ProgressionResetResponse(deleted=deleted)
