from dataclasses import dataclass

from .config import Settings
from .services.calorie_service import CalorieService
from .services.progression_service import ProgressionService
from .services.stats_service import StatsService


@dataclass(frozen=True)
class ServiceContainer:
    """Stateless services shared by every request."""

    settings: Settings
    progressions: ProgressionService
    calories: CalorieService
    stats: StatsService


def build_container(settings: Settings) -> ServiceContainer:
    return ServiceContainer(
        settings=settings,
        progressions=ProgressionService(lookback_workouts=settings.PROGRESSION_LOOKBACK_WORKOUTS),
        calories=CalorieService(),
        stats=StatsService(),
    )
