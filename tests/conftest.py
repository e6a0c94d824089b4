import os
import sys
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

SERVICE_ROOT = Path(__file__).resolve().parents[1]
if str(SERVICE_ROOT) not in sys.path:
    sys.path.insert(0, str(SERVICE_ROOT))

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


def _alembic_upgrade_head(db_url: str) -> None:
    os.environ["WORKOUT_TRACKER_DATABASE_URL"] = db_url
    os.environ.setdefault("APP_ENV", "test")
    cfg = Config(str(SERVICE_ROOT / "alembic.ini"))
    # Pin script_location explicitly to avoid picking up wrong migrations when running from another directory
    cfg.set_main_option("script_location", str(SERVICE_ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    command.upgrade(cfg, "head")


@pytest.fixture(scope="session")
def test_db_url(tmp_path_factory) -> str:
    tmp_dir = tmp_path_factory.mktemp("workout_tracker_db")
    db_path = tmp_dir / "test_workout_tracker.db"
    return f"sqlite:///{db_path}"


@pytest.fixture(scope="session")
def migrated_db(test_db_url: str):
    _alembic_upgrade_head(test_db_url)
    yield test_db_url


@pytest.fixture(scope="session")
def sync_engine(migrated_db: str):
    engine = create_engine(migrated_db)
    yield engine
    engine.dispose()


@pytest.fixture()
def db_session(sync_engine):
    with Session(sync_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture()
def client(migrated_db: str, sync_engine):
    from workout_tracker.database import Base
    from workout_tracker.main import app

    with TestClient(app) as c:
        c.headers.update({"X-User-Id": USER_ID})
        yield c

    with sync_engine.connect() as connection:
        transaction = connection.begin()
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())
        transaction.commit()


@pytest.fixture()
def seed(db_session):
    """Inserts rows owned by collaborator services (library, profiles, templates)."""
    from workout_tracker import models

    class Seeder:
        def exercise(self, name="Bench Press", type="STRENGTH", met_value=None, user_id=None):
            exercise = models.Exercise(name=name, type=type, met_value=met_value, user_id=user_id)
            db_session.add(exercise)
            db_session.commit()
            return exercise

        def profile(self, weight, weight_unit="LBS", user_id=USER_ID):
            profile = models.UserProfile(user_id=user_id, weight=weight, weight_unit=weight_unit)
            db_session.add(profile)
            db_session.commit()
            return profile

        def template(self, exercises, name="Push Day", user_id=USER_ID):
            template = models.WorkoutTemplate(
                user_id=user_id,
                name=name,
                exercises=[models.TemplateExercise(order_index=i, **fields) for i, fields in enumerate(exercises)],
            )
            db_session.add(template)
            db_session.commit()
            return template

    return Seeder()


@pytest.fixture()
def api(client: TestClient):
    """Thin wrappers over the HTTP calls most tests repeat."""

    class Api:
        def create_workout(self, name="Morning Session"):
            r = client.post("/workouts/", json={"name": name})
            assert r.status_code == 201, r.text
            return r.json()

        def add_exercise(self, workout_id, exercise_id, target_sets=3, target_reps=10, **extra):
            r = client.post(
                f"/workouts/{workout_id}/exercises",
                json={"exercise_id": exercise_id, "target_sets": target_sets, "target_reps": target_reps, **extra},
            )
            assert r.status_code == 201, r.text
            return r.json()

        def log_set(self, workout_exercise_id, set_number, **fields):
            r = client.post(
                f"/workouts/exercises/{workout_exercise_id}/sets",
                json={"set_number": set_number, **fields},
            )
            assert r.status_code == 201, r.text
            return r.json()

        def complete(self, workout_id):
            r = client.patch(f"/workouts/{workout_id}/complete")
            assert r.status_code == 200, r.text
            return r.json()

        def completed_workout(self, exercise_id, sets, name="Morning Session"):
            """Creates a workout with one exercise, logs ``sets`` and completes it."""
            workout = self.create_workout(name)
            workout_exercise = self.add_exercise(workout["id"], exercise_id)
            for number, fields in enumerate(sets, start=1):
                self.log_set(workout_exercise["id"], number, **fields)
            return self.complete(workout["id"])

    return Api()
