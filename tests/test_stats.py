from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def backdated(client: TestClient, api, seed):
    """Creates a completed workout ``days_ago`` days back holding one exercise and ``sets``."""

    def create(exercise_id, days_ago, sets):
        template = seed.template([{"exercise_id": exercise_id}], name=f"Past {days_ago}")
        start = datetime.now(UTC).replace(tzinfo=None, microsecond=0) - timedelta(days=days_ago)
        r = client.post("/workouts/from-template", json={"template_id": template.id, "start_date": start.isoformat()})
        assert r.status_code == 201, r.text
        workout = r.json()
        entry = workout["exercises"][0]
        for number, fields in enumerate(sets, start=1):
            api.log_set(entry["id"], number, **fields)
        return workout

    return create


@pytest.mark.parametrize(
    "moment, months, expected",
    [
        (datetime(2026, 1, 15, 8, 30), 3, datetime(2025, 10, 15, 8, 30)),
        (datetime(2026, 3, 31), 1, datetime(2026, 2, 28)),
        (datetime(2024, 3, 31), 1, datetime(2024, 2, 29)),
        (datetime(2026, 10, 18), 12, datetime(2025, 10, 18)),
    ],
)
def test_months_before(migrated_db, moment, months, expected):
    from workout_tracker.services.stats_service import months_before

    assert months_before(moment, months) == expected


def test_strength_history_per_workout(client: TestClient, api, seed, backdated):
    bench = seed.exercise("Bench Press")
    old = backdated(bench.id, 60, [{"reps": 10, "weight": 100}, {"reps": 8, "weight": 110}])
    today = api.completed_workout(
        bench.id,
        [
            {"reps": 10, "weight": 120},
            {"reps": 6, "weight": 130},
            {"reps": 2, "weight": 200, "completed": False},
        ],
    )

    r = client.get(f"/workouts/stats/exercises/{bench.id}/history")
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["exercise_name"] == "Bench Press"
    assert body["exercise_type"] == "STRENGTH"
    assert body["range"] == "3months"

    first, second = body["data"]
    assert first["workout_id"] == old["id"]
    assert first["avg_weight"] == 105
    assert first["max_weight"] == 110
    assert first["avg_reps"] == 9
    assert first["total_volume"] == 1000 + 880
    assert first["total_distance"] is None

    # the failed set is left out
    assert second["workout_id"] == today["workout"]["id"]
    assert second["max_weight"] == 130
    assert second["total_volume"] == 1200 + 780


def test_history_range_filter(client: TestClient, api, seed, backdated):
    bench = seed.exercise()
    backdated(bench.id, 200, [{"reps": 5, "weight": 100}])
    backdated(bench.id, 45, [{"reps": 5, "weight": 105}])
    api.completed_workout(bench.id, [{"reps": 5, "weight": 110}])

    def weights(time_range):
        r = client.get(f"/workouts/stats/exercises/{bench.id}/history", params={"range": time_range})
        assert r.status_code == 200, r.text
        return [point["max_weight"] for point in r.json()["data"]]

    assert weights("1month") == [110]
    assert weights("3months") == [105, 110]
    assert weights("all") == [100, 105, 110]
    assert client.get(f"/workouts/stats/exercises/{bench.id}/history", params={"range": "2weeks"}).status_code == 422


def test_cardio_history(client: TestClient, api, seed):
    run = seed.exercise("Treadmill", type="CARDIO")
    workout = api.create_workout()
    entry = api.add_exercise(workout["id"], run.id, target_sets=1, target_reps=1)
    api.log_set(entry["id"], 1, duration_minutes=20, distance_miles=2.0, calories_burned=200)
    api.log_set(entry["id"], 2, duration_minutes=10, distance_miles=1.5)
    api.complete(workout["id"])

    point = client.get(f"/workouts/stats/exercises/{run.id}/history").json()["data"][0]
    assert point["avg_duration"] == 15
    assert point["total_distance"] == 3.5
    assert point["total_calories"] == 200
    assert point["avg_weight"] is None
    assert point["total_volume"] is None


def test_history_ignores_live_and_foreign_workouts(client: TestClient, api, seed):
    bench = seed.exercise()
    live = api.create_workout()
    entry = api.add_exercise(live["id"], bench.id)
    api.log_set(entry["id"], 1, reps=10, weight=100)

    assert client.get(f"/workouts/stats/exercises/{bench.id}/history").json()["data"] == []

    api.complete(live["id"])
    r = client.get(f"/workouts/stats/exercises/{bench.id}/history", headers={"X-User-Id": "user-2"})
    assert r.status_code == 200
    assert r.json()["data"] == []


def test_history_of_unknown_or_foreign_exercise(client: TestClient, seed):
    private = seed.exercise("Secret Lift", user_id="user-2")
    assert client.get("/workouts/stats/exercises/424242/history").status_code == 404
    assert client.get(f"/workouts/stats/exercises/{private.id}/history").status_code == 404


def test_personal_records(client: TestClient, api, seed, backdated):
    squat = seed.exercise("Squat")
    bench = seed.exercise("Bench Press")
    run = seed.exercise("Treadmill", type="CARDIO")

    first = backdated(bench.id, 30, [{"reps": 5, "weight": 150}, {"reps": 3, "weight": 160}])
    api.completed_workout(bench.id, [{"reps": 8, "weight": 160}, {"reps": 1, "weight": 200, "completed": False}])
    api.completed_workout(squat.id, [{"reps": 5, "weight": 225}, {"weight": 300}])
    backdated(run.id, 10, [{"duration_minutes": 30, "distance_miles": 3.0}, {"duration_minutes": 50}])
    api.completed_workout(run.id, [{"duration_minutes": 26, "distance_miles": 3.1}])

    r = client.get("/workouts/stats/personal-records")
    assert r.status_code == 200, r.text
    records = {record["exercise_name"]: record for record in r.json()}
    assert [record["exercise_name"] for record in r.json()] == ["Bench Press", "Squat", "Treadmill"]

    # a tie keeps the earlier lift; the failed 200 does not count
    assert records["Bench Press"]["max_weight"] == 160
    assert records["Bench Press"]["reps"] == 3
    assert records["Bench Press"]["date"] == first["completed_at"]

    # sets without reps are not records
    assert records["Squat"]["max_weight"] == 225

    assert records["Treadmill"]["max_distance"] == 3.1
    assert records["Treadmill"]["best_time"] == 26
    assert records["Treadmill"]["max_weight"] is None


def test_personal_records_for_new_user(client: TestClient):
    r = client.get("/workouts/stats/personal-records")
    assert r.status_code == 200
    assert r.json() == []
