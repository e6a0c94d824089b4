from datetime import datetime

import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def workout_exercise(api, seed):
    exercise = seed.exercise()
    workout = api.create_workout()
    return api.add_exercise(workout["id"], exercise.id)


def test_log_set_defaults_to_completed(client: TestClient, api, workout_exercise):
    logged = api.log_set(workout_exercise["id"], 1, reps=10, weight=135, rpe=7, notes="felt good")

    assert logged["completed"] is True
    assert logged["reps"] == 10
    assert logged["weight"] == 135
    assert logged["notes"] == "felt good"

    failed = api.log_set(workout_exercise["id"], 2, reps=4, weight=135, completed=False)
    assert failed["completed"] is False

    r = client.get(f"/workouts/{workout_exercise['workout_id']}")
    sets = r.json()["exercises"][0]["sets"]
    assert [s["set_number"] for s in sets] == [1, 2]


def test_log_cardio_set(api, seed):
    run = seed.exercise("Treadmill", type="CARDIO")
    workout = api.create_workout()
    entry = api.add_exercise(workout["id"], run.id, target_sets=1, target_reps=1)

    logged = api.log_set(entry["id"], 1, duration_minutes=25.5, distance_miles=3.1, calories_burned=280)
    assert logged["duration_minutes"] == 25.5
    assert logged["distance_miles"] == 3.1
    assert logged["calories_burned"] == 280
    assert logged["reps"] is None


@pytest.mark.parametrize(
    "payload",
    [
        {"set_number": 0, "reps": 10},
        {"set_number": 1, "reps": -1},
        {"set_number": 1, "weight": -5},
        {"set_number": 1, "rpe": 11},
        {"set_number": 1, "rpe": 0},
        {"set_number": 1, "duration_minutes": -1},
        {"reps": 10},
    ],
)
def test_log_set_validation(client: TestClient, workout_exercise, payload):
    r = client.post(f"/workouts/exercises/{workout_exercise['id']}/sets", json=payload)
    assert r.status_code == 422


def test_log_set_on_unknown_exercise_entry(client: TestClient):
    r = client.post("/workouts/exercises/999999/sets", json={"set_number": 1, "reps": 5})
    assert r.status_code == 404


def test_update_set_is_partial(client: TestClient, api, workout_exercise):
    logged = api.log_set(workout_exercise["id"], 1, reps=10, weight=100, rpe=8)

    r = client.put(f"/workouts/sets/{logged['id']}", json={"reps": 12})
    assert r.status_code == 200, r.text
    updated = r.json()
    assert updated["reps"] == 12
    assert updated["weight"] == 100
    assert updated["rpe"] == 8
    assert updated["completed"] is True


def test_update_set_ignores_null_completed(client: TestClient, api, workout_exercise):
    logged = api.log_set(workout_exercise["id"], 1, reps=10, completed=False)

    r = client.put(f"/workouts/sets/{logged['id']}", json={"completed": None, "weight": 60})
    assert r.status_code == 200, r.text
    assert r.json()["completed"] is False
    assert r.json()["weight"] == 60


def test_complete_set(client: TestClient, api, workout_exercise):
    logged = api.log_set(workout_exercise["id"], 1, reps=6, completed=False)

    r = client.patch(f"/workouts/sets/{logged['id']}/complete")
    assert r.status_code == 200, r.text
    assert r.json()["completed"] is True


def test_update_unknown_set(client: TestClient):
    assert client.put("/workouts/sets/999999", json={"reps": 1}).status_code == 404
    assert client.patch("/workouts/sets/999999/complete").status_code == 404


def test_sets_logged_on_backdated_workout_update_progression(client: TestClient, api, seed):
    bench = seed.exercise("Bench Press")
    template = seed.template([{"exercise_id": bench.id, "target_sets": 3, "target_reps": 10}])
    r = client.post(
        "/workouts/from-template",
        json={"template_id": template.id, "start_date": datetime(2026, 9, 1, 18, 0).isoformat()},
    )
    entry = r.json()["exercises"][0]

    assert client.get(f"/progressions/exercises/{bench.id}").status_code == 404

    logged = [api.log_set(entry["id"], n, reps=10, weight=80, rpe=6) for n in (1, 2, 3)]

    r = client.get(f"/progressions/exercises/{bench.id}")
    assert r.status_code == 200, r.text
    assert r.json()["recommendation"] == "INCREASE_WEIGHT"
    assert r.json()["avg_weight"] == 80

    # editing a set afterwards recomputes the stored recommendation
    r = client.put(f"/workouts/sets/{logged[2]['id']}", json={"rpe": 10})
    assert r.status_code == 200
    r = client.get(f"/progressions/exercises/{bench.id}")
    assert r.json()["recommendation"] == "MORE_REPS"


def test_sets_on_live_workout_do_not_touch_progression(client: TestClient, api, workout_exercise):
    api.log_set(workout_exercise["id"], 1, reps=10, weight=100, rpe=6)

    assert client.get("/progressions/recommendations").json() == []


def test_progression_failure_does_not_block_backdated_set_writes(client: TestClient, api, seed, monkeypatch):
    bench = seed.exercise()
    template = seed.template([{"exercise_id": bench.id, "target_sets": 3, "target_reps": 10}])
    r = client.post(
        "/workouts/from-template",
        json={"template_id": template.id, "start_date": datetime(2026, 9, 1, 18, 0).isoformat()},
    )
    workout_id = r.json()["id"]
    entry = r.json()["exercises"][0]

    async def broken(db, user_id, exercise_id):
        raise RuntimeError("progression store unavailable")

    monkeypatch.setattr(client.app.state.container.progressions, "analyze", broken)

    logged = api.log_set(entry["id"], 1, reps=10, weight=80, rpe=6)
    assert logged["reps"] == 10

    r = client.put(f"/workouts/sets/{logged['id']}", json={"weight": 85})
    assert r.status_code == 200, r.text
    assert r.json()["weight"] == 85

    r = client.patch(f"/workouts/sets/{logged['id']}/complete")
    assert r.status_code == 200, r.text

    sets = client.get(f"/workouts/{workout_id}").json()["exercises"][0]["sets"]
    assert [(s["set_number"], s["weight"]) for s in sets] == [(1, 85)]
    assert client.get("/progressions/recommendations").json() == []


def test_unknown_set_fields_are_rejected(client: TestClient, api, workout_exercise):
    logged = api.log_set(workout_exercise["id"], 1, reps=10)

    r = client.put(f"/workouts/sets/{logged['id']}", json={"set_number": 3})
    assert r.status_code == 422
    r = client.post(f"/workouts/exercises/{workout_exercise['id']}/sets", json={"set_number": 2, "tempo": "3-1-1"})
    assert r.status_code == 422
