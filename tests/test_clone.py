import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from training_service.models.program import Program
from training_service.repositories.program_tree_repository import ProgramTreeRepository
from training_service.services.clone_service import CloneService

COPIED_FIELDS = ("exercise_id", "order", "type", "sets", "reps_or_time", "rest", "weight", "rpe", "rir", "tut", "note")


@pytest.fixture()
def source_program(api):
    """Two weeks, three days, five workout exercises with one superset pair."""
    squat = api.exercise("Squat")
    bench = api.exercise("Bench press", "chest")
    program = api.program("Source", description="base block", type="strength")

    week1 = api.next_week(program["id"])
    monday = api.day(week1["id"], 1, "Legs")
    a = api.workout_exercise(monday["id"], squat["id"], weight=120, rpe=8, note="belt")
    api.workout_exercise(monday["id"], bench["id"], superset_workout_exercise_id=a["id"], type="ramping")
    thursday = api.day(week1["id"], 4, "Push")
    api.workout_exercise(thursday["id"], bench["id"], tut=40)

    week2 = api.next_week(program["id"])
    tuesday = api.day(week2["id"], 2, "Full body")
    api.workout_exercise(tuesday["id"], squat["id"])
    api.workout_exercise(tuesday["id"], bench["id"], rir=2)

    return api.tree(program["id"])


def _counts(tree):
    days = [d for w in tree["weeks"] for d in w["days"]]
    exercises = [e for d in days for e in d["exercises"]]
    return len(tree["weeks"]), len(days), len(exercises)


def _ids(tree):
    ids = {("program", tree["id"])}
    for w in tree["weeks"]:
        ids.add(("week", w["id"]))
        for d in w["days"]:
            ids.add(("day", d["id"]))
            ids.update(("workout_exercise", e["id"]) for e in d["exercises"])
    return ids


def test_clone_program_deep_copies_tree(client: TestClient, api, source_program):
    r = client.post(f"/training/programs/{source_program['id']}/clone", json={"title": "X"})
    assert r.status_code == 201, r.text
    clone = r.json()

    assert clone["title"] == "X"
    assert clone["description"] == "base block"
    assert clone["type"] == "strength"
    assert _counts(clone) == _counts(source_program)
    assert _ids(clone).isdisjoint(_ids(source_program))

    for src_week, new_week in zip(source_program["weeks"], clone["weeks"]):
        assert new_week["order"] == src_week["order"]
        for src_day, new_day in zip(src_week["days"], new_week["days"]):
            assert (new_day["day_of_week"], new_day["title"]) == (src_day["day_of_week"], src_day["title"])
            for src_ex, new_ex in zip(src_day["exercises"], new_day["exercises"]):
                assert {f: new_ex[f] for f in COPIED_FIELDS} == {f: src_ex[f] for f in COPIED_FIELDS}


def test_clone_program_remaps_supersets(client: TestClient, source_program):
    clone = client.post(f"/training/programs/{source_program['id']}/clone", json={"title": "X"}).json()

    monday = clone["weeks"][0]["days"][0]
    first, second = monday["exercises"]
    assert second["superset_workout_exercise_id"] == first["id"]

    source_monday = source_program["weeks"][0]["days"][0]
    assert source_monday["exercises"][1]["superset_workout_exercise_id"] == source_monday["exercises"][0]["id"]


def test_clone_program_leaves_source_untouched(client: TestClient, api, source_program):
    client.post(f"/training/programs/{source_program['id']}/clone", json={"title": "X"})
    after = api.tree(source_program["id"])
    assert after["weeks"] == source_program["weeks"]


def test_clone_missing_program(client: TestClient):
    r = client.post("/training/programs/999/clone", json={"title": "X"})
    assert r.status_code == 404


def test_duplicate_week_beyond_max_creates_week(client: TestClient, api, source_program):
    week1 = source_program["weeks"][0]

    r = client.post(
        f"/training/weeks/{week1['id']}/duplicate",
        json={"program_id": source_program["id"], "destination_order": 5},
    )
    assert r.status_code == 201, r.text
    new_week = r.json()
    assert new_week["order"] == 5
    assert [d["day_of_week"] for d in new_week["days"]] == [1, 4]

    first, second = new_week["days"][0]["exercises"]
    assert second["superset_workout_exercise_id"] == first["id"]
    assert first["id"] not in {e["id"] for d in week1["days"] for e in d["exercises"]}

    assert [w["order"] for w in api.tree(source_program["id"])["weeks"]] == [1, 2, 5]


def test_duplicate_week_into_gap(client: TestClient, api, source_program):
    week1, week2 = source_program["weeks"]
    api.next_week(source_program["id"])
    assert client.delete(f"/training/weeks/{week2['id']}").status_code == 204

    r = client.post(
        f"/training/weeks/{week1['id']}/duplicate",
        json={"program_id": source_program["id"], "destination_order": 2},
    )
    assert r.status_code == 201
    assert [w["order"] for w in api.tree(source_program["id"])["weeks"]] == [1, 2, 3]


def test_duplicate_week_into_occupied_slot_is_rejected(client: TestClient, api, source_program):
    week2 = source_program["weeks"][1]

    r = client.post(
        f"/training/weeks/{week2['id']}/duplicate",
        json={"program_id": source_program["id"], "destination_order": 2},
    )
    assert r.status_code == 409
    assert r.json()["code"] == "week_slot_taken"

    assert api.tree(source_program["id"]) == source_program


def test_duplicate_week_rejects_non_positive_order(client: TestClient, source_program):
    week1 = source_program["weeks"][0]
    r = client.post(
        f"/training/weeks/{week1['id']}/duplicate",
        json={"program_id": source_program["id"], "destination_order": 0},
    )
    assert r.status_code == 422


def test_duplicate_week_of_other_program(client: TestClient, api, source_program):
    other = api.program("Other")
    week1 = source_program["weeks"][0]

    r = client.post(
        f"/training/weeks/{week1['id']}/duplicate",
        json={"program_id": other["id"], "destination_order": 1},
    )
    assert r.status_code == 404
    assert api.tree(other["id"])["weeks"] == []


def test_clone_day_into_free_slot(client: TestClient, api, source_program):
    week1, week2 = source_program["weeks"]
    source_day = week1["days"][0]

    r = client.post(
        f"/training/weeks/{week1['id']}/days/1/clone",
        json={"destination_week_id": week2["id"], "destination_day_of_week": 4},
    )
    assert r.status_code == 201, r.text
    new_day = r.json()
    assert new_day["week_id"] == week2["id"]
    assert new_day["day_of_week"] == 4
    assert new_day["title"] == source_day["title"]
    assert len(new_day["exercises"]) == len(source_day["exercises"])

    for src_ex, new_ex in zip(source_day["exercises"], new_day["exercises"]):
        assert new_ex["id"] != src_ex["id"]
        assert {f: new_ex[f] for f in COPIED_FIELDS} == {f: src_ex[f] for f in COPIED_FIELDS}
    assert new_day["exercises"][1]["superset_workout_exercise_id"] == new_day["exercises"][0]["id"]

    days = api.tree(source_program["id"])["weeks"][1]["days"]
    assert [d["day_of_week"] for d in days] == [2, 4]


def test_clone_day_into_taken_slot(client: TestClient, api, source_program):
    week1, week2 = source_program["weeks"]

    r = client.post(
        f"/training/weeks/{week1['id']}/days/1/clone",
        json={"destination_week_id": week2["id"], "destination_day_of_week": 2},
    )
    assert r.status_code == 409
    assert r.json()["code"] == "day_slot_taken"
    assert api.tree(source_program["id"]) == source_program


def test_clone_day_missing_source_day(client: TestClient, source_program):
    week1, week2 = source_program["weeks"]
    r = client.post(
        f"/training/weeks/{week1['id']}/days/7/clone",
        json={"destination_week_id": week2["id"], "destination_day_of_week": 6},
    )
    assert r.status_code == 404


def test_clone_day_across_programs(client: TestClient, api, source_program):
    other = api.program("Other")
    other_week = api.next_week(other["id"])
    week1 = source_program["weeks"][0]

    r = client.post(
        f"/training/weeks/{week1['id']}/days/4/clone",
        json={"destination_week_id": other_week["id"], "destination_day_of_week": 6},
    )
    assert r.status_code == 201
    assert [d["day_of_week"] for d in api.tree(other["id"])["weeks"][0]["days"]] == [6]


def test_copy_exercise_appends_and_drops_superset(client: TestClient, api, source_program):
    week1, week2 = source_program["weeks"]
    linked = week1["days"][0]["exercises"][1]
    destination = week2["days"][0]

    r = client.post(
        f"/training/workout-exercises/{linked['id']}/copy",
        json={"destination_day_id": destination["id"]},
    )
    assert r.status_code == 201, r.text
    copy = r.json()
    assert copy["day_id"] == destination["id"]
    assert copy["order"] == 3
    assert copy["superset_workout_exercise_id"] is None
    assert copy["exercise_id"] == linked["exercise_id"]

    source_day = api.tree(source_program["id"])["weeks"][0]["days"][0]
    assert source_day["exercises"][1]["superset_workout_exercise_id"] == source_day["exercises"][0]["id"]


def test_copy_exercise_to_empty_day(client: TestClient, api, source_program):
    week2 = source_program["weeks"][1]
    empty = api.day(week2["id"], 6)
    squat_row = source_program["weeks"][0]["days"][0]["exercises"][0]

    r = client.post(f"/training/workout-exercises/{squat_row['id']}/copy", json={"destination_day_id": empty["id"]})
    assert r.status_code == 201
    assert r.json()["order"] == 1


def test_copy_exercise_missing_destination(client: TestClient, source_program):
    row = source_program["weeks"][0]["days"][0]["exercises"][0]
    r = client.post(f"/training/workout-exercises/{row['id']}/copy", json={"destination_day_id": 999})
    assert r.status_code == 404

    r = client.post("/training/workout-exercises/999/copy", json={"destination_day_id": 1})
    assert r.status_code == 404


async def test_clone_program_rolls_back_on_failure(session_factory, source_program, monkeypatch):
    async with session_factory() as session:
        svc = CloneService(session, ProgramTreeRepository(session))

        def broken_remap(pairs):
            raise RuntimeError("boom")

        monkeypatch.setattr("training_service.services.clone_service.remap_supersets", broken_remap)
        with pytest.raises(RuntimeError):
            await svc.clone_program(source_program["id"], "X")

    async with session_factory() as session:
        count = (await session.execute(select(func.count(Program.id)))).scalar_one()
    assert count == 1
