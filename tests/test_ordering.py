import pytest
from fastapi.testclient import TestClient

from training_service.exceptions import InvalidList
from training_service.repositories.program_tree_repository import ProgramTreeRepository
from training_service.services.ordering_service import OrderingService


def _day_with_three(api):
    squat = api.exercise("Squat")
    program = api.program()
    week = api.next_week(program["id"])
    day = api.day(week["id"], 1)
    a = api.workout_exercise(day["id"], squat["id"])
    b = api.workout_exercise(day["id"], squat["id"])
    c = api.workout_exercise(day["id"], squat["id"])
    return program, day, a, b, c


def test_reorder_exercises_rewrites_sequence(client: TestClient, api):
    program, day, a, b, c = _day_with_three(api)

    r = client.put(
        f"/training/days/{day['id']}/exercises/order",
        json={"workout_exercise_ids": [c["id"], a["id"], b["id"]]},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["day_id"] == day["id"]
    assert {o["workout_exercise_id"]: o["order"] for o in body["orders"]} == {c["id"]: 1, a["id"]: 2, b["id"]: 3}

    exercises = api.tree(program["id"])["weeks"][0]["days"][0]["exercises"]
    assert [(e["id"], e["order"]) for e in exercises] == [(c["id"], 1), (a["id"], 2), (b["id"], 3)]


def test_reorder_closes_gaps(client: TestClient, api):
    program, day, a, b, c = _day_with_three(api)
    assert client.delete(f"/training/workout-exercises/{b['id']}").status_code == 204

    r = client.put(
        f"/training/days/{day['id']}/exercises/order",
        json={"workout_exercise_ids": [c["id"], a["id"]]},
    )
    assert r.status_code == 200

    exercises = api.tree(program["id"])["weeks"][0]["days"][0]["exercises"]
    assert [e["order"] for e in exercises] == [1, 2]


@pytest.mark.parametrize(
    "build_ids",
    [
        lambda a, b, c: [a, b],
        lambda a, b, c: [a, b, c, 9999],
        lambda a, b, c: [a, b, b, c],
        lambda a, b, c: [],
    ],
    ids=["missing", "extra", "duplicated", "empty"],
)
def test_reorder_rejects_partial_lists(client: TestClient, api, build_ids):
    program, day, a, b, c = _day_with_three(api)

    r = client.put(
        f"/training/days/{day['id']}/exercises/order",
        json={"workout_exercise_ids": build_ids(a["id"], b["id"], c["id"])},
    )
    assert r.status_code == 422
    assert r.json()["code"] == "invalid_list"

    exercises = api.tree(program["id"])["weeks"][0]["days"][0]["exercises"]
    assert [(e["id"], e["order"]) for e in exercises] == [(a["id"], 1), (b["id"], 2), (c["id"], 3)]


def test_reorder_rejects_exercise_of_other_day(client: TestClient, api):
    program, day, a, b, c = _day_with_three(api)
    other = api.day(api.tree(program["id"])["weeks"][0]["id"], 2)
    foreign = api.workout_exercise(other["id"], a["exercise_id"])

    r = client.put(
        f"/training/days/{day['id']}/exercises/order",
        json={"workout_exercise_ids": [a["id"], b["id"], c["id"], foreign["id"]]},
    )
    assert r.status_code == 422


def test_reorder_missing_day(client: TestClient):
    r = client.put("/training/days/999/exercises/order", json={"workout_exercise_ids": [1]})
    assert r.status_code == 404


@pytest.fixture()
def three_exercise_day(api):
    return _day_with_three(api)


async def test_drag_reorder_applies_locally_then_persists(session_factory, three_exercise_day):
    program, day, a, b, c = three_exercise_day

    async with session_factory() as session:
        repository = ProgramTreeRepository(session)
        svc = OrderingService(session, repository)

        tree = await svc.drag_reorder(program["id"], day["id"], [b["id"], c["id"], a["id"]])
        local = tree.find_day(day["id"])
        assert [(e.id, e.order) for e in local.exercises] == [(b["id"], 1), (c["id"], 2), (a["id"], 3)]

    async with session_factory() as session:
        stored = (await ProgramTreeRepository(session).fetch_tree(program["id"])).find_day(day["id"])
    assert [e.id for e in stored.exercises] == [b["id"], c["id"], a["id"]]


async def test_drag_reorder_failure_restores_authoritative_tree(session_factory, three_exercise_day, monkeypatch):
    program, day, a, b, c = three_exercise_day

    async with session_factory() as session:
        repository = ProgramTreeRepository(session)
        svc = OrderingService(session, repository)
        await repository.fetch_tree(program["id"])

        async def failing_reorder(day_id, ordered_ids):
            raise RuntimeError("store unavailable")

        monkeypatch.setattr(svc, "reorder_exercises", failing_reorder)

        with pytest.raises(RuntimeError):
            await svc.drag_reorder(program["id"], day["id"], [c["id"], b["id"], a["id"]])

        snapshot = repository.cached(program["id"]).find_day(day["id"])
        assert [e.id for e in snapshot.exercises] == [a["id"], b["id"], c["id"]]


async def test_drag_reorder_with_invalid_list_leaves_snapshot(session_factory, three_exercise_day):
    program, day, a, b, c = three_exercise_day

    async with session_factory() as session:
        repository = ProgramTreeRepository(session)
        svc = OrderingService(session, repository)
        before = await repository.fetch_tree(program["id"])

        with pytest.raises(InvalidList):
            await svc.drag_reorder(program["id"], day["id"], [a["id"], b["id"]])

        assert repository.cached(program["id"]) is before
