import pytest

from training_service.cache import CacheMetrics, SnapshotCache
from training_service.exceptions import ProgramNotFound
from training_service.redis_client import program_tree_key
from training_service.repositories.program_tree_repository import ProgramTreeRepository
from training_service.schemas.exercise import ExerciseUpdate
from training_service.services.exercise_catalog_service import ExerciseCatalogService
from training_service.services.ordering_service import OrderingService
from training_service.services.program_service import ProgramService


class FakeRedis:
    def __init__(self, fail: bool = False):
        self.store: dict[str, str] = {}
        self.fail = fail

    async def get(self, key):
        if self.fail:
            raise ConnectionError("redis down")
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self.fail:
            raise ConnectionError("redis down")
        self.store[key] = value

    async def delete(self, key):
        if self.fail:
            raise ConnectionError("redis down")
        self.store.pop(key, None)


class FakeCounter:
    def __init__(self):
        self.value = 0

    def inc(self):
        self.value += 1


def make_cache(redis) -> tuple[SnapshotCache, CacheMetrics]:
    async def get_redis():
        return redis

    metrics = CacheMetrics(hits=FakeCounter(), misses=FakeCounter(), errors=FakeCounter())
    return SnapshotCache(get_redis, metrics=metrics), metrics


@pytest.fixture()
def program(api):
    squat = api.exercise("Squat")
    program = api.program("Cached")
    week = api.next_week(program["id"])
    day = api.day(week["id"], 1)
    api.workout_exercise(day["id"], squat["id"])
    return program


async def test_fetch_tree_keeps_session_snapshot_until_refresh(session_factory, program):
    async with session_factory() as session:
        repository = ProgramTreeRepository(session)
        first = await repository.fetch_tree(program["id"])
        assert await repository.fetch_tree(program["id"]) is first

        refreshed = await repository.refresh(program["id"])
        assert refreshed is not first
        assert refreshed == first
        assert await repository.fetch_tree(program["id"]) is refreshed

        repository.discard(program["id"])
        assert repository.cached(program["id"]) is None


async def test_refresh_sees_writes_from_other_sessions(session_factory, program):
    async with session_factory() as session:
        repository = ProgramTreeRepository(session)
        before = await repository.fetch_tree(program["id"])
        day_id = before.weeks[0].days[0].id

        async with session_factory() as other:
            await OrderingService(other, ProgramTreeRepository(other)).update_day_title(day_id, "Renamed")

        assert (await repository.fetch_tree(program["id"])).weeks[0].days[0].title == ""
        after = await repository.refresh(program["id"])
        assert after.weeks[0].days[0].title == "Renamed"


async def test_refresh_of_deleted_program_drops_snapshot(session_factory, program):
    redis = FakeRedis()
    cache, _ = make_cache(redis)

    async with session_factory() as session:
        repository = ProgramTreeRepository(session, cache)
        await repository.fetch_tree(program["id"])
        assert program_tree_key(program["id"]) in redis.store

        async with session_factory() as other:
            await ProgramService(other, ProgramTreeRepository(other)).delete_program(program["id"])

        with pytest.raises(ProgramNotFound):
            await repository.refresh(program["id"])
        assert repository.cached(program["id"]) is None
        assert program_tree_key(program["id"]) not in redis.store


async def test_shared_cache_serves_other_sessions(session_factory, program):
    redis = FakeRedis()
    cache, metrics = make_cache(redis)

    async with session_factory() as session:
        first = await ProgramTreeRepository(session, cache).fetch_tree(program["id"])
    assert metrics.misses.value == 1

    async with session_factory() as session:
        second = await ProgramTreeRepository(session, cache).fetch_tree(program["id"])
    assert metrics.hits.value == 1
    assert second == first


async def test_catalog_update_drops_cached_trees(session_factory, program):
    redis = FakeRedis()
    cache, _ = make_cache(redis)
    key = program_tree_key(program["id"])

    async with session_factory() as session:
        tree = await ProgramTreeRepository(session, cache).refresh(program["id"])
    exercise_id = tree.weeks[0].days[0].exercises[0].exercise_id
    assert key in redis.store

    async with session_factory() as session:
        await ExerciseCatalogService(session, cache).update(exercise_id, ExerciseUpdate(title="Back squat"))
    assert key not in redis.store

    async with session_factory() as session:
        tree = await ProgramTreeRepository(session, cache).fetch_tree(program["id"])
    assert tree.weeks[0].days[0].exercises[0].exercise.title == "Back squat"


async def test_corrupt_cache_entry_falls_back_to_store(session_factory, program):
    redis = FakeRedis()
    redis.store[program_tree_key(program["id"])] = "{not json"
    cache, _ = make_cache(redis)

    async with session_factory() as session:
        tree = await ProgramTreeRepository(session, cache).fetch_tree(program["id"])
    assert tree.id == program["id"]
    assert redis.store[program_tree_key(program["id"])] != "{not json"


async def test_cache_failures_are_ignored(session_factory, program):
    cache, metrics = make_cache(FakeRedis(fail=True))

    async with session_factory() as session:
        tree = await ProgramTreeRepository(session, cache).fetch_tree(program["id"])
    assert tree.id == program["id"]
    assert metrics.errors.value == 2
