import asyncio
import os

os.environ.setdefault("APP_ENV", "test")
os.environ["TRAINING_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["TRAINING_REDIS_ENABLED"] = "false"
os.environ["AUTO_CREATE_TABLES"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import NullPool

from training_service.database import Base, create_async_engine_and_session
from training_service.schemas.assignment import DirectoryUser


class FakeUserDirectory:
    def __init__(self, users: list[DirectoryUser]):
        self.users = {user.id: user for user in users}

    async def list_users(self) -> list[DirectoryUser]:
        return list(self.users.values())

    async def get_user(self, user_id: int) -> DirectoryUser | None:
        return self.users.get(user_id)

    async def users_by_id(self) -> dict[int, DirectoryUser]:
        return dict(self.users)


class TrainingApi:
    """Small builder over the HTTP API used to seed test data."""

    def __init__(self, client: TestClient):
        self.client = client

    def exercise(self, title: str = "Squat", muscle_group: str = "legs", **extra) -> dict:
        r = self.client.post("/training/exercises", json={"title": title, "muscle_group": muscle_group, **extra})
        assert r.status_code == 201, r.text
        return r.json()

    def program(self, title: str = "Strength block", **extra) -> dict:
        r = self.client.post("/training/programs", json={"title": title, **extra})
        assert r.status_code == 201, r.text
        return r.json()

    def next_week(self, program_id: int) -> dict:
        r = self.client.post(f"/training/programs/{program_id}/weeks/next")
        assert r.status_code == 201, r.text
        return r.json()

    def day(self, week_id: int, day_of_week: int, title: str = "") -> dict:
        r = self.client.post(f"/training/weeks/{week_id}/days", json={"day_of_week": day_of_week, "title": title})
        assert r.status_code == 201, r.text
        return r.json()

    def workout_exercise(self, day_id: int, exercise_id: int, **extra) -> dict:
        payload = {"exercise_id": exercise_id, "sets": 3, "reps_or_time": "8-10", "rest": 90, **extra}
        r = self.client.post(f"/training/days/{day_id}/exercises", json=payload)
        assert r.status_code == 201, r.text
        return r.json()

    def tree(self, program_id: int, refresh: bool = True) -> dict:
        r = self.client.get(f"/training/programs/{program_id}", params={"refresh": refresh})
        assert r.status_code == 200, r.text
        return r.json()

    def assign(self, user_id: int, program_id: int):
        return self.client.post("/training/assignments", json={"user_id": user_id, "program_id": program_id})


def _create_schema(engine) -> None:
    async def run():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(run())


@pytest.fixture()
def session_factory(tmp_path):
    engine, factory = create_async_engine_and_session(
        f"sqlite+aiosqlite:///{tmp_path / 'training.db'}",
        poolclass=NullPool,
    )
    _create_schema(engine)
    yield factory
    asyncio.run(engine.dispose())


@pytest.fixture()
def users() -> list[DirectoryUser]:
    return [
        DirectoryUser(id=1, email="anna@example.com", first_name="Anna", last_name="Rossi"),
        DirectoryUser(id=2, email="marco@example.com", username="marco"),
        DirectoryUser(id=3, email="giulia@example.com", first_name="Giulia"),
        DirectoryUser(id=4, email="luca@example.com"),
    ]


@pytest.fixture()
def directory(users) -> FakeUserDirectory:
    return FakeUserDirectory(users)


@pytest.fixture()
def client(session_factory, directory):
    from training_service.dependencies import get_db, get_session_factory, get_user_directory
    from training_service.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_user_directory] = lambda: directory

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture()
def api(client) -> TrainingApi:
    return TrainingApi(client)
