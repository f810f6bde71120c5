import math
from collections.abc import Iterable

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import SnapshotCache
from ..exceptions import ExerciseInUse, ExerciseNotFound
from ..models.exercise import Exercise
from ..redis_client import program_tree_key
from ..repositories.exercise_repository import ExerciseRepository
from ..schemas.exercise import (
    ExerciseCreate,
    ExerciseFilter,
    ExercisePage,
    ExerciseResponse,
    ExerciseUpdate,
)

logger = structlog.get_logger(__name__)

# Columns that accept an explicit null from a partial update
NULLABLE_FIELDS = frozenset(
    {
        "video_file_id",
        "video_thumbnail_file_id",
        "original_video_file_name",
        "video_duration",
    }
)


class ExerciseCatalogService:
    def __init__(self, db: AsyncSession, cache: SnapshotCache | None = None):
        self.db = db
        self.cache = cache
        self.exercises = ExerciseRepository(db)

    async def list_exercises(self, filters: ExerciseFilter) -> ExercisePage:
        items, total = await self.exercises.search(filters)
        return ExercisePage(
            items=[ExerciseResponse.model_validate(item) for item in items],
            page=filters.page,
            page_size=filters.page_size,
            total_items=total,
            total_pages=math.ceil(total / filters.page_size) if total else 0,
        )

    async def get(self, exercise_id: int) -> ExerciseResponse:
        return ExerciseResponse.model_validate(await self.exercises.get(exercise_id))

    async def muscle_groups(self) -> list[str]:
        return await self.exercises.muscle_groups()

    async def create(self, payload: ExerciseCreate) -> ExerciseResponse:
        exercise = Exercise(**payload.model_dump())
        self.db.add(exercise)
        await self.db.commit()
        await self.db.refresh(exercise)
        logger.info("exercise_created", exercise_id=exercise.id, muscle_group=exercise.muscle_group)
        return ExerciseResponse.model_validate(exercise)

    async def update(self, exercise_id: int, payload: ExerciseUpdate) -> ExerciseResponse:
        exercise = await self.exercises.get(exercise_id)

        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is None and field not in NULLABLE_FIELDS:
                continue
            setattr(exercise, field, value)

        await self.db.commit()
        await self.db.refresh(exercise)
        await self._drop_cached_trees(exercise_id)
        return ExerciseResponse.model_validate(exercise)

    async def _drop_cached_trees(self, exercise_id: int) -> None:
        # shared program trees embed a summary of every referenced exercise
        if self.cache is None:
            return
        program_ids = await self.exercises.program_ids_using(exercise_id)
        for program_id in program_ids:
            await self.cache.delete(program_tree_key(program_id))
        if program_ids:
            logger.info("program_trees_invalidated", exercise_id=exercise_id, program_ids=program_ids)

    async def delete(self, exercise_id: int) -> None:
        exercise = await self.exercises.get(exercise_id)
        if await self.exercises.is_in_use(exercise_id):
            raise ExerciseInUse(exercise_id)

        await self.db.delete(exercise)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            # a workout exercise referenced it between the check and the delete
            await self.db.rollback()
            raise ExerciseInUse(exercise_id) from exc
        logger.info("exercise_deleted", exercise_id=exercise_id)

    async def existing_ids(self, exercise_ids: Iterable[int]) -> set[int]:
        return await self.exercises.existing_ids(exercise_ids)

    async def require_existing(self, exercise_ids: Iterable[int]) -> None:
        wanted = set(exercise_ids)
        missing = wanted - await self.existing_ids(wanted)
        if missing:
            raise ExerciseNotFound(sorted(missing))
