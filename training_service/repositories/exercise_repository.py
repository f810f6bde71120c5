from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import ExerciseNotFound
from ..models.exercise import Exercise
from ..models.program import Day, Week, WorkoutExercise
from ..schemas.exercise import ExerciseFilter


class ExerciseRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _filtered(stmt, filters: ExerciseFilter):
        search, groups, _ = filters.signature()
        if search:
            pattern = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            stmt = stmt.where(Exercise.title.ilike(f"%{pattern}%", escape="\\"))
        if groups:
            stmt = stmt.where(func.lower(Exercise.muscle_group).in_(groups))
        return stmt

    async def get(self, exercise_id: int) -> Exercise:
        exercise = await self.db.get(Exercise, exercise_id)
        if exercise is None:
            raise ExerciseNotFound(exercise_id)
        return exercise

    async def search(self, filters: ExerciseFilter) -> tuple[list[Exercise], int]:
        count_stmt = self._filtered(select(func.count(Exercise.id)), filters)
        total = (await self.db.execute(count_stmt)).scalar_one()

        stmt = (
            self._filtered(select(Exercise), filters)
            .order_by(Exercise.title, Exercise.id)
            .offset((filters.page - 1) * filters.page_size)
            .limit(filters.page_size)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def existing_ids(self, exercise_ids: Iterable[int]) -> set[int]:
        wanted = set(exercise_ids)
        if not wanted:
            return set()
        result = await self.db.execute(select(Exercise.id).where(Exercise.id.in_(wanted)))
        return set(result.scalars().all())

    async def is_in_use(self, exercise_id: int) -> bool:
        result = await self.db.execute(
            select(WorkoutExercise.id).where(WorkoutExercise.exercise_id == exercise_id).limit(1)
        )
        return result.scalars().first() is not None

    async def program_ids_using(self, exercise_id: int) -> list[int]:
        stmt = (
            select(Week.program_id)
            .join(Day, Day.week_id == Week.id)
            .join(WorkoutExercise, WorkoutExercise.day_id == Day.id)
            .where(WorkoutExercise.exercise_id == exercise_id)
            .distinct()
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def muscle_groups(self) -> list[str]:
        result = await self.db.execute(select(Exercise.muscle_group).distinct().order_by(Exercise.muscle_group))
        return list(result.scalars().all())
