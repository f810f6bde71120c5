"""
Authoritative access to one Program's Week/Day/WorkoutExercise tree.

A repository instance belongs to a single session (one HTTP request or one
caller-side editing session). It keeps the last tree it read for every
program it touched and hands out that snapshot until someone calls
``refresh``. Snapshots are pydantic models; a refresh or a local reorder
builds a new snapshot and swaps it in with one assignment, so readers never
observe a half-updated tree.
"""

from collections.abc import Iterable, Sequence

import structlog
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..cache import SnapshotCache
from ..exceptions import (
    DayNotFound,
    InvalidList,
    ProgramNotFound,
    WeekNotFound,
    WorkoutExerciseNotFound,
)
from ..metrics import TREE_REFRESHES_TOTAL
from ..models.program import Day, Program, Week, WorkoutExercise
from ..redis_client import PROGRAM_TREE_TTL_SECONDS, program_tree_key
from ..schemas.program import ProgramTree

logger = structlog.get_logger(__name__)


def check_full_order(day_id: int, current_ids: Iterable[int], ordered_ids: Sequence[int]) -> None:
    """Raise InvalidList unless ``ordered_ids`` is a permutation of ``current_ids``."""
    current = set(current_ids)
    seen: set[int] = set()
    duplicates: set[int] = set()
    for ex_id in ordered_ids:
        if ex_id in seen:
            duplicates.add(ex_id)
        seen.add(ex_id)
    missing = current - seen
    extra = seen - current
    if missing or extra or duplicates:
        raise InvalidList(day_id, missing=missing, extra=extra, duplicates=duplicates)


class ProgramTreeRepository:
    def __init__(self, db: AsyncSession, cache: SnapshotCache | None = None):
        self.db = db
        self.cache = cache
        self._trees: dict[int, ProgramTree] = {}

    @staticmethod
    def _tree_statement(program_id: int):
        return (
            select(Program)
            .options(
                selectinload(Program.weeks)
                .selectinload(Week.days)
                .selectinload(Day.exercises)
                .selectinload(WorkoutExercise.exercise)
            )
            .where(Program.id == program_id)
            .execution_options(populate_existing=True)
        )

    async def get_program_with_tree(self, program_id: int) -> Program:
        result = await self.db.execute(self._tree_statement(program_id))
        program = result.scalars().first()
        if program is None:
            raise ProgramNotFound(program_id)
        return program

    async def _load(self, program_id: int) -> ProgramTree:
        program = await self.get_program_with_tree(program_id)
        TREE_REFRESHES_TOTAL.inc()
        return ProgramTree.model_validate(program)

    def cached(self, program_id: int) -> ProgramTree | None:
        return self._trees.get(program_id)

    async def fetch_tree(self, program_id: int) -> ProgramTree:
        tree = self._trees.get(program_id)
        if tree is not None:
            return tree

        if self.cache is not None:
            raw = await self.cache.get(program_tree_key(program_id))
            if raw:
                try:
                    tree = ProgramTree.model_validate_json(raw)
                except ValidationError:
                    logger.warning("program_tree_cache_corrupt", program_id=program_id, exc_info=True)
                    tree = None
                if tree is not None:
                    self._trees[program_id] = tree
                    return tree

        return await self.refresh(program_id)

    async def refresh(self, program_id: int) -> ProgramTree:
        try:
            tree = await self._load(program_id)
        except ProgramNotFound:
            await self.forget(program_id)
            raise

        self._trees[program_id] = tree
        if self.cache is not None:
            await self.cache.set(program_tree_key(program_id), tree.model_dump_json(), ttl=PROGRAM_TREE_TTL_SECONDS)
        logger.debug("program_tree_refreshed", program_id=program_id, weeks=len(tree.weeks))
        return tree

    async def refresh_many(self, program_ids: Iterable[int]) -> dict[int, ProgramTree]:
        refreshed: dict[int, ProgramTree] = {}
        for program_id in dict.fromkeys(program_ids):
            try:
                refreshed[program_id] = await self.refresh(program_id)
            except ProgramNotFound:
                logger.info("program_tree_gone_on_refresh", program_id=program_id)
        return refreshed

    async def forget(self, program_id: int) -> None:
        self._trees.pop(program_id, None)
        if self.cache is not None:
            await self.cache.delete(program_tree_key(program_id))

    def discard(self, program_id: int) -> None:
        self._trees.pop(program_id, None)

    async def apply_local_reorder(self, program_id: int, day_id: int, ordered_ids: Sequence[int]) -> ProgramTree:
        """Optimistically reorder a day inside the session snapshot only."""
        tree = await self.fetch_tree(program_id)
        day = tree.find_day(day_id)
        if day is None:
            raise DayNotFound(day_id)
        check_full_order(day_id, (ex.id for ex in day.exercises), ordered_ids)

        by_id = {ex.id: ex for ex in day.exercises}
        new_day = day.model_copy(
            update={
                "exercises": [
                    by_id[ex_id].model_copy(update={"order": position})
                    for position, ex_id in enumerate(ordered_ids, start=1)
                ]
            }
        )
        new_weeks = []
        for week in tree.weeks:
            if any(d.id == day_id for d in week.days):
                week = week.model_copy(update={"days": [new_day if d.id == day_id else d for d in week.days]})
            new_weeks.append(week)

        new_tree = tree.model_copy(update={"weeks": new_weeks})
        self._trees[program_id] = new_tree
        return new_tree

    # Store lookups used to find which trees a mutation touches

    async def get_program(self, program_id: int) -> Program:
        program = await self.db.get(Program, program_id)
        if program is None:
            raise ProgramNotFound(program_id)
        return program

    async def get_week(self, week_id: int) -> Week:
        week = await self.db.get(Week, week_id)
        if week is None:
            raise WeekNotFound(week_id)
        return week

    async def get_week_with_tree(self, week_id: int) -> Week:
        stmt = (
            select(Week)
            .options(selectinload(Week.days).selectinload(Day.exercises))
            .where(Week.id == week_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        week = result.scalars().first()
        if week is None:
            raise WeekNotFound(week_id)
        return week

    async def get_day(self, day_id: int) -> Day:
        stmt = select(Day).options(selectinload(Day.week)).where(Day.id == day_id)
        result = await self.db.execute(stmt)
        day = result.scalars().first()
        if day is None:
            raise DayNotFound(day_id)
        return day

    async def get_day_with_exercises(self, day_id: int) -> Day:
        stmt = (
            select(Day)
            .options(selectinload(Day.week), selectinload(Day.exercises))
            .where(Day.id == day_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        day = result.scalars().first()
        if day is None:
            raise DayNotFound(day_id)
        return day

    async def find_day_in_week(self, week_id: int, day_of_week: int, *, with_exercises: bool = False) -> Day | None:
        stmt = select(Day).where(Day.week_id == week_id, Day.day_of_week == day_of_week)
        if with_exercises:
            stmt = stmt.options(selectinload(Day.exercises)).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_workout_exercise(self, workout_exercise_id: int) -> WorkoutExercise:
        stmt = (
            select(WorkoutExercise)
            .options(selectinload(WorkoutExercise.day).selectinload(Day.week))
            .where(WorkoutExercise.id == workout_exercise_id)
        )
        result = await self.db.execute(stmt)
        workout_exercise = result.scalars().first()
        if workout_exercise is None:
            raise WorkoutExerciseNotFound(workout_exercise_id)
        return workout_exercise

    async def max_week_order(self, program_id: int) -> int:
        result = await self.db.execute(select(func.max(Week.order)).where(Week.program_id == program_id))
        return result.scalar_one_or_none() or 0

    async def week_order_taken(self, program_id: int, order: int) -> bool:
        result = await self.db.execute(select(Week.id).where(Week.program_id == program_id, Week.order == order))
        return result.scalars().first() is not None

    async def max_exercise_order(self, day_id: int) -> int:
        result = await self.db.execute(
            select(func.max(WorkoutExercise.order)).where(WorkoutExercise.day_id == day_id)
        )
        return result.scalar_one_or_none() or 0
