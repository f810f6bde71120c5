"""
Numbering rules of a program tree.

Weeks are numbered by ``order`` (positive, unique per program, gaps allowed);
days by ``day_of_week`` (1..7, unique per week); workout exercises by
``order`` (unique per day, contiguous after a full reorder). Deletions
never renumber surviving siblings.
"""

from collections.abc import Sequence

import structlog
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import DaySlotTaken, InvalidInputException, WeekSlotTaken
from ..metrics import SLOT_CONFLICTS_TOTAL
from ..models.program import Day, Week, WorkoutExercise
from ..repositories.program_tree_repository import ProgramTreeRepository, check_full_order
from ..schemas.program import DayResponse, ProgramTree, WeekResponse

logger = structlog.get_logger(__name__)


class OrderingService:
    def __init__(self, db: AsyncSession, repository: ProgramTreeRepository):
        self.db = db
        self.repository = repository

    async def create_next_week(self, program_id: int) -> WeekResponse:
        await self.repository.get_program(program_id)

        order = await self.repository.max_week_order(program_id) + 1
        week = Week(program_id=program_id, order=order)
        self.db.add(week)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            # another session appended the same order first
            await self.db.rollback()
            SLOT_CONFLICTS_TOTAL.labels(kind="week").inc()
            raise WeekSlotTaken(program_id, order) from exc

        logger.info("week_created", program_id=program_id, week_id=week.id, order=order)
        tree = await self.repository.refresh(program_id)
        return tree.find_week(week.id)

    async def create_day(self, week_id: int, day_of_week: int, title: str = "") -> DayResponse:
        if not 1 <= day_of_week <= 7:
            raise InvalidInputException(f"day_of_week must be between 1 and 7, got {day_of_week}")

        week = await self.repository.get_week(week_id)
        program_id = week.program_id
        if await self.repository.find_day_in_week(week_id, day_of_week) is not None:
            SLOT_CONFLICTS_TOTAL.labels(kind="day").inc()
            raise DaySlotTaken(week_id, day_of_week)

        day = Day(week_id=week_id, day_of_week=day_of_week, title=title or "")
        self.db.add(day)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            SLOT_CONFLICTS_TOTAL.labels(kind="day").inc()
            raise DaySlotTaken(week_id, day_of_week) from exc

        logger.info("day_created", week_id=week_id, day_id=day.id, day_of_week=day_of_week)
        tree = await self.repository.refresh(program_id)
        return tree.find_day(day.id)

    async def update_day_title(self, day_id: int, title: str) -> DayResponse:
        day = await self.repository.get_day(day_id)
        program_id = day.week.program_id
        day.title = title
        await self.db.commit()

        tree = await self.repository.refresh(program_id)
        return tree.find_day(day_id)

    async def reorder_exercises(self, day_id: int, ordered_ids: Sequence[int]) -> dict[int, int]:
        """
        Rewrite the execution sequence of a day.

        ``ordered_ids`` must list every workout exercise of the day exactly
        once. Orders become 1..N in the given sequence.
        """
        day = await self.repository.get_day_with_exercises(day_id)
        program_id = day.week.program_id
        check_full_order(day_id, (ex.id for ex in day.exercises), ordered_ids)

        orders = {ex_id: position for position, ex_id in enumerate(ordered_ids, start=1)}
        try:
            # Park every row on a negative order first so the (day_id, order)
            # unique constraint never sees two rows on the same value.
            for ex_id, position in orders.items():
                await self.db.execute(
                    update(WorkoutExercise)
                    .where(WorkoutExercise.id == ex_id, WorkoutExercise.day_id == day_id)
                    .values(order=-position)
                    .execution_options(synchronize_session=False)
                )
            for ex_id, position in orders.items():
                await self.db.execute(
                    update(WorkoutExercise)
                    .where(WorkoutExercise.id == ex_id, WorkoutExercise.day_id == day_id)
                    .values(order=position)
                    .execution_options(synchronize_session=False)
                )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("day_exercises_reordered", day_id=day_id, count=len(orders))
        await self.repository.refresh(program_id)
        return orders

    async def drag_reorder(self, program_id: int, day_id: int, ordered_ids: Sequence[int]) -> ProgramTree:
        """
        Reorder with immediate local feedback.

        The session snapshot is reordered first; the authoritative write
        follows. Any failure drops the local state by re-reading the tree
        and the original error propagates.
        """
        await self.repository.apply_local_reorder(program_id, day_id, ordered_ids)
        try:
            await self.reorder_exercises(day_id, ordered_ids)
        except Exception:
            logger.warning("drag_reorder_failed", program_id=program_id, day_id=day_id, exc_info=True)
            await self.repository.refresh(program_id)
            raise
        return await self.repository.fetch_tree(program_id)

    async def delete_week(self, week_id: int) -> None:
        week = await self.repository.get_week(week_id)
        program_id = week.program_id
        await self.db.delete(week)
        await self.db.commit()

        logger.info("week_deleted", program_id=program_id, week_id=week_id)
        await self.repository.refresh(program_id)

    async def delete_day(self, day_id: int) -> None:
        day = await self.repository.get_day(day_id)
        program_id = day.week.program_id
        await self.db.delete(day)
        await self.db.commit()

        logger.info("day_deleted", program_id=program_id, day_id=day_id)
        await self.repository.refresh(program_id)

    async def delete_workout_exercise(self, workout_exercise_id: int) -> None:
        workout_exercise = await self.repository.get_workout_exercise(workout_exercise_id)
        program_id = workout_exercise.day.week.program_id
        await self.db.delete(workout_exercise)
        await self.db.commit()

        logger.info("workout_exercise_deleted", program_id=program_id, workout_exercise_id=workout_exercise_id)
        await self.repository.refresh(program_id)
