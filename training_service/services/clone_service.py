"""
Deep copies of programs, weeks, days and single workout exercises.

Every operation validates its destination before writing, copies inside
one transaction (flushes only to obtain ids, a single commit at the end)
and re-reads the affected trees afterwards. Copies get fresh ids while
keeping order numbers and field values; superset links are rewired to the
copied partners.
"""

from collections.abc import Iterable

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import (
    DayNotFound,
    DaySlotTaken,
    InvalidInputException,
    SlotTakenException,
    WeekNotFound,
    WeekSlotTaken,
)
from ..metrics import (
    DAYS_CLONED_TOTAL,
    PROGRAMS_CLONED_TOTAL,
    SLOT_CONFLICTS_TOTAL,
    WEEKS_DUPLICATED_TOTAL,
    WORKOUT_EXERCISES_COPIED_TOTAL,
)
from ..models.program import Day, Program, Week, WorkoutExercise
from ..repositories.program_tree_repository import ProgramTreeRepository
from ..schemas.program import DayResponse, ProgramTree, WeekResponse, WorkoutExerciseResponse
from .exercise_catalog_service import ExerciseCatalogService

logger = structlog.get_logger(__name__)

ExercisePairs = list[tuple[WorkoutExercise, WorkoutExercise]]


def remap_supersets(pairs: ExercisePairs) -> None:
    """Point every copied superset link at the copy of its original partner."""
    copy_by_source_id = {source.id: copy for source, copy in pairs}
    for source, copy in pairs:
        partner = copy_by_source_id.get(source.superset_workout_exercise_id)
        copy.superset_workout_exercise_id = partner.id if partner is not None else None


class CloneService:
    def __init__(self, db: AsyncSession, repository: ProgramTreeRepository):
        self.db = db
        self.repository = repository
        self.catalog = ExerciseCatalogService(db)

    async def _require_catalog_exercises(self, exercises: Iterable[WorkoutExercise]) -> None:
        await self.catalog.require_existing(ex.exercise_id for ex in exercises)

    async def _copy_day(self, source: Day, week_id: int, day_of_week: int) -> ExercisePairs:
        day = Day(week_id=week_id, day_of_week=day_of_week, title=source.title)
        self.db.add(day)
        await self.db.flush()

        pairs: ExercisePairs = []
        for source_ex in source.exercises:
            copy = WorkoutExercise(day_id=day.id, **source_ex.copy_values())
            self.db.add(copy)
            pairs.append((source_ex, copy))
        await self.db.flush()
        return pairs

    async def _copy_week(self, source: Week, program_id: int, order: int) -> tuple[Week, ExercisePairs]:
        week = Week(program_id=program_id, order=order)
        self.db.add(week)
        await self.db.flush()

        pairs: ExercisePairs = []
        for source_day in source.days:
            pairs.extend(await self._copy_day(source_day, week.id, source_day.day_of_week))
        return week, pairs

    async def clone_program(self, source_id: int, new_title: str) -> ProgramTree:
        source = await self.repository.get_program_with_tree(source_id)
        source_exercises = [ex for week in source.weeks for day in week.days for ex in day.exercises]
        await self._require_catalog_exercises(source_exercises)

        try:
            program = Program(title=new_title, description=source.description, type=source.type)
            self.db.add(program)
            await self.db.flush()

            pairs: ExercisePairs = []
            for source_week in source.weeks:
                _, week_pairs = await self._copy_week(source_week, program.id, source_week.order)
                pairs.extend(week_pairs)

            remap_supersets(pairs)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        PROGRAMS_CLONED_TOTAL.inc()
        logger.info(
            "program_cloned",
            source_program_id=source_id,
            program_id=program.id,
            weeks=len(source.weeks),
            workout_exercises=len(pairs),
        )
        return await self.repository.refresh(program.id)

    async def duplicate_week(self, week_id: int, destination_order: int, program_id: int) -> WeekResponse:
        if destination_order < 1:
            raise InvalidInputException(f"destination_order must be a positive integer, got {destination_order}")

        await self.repository.get_program(program_id)
        source = await self.repository.get_week_with_tree(week_id)
        if source.program_id != program_id:
            raise WeekNotFound(week_id, program_id)

        if await self.repository.week_order_taken(program_id, destination_order):
            SLOT_CONFLICTS_TOTAL.labels(kind="week").inc()
            raise WeekSlotTaken(program_id, destination_order)

        await self._require_catalog_exercises(ex for day in source.days for ex in day.exercises)

        try:
            week, pairs = await self._copy_week(source, program_id, destination_order)
            remap_supersets(pairs)
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            SLOT_CONFLICTS_TOTAL.labels(kind="week").inc()
            raise WeekSlotTaken(program_id, destination_order) from exc
        except Exception:
            await self.db.rollback()
            raise

        WEEKS_DUPLICATED_TOTAL.inc()
        logger.info(
            "week_duplicated",
            program_id=program_id,
            source_week_id=week_id,
            week_id=week.id,
            order=destination_order,
        )
        tree = await self.repository.refresh(program_id)
        return tree.find_week(week.id)

    async def clone_day(
        self,
        source_week_id: int,
        source_day_of_week: int,
        destination_week_id: int,
        destination_day_of_week: int,
    ) -> DayResponse:
        if not 1 <= destination_day_of_week <= 7:
            raise InvalidInputException(
                f"destination_day_of_week must be between 1 and 7, got {destination_day_of_week}"
            )

        source_week = await self.repository.get_week(source_week_id)
        source_program_id = source_week.program_id
        source = await self.repository.find_day_in_week(source_week_id, source_day_of_week, with_exercises=True)
        if source is None:
            raise DayNotFound(week_id=source_week_id, day_of_week=source_day_of_week)

        destination_week = await self.repository.get_week(destination_week_id)
        destination_program_id = destination_week.program_id
        if await self.repository.find_day_in_week(destination_week_id, destination_day_of_week) is not None:
            SLOT_CONFLICTS_TOTAL.labels(kind="day").inc()
            raise DaySlotTaken(destination_week_id, destination_day_of_week)

        await self._require_catalog_exercises(source.exercises)

        try:
            pairs = await self._copy_day(source, destination_week_id, destination_day_of_week)
            remap_supersets(pairs)
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            SLOT_CONFLICTS_TOTAL.labels(kind="day").inc()
            raise DaySlotTaken(destination_week_id, destination_day_of_week) from exc
        except Exception:
            await self.db.rollback()
            raise

        DAYS_CLONED_TOTAL.inc()
        logger.info(
            "day_cloned",
            source_week_id=source_week_id,
            source_day_of_week=source_day_of_week,
            destination_week_id=destination_week_id,
            destination_day_of_week=destination_day_of_week,
            workout_exercises=len(pairs),
        )
        trees = await self.repository.refresh_many([destination_program_id, source_program_id])
        tree = trees[destination_program_id]
        week = tree.find_week(destination_week_id)
        return next(d for d in week.days if d.day_of_week == destination_day_of_week)

    async def copy_exercise_to_day(self, workout_exercise_id: int, destination_day_id: int) -> WorkoutExerciseResponse:
        source = await self.repository.get_workout_exercise(workout_exercise_id)
        source_program_id = source.day.week.program_id
        destination_day = await self.repository.get_day(destination_day_id)
        destination_program_id = destination_day.week.program_id

        await self._require_catalog_exercises([source])

        order = await self.repository.max_exercise_order(destination_day_id) + 1
        values = source.copy_values()
        values["order"] = order
        # the partner stays behind in the source day
        copy = WorkoutExercise(day_id=destination_day_id, superset_workout_exercise_id=None, **values)
        self.db.add(copy)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            SLOT_CONFLICTS_TOTAL.labels(kind="workout_exercise").inc()
            raise SlotTakenException(
                f"Order {order} was taken in day id={destination_day_id} by a concurrent write"
            ) from exc

        WORKOUT_EXERCISES_COPIED_TOTAL.inc()
        logger.info(
            "workout_exercise_copied",
            source_workout_exercise_id=workout_exercise_id,
            workout_exercise_id=copy.id,
            destination_day_id=destination_day_id,
            order=order,
        )
        trees = await self.repository.refresh_many([destination_program_id, source_program_id])
        return trees[destination_program_id].find_workout_exercise(copy.id)
