import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import InvalidSuperset, SlotTakenException
from ..metrics import PROGRAMS_CREATED_TOTAL, SLOT_CONFLICTS_TOTAL
from ..models.program import Program, WorkoutExercise
from ..repositories.program_tree_repository import ProgramTreeRepository
from ..schemas.program import (
    ProgramCreate,
    ProgramResponse,
    ProgramTree,
    ProgramUpdate,
    WorkoutExerciseCreate,
    WorkoutExerciseResponse,
    WorkoutExerciseUpdate,
)
from .exercise_catalog_service import ExerciseCatalogService

logger = structlog.get_logger(__name__)


def check_superset_link(
    workout_exercise_id: int | None,
    partner_id: int,
    day_links: dict[int, int | None],
) -> None:
    """
    Validate a superset link inside one day.

    ``day_links`` maps every workout exercise id of the day to its current
    superset partner id. The partner must be another exercise of the same
    day and following the chain from it must not come back to
    ``workout_exercise_id``.
    """
    if partner_id == workout_exercise_id:
        raise InvalidSuperset("A workout exercise cannot be its own superset partner")
    if partner_id not in day_links:
        raise InvalidSuperset(f"Superset partner id={partner_id} is not in the same day")

    seen = set()
    current: int | None = partner_id
    while current is not None and current not in seen:
        if current == workout_exercise_id:
            raise InvalidSuperset(f"Linking to id={partner_id} would create a superset cycle")
        seen.add(current)
        current = day_links.get(current)


class ProgramService:
    def __init__(self, db: AsyncSession, repository: ProgramTreeRepository):
        self.db = db
        self.repository = repository
        self.catalog = ExerciseCatalogService(db)

    async def list_programs(self, program_type: str | None = None) -> list[ProgramResponse]:
        stmt = select(Program).order_by(Program.id)
        if program_type:
            stmt = stmt.where(Program.type == program_type)
        result = await self.db.execute(stmt)
        return [ProgramResponse.model_validate(p) for p in result.scalars().all()]

    async def create_program(self, payload: ProgramCreate) -> ProgramTree:
        program = Program(title=payload.title, description=payload.description, type=payload.type.value)
        self.db.add(program)
        await self.db.commit()

        PROGRAMS_CREATED_TOTAL.inc()
        logger.info("program_created", program_id=program.id, type=program.type)
        return await self.repository.refresh(program.id)

    async def update_program(self, program_id: int, payload: ProgramUpdate) -> ProgramTree:
        program = await self.repository.get_program(program_id)
        for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(program, field, value.value if field == "type" else value)
        await self.db.commit()
        return await self.repository.refresh(program_id)

    async def delete_program(self, program_id: int) -> None:
        program = await self.repository.get_program(program_id)
        await self.db.delete(program)
        await self.db.commit()

        logger.info("program_deleted", program_id=program_id)
        await self.repository.forget(program_id)

    async def _day_links(self, day_id: int) -> dict[int, int | None]:
        result = await self.db.execute(
            select(WorkoutExercise.id, WorkoutExercise.superset_workout_exercise_id).where(
                WorkoutExercise.day_id == day_id
            )
        )
        return {row.id: row.superset_workout_exercise_id for row in result}

    async def create_workout_exercise(self, day_id: int, payload: WorkoutExerciseCreate) -> WorkoutExerciseResponse:
        day = await self.repository.get_day(day_id)
        program_id = day.week.program_id
        await self.catalog.require_existing([payload.exercise_id])

        if payload.superset_workout_exercise_id is not None:
            check_superset_link(None, payload.superset_workout_exercise_id, await self._day_links(day_id))

        order = payload.order or await self.repository.max_exercise_order(day_id) + 1
        values = payload.model_dump(exclude={"order"})
        values["type"] = payload.type.value
        workout_exercise = WorkoutExercise(day_id=day_id, order=order, **values)
        self.db.add(workout_exercise)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            SLOT_CONFLICTS_TOTAL.labels(kind="workout_exercise").inc()
            raise SlotTakenException(f"Order {order} is already used in day id={day_id}") from exc

        logger.info(
            "workout_exercise_created",
            day_id=day_id,
            workout_exercise_id=workout_exercise.id,
            exercise_id=payload.exercise_id,
            order=order,
        )
        tree = await self.repository.refresh(program_id)
        return tree.find_workout_exercise(workout_exercise.id)

    async def update_workout_exercise(
        self, workout_exercise_id: int, payload: WorkoutExerciseUpdate
    ) -> WorkoutExerciseResponse:
        workout_exercise = await self.repository.get_workout_exercise(workout_exercise_id)
        program_id = workout_exercise.day.week.program_id
        changes = payload.model_dump(exclude_unset=True)

        if changes.get("exercise_id") is not None:
            await self.catalog.require_existing([changes["exercise_id"]])

        if "superset_workout_exercise_id" in changes:
            partner_id = changes.pop("superset_workout_exercise_id")
            if partner_id is not None:
                links = await self._day_links(workout_exercise.day_id)
                links[workout_exercise_id] = None
                check_superset_link(workout_exercise_id, partner_id, links)
            workout_exercise.superset_workout_exercise_id = partner_id

        for field, value in changes.items():
            if value is None and field not in {"weight", "rpe", "rir", "tut", "note"}:
                continue
            setattr(workout_exercise, field, value.value if field == "type" else value)

        await self.db.commit()
        tree = await self.repository.refresh(program_id)
        return tree.find_workout_exercise(workout_exercise_id)
