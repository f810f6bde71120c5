"""
Binding of directory users to training programs.

A user holds at most one incomplete assignment across all programs. The
rule is checked before the insert and backed by a partial unique index, so
concurrent assigns for the same user cannot both commit.
"""

import asyncio
import math
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timedelta

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..exceptions import (
    AssignmentAlreadyCompleted,
    AssignmentNotFound,
    ProgramNotFound,
    TrainingError,
    UpstreamServiceError,
    UserHasActiveProgram,
    UserNotFound,
)
from ..metrics import ASSIGNMENT_CONFLICTS_TOTAL, ASSIGNMENTS_CREATED_TOTAL
from ..models.assignment import Assignment
from ..models.mixins import as_naive_utc, utcnow
from ..models.program import Day, Program, Week
from ..schemas.assignment import (
    AssignedUserResponse,
    AssignmentResponse,
    AvailableUserResponse,
    BatchAssignmentResponse,
    BatchItemResult,
    CompletedTrainingFilter,
    CompletedTrainingItem,
    CompletedTrainingPage,
    CompletedTrainingStatus,
    DirectoryUser,
)
from .user_directory import UserDirectory

logger = structlog.get_logger(__name__)


def derive_status(
    completed: bool,
    expires_at: datetime | None,
    now: datetime,
    expiring_soon_days: int,
) -> CompletedTrainingStatus:
    if completed:
        return CompletedTrainingStatus.completed
    if expires_at is not None and expires_at <= now + timedelta(days=expiring_soon_days):
        return CompletedTrainingStatus.expiring_soon
    return CompletedTrainingStatus.in_progress


class AssignmentService:
    def __init__(
        self,
        db: AsyncSession,
        directory: UserDirectory,
        session_factory: Callable[[], AsyncSession] | None = None,
    ):
        self.db = db
        self.directory = directory
        self.session_factory = session_factory

    async def _get_program(self, program_id: int) -> Program:
        program = await self.db.get(Program, program_id)
        if program is None:
            raise ProgramNotFound(program_id)
        return program

    async def _get_assignment(self, assignment_id: int) -> Assignment:
        assignment = await self.db.get(Assignment, assignment_id)
        if assignment is None:
            raise AssignmentNotFound(assignment_id)
        return assignment

    async def _active_assignment(self, user_id: int) -> Assignment | None:
        stmt = select(Assignment).where(Assignment.user_id == user_id, Assignment.completed.is_(False))
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def _week_count(self, program_id: int) -> int:
        result = await self.db.execute(select(func.count(Week.id)).where(Week.program_id == program_id))
        return result.scalar_one()

    async def assign_user_to_program(self, user_id: int, program_id: int) -> AssignmentResponse:
        await self._get_program(program_id)
        if await self.directory.get_user(user_id) is None:
            raise UserNotFound(user_id)

        active = await self._active_assignment(user_id)
        if active is not None:
            ASSIGNMENT_CONFLICTS_TOTAL.inc()
            raise UserHasActiveProgram(user_id, active.program_id)

        assignment = Assignment(program_id=program_id, user_id=user_id, completed=False, created_at=utcnow())
        assignment.calculate_expiry(await self._week_count(program_id))
        self.db.add(assignment)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            # lost the race against another assign for the same user
            await self.db.rollback()
            ASSIGNMENT_CONFLICTS_TOTAL.inc()
            raise UserHasActiveProgram(user_id) from exc

        ASSIGNMENTS_CREATED_TOTAL.inc()
        logger.info("user_assigned", user_id=user_id, program_id=program_id, assignment_id=assignment.id)
        return AssignmentResponse.model_validate(assignment)

    async def remove_user_assignment(self, assignment_id: int, program_id: int | None = None) -> None:
        """
        Delete an incomplete assignment.

        Completed assignments are training history and are never removed.
        When ``program_id`` is given the assignment must belong to it.
        """
        assignment = await self._get_assignment(assignment_id)
        if program_id is not None and assignment.program_id != program_id:
            raise AssignmentNotFound(assignment_id)
        if assignment.completed:
            raise AssignmentAlreadyCompleted(assignment_id)

        await self.db.delete(assignment)
        await self.db.commit()
        logger.info(
            "user_assignment_removed",
            assignment_id=assignment_id,
            user_id=assignment.user_id,
            program_id=assignment.program_id,
        )

    async def complete_assignment(self, assignment_id: int) -> AssignmentResponse:
        assignment = await self._get_assignment(assignment_id)
        if not assignment.completed:
            assignment.mark_completed()
            await self.db.commit()
            logger.info("assignment_completed", assignment_id=assignment_id, user_id=assignment.user_id)
        return AssignmentResponse.model_validate(assignment)

    async def batch_assign_and_remove_users(
        self,
        program_id: int,
        assign_user_ids: Sequence[int],
        remove_assignment_ids: Sequence[int],
    ) -> BatchAssignmentResponse:
        """
        Run every assign and remove independently and concurrently.

        Each item uses its own session and commits on its own; a failed item
        never rolls back the others. Callers re-read the assigned and
        available user lists afterwards.
        """
        if self.session_factory is None:
            raise RuntimeError("batch operations need a session factory")
        await self._get_program(program_id)

        semaphore = asyncio.Semaphore(max(settings.BATCH_MAX_CONCURRENCY, 1))

        async def run_item(
            action: str,
            target_id: int,
            operation: Callable[["AssignmentService"], Awaitable[AssignmentResponse | None]],
        ) -> BatchItemResult:
            async with semaphore:
                async with self.session_factory() as session:
                    service = AssignmentService(session, self.directory)
                    try:
                        created = await operation(service)
                    except TrainingError as exc:
                        return BatchItemResult(
                            action=action, target_id=target_id, ok=False, error_code=exc.code, detail=exc.detail
                        )
                    except SQLAlchemyError as exc:
                        logger.error("batch_item_store_error", action=action, target_id=target_id, exc_info=True)
                        await session.rollback()
                        return BatchItemResult(
                            action=action, target_id=target_id, ok=False, error_code="store_error", detail=str(exc)
                        )
                    except Exception as exc:
                        logger.error("batch_item_failed", action=action, target_id=target_id, exc_info=True)
                        await session.rollback()
                        return BatchItemResult(
                            action=action, target_id=target_id, ok=False, error_code="unexpected_error", detail=str(exc)
                        )
                    return BatchItemResult(
                        action=action,
                        target_id=target_id,
                        ok=True,
                        assignment_id=created.id if created is not None else target_id,
                    )

        def assign(user_id: int):
            return lambda service: service.assign_user_to_program(user_id, program_id)

        def remove(assignment_id: int):
            return lambda service: service.remove_user_assignment(assignment_id, program_id)

        tasks = [run_item("assign", user_id, assign(user_id)) for user_id in dict.fromkeys(assign_user_ids)]
        tasks += [
            run_item("remove", assignment_id, remove(assignment_id))
            for assignment_id in dict.fromkeys(remove_assignment_ids)
        ]
        results = list(await asyncio.gather(*tasks))

        succeeded = sum(1 for r in results if r.ok)
        logger.info(
            "batch_assignment_finished",
            program_id=program_id,
            succeeded=succeeded,
            failed=len(results) - succeeded,
        )
        return BatchAssignmentResponse(results=results, succeeded=succeeded, failed=len(results) - succeeded)

    async def list_assigned_users(self, program_id: int) -> list[AssignedUserResponse]:
        await self._get_program(program_id)
        stmt = (
            select(Assignment)
            .where(Assignment.program_id == program_id)
            .order_by(Assignment.created_at, Assignment.id)
        )
        assignments = (await self.db.execute(stmt)).scalars().all()
        users = await self.directory.users_by_id() if assignments else {}

        return [
            AssignedUserResponse(
                id=a.id,
                program_id=a.program_id,
                completed=a.completed,
                expires_at=a.expires_at,
                user=users.get(a.user_id) or DirectoryUser(id=a.user_id),
            )
            for a in assignments
        ]

    async def list_available_users(self) -> list[AvailableUserResponse]:
        users = await self.directory.list_users()
        stmt = select(Assignment).where(Assignment.completed.is_(False))
        active = {a.user_id: a for a in (await self.db.execute(stmt)).scalars().all()}

        available = []
        for user in users:
            assignment = active.get(user.id)
            available.append(
                AvailableUserResponse(
                    **user.model_dump(),
                    has_active_program=assignment is not None,
                    active_program_id=assignment.program_id if assignment else None,
                    active_assignment_id=assignment.id if assignment else None,
                )
            )
        return available

    async def list_completed_trainings(self, filters: CompletedTrainingFilter) -> CompletedTrainingPage:
        now = utcnow()
        soon = now + timedelta(days=settings.EXPIRING_SOON_DAYS)

        week_count = select(func.count(Week.id)).where(Week.program_id == Program.id).scalar_subquery()
        day_count = (
            select(func.count(Day.id))
            .join(Week, Day.week_id == Week.id)
            .where(Week.program_id == Program.id)
            .scalar_subquery()
        )

        conditions = []
        if filters.user_id is not None:
            conditions.append(Assignment.user_id == filters.user_id)
        if filters.start_date is not None:
            conditions.append(Assignment.created_at >= as_naive_utc(filters.start_date))
        if filters.end_date is not None:
            conditions.append(Assignment.created_at <= as_naive_utc(filters.end_date))
        if filters.status == CompletedTrainingStatus.completed:
            conditions.append(Assignment.completed.is_(True))
        elif filters.status == CompletedTrainingStatus.expiring_soon:
            conditions.extend(
                [Assignment.completed.is_(False), Assignment.expires_at.is_not(None), Assignment.expires_at <= soon]
            )
        elif filters.status == CompletedTrainingStatus.in_progress:
            conditions.append(Assignment.completed.is_(False))
            conditions.append((Assignment.expires_at.is_(None)) | (Assignment.expires_at > soon))

        count_stmt = (
            select(func.count(Assignment.id)).join(Program, Assignment.program_id == Program.id).where(*conditions)
        )
        total = (await self.db.execute(count_stmt)).scalar_one()

        stmt = (
            select(Assignment, Program.title, Program.type, week_count, day_count)
            .join(Program, Assignment.program_id == Program.id)
            .where(*conditions)
            .order_by(Assignment.created_at.desc(), Assignment.id.desc())
            .offset((filters.page - 1) * filters.page_size)
            .limit(filters.page_size)
        )
        rows = (await self.db.execute(stmt)).all()

        names: dict[int, str] = {}
        if rows:
            try:
                names = {uid: u.display_name for uid, u in (await self.directory.users_by_id()).items()}
            except UpstreamServiceError:
                logger.warning("completed_trainings_without_client_names", exc_info=True)

        items = [
            CompletedTrainingItem(
                id=assignment.id,
                user_id=assignment.user_id,
                client_name=names.get(assignment.user_id),
                program_id=assignment.program_id,
                program_title=title,
                program_type=program_type,
                week_count=weeks or 0,
                day_count=days or 0,
                status=derive_status(assignment.completed, assignment.expires_at, now, settings.EXPIRING_SOON_DAYS),
                created_at=assignment.created_at,
                completed_at=assignment.completed_at,
                expires_at=assignment.expires_at,
            )
            for assignment, title, program_type, weeks, days in rows
        ]
        return CompletedTrainingPage(
            items=items,
            total_count=total,
            page=filters.page,
            page_size=filters.page_size,
            total_pages=math.ceil(total / filters.page_size) if total else 0,
        )
