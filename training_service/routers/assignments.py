from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from ..config import settings
from ..dependencies import get_assignment_service
from ..schemas.assignment import (
    AssignedUserResponse,
    AssignmentCreate,
    AssignmentResponse,
    AvailableUserResponse,
    BatchAssignmentRequest,
    BatchAssignmentResponse,
    CompletedTrainingFilter,
    CompletedTrainingPage,
    CompletedTrainingStatus,
)
from ..services.assignment_service import AssignmentService

router = APIRouter()


@router.post("/assignments", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def assign_user_to_program(body: AssignmentCreate, svc: AssignmentService = Depends(get_assignment_service)):
    return await svc.assign_user_to_program(body.user_id, body.program_id)


@router.get("/assignments/completed", response_model=CompletedTrainingPage)
async def list_completed_trainings(
    user_id: int | None = Query(default=None),
    status_filter: CompletedTrainingStatus | None = Query(default=None, alias="status"),
    start_date: datetime | None = Query(default=None),
    end_date: datetime | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    svc: AssignmentService = Depends(get_assignment_service),
):
    filters = CompletedTrainingFilter(
        user_id=user_id,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=page_size,
    )
    return await svc.list_completed_trainings(filters)


@router.delete("/assignments/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_user_assignment(assignment_id: int, svc: AssignmentService = Depends(get_assignment_service)):
    await svc.remove_user_assignment(assignment_id)
    return None


@router.post("/assignments/{assignment_id}/complete", response_model=AssignmentResponse)
async def complete_assignment(assignment_id: int, svc: AssignmentService = Depends(get_assignment_service)):
    return await svc.complete_assignment(assignment_id)


@router.get("/programs/{program_id}/assignments", response_model=list[AssignedUserResponse])
async def list_assigned_users(program_id: int, svc: AssignmentService = Depends(get_assignment_service)):
    return await svc.list_assigned_users(program_id)


@router.post("/programs/{program_id}/assignments/batch", response_model=BatchAssignmentResponse)
async def batch_assign_and_remove_users(
    program_id: int,
    body: BatchAssignmentRequest,
    svc: AssignmentService = Depends(get_assignment_service),
):
    # Per-item outcome; the batch itself is not transactional
    return await svc.batch_assign_and_remove_users(program_id, body.assign_user_ids, body.remove_assignment_ids)


@router.get("/users/available", response_model=list[AvailableUserResponse])
async def list_available_users(svc: AssignmentService = Depends(get_assignment_service)):
    return await svc.list_available_users()
