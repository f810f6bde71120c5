from fastapi import APIRouter, Depends, Query, status

from ..dependencies import get_clone_service, get_ordering_service, get_program_service, get_tree_repository
from ..models.program import ProgramType
from ..repositories.program_tree_repository import ProgramTreeRepository
from ..schemas.program import (
    ProgramCloneRequest,
    ProgramCreate,
    ProgramResponse,
    ProgramTree,
    ProgramUpdate,
    WeekResponse,
)
from ..services.clone_service import CloneService
from ..services.ordering_service import OrderingService
from ..services.program_service import ProgramService

router = APIRouter(prefix="/programs")


@router.get("", response_model=list[ProgramResponse])
async def list_programs(
    type: ProgramType | None = Query(default=None),
    svc: ProgramService = Depends(get_program_service),
):
    return await svc.list_programs(type.value if type else None)


@router.post("", response_model=ProgramTree, status_code=status.HTTP_201_CREATED)
async def create_program(body: ProgramCreate, svc: ProgramService = Depends(get_program_service)):
    return await svc.create_program(body)


@router.get("/{program_id}", response_model=ProgramTree)
async def get_program_tree(
    program_id: int,
    refresh: bool = Query(default=False, description="Re-read the tree from the database"),
    repository: ProgramTreeRepository = Depends(get_tree_repository),
):
    if refresh:
        return await repository.refresh(program_id)
    return await repository.fetch_tree(program_id)


@router.patch("/{program_id}", response_model=ProgramTree)
async def update_program(
    program_id: int,
    body: ProgramUpdate,
    svc: ProgramService = Depends(get_program_service),
):
    return await svc.update_program(program_id, body)


@router.delete("/{program_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_program(program_id: int, svc: ProgramService = Depends(get_program_service)):
    await svc.delete_program(program_id)
    return None


@router.post("/{program_id}/weeks/next", response_model=WeekResponse, status_code=status.HTTP_201_CREATED)
async def create_next_week(program_id: int, svc: OrderingService = Depends(get_ordering_service)):
    return await svc.create_next_week(program_id)


@router.post("/{program_id}/clone", response_model=ProgramTree, status_code=status.HTTP_201_CREATED)
async def clone_program(
    program_id: int,
    body: ProgramCloneRequest,
    svc: CloneService = Depends(get_clone_service),
):
    return await svc.clone_program(program_id, body.title)
