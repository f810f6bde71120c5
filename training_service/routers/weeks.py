from fastapi import APIRouter, Depends, status

from ..dependencies import get_clone_service, get_ordering_service
from ..schemas.program import DayCloneRequest, DayCreate, DayResponse, WeekDuplicateRequest, WeekResponse
from ..services.clone_service import CloneService
from ..services.ordering_service import OrderingService

router = APIRouter(prefix="/weeks")


@router.post("/{week_id}/days", response_model=DayResponse, status_code=status.HTTP_201_CREATED)
async def create_day(week_id: int, body: DayCreate, svc: OrderingService = Depends(get_ordering_service)):
    return await svc.create_day(week_id, body.day_of_week, body.title)


@router.delete("/{week_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_week(week_id: int, svc: OrderingService = Depends(get_ordering_service)):
    await svc.delete_week(week_id)
    return None


@router.post("/{week_id}/duplicate", response_model=WeekResponse, status_code=status.HTTP_201_CREATED)
async def duplicate_week(
    week_id: int,
    body: WeekDuplicateRequest,
    svc: CloneService = Depends(get_clone_service),
):
    return await svc.duplicate_week(week_id, body.destination_order, body.program_id)


@router.post(
    "/{week_id}/days/{day_of_week}/clone",
    response_model=DayResponse,
    status_code=status.HTTP_201_CREATED,
)
async def clone_day(
    week_id: int,
    day_of_week: int,
    body: DayCloneRequest,
    svc: CloneService = Depends(get_clone_service),
):
    return await svc.clone_day(week_id, day_of_week, body.destination_week_id, body.destination_day_of_week)
