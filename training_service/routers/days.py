from fastapi import APIRouter, Depends, status

from ..dependencies import get_ordering_service, get_program_service
from ..schemas.program import (
    DayResponse,
    DayTitleUpdate,
    ExerciseOrder,
    ReorderRequest,
    ReorderResponse,
    WorkoutExerciseCreate,
    WorkoutExerciseResponse,
)
from ..services.ordering_service import OrderingService
from ..services.program_service import ProgramService

router = APIRouter(prefix="/days")


@router.patch("/{day_id}", response_model=DayResponse)
async def update_day_title(day_id: int, body: DayTitleUpdate, svc: OrderingService = Depends(get_ordering_service)):
    return await svc.update_day_title(day_id, body.title)


@router.delete("/{day_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_day(day_id: int, svc: OrderingService = Depends(get_ordering_service)):
    await svc.delete_day(day_id)
    return None


@router.put("/{day_id}/exercises/order", response_model=ReorderResponse)
async def reorder_exercises(
    day_id: int,
    body: ReorderRequest,
    svc: OrderingService = Depends(get_ordering_service),
):
    orders = await svc.reorder_exercises(day_id, body.workout_exercise_ids)
    return ReorderResponse(
        day_id=day_id,
        orders=[ExerciseOrder(workout_exercise_id=ex_id, order=order) for ex_id, order in orders.items()],
    )


@router.post("/{day_id}/exercises", response_model=WorkoutExerciseResponse, status_code=status.HTTP_201_CREATED)
async def create_workout_exercise(
    day_id: int,
    body: WorkoutExerciseCreate,
    svc: ProgramService = Depends(get_program_service),
):
    return await svc.create_workout_exercise(day_id, body)
