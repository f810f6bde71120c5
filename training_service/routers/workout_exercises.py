from fastapi import APIRouter, Depends, status

from ..dependencies import get_clone_service, get_ordering_service, get_program_service
from ..schemas.program import WorkoutExerciseCopyRequest, WorkoutExerciseResponse, WorkoutExerciseUpdate
from ..services.clone_service import CloneService
from ..services.ordering_service import OrderingService
from ..services.program_service import ProgramService

router = APIRouter(prefix="/workout-exercises")


@router.patch("/{workout_exercise_id}", response_model=WorkoutExerciseResponse)
async def update_workout_exercise(
    workout_exercise_id: int,
    body: WorkoutExerciseUpdate,
    svc: ProgramService = Depends(get_program_service),
):
    return await svc.update_workout_exercise(workout_exercise_id, body)


@router.delete("/{workout_exercise_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workout_exercise(workout_exercise_id: int, svc: OrderingService = Depends(get_ordering_service)):
    await svc.delete_workout_exercise(workout_exercise_id)
    return None


@router.post("/{workout_exercise_id}/copy", response_model=WorkoutExerciseResponse, status_code=status.HTTP_201_CREATED)
async def copy_workout_exercise(
    workout_exercise_id: int,
    body: WorkoutExerciseCopyRequest,
    svc: CloneService = Depends(get_clone_service),
):
    return await svc.copy_exercise_to_day(workout_exercise_id, body.destination_day_id)
