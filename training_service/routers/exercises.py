from fastapi import APIRouter, Depends, Query, status

from ..config import settings
from ..dependencies import get_exercise_catalog_service
from ..schemas.exercise import ExerciseCreate, ExerciseFilter, ExercisePage, ExerciseResponse, ExerciseUpdate
from ..services.exercise_catalog_service import ExerciseCatalogService

router = APIRouter(prefix="/exercises")


@router.get("", response_model=ExercisePage)
async def list_exercises(
    search: str | None = Query(default=None, description="Case-insensitive match on the title"),
    muscle_groups: list[str] = Query(default=[]),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    svc: ExerciseCatalogService = Depends(get_exercise_catalog_service),
):
    filters = ExerciseFilter(search=search, muscle_groups=muscle_groups, page=page, page_size=page_size)
    return await svc.list_exercises(filters)


@router.get("/muscle-groups", response_model=list[str])
async def list_muscle_groups(svc: ExerciseCatalogService = Depends(get_exercise_catalog_service)):
    return await svc.muscle_groups()


@router.post("", response_model=ExerciseResponse, status_code=status.HTTP_201_CREATED)
async def create_exercise(body: ExerciseCreate, svc: ExerciseCatalogService = Depends(get_exercise_catalog_service)):
    return await svc.create(body)


@router.get("/{exercise_id}", response_model=ExerciseResponse)
async def get_exercise(exercise_id: int, svc: ExerciseCatalogService = Depends(get_exercise_catalog_service)):
    return await svc.get(exercise_id)


@router.patch("/{exercise_id}", response_model=ExerciseResponse)
async def update_exercise(
    exercise_id: int,
    body: ExerciseUpdate,
    svc: ExerciseCatalogService = Depends(get_exercise_catalog_service),
):
    return await svc.update(exercise_id, body)


@router.delete("/{exercise_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_exercise(exercise_id: int, svc: ExerciseCatalogService = Depends(get_exercise_catalog_service)):
    await svc.delete(exercise_id)
    return None
