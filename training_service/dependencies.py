from collections.abc import AsyncGenerator, Callable

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .cache import CacheMetrics, SnapshotCache
from .database import AsyncSessionLocal
from .metrics import TREE_CACHE_ERRORS_TOTAL, TREE_CACHE_HITS_TOTAL, TREE_CACHE_MISSES_TOTAL
from .redis_client import PROGRAM_TREE_TTL_SECONDS, get_redis
from .repositories.program_tree_repository import ProgramTreeRepository
from .services.assignment_service import AssignmentService
from .services.clone_service import CloneService
from .services.exercise_catalog_service import ExerciseCatalogService
from .services.ordering_service import OrderingService
from .services.program_service import ProgramService
from .services.user_directory import UserDirectory

tree_cache = SnapshotCache(
    get_redis,
    metrics=CacheMetrics(
        hits=TREE_CACHE_HITS_TOTAL,
        misses=TREE_CACHE_MISSES_TOTAL,
        errors=TREE_CACHE_ERRORS_TOTAL,
    ),
    default_ttl=PROGRAM_TREE_TTL_SECONDS,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


def get_session_factory() -> Callable[[], AsyncSession]:
    return AsyncSessionLocal


def get_tree_cache() -> SnapshotCache:
    return tree_cache


def get_user_directory() -> UserDirectory:
    return UserDirectory()


def get_tree_repository(
    db: AsyncSession = Depends(get_db),
    cache: SnapshotCache = Depends(get_tree_cache),
) -> ProgramTreeRepository:
    return ProgramTreeRepository(db, cache)


def get_program_service(
    db: AsyncSession = Depends(get_db),
    repository: ProgramTreeRepository = Depends(get_tree_repository),
) -> ProgramService:
    return ProgramService(db, repository)


def get_ordering_service(
    db: AsyncSession = Depends(get_db),
    repository: ProgramTreeRepository = Depends(get_tree_repository),
) -> OrderingService:
    return OrderingService(db, repository)


def get_clone_service(
    db: AsyncSession = Depends(get_db),
    repository: ProgramTreeRepository = Depends(get_tree_repository),
) -> CloneService:
    return CloneService(db, repository)


def get_assignment_service(
    db: AsyncSession = Depends(get_db),
    directory: UserDirectory = Depends(get_user_directory),
    session_factory: Callable[[], AsyncSession] = Depends(get_session_factory),
) -> AssignmentService:
    return AssignmentService(db, directory, session_factory)


def get_exercise_catalog_service(
    db: AsyncSession = Depends(get_db),
    cache: SnapshotCache = Depends(get_tree_cache),
) -> ExerciseCatalogService:
    return ExerciseCatalogService(db, cache)
