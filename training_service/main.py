import time
import uuid

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from .config import settings
from .database import Base, engine
from .exceptions import TrainingError
from .logging_config import configure_logging
from .redis_client import close_redis, init_redis
from .routers import assignments, days, exercises, programs, weeks, workout_exercises

configure_logging()
logger = structlog.get_logger(__name__)


tags_metadata = [
    {
        "name": "Programs",
        "description": "Training programs and their week/day/exercise tree.",
    },
    {
        "name": "Weeks",
        "description": "Week containers: day creation, week duplication and day cloning.",
    },
    {
        "name": "Days",
        "description": "Workout days: titles, exercise placement and execution order.",
    },
    {
        "name": "Workout Exercises",
        "description": "Exercises placed in a day with their execution parameters.",
    },
    {
        "name": "Assignments",
        "description": "Binding of clients to programs; one incomplete program per client.",
    },
    {
        "name": "Exercises",
        "description": "Reusable exercise catalog.",
    },
]

app = FastAPI(
    title="Training Service",
    description="Composition of training programs and their assignment to clients",
    version="1.0.0",
    openapi_tags=tags_metadata,
    docs_url="/docs",
    redoc_url="/redoc",
)

Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.exception_handler(TrainingError)
async def training_error_handler(request: Request, exc: TrainingError):
    if exc.status_code >= 500:
        logger.error("training_request_failed", path=request.url.path, code=exc.code, detail=exc.detail)
    else:
        logger.info("training_request_rejected", path=request.url.path, code=exc.code, detail=exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )


@app.on_event("startup")
async def startup_event():
    if settings.AUTO_CREATE_TABLES:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    await init_redis()


@app.on_event("shutdown")
async def shutdown_event():
    await close_redis()
    await engine.dispose()


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(
    CorrelationIdMiddleware,
    header_name="X-Request-ID",
    generator=lambda: str(uuid.uuid4()),
    update_request_header=True,
)

app.include_router(programs.router, prefix="/training", tags=["Programs"])
app.include_router(weeks.router, prefix="/training", tags=["Weeks"])
app.include_router(days.router, prefix="/training", tags=["Days"])
app.include_router(workout_exercises.router, prefix="/training", tags=["Workout Exercises"])
app.include_router(assignments.router, prefix="/training", tags=["Assignments"])
app.include_router(exercises.router, prefix="/training", tags=["Exercises"])


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    response.headers["X-Process-Time"] = str(time.time() - start_time)
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
