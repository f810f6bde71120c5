from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..models.program import ProgramType, WorkoutExerciseType


class ProgramBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", description="Rich-text description shown to clients")
    type: ProgramType = Field(default=ProgramType.mixed, description="Training program category")


class ProgramCreate(ProgramBase):
    pass


class ProgramUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    type: ProgramType | None = None


class ProgramResponse(ProgramBase):
    id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ProgramCloneRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, description="Title of the new copy")


class ExerciseSummary(BaseModel):
    id: int
    title: str
    muscle_group: str
    video_file_id: int | None = None
    video_thumbnail_file_id: int | None = None

    model_config = ConfigDict(from_attributes=True)


class WorkoutExerciseBase(BaseModel):
    exercise_id: int
    type: WorkoutExerciseType = WorkoutExerciseType.reps
    sets: int = Field(..., ge=1, le=100)
    reps_or_time: str = Field(..., min_length=1, max_length=64, description="Reps (e.g. '8-12') or time ('45s')")
    rest: int = Field(default=0, ge=0, description="Rest between sets, seconds")
    weight: float | None = Field(default=None, ge=0)
    rpe: float | None = Field(default=None, ge=0, le=10)
    rir: int | None = Field(default=None, ge=0, le=10)
    tut: int | None = Field(default=None, ge=0, description="Time under tension, seconds")
    note: str | None = None
    superset_workout_exercise_id: int | None = Field(
        default=None, description="Workout exercise of the same day performed as a paired set"
    )


class WorkoutExerciseCreate(WorkoutExerciseBase):
    order: int | None = Field(default=None, ge=1, description="Defaults to the end of the day")


class WorkoutExerciseUpdate(BaseModel):
    exercise_id: int | None = None
    type: WorkoutExerciseType | None = None
    sets: int | None = Field(default=None, ge=1, le=100)
    reps_or_time: str | None = Field(default=None, min_length=1, max_length=64)
    rest: int | None = Field(default=None, ge=0)
    weight: float | None = Field(default=None, ge=0)
    rpe: float | None = Field(default=None, ge=0, le=10)
    rir: int | None = Field(default=None, ge=0, le=10)
    tut: int | None = Field(default=None, ge=0)
    note: str | None = None
    # explicit null unlinks, omission leaves the link untouched
    superset_workout_exercise_id: int | None = None


class WorkoutExerciseResponse(WorkoutExerciseBase):
    id: int
    day_id: int
    order: int
    exercise: ExerciseSummary | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class DayCreate(BaseModel):
    day_of_week: int = Field(..., ge=1, le=7, description="1 = Monday .. 7 = Sunday")
    title: str = Field(default="", max_length=255)


class DayTitleUpdate(BaseModel):
    title: str = Field(..., max_length=255)


class DayResponse(BaseModel):
    id: int
    week_id: int
    day_of_week: int
    title: str
    exercises: list[WorkoutExerciseResponse] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class WeekResponse(BaseModel):
    id: int
    program_id: int
    order: int
    days: list[DayResponse] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ProgramTree(ProgramResponse):
    weeks: list[WeekResponse] = Field(default_factory=list)

    def find_week(self, week_id: int) -> WeekResponse | None:
        return next((w for w in self.weeks if w.id == week_id), None)

    def find_day(self, day_id: int) -> DayResponse | None:
        for week in self.weeks:
            for day in week.days:
                if day.id == day_id:
                    return day
        return None

    def find_workout_exercise(self, workout_exercise_id: int) -> WorkoutExerciseResponse | None:
        for week in self.weeks:
            for day in week.days:
                for ex in day.exercises:
                    if ex.id == workout_exercise_id:
                        return ex
        return None


class WeekDuplicateRequest(BaseModel):
    program_id: int
    destination_order: int = Field(..., ge=1)


class DayCloneRequest(BaseModel):
    destination_week_id: int
    destination_day_of_week: int = Field(..., ge=1, le=7)


class WorkoutExerciseCopyRequest(BaseModel):
    destination_day_id: int


class ReorderRequest(BaseModel):
    workout_exercise_ids: list[int] = Field(
        default_factory=list, description="Every workout exercise id of the day, in the new order"
    )


class ExerciseOrder(BaseModel):
    workout_exercise_id: int
    order: int


class ReorderResponse(BaseModel):
    day_id: int
    orders: list[ExerciseOrder]
