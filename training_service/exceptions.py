from fastapi import HTTPException, status


class TrainingError(HTTPException):
    code = "training_error"

    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


# NotFound family


class NotFoundException(TrainingError):
    code = "not_found"

    def __init__(self, detail: str = "Object not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ProgramNotFound(NotFoundException):
    def __init__(self, program_id: int):
        super().__init__(detail=f"Training program id={program_id} not found")


class WeekNotFound(NotFoundException):
    def __init__(self, week_id: int, program_id: int | None = None):
        if program_id is None:
            super().__init__(detail=f"Week id={week_id} not found")
        else:
            super().__init__(detail=f"Week id={week_id} not found in program id={program_id}")


class DayNotFound(NotFoundException):
    def __init__(self, day_id: int | None = None, *, week_id: int | None = None, day_of_week: int | None = None):
        if day_id is not None:
            super().__init__(detail=f"Day id={day_id} not found")
        else:
            super().__init__(detail=f"Day {day_of_week} not found in week id={week_id}")


class WorkoutExerciseNotFound(NotFoundException):
    def __init__(self, workout_exercise_id: int):
        super().__init__(detail=f"Workout exercise id={workout_exercise_id} not found")


class ExerciseNotFound(NotFoundException):
    def __init__(self, exercise_ids: int | list[int]):
        if isinstance(exercise_ids, list):
            ids = ", ".join(str(i) for i in sorted(exercise_ids))
            super().__init__(detail=f"Exercises not found: {ids}")
        else:
            super().__init__(detail=f"Exercise id={exercise_ids} not found")


class AssignmentNotFound(NotFoundException):
    def __init__(self, assignment_id: int):
        super().__init__(detail=f"Assignment id={assignment_id} not found")


class UserNotFound(NotFoundException):
    def __init__(self, user_id: int):
        super().__init__(detail=f"User id={user_id} not found")


# SlotTaken family


class SlotTakenException(TrainingError):
    code = "slot_taken"

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class DaySlotTaken(SlotTakenException):
    code = "day_slot_taken"

    def __init__(self, week_id: int, day_of_week: int):
        self.week_id = week_id
        self.day_of_week = day_of_week
        super().__init__(detail=f"Day {day_of_week} is already used in week id={week_id}")


class WeekSlotTaken(SlotTakenException):
    code = "week_slot_taken"

    def __init__(self, program_id: int, order: int):
        self.program_id = program_id
        self.order = order
        super().__init__(detail=f"Week {order} already exists in program id={program_id}")


class ExerciseInUse(SlotTakenException):
    code = "exercise_in_use"

    def __init__(self, exercise_id: int):
        super().__init__(detail=f"Exercise id={exercise_id} is used by training programs")


# InvariantViolation family


class InvariantViolationException(TrainingError):
    code = "invariant_violation"

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class UserHasActiveProgram(InvariantViolationException):
    code = "user_has_active_program"

    def __init__(self, user_id: int, program_id: int | None = None):
        self.user_id = user_id
        self.program_id = program_id
        if program_id is None:
            super().__init__(detail=f"User id={user_id} already has an incomplete program")
        else:
            super().__init__(detail=f"User id={user_id} already has an incomplete program id={program_id}")


class AssignmentAlreadyCompleted(InvariantViolationException):
    code = "assignment_completed"

    def __init__(self, assignment_id: int):
        super().__init__(detail=f"Assignment id={assignment_id} is completed and cannot be removed")


# InvalidInput family


class InvalidInputException(TrainingError):
    code = "invalid_input"

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class InvalidList(InvalidInputException):
    code = "invalid_list"

    def __init__(self, day_id: int, missing: set[int], extra: set[int], duplicates: set[int] | None = None):
        self.missing = sorted(missing)
        self.extra = sorted(extra)
        self.duplicates = sorted(duplicates or ())
        parts = []
        if self.missing:
            parts.append(f"missing={self.missing}")
        if self.extra:
            parts.append(f"unknown={self.extra}")
        if self.duplicates:
            parts.append(f"duplicated={self.duplicates}")
        super().__init__(detail=f"Order list does not match exercises of day id={day_id}: {', '.join(parts)}")


class InvalidSuperset(InvalidInputException):
    code = "invalid_superset"


class UpstreamServiceError(TrainingError):
    code = "upstream_error"

    def __init__(self, detail: str = "Upstream service request failed"):
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)
