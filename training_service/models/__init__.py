from .assignment import Assignment
from .exercise import Exercise
from .program import Day, Program, ProgramType, Week, WorkoutExercise, WorkoutExerciseType

__all__ = [
    "Assignment",
    "Day",
    "Exercise",
    "Program",
    "ProgramType",
    "Week",
    "WorkoutExercise",
    "WorkoutExerciseType",
]
