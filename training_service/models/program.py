from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ..database import Base
from .mixins import TimestampMixin


class ProgramType(str, Enum):
    strength = "strength"
    hypertrophy = "hypertrophy"
    endurance = "endurance"
    mobility = "mobility"
    mixed = "mixed"


class WorkoutExerciseType(str, Enum):
    reps = "reps"
    time = "time"
    ramping = "ramping"


class Program(TimestampMixin, Base):
    __tablename__ = "training_programs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    type = Column(String(32), nullable=False, default=ProgramType.mixed.value)

    weeks = relationship(
        "Week",
        back_populates="program",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Week.order",
    )
    assignments = relationship(
        "Assignment",
        back_populates="program",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Program(id={self.id}, title='{self.title}', type='{self.type}')>"


class Week(TimestampMixin, Base):
    __tablename__ = "training_weeks"
    __table_args__ = (
        UniqueConstraint("program_id", "order", name="uq_training_weeks_program_order"),
        CheckConstraint('"order" >= 1', name="ck_training_weeks_order_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    program_id = Column(Integer, ForeignKey("training_programs.id", ondelete="CASCADE"), nullable=False, index=True)
    order = Column("order", Integer, nullable=False)

    program = relationship("Program", back_populates="weeks")
    days = relationship(
        "Day",
        back_populates="week",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Day.day_of_week",
    )

    def __repr__(self):
        return f"<Week(id={self.id}, program_id={self.program_id}, order={self.order})>"


class Day(TimestampMixin, Base):
    __tablename__ = "training_days"
    __table_args__ = (
        UniqueConstraint("week_id", "day_of_week", name="uq_training_days_week_day_of_week"),
        CheckConstraint("day_of_week BETWEEN 1 AND 7", name="ck_training_days_day_of_week_range"),
    )

    id = Column(Integer, primary_key=True, index=True)
    week_id = Column(Integer, ForeignKey("training_weeks.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)  # 1 = Monday .. 7 = Sunday
    title = Column(String(255), nullable=False, default="")

    week = relationship("Week", back_populates="days")
    exercises = relationship(
        "WorkoutExercise",
        back_populates="day",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="WorkoutExercise.order",
    )

    def __repr__(self):
        return f"<Day(id={self.id}, week_id={self.week_id}, day_of_week={self.day_of_week})>"


class WorkoutExercise(TimestampMixin, Base):
    __tablename__ = "workout_exercises"
    __table_args__ = (UniqueConstraint("day_id", "order", name="uq_workout_exercises_day_order"),)

    id = Column(Integer, primary_key=True, index=True)
    day_id = Column(Integer, ForeignKey("training_days.id", ondelete="CASCADE"), nullable=False, index=True)
    exercise_id = Column(Integer, ForeignKey("exercises.id", ondelete="RESTRICT"), nullable=False, index=True)
    order = Column("order", Integer, nullable=False)
    type = Column(String(16), nullable=False, default=WorkoutExerciseType.reps.value)
    sets = Column(Integer, nullable=False)
    reps_or_time = Column(String(64), nullable=False)  # "10", "8-12", "45s"
    rest = Column(Integer, nullable=False, default=0)  # seconds
    weight = Column(Float, nullable=True)
    rpe = Column(Float, nullable=True)
    rir = Column(Integer, nullable=True)
    tut = Column(Integer, nullable=True)
    note = Column(Text, nullable=True)
    superset_workout_exercise_id = Column(
        Integer,
        ForeignKey("workout_exercises.id", ondelete="SET NULL"),
        nullable=True,
    )

    day = relationship("Day", back_populates="exercises")
    exercise = relationship("Exercise")

    # Fields copied verbatim by every clone/duplicate operation
    COPYABLE_FIELDS = (
        "exercise_id",
        "order",
        "type",
        "sets",
        "reps_or_time",
        "rest",
        "weight",
        "rpe",
        "rir",
        "tut",
        "note",
    )

    def copy_values(self) -> dict:
        return {field: getattr(self, field) for field in self.COPYABLE_FIELDS}

    def __repr__(self):
        return (
            "<WorkoutExercise("
            f"id={self.id}, day_id={self.day_id}, "
            f"exercise_id={self.exercise_id}, order={self.order})>"
        )
