from datetime import datetime, timedelta

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, false
from sqlalchemy.orm import relationship

from ..database import Base
from .mixins import TimestampMixin, utcnow


class Assignment(TimestampMixin, Base):
    __tablename__ = "program_assignments"

    id = Column(Integer, primary_key=True, index=True)
    program_id = Column(Integer, ForeignKey("training_programs.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    completed = Column(Boolean, nullable=False, default=False, server_default=false())
    completed_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)

    program = relationship("Program", back_populates="assignments")

    def calculate_expiry(self, weeks_count: int, start: datetime | None = None) -> None:
        start = start or self.created_at or utcnow()
        self.expires_at = start + timedelta(weeks=max(weeks_count, 1))

    def mark_completed(self) -> None:
        self.completed = True
        self.completed_at = utcnow()

    def __repr__(self):
        return (
            "<Assignment("
            f"id={self.id}, program_id={self.program_id}, "
            f"user_id={self.user_id}, completed={self.completed})>"
        )


# Store-level guard for the single incomplete assignment per user rule
Index(
    "uq_program_assignments_user_incomplete",
    Assignment.user_id,
    unique=True,
    sqlite_where=Assignment.completed == false(),
    postgresql_where=Assignment.completed == false(),
)
