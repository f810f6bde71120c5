from sqlalchemy import Column, Integer, String, Text

from ..database import Base
from .mixins import TimestampMixin


class Exercise(TimestampMixin, Base):
    __tablename__ = "exercises"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    muscle_group = Column(String(64), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    # Asset store ids are opaque; upload happens elsewhere
    video_file_id = Column(Integer, nullable=True)
    video_thumbnail_file_id = Column(Integer, nullable=True)
    original_video_file_name = Column(String(255), nullable=True)
    video_duration = Column(Integer, nullable=True)  # seconds

    def __repr__(self):
        return f"<Exercise(id={self.id}, title='{self.title}', muscle_group='{self.muscle_group}')>"
