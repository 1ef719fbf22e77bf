"""
Lesson model - a video lesson with its gating quiz
"""
from sqlalchemy import Column, String, Integer, DateTime, JSON
from nokhba.database import Base
from nokhba.utils.clock import utcnow
import uuid


class Lesson(Base):
    """
    Lessons table - questions are stored as a JSON list of
    {"question", "options", "correct_index"} objects
    """
    __tablename__ = "lessons"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    url = Column(String(512), nullable=False)
    youtube_id = Column(String(11), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes, also the quiz time limit
    grade = Column(String(64), index=True)
    study_type = Column(String(32), index=True)
    questions = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True)

    def __repr__(self):
        return f"<Lesson(id={self.id}, title={self.title})>"
