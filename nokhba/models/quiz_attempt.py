"""
QuizAttempt model - one timed pass through a lesson's questions
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON, ForeignKey
from nokhba.database import Base
import uuid


class QuizAttempt(Base):
    """
    Quiz attempts table - holds the live answer set until submission,
    then the frozen answers and the graded result
    """
    __tablename__ = "quiz_attempts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(128), nullable=False, index=True)
    lesson_id = Column(String(36), ForeignKey("lessons.id"), nullable=False)
    answers = Column(JSON, nullable=False)  # [option index or -1, ...]
    duration_seconds = Column(Integer, nullable=False)
    started_at = Column(DateTime, nullable=False)
    submitted = Column(Boolean, nullable=False, default=False)
    submitted_at = Column(DateTime)
    timed_out = Column(Boolean, nullable=False, default=False)
    score = Column(Integer)
    total = Column(Integer)
    passed = Column(Boolean)

    def __repr__(self):
        return f"<QuizAttempt(id={self.id}, user_id={self.user_id}, submitted={self.submitted})>"
