"""
LessonProgress model - latest verdict per (user, lesson)
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint
from nokhba.database import Base
import uuid


class LessonProgress(Base):
    """
    Progress table - at most one row per (user_id, lesson_id)
    """
    __tablename__ = "lesson_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "lesson_id", name="uq_progress_user_lesson"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(128), nullable=False, index=True)
    lesson_id = Column(String(36), ForeignKey("lessons.id"), nullable=False)
    status = Column(String(8), nullable=False)  # "Pass" | "Fail"
    score = Column(Integer, nullable=False)
    total = Column(Integer, nullable=False)
    timestamp = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<LessonProgress(user_id={self.user_id}, lesson_id={self.lesson_id}, status={self.status})>"
