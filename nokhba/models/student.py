"""
Student model - profile data mirrored from the auth provider
"""
from sqlalchemy import Column, String, Integer, DateTime
from nokhba.database import Base
from nokhba.utils.clock import utcnow


class Student(Base):
    """
    Students table - keyed by the auth provider's user id
    """
    __tablename__ = "students"

    id = Column(String(128), primary_key=True)  # Firebase uid
    name = Column(String(255), nullable=False)
    email = Column(String(255))
    parent_phone = Column(String(32))
    grade = Column(String(64))
    study_type = Column(String(32))
    wallet_balance = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<Student(id={self.id}, name={self.name}, balance={self.wallet_balance})>"
