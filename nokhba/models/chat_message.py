"""
ChatMessage model - conversational memory of the AI assistant
"""
from sqlalchemy import Column, String, Integer, Text, DateTime
from nokhba.database import Base
from nokhba.utils.clock import utcnow


class ChatMessage(Base):
    """
    Chat messages table - one row per turn, replayed as chat history
    """
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=False, index=True)
    role = Column(String(8), nullable=False)  # "user" | "model"
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<ChatMessage(user_id={self.user_id}, role={self.role})>"
