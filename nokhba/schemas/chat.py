"""
Pydantic schemas for the AI assistant
"""
from pydantic import BaseModel, Field
from typing import List


class ChatRequest(BaseModel):
    """A new message from the student"""
    message: str = Field(..., min_length=1, max_length=4000)


class ChatTurn(BaseModel):
    """One message of the conversation"""
    role: str  # "user" | "model"
    text: str


class ChatResponse(BaseModel):
    """Assistant reply"""
    reply: str


class ChatHistoryResponse(BaseModel):
    """Conversation so far, starting with the greeting"""
    messages: List[ChatTurn]
