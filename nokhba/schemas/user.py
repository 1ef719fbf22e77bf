"""
Pydantic schemas for student profiles
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class StudentRegister(BaseModel):
    """Profile data captured at sign-up"""
    name: str = Field(..., min_length=1, max_length=255)
    parent_phone: Optional[str] = Field(None, max_length=32, description="Guardian phone for failure alerts")
    grade: Optional[str] = None
    study_type: Optional[str] = None


class StudentResponse(BaseModel):
    """Student profile with wallet balance"""
    id: str
    name: str
    email: Optional[str] = None
    parent_phone: Optional[str] = None
    grade: Optional[str] = None
    study_type: Optional[str] = None
    wallet_balance: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
