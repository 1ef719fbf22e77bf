"""
Pydantic schemas for quiz attempts and grading
"""
from pydantic import BaseModel, Field
from typing import List, Optional

from nokhba.schemas.lesson import QuizQuestion


class AnswerSelection(BaseModel):
    """Schema for selecting an option"""
    option_index: int = Field(..., ge=0, description="0-based option index")


class QuestionGrading(BaseModel):
    """Grading details for a single question"""
    index: int
    selected_index: int
    correct_index: int
    is_correct: bool


class AttemptResultResponse(BaseModel):
    """Verdict of a submitted attempt"""
    score: int
    total: int
    passed: bool
    status: str  # "Pass" | "Fail"
    score_display: str  # "3/4"
    timed_out: bool
    feedback: str
    breakdown: List[QuestionGrading]
    guardian_alert_url: Optional[str] = None


class AttemptResponse(BaseModel):
    """State of a quiz attempt"""
    attempt_id: str
    lesson_id: str
    lesson_title: str
    questions: List[QuizQuestion]
    answers: List[int]
    remaining_seconds: int
    remaining_display: str  # "m:ss"
    is_complete: bool
    submitted: bool
    result: Optional[AttemptResultResponse] = None
