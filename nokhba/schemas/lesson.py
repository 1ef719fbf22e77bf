"""
Pydantic schemas for lesson authoring and the student catalogue
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime

OPTIONS_PER_QUESTION = 4


class Question(BaseModel):
    """A single multiple-choice question as authored"""
    question: str = Field(..., min_length=1, max_length=1000)
    options: List[str] = Field(..., min_length=OPTIONS_PER_QUESTION, max_length=OPTIONS_PER_QUESTION)
    correct_index: int = Field(..., ge=0)

    class Config:
        frozen = True

    @field_validator("question")
    @classmethod
    def question_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Question text must not be blank")
        return value.strip()

    @field_validator("options")
    @classmethod
    def options_not_blank(cls, value: List[str]) -> List[str]:
        if any(not option.strip() for option in value):
            raise ValueError("Every option must be filled in")
        return [option.strip() for option in value]

    @model_validator(mode="after")
    def correct_index_in_range(self):
        if self.correct_index >= len(self.options):
            raise ValueError("correct_index must point at one of the options")
        return self


class LessonCreate(BaseModel):
    """Schema for authoring a lesson and its quiz"""
    title: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, max_length=512, description="YouTube link")
    duration: int = Field(10, ge=1, description="Quiz time limit in minutes")
    grade: str
    study_type: str
    questions: List[Question] = Field(..., min_length=1)


class QuizQuestion(BaseModel):
    """Question as shown to a student - no answer key"""
    index: int
    question: str
    options: List[str]


class LessonAdminResponse(BaseModel):
    """Lesson as seen by an administrator"""
    id: str
    title: str
    url: str
    youtube_id: str
    duration: int
    grade: Optional[str] = None
    study_type: Optional[str] = None
    questions: List[Question]
    created_at: Optional[datetime] = None


class ProgressSummary(BaseModel):
    """Latest verdict for a lesson"""
    status: str
    score: int
    total: int
    timestamp: datetime

    class Config:
        from_attributes = True


class StudentLessonResponse(BaseModel):
    """Lesson card for a student, media only present when unlocked"""
    id: str
    title: str
    duration: int
    grade: Optional[str] = None
    study_type: Optional[str] = None
    question_count: int
    gate: str  # "Locked" | "Unlocked"
    youtube_id: Optional[str] = None
    embed_url: Optional[str] = None
    progress: Optional[ProgressSummary] = None
