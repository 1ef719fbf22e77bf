"""
Lesson authoring and catalogue API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
import logging

from nokhba.api.deps import get_current_session, require_admin
from nokhba.database import get_db
from nokhba.models import Lesson, Student
from nokhba.schemas.lesson import LessonAdminResponse, LessonCreate, StudentLessonResponse
from nokhba.services.auth_service import UserSession
from nokhba.services.lesson_service import lesson_service, load_questions

router = APIRouter(prefix="/api/lessons", tags=["lessons"])
logger = logging.getLogger(__name__)


def _admin_view(lesson: Lesson) -> LessonAdminResponse:
    return LessonAdminResponse(
        id=lesson.id,
        title=lesson.title,
        url=lesson.url,
        youtube_id=lesson.youtube_id,
        duration=lesson.duration,
        grade=lesson.grade,
        study_type=lesson.study_type,
        questions=load_questions(lesson),
        created_at=lesson.created_at
    )


@router.post("/", response_model=LessonAdminResponse, status_code=201)
async def create_lesson(
    lesson: LessonCreate,
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Add a lesson and its quiz

    - Extracts the YouTube video id from the link
    - Every question needs 4 filled options and a valid correct index
    - Nothing is saved when any field is invalid
    """
    created = lesson_service.create_lesson(db, lesson)
    logger.info(f"Admin {session.user_id} added lesson {created.id}")
    return _admin_view(created)


@router.get("/all", response_model=List[LessonAdminResponse])
async def list_all_lessons(
    session: UserSession = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """All lessons with answer keys, newest first"""
    return [_admin_view(lesson) for lesson in lesson_service.list_all(db)]


@router.get("/", response_model=List[StudentLessonResponse])
async def list_lessons(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    """
    Lessons for the caller's grade and study type

    Locked lessons come without their video; pass the quiz to unlock.
    """
    student = db.query(Student).filter(Student.id == session.user_id).first()
    return lesson_service.catalogue_for(db, student, session.user_id)


@router.get("/{lesson_id}", response_model=StudentLessonResponse)
async def get_lesson(
    lesson_id: str,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    lesson = lesson_service.get_lesson(db, lesson_id)
    return lesson_service.card_for(db, lesson, session.user_id)
