"""
Student profile API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from nokhba.api.deps import get_current_session
from nokhba.config import settings
from nokhba.database import get_db
from nokhba.models import Student
from nokhba.schemas.user import StudentRegister, StudentResponse
from nokhba.services.auth_service import UserSession

router = APIRouter(prefix="/api/users", tags=["users"])
logger = logging.getLogger(__name__)


@router.post("/me", response_model=StudentResponse, status_code=201)
async def register_profile(
    profile: StudentRegister,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    """
    Create or update the caller's profile after sign-up

    - The wallet balance starts at 0 and is never set from here
    - Grade and study type must come from the configured lists
    """
    if profile.grade and profile.grade not in settings.GRADES:
        raise HTTPException(status_code=400, detail=f"Unknown grade: {profile.grade}")
    if profile.study_type and profile.study_type not in settings.STUDY_TYPES:
        raise HTTPException(status_code=400, detail=f"Unknown study type: {profile.study_type}")

    student = db.query(Student).filter(Student.id == session.user_id).first()
    if not student:
        student = Student(id=session.user_id, wallet_balance=0)
        db.add(student)

    student.name = profile.name.strip()
    student.email = session.email
    student.parent_phone = profile.parent_phone.strip() if profile.parent_phone else None
    student.grade = profile.grade
    student.study_type = profile.study_type

    db.commit()
    db.refresh(student)

    logger.info(f"Profile saved for user {session.user_id}")
    return student


@router.get("/me", response_model=StudentResponse)
async def get_profile(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    student = db.query(Student).filter(Student.id == session.user_id).first()
    if not student:
        raise HTTPException(status_code=404, detail="Student profile not found")
    return student
