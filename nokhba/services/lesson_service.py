"""
Lesson authoring and catalogue service
"""
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from nokhba.config import settings
from nokhba.models import Lesson, LessonProgress, Student
from nokhba.schemas.lesson import LessonCreate, ProgressSummary, Question
from nokhba.services.exceptions import InvalidLesson, LessonNotFound
from nokhba.services.lesson_gate import GateState, embed_url, gate_state
from nokhba.services.progress_service import progress_service
from nokhba.utils.cache import cache_service
from nokhba.utils.change_feed import change_feed

logger = logging.getLogger(__name__)

YOUTUBE_ID_PATTERN = re.compile(r"^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*")


def extract_youtube_id(url: str) -> Optional[str]:
    """Return the 11-character video id of a YouTube link, or None"""
    match = YOUTUBE_ID_PATTERN.match(url.strip())
    if match and len(match.group(2)) == 11:
        return match.group(2)
    return None


def load_questions(lesson: Lesson) -> List[Question]:
    """
    Revalidate stored questions into typed records

    Raises:
        InvalidLesson: stored data no longer matches the question shape
    """
    try:
        questions = [Question(**item) for item in lesson.questions or []]
    except (TypeError, ValidationError) as e:
        logger.error(f"Lesson {lesson.id} has malformed questions: {str(e)}")
        raise InvalidLesson("Lesson quiz data is corrupted")
    if not questions:
        logger.error(f"Lesson {lesson.id} has no questions")
        raise InvalidLesson("Lesson has no quiz questions")
    return questions


class LessonService:
    """Service for authoring lessons and building the student catalogue"""

    def create_lesson(self, db: Session, data: LessonCreate) -> Lesson:
        """
        Validate and store a lesson with its quiz

        Raises:
            InvalidLesson: bad YouTube link, unknown grade or study type
        """
        youtube_id = extract_youtube_id(data.url)
        if not youtube_id:
            raise InvalidLesson("رابط يوتيوب غير صحيح")
        if data.grade not in settings.GRADES:
            raise InvalidLesson(f"Unknown grade: {data.grade}")
        if data.study_type not in settings.STUDY_TYPES:
            raise InvalidLesson(f"Unknown study type: {data.study_type}")
        if data.duration > settings.MAX_QUIZ_DURATION_MINUTES:
            raise InvalidLesson(f"Quiz duration cannot exceed {settings.MAX_QUIZ_DURATION_MINUTES} minutes")

        lesson = Lesson(
            title=data.title.strip(),
            url=data.url.strip(),
            youtube_id=youtube_id,
            duration=data.duration,
            grade=data.grade,
            study_type=data.study_type,
            questions=[question.model_dump() for question in data.questions]
        )
        db.add(lesson)
        db.commit()
        db.refresh(lesson)

        logger.info(f"Lesson created: {lesson.id} with {len(data.questions)} questions")

        cache_service.clear_catalogue()
        change_feed.publish("lessons", {"type": "lesson_added", "lesson_id": lesson.id})
        return lesson

    def get_lesson(self, db: Session, lesson_id: str) -> Lesson:
        lesson = db.query(Lesson).filter(Lesson.id == lesson_id).first()
        if not lesson:
            raise LessonNotFound()
        return lesson

    def list_all(self, db: Session) -> List[Lesson]:
        return db.query(Lesson).order_by(Lesson.created_at.desc()).all()

    def _entry(self, lesson: Lesson) -> Dict[str, Any]:
        return {
            "id": lesson.id,
            "title": lesson.title,
            "duration": lesson.duration,
            "grade": lesson.grade,
            "study_type": lesson.study_type,
            "youtube_id": lesson.youtube_id,
            "question_count": len(lesson.questions or []),
        }

    def _catalogue_entries(self, db: Session, grade: Optional[str], study_type: Optional[str]) -> List[Dict[str, Any]]:
        """Lesson cards (without gate state) for one grade/study type slice"""
        cache_key = cache_service.catalogue_key(grade, study_type)
        cached = cache_service.get(cache_key)
        if cached is not None:
            return cached

        query = db.query(Lesson)
        if grade and study_type:
            query = query.filter(Lesson.grade == grade, Lesson.study_type == study_type)

        entries = [
            self._entry(lesson)
            for lesson in query.order_by(Lesson.created_at.desc()).all()
        ]
        cache_service.set(cache_key, entries)
        return entries

    def catalogue_for(self, db: Session, student: Optional[Student], user_id: str) -> List[Dict[str, Any]]:
        """
        Lessons visible to a student, each with its gate state

        Media fields are only filled in for unlocked lessons.
        """
        grade = student.grade if student else None
        study_type = student.study_type if student else None

        entries = self._catalogue_entries(db, grade, study_type)
        progress = progress_service.progress_map(db, user_id)

        return [self.gated_card(entry, progress.get(entry["id"])) for entry in entries]

    def gated_card(self, entry: Dict[str, Any], progress: Optional[LessonProgress]) -> Dict[str, Any]:
        state = gate_state(progress)
        card = dict(entry)
        card["gate"] = state.value
        if state is GateState.UNLOCKED:
            card["embed_url"] = embed_url(entry["youtube_id"])
        else:
            card["youtube_id"] = None
            card["embed_url"] = None
        card["progress"] = ProgressSummary.model_validate(progress) if progress else None
        return card

    def card_for(self, db: Session, lesson: Lesson, user_id: str) -> Dict[str, Any]:
        return self.gated_card(self._entry(lesson), progress_service.get(db, user_id, lesson.id))


# Global instance
lesson_service = LessonService()
