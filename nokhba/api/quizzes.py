"""
Quiz attempt API endpoints
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
import logging

from nokhba.api.deps import get_current_session
from nokhba.config import settings
from nokhba.database import SessionLocal, get_db
from nokhba.models import Lesson, QuizAttempt
from nokhba.schemas.lesson import QuizQuestion
from nokhba.schemas.quiz import (
    AnswerSelection,
    AttemptResponse,
    AttemptResultResponse,
    QuestionGrading,
)
from nokhba.services.auth_service import UserSession
from nokhba.services.grading_service import AttemptResult, grading_service
from nokhba.services.lesson_service import load_questions
from nokhba.services.quiz_service import quiz_service
from nokhba.services.quiz_timer import auto_submit_scheduler, format_remaining


router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])
logger = logging.getLogger(__name__)


def _result_response(result: AttemptResult, timed_out: bool, alert_url: str = None) -> AttemptResultResponse:
    return AttemptResultResponse(
        score=result.score,
        total=result.total,
        passed=result.passed,
        status=result.status,
        score_display=result.score_display,
        timed_out=timed_out,
        feedback=grading_service.generate_feedback(result),
        breakdown=[
            QuestionGrading(
                index=item.index,
                selected_index=item.selected_index,
                correct_index=item.correct_index,
                is_correct=item.is_correct,
            )
            for item in result.breakdown
        ],
        guardian_alert_url=alert_url,
    )


def _attempt_response(db: Session, attempt: QuizAttempt) -> AttemptResponse:
    lesson = db.query(Lesson).filter(Lesson.id == attempt.lesson_id).first()
    questions = load_questions(lesson)
    answer_set = quiz_service.answer_set_for(attempt, questions)
    remaining = 0 if attempt.submitted else quiz_service.timer_for(attempt).remaining_seconds()

    result = None
    if attempt.submitted:
        result = _result_response(quiz_service.stored_result(attempt, questions), attempt.timed_out)

    return AttemptResponse(
        attempt_id=attempt.id,
        lesson_id=lesson.id,
        lesson_title=lesson.title,
        questions=[
            QuizQuestion(index=index, question=q.question, options=list(q.options))
            for index, q in enumerate(questions)
        ],
        answers=answer_set.as_list(),
        remaining_seconds=remaining,
        remaining_display=format_remaining(remaining),
        is_complete=answer_set.is_complete(),
        submitted=attempt.submitted,
        result=result,
    )


async def _auto_submit(attempt_id: str) -> None:
    """Deadline callback, runs with its own DB session"""
    db = SessionLocal()
    try:
        outcome = quiz_service.expire(db, attempt_id)
        if outcome:
            logger.info(f"Attempt {attempt_id} auto-submitted: {outcome.result.score_display}")
    finally:
        db.close()


@router.post("/{lesson_id}/attempts", response_model=AttemptResponse, status_code=201)
async def start_attempt(
    lesson_id: str,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    """
    Open the quiz that unlocks a lesson

    - Refused once the lesson is unlocked (a Pass is permanent)
    - Returns the open attempt if one is still running
    - The countdown starts now; at zero the current answers are submitted
    """
    attempt = quiz_service.start_attempt(db, session, lesson_id)

    if settings.QUIZ_AUTO_SUBMIT:
        remaining = quiz_service.timer_for(attempt).remaining_seconds()
        auto_submit_scheduler.schedule(attempt.id, remaining, _auto_submit)

    return _attempt_response(db, attempt)


@router.get("/attempts/{attempt_id}", response_model=AttemptResponse)
async def get_attempt(
    attempt_id: str,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    """Current answers and remaining time; an expired attempt is submitted first"""
    attempt = quiz_service.get_attempt(db, session, attempt_id)
    if attempt.submitted:
        auto_submit_scheduler.cancel(attempt.id)
    return _attempt_response(db, attempt)


@router.put("/attempts/{attempt_id}/answers/{question_index}", response_model=AttemptResponse)
async def select_answer(
    attempt_id: str,
    question_index: int,
    selection: AnswerSelection,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    """Choose (or change) the option for one question"""
    attempt = quiz_service.select_answer(db, session, attempt_id, question_index, selection.option_index)
    return _attempt_response(db, attempt)


@router.post("/attempts/{attempt_id}/submit", response_model=AttemptResultResponse)
async def submit_attempt(
    attempt_id: str,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    """
    Submit and grade the attempt

    Grading:
    - One point per correct option, unanswered counts as wrong
    - Pass with at least half of the questions, rounded up
    - The verdict is recorded; a Pass unlocks the lesson
    - On failure the guardian alert link is returned for the client to open
    """
    outcome = quiz_service.submit(db, session, attempt_id)
    auto_submit_scheduler.cancel(attempt_id)

    return _result_response(outcome.result, outcome.timed_out, outcome.guardian_alert_url)


@router.delete("/attempts/{attempt_id}", status_code=204)
async def abandon_attempt(
    attempt_id: str,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    """Close the quiz without submitting; nothing is recorded"""
    quiz_service.abandon(db, session, attempt_id)
    auto_submit_scheduler.cancel(attempt_id)
    return Response(status_code=204)
