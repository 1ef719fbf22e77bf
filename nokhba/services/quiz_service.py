"""
Quiz attempt lifecycle: open, answer, submit or time out, abandon
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from nokhba.models import Lesson, QuizAttempt, Student
from nokhba.schemas.lesson import Question
from nokhba.services.answer_set import AnswerSet
from nokhba.services.auth_service import UserSession
from nokhba.services.exceptions import (
    AttemptClosed,
    AttemptNotFound,
    IncompleteAnswers,
    LessonAlreadyPassed,
    LessonNotFound,
)
from nokhba.services.grading_service import AttemptResult, GradingService, grading_service
from nokhba.services.guardian_notifier import GuardianNotifier, guardian_notifier
from nokhba.services.lesson_gate import GateState, gate_state
from nokhba.services.lesson_service import load_questions
from nokhba.services.progress_service import ProgressService, progress_service
from nokhba.services.quiz_timer import QuizTimer
from nokhba.utils.change_feed import change_feed
from nokhba.utils.clock import utcnow

logger = logging.getLogger(__name__)


@dataclass
class SubmissionOutcome:
    attempt: QuizAttempt
    result: AttemptResult
    timed_out: bool
    guardian_alert_url: Optional[str] = None


class QuizService:
    """
    Orchestrates one quiz attempt per (student, lesson).

    Submission happens exactly once: the attempt row is claimed with a
    conditional UPDATE on `submitted`, so whichever of the manual submit and
    the timeout gets there first grades it and the other becomes a no-op.
    """

    def __init__(
        self,
        grader: GradingService = grading_service,
        recorder: ProgressService = progress_service,
        notifier: GuardianNotifier = guardian_notifier,
        clock: Callable[[], datetime] = utcnow
    ):
        self.grader = grader
        self.recorder = recorder
        self.notifier = notifier
        self.clock = clock

    # --- helpers -----------------------------------------------------------

    def timer_for(self, attempt: QuizAttempt) -> QuizTimer:
        return QuizTimer(attempt.duration_seconds, attempt.started_at, self.clock)

    def _lesson(self, db: Session, lesson_id: str) -> Lesson:
        lesson = db.query(Lesson).filter(Lesson.id == lesson_id).first()
        if not lesson:
            raise LessonNotFound()
        return lesson

    def _owned_attempt(self, db: Session, session: UserSession, attempt_id: str) -> QuizAttempt:
        attempt = db.query(QuizAttempt).filter(QuizAttempt.id == attempt_id).first()
        if not attempt or attempt.user_id != session.user_id:
            raise AttemptNotFound()
        return attempt

    def answer_set_for(self, attempt: QuizAttempt, questions: List[Question]) -> AnswerSet:
        return AnswerSet(
            [len(question.options) for question in questions],
            answers=attempt.answers,
            frozen=attempt.submitted
        )

    def stored_result(self, attempt: QuizAttempt, questions: List[Question]) -> AttemptResult:
        """Regrade the frozen answers; grading is deterministic"""
        return self.grader.grade(questions, attempt.answers)

    # --- lifecycle ---------------------------------------------------------

    def start_attempt(self, db: Session, session: UserSession, lesson_id: str) -> QuizAttempt:
        """
        Open the quiz of a locked lesson, or resume the open attempt

        Raises:
            LessonNotFound, LessonAlreadyPassed
        """
        lesson = self._lesson(db, lesson_id)
        questions = load_questions(lesson)

        if gate_state(self.recorder.get(db, session.user_id, lesson_id)) is GateState.UNLOCKED:
            raise LessonAlreadyPassed()

        open_attempt = db.query(QuizAttempt).filter(
            QuizAttempt.user_id == session.user_id,
            QuizAttempt.lesson_id == lesson_id,
            QuizAttempt.submitted.is_(False)
        ).first()

        if open_attempt is not None:
            if not self.timer_for(open_attempt).is_expired():
                logger.info(f"Resuming attempt {open_attempt.id} for user {session.user_id}")
                return open_attempt
            outcome = self.finalize(db, open_attempt.id, timed_out=True)
            if outcome and outcome.result.passed:
                raise LessonAlreadyPassed()

        timer = QuizTimer.for_minutes(lesson.duration, self.clock(), self.clock)
        attempt = QuizAttempt(
            user_id=session.user_id,
            lesson_id=lesson_id,
            answers=AnswerSet.blank([len(q.options) for q in questions]).as_list(),
            duration_seconds=timer.duration_seconds,
            started_at=timer.started_at,
            submitted=False,
            timed_out=False
        )
        db.add(attempt)
        db.commit()
        db.refresh(attempt)

        logger.info(f"Attempt {attempt.id} started: user={session.user_id}, lesson={lesson_id}, {lesson.duration} min")
        return attempt

    def get_attempt(self, db: Session, session: UserSession, attempt_id: str) -> QuizAttempt:
        """Fetch an attempt, submitting it first if its time ran out"""
        attempt = self._owned_attempt(db, session, attempt_id)
        self.enforce_deadline(db, attempt)
        return attempt

    def enforce_deadline(self, db: Session, attempt: QuizAttempt) -> Optional[SubmissionOutcome]:
        if attempt.submitted or not self.timer_for(attempt).is_expired():
            return None
        outcome = self.finalize(db, attempt.id, timed_out=True)
        db.refresh(attempt)
        return outcome

    def select_answer(
        self,
        db: Session,
        session: UserSession,
        attempt_id: str,
        question_index: int,
        option_index: int
    ) -> QuizAttempt:
        """
        Raises:
            AttemptClosed: attempt already submitted (or just timed out)
            InvalidAnswer: index out of range
        """
        attempt = self.get_attempt(db, session, attempt_id)
        if attempt.submitted:
            raise AttemptClosed()

        lesson = self._lesson(db, attempt.lesson_id)
        answer_set = self.answer_set_for(attempt, load_questions(lesson))
        answer_set.select(question_index, option_index)

        # Only touch an attempt that is still open
        updated = db.execute(
            update(QuizAttempt)
            .where(QuizAttempt.id == attempt.id, QuizAttempt.submitted.is_(False))
            .values(answers=answer_set.as_list())
            .execution_options(synchronize_session=False)
        ).rowcount
        db.commit()
        db.refresh(attempt)

        if not updated:
            raise AttemptClosed()
        return attempt

    def submit(self, db: Session, session: UserSession, attempt_id: str) -> SubmissionOutcome:
        """
        Manual submission; requires every question answered unless the
        deadline has already passed, in which case the timeout path grades it

        Raises:
            IncompleteAnswers, AttemptNotFound
        """
        attempt = self._owned_attempt(db, session, attempt_id)
        expired = self.timer_for(attempt).is_expired()

        if not attempt.submitted and not expired:
            lesson = self._lesson(db, attempt.lesson_id)
            if not self.answer_set_for(attempt, load_questions(lesson)).is_complete():
                raise IncompleteAnswers()

        outcome = None
        if not attempt.submitted:
            outcome = self.finalize(db, attempt.id, timed_out=expired)

        if outcome is None:
            # Lost the race or already submitted: report the stored verdict
            db.refresh(attempt)
            lesson = self._lesson(db, attempt.lesson_id)
            outcome = SubmissionOutcome(
                attempt=attempt,
                result=self.stored_result(attempt, load_questions(lesson)),
                timed_out=attempt.timed_out
            )
        return outcome

    def expire(self, db: Session, attempt_id: str) -> Optional[SubmissionOutcome]:
        """Timeout path, called by the auto-submit scheduler"""
        attempt = db.query(QuizAttempt).filter(QuizAttempt.id == attempt_id).first()
        if attempt is None or attempt.submitted:
            return None
        return self.finalize(db, attempt_id, timed_out=True)

    def abandon(self, db: Session, session: UserSession, attempt_id: str) -> bool:
        """Discard an unsubmitted attempt; prior progress is untouched"""
        attempt = self._owned_attempt(db, session, attempt_id)
        if attempt.submitted:
            raise AttemptClosed()

        # The timeout may have graded it since it was loaded
        removed = db.execute(
            delete(QuizAttempt)
            .where(QuizAttempt.id == attempt_id, QuizAttempt.submitted.is_(False))
            .execution_options(synchronize_session=False)
        ).rowcount
        if not removed:
            db.rollback()
            logger.info(f"Attempt {attempt_id} already submitted, abandon refused")
            raise AttemptClosed()
        db.commit()
        db.expunge(attempt)
        logger.info(f"Attempt {attempt_id} abandoned by user {session.user_id}")
        return True

    def finalize(self, db: Session, attempt_id: str, timed_out: bool) -> Optional[SubmissionOutcome]:
        """
        Claim, grade and record an attempt

        Returns:
            The outcome, or None when the attempt was already claimed
        """
        graded_at = self.clock()
        claimed = db.execute(
            update(QuizAttempt)
            .where(QuizAttempt.id == attempt_id, QuizAttempt.submitted.is_(False))
            .values(submitted=True, submitted_at=graded_at, timed_out=timed_out)
            .execution_options(synchronize_session=False)
        ).rowcount
        if not claimed:
            db.rollback()
            logger.info(f"Attempt {attempt_id} already submitted, ignoring")
            return None

        attempt = db.query(QuizAttempt).filter(QuizAttempt.id == attempt_id).first()
        db.refresh(attempt)
        lesson = self._lesson(db, attempt.lesson_id)

        try:
            questions = load_questions(lesson)
            final_answers = AnswerSet([len(q.options) for q in questions], answers=attempt.answers).freeze()
            result = self.grader.grade(questions, final_answers)
            attempt.score = result.score
            attempt.total = result.total
            attempt.passed = result.passed
            self.recorder.record(db, attempt.user_id, lesson.id, result, graded_at)
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(attempt)
        logger.info(
            f"Attempt {attempt_id} submitted ({'timeout' if timed_out else 'manual'}): "
            f"{result.score_display}, status={result.status}"
        )
        change_feed.publish(f"progress:{attempt.user_id}", {
            "lesson_id": lesson.id,
            "status": result.status,
            "score": result.score,
            "total": result.total,
        })

        alert_url = None
        if not result.passed:
            student = db.query(Student).filter(Student.id == attempt.user_id).first()
            if student is not None:
                alert_url = self.notifier.notify(
                    user_id=attempt.user_id,
                    student_name=student.name,
                    parent_phone=student.parent_phone,
                    lesson_title=lesson.title,
                    score=result.score,
                    total=result.total,
                    passed=result.passed
                )

        return SubmissionOutcome(
            attempt=attempt,
            result=result,
            timed_out=timed_out,
            guardian_alert_url=alert_url
        )


# Global instance
quiz_service = QuizService()
