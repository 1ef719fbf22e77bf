"""
Quiz grading service
Exact-match MCQ scoring with a half-or-more pass rule
"""
import logging
import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from nokhba.schemas.lesson import Question
from nokhba.services.answer_set import UNANSWERED

logger = logging.getLogger(__name__)

PASS_STATUS = "Pass"
FAIL_STATUS = "Fail"


def pass_threshold(total_questions: int) -> int:
    """Correct answers needed to pass: half of the questions, rounded up"""
    return math.ceil(total_questions / 2)


@dataclass(frozen=True)
class QuestionOutcome:
    index: int
    selected_index: int
    correct_index: int
    is_correct: bool


@dataclass(frozen=True)
class AttemptResult:
    score: int
    total: int
    passed: bool
    breakdown: Tuple[QuestionOutcome, ...] = ()

    @property
    def status(self) -> str:
        return PASS_STATUS if self.passed else FAIL_STATUS

    @property
    def score_display(self) -> str:
        return f"{self.score}/{self.total}"


class GradingService:
    """
    Service for grading quiz submissions

    Strategy:
    - Each question is worth one point, exact match on the option index
    - Unanswered questions (sentinel -1) never match and score zero
    - Pass when score >= ceil(total / 2)
    """

    def grade(self, questions: Sequence[Question], answers: Sequence[int]) -> AttemptResult:
        """
        Grade a complete quiz submission

        Args:
            questions: Authored questions in order
            answers: Selected option index per question (UNANSWERED if none)

        Returns:
            AttemptResult with score, total, verdict and per-question breakdown
        """
        breakdown: List[QuestionOutcome] = []

        for index, question in enumerate(questions):
            selected = answers[index] if index < len(answers) else UNANSWERED
            breakdown.append(QuestionOutcome(
                index=index,
                selected_index=selected,
                correct_index=question.correct_index,
                is_correct=self._grade_mcq(question, selected)
            ))

        score = sum(1 for item in breakdown if item.is_correct)
        total = len(questions)
        passed = score >= pass_threshold(total)

        logger.info(f"Quiz graded: {score}/{total}, passed={passed}")

        return AttemptResult(score=score, total=total, passed=passed, breakdown=tuple(breakdown))

    def _grade_mcq(self, question: Question, selected: int) -> bool:
        return selected != UNANSWERED and selected == question.correct_index

    def generate_feedback(self, result: AttemptResult) -> str:
        """Short Arabic verdict shown under the score"""
        if result.passed:
            if result.score == result.total:
                return "ممتاز! أجبت على جميع الأسئلة بشكل صحيح وتم فتح المحاضرة."
            return "أحسنت! لقد نجحت في الامتحان وتم فتح المحاضرة."

        needed = pass_threshold(result.total)
        return f"للأسف لم تنجح. تحتاج إلى {needed} إجابات صحيحة على الأقل من {result.total}."


# Global instance
grading_service = GradingService()
