"""
Answer set held for a quiz attempt
"""
import logging
from typing import List, Optional, Sequence

from nokhba.services.exceptions import InvalidAnswer

logger = logging.getLogger(__name__)

UNANSWERED = -1


class AnswerSet:
    """
    One selected option index per question, UNANSWERED until chosen.

    Selections overwrite freely until the set is frozen at submission;
    afterwards `select` is a no-op.
    """

    def __init__(
        self,
        option_counts: Sequence[int],
        answers: Optional[Sequence[int]] = None,
        frozen: bool = False
    ):
        self._option_counts = list(option_counts)
        if answers is None:
            answers = [UNANSWERED] * len(self._option_counts)
        if len(answers) != len(self._option_counts):
            raise ValueError("Answer count does not match question count")
        self._answers = list(answers)
        self._frozen = frozen

    @classmethod
    def blank(cls, option_counts: Sequence[int]) -> "AnswerSet":
        return cls(option_counts)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def select(self, question_index: int, option_index: int) -> bool:
        """
        Record a selection

        Returns:
            False when the set is frozen (selection ignored), True otherwise

        Raises:
            InvalidAnswer: question or option index out of range
        """
        if self._frozen:
            logger.debug("Selection ignored on frozen answer set")
            return False

        if not 0 <= question_index < len(self._option_counts):
            raise InvalidAnswer(f"Question {question_index} does not exist")
        if not 0 <= option_index < self._option_counts[question_index]:
            raise InvalidAnswer(f"Option {option_index} does not exist for question {question_index}")

        self._answers[question_index] = option_index
        return True

    def is_complete(self) -> bool:
        return all(answer != UNANSWERED for answer in self._answers)

    def freeze(self) -> List[int]:
        self._frozen = True
        return self.as_list()

    def as_list(self) -> List[int]:
        return list(self._answers)

    def __len__(self):
        return len(self._answers)
