import pytest

from nokhba.services.answer_set import UNANSWERED, AnswerSet
from nokhba.services.exceptions import InvalidAnswer


def test_starts_unanswered():
    answers = AnswerSet.blank([4, 4, 4])

    assert answers.as_list() == [UNANSWERED] * 3
    assert not answers.is_complete()


def test_reselection_overwrites():
    answers = AnswerSet.blank([4, 4])

    answers.select(0, 1)
    answers.select(0, 3)

    assert answers.as_list() == [3, UNANSWERED]


def test_complete_when_every_question_answered():
    answers = AnswerSet.blank([4, 4])
    answers.select(0, 0)
    answers.select(1, 2)

    assert answers.is_complete()


def test_select_after_freeze_is_ignored():
    answers = AnswerSet.blank([4, 4])
    answers.select(0, 1)
    frozen = answers.freeze()

    assert answers.select(1, 2) is False
    assert answers.as_list() == frozen == [1, UNANSWERED]


@pytest.mark.parametrize("question, option", [(-1, 0), (2, 0), (0, 4), (0, -1)])
def test_out_of_range_selection_rejected(question, option):
    answers = AnswerSet.blank([4, 4])

    with pytest.raises(InvalidAnswer):
        answers.select(question, option)


def test_answer_count_must_match_questions():
    with pytest.raises(ValueError):
        AnswerSet([4, 4], answers=[0])
