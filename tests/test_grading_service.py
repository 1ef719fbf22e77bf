import pytest

from nokhba.schemas.lesson import Question
from nokhba.services.answer_set import UNANSWERED
from nokhba.services.grading_service import GradingService, pass_threshold


def questions(correct_indices):
    return [
        Question(question=f"Q{i}", options=["a", "b", "c", "d"], correct_index=correct)
        for i, correct in enumerate(correct_indices)
    ]


@pytest.fixture
def grader():
    return GradingService()


@pytest.mark.parametrize("total, needed", [(1, 1), (2, 1), (3, 2), (4, 2), (5, 3), (10, 5), (11, 6)])
def test_pass_threshold_rounds_half_up(total, needed):
    assert pass_threshold(total) == needed


@pytest.mark.parametrize("total", [1, 2, 3, 4, 5])
def test_verdict_flips_exactly_at_threshold(grader, total):
    key = [0] * total
    needed = pass_threshold(total)

    just_enough = [0] * needed + [1] * (total - needed)
    one_short = [0] * (needed - 1) + [1] * (total - needed + 1)

    assert grader.grade(questions(key), just_enough).passed is True
    assert grader.grade(questions(key), one_short).passed is False


def test_unanswered_never_scores(grader):
    result = grader.grade(questions([0, 1, 2, 3]), [UNANSWERED] * 4)

    assert result.score == 0
    assert not any(item.is_correct for item in result.breakdown)
    assert result.status == "Fail"


def test_missing_answers_count_as_unanswered(grader):
    result = grader.grade(questions([1, 0, 2]), [1])

    assert result.score == 1
    assert result.breakdown[2].selected_index == UNANSWERED


def test_grading_is_idempotent(grader):
    qs = questions([1, 0, 2, 3])
    answers = [1, 0, 0, UNANSWERED]

    assert grader.grade(qs, answers) == grader.grade(qs, answers)


def test_scenario_passing_attempt(grader):
    result = grader.grade(questions([1, 0, 2, 3]), [1, 0, 0, 3])

    assert (result.score, result.total, result.passed) == (3, 4, True)
    assert result.status == "Pass"
    assert result.score_display == "3/4"
    assert [item.is_correct for item in result.breakdown] == [True, True, False, True]


def test_scenario_failing_attempt(grader):
    result = grader.grade(questions([1, 0, 2, 3]), [0, 1, 0, 0])

    assert (result.score, result.total, result.passed) == (0, 4, False)
    assert result.status == "Fail"


def test_feedback_mentions_requirement_on_failure(grader):
    result = grader.grade(questions([1, 0, 2, 3]), [0, 1, 0, 0])

    assert "2" in grader.generate_feedback(result)


def test_feedback_on_full_marks(grader):
    result = grader.grade(questions([1, 0]), [1, 0])

    assert "ممتاز" in grader.generate_feedback(result)
