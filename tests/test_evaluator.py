import pytest

from lessonquiz.errors import InvalidChoiceError, LessonQuizError, UnknownItemError
from lessonquiz.evaluator import DEFAULT_PASS_PERCENTAGE, QuizResult, Verdict, evaluate, evaluate_document
from lessonquiz.models import LessonDocument, QuizBlock, Section


def test_correct_choice_scores_item_points(abc_block: QuizBlock) -> None:
    result = evaluate(abc_block, {"q1": 1})
    assert result.result_for("q1").verdict is Verdict.CORRECT
    assert result.result_for("q1").feedback == "Yes, B."
    assert (result.score, result.max_score) == (1, 1)


def test_wrong_choice_is_incorrect_with_its_feedback(abc_block: QuizBlock) -> None:
    result = evaluate(abc_block, {"q1": 0})
    item = result.result_for("q1")
    assert item.verdict is Verdict.INCORRECT
    assert item.chosen_index == 0
    assert item.feedback == "Not A."
    assert item.points_awarded == 0
    assert (result.score, result.max_score) == (0, 1)


def test_empty_submission_leaves_everything_unanswered(two_item_block: QuizBlock) -> None:
    result = evaluate(two_item_block, {})
    assert [item.verdict for item in result.items] == [Verdict.UNANSWERED, Verdict.UNANSWERED]
    assert all(item.feedback is None and item.chosen_index is None for item in result.items)
    assert result.score == 0
    assert result.max_score == 5
    assert result.answered_count == 0


def test_none_counts_as_unanswered(abc_block: QuizBlock) -> None:
    assert evaluate(abc_block, {"q1": None}).result_for("q1").verdict is Verdict.UNANSWERED


def test_out_of_range_choice_raises(abc_block: QuizBlock) -> None:
    with pytest.raises(InvalidChoiceError) as excinfo:
        evaluate(abc_block, {"q1": 5})
    assert excinfo.value.item_id == "q1"
    assert excinfo.value.choice == 5


@pytest.mark.parametrize("choice", [-1, 3, True, "1", 1.0])
def test_non_index_choices_raise(abc_block: QuizBlock, choice: object) -> None:
    with pytest.raises(InvalidChoiceError):
        evaluate(abc_block, {"q1": choice})  # type: ignore[dict-item]


def test_unknown_item_raises(abc_block: QuizBlock) -> None:
    with pytest.raises(UnknownItemError) as excinfo:
        evaluate(abc_block, {"qX": 0})
    assert excinfo.value.item_id == "qX"


def test_bad_entry_after_good_one_still_raises(two_item_block: QuizBlock) -> None:
    with pytest.raises(UnknownItemError):
        evaluate(two_item_block, {"a": 0, "missing": 1})


def test_every_wrong_choice_scores_zero(two_item_block: QuizBlock) -> None:
    for item in two_item_block.items:
        for index in range(len(item.choices)):
            result = evaluate(two_item_block, {item.id: index})
            outcome = result.result_for(item.id)
            if index == item.correct_index:
                assert outcome.verdict is Verdict.CORRECT
                assert result.score == item.points
            else:
                assert outcome.verdict is Verdict.INCORRECT
                assert result.score == 0


def test_mixed_submission_aggregates(two_item_block: QuizBlock) -> None:
    result = evaluate(two_item_block, {"a": 1, "b": 2})
    assert result.score == 3
    assert result.max_score == 5
    assert result.correct_count == 1
    assert result.answered_count == 2
    assert result.percentage == 60.0
    assert result.passed() is False
    assert result.passed(pass_percentage=60.0) is True


def test_full_marks_pass_by_default(two_item_block: QuizBlock) -> None:
    result = evaluate(two_item_block, {"a": 0, "b": 2})
    assert result.percentage == 100.0
    assert result.percentage >= DEFAULT_PASS_PERCENTAGE
    assert result.passed()


def test_evaluate_is_pure_and_repeatable(two_item_block: QuizBlock) -> None:
    submission = {"a": 0}
    first = evaluate(two_item_block, submission)
    second = evaluate(two_item_block, submission)
    assert first == second
    assert submission == {"a": 0}
    assert two_item_block.items[0].id == "a"


def test_to_dict_is_json_ready(abc_block: QuizBlock) -> None:
    payload = evaluate(abc_block, {"q1": 2}).to_dict()
    assert payload == {
        "score": 0,
        "max_score": 1,
        "percentage": 0.0,
        "items": [
            {
                "item_id": "q1",
                "verdict": "incorrect",
                "chosen_index": 2,
                "feedback": "Not C.",
                "points_awarded": 0,
                "points_possible": 1,
            }
        ],
    }


def test_result_for_unknown_item_raises(abc_block: QuizBlock) -> None:
    with pytest.raises(UnknownItemError):
        evaluate(abc_block, {}).result_for("nope")


def test_evaluate_document_uses_single_quiz(abc_block: QuizBlock) -> None:
    lesson = LessonDocument(id="l", title="L", sections=(Section("Intro"),), quizzes=(abc_block,))
    assert evaluate_document(lesson, {"q1": 1}).score == 1


def test_evaluate_document_without_quiz_raises() -> None:
    lesson = LessonDocument(id="l", title="L", sections=(Section("Intro"),))
    with pytest.raises(LessonQuizError, match="has no quiz"):
        evaluate_document(lesson, {})


def test_pass_mark_compares_unrounded_score() -> None:
    just_under = QuizResult(items=(), score=6996, max_score=10000)
    assert just_under.percentage == 70.0
    assert just_under.passed() is False
    assert QuizResult(items=(), score=7, max_score=10).passed() is True


def test_result_without_points_never_passes() -> None:
    assert QuizResult(items=(), score=0, max_score=0).passed(pass_percentage=0.0) is False
