"""Score learner submissions against a quiz block."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import InvalidChoiceError, LessonQuizError, UnknownItemError
from .models import LessonDocument, QuizBlock, QuizItem

logger = logging.getLogger(__name__)

DEFAULT_PASS_PERCENTAGE = 70.0


class Verdict(str, Enum):
    """Per-item evaluation outcome."""

    CORRECT = "correct"
    INCORRECT = "incorrect"
    UNANSWERED = "unanswered"


@dataclass(frozen=True)
class ItemResult:
    """Outcome for one quiz item."""

    item_id: str
    verdict: Verdict
    chosen_index: int | None
    feedback: str | None
    points_awarded: int
    points_possible: int


@dataclass(frozen=True)
class QuizResult:
    """Per-item outcomes plus the aggregate score."""

    items: tuple[ItemResult, ...]
    score: int
    max_score: int

    @property
    def percentage(self) -> float:
        """Score as a percentage (0-100)."""
        if self.max_score <= 0:
            return 0.0
        return round(self.score / self.max_score * 100, 1)

    @property
    def correct_count(self) -> int:
        return len([result for result in self.items if result.verdict is Verdict.CORRECT])

    @property
    def answered_count(self) -> int:
        return len([result for result in self.items if result.verdict is not Verdict.UNANSWERED])

    def passed(self, pass_percentage: float = DEFAULT_PASS_PERCENTAGE) -> bool:
        """Return whether the score reaches the pass mark, compared before rounding."""
        if self.max_score <= 0:
            return False
        return self.score * 100 >= pass_percentage * self.max_score

    def result_for(self, item_id: str) -> ItemResult:
        """Return the outcome for one item."""
        for result in self.items:
            if result.item_id == item_id:
                return result
        raise UnknownItemError(item_id)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready representation."""
        return {
            "score": self.score,
            "max_score": self.max_score,
            "percentage": self.percentage,
            "items": [
                {
                    "item_id": result.item_id,
                    "verdict": result.verdict.value,
                    "chosen_index": result.chosen_index,
                    "feedback": result.feedback,
                    "points_awarded": result.points_awarded,
                    "points_possible": result.points_possible,
                }
                for result in self.items
            ],
        }


def evaluate(quiz_block: QuizBlock, submission: Mapping[str, int | None]) -> QuizResult:
    """Evaluate a submission of item id to 0-based choice index.

    Items missing from the submission, or mapped to None, are unanswered. The whole
    submission is checked before scoring, so a bad entry never produces a partial result.
    """
    items_by_id = {item.id: item for item in quiz_block.items}
    for item_id, choice in submission.items():
        item = items_by_id.get(item_id)
        if item is None:
            raise UnknownItemError(item_id)
        _check_choice(item, choice)

    results = tuple(_item_result(item, submission.get(item.id)) for item in quiz_block.items)
    score = sum(result.points_awarded for result in results)
    result = QuizResult(items=results, score=score, max_score=quiz_block.max_score)
    logger.debug(
        "Evaluated quiz '%s': %d/%d (%d of %d answered)",
        quiz_block.title,
        result.score,
        result.max_score,
        result.answered_count,
        len(results),
    )
    return result


def evaluate_document(document: LessonDocument, submission: Mapping[str, int | None]) -> QuizResult:
    """Evaluate a submission against the lesson's only quiz block."""
    block = document.quiz
    if block is None:
        raise LessonQuizError(f"Lesson '{document.id}' has no quiz.")
    return evaluate(block, submission)


def _check_choice(item: QuizItem, choice: object) -> None:
    """Validate one submitted choice index for an item."""
    if choice is None:
        return
    if not isinstance(choice, int) or isinstance(choice, bool) or not 0 <= choice < len(item.choices):
        raise InvalidChoiceError(item.id, choice, len(item.choices))


def _item_result(item: QuizItem, choice: int | None) -> ItemResult:
    """Build the outcome for one already-validated item answer."""
    if choice is None:
        return ItemResult(
            item_id=item.id,
            verdict=Verdict.UNANSWERED,
            chosen_index=None,
            feedback=None,
            points_awarded=0,
            points_possible=item.points,
        )
    correct = choice == item.correct_index
    return ItemResult(
        item_id=item.id,
        verdict=Verdict.CORRECT if correct else Verdict.INCORRECT,
        chosen_index=choice,
        feedback=item.choices[choice].feedback,
        points_awarded=item.points if correct else 0,
        points_possible=item.points,
    )
