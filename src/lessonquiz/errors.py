"""Errors raised while loading lesson content and evaluating quiz submissions."""

from __future__ import annotations


class LessonQuizError(ValueError):
    """Base error for lesson content and quiz evaluation defects."""


class MalformedItemError(LessonQuizError):
    """A quiz item or quiz block violates its authoring invariants."""


class EmptyDocumentError(LessonQuizError):
    """A lesson document has no title or no sections."""


class UnknownItemError(LessonQuizError):
    """A submission or lookup references an item id the quiz does not contain."""

    def __init__(self, item_id: object) -> None:
        super().__init__(f"Unknown quiz item id: {item_id!r}")
        self.item_id = item_id


class InvalidChoiceError(LessonQuizError):
    """A submitted choice is not a valid index into the item's choices."""

    def __init__(self, item_id: str, choice: object, choice_count: int) -> None:
        super().__init__(
            f"Invalid choice {choice!r} for item '{item_id}' (expected 0..{choice_count - 1})."
        )
        self.item_id = item_id
        self.choice = choice
