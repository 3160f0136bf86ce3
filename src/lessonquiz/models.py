"""Core content models for lessons and their embedded quizzes."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import EmptyDocumentError, LessonQuizError, MalformedItemError, UnknownItemError


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class Choice:
    """One answer choice with the feedback shown when it is picked."""

    text: str
    feedback: str = ""


@dataclass(frozen=True)
class QuizItem:
    """One multiple-choice question with exactly one correct choice."""

    id: str
    prompt: str
    choices: tuple[Choice, ...]
    correct_index: int
    points: int = 1
    title: str = ""

    def __post_init__(self) -> None:
        """Reject items that break authoring invariants."""
        if not self.id.strip():
            raise MalformedItemError("Quiz item has a blank id.")
        if not self.prompt.strip():
            raise MalformedItemError(f"Quiz item '{self.id}' has no prompt.")
        if not self.choices:
            raise MalformedItemError(f"Quiz item '{self.id}' has no choices.")
        if not _is_int(self.correct_index) or not 0 <= self.correct_index < len(self.choices):
            raise MalformedItemError(
                f"Quiz item '{self.id}' marks choice {self.correct_index!r} correct "
                f"but has {len(self.choices)} choices."
            )
        if not _is_int(self.points) or self.points <= 0:
            raise MalformedItemError(f"Quiz item '{self.id}' must be worth a positive integer of points.")

    @property
    def correct_choice(self) -> Choice:
        """Return the choice marked correct."""
        return self.choices[self.correct_index]


@dataclass(frozen=True)
class QuizBlock:
    """Ordered group of quiz items evaluated together."""

    items: tuple[QuizItem, ...]
    title: str = ""

    def __post_init__(self) -> None:
        """Reject empty blocks and duplicate item ids."""
        if not self.items:
            raise MalformedItemError(f"Quiz block '{self.title}' has no items.")
        seen: set[str] = set()
        for item in self.items:
            if item.id in seen:
                raise MalformedItemError(f"Duplicate quiz item id: {item.id}")
            seen.add(item.id)

    @property
    def item_ids(self) -> tuple[str, ...]:
        return tuple(item.id for item in self.items)

    @property
    def max_score(self) -> int:
        return sum(item.points for item in self.items)

    def item(self, item_id: str) -> QuizItem:
        """Return the item with this id."""
        for item in self.items:
            if item.id == item_id:
                return item
        raise UnknownItemError(item_id)


@dataclass(frozen=True)
class CodeSample:
    """Verbatim code snippet shown inside a section."""

    code: str
    language: str = ""


@dataclass(frozen=True)
class Section:
    """Headed block of lesson prose and code samples."""

    heading: str
    level: int = 2
    body: str = ""
    code_samples: tuple[CodeSample, ...] = ()


@dataclass(frozen=True)
class LessonDocument:
    """Ordered lesson content plus any quiz blocks it embeds."""

    id: str
    title: str
    sections: tuple[Section, ...]
    quizzes: tuple[QuizBlock, ...] = ()

    def __post_init__(self) -> None:
        """Reject untitled or empty documents and item ids reused across blocks."""
        if not self.title.strip():
            raise EmptyDocumentError(f"Lesson '{self.id}' has no title.")
        if not self.sections:
            raise EmptyDocumentError(f"Lesson '{self.id}' has no sections.")
        seen: set[str] = set()
        for block in self.quizzes:
            for item_id in block.item_ids:
                if item_id in seen:
                    raise MalformedItemError(f"Duplicate quiz item id in lesson '{self.id}': {item_id}")
                seen.add(item_id)

    @property
    def quiz(self) -> QuizBlock | None:
        """Return the lesson's only quiz block, or None when it has none."""
        if not self.quizzes:
            return None
        if len(self.quizzes) > 1:
            raise LessonQuizError(f"Lesson '{self.id}' has {len(self.quizzes)} quiz blocks.")
        return self.quizzes[0]

    @property
    def item_count(self) -> int:
        return sum(len(block.items) for block in self.quizzes)

    def find_item(self, item_id: str) -> QuizItem:
        """Return a quiz item from any block of this lesson."""
        for block in self.quizzes:
            for item in block.items:
                if item.id == item_id:
                    return item
        raise UnknownItemError(item_id)
