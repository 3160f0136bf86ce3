"""lessonquiz package: lesson documents with embedded, scoreable quizzes."""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from .content_loader import load_lesson_file, load_lessons, parse_lesson_markdown
from .errors import EmptyDocumentError, InvalidChoiceError, LessonQuizError, MalformedItemError, UnknownItemError
from .evaluator import QuizResult, Verdict, evaluate
from .models import Choice, LessonDocument, QuizBlock, QuizItem, Section

__all__ = [
    "Choice",
    "EmptyDocumentError",
    "InvalidChoiceError",
    "LessonDocument",
    "LessonQuizError",
    "MalformedItemError",
    "QuizBlock",
    "QuizItem",
    "QuizResult",
    "Section",
    "UnknownItemError",
    "Verdict",
    "__version__",
    "evaluate",
    "load_lesson_file",
    "load_lessons",
    "parse_lesson_markdown",
]


def _source_version() -> str:
    """Read [project].version from the checkout this package runs from."""
    pyproject = Path(__file__).resolve().parents[2] / "pyproject.toml"
    if pyproject.is_file():
        with pyproject.open("rb") as handle:
            return str(tomllib.load(handle).get("project", {}).get("version", "0+unknown"))
    return "0+unknown"


try:
    __version__ = version("lessonquiz")
except PackageNotFoundError:
    __version__ = _source_version()
