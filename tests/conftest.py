from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from lessonquiz.models import Choice, QuizBlock, QuizItem  # noqa: E402


@pytest.fixture
def abc_block() -> QuizBlock:
    """One-item block: choices A/B/C, B correct, worth one point."""
    item = QuizItem(
        id="q1",
        prompt="Pick B",
        choices=(Choice("A", "Not A."), Choice("B", "Yes, B."), Choice("C", "Not C.")),
        correct_index=1,
        points=1,
    )
    return QuizBlock(items=(item,))


@pytest.fixture
def two_item_block() -> QuizBlock:
    first = QuizItem(id="a", prompt="First?", choices=(Choice("x"), Choice("y")), correct_index=0, points=2)
    second = QuizItem(
        id="b", prompt="Second?", choices=(Choice("x"), Choice("y"), Choice("z")), correct_index=2, points=3
    )
    return QuizBlock(items=(first, second), title="Check")
