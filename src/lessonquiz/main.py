"""CLI entrypoint for browsing lessons and taking their quizzes."""

from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Callable
from pathlib import Path

from .content_loader import load_lessons, resolve_lesson
from .errors import LessonQuizError
from .evaluator import DEFAULT_PASS_PERCENTAGE, QuizResult, Verdict, evaluate
from .models import LessonDocument, QuizBlock

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
FLOW_EXIT_COMMANDS = {":quit", ":exit", ":q"}

EXIT_PASSED = 0
EXIT_FAILED = 1
EXIT_ERROR = 2

VERDICT_LABELS = {Verdict.CORRECT: "correct", Verdict.INCORRECT: "incorrect", Verdict.UNANSWERED: "skipped"}


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lessonquiz", description="Lessons with embedded multiple-choice quizzes")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details to stderr")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="List bundled lessons")

    show = commands.add_parser("show", help="Print a lesson outline")
    show.add_argument("lesson", help="Bundled lesson id or path to a lesson file")

    take = commands.add_parser("take", help="Take a lesson's quiz interactively")
    take.add_argument("lesson", help="Bundled lesson id or path to a lesson file")
    take.add_argument("--pass-percentage", type=float, default=DEFAULT_PASS_PERCENTAGE)

    grade = commands.add_parser("grade", help="Grade a JSON answers file and print the result")
    grade.add_argument("lesson", help="Bundled lesson id or path to a lesson file")
    grade.add_argument("answers", type=Path, help="JSON object mapping item id to 0-based choice index")
    grade.add_argument("--pass-percentage", type=float, default=DEFAULT_PASS_PERCENTAGE)
    return parser


def run(argv: list[str] | None = None, input_fn: InputFn = input, print_fn: PrintFn = print) -> int:
    """Run the CLI application."""
    args = _parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "list":
            return _list_flow(print_fn)
        lesson = resolve_lesson(args.lesson)
        if args.command == "show":
            return _show_flow(lesson, print_fn)
        if args.command == "take":
            return _take_flow(lesson, args.pass_percentage, input_fn, print_fn)
        return _grade_flow(lesson, args.answers, args.pass_percentage, print_fn)
    except LessonQuizError as exc:
        print_fn(f"Error: {exc}")
        return EXIT_ERROR


def _list_flow(print_fn: PrintFn) -> int:
    """Print bundled lessons."""
    lessons = load_lessons()
    if not lessons:
        print_fn("No bundled lessons.")
        return EXIT_PASSED
    id_width = max(len("Lesson"), max(len(lesson_id) for lesson_id in lessons))
    header = f"{'Lesson':<{id_width}} {'Items':>5} Title"
    print_fn(header)
    print_fn("-" * len(header))
    for lesson_id, lesson in lessons.items():
        print_fn(f"{lesson_id:<{id_width}} {lesson.item_count:>5} {lesson.title}")
    return EXIT_PASSED


def _show_flow(lesson: LessonDocument, print_fn: PrintFn) -> int:
    """Print the lesson outline."""
    print_fn(f"\n=== {lesson.title} ===")
    for section in lesson.sections:
        indent = "  " * max(section.level - 2, 0)
        samples = len(section.code_samples)
        suffix = f" ({samples} code sample{'s' if samples != 1 else ''})" if samples else ""
        print_fn(f"{indent}- {section.heading}{suffix}")
    for block in lesson.quizzes:
        print_fn(f"Quiz '{block.title}': {len(block.items)} items, {block.max_score} points")
    return EXIT_PASSED


def _take_flow(lesson: LessonDocument, pass_percentage: float, input_fn: InputFn, print_fn: PrintFn) -> int:
    """Ask every quiz item, then print the score."""
    if not lesson.quizzes:
        print_fn(f"Lesson '{lesson.id}' has no quiz.")
        return EXIT_ERROR

    print_fn(f"\n=== {lesson.title} ===")
    print_fn("Enter a choice number, press Enter to skip, or :q to finish early.")
    passed = True
    stopped = False
    for block in lesson.quizzes:
        answers: dict[str, int | None] = {}
        if not stopped:
            stopped = _ask_block(block, answers, input_fn, print_fn)
        result = evaluate(block, answers)
        _print_result(block, result, print_fn)
        passed = passed and result.passed(pass_percentage)
    print_fn("PASSED" if passed else "FAILED")
    return EXIT_PASSED if passed else EXIT_FAILED


def _ask_block(block: QuizBlock, answers: dict[str, int | None], input_fn: InputFn, print_fn: PrintFn) -> bool:
    """Collect 0-based answers for one block; return True when the learner stops early."""
    if block.title:
        print_fn(f"\n--- {block.title} ---")
    for number, item in enumerate(block.items, start=1):
        print_fn(f"\nQ{number}. {item.prompt} ({item.points} pt{'s' if item.points != 1 else ''})")
        for index, choice in enumerate(item.choices, start=1):
            print_fn(f"  {index}) {choice.text}")
        while True:
            raw = input_fn("Answer: ").strip().lower()
            if raw in FLOW_EXIT_COMMANDS:
                return True
            if not raw:
                break
            if raw.isdecimal() and raw.isascii() and 1 <= int(raw) <= len(item.choices):
                answers[item.id] = int(raw) - 1
                feedback = item.choices[int(raw) - 1].feedback
                if feedback:
                    print_fn(feedback)
                break
            print_fn(f"Enter a number from 1 to {len(item.choices)}.")
    return False


def _print_result(block: QuizBlock, result: QuizResult, print_fn: PrintFn) -> None:
    print_fn("")
    for item, item_result in zip(block.items, result.items):
        print_fn(f"{item.id}: {VERDICT_LABELS[item_result.verdict]} ({item_result.points_awarded}/{item.points})")
    print_fn(f"Score: {result.score}/{result.max_score} ({result.percentage:.1f}%)")


def _grade_flow(lesson: LessonDocument, answers_path: Path, pass_percentage: float, print_fn: PrintFn) -> int:
    """Grade an answers file against the lesson quiz and print JSON."""
    block = lesson.quiz
    if block is None:
        raise LessonQuizError(f"Lesson '{lesson.id}' has no quiz.")
    try:
        raw: object = json.loads(answers_path.read_text(encoding="utf-8-sig"))
    except json.JSONDecodeError as exc:
        raise LessonQuizError(f"Answers file is not valid JSON: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise LessonQuizError(f"Could not read answers file '{answers_path}': {exc}") from exc
    if not isinstance(raw, dict):
        raise LessonQuizError("Answers file root must be a JSON object.")
    result = evaluate(block, raw)
    payload = result.to_dict()
    payload["passed"] = result.passed(pass_percentage)
    print_fn(json.dumps(payload, indent=2))
    return EXIT_PASSED if payload["passed"] else EXIT_FAILED


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
