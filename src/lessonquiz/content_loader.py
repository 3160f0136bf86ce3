"""Load lesson documents from bundled resources, JSON files, and quiz-annotated markdown."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

from .errors import EmptyDocumentError, LessonQuizError, MalformedItemError
from .models import Choice, CodeSample, LessonDocument, QuizBlock, QuizItem, Section

logger = logging.getLogger(__name__)

CONTENT_PACKAGE = "lessonquiz.content.lessons"
MARKDOWN_SUFFIXES = (".md", ".markdown")
SUPPORTED_SUFFIXES = (".json",) + MARKDOWN_SUFFIXES
QUIZ_FENCE_INFO = "quiz"

_HEADING = re.compile(r"^(#{1,6})\s+(.*?)(?:\s+#+)?\s*$")
_FENCE_OPEN = re.compile(r"^\s*(`{3,}|~{3,})\s*([^`]*)$")
_BULLET = re.compile(r"^(\s*)[-*+]\s+(.*)$")


# Structured (dict / JSON) content


def lesson_from_dict(raw: dict[str, Any], default_id: str = "") -> LessonDocument:
    """Build a validated lesson from structured content."""
    title = str(raw.get("title", "")).strip()
    lesson_id = str(raw.get("id") or default_id or _slugify(title))
    sections = tuple(
        _section_from_dict(lesson_id, _as_mapping(item, f"Lesson '{lesson_id}' section"))
        for item in raw.get("sections") or []
    )
    if not sections:
        raise EmptyDocumentError(f"Lesson '{lesson_id}' has no sections.")

    quizzes_raw = raw.get("quizzes")
    if quizzes_raw is None and raw.get("quiz") is not None:
        quizzes_raw = [raw["quiz"]]
    quizzes = tuple(
        _block_from_dict(_as_mapping(block, f"Lesson '{lesson_id}' quiz block")) for block in quizzes_raw or []
    )
    document = LessonDocument(id=lesson_id, title=title, sections=sections, quizzes=quizzes)
    _log_loaded(document)
    return document


def _section_from_dict(lesson_id: str, raw: dict[str, Any]) -> Section:
    """Build a section from structured content."""
    if "heading" not in raw:
        raise LessonQuizError(f"Lesson '{lesson_id}' has a section without a heading.")
    samples: list[CodeSample] = []
    for entry in raw.get("code_samples", []):
        sample = _as_mapping(entry, f"Lesson '{lesson_id}' code sample")
        samples.append(CodeSample(code=str(sample.get("code", "")), language=str(sample.get("language", "")).strip()))
    return Section(
        heading=str(raw["heading"]).strip(),
        level=_as_level(lesson_id, raw.get("level", 2)),
        body=str(raw.get("body", "")).strip(),
        code_samples=tuple(samples),
    )


def _block_from_dict(raw: dict[str, Any]) -> QuizBlock:
    """Build a quiz block from structured content."""
    items = tuple(
        _item_from_dict(_as_mapping(item, "Quiz item", MalformedItemError)) for item in raw.get("items", [])
    )
    return QuizBlock(items=items, title=str(raw.get("title", "")).strip())


def _item_from_dict(raw: dict[str, Any]) -> QuizItem:
    """Build a quiz item, resolving its correct choice from `answer` or choice flags."""
    if not str(raw.get("id", "")).strip():
        raise MalformedItemError("Quiz item is missing 'id'.")
    item_id = str(raw["id"]).strip()

    choices: list[Choice] = []
    flagged: list[int] = []
    for index, entry in enumerate(raw.get("choices", [])):
        if isinstance(entry, dict):
            choices.append(Choice(text=str(entry.get("text", "")), feedback=str(entry.get("feedback", ""))))
            if entry.get("correct") is True:
                flagged.append(index)
        else:
            choices.append(Choice(text=str(entry)))

    if raw.get("answer") is not None:
        correct_index = _as_int(item_id, "answer", raw["answer"]) - 1
        if flagged and flagged != [correct_index]:
            raise MalformedItemError(f"Quiz item '{item_id}' has an answer that disagrees with its correct flags.")
    elif len(flagged) != 1:
        raise MalformedItemError(
            f"Quiz item '{item_id}' must mark exactly one correct choice (found {len(flagged)})."
        )
    else:
        correct_index = flagged[0]

    title = str(raw.get("title", "")).strip()
    return QuizItem(
        id=item_id,
        prompt=str(raw.get("prompt", "")).strip() or title,
        choices=tuple(choices),
        correct_index=correct_index,
        points=_as_int(item_id, "points", raw.get("points", 1)),
        title=title,
    )


# Markdown with fenced quiz metadata


@dataclass
class _ItemDraft:
    """Quiz item being collected from markdown lines."""

    metadata: dict[str, str]
    line_number: int
    prompt_lines: list[str] = field(default_factory=list)
    choices: list[list[str]] = field(default_factory=list)
    feedback: list[list[list[str]]] = field(default_factory=list)
    base_indent: int | None = None
    last_target: list[str] | None = None


@dataclass
class _SectionDraft:
    """Section being collected from markdown lines."""

    heading: str
    level: int
    body_lines: list[str] = field(default_factory=list)
    code_samples: list[CodeSample] = field(default_factory=list)
    items: list[_ItemDraft] = field(default_factory=list)


def parse_lesson_markdown(text: str, default_id: str = "") -> LessonDocument:
    """Build a validated lesson from markdown annotated with ```quiz metadata fences."""
    lines = text.splitlines()
    front_matter, index = _read_front_matter(lines)
    title = front_matter.get("title", "")
    title_heading_seen = False
    sections: list[_SectionDraft] = []
    item: _ItemDraft | None = None

    def current_section() -> _SectionDraft:
        if not sections:
            sections.append(_SectionDraft(heading=title, level=1))
        return sections[-1]

    while index < len(lines):
        line = lines[index]
        heading = _HEADING.match(line)
        fence = _FENCE_OPEN.match(line)

        if fence:
            code, end = _read_fence(lines, index, fence.group(1))
            info = fence.group(2).strip()
            if info == QUIZ_FENCE_INFO:
                metadata = _parse_key_values(lines[index + 1 : end], index + 1, MalformedItemError)
                item = _ItemDraft(metadata=metadata, line_number=index + 1)
                current_section().items.append(item)
            elif item is not None and not item.choices:
                item.prompt_lines.extend(lines[index : end + 1])
            else:
                item = None
                current_section().code_samples.append(CodeSample(code=code, language=info))
            index = end + 1
            continue

        if heading:
            item = None
            level = len(heading.group(1))
            if level == 1 and not sections and not title_heading_seen:
                title_heading_seen = True
                title = title or heading.group(2)
            else:
                sections.append(_SectionDraft(heading=heading.group(2), level=level))
            index += 1
            continue

        if item is not None:
            if _add_item_line(item, line):
                index += 1
                continue
            item = None

        if line.strip() or sections:
            current_section().body_lines.append(line.rstrip())
        index += 1

    lesson_id = front_matter.get("id") or default_id or _slugify(title)
    built_sections = tuple(
        Section(
            heading=draft.heading,
            level=draft.level,
            body=_join_lines(draft.body_lines),
            code_samples=tuple(draft.code_samples),
        )
        for draft in sections
    )
    quizzes = tuple(
        QuizBlock(items=tuple(_item_from_draft(entry) for entry in draft.items), title=draft.heading)
        for draft in sections
        if draft.items
    )
    document = LessonDocument(id=lesson_id, title=title.strip(), sections=built_sections, quizzes=quizzes)
    _log_loaded(document)
    return document


def _add_item_line(item: _ItemDraft, line: str) -> bool:
    """Feed one line to the quiz item being collected; False once the item has ended."""
    bullet = _BULLET.match(line)
    if bullet:
        indent = len(bullet.group(1))
        if item.base_indent is None:
            item.base_indent = indent
        if indent <= item.base_indent:
            item.last_target = [bullet.group(2).strip()]
            item.choices.append(item.last_target)
            item.feedback.append([])
            return True
        item.last_target = [bullet.group(2).strip()]
        item.feedback[-1].append(item.last_target)
        return True

    if not line.strip():
        if not item.choices:
            item.prompt_lines.append("")
        return True

    if not item.choices:
        item.prompt_lines.append(line.rstrip())
        return True

    if line[:1].isspace() and item.last_target is not None:
        item.last_target.append(line.strip())
        return True
    return False


def _item_from_draft(draft: _ItemDraft) -> QuizItem:
    """Build a quiz item from collected markdown lines."""
    metadata = draft.metadata
    item_id = metadata.get("id", "").strip()
    if not item_id:
        raise MalformedItemError(f"Quiz item on line {draft.line_number} is missing 'id'.")
    if "answer" not in metadata:
        raise MalformedItemError(f"Quiz item '{item_id}' is missing 'answer'.")

    choices = tuple(
        Choice(
            text=" ".join(text_lines),
            feedback="\n".join(" ".join(entry) for entry in feedback),
        )
        for text_lines, feedback in zip(draft.choices, draft.feedback)
    )
    title = metadata.get("title", "")
    return QuizItem(
        id=item_id,
        prompt=_join_lines(draft.prompt_lines) or title,
        choices=choices,
        correct_index=_as_int(item_id, "answer", metadata["answer"]) - 1,
        points=_as_int(item_id, "points", metadata.get("points", "1")),
        title=title,
    )


def _read_front_matter(lines: list[str]) -> tuple[dict[str, str], int]:
    """Return front matter values and the index of the first content line."""
    if not lines or lines[0].strip() != "---":
        return {}, 0
    for end in range(1, len(lines)):
        if lines[end].strip() == "---":
            return _parse_key_values(lines[1:end], 1, LessonQuizError), end + 1
    raise LessonQuizError("Front matter opened on line 1 is never closed.")


def _read_fence(lines: list[str], start: int, marker: str) -> tuple[str, int]:
    """Return fenced content and the index of the closing fence line."""
    for end in range(start + 1, len(lines)):
        closing = lines[end].strip()
        if closing and set(closing) == {marker[0]} and len(closing) >= len(marker):
            return "\n".join(lines[start + 1 : end]), end
    raise LessonQuizError(f"Code fence opened on line {start + 1} is never closed.")


def _parse_key_values(lines: list[str], first_line: int, error: type[LessonQuizError]) -> dict[str, str]:
    """Parse simple `key: value` metadata lines."""
    values: dict[str, str] = {}
    for offset, line in enumerate(lines):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        key, sep, value = stripped.partition(":")
        if not sep or not key.strip():
            raise error(f"Expected 'key: value' metadata on line {first_line + offset + 1}, got {stripped!r}.")
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        key = key.strip().lower()
        if key in values:
            raise error(f"Duplicate metadata key '{key}' on line {first_line + offset + 1}.")
        values[key] = value
    return values


def _join_lines(lines: list[str]) -> str:
    """Join collected lines, collapsing runs of blank lines and trimming the ends."""
    joined: list[str] = []
    for line in lines:
        if not line.strip() and (not joined or not joined[-1].strip()):
            continue
        joined.append(line)
    return "\n".join(joined).strip()


# Files, directories and bundled resources


def load_lesson_file(path: Path | str) -> LessonDocument:
    """Load one lesson file; its id defaults to the file stem."""
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise LessonQuizError(f"Could not read lesson file '{file_path}': {exc}") from exc
    return _lesson_from_text(text, file_path.name)


def load_lessons_from_dir(path: Path | str) -> dict[str, LessonDocument]:
    """Load every supported lesson file in a directory for tests/tools."""
    lessons: dict[str, LessonDocument] = {}
    for file_path in sorted(Path(path).iterdir()):
        if file_path.suffix.lower() in SUPPORTED_SUFFIXES:
            _add_lesson(lessons, load_lesson_file(file_path))
    return lessons


def load_lessons() -> dict[str, LessonDocument]:
    """Load bundled lessons."""
    lessons: dict[str, LessonDocument] = {}
    entries = sorted(resources.files(CONTENT_PACKAGE).iterdir(), key=lambda entry: entry.name)
    for entry in entries:
        if Path(entry.name).suffix.lower() in SUPPORTED_SUFFIXES:
            _add_lesson(lessons, _lesson_from_text(entry.read_text(encoding="utf-8-sig"), entry.name))
    return lessons


def resolve_lesson(reference: str) -> LessonDocument:
    """Return a bundled lesson by id, or load the lesson file at this path."""
    bundled = load_lessons()
    if reference in bundled:
        return bundled[reference]
    path = Path(reference)
    if path.is_file():
        return load_lesson_file(path)
    raise LessonQuizError(f"Unknown lesson: {reference}")


def _lesson_from_text(text: str, name: str) -> LessonDocument:
    """Parse lesson text according to its file name suffix."""
    suffix = Path(name).suffix.lower()
    stem = Path(name).stem
    if suffix == ".json":
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise LessonQuizError(f"Lesson file '{name}' is not valid JSON: {exc}") from exc
        if not isinstance(raw, dict):
            raise LessonQuizError(f"Lesson file '{name}' root must be a JSON object.")
        return lesson_from_dict(raw, default_id=stem)
    if suffix in MARKDOWN_SUFFIXES:
        return parse_lesson_markdown(text, default_id=stem)
    raise LessonQuizError(f"Unsupported lesson file type: {name}")


def _add_lesson(lessons: dict[str, LessonDocument], lesson: LessonDocument) -> None:
    if lesson.id in lessons:
        raise LessonQuizError(f"Duplicate lesson id: {lesson.id}")
    lessons[lesson.id] = lesson


def _as_int(item_id: str, key: str, value: object) -> int:
    """Coerce an integer metadata value or reject the item."""
    if isinstance(value, bool):
        raise MalformedItemError(f"Quiz item '{item_id}' has a non-integer {key}: {value!r}")
    try:
        return int(str(value).strip())
    except ValueError:
        raise MalformedItemError(f"Quiz item '{item_id}' has a non-integer {key}: {value!r}") from None


def _as_level(lesson_id: str, value: object) -> int:
    """Coerce a heading level in 1..6 or reject the section."""
    if not isinstance(value, bool):
        try:
            level = int(str(value).strip())
        except ValueError:
            level = 0
        if 1 <= level <= 6:
            return level
    raise LessonQuizError(f"Lesson '{lesson_id}' has a section with an invalid level: {value!r}")


def _as_mapping(value: object, what: str, error: type[LessonQuizError] = LessonQuizError) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise error(f"{what} must be an object, got {type(value).__name__}.")
    return value


def _slugify(title: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


def _log_loaded(document: LessonDocument) -> None:
    logger.debug(
        "Loaded lesson '%s' with %d sections and %d quiz items",
        document.id,
        len(document.sections),
        document.item_count,
    )
