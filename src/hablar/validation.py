from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from .normalize import fold


@dataclass(frozen=True)
class ValidationIssue:
    severity: str  # "error" | "warning"
    message: str
    lesson_index: int | None = None
    question_index: int | None = None


def has_errors(issues: Iterable[ValidationIssue]) -> bool:
    return any(issue.severity == "error" for issue in issues)


def iter_lessons(lessons_json) -> list[dict]:
    if isinstance(lessons_json, dict):
        lessons = lessons_json.get("lessons")
        if isinstance(lessons, list):
            return lessons
    if isinstance(lessons_json, list):
        return lessons_json
    return []


def _order_issue(item: dict, lesson_idx: int, q_idx: int | None = None) -> ValidationIssue | None:
    if "order_index" not in item:
        return None
    value = item["order_index"]
    if isinstance(value, bool) or not isinstance(value, int):
        return ValidationIssue("error", f"order_index must be an integer, got {value!r}", lesson_idx, q_idx)
    return None


def _validate_answers(answers, lesson_idx: int, q_idx: int) -> list[ValidationIssue]:
    if not isinstance(answers, list) or not answers:
        return [ValidationIssue("error", "question has no accepted answers", lesson_idx, q_idx)]
    issues: list[ValidationIssue] = []
    seen: set[str] = set()
    for raw in answers:
        if not isinstance(raw, str):
            issues.append(ValidationIssue("error", "accepted answer must be a string", lesson_idx, q_idx))
            continue
        folded = fold(raw)
        if not folded:
            issues.append(
                ValidationIssue("error", f"accepted answer {raw!r} is empty after normalization", lesson_idx, q_idx)
            )
            continue
        if folded in seen:
            issues.append(
                ValidationIssue("warning", f"accepted answer {raw!r} duplicates another answer", lesson_idx, q_idx)
            )
        seen.add(folded)
    return issues


def validate_lessons(lessons_json) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    lessons = iter_lessons(lessons_json)
    if not lessons:
        issues.append(ValidationIssue("error", "expected a non-empty list of lessons"))
        return issues

    lesson_orders: Counter = Counter()
    for lesson_idx, lesson in enumerate(lessons, start=1):
        if not isinstance(lesson, dict):
            issues.append(ValidationIssue("error", "lesson is not an object", lesson_idx))
            continue
        if not str(lesson.get("title") or "").strip():
            issues.append(ValidationIssue("error", "lesson has no title", lesson_idx))
        order_issue = _order_issue(lesson, lesson_idx)
        if order_issue:
            issues.append(order_issue)
        else:
            lesson_orders[lesson.get("order_index", lesson_idx)] += 1

        questions = lesson.get("questions")
        if not isinstance(questions, list) or not questions:
            issues.append(ValidationIssue("warning", "lesson has no questions", lesson_idx))
            continue

        question_orders: Counter = Counter()
        for q_idx, item in enumerate(questions, start=1):
            if not isinstance(item, dict):
                issues.append(ValidationIssue("error", "question is not an object", lesson_idx, q_idx))
                continue
            if not str(item.get("question") or "").strip():
                issues.append(ValidationIssue("error", "question has no text", lesson_idx, q_idx))
            order_issue = _order_issue(item, lesson_idx, q_idx)
            if order_issue:
                issues.append(order_issue)
            else:
                question_orders[item.get("order_index", q_idx)] += 1
            issues.extend(_validate_answers(item.get("answers"), lesson_idx, q_idx))

        for order, count in sorted(question_orders.items(), key=lambda kv: str(kv[0])):
            if count > 1:
                issues.append(
                    ValidationIssue("warning", f"duplicate question order_index={order}", lesson_idx)
                )

    for order, count in sorted(lesson_orders.items(), key=lambda kv: str(kv[0])):
        if count > 1:
            issues.append(ValidationIssue("warning", f"duplicate lesson order_index={order}"))
    return issues


def format_issue(issue: ValidationIssue) -> str:
    where = []
    if issue.lesson_index is not None:
        where.append(f"lesson {issue.lesson_index}")
    if issue.question_index is not None:
        where.append(f"question {issue.question_index}")
    prefix = f"{', '.join(where)}: " if where else ""
    return f"{issue.severity.upper()}: {prefix}{issue.message}"
