from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Lesson, LessonProgress, PracticeQuestion, utcnow
from .session import LessonQuestion
from .validation import has_errors, iter_lessons, validate_lessons

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LessonSummary:
    id: int
    title: str
    description: str
    order_index: int
    question_count: int
    image: str | None = None


def parse_answers(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    try:
        val = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("answers_json_invalid raw=%r", raw[:80])
        return ()
    if not isinstance(val, list):
        return ()
    return tuple(str(x) for x in val if isinstance(x, str))


def to_lesson_question(row: PracticeQuestion) -> LessonQuestion:
    return LessonQuestion(
        question=row.question,
        answers=parse_answers(row.answers_json),
        image=row.image or None,
        audio=row.audio or None,
    )


def media_url(path: str | None, base_url: str) -> str | None:
    """Resolve a storage path to a public URL; absolute URLs pass through."""
    if not path:
        return None
    if path.startswith(("http://", "https://")):
        return path
    if not base_url:
        return None
    return base_url.rstrip("/") + "/" + path.lstrip("/")


async def list_lessons(s: AsyncSession) -> list[LessonSummary]:
    counts = (
        select(PracticeQuestion.lesson_id, func.count(PracticeQuestion.id).label("n"))
        .group_by(PracticeQuestion.lesson_id)
        .subquery()
    )
    q = (
        select(Lesson, func.coalesce(counts.c.n, 0))
        .outerjoin(counts, counts.c.lesson_id == Lesson.id)
        .order_by(Lesson.order_index.asc(), Lesson.id.asc())
    )
    rows = (await s.execute(q)).all()
    return [
        LessonSummary(
            id=lesson.id,
            title=lesson.title,
            description=lesson.description or "",
            order_index=lesson.order_index,
            question_count=int(n),
            image=lesson.image,
        )
        for lesson, n in rows
    ]


async def load_lesson(s: AsyncSession, lesson_id: int) -> Lesson | None:
    return await s.get(Lesson, lesson_id)


async def load_questions(s: AsyncSession, lesson_id: int) -> list[LessonQuestion]:
    q = (
        select(PracticeQuestion)
        .where(PracticeQuestion.lesson_id == lesson_id)
        .order_by(PracticeQuestion.order_index.asc(), PracticeQuestion.id.asc())
    )
    rows = (await s.execute(q)).scalars().all()
    return [to_lesson_question(row) for row in rows]


async def completed_lesson_ids(s: AsyncSession, user_id: int) -> set[int]:
    q = select(LessonProgress.lesson_id).where(
        LessonProgress.user_id == user_id,
        LessonProgress.is_completed.is_(True),
    )
    return set((await s.execute(q)).scalars().all())


async def record_progress(
    s: AsyncSession,
    *,
    user_id: int,
    lesson_id: int,
    score: int,
    total: int,
) -> LessonProgress:
    q = select(LessonProgress).where(
        LessonProgress.user_id == user_id,
        LessonProgress.lesson_id == lesson_id,
    )
    progress = (await s.execute(q)).scalar_one_or_none()
    if progress is None:
        progress = LessonProgress(user_id=user_id, lesson_id=lesson_id, best_score=0)
        s.add(progress)
    progress.is_completed = True
    progress.score = score
    progress.total = total
    progress.best_score = max(progress.best_score or 0, score)
    progress.updated_at = utcnow()
    await s.commit()
    logger.info(
        "lesson_completed user_id=%s lesson_id=%s score=%s total=%s best=%s",
        user_id,
        lesson_id,
        score,
        total,
        progress.best_score,
    )
    return progress


class LessonImportError(ValueError):
    def __init__(self, issues) -> None:
        self.issues = list(issues)
        errors = [i.message for i in self.issues if i.severity == "error"]
        super().__init__(f"lesson payload has {len(errors)} error(s): " + "; ".join(errors[:5]))


def _check_payload(payload) -> None:
    issues = validate_lessons(payload)
    if has_errors(issues):
        raise LessonImportError(issues)
    for issue in issues:
        logger.warning(
            "lesson_import_warning lesson=%s question=%s message=%s",
            issue.lesson_index,
            issue.question_index,
            issue.message,
        )


def _build_lessons(payload, order_offset: int = 0) -> list[Lesson]:
    lessons: list[Lesson] = []
    for lesson_idx, data in enumerate(iter_lessons(payload), start=1):
        lesson = Lesson(
            title=str(data["title"]).strip(),
            description=str(data.get("description") or ""),
            order_index=int(data.get("order_index", order_offset + lesson_idx)),
            image=data.get("image") or None,
        )
        for q_idx, item in enumerate(data.get("questions") or [], start=1):
            lesson.questions.append(
                PracticeQuestion(
                    order_index=int(item.get("order_index", q_idx)),
                    question=str(item["question"]).strip(),
                    answers_json=json.dumps(item["answers"], ensure_ascii=False),
                    image=item.get("image") or None,
                    audio=item.get("audio") or None,
                )
            )
        lessons.append(lesson)
    return lessons


async def add_lessons(s: AsyncSession, payload) -> int:
    """Append the lessons in ``payload``; existing lessons and progress stay.

    Lessons without an ``order_index`` are placed after the current last one.
    """
    _check_payload(payload)
    last = (await s.execute(select(func.max(Lesson.order_index)))).scalar_one_or_none() or 0
    lessons = _build_lessons(payload, order_offset=last)
    s.add_all(lessons)
    await s.commit()
    logger.info("lessons_added count=%s", len(lessons))
    return len(lessons)


async def replace_lessons(s: AsyncSession, payload) -> int:
    """Replace every lesson and question with the ones in ``payload``.

    Learner progress is deleted with the lessons it refers to.
    """
    _check_payload(payload)
    lessons = _build_lessons(payload)
    await s.execute(delete(LessonProgress))
    await s.execute(delete(PracticeQuestion))
    await s.execute(delete(Lesson))
    s.add_all(lessons)
    await s.commit()
    logger.info("lessons_imported count=%s", len(lessons))
    return len(lessons)
