"""Lesson practice session: answer, check, advance, score, restart."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .errors import InvalidInputError, NoAnswerSubmittedError
from .grader import GradeResult, grade_answer

IN_PROGRESS = "in_progress"
COMPLETED = "completed"

CONTINUE = "continue"
COMPLETE = "complete"


@dataclass(frozen=True)
class LessonQuestion:
    question: str
    answers: tuple[str, ...]
    image: str | None = None
    audio: str | None = None


@dataclass(frozen=True)
class QuestionResult:
    question: str
    user_answer: str
    answers: tuple[str, ...]
    correct: bool


class LessonSession:
    """State machine over an ordered list of questions.

    States are ``InProgress(i)`` for every valid index and ``Completed``.
    ``check_answer`` keeps the state, ``advance`` moves to the next index or
    completes, and ``restart`` is the only way out of ``Completed``.

    A session is meant to be driven by one caller at a time (one user's input
    handler); it holds no lock of its own.
    """

    def __init__(self, questions: Sequence[LessonQuestion]) -> None:
        if not questions:
            raise ValueError("a lesson session needs at least one question")
        self._questions: tuple[LessonQuestion, ...] = tuple(questions)
        self._position: int = 0
        self._answers: dict[int, str] = {}
        self._verdicts: dict[int, bool] = {}
        self._grades: dict[int, GradeResult] = {}
        self._completed: bool = False

    # ---------------- read-only state ----------------
    @property
    def questions(self) -> tuple[LessonQuestion, ...]:
        return self._questions

    @property
    def position(self) -> int:
        return self._position

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def state(self) -> str:
        return COMPLETED if self._completed else IN_PROGRESS

    @property
    def current_question(self) -> LessonQuestion | None:
        if self._completed:
            return None
        return self._questions[self._position]

    def __len__(self) -> int:
        return len(self._questions)

    def answer(self, index: int) -> str | None:
        return self._answers.get(index)

    def verdict(self, index: int) -> bool | None:
        return self._verdicts.get(index)

    def grade(self, index: int) -> GradeResult | None:
        return self._grades.get(index)

    def is_checked(self, index: int) -> bool:
        return index in self._verdicts

    # ---------------- transitions ----------------
    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._questions):
            raise IndexError(f"question index {index} out of range 0..{len(self._questions) - 1}")

    def submit_answer(self, index: int, raw_answer: str) -> None:
        """Record the raw answer for ``index`` without grading it."""
        if self._completed:
            raise NoAnswerSubmittedError("session is completed; restart it first")
        self._check_index(index)
        if not isinstance(raw_answer, str):
            raise InvalidInputError("answer must be a string")
        previous = self._answers.get(index)
        self._answers[index] = raw_answer
        if previous != raw_answer:
            self._verdicts.pop(index, None)
            self._grades.pop(index, None)

    def check_answer(self, index: int) -> bool:
        self._check_index(index)
        if index not in self._answers:
            raise NoAnswerSubmittedError(f"no answer submitted for question {index}")
        if index in self._verdicts:
            return self._verdicts[index]
        result = grade_answer(self._answers[index], self._questions[index].answers)
        self._grades[index] = result
        self._verdicts[index] = result.correct
        return result.correct

    def advance(self) -> str:
        if self._completed:
            raise NoAnswerSubmittedError("session is completed; restart it first")
        if self._position not in self._verdicts:
            raise NoAnswerSubmittedError(
                f"question {self._position} must be answered and checked before advancing"
            )
        if self._position + 1 < len(self._questions):
            self._position += 1
            return CONTINUE
        self._position = len(self._questions)
        self._completed = True
        return COMPLETE

    def restart(self) -> None:
        self._position = 0
        self._answers.clear()
        self._verdicts.clear()
        self._grades.clear()
        self._completed = False

    # ---------------- scoring ----------------
    def score(self) -> int:
        return sum(1 for ok in self._verdicts.values() if ok)

    def score_percent(self) -> int:
        return round(self.score() / len(self._questions) * 100)

    def progress_percent(self) -> int:
        done = min(self._position + 1, len(self._questions))
        return round(done / len(self._questions) * 100)

    def results(self) -> list[QuestionResult]:
        out: list[QuestionResult] = []
        for index in sorted(self._verdicts):
            q = self._questions[index]
            out.append(
                QuestionResult(
                    question=q.question,
                    user_answer=self._answers[index],
                    answers=q.answers,
                    correct=self._verdicts[index],
                )
            )
        return out
