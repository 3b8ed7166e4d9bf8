from __future__ import annotations
from dataclasses import dataclass, field
import logging
from typing import Sequence

from .errors import EmptyAnswerSetError
from .normalize import Normalized, has_accent, normalize

logger = logging.getLogger(__name__)


@dataclass
class GradeResult:
    correct: bool
    user_answer_norm: str
    canonical: str                 # shown correct answer
    matched: str | None = None     # accepted answer that matched
    missing_accents: list[int] = field(default_factory=list)

    @property
    def accent_hint(self) -> bool:
        return self.correct and bool(self.missing_accents)


@dataclass(frozen=True)
class CharDiagnostic:
    index: int
    user_char: str
    expected_char: str
    status: str  # ok | missing_accent | extra_accent | mismatch | missing | extra


def _require_answers(accepted_answers: Sequence[str]) -> list[str]:
    answers = list(accepted_answers or [])
    if not answers:
        raise EmptyAnswerSetError("question has no accepted answers")
    return answers


def _compare(user: Normalized, candidate: Normalized) -> list[int] | None:
    """Return the positions where the user omitted an accent, or None on reject."""
    if user.deaccented != candidate.deaccented:
        return None
    if len(user.folded) != len(candidate.folded):
        # equal after deaccenting but not position-aligned
        logger.debug(
            "grade_reject reason=length_mismatch user_len=%s candidate_len=%s",
            len(user.folded),
            len(candidate.folded),
        )
        return None
    missing: list[int] = []
    for i, (uc, cc) in enumerate(zip(user.folded, candidate.folded)):
        user_accented = has_accent(uc)
        expected_accented = has_accent(cc)
        if expected_accented and not user_accented:
            missing.append(i)
        elif user_accented and not expected_accented:
            logger.debug("grade_reject reason=extra_accent index=%s", i)
            return None
    return missing


def grade_answer(user_answer: str, accepted_answers: Sequence[str]) -> GradeResult:
    answers = _require_answers(accepted_answers)
    user = normalize(user_answer)
    canonical = answers[0].strip()
    for candidate in answers:
        missing = _compare(user, normalize(candidate))
        if missing is not None:
            return GradeResult(True, user.folded, canonical, candidate, missing)
    return GradeResult(False, user.folded, canonical)


def is_correct(user_answer: str, accepted_answers: Sequence[str]) -> bool:
    return grade_answer(user_answer, accepted_answers).correct


def diagnose(user_answer: str, candidate: str) -> list[CharDiagnostic]:
    """Character-by-character report of a user answer against one accepted answer.

    Positions refer to the folded forms, so punctuation, spaces and case have
    already been removed from both sides.
    """
    user = normalize(user_answer).folded
    expected = normalize(candidate).folded
    out: list[CharDiagnostic] = []
    for i in range(max(len(user), len(expected))):
        uc = user[i] if i < len(user) else ""
        ec = expected[i] if i < len(expected) else ""
        if not uc:
            status = "missing"
        elif not ec:
            status = "extra"
        elif uc == ec:
            status = "ok"
        elif normalize(uc).deaccented != normalize(ec).deaccented:
            status = "mismatch"
        elif has_accent(ec) and not has_accent(uc):
            status = "missing_accent"
        elif has_accent(uc) and not has_accent(ec):
            status = "extra_accent"
        else:
            # both accented, different marks (e.g. è vs é)
            status = "mismatch"
        out.append(CharDiagnostic(i, uc, ec, status))
    return out
