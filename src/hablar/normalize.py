from __future__ import annotations
import re
import unicodedata
from typing import NamedTuple

from .errors import InvalidInputError

# . , ; ! ¡ ¿ ? - and plain space
_STRIP_RE = re.compile(r"[.,;!¡¿? \-]")
_COMBINING_RE = re.compile(r"[\u0300-\u036f]")

# NFD does not split these in every normalization table
_RESIDUAL_MAP = {
    "ñ": "n",
    "ü": "u",
}


class Normalized(NamedTuple):
    folded: str       # lowercase, punctuation stripped, accents kept
    deaccented: str   # folded with diacritics removed


def _require_str(s: object) -> str:
    if not isinstance(s, str):
        raise InvalidInputError(f"expected a string, got {type(s).__name__}")
    return s


def fold(s: str) -> str:
    s = _require_str(s)
    if not s:
        return ""
    s = unicodedata.normalize("NFC", s)
    s = s.lower()
    s = _STRIP_RE.sub("", s)
    return unicodedata.normalize("NFC", s)


def deaccent(s: str) -> str:
    s = _require_str(s)
    if not s:
        return ""
    s = unicodedata.normalize("NFD", s)
    s = _COMBINING_RE.sub("", s)
    for src, dst in _RESIDUAL_MAP.items():
        s = s.replace(src, dst)
    return s


def normalize(raw: str) -> Normalized:
    """Fold a raw answer into the two views used for grading.

    ``folded`` keeps diacritics so that accents can be compared position by
    position; ``deaccented`` is what the base equality check runs on.
    """
    folded = fold(raw)
    return Normalized(folded, deaccent(folded))


def has_accent(ch: str) -> bool:
    return deaccent(ch) != ch


def accent_marks(text: str) -> list[bool]:
    """Per-character accent status of an already folded string."""
    return [has_accent(ch) for ch in _require_str(text)]
