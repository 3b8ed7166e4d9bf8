from __future__ import annotations


class GradingError(Exception):
    """Base class for answer grading and lesson session errors."""


class InvalidInputError(GradingError, TypeError):
    """A string was expected but something else (usually None) was given."""


class EmptyAnswerSetError(GradingError, ValueError):
    """A question has no accepted answers to grade against."""


class NoAnswerSubmittedError(GradingError, RuntimeError):
    """A session operation was called out of order."""
