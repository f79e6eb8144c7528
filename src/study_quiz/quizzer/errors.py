"""Exception hierarchy for quiz generation and sessions."""

from __future__ import annotations

__all__ = [
    "QuizError",
    "ContentError",
    "EmptyContentError",
    "MalformedContentError",
    "ConfigurationError",
    "InvalidOperationError",
    "GenerationError",
    "GenerationBusyError",
]


class QuizError(RuntimeError):
    """Base class for every quiz-domain failure."""


class ContentError(QuizError):
    """Generated quiz content could not be turned into a usable quiz."""


class EmptyContentError(ContentError):
    """The payload held no usable multiple-choice questions."""


class MalformedContentError(ContentError):
    """The payload was not a JSON object of question lists."""


class ConfigurationError(QuizError):
    """A session was built from content with no questions."""


class InvalidOperationError(QuizError):
    """A session transition was requested in a state that does not allow it."""


class GenerationError(QuizError):
    """The external generation call failed."""


class GenerationBusyError(GenerationError):
    """A generation request is already in flight for this generator."""
