"""Shared testing fixtures and fakes for the study_quiz test suite."""

from .openai import FakeOpenAIClient, FakeOpenAIFactory  # noqa: F401
from .quiz import (  # noqa: F401
    mcq,
    quiz_json,
    quiz_payload,
    sample_content,
    tfq,
)

__all__ = [
    "FakeOpenAIClient",
    "FakeOpenAIFactory",
    "mcq",
    "quiz_json",
    "quiz_payload",
    "sample_content",
    "tfq",
]
