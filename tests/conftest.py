from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

# Keep src/ importable when the package is not installed.
ROOT = TESTS_DIR.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from fixtures import (  # noqa: E402
    FakeOpenAIClient,
    sample_content,
)
from study_quiz.core.workspace import WORKSPACE_ENV  # noqa: E402
from study_quiz.quizzer.content import QuizContent  # noqa: E402

_QUIZ_ENV_VARS = (
    "STUDY_QUIZ_CONFIG",
    "STUDY_QUIZ_MODEL",
    "STUDY_QUIZ_LANGUAGE",
    "STUDY_QUIZ_LOG_LEVEL",
)


@pytest.fixture
def fake_openai() -> FakeOpenAIClient:
    """A fresh fake client to queue responses and inspect requests."""

    return FakeOpenAIClient()


@pytest.fixture
def data_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the workspace at a tmp dir and clear quiz env overrides."""

    home = tmp_path / "data-home"
    monkeypatch.setenv(WORKSPACE_ENV, str(home))
    for name in _QUIZ_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def content() -> QuizContent:
    return sample_content()


@pytest.fixture(autouse=True)
def _reset_quizzer_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("study_quiz.quizzer")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
