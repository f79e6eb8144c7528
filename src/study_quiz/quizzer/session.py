"""Quiz session state machine and scoring.

A :class:`QuizSession` walks one attempt through a :class:`QuizContent`:

* ``ANSWERING`` - the current question waits for an answer.
* ``REVEALED`` - the answer is recorded and feedback may be shown.
* ``FINISHED`` - the learner advanced past the last question.

Only :meth:`QuizSession.submit_answer`, :meth:`QuizSession.advance` and
:meth:`QuizSession.reset` change state. Each of them either applies fully or
raises before touching anything, so score and history never drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .content import (
    MultipleChoiceQuestion,
    Question,
    QuizContent,
    TrueFalseQuestion,
)
from .errors import ConfigurationError, InvalidOperationError

__all__ = [
    "AnswerValue",
    "AnsweredRecord",
    "FeedbackTier",
    "OptionStatus",
    "QuizReport",
    "QuizSession",
    "SessionSnapshot",
    "SessionStatus",
    "feedback_tier",
    "is_correct",
    "score_percentage",
]

AnswerValue = Union[int, bool]


class SessionStatus(Enum):
    ANSWERING = "answering"
    REVEALED = "revealed"
    FINISHED = "finished"


class OptionStatus(Enum):
    """How an answer option should be drawn for the current question."""

    NEUTRAL = "neutral"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    MUTED = "muted"


class FeedbackTier(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    NEEDS_IMPROVEMENT = "needs_improvement"

    @property
    def message(self) -> str:
        return _TIER_MESSAGES[self]


_TIER_MESSAGES = {
    FeedbackTier.EXCELLENT: "Excellent! You really know this material.",
    FeedbackTier.GOOD: "Good job! You have a solid grasp of the content.",
    FeedbackTier.FAIR: "Fair. A quick review would help.",
    FeedbackTier.NEEDS_IMPROVEMENT: (
        "Keep going. Review the material and try again."
    ),
}

# Checked in order; first threshold reached wins.
_TIER_THRESHOLDS = (
    (90, FeedbackTier.EXCELLENT),
    (70, FeedbackTier.GOOD),
    (50, FeedbackTier.FAIR),
)


@dataclass(frozen=True)
class AnsweredRecord:
    """One entry of the answer log."""

    question_text: str
    was_correct: bool


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of the session for a single render."""

    status: SessionStatus
    position: int
    total: int
    current_question: Optional[Question]
    current_selection: Optional[AnswerValue]
    is_revealed: bool
    score: int


@dataclass(frozen=True)
class QuizReport:
    """Final results of a finished session."""

    final_score: int
    total: int
    percentage: int
    feedback_tier: FeedbackTier
    history: tuple[AnsweredRecord, ...]


def is_correct(question: Question, value: object) -> bool:
    """Return whether ``value`` answers ``question``.

    Multiple-choice answers must be plain ints (``bool`` is rejected even
    though it subclasses ``int``); true/false answers must be bools.
    """

    if isinstance(question, MultipleChoiceQuestion):
        return (
            isinstance(value, int)
            and not isinstance(value, bool)
            and value == question.correct_index
        )
    if isinstance(question, TrueFalseQuestion):
        return isinstance(value, bool) and value is question.correct_value
    raise TypeError(f"Unsupported question type: {type(question).__name__}")


def score_percentage(score: int, total: int) -> int:
    """Return ``100 * score / total`` rounded half up."""

    if total <= 0:
        raise ValueError("total must be positive")
    return (200 * score + total) // (2 * total)


def feedback_tier(percentage: int) -> FeedbackTier:
    for threshold, tier in _TIER_THRESHOLDS:
        if percentage >= threshold:
            return tier
    return FeedbackTier.NEEDS_IMPROVEMENT


class QuizSession:
    """Mutable state for one attempt at a quiz."""

    def __init__(self, content: QuizContent) -> None:
        self._load(content)

    # State -----------------------------------------------------------------

    @property
    def content(self) -> QuizContent:
        return self._content

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def total(self) -> int:
        return len(self._questions)

    @property
    def position(self) -> int:
        return self._position

    @property
    def score(self) -> int:
        return self._score

    @property
    def current_selection(self) -> Optional[AnswerValue]:
        return self._selection

    @property
    def is_revealed(self) -> bool:
        return self._status is SessionStatus.REVEALED

    @property
    def is_finished(self) -> bool:
        return self._status is SessionStatus.FINISHED

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def history(self) -> tuple[AnsweredRecord, ...]:
        return tuple(self._history)

    @property
    def current_question(self) -> Optional[Question]:
        if self.is_finished:
            return None
        return self._questions[self._position]

    @property
    def is_last_question(self) -> bool:
        return self._position == self.total - 1

    # Transitions -----------------------------------------------------------

    def submit_answer(self, value: AnswerValue) -> bool:
        """Record ``value`` for the current question and reveal feedback.

        Returns whether the answer was correct. Raises
        :class:`InvalidOperationError` once the question is already answered
        or the session is finished.
        """

        if self._status is not SessionStatus.ANSWERING:
            raise InvalidOperationError(
                f"Cannot submit an answer while {self._status.value}."
            )
        question = self._questions[self._position]
        correct = is_correct(question, value)
        self._selection = value
        if correct:
            self._score += 1
        self._history.append(AnsweredRecord(question.question, correct))
        self._status = SessionStatus.REVEALED
        return correct

    def advance(self) -> None:
        """Move past a revealed question, finishing after the last one."""

        if self._status is not SessionStatus.REVEALED:
            raise InvalidOperationError(
                f"Cannot advance while {self._status.value}."
            )
        self._selection = None
        if self.is_last_question:
            self._position = self.total
            self._status = SessionStatus.FINISHED
            return
        self._position += 1
        self._status = SessionStatus.ANSWERING

    def reset(self, content: Optional[QuizContent] = None) -> None:
        """Start over, optionally with freshly generated ``content``."""

        self._load(content if content is not None else self._content)

    # Views -----------------------------------------------------------------

    def option_status(self, option: AnswerValue) -> OptionStatus:
        """Classify ``option`` of the current question for rendering."""

        question = self.current_question
        if question is None or not self.is_revealed:
            return OptionStatus.NEUTRAL
        if _same_answer(option, question.correct_answer):
            return OptionStatus.CORRECT
        if self._selection is not None and _same_answer(
            option, self._selection
        ):
            return OptionStatus.INCORRECT
        return OptionStatus.MUTED

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            status=self._status,
            position=self._position,
            total=self.total,
            current_question=self.current_question,
            current_selection=self._selection,
            is_revealed=self.is_revealed,
            score=self._score,
        )

    def report(self) -> QuizReport:
        """Return the final score summary; only valid once finished."""

        if not self.is_finished:
            raise InvalidOperationError(
                "The report is only available after the last question."
            )
        percentage = score_percentage(self._score, self.total)
        return QuizReport(
            final_score=self._score,
            total=self.total,
            percentage=percentage,
            feedback_tier=feedback_tier(percentage),
            history=tuple(self._history),
        )

    def _load(self, content: QuizContent) -> None:
        questions = content.questions
        if not questions:
            raise ConfigurationError(
                "A quiz session needs at least one question."
            )
        self._content = content
        self._questions = questions
        self._position = 0
        self._selection: Optional[AnswerValue] = None
        self._score = 0
        self._history: list[AnsweredRecord] = []
        self._status = SessionStatus.ANSWERING


def _same_answer(left: object, right: object) -> bool:
    # 1 == True in Python; answers of different kinds never match.
    return type(left) is type(right) and left == right
