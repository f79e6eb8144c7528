"""Immutable quiz content model and payload validation.

Generated quizzes arrive as loosely shaped JSON: keys vary between backends,
answers may be indices, letters or option text, and the whole document may be
wrapped in Markdown code fences. :func:`validate` normalizes all of that into
:class:`QuizContent`, dropping items it cannot make sense of.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from .errors import EmptyContentError, MalformedContentError

__all__ = [
    "MultipleChoiceQuestion",
    "TrueFalseQuestion",
    "Question",
    "QuizContent",
    "validate",
]

_MCQ_KEYS = ("multipleChoice", "multiple_choice", "mcqs")
_TF_KEYS = ("trueFalse", "true_false", "tfqs")
_QUESTION_KEYS = ("question", "stem")
_INDEX_KEYS = ("correctIndex", "correct_index", "correctAnswerIndex", "answer")
_VALUE_KEYS = ("correctValue", "correct_value", "isTrue", "answer")

_FENCE_RE = re.compile(r"```(?:json)?\s*(.+?)```", re.DOTALL)
_TRUE_WORDS = {"true", "t", "yes"}
_FALSE_WORDS = {"false", "f", "no"}


@dataclass(frozen=True)
class MultipleChoiceQuestion:
    """A question with one correct option among ``options``."""

    question: str
    explanation: str
    options: tuple[str, ...]
    correct_index: int

    @property
    def correct_answer(self) -> int:
        return self.correct_index

    def answer_options(self) -> tuple[int, ...]:
        return tuple(range(len(self.options)))

    def label_for(self, option: int) -> str:
        if 0 <= option < len(self.options):
            return self.options[option]
        return ""


@dataclass(frozen=True)
class TrueFalseQuestion:
    """A statement the learner marks as true or false."""

    question: str
    explanation: str
    correct_value: bool

    @property
    def correct_answer(self) -> bool:
        return self.correct_value

    def answer_options(self) -> tuple[bool, ...]:
        return (True, False)

    def label_for(self, option: bool) -> str:
        return "True" if option else "False"


Question = Union[MultipleChoiceQuestion, TrueFalseQuestion]


@dataclass(frozen=True)
class QuizContent:
    """A generated quiz: multiple-choice questions followed by true/false."""

    multiple_choice: tuple[MultipleChoiceQuestion, ...]
    true_false: tuple[TrueFalseQuestion, ...] = ()

    @property
    def questions(self) -> tuple[Question, ...]:
        return (*self.multiple_choice, *self.true_false)

    @property
    def total(self) -> int:
        return len(self.multiple_choice) + len(self.true_false)

    def to_dict(self) -> dict[str, object]:
        """Return the JSON wire form accepted back by :func:`validate`."""

        return {
            "multipleChoice": [
                {
                    "question": q.question,
                    "options": list(q.options),
                    "correctIndex": q.correct_index,
                    "explanation": q.explanation,
                }
                for q in self.multiple_choice
            ],
            "trueFalse": [
                {
                    "question": q.question,
                    "correctValue": q.correct_value,
                    "explanation": q.explanation,
                }
                for q in self.true_false
            ],
        }


def validate(raw: object) -> QuizContent:
    """Coerce a generated payload into :class:`QuizContent`.

    ``raw`` is either a mapping or JSON text (optionally fenced). Raises
    :class:`MalformedContentError` when no JSON object can be recovered and
    :class:`EmptyContentError` when no multiple-choice question survives
    normalization.
    """

    document = _coerce_document(raw)
    mcqs = tuple(
        question
        for question in (
            _build_multiple_choice(item)
            for item in _iter_items(_first_present(document, _MCQ_KEYS))
        )
        if question is not None
    )
    tfqs = tuple(
        question
        for question in (
            _build_true_false(item)
            for item in _iter_items(_first_present(document, _TF_KEYS))
        )
        if question is not None
    )
    if not mcqs:
        raise EmptyContentError(
            "Generated quiz has no usable multiple-choice questions."
        )
    return QuizContent(multiple_choice=mcqs, true_false=tfqs)


def _coerce_document(raw: object) -> Mapping[str, Any]:
    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str):
        raise MalformedContentError(
            f"Expected a JSON object, got {type(raw).__name__}."
        )
    text = raw.strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        # Only look for a fence once the whole reply fails to parse;
        # question text may itself contain backticks.
        fenced = _FENCE_RE.search(text)
        if fenced is None:
            raise MalformedContentError(
                f"Quiz payload is not JSON: {exc}"
            ) from exc
        try:
            data = json.loads(fenced.group(1))
        except json.JSONDecodeError as fenced_exc:
            raise MalformedContentError(
                f"Quiz payload is not JSON: {fenced_exc}"
            ) from fenced_exc
    if not isinstance(data, Mapping):
        raise MalformedContentError("Quiz payload must be a JSON object.")
    return data


def _first_present(data: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _iter_items(field: Any) -> list[Mapping[str, Any]]:
    if not isinstance(field, list):
        return []
    return [item for item in field if isinstance(item, Mapping)]


def _question_text(item: Mapping[str, Any]) -> str:
    value = _first_present(item, _QUESTION_KEYS)
    return str(value).strip() if value is not None else ""


def _explanation(item: Mapping[str, Any]) -> str:
    value = item.get("explanation")
    return str(value).strip() if value is not None else ""


def _build_multiple_choice(
    item: Mapping[str, Any],
) -> MultipleChoiceQuestion | None:
    text = _question_text(item)
    options, keys = _normalize_options(item.get("options", item.get("choices")))
    if not text or not options:
        return None
    index = _resolve_index(_first_present(item, _INDEX_KEYS), options, keys)
    if index is None:
        return None
    return MultipleChoiceQuestion(
        question=text,
        explanation=_explanation(item),
        options=options,
        correct_index=index,
    )


def _build_true_false(item: Mapping[str, Any]) -> TrueFalseQuestion | None:
    text = _question_text(item)
    value = _resolve_bool(_first_present(item, _VALUE_KEYS))
    if not text or value is None:
        return None
    return TrueFalseQuestion(
        question=text,
        explanation=_explanation(item),
        correct_value=value,
    )


def _normalize_options(field: Any) -> tuple[tuple[str, ...], tuple[str, ...]]:
    if not isinstance(field, list):
        return (), ()
    texts: list[str] = []
    keys: list[str] = []
    for entry in field:
        if isinstance(entry, Mapping):
            text = str(entry.get("text", "")).strip()
            key = str(entry.get("key", "")).strip().upper()[:1]
        else:
            text = str(entry).strip() if entry is not None else ""
            key = ""
        keys.append(key or chr(ord("A") + len(texts)))
        texts.append(text)
    return tuple(texts), tuple(keys)


def _resolve_index(
    raw: Any, options: tuple[str, ...], keys: tuple[str, ...]
) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    if isinstance(raw, int):
        return raw if 0 <= raw < len(options) else None
    if not isinstance(raw, str):
        return None
    candidate = raw.strip()
    if not candidate:
        return None
    if candidate.isdigit():
        number = int(candidate)
        return number if 0 <= number < len(options) else None
    upper = candidate.upper()
    if upper in keys:
        return keys.index(upper)
    for idx, text in enumerate(options):
        if text.upper() == upper:
            return idx
    return None


def _resolve_bool(raw: Any) -> bool | None:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
    return None
