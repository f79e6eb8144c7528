"""Quiz generation through the OpenAI chat completions API.

:class:`QuizGenerator` turns a URL, a block of text or an uploaded file into
validated :class:`QuizContent`. Files are routed by MIME family: text is
inlined, images and PDFs travel as content parts, and audio/video is
transcribed with Whisper first.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from study_quiz.core.ai import load_client

from .config import GenerationConfig, default_config
from .content import QuizContent, validate
from .errors import (
    EmptyContentError,
    GenerationBusyError,
    GenerationError,
    MalformedContentError,
)

__all__ = [
    "FileInput",
    "QuizGenerator",
    "QuizInput",
    "TextInput",
    "UrlInput",
    "build_system_prompt",
    "request_quiz",
]

_TEXT_MIME_TYPES = {"application/json", "application/xml", "application/x-yaml"}
_DEFAULT_FILE_NOTE = "Analyze the attached material and build the quiz."

_SCHEMA_LINE = (
    '{"multipleChoice": [{"question": str, "options": [str, str, str, str], '
    '"correctIndex": int (0-3), "explanation": str}], '
    '"trueFalse": [{"question": str, "correctValue": bool, '
    '"explanation": str}]}'
)


@dataclass(frozen=True)
class UrlInput:
    url: str

    kind = "url"


@dataclass(frozen=True)
class TextInput:
    text: str

    kind = "text"


@dataclass(frozen=True)
class FileInput:
    """An uploaded file, base64 encoded, with an optional user instruction."""

    mime_type: str
    base64_data: str
    note: Optional[str] = None
    filename: Optional[str] = None

    kind = "file"


QuizInput = Union[UrlInput, TextInput, FileInput]


def build_system_prompt(config: GenerationConfig) -> str:
    return (
        "You are an educational assistant that writes study quizzes from "
        "the material provided.\n"
        "Requirements:\n"
        f"1. Write exactly {config.multiple_choice_count} multiple-choice "
        "questions, each with 4 options.\n"
        f"2. Write exactly {config.true_false_count} true/false questions.\n"
        f"3. Write questions and explanations in {config.language}.\n"
        "4. Keep explanations short, clear and educational.\n"
        "5. Stay close to the supplied material.\n"
        f"Respond with a single JSON object shaped like:\n{_SCHEMA_LINE}"
    )


class QuizGenerator:
    """Generate quizzes with at most one request in flight."""

    def __init__(
        self,
        *,
        client: Any = None,
        config: Optional[GenerationConfig] = None,
        logger: Optional[logging.Logger] = None,
        client_factory: Callable[[], Any] = load_client,
    ) -> None:
        self._client = client
        self._client_factory = client_factory
        self.config = config or default_config().generation
        self.logger = logger or logging.getLogger("study_quiz.quizzer")
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def request(self, payload: QuizInput) -> QuizContent:
        """Generate a quiz without blocking the event loop.

        A second call while one is pending raises
        :class:`GenerationBusyError`. If the awaiting task is cancelled the
        worker thread still finishes but its result is dropped.
        """

        if self._in_flight:
            raise GenerationBusyError("A quiz is already being generated.")
        self._in_flight = True
        try:
            return await asyncio.to_thread(self.generate, payload)
        finally:
            self._in_flight = False

    def generate(self, payload: QuizInput) -> QuizContent:
        """Blocking generation used by :meth:`request` and the CLI."""

        self.logger.info(
            "Requesting quiz generation",
            extra={"input_kind": payload.kind, "model": self.config.model},
        )
        client = self._resolve_client()
        messages = [
            {"role": "system", "content": build_system_prompt(self.config)},
            {"role": "user", "content": self._user_content(client, payload)},
        ]
        raw = self._complete(client, messages)
        try:
            quiz = validate(raw)
        except MalformedContentError as exc:
            self.logger.error(
                "Model returned malformed quiz JSON",
                extra={"reason": str(exc)},
            )
            raise GenerationError(
                "The model response could not be read as a quiz."
            ) from exc
        except EmptyContentError:
            self.logger.warning("Model returned no usable questions")
            raise
        self.logger.info(
            "Quiz generated",
            extra={
                "multiple_choice": len(quiz.multiple_choice),
                "true_false": len(quiz.true_false),
            },
        )
        return quiz

    def _resolve_client(self) -> Any:
        if self._client is None:
            try:
                self._client = self._client_factory()
            except RuntimeError as exc:
                raise GenerationError(str(exc)) from exc
        return self._client

    def _complete(self, client: Any, messages: list[dict[str, Any]]) -> str:
        try:
            response = client.chat.completions.create(
                model=self.config.model,
                messages=messages,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
                response_format={"type": "json_object"},
            )
            content = response.choices[0].message.content
        except Exception as exc:
            self.logger.exception("Quiz generation request failed")
            raise GenerationError(
                f"Quiz generation request failed: {exc}"
            ) from exc
        content = (content or "").strip()
        if not content:
            raise GenerationError("The model returned an empty response.")
        return content

    def _user_content(self, client: Any, payload: QuizInput) -> Any:
        if isinstance(payload, UrlInput):
            url = payload.url.strip()
            if not url:
                raise GenerationError("Enter a URL to build a quiz from.")
            return (
                "Analyze the content published at the following URL and "
                f"build the quiz: {url}"
            )
        if isinstance(payload, TextInput):
            text = payload.text.strip()
            if not text:
                raise GenerationError("Enter some text to build a quiz from.")
            return f"Analyze the following text and build the quiz:\n\n{text}"
        if isinstance(payload, FileInput):
            return self._file_content(client, payload)
        raise GenerationError(
            f"Unsupported input type: {type(payload).__name__}"
        )

    def _file_content(self, client: Any, payload: FileInput) -> Any:
        mime = payload.mime_type.strip().lower()
        note = (payload.note or "").strip() or _DEFAULT_FILE_NOTE
        family = mime.split("/", 1)[0]

        if family == "text" or mime in _TEXT_MIME_TYPES:
            text = _decode(payload).decode("utf-8", errors="replace")
            return f"{note}\n\n{text}"
        if family in {"audio", "video"}:
            transcript = self._transcribe(client, payload)
            return f"{note}\n\nTranscript:\n{transcript}"

        data_url = f"data:{mime};base64,{payload.base64_data}"
        if family == "image":
            _decode(payload)
            return [
                {"type": "image_url", "image_url": {"url": data_url}},
                {"type": "text", "text": note},
            ]
        if mime == "application/pdf":
            _decode(payload)
            return [
                {
                    "type": "file",
                    "file": {
                        "filename": payload.filename or "upload.pdf",
                        "file_data": data_url,
                    },
                },
                {"type": "text", "text": note},
            ]
        raise GenerationError(f"Unsupported file type: {payload.mime_type}")

    def _transcribe(self, client: Any, payload: FileInput) -> str:
        data = _decode(payload)
        extension = payload.mime_type.split("/", 1)[-1]
        filename = payload.filename or f"upload.{extension}"
        self.logger.info(
            "Transcribing uploaded media",
            extra={"mime_type": payload.mime_type, "bytes": len(data)},
        )
        try:
            response = client.audio.transcriptions.create(
                model=self.config.transcription_model,
                file=(filename, data),
                response_format="text",
            )
        except Exception as exc:
            self.logger.exception("Transcription failed")
            raise GenerationError(f"Transcription failed: {exc}") from exc
        # The SDK returns a plain string when response_format='text'.
        text = response if isinstance(response, str) else str(response)
        text = text.strip()
        if not text:
            raise GenerationError(
                "The uploaded media has no speech to quiz on."
            )
        return text


async def request_quiz(
    payload: QuizInput, *, generator: Optional[QuizGenerator] = None
) -> QuizContent:
    """Generate a quiz for ``payload`` with ``generator`` or a default one."""

    generator = generator or QuizGenerator()
    return await generator.request(payload)


def _decode(payload: FileInput) -> bytes:
    try:
        return base64.b64decode(payload.base64_data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise GenerationError("Uploaded file data is not valid base64.") from exc
