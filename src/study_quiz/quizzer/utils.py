import re
import json
import base64
import mimetypes

from datetime import datetime
from pathlib import Path
from typing import Optional

from .content import QuizContent, validate
from .generation import FileInput, QuizInput, TextInput, UrlInput


_slug_re = re.compile(r"[^a-z0-9]+")

# Types the platform registry often lacks or guesses differently.
_EXTRA_TYPES = {
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".m4a": "audio/mp4",
    ".webm": "video/webm",
}


def _slugify(name: str) -> str:
    s = name.strip().lower()
    s = _slug_re.sub("-", s).strip("-")
    return s[:60].strip("-") or "quiz"


def guess_mime_type(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in _EXTRA_TYPES:
        return _EXTRA_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


def file_input_from_path(
    path: Path, *, note: Optional[str] = None, mime_type: Optional[str] = None
) -> FileInput:
    """Read ``path`` into a base64 :class:`FileInput` payload."""
    data = Path(path).read_bytes()
    return FileInput(
        mime_type=mime_type or guess_mime_type(Path(path)),
        base64_data=base64.b64encode(data).decode("ascii"),
        note=note,
        filename=Path(path).name,
    )


def describe_input(payload: QuizInput) -> str:
    """Return a short human label used for output file names."""
    if isinstance(payload, UrlInput):
        return re.sub(r"^https?://", "", payload.url.strip())
    if isinstance(payload, FileInput):
        return Path(payload.filename or "upload").stem
    if isinstance(payload, TextInput):
        words = payload.text.split()[:6]
        return " ".join(words) or "text"
    return "quiz"


def default_quiz_path(quiz_dir: Path, payload: QuizInput) -> Path:
    """Pick a fresh ``<slug>-<timestamp>.json`` path under ``quiz_dir``."""
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    return Path(quiz_dir) / f"{_slugify(describe_input(payload))}-{stamp}.json"


def read_quiz_file(path: Path) -> QuizContent:
    """Load and validate a quiz saved with :func:`write_quiz_file`."""
    text = Path(path).read_text(encoding="utf-8")
    return validate(text)


def write_quiz_file(path: Path, content: QuizContent) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as fh:
        json.dump(content.to_dict(), fh, ensure_ascii=False, indent=2)
        fh.write("\n")
    return p
