"""Result normalizer — flattens every backend result shape into one trimmed string.

Backends hand back whatever their service produced. `classify` turns that raw
value into one `BackendResult` variant; `extract_text` matches over the variants.
Shapes nobody recognizes become `Unrecognized` and render as "" instead of raising.
"""
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from sttchain.constants import (
    GRADIO_FILE_PATH,
    SUBTITLE_BANNER_PREFIX,
    SUBTITLE_FILENAME_PREFIX_RE,
    SUBTITLE_SEPARATOR_RE,
    SUBTITLE_SEQUENCE_RE,
    SUBTITLE_TIME_RANGE_RE,
)

logger = logging.getLogger(__name__)

_MAX_NESTING = 2
_FILENAME_PREFIX = re.compile(SUBTITLE_FILENAME_PREFIX_RE)
_ARTIFACT_LINES = (
    re.compile(SUBTITLE_SEQUENCE_RE),
    re.compile(SUBTITLE_TIME_RANGE_RE),
    re.compile(SUBTITLE_SEPARATOR_RE),
)


# ── result variants ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PlainText:
    text: str


@dataclass(frozen=True)
class TextSequence:
    """Ordered items; the first text-bearing item wins."""

    items: tuple


@dataclass(frozen=True)
class DataWrapper:
    """`{"data": [...]}` with the text one or two levels down."""

    items: tuple


@dataclass(frozen=True)
class TextField:
    """`text` / `transcription` / `transcript` / `data.text` on a mapping."""

    text: str


@dataclass(frozen=True)
class OutputFile:
    """A path on disk whose contents are the transcript."""

    path: str


@dataclass(frozen=True)
class Unrecognized:
    raw: Any


BackendResult = Union[PlainText, TextSequence, DataWrapper, TextField, OutputFile, Unrecognized]


# ── classification ────────────────────────────────────────────────────────────


def classify(raw: Any) -> BackendResult:
    match raw:
        case list() | tuple():
            return TextSequence(tuple(raw))
        case {"data": list() as data}:
            return DataWrapper(tuple(data))
        case str() as s if os.path.isfile(s):
            return OutputFile(s)
        case str() as s:
            return PlainText(s)
        case {"text": str() as text}:
            return TextField(text)
        case {"transcription": str() as text}:
            return TextField(text)
        case {"transcript": str() as text}:
            return TextField(text)
        case {"data": {"text": str() as text}}:
            return TextField(text)
        case {"outputPath": str() as path} | {"output_path": str() as path} if os.path.isfile(path):
            return OutputFile(path)
        case _:
            return Unrecognized(raw)


def extract_text(result: Any) -> str:
    """Return the transcript carried by `result`, trimmed. Never raises on shape."""
    match result:
        case PlainText(text=text) | TextField(text=text):
            return text.strip()
        case TextSequence(items=items) | DataWrapper(items=items):
            return (_first_text(items, _MAX_NESTING) or "").strip()
        case OutputFile(path=path):
            try:
                return Path(path).read_text(encoding="utf-8").strip()
            except (OSError, UnicodeDecodeError) as exc:
                logger.debug("Unreadable output file %s: %s", path, exc)
                return ""
        case Unrecognized(raw=raw):
            logger.debug("Unrecognized result shape: %s", type(raw).__name__)
            return ""
        case _:
            return extract_text(classify(result))


def _first_text(items: tuple | list, depth: int) -> str | None:
    for item in items:
        match item:
            case {"text": str() as text}:
                return text
            case str() as text:
                return text
            case list() | tuple() if depth > 0:
                found = _first_text(item, depth - 1)
                if found is not None:
                    return found
            case _:
                continue
    return None


# ── subtitle handling ─────────────────────────────────────────────────────────


def find_subtitle_url(payload: Any, base_url: str | None = None) -> str | None:
    """URL of the subtitle file in a `[text, files]` pair, if there is one."""
    match payload:
        case [_, second]:
            return _download_url(second, base_url, _MAX_NESTING)
        case _:
            return None


def _download_url(value: Any, base_url: str | None, depth: int) -> str | None:
    match value:
        case str() as url if url.startswith(("http://", "https://")):
            return url
        case {"url": str() as url} if url.startswith(("http://", "https://")):
            return url
        case {"path": str() as path} if base_url:
            return f"{base_url.rstrip('/')}{GRADIO_FILE_PATH}{path}"
        case [first, *_] if depth > 0:
            return _download_url(first, base_url, depth - 1)
        case _:
            return None


def clean_subtitle_text(text: str) -> str:
    """Flatten SRT-style text to prose. Plain text passes through unchanged.

    Joining kept lines can line up a new artifact (a time range split over two
    lines, a second filename prefix), so passes repeat until nothing changes.
    """
    cleaned = _clean_pass(text)
    while cleaned != text:
        text, cleaned = cleaned, _clean_pass(cleaned)
    return cleaned


def _clean_pass(text: str) -> str:
    body = _FILENAME_PREFIX.sub("", text, count=1)
    lines = (line.strip() for line in body.splitlines())
    return " ".join(line for line in lines if not _is_artifact(line))


def _is_artifact(line: str) -> bool:
    match line:
        case "":
            return True
        case banner if banner.startswith(SUBTITLE_BANNER_PREFIX):
            return True
        case _:
            return any(pattern.match(line) for pattern in _ARTIFACT_LINES)
