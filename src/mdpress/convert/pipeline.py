"""Source loading and the Markdown to HTML conversion pipeline."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from pathlib import Path
from typing import Callable, Optional

from markdown_it import MarkdownIt

from .diagrams import DiagramRenderer, materialize_diagrams
from .errors import OversizeInputError, ReadFailureError, UnsupportedFormatError
from .frontmatter import extract_metadata, strip_front_matter
from .markup import render_markup
from .models import MARKUP_EXTENSIONS, ConversionResult, SourceDocument

logger = logging.getLogger(__name__)

MAX_SOURCE_BYTES = 10 * 1024 * 1024


def check_source_name(filename: str) -> None:
    """Raise :class:`UnsupportedFormatError` unless ``filename`` is Markdown."""

    extension = Path(filename).suffix.lstrip(".").lower()
    if extension not in MARKUP_EXTENSIONS:
        allowed = ", ".join(f".{ext}" for ext in sorted(MARKUP_EXTENSIONS))
        raise UnsupportedFormatError(
            f"Unsupported file format. Use {allowed}."
        )


def check_source_size(size: int, *, max_bytes: int = MAX_SOURCE_BYTES) -> None:
    if size > max_bytes:
        raise OversizeInputError(
            f"File is too large. Maximum size: {max_bytes // (1024 * 1024)} MB."
        )


def source_from_bytes(
    data: bytes,
    filename: str,
    *,
    max_bytes: int = MAX_SOURCE_BYTES,
) -> SourceDocument:
    """Validate and decode an in-memory upload."""

    check_source_name(filename)
    check_source_size(len(data), max_bytes=max_bytes)
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ReadFailureError(
            f"Failed to read file: {filename} is not valid UTF-8."
        ) from exc
    return SourceDocument(text=text, filename=Path(filename).name)


async def read_source(
    path: Path, *, max_bytes: int = MAX_SOURCE_BYTES
) -> SourceDocument:
    """Load ``path`` after checking its extension and size."""

    check_source_name(path.name)
    try:
        size = path.stat().st_size
    except OSError as exc:
        raise ReadFailureError(f"Failed to read file: {exc}") from exc
    check_source_size(size, max_bytes=max_bytes)
    try:
        data = await asyncio.to_thread(path.read_bytes)
    except OSError as exc:
        raise ReadFailureError(f"Failed to read file: {exc}") from exc
    return source_from_bytes(data, path.name, max_bytes=max_bytes)


async def convert(
    source: SourceDocument,
    *,
    diagram_renderer: DiagramRenderer,
    markdown: Optional[MarkdownIt] = None,
    today: Callable[[], date] | None = None,
) -> ConversionResult:
    """Turn ``source`` into metadata plus rendered HTML.

    Only a Markdown rendering failure is fatal; bad front matter and
    failing diagrams degrade to defaults and untouched code blocks.
    """

    metadata = extract_metadata(source.text, source.filename, today=today)
    body = strip_front_matter(source.text)
    html = render_markup(body, markdown)
    html = await materialize_diagrams(html, diagram_renderer)
    logger.debug(
        "Converted source to HTML",
        extra={"source": source.filename, "title": metadata.title},
    )
    return ConversionResult(metadata=metadata, html=html)


__all__ = [
    "MAX_SOURCE_BYTES",
    "check_source_name",
    "check_source_size",
    "convert",
    "read_source",
    "source_from_bytes",
]
