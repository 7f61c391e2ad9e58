"""Value types passed between conversion stages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from slugify import slugify

from .errors import ConvertConfigError

PLACEHOLDER_TITLE = "Document"
MARKUP_EXTENSIONS: frozenset[str] = frozenset({"md", "markdown", "txt"})


class PageTheme(Enum):
    """Cosmetic presets applied to the paginated output."""

    DEFAULT = "default"
    PROFESSIONAL = "professional"
    MINIMAL = "minimal"

    @classmethod
    def from_value(cls, value: str) -> "PageTheme":
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise ConvertConfigError(
            f"Unknown theme '{value}'. Expected one of: {expected}."
        )


class OutputFormat(Enum):
    """Target document formats."""

    PDF = "pdf"
    DOCX = "docx"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def media_type(self) -> str:
        if self is OutputFormat.PDF:
            return "application/pdf"
        return (
            "application/vnd.openxmlformats-officedocument."
            "wordprocessingml.document"
        )

    @classmethod
    def from_value(cls, value: str) -> "OutputFormat":
        normalized = value.strip().lower().lstrip(".")
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise ConvertConfigError(
            f"Unknown output format '{value}'. Expected one of: {expected}."
        )


@dataclass(frozen=True)
class DocumentMetadata:
    """Title block fields; always fully defaulted."""

    title: str
    date: str
    author: str = ""


@dataclass(frozen=True)
class SourceDocument:
    """Raw Markdown text and the name it was loaded from, if any."""

    text: str
    filename: Optional[str] = None


@dataclass(frozen=True)
class ConversionResult:
    """Metadata plus the rendered HTML body with diagrams materialized."""

    metadata: DocumentMetadata
    html: str


@dataclass(frozen=True)
class DiagramBlock:
    """A diagram code block found in rendered HTML, by document order."""

    index: int
    source: str

    @property
    def diagram_id(self) -> str:
        return f"mermaid-{self.index}"


@dataclass(frozen=True)
class Artifact:
    """Rendered output ready to be written or downloaded."""

    filename: str
    data: bytes
    media_type: str


def output_filename(title: str, output_format: OutputFormat) -> str:
    """Return an ASCII-safe lowercase filename derived from ``title``."""

    stem = slugify(title, separator="_", lowercase=True) or "document"
    return f"{stem}.{output_format.extension}"


__all__ = [
    "PLACEHOLDER_TITLE",
    "MARKUP_EXTENSIONS",
    "PageTheme",
    "OutputFormat",
    "DocumentMetadata",
    "SourceDocument",
    "ConversionResult",
    "DiagramBlock",
    "Artifact",
    "output_filename",
]
