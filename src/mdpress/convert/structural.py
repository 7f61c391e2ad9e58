"""Structural DOCX output built from the rendered HTML block elements."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from io import BytesIO
from typing import Callable, Iterator, List, Optional, Protocol

from bs4 import BeautifulSoup
from bs4.element import Tag
from docx import Document

from .diagrams import DIAGRAM_CLASS
from .errors import ConversionError, PackagingError
from .models import Artifact, DocumentMetadata, OutputFormat, output_filename

logger = logging.getLogger(__name__)

MONOSPACE_FONT = "Courier New"

_BLOCK_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6", "p", "pre", "ul", "ol"]
_LIST_TAGS = ["ul", "ol"]
_MAX_LIST_STYLE_DEPTH = 3


class BlockKind(Enum):
    TITLE = "title"
    AUTHOR = "author"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    MONOSPACE = "monospace"
    BULLET_ITEM = "bullet_item"
    NUMBERED_ITEM = "numbered_item"


@dataclass(frozen=True)
class StructuralBlock:
    """One output paragraph; ``level`` is the heading level or list depth."""

    kind: BlockKind
    text: str
    level: Optional[int] = None


class StructuralWriter(Protocol):
    def append_block(
        self, kind: BlockKind, text: str, level: Optional[int] = None
    ) -> None:
        ...

    def serialize(self) -> bytes:
        ...


class DocxWriter:
    """Accumulate blocks into a python-docx document."""

    def __init__(self) -> None:
        self._document = Document()

    def append_block(
        self, kind: BlockKind, text: str, level: Optional[int] = None
    ) -> None:
        document = self._document
        if kind is BlockKind.TITLE:
            document.add_heading(text, level=0)
        elif kind is BlockKind.HEADING:
            document.add_heading(text, level=level or 1)
        elif kind is BlockKind.AUTHOR:
            document.add_paragraph().add_run(text).italic = True
        elif kind is BlockKind.MONOSPACE:
            run = document.add_paragraph().add_run(text)
            run.font.name = MONOSPACE_FONT
        elif kind in (BlockKind.BULLET_ITEM, BlockKind.NUMBERED_ITEM):
            document.add_paragraph(text, style=_list_style(kind, level))
        else:
            document.add_paragraph(text)

    def serialize(self) -> bytes:
        buffer = BytesIO()
        self._document.save(buffer)
        return buffer.getvalue()


def plan_blocks(
    metadata: DocumentMetadata, content_html: str
) -> List[StructuralBlock]:
    """Map metadata and HTML block elements onto structural blocks.

    Only plain text is kept; inline formatting such as emphasis or links is
    dropped. Rendered diagrams are skipped.
    """

    blocks: List[StructuralBlock] = []
    if metadata.title:
        blocks.append(StructuralBlock(BlockKind.TITLE, metadata.title))
    if metadata.author:
        blocks.append(
            StructuralBlock(BlockKind.AUTHOR, f"Author: {metadata.author}")
        )
    blocks.append(StructuralBlock(BlockKind.PARAGRAPH, ""))

    soup = BeautifulSoup(content_html, "html.parser")
    for element in soup.find_all(_BLOCK_TAGS):
        if _is_nested(element):
            continue
        name = element.name
        if name in _LIST_TAGS:
            blocks.extend(_list_blocks(element, depth=1))
        elif name == "p":
            blocks.append(
                StructuralBlock(BlockKind.PARAGRAPH, element.get_text())
            )
        elif name == "pre":
            blocks.append(
                StructuralBlock(
                    BlockKind.MONOSPACE, element.get_text().rstrip("\n")
                )
            )
        else:
            blocks.append(
                StructuralBlock(
                    BlockKind.HEADING,
                    element.get_text(),
                    level=heading_level(name),
                )
            )
    return blocks


def heading_level(tag_name: str) -> int:
    """Return the level of an ``h1``..``h6`` tag, defaulting to 1."""

    try:
        level = int(tag_name[1:])
    except ValueError:
        return 1
    if 1 <= level <= 6:
        return level
    return 1


def render_structural(
    metadata: DocumentMetadata,
    content_html: str,
    *,
    writer_factory: Callable[[], StructuralWriter] = DocxWriter,
) -> Artifact:
    """Render the document as a DOCX file."""

    blocks = plan_blocks(metadata, content_html)
    try:
        writer = writer_factory()
        for block in blocks:
            writer.append_block(block.kind, block.text, block.level)
        data = writer.serialize()
    except ConversionError:
        raise
    except Exception as exc:
        raise PackagingError(f"Failed to package document: {exc}") from exc
    logger.info(
        "Packaged structural document", extra={"blocks": len(blocks)}
    )
    return Artifact(
        filename=output_filename(metadata.title, OutputFormat.DOCX),
        data=data,
        media_type=OutputFormat.DOCX.media_type,
    )


def _is_nested(element: Tag) -> bool:
    # List items cover their own paragraphs, code and sublists.
    if element.find_parent("li") is not None:
        return True
    return element.find_parent("div", class_=DIAGRAM_CLASS) is not None


def _list_blocks(list_tag: Tag, *, depth: int) -> Iterator[StructuralBlock]:
    kind = (
        BlockKind.NUMBERED_ITEM
        if list_tag.name == "ol"
        else BlockKind.BULLET_ITEM
    )
    for item in list_tag.find_all("li", recursive=False):
        yield StructuralBlock(kind, _item_text(item), level=depth)
        for child in item.find_all(_LIST_TAGS, recursive=False):
            yield from _list_blocks(child, depth=depth + 1)


def _item_text(item: Tag) -> str:
    parts = []
    for child in item.children:
        if isinstance(child, Tag):
            if child.name in _LIST_TAGS:
                continue
            parts.append(child.get_text())
        else:
            parts.append(str(child))
    return " ".join("".join(parts).split())


def _list_style(kind: BlockKind, depth: Optional[int]) -> str:
    base = "List Number" if kind is BlockKind.NUMBERED_ITEM else "List Bullet"
    level = min(depth or 1, _MAX_LIST_STYLE_DEPTH)
    if level == 1:
        return base
    return f"{base} {level}"


__all__ = [
    "BlockKind",
    "DocxWriter",
    "MONOSPACE_FONT",
    "StructuralBlock",
    "StructuralWriter",
    "heading_level",
    "plan_blocks",
    "render_structural",
]
