"""Replace Mermaid code blocks in rendered HTML with rendered diagrams."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Protocol

import httpx
from bs4 import BeautifulSoup
from bs4.element import Tag

from .errors import DiagramRenderError
from .markup import DIAGRAM_LANGUAGE
from .models import DiagramBlock

logger = logging.getLogger(__name__)

DIAGRAM_CLASS = "mermaid-diagram"
DEFAULT_KROKI_URL = "https://kroki.io"


@dataclass(frozen=True)
class RenderedDiagram:
    """Image or SVG markup produced for one diagram."""

    markup: str


class DiagramRenderer(Protocol):
    async def render(self, diagram_id: str, source: str) -> RenderedDiagram:
        ...


class KrokiDiagramRenderer:
    """Render Mermaid sources to SVG through a Kroki server."""

    def __init__(
        self,
        base_url: str = DEFAULT_KROKI_URL,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def render(self, diagram_id: str, source: str) -> RenderedDiagram:
        url = f"{self.base_url}/{DIAGRAM_LANGUAGE}/svg"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    url,
                    content=source.encode("utf-8"),
                    headers={"Content-Type": "text/plain"},
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise DiagramRenderError(
                f"Kroki failed to render {diagram_id}: {exc}"
            ) from exc
        svg = response.text.strip()
        if not svg:
            raise DiagramRenderError(
                f"Kroki returned an empty response for {diagram_id}"
            )
        return RenderedDiagram(markup=svg)


def find_diagram_blocks(
    html: str, *, language: str = DIAGRAM_LANGUAGE
) -> List[DiagramBlock]:
    """List diagram code blocks in document order."""

    soup = BeautifulSoup(html, "html.parser")
    return [
        DiagramBlock(index=index, source=code.get_text())
        for index, code in enumerate(_diagram_codes(soup, language))
    ]


async def materialize_diagrams(
    html: str,
    renderer: DiagramRenderer,
    *,
    language: str = DIAGRAM_LANGUAGE,
) -> str:
    """Return ``html`` with each diagram block replaced by its rendering.

    Blocks are rendered one at a time in document order, block ``i`` under
    the id ``mermaid-{i}``. A block whose rendering fails stays as the
    original code block and the remaining blocks are still processed.
    """

    soup = BeautifulSoup(html, "html.parser")
    codes = _diagram_codes(soup, language)
    for index, code in enumerate(codes):
        block = DiagramBlock(index=index, source=code.get_text())
        try:
            rendered = await renderer.render(block.diagram_id, block.source)
        except Exception as exc:
            logger.warning(
                "Failed to render diagram",
                extra={"diagram_id": block.diagram_id, "error": str(exc)},
            )
            continue
        wrapper = soup.new_tag("div", attrs={"class": DIAGRAM_CLASS})
        wrapper.append(BeautifulSoup(rendered.markup, "html.parser"))
        _replacement_target(code).replace_with(wrapper)
    return str(soup)


def _diagram_codes(soup: BeautifulSoup, language: str) -> List[Tag]:
    return list(soup.select(f"code.language-{language}"))


def _replacement_target(code: Tag) -> Tag:
    parent = code.parent
    if isinstance(parent, Tag) and parent.name == "pre":
        return parent
    return code


__all__ = [
    "DEFAULT_KROKI_URL",
    "DIAGRAM_CLASS",
    "DiagramRenderer",
    "KrokiDiagramRenderer",
    "RenderedDiagram",
    "find_diagram_blocks",
    "materialize_diagrams",
]
