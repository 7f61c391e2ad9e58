from __future__ import annotations

import httpx
import pytest

from mdpress.convert import diagrams
from mdpress.convert.diagrams import RenderedDiagram
from mdpress.convert.errors import DiagramRenderError
from mdpress.convert.markup import render_markup


class RecordingRenderer:
    def __init__(self, fail_on: set[int] | None = None) -> None:
        self.fail_on = fail_on or set()
        self.calls: list[tuple[str, str]] = []

    async def render(self, diagram_id: str, source: str) -> RenderedDiagram:
        self.calls.append((diagram_id, source))
        if len(self.calls) - 1 in self.fail_on:
            raise DiagramRenderError(f"cannot render {diagram_id}")
        return RenderedDiagram(
            markup=f'<svg data-id="{diagram_id}"><g></g></svg>'
        )


def _document(count: int) -> str:
    parts = ["# Diagrams\n"]
    for index in range(count):
        parts.append(f"```mermaid\ngraph TD; N{index}-->M{index}\n```\n")
        parts.append(f"Paragraph {index}\n")
    return render_markup("\n".join(parts))


def test_find_diagram_blocks_lists_sources_in_order():
    blocks = diagrams.find_diagram_blocks(_document(2))

    assert [block.diagram_id for block in blocks] == ["mermaid-0", "mermaid-1"]
    assert blocks[1].source == "graph TD; N1-->M1\n"


@pytest.mark.asyncio
async def test_materialize_replaces_every_block():
    renderer = RecordingRenderer()

    html = await diagrams.materialize_diagrams(_document(3), renderer)

    assert [call[0] for call in renderer.calls] == [
        "mermaid-0",
        "mermaid-1",
        "mermaid-2",
    ]
    assert "language-mermaid" not in html
    assert html.count('class="mermaid-diagram"') == 3
    assert '<svg data-id="mermaid-2">' in html
    assert "Paragraph 2" in html


@pytest.mark.asyncio
async def test_materialize_keeps_failed_block_and_continues(caplog):
    renderer = RecordingRenderer(fail_on={1})

    with caplog.at_level("WARNING", logger="mdpress.convert"):
        html = await diagrams.materialize_diagrams(_document(3), renderer)

    assert len(renderer.calls) == 3
    assert html.count('class="mermaid-diagram"') == 2
    assert html.count('class="language-mermaid"') == 1
    assert "N1--&gt;M1" in html
    assert '<svg data-id="mermaid-0">' in html
    assert '<svg data-id="mermaid-2">' in html
    assert "Failed to render diagram" in caplog.text


@pytest.mark.asyncio
async def test_materialize_without_diagrams_skips_renderer():
    renderer = RecordingRenderer()
    source = render_markup("```python\nx = 1\n```\n")

    html = await diagrams.materialize_diagrams(source, renderer)

    assert renderer.calls == []
    assert "language-python" in html


@pytest.mark.asyncio
async def test_materialize_survives_unexpected_renderer_errors():
    class Exploding:
        async def render(self, diagram_id, source):
            raise ValueError("unexpected")

    source = _document(1)

    html = await diagrams.materialize_diagrams(source, Exploding())

    assert 'class="language-mermaid"' in html
    assert "mermaid-diagram" not in html


@pytest.mark.asyncio
async def test_kroki_renderer_posts_source_and_returns_svg():
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = request.content.decode("utf-8")
        seen["content_type"] = request.headers["content-type"]
        return httpx.Response(200, text="<svg>ok</svg>\n")

    renderer = diagrams.KrokiDiagramRenderer(
        "https://kroki.test/", transport=httpx.MockTransport(handler)
    )

    rendered = await renderer.render("mermaid-0", "graph TD; A-->B")

    assert rendered.markup == "<svg>ok</svg>"
    assert seen == {
        "url": "https://kroki.test/mermaid/svg",
        "body": "graph TD; A-->B",
        "content_type": "text/plain",
    }


@pytest.mark.asyncio
async def test_kroki_renderer_raises_on_http_error():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(400, text="Syntax error")
    )
    renderer = diagrams.KrokiDiagramRenderer(
        "https://kroki.test", transport=transport
    )

    with pytest.raises(DiagramRenderError, match="mermaid-3"):
        await renderer.render("mermaid-3", "not a diagram")


@pytest.mark.asyncio
async def test_kroki_renderer_rejects_empty_body():
    transport = httpx.MockTransport(lambda request: httpx.Response(200))
    renderer = diagrams.KrokiDiagramRenderer(
        "https://kroki.test", transport=transport
    )

    with pytest.raises(DiagramRenderError, match="empty"):
        await renderer.render("mermaid-0", "graph TD")
