"""Paginated PDF output: style, rasterize, slice into A4 pages.

The document is laid out once as a single tall HTML container, captured as
one PNG and then cut into page-sized bands. Each band becomes one PDF page,
so content flows across page boundaries without gaps or overlap.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from io import BytesIO
from typing import List, Optional, Protocol

from jinja2 import Environment, Template
from PIL import Image, UnidentifiedImageError
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from .errors import ConversionError, RasterizationError
from .markup import highlight_css
from .models import (
    Artifact,
    DocumentMetadata,
    OutputFormat,
    PageTheme,
    output_filename,
)

logger = logging.getLogger(__name__)

RASTER_WIDTH_PX = 800
RASTER_PADDING_PX = 40
RASTER_SCALE = 2
PAGE_WIDTH_MM = 210.0
PAGE_HEIGHT_MM = 297.0
CONTAINER_ID = "document"


@dataclass(frozen=True)
class VisualContainer:
    """Everything needed to lay out the document before rasterization."""

    title: str
    author: str
    date: str
    content_html: str
    font_family: str = "Arial, sans-serif"
    text_color: Optional[str] = None
    heading_color: Optional[str] = None


@dataclass(frozen=True)
class PageBand:
    """Vertical placement of the raster on one page.

    ``offset_mm`` is where the top of the full image sits relative to the
    top of the page, so it is zero for the first page and negative after.
    ``top_px`` and ``height_px`` select the raster rows shown on the page.
    """

    index: int
    offset_mm: float
    top_px: int
    height_px: int


class Rasterizer(Protocol):
    async def rasterize(self, html: str) -> bytes:
        """Return a PNG capture of the ``#document`` element in ``html``."""
        ...


_THEMES = {
    PageTheme.DEFAULT: {},
    PageTheme.PROFESSIONAL: {
        "font_family": "Georgia, serif",
        "heading_color": "#2c3e50",
    },
    PageTheme.MINIMAL: {
        "font_family": "Helvetica, Arial, sans-serif",
        "text_color": "#000",
    },
}

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<style>
html, body { margin: 0; padding: 0; background: white; }
#{{ container_id }} {
  width: {{ width }}px;
  padding: {{ padding }}px;
  background-color: white;
  font-family: {{ c.font_family }};
  {% if c.text_color %}color: {{ c.text_color }};{% endif %}
  line-height: 1.5;
}
#{{ container_id }} .doc-title {
  color: #2c3e50;
  border-bottom: 3px solid #3498db;
  padding-bottom: 10px;
}
#{{ container_id }} .doc-meta { color: #7f8c8d; }
#{{ container_id }} .doc-body { margin-top: 30px; }
{% if c.heading_color %}
#{{ container_id }} h1, #{{ container_id }} h2, #{{ container_id }} h3 {
  color: {{ c.heading_color }};
}
{% endif %}
#{{ container_id }} pre {
  background: #f6f8fa;
  padding: 12px;
  white-space: pre-wrap;
  word-wrap: break-word;
}
#{{ container_id }} img, #{{ container_id }} svg { max-width: 100%; }
#{{ container_id }} table { border-collapse: collapse; }
#{{ container_id }} th, #{{ container_id }} td {
  border: 1px solid #ddd;
  padding: 6px 10px;
}
.mermaid-diagram { text-align: center; margin: 16px 0; }
{{ highlight_css | safe }}
</style>
</head>
<body>
<div id="{{ container_id }}">
  <h1 class="doc-title">{{ c.title }}</h1>
  {% if c.author %}<p class="doc-meta">Author: {{ c.author }}</p>{% endif %}
  {% if c.date %}<p class="doc-meta">Date: {{ c.date }}</p>{% endif %}
  <div class="doc-body">
{{ c.content_html | safe }}
  </div>
</div>
</body>
</html>
"""


def _page_template() -> Template:
    env = Environment(autoescape=True)
    return env.from_string(_PAGE_TEMPLATE)


def build_container(
    metadata: DocumentMetadata, content_html: str
) -> VisualContainer:
    return VisualContainer(
        title=metadata.title,
        author=metadata.author,
        date=metadata.date,
        content_html=content_html,
    )


def apply_theme(
    container: VisualContainer, theme: PageTheme
) -> VisualContainer:
    """Return a copy of ``container`` with the theme's cosmetic fields set."""

    return dataclasses.replace(container, **_THEMES[theme])


def render_container_html(container: VisualContainer) -> str:
    return _page_template().render(
        c=container,
        container_id=CONTAINER_ID,
        width=RASTER_WIDTH_PX,
        padding=RASTER_PADDING_PX,
        highlight_css=highlight_css(),
    )


class PlaywrightRasterizer:
    """Capture the document container with headless Chromium."""

    def __init__(
        self,
        *,
        scale: int = RASTER_SCALE,
        timeout_ms: float = 60_000,
    ) -> None:
        self.scale = scale
        self.timeout_ms = timeout_ms

    async def rasterize(self, html: str) -> bytes:
        viewport_width = RASTER_WIDTH_PX + 2 * RASTER_PADDING_PX
        try:
            async with async_playwright() as playwright:
                browser = await playwright.chromium.launch(
                    headless=True,
                    args=["--disable-dev-shm-usage", "--disable-gpu"],
                )
                try:
                    page = await browser.new_page(
                        viewport={"width": viewport_width, "height": 1024},
                        device_scale_factor=self.scale,
                    )
                    await page.set_content(
                        html,
                        wait_until="networkidle",
                        timeout=self.timeout_ms,
                    )
                    return await page.locator(f"#{CONTAINER_ID}").screenshot(
                        type="png", timeout=self.timeout_ms
                    )
                finally:
                    await browser.close()
        except PlaywrightError as exc:
            raise RasterizationError(
                f"Failed to rasterize document: {exc}"
            ) from exc


def page_height_px(raster_width: int) -> int:
    """Rows of a ``raster_width`` wide raster that fill one A4 page."""

    return max(1, round(PAGE_HEIGHT_MM * raster_width / PAGE_WIDTH_MM))


def plan_pages(raster_width: int, raster_height: int) -> List[PageBand]:
    """Split a raster into A4 page bands.

    The raster is scaled to the page width. Every band is exactly
    :func:`page_height_px` rows tall and starts on the row after the
    previous one ends, so each raster row lands on exactly one page. The
    first page is always emitted; a raster that is an exact multiple of the
    page height yields exactly that many pages.
    """

    if raster_width <= 0 or raster_height <= 0:
        raise RasterizationError("Rasterized document is empty.")
    page_px = page_height_px(raster_width)
    count = max(1, -(-raster_height // page_px))
    return [
        PageBand(
            index=index,
            offset_mm=-PAGE_HEIGHT_MM * index,
            top_px=index * page_px,
            height_px=page_px,
        )
        for index in range(count)
    ]


def slice_pages(raster: Image.Image) -> List[Image.Image]:
    """Cut ``raster`` into full-height pages, padding the last one white."""

    width, height = raster.size
    pages: List[Image.Image] = []
    for band in plan_pages(width, height):
        bottom = min(band.top_px + band.height_px, height)
        page = Image.new("RGB", (width, band.height_px), "white")
        with raster.crop((0, band.top_px, width, bottom)) as strip:
            page.paste(strip)
        pages.append(page)
    return pages


def compose_pages(png: bytes) -> tuple[bytes, int]:
    """Slice a PNG capture into pages; return PDF bytes and page count."""

    try:
        with Image.open(BytesIO(png)) as opened:
            raster = opened.convert("RGB")
    except (UnidentifiedImageError, OSError) as exc:
        raise RasterizationError(
            f"Rasterizer returned an unreadable image: {exc}"
        ) from exc

    px_per_mm = raster.width / PAGE_WIDTH_MM
    pages: List[Image.Image] = []
    buffer = BytesIO()
    try:
        pages = slice_pages(raster)
        pages[0].save(
            buffer,
            format="PDF",
            save_all=True,
            append_images=pages[1:],
            resolution=px_per_mm * 25.4,
        )
    except (OSError, ValueError) as exc:
        raise RasterizationError(f"Failed to compose PDF pages: {exc}") from exc
    finally:
        raster.close()
        for page in pages:
            page.close()
    return buffer.getvalue(), len(pages)


async def render_paginated(
    metadata: DocumentMetadata,
    content_html: str,
    theme: PageTheme = PageTheme.DEFAULT,
    *,
    rasterizer: Rasterizer,
) -> Artifact:
    """Render the document as an image-based A4 PDF."""

    container = apply_theme(build_container(metadata, content_html), theme)
    page_html = render_container_html(container)
    try:
        png = await rasterizer.rasterize(page_html)
    except ConversionError:
        raise
    except Exception as exc:
        raise RasterizationError(
            f"Failed to rasterize document: {exc}"
        ) from exc

    data, page_count = compose_pages(png)
    logger.info(
        "Composed paginated document",
        extra={"pages": page_count, "theme": theme.value},
    )
    return Artifact(
        filename=output_filename(metadata.title, OutputFormat.PDF),
        data=data,
        media_type=OutputFormat.PDF.media_type,
    )


__all__ = [
    "CONTAINER_ID",
    "PAGE_HEIGHT_MM",
    "PAGE_WIDTH_MM",
    "RASTER_SCALE",
    "RASTER_WIDTH_PX",
    "PageBand",
    "PlaywrightRasterizer",
    "Rasterizer",
    "VisualContainer",
    "apply_theme",
    "build_container",
    "compose_pages",
    "page_height_px",
    "plan_pages",
    "render_container_html",
    "render_paginated",
    "slice_pages",
]
