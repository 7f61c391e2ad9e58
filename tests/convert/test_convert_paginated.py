from __future__ import annotations

from io import BytesIO

import pytest
from PIL import Image

from mdpress.convert import paginated
from mdpress.convert.errors import RasterizationError
from mdpress.convert.models import DocumentMetadata, PageTheme


def _png(width: int, height: int, color: str = "black") -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeRasterizer:
    def __init__(self, png: bytes) -> None:
        self.png = png
        self.html: list[str] = []

    async def rasterize(self, html: str) -> bytes:
        self.html.append(html)
        return self.png


METADATA = DocumentMetadata(
    title="Annual Report", author="Jo", date="01.01.2024"
)


def test_plan_pages_short_document_is_one_page():
    bands = paginated.plan_pages(210, 100)

    assert bands == [
        paginated.PageBand(index=0, offset_mm=0.0, top_px=0, height_px=297)
    ]


def test_plan_pages_exact_multiple_yields_that_many_pages():
    bands = paginated.plan_pages(210, 297 * 3)

    assert [band.offset_mm for band in bands] == [0.0, -297.0, -594.0]


def test_plan_pages_overflow_adds_page():
    bands = paginated.plan_pages(210, 297 * 2 + 1)

    assert len(bands) == 3
    assert bands[-1].index == 2


def test_plan_pages_scales_to_page_width():
    # 1600 px wide at 2x: 1 mm is 1600 / 210 px.
    height = round(1600 / 210 * 297 * 1.5)

    assert len(paginated.plan_pages(1600, height)) == 2


def test_plan_pages_rejects_empty_raster():
    with pytest.raises(RasterizationError):
        paginated.plan_pages(0, 100)


CAPTURE_WIDTH = (
    paginated.RASTER_WIDTH_PX + 2 * paginated.RASTER_PADDING_PX
) * paginated.RASTER_SCALE


def _row_coded_raster(width: int, height: int) -> Image.Image:
    column = Image.new("RGB", (1, height))
    column.putdata([(y % 256, (y // 256) % 256, 0) for y in range(height)])
    return column.resize((width, height), Image.Resampling.NEAREST)


def test_page_height_at_capture_width():
    assert CAPTURE_WIDTH == 1760
    assert paginated.page_height_px(CAPTURE_WIDTH) == 2489


@pytest.mark.parametrize(
    "height", [2489 * 6, 2489 * 5 + 1, 2489 * 5 - 1, 12345]
)
def test_plan_pages_bands_are_contiguous_at_capture_width(height):
    bands = paginated.plan_pages(CAPTURE_WIDTH, height)

    assert bands[0].top_px == 0
    for current, following in zip(bands, bands[1:]):
        assert current.top_px + current.height_px == following.top_px
    last = bands[-1]
    assert last.top_px < height <= last.top_px + last.height_px


def test_plan_pages_exact_multiple_at_capture_width():
    assert len(paginated.plan_pages(CAPTURE_WIDTH, 2489 * 6)) == 6
    assert len(paginated.plan_pages(CAPTURE_WIDTH, 2489 * 6 + 1)) == 7


def test_slice_pages_keeps_every_row_once():
    height = 2489 * 5 + 100
    raster = _row_coded_raster(CAPTURE_WIDTH, height)

    pages = paginated.slice_pages(raster)

    assert len(pages) == 6
    assert {page.size for page in pages} == {(CAPTURE_WIDTH, 2489)}
    rows = []
    padding = 0
    for page in pages:
        for red, green, blue in page.crop((0, 0, 1, page.height)).getdata():
            if blue == 255:
                padding += 1
            else:
                rows.append(red + green * 256)
    assert rows == list(range(height))
    assert padding == 2489 * 6 - height


def test_apply_theme_returns_new_container():
    base = paginated.build_container(METADATA, "<p>x</p>")

    themed = paginated.apply_theme(base, PageTheme.PROFESSIONAL)

    assert themed is not base
    assert themed.font_family == "Georgia, serif"
    assert themed.heading_color == "#2c3e50"
    assert base.font_family == "Arial, sans-serif"
    assert base.heading_color is None


def test_apply_theme_minimal_and_default():
    base = paginated.build_container(METADATA, "")

    minimal = paginated.apply_theme(base, PageTheme.MINIMAL)

    assert minimal.text_color == "#000"
    assert minimal.font_family.startswith("Helvetica")
    assert paginated.apply_theme(base, PageTheme.DEFAULT) == base


def test_render_container_html_escapes_metadata_not_content():
    metadata = DocumentMetadata(
        title="Q&A <draft>", author="", date="02.02.2024"
    )
    container = paginated.build_container(metadata, "<p><b>body</b></p>")

    html = paginated.render_container_html(container)

    assert "Q&amp;A &lt;draft&gt;" in html
    assert "<p><b>body</b></p>" in html
    assert "Author:" not in html
    assert "Date: 02.02.2024" in html
    assert 'id="document"' in html


def test_compose_pages_splits_tall_image():
    width = 210
    png = _png(width, 297 * 2 + 50)

    data, pages = paginated.compose_pages(png)

    assert pages == 3
    assert data.startswith(b"%PDF")


def test_compose_pages_exact_multiple_at_capture_width():
    data, pages = paginated.compose_pages(_png(CAPTURE_WIDTH, 2489 * 3))

    assert pages == 3
    assert data.startswith(b"%PDF")


def test_compose_pages_rejects_garbage():
    with pytest.raises(RasterizationError):
        paginated.compose_pages(b"not an image")


@pytest.mark.asyncio
async def test_render_paginated_builds_pdf_artifact():
    rasterizer = FakeRasterizer(_png(420, 300))

    artifact = await paginated.render_paginated(
        METADATA,
        "<h2>Intro</h2>",
        PageTheme.PROFESSIONAL,
        rasterizer=rasterizer,
    )

    assert artifact.filename == "annual_report.pdf"
    assert artifact.media_type == "application/pdf"
    assert artifact.data.startswith(b"%PDF")
    page_html = rasterizer.html[0]
    assert "Annual Report" in page_html
    assert "Author: Jo" in page_html
    assert "Georgia, serif" in page_html
    assert "<h2>Intro</h2>" in page_html


@pytest.mark.asyncio
async def test_render_paginated_wraps_rasterizer_failures():
    class Broken:
        async def rasterize(self, html):
            raise RuntimeError("browser crashed")

    with pytest.raises(RasterizationError, match="browser crashed"):
        await paginated.render_paginated(
            METADATA, "<p>x</p>", rasterizer=Broken()
        )
