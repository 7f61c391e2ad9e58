"""Markdown to paginated PDF / DOCX conversion."""

from __future__ import annotations

from .config import (
    ConfigOverrides,
    ConvertConfig,
    LoadResult,
    load_config,
)
from .diagrams import (
    DiagramRenderer,
    KrokiDiagramRenderer,
    RenderedDiagram,
    find_diagram_blocks,
    materialize_diagrams,
)
from .errors import (
    ConversionError,
    ConvertConfigError,
    DiagramRenderError,
    GrammarEngineError,
    OversizeInputError,
    PackagingError,
    RasterizationError,
    ReadFailureError,
    UnsupportedFormatError,
)
from .exporter import (
    ExportDependencies,
    ExportOutcome,
    ExportStatus,
    default_dependencies,
    export_document,
)
from .frontmatter import extract_metadata, strip_front_matter
from .models import (
    Artifact,
    ConversionResult,
    DiagramBlock,
    DocumentMetadata,
    OutputFormat,
    PageTheme,
    SourceDocument,
    output_filename,
)
from .paginated import PlaywrightRasterizer, Rasterizer, render_paginated
from .pipeline import MAX_SOURCE_BYTES, convert, read_source, source_from_bytes
from .structural import DocxWriter, StructuralWriter, render_structural

__all__ = [
    "ConfigOverrides",
    "ConvertConfig",
    "LoadResult",
    "load_config",
    "DiagramRenderer",
    "KrokiDiagramRenderer",
    "RenderedDiagram",
    "find_diagram_blocks",
    "materialize_diagrams",
    "ConversionError",
    "ConvertConfigError",
    "DiagramRenderError",
    "GrammarEngineError",
    "OversizeInputError",
    "PackagingError",
    "RasterizationError",
    "ReadFailureError",
    "UnsupportedFormatError",
    "ExportDependencies",
    "ExportOutcome",
    "ExportStatus",
    "default_dependencies",
    "export_document",
    "extract_metadata",
    "strip_front_matter",
    "Artifact",
    "ConversionResult",
    "DiagramBlock",
    "DocumentMetadata",
    "OutputFormat",
    "PageTheme",
    "SourceDocument",
    "output_filename",
    "PlaywrightRasterizer",
    "Rasterizer",
    "render_paginated",
    "MAX_SOURCE_BYTES",
    "convert",
    "read_source",
    "source_from_bytes",
    "DocxWriter",
    "StructuralWriter",
    "render_structural",
]
