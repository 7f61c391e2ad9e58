"""Single-document export: read, convert, render and write the artifact."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from .config import ConvertConfig
from .diagrams import DiagramRenderer, KrokiDiagramRenderer
from .errors import ConversionError
from .models import Artifact, ConversionResult, OutputFormat
from .paginated import PlaywrightRasterizer, Rasterizer, render_paginated
from .pipeline import convert, read_source
from .structural import DocxWriter, StructuralWriter, render_structural


class ExportStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class ExportOutcome:
    """Result of exporting (or attempting to export) one document."""

    source: Path
    status: ExportStatus
    output_path: Optional[Path] = None
    reason: Optional[str] = None
    error: Optional[Exception] = None


@dataclass(frozen=True)
class ExportDependencies:
    """Seams for the external renderers."""

    diagram_renderer: DiagramRenderer
    rasterizer: Rasterizer
    writer_factory: Callable[[], StructuralWriter] = DocxWriter


def default_dependencies(config: ConvertConfig) -> ExportDependencies:
    return ExportDependencies(
        diagram_renderer=KrokiDiagramRenderer(
            config.renderer_url, timeout=config.renderer_timeout
        ),
        rasterizer=PlaywrightRasterizer(),
    )


async def render_artifact(
    result: ConversionResult,
    config: ConvertConfig,
    dependencies: ExportDependencies,
) -> Artifact:
    """Dispatch ``result`` to the renderer for ``config.output_format``."""

    if config.output_format is OutputFormat.PDF:
        return await render_paginated(
            result.metadata,
            result.html,
            config.theme,
            rasterizer=dependencies.rasterizer,
        )
    return await asyncio.to_thread(
        render_structural,
        result.metadata,
        result.html,
        writer_factory=dependencies.writer_factory,
    )


async def export_document(
    source_path: Path,
    *,
    config: ConvertConfig,
    dependencies: ExportDependencies,
    logger: logging.Logger,
    today: Callable[[], date] | None = None,
) -> ExportOutcome:
    """Export ``source_path`` into ``config.output_dir``.

    Conversion errors are reported in the returned outcome; nothing is
    written when any stage fails.
    """

    source = source_path.expanduser()
    logger.info(
        "Starting export",
        extra={
            "source": str(source),
            "format": config.output_format.value,
            "theme": config.theme.value,
        },
    )
    try:
        document = await read_source(source)
        result = await convert(
            document,
            diagram_renderer=dependencies.diagram_renderer,
            today=today,
        )
        artifact = await render_artifact(result, config, dependencies)
        target = config.output_dir / artifact.filename
        await asyncio.to_thread(_write_artifact, target, artifact)
    except (ConversionError, OSError) as exc:
        logger.error(
            "Export failed",
            extra={"source": str(source), "reason": str(exc)},
        )
        return ExportOutcome(
            source=source,
            status=ExportStatus.FAILED,
            reason=str(exc),
            error=exc,
        )

    logger.info(
        "Exported document",
        extra={
            "source": str(source),
            "output_path": str(target),
            "bytes": len(artifact.data),
        },
    )
    return ExportOutcome(
        source=source,
        status=ExportStatus.SUCCESS,
        output_path=target,
    )


def _write_artifact(target: Path, artifact: Artifact) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(artifact.data)


__all__ = [
    "ExportDependencies",
    "ExportOutcome",
    "ExportStatus",
    "default_dependencies",
    "export_document",
    "render_artifact",
]
