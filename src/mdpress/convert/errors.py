"""Exception types raised while converting a document."""

from __future__ import annotations

__all__ = [
    "ConversionError",
    "UnsupportedFormatError",
    "OversizeInputError",
    "ReadFailureError",
    "GrammarEngineError",
    "RasterizationError",
    "PackagingError",
    "DiagramRenderError",
    "ConvertConfigError",
]


class ConversionError(RuntimeError):
    """Fatal conversion failure; the message is shown to the user as is."""


class UnsupportedFormatError(ConversionError):
    """Raised when the source file extension is not a Markdown variant."""


class OversizeInputError(ConversionError):
    """Raised when the source exceeds the size cap."""


class ReadFailureError(ConversionError):
    """Raised when the source cannot be read or decoded."""


class GrammarEngineError(ConversionError):
    """Raised when Markdown cannot be rendered to HTML."""


class RasterizationError(ConversionError):
    """Raised when the styled document cannot be rasterized into pages."""


class PackagingError(ConversionError):
    """Raised when structural blocks cannot be serialized into a DOCX file."""


class DiagramRenderError(RuntimeError):
    """Raised by diagram renderers; recovered per block by the caller."""


class ConvertConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""
