"""
Convert lines files to SVG.

This is the boundary where exceptions turn into result values: convert()
and convert_file() always return a ConversionResult.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, TextIO, Union

from .errors import (
    ConversionError,
    ConversionIOError,
    Diagnostic,
    Diagnostics,
    InvalidFormatError,
)
from .parser import decode
from .renderer import RenderOptions, render_string

logger = logging.getLogger(__name__)

OutputSink = Union[str, Path, TextIO]


@dataclass
class ConversionResult:
    """Result of converting one page."""
    success: bool
    error: Optional[ConversionError] = None
    diagnostics: list[Diagnostic] = field(default_factory=list)
    layer_count: int = 0
    stroke_count: int = 0
    segment_count: int = 0
    output_path: Optional[Path] = None

    @property
    def error_message(self) -> str:
        return str(self.error) if self.error else ""


def _write(svg: str, output: OutputSink) -> Optional[Path]:
    if isinstance(output, (str, Path)):
        path = Path(output)
        with open(path, "w", encoding="utf-8") as f:
            f.write(svg)
        return path
    output.write(svg)
    return None


def convert(data: bytes, output: OutputSink,
            options: Optional[RenderOptions] = None) -> ConversionResult:
    """
    Decode a lines file held in memory and write it out as SVG.

    Args:
        data: Raw file contents
        output: Output path, or a text stream to write to
        options: Canvas size, palette and verbosity

    Returns:
        ConversionResult. On InvalidFormat nothing is written.
    """
    if options is None:
        options = RenderOptions()
    diagnostics = Diagnostics(verbose=options.verbose)

    try:
        doc = decode(data, diagnostics)
    except InvalidFormatError as e:
        logger.debug("Not a lines file: %s", e)
        return ConversionResult(success=False, error=e,
                                diagnostics=diagnostics.entries)

    svg = render_string(doc, options, diagnostics)

    try:
        output_path = _write(svg, output)
    except OSError as e:
        error = ConversionIOError(f"Cannot write output: {e}")
        logger.debug("%s", error)
        return ConversionResult(success=False, error=error,
                                diagnostics=diagnostics.entries)

    return ConversionResult(
        success=True,
        diagnostics=diagnostics.entries,
        layer_count=len(doc.layers),
        stroke_count=doc.stroke_count,
        segment_count=doc.segment_count,
        output_path=output_path,
    )


def convert_file(input_path: Path, output_path: OutputSink,
                 options: Optional[RenderOptions] = None) -> ConversionResult:
    """Convert a lines file on disk to an SVG file."""
    try:
        with open(input_path, "rb") as f:
            data = f.read()
    except OSError as e:
        error = ConversionIOError(f"Cannot read {input_path}: {e}")
        logger.debug("%s", error)
        return ConversionResult(success=False, error=error)

    return convert(data, output_path, options)
