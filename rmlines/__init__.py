"""
reMarkable lines file converter

Decode the tablet's binary .lines notebook pages (versions 3-6) and render
them to SVG.

Usage:
    from rmlines import convert_file, RenderOptions

    result = convert_file("page.rm", "page.svg", RenderOptions(colored_annotations=True))
    if not result.success:
        print(result.error_message)

CLI:
    python -m rmlines <input.rm> -o <output.svg>
"""

from .errors import (
    ConversionError,
    ConversionIOError,
    Diagnostic,
    Diagnostics,
    ErrorKind,
    InvalidFormatError,
    TruncatedError,
)
from .parser import (
    Document,
    FormatVersion,
    Layer,
    Stroke,
    Segment,
    Pen,
    decode,
    parse_file,
    parse_header,
    stroke_layout,
)
from .styles import (
    PenStyle,
    palette,
    resolve_style,
    split_runs,
)
from .renderer import (
    CoordinateMapper,
    RenderOptions,
    render_svg,
    render_to_file,
)
from .converter import (
    ConversionResult,
    convert,
    convert_file,
)

__all__ = [
    "ConversionError",
    "ConversionIOError",
    "Diagnostic",
    "Diagnostics",
    "ErrorKind",
    "InvalidFormatError",
    "TruncatedError",
    "Document",
    "FormatVersion",
    "Layer",
    "Stroke",
    "Segment",
    "Pen",
    "decode",
    "parse_file",
    "parse_header",
    "stroke_layout",
    "PenStyle",
    "palette",
    "resolve_style",
    "split_runs",
    "CoordinateMapper",
    "RenderOptions",
    "render_svg",
    "render_to_file",
    "ConversionResult",
    "convert",
    "convert_file",
]

__version__ = "0.1.0"
