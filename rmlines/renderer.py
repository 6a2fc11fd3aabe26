"""
SVG Renderer for decoded lines files.

Converts a decoded Document to one SVG page of polylines.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TextIO
import xml.etree.ElementTree as ET

from .parser import Document, Pen, Stroke
from .constants import NATIVE_WIDTH, NATIVE_HEIGHT
from .errors import Diagnostics, ErrorKind
from .styles import resolve_style, split_runs

logger = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


# =============================================================================
# Options
# =============================================================================

@dataclass(frozen=True)
class RenderOptions:
    """Options for one conversion. Never changed once created."""
    width: float = NATIVE_WIDTH
    height: float = NATIVE_HEIGHT
    colored_annotations: bool = False
    verbose: bool = False

    def __post_init__(self):
        if not all(math.isfinite(v) and v > 0 for v in (self.width, self.height)):
            raise ValueError(
                f"Canvas size must be positive, got {self.width}x{self.height}"
            )


# =============================================================================
# Coordinates
# =============================================================================

class CoordinateMapper:
    """
    Maps device coordinates onto the output canvas.

    The aspect ratio of the tablet is kept, so a canvas with a different
    shape gets letterboxed rather than stretched.
    """

    def __init__(self, width: float, height: float):
        self.width = width
        self.height = height
        self.ratio = (height / width) / (NATIVE_HEIGHT / NATIVE_WIDTH)

    def map(self, x: float, y: float) -> tuple[float, float]:
        if self.ratio > 1:
            return (
                self.ratio * x * self.width / NATIVE_WIDTH,
                y * self.height / NATIVE_HEIGHT,
            )
        return (
            x * self.width / NATIVE_WIDTH,
            (1 / self.ratio) * y * self.height / NATIVE_HEIGHT,
        )


def _fmt(value: float) -> str:
    return f"{value:g}"


def _pen_name(pen: Pen | int) -> str:
    return pen.name if isinstance(pen, Pen) else f"Unknown({pen})"


# =============================================================================
# SVG Document Generation
# =============================================================================

def stroke_elements(stroke: Stroke, mapper: CoordinateMapper, options: RenderOptions,
                    diagnostics: Diagnostics) -> list[ET.Element]:
    """Build the polyline(s) for one stroke."""
    style = resolve_style(stroke.pen, stroke.raw_width, stroke.color,
                          options.colored_annotations)
    if not style.known_pen:
        diagnostics.note(ErrorKind.UNKNOWN_PEN, logger,
                         "Unknown pen %s, drawing with the default style",
                         _pen_name(stroke.pen))
    if not style.known_color:
        diagnostics.note(ErrorKind.UNKNOWN_COLOR, logger,
                         "Unknown color %d on %s stroke, drawing in %s",
                         style.color_index, _pen_name(stroke.pen), style.color)

    elements = []
    for run in split_runs(stroke, style):
        points = "".join(
            "{:.3f},{:.3f} ".format(*mapper.map(s.x, s.y)) for s in run.segments
        )
        polyline = ET.Element("polyline")
        polyline.set("fill", "none")
        polyline.set("stroke", style.color)
        polyline.set("stroke-width", f"{run.width:.3f}")
        polyline.set("opacity", f"{run.opacity:.3f}")
        polyline.set("points", points)
        elements.append(polyline)
    return elements


def build_svg(doc: Document, options: Optional[RenderOptions] = None,
              diagnostics: Optional[Diagnostics] = None) -> ET.Element:
    """Build the SVG element tree for a document."""
    if options is None:
        options = RenderOptions()
    if diagnostics is None:
        diagnostics = Diagnostics(verbose=options.verbose)

    width, height = _fmt(options.width), _fmt(options.height)
    mapper = CoordinateMapper(options.width, options.height)

    svg = ET.Element("svg")
    svg.set("xmlns", "http://www.w3.org/2000/svg")
    svg.set("width", width)
    svg.set("height", height)
    svg.set("viewBox", f"0 0 {width} {height}")

    page = ET.SubElement(svg, "g")
    page.set("id", "p1")
    page.set("style", "display:inline")

    for stroke in doc.all_strokes():
        page.extend(stroke_elements(stroke, mapper, options, diagnostics))

    # Transparent overlay used by viewers to flip pages
    rect = ET.SubElement(page, "rect")
    rect.set("x", "0")
    rect.set("y", "0")
    rect.set("width", width)
    rect.set("height", height)
    rect.set("fill-opacity", "0")

    return svg


def render_string(doc: Document, options: Optional[RenderOptions] = None,
                  diagnostics: Optional[Diagnostics] = None) -> str:
    """Render a Document to SVG markup."""
    svg = build_svg(doc, options, diagnostics)
    # ElementTree writes "<tag ... />"; attribute values never contain " />"
    markup = ET.tostring(svg, encoding="unicode").replace(" />", "/>")
    return XML_DECLARATION + markup


def render_svg(doc: Document, output: TextIO, options: Optional[RenderOptions] = None,
               diagnostics: Optional[Diagnostics] = None) -> None:
    """
    Render a Document to SVG format.

    Args:
        doc: Decoded document
        output: File-like object to write SVG to
        options: Canvas size and palette (default: native 1404x1872)
        diagnostics: Collector for unknown pens and colors
    """
    output.write(render_string(doc, options, diagnostics))


def render_to_file(doc: Document, path: Path, options: Optional[RenderOptions] = None,
                   diagnostics: Optional[Diagnostics] = None) -> None:
    """Render document to an SVG file."""
    with open(path, "w", encoding="utf-8") as f:
        render_svg(doc, f, options, diagnostics)
