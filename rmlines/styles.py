"""
Pen styles for lines-format strokes.

Maps a pen and its raw width to a color, width and opacity, and splits
pressure/tilt-sensitive strokes into runs with their own width. Everything
here is a pure function of its arguments.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .parser import Pen, Segment, Stroke
from .constants import (
    A4_WIDTH_SCALE,
    DYNAMIC_PENS,
    DYNAMIC_RUN_LENGTH,
    FALLBACK_COLOR,
    PALETTE_COLORED,
    PALETTE_DEFAULT,
    WHITE_INDEX,
    YELLOW_INDEX,
)


@dataclass(frozen=True)
class PenStyle:
    """Resolved rendering style for one stroke."""
    color: str
    width: float
    opacity: float
    color_index: int
    override_color: Optional[int] = None
    known_pen: bool = True
    known_color: bool = True


@dataclass(frozen=True)
class Run:
    """A stretch of segments drawn as one polyline."""
    width: float
    opacity: float
    segments: tuple[Segment, ...]


def _unchanged(w: float) -> float:
    return w


# pen -> (width formula on the raw width, opacity)
_PEN_POLICY: dict[Pen, tuple[Callable[[float], float], float]] = {
    Pen.BRUSH: (_unchanged, 1.0),
    Pen.TILT_PENCIL: (_unchanged, 1.0),
    Pen.FINELINER: (lambda w: 32 * w * w - 116 * w + 107, 1.0),
    Pen.PEN: (lambda w: 32 * w * w - 116 * w + 107, 1.0),
    Pen.MARKER: (lambda w: 64 * w - 112, 0.9),
    Pen.HIGHLIGHTER: (lambda w: 30.0, 0.2),
    Pen.ERASER: (lambda w: 1280 * w * w - 4800 * w + 4510, 1.0),
    Pen.PENCIL_SHARP: (lambda w: 16 * w - 27, 0.9),
    Pen.ERASE_AREA: (_unchanged, 0.0),
}

_UNKNOWN_POLICY = (_unchanged, 1.0)


def palette(colored_annotations: bool) -> dict[int, str]:
    """Color index -> SVG color name, built fresh for each caller."""
    return dict(PALETTE_COLORED if colored_annotations else PALETTE_DEFAULT)


def override_color(pen: Pen | int, colored_annotations: bool) -> Optional[int]:
    """Color index a pen forces regardless of the stroke's own color."""
    if pen == Pen.ERASER:
        return WHITE_INDEX
    if pen == Pen.HIGHLIGHTER and colored_annotations:
        return YELLOW_INDEX
    return None


def resolve_style(pen: Pen | int, raw_width: float, color_index: int = 0,
                  colored_annotations: bool = False) -> PenStyle:
    """
    Resolve the style of a stroke.

    Unknown pens keep their raw width at full opacity and unknown colors
    render black; both are flagged on the returned style.
    """
    known_pen = isinstance(pen, Pen)
    width_of, opacity = _PEN_POLICY[pen] if known_pen else _UNKNOWN_POLICY

    forced = override_color(pen, colored_annotations)
    index = forced if forced is not None else color_index

    colors = palette(colored_annotations)
    known_color = index in colors

    return PenStyle(
        color=colors.get(index, FALLBACK_COLOR),
        width=width_of(raw_width) / A4_WIDTH_SCALE,
        opacity=opacity,
        color_index=index,
        override_color=forced,
        known_pen=known_pen,
        known_color=known_color,
    )


def is_dynamic(pen: Pen | int) -> bool:
    return isinstance(pen, Pen) and pen in DYNAMIC_PENS


def dynamic_style(pen: Pen, raw_width: float, segment: Segment) -> tuple[float, float]:
    """Width and opacity of a run starting at this segment."""
    tilt = segment.tilt
    pressure = segment.pressure
    if pen == Pen.BRUSH:
        width = 5 * tilt * (6 * raw_width - 10) * (1 + 2 * pressure ** 3)
        opacity = 1.0
    else:
        width = (10 * tilt - 2) * (8 * raw_width - 14)
        opacity = (pressure - 0.2) ** 2
    return width / A4_WIDTH_SCALE, opacity


def split_runs(stroke: Stroke, style: PenStyle) -> list[Run]:
    """
    Split a stroke into the polylines it is drawn with.

    Fixed-width pens give a single run. Dynamic pens start a new run every
    DYNAMIC_RUN_LENGTH segments, each opening with the previous run's last
    point so the path stays connected.
    """
    if not is_dynamic(stroke.pen) or not stroke.segments:
        return [Run(style.width, style.opacity, stroke.segments)]

    runs: list[tuple[float, float, list[Segment]]] = []
    current: list[Segment] = []
    for index, segment in enumerate(stroke.segments):
        if index % DYNAMIC_RUN_LENGTH == 0:
            width, opacity = dynamic_style(stroke.pen, stroke.raw_width, segment)
            current = [stroke.segments[index - 1]] if index else []
            runs.append((width, opacity, current))
        current.append(segment)

    return [Run(width, opacity, tuple(points)) for width, opacity, points in runs]
