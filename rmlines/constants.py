"""
Shared constants for the lines-format decoder and renderer.
"""

from .parser import Pen

# Native tablet canvas in device units
NATIVE_WIDTH = 1404
NATIVE_HEIGHT = 1872

# Every pen width is divided by this to land on an A4-sized page
A4_WIDTH_SCALE = 2.3

# Dynamic-width pens restart their polyline every this many segments
DYNAMIC_RUN_LENGTH = 8

# Color names (for SVG)
PALETTE_DEFAULT = {
    0: "black",
    1: "grey",
    2: "white",
    3: "yellow",
}

# "Colored annotations" mode swaps black/grey for blue/red
PALETTE_COLORED = {
    0: "blue",
    1: "red",
    2: "white",
    3: "yellow",
}

FALLBACK_COLOR = "black"

# Color indices forced by specific pens
WHITE_INDEX = 2
YELLOW_INDEX = 3

# Pens whose width and opacity follow pressure and tilt
DYNAMIC_PENS = {Pen.BRUSH, Pen.TILT_PENCIL}

