"""
reMarkable .lines file parser

Decodes the tablet's binary stroke notebook format (versions 3 to 6).

Format Overview:
- Header: 45 bytes "reMarkable .lines file, version=5" padded with spaces
- Layer count: u32, then per layer a u32 stroke count
- Stroke: pen, color, reserved (u32 x3), width (f32), [extra u32 for v5+],
  segment count (u32)
- Segment: 24 bytes (x, y, pressure, tilt, reserved, reserved) as f32

Nothing in the file says how long a stroke run is, so a bad count or a short
buffer leaves the cursor in an unknown place. Decoding stops at the first such
point and keeps everything read so far.
"""

from __future__ import annotations

import logging
import re
import struct
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Iterator, Optional

from .errors import Diagnostics, ErrorKind, InvalidFormatError, TruncatedError

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

HEADER_SIZE = 45
MIN_FILE_SIZE = HEADER_SIZE + 4

HEADER_PATTERN = re.compile(r"^reMarkable \.lines file, version=(\d+) *$")
HEADER_FALLBACK_PATTERN = re.compile(r"reMarkable \.lines file.*?version\s*=\s*(\d+)")

# Above this the layer count is assumed corrupted and clamped
MAX_LAYERS = 100
CLAMPED_LAYERS = 10

# Native files hold a few thousand strokes per layer at most
MAX_STROKES_PER_LAYER = 1_000_000

SEGMENT_FORMAT = "<ffffff"
SEGMENT_SIZE = struct.calcsize(SEGMENT_FORMAT)


class FormatVersion(IntEnum):
    """Known versions of the lines format."""
    V3 = 3
    V4 = 4
    V5 = 5
    V6 = 6


FALLBACK_VERSION = FormatVersion.V5


class Pen(IntEnum):
    """Pen/tool types."""
    BRUSH = 0
    TILT_PENCIL = 1
    FINELINER = 2
    MARKER = 3
    PEN = 4
    HIGHLIGHTER = 5
    ERASER = 6
    PENCIL_SHARP = 7
    ERASE_AREA = 8


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class Segment:
    """A single sampled point of a stroke, in device units."""
    x: float
    y: float
    pressure: float
    tilt: float
    reserved1: float = 0.0
    reserved2: float = 0.0


@dataclass(frozen=True)
class Stroke:
    """A stroke (line) with pen settings and segments."""
    pen: Pen | int  # Unknown pen types kept as int
    color: int
    reserved: int
    raw_width: float
    extra: Optional[int] = None  # v5/v6 only
    segments: tuple[Segment, ...] = ()
    truncated: bool = False


@dataclass(frozen=True)
class Layer:
    """A layer containing strokes."""
    strokes: tuple[Stroke, ...] = ()


@dataclass(frozen=True)
class Header:
    """Validated file header."""
    raw_version: str
    version: FormatVersion
    layer_count: int
    declared_layer_count: int


@dataclass(frozen=True)
class Document:
    """Decoded page."""
    version: FormatVersion
    raw_version: str = ""
    layers: tuple[Layer, ...] = field(default_factory=tuple)

    def all_strokes(self) -> Iterator[Stroke]:
        """Iterate over all strokes in all layers."""
        for layer in self.layers:
            yield from layer.strokes

    @property
    def stroke_count(self) -> int:
        return sum(len(layer.strokes) for layer in self.layers)

    @property
    def segment_count(self) -> int:
        return sum(len(stroke.segments) for stroke in self.all_strokes())


# =============================================================================
# Binary Reader
# =============================================================================

class BinaryReader:
    """
    Forward-only, bounds-checked little-endian reader over a byte buffer.

    A read that would run past the end raises TruncatedError and leaves the
    position where it was.
    """

    def __init__(self, data: bytes):
        self.data = memoryview(data)
        self.pos = 0

    def tell(self) -> int:
        return self.pos

    def remaining(self) -> int:
        return len(self.data) - self.pos

    def _require(self, n: int) -> None:
        if n > self.remaining():
            raise TruncatedError(n, self.remaining(), self.pos)

    def read_bytes(self, n: int) -> bytes:
        """Read exactly n bytes."""
        self._require(n)
        result = bytes(self.data[self.pos:self.pos + n])
        self.pos += n
        return result

    def skip(self, n: int) -> None:
        self._require(n)
        self.pos += n

    def read_struct(self, fmt: str) -> tuple:
        """Read a whole struct at once, all or nothing."""
        size = struct.calcsize(fmt)
        self._require(size)
        values = struct.unpack_from(fmt, self.data, self.pos)
        self.pos += size
        return values

    def read_uint32(self) -> int:
        return self.read_struct("<I")[0]

    def read_float32(self) -> float:
        return self.read_struct("<f")[0]


# =============================================================================
# Header
# =============================================================================

def _match_signature(signature: str) -> Optional[str]:
    """Return the version digits from a signature, or None."""
    match = HEADER_PATTERN.match(signature)
    if match is None:
        match = HEADER_FALLBACK_PATTERN.search(signature)
    return match.group(1) if match else None


def parse_header(data: bytes, diagnostics: Optional[Diagnostics] = None) -> Header:
    """
    Validate the signature and read the layer count.

    Raises InvalidFormatError for a short buffer, a signature that matches
    neither pattern, or zero layers. Unsupported versions and absurd layer
    counts are recovered from and noted.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()

    if len(data) < MIN_FILE_SIZE:
        raise InvalidFormatError(
            f"File too short to be a lines file: {len(data)} bytes, "
            f"need at least {MIN_FILE_SIZE}"
        )

    reader = BinaryReader(data)
    signature = reader.read_bytes(HEADER_SIZE).decode("latin-1")
    declared_layers = reader.read_uint32()

    raw_version = _match_signature(signature)
    if raw_version is None:
        raise InvalidFormatError(f"Invalid header: {signature!r}")

    try:
        version = FormatVersion(int(raw_version))
    except ValueError:
        version = FALLBACK_VERSION
        diagnostics.note(
            ErrorKind.UNSUPPORTED_VERSION, logger,
            "Unsupported version %s, decoding with the v%d stroke layout",
            raw_version, FALLBACK_VERSION.value,
        )

    if declared_layers == 0:
        raise InvalidFormatError("Not a valid lines file: zero layers")

    layer_count = declared_layers
    if declared_layers > MAX_LAYERS:
        layer_count = CLAMPED_LAYERS
        diagnostics.note(
            ErrorKind.CORRUPT_COUNT, logger,
            "Layer count %d looks corrupted, clamping to %d",
            declared_layers, CLAMPED_LAYERS,
        )

    return Header(
        raw_version=raw_version,
        version=version,
        layer_count=layer_count,
        declared_layer_count=declared_layers,
    )


# =============================================================================
# Stroke Layout
# =============================================================================

@dataclass(frozen=True)
class StrokeLayout:
    """Binary layout of a stroke record."""
    fmt: str
    has_extra: bool

    @property
    def size(self) -> int:
        return struct.calcsize(self.fmt)


STROKE_LAYOUT_SHORT = StrokeLayout("<IIIfI", has_extra=False)  # 20 bytes
STROKE_LAYOUT_LONG = StrokeLayout("<IIIfII", has_extra=True)   # 24 bytes

_STROKE_LAYOUTS = {
    FormatVersion.V3: STROKE_LAYOUT_SHORT,
    FormatVersion.V4: STROKE_LAYOUT_SHORT,
    FormatVersion.V5: STROKE_LAYOUT_LONG,
    FormatVersion.V6: STROKE_LAYOUT_LONG,
}


def stroke_layout(version: FormatVersion) -> StrokeLayout:
    """Stroke record layout for a format version."""
    return _STROKE_LAYOUTS[version]


# =============================================================================
# Document Decoder
# =============================================================================

def to_pen(pen_id: int) -> Pen | int:
    """Map a raw pen id to Pen, keeping unknown ids as int."""
    try:
        return Pen(pen_id)
    except ValueError:
        return pen_id


def read_segment(reader: BinaryReader) -> Segment:
    """Read a single segment (24 bytes)."""
    return Segment(*reader.read_struct(SEGMENT_FORMAT))


def read_stroke(reader: BinaryReader, layout: StrokeLayout) -> Stroke:
    """
    Read a stroke header and as many of its segments as the buffer holds.

    Raises TruncatedError only if the header itself is cut off. A stroke
    whose segments run out is returned with truncated=True.
    """
    fields = reader.read_struct(layout.fmt)
    pen_id, color, reserved, raw_width = fields[:4]
    segment_count = fields[-1]
    extra = fields[4] if layout.has_extra else None

    segments = []
    truncated = False
    for _ in range(segment_count):
        try:
            segments.append(read_segment(reader))
        except TruncatedError:
            truncated = True
            break

    return Stroke(
        pen=to_pen(pen_id),
        color=color,
        reserved=reserved,
        raw_width=raw_width,
        extra=extra,
        segments=tuple(segments),
        truncated=truncated,
    )


def decode(data: bytes, diagnostics: Optional[Diagnostics] = None) -> Document:
    """
    Decode a whole lines file.

    Only header validation raises (InvalidFormatError). Running out of bytes
    or hitting an implausible stroke count stops decoding at that point and
    returns what was read, which always includes at least one layer.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()

    header = parse_header(data, diagnostics)
    layout = stroke_layout(header.version)

    reader = BinaryReader(data)
    reader.skip(MIN_FILE_SIZE)

    layers: list[Layer] = []
    for layer_index in range(header.layer_count):
        try:
            stroke_count = reader.read_uint32()
        except TruncatedError:
            diagnostics.note(
                ErrorKind.TRUNCATED, logger,
                "File ends before layer %d, keeping %d layer(s)",
                layer_index, len(layers),
            )
            break

        if stroke_count > MAX_STROKES_PER_LAYER:
            # The cursor cannot be resynchronised onto the next layer
            diagnostics.note(
                ErrorKind.CORRUPT_COUNT, logger,
                "Layer %d declares %d strokes, treating it as empty and stopping",
                layer_index, stroke_count,
            )
            layers.append(Layer())
            break

        strokes: list[Stroke] = []
        stopped = False
        for stroke_index in range(stroke_count):
            try:
                stroke = read_stroke(reader, layout)
            except TruncatedError as e:
                diagnostics.note(
                    ErrorKind.TRUNCATED, logger,
                    "Stroke %d of layer %d has a truncated header (%s)",
                    stroke_index, layer_index, e,
                )
                stopped = True
                break

            strokes.append(stroke)
            if stroke.truncated:
                diagnostics.note(
                    ErrorKind.TRUNCATED, logger,
                    "Stroke %d of layer %d truncated after %d segment(s)",
                    stroke_index, layer_index, len(stroke.segments),
                )
                stopped = True
                break

        layers.append(Layer(strokes=tuple(strokes)))
        if stopped:
            break

    if not layers:
        layers.append(Layer())

    return Document(
        version=header.version,
        raw_version=header.raw_version,
        layers=tuple(layers),
    )


def parse_file(path: Path, diagnostics: Optional[Diagnostics] = None) -> Document:
    """Read and decode a lines file from disk."""
    with open(path, "rb") as f:
        data = f.read()
    return decode(data, diagnostics)


# =============================================================================
# CLI
# =============================================================================

def analyze_file(path: Path) -> None:
    """Analyze a lines file and print summary."""
    path = Path(path)
    print(f"File: {path.name}")
    print(f"Size: {path.stat().st_size} bytes")
    print()

    diagnostics = Diagnostics()
    doc = parse_file(path, diagnostics)

    print(f"Version: {doc.raw_version} (decoded as v{doc.version.value})")
    print(f"Layers: {len(doc.layers)}")
    print(f"Strokes: {doc.stroke_count}")
    print(f"Segments: {doc.segment_count}")

    if doc.stroke_count > 0:
        print("\nPen types used:")
        pens = {stroke.pen for stroke in doc.all_strokes()}
        for pen in sorted(pens, key=int):
            name = pen.name if isinstance(pen, Pen) else f"Unknown({pen})"
            print(f"  - {name}")

        print("\nColors used:")
        colors = {stroke.color for stroke in doc.all_strokes()}
        for color in sorted(colors):
            print(f"  - {color}")

    if diagnostics.entries:
        print("\nRecovered from:")
        for entry in diagnostics.entries:
            print(f"  - [{entry.kind.value}] {entry.message}")


if __name__ == "__main__":
    import sys

    if len(sys.argv) < 2:
        print("Usage: python -m rmlines.parser <file.rm>")
        sys.exit(1)

    path = Path(sys.argv[1])
    if not path.exists():
        print(f"File not found: {path}")
        sys.exit(1)

    analyze_file(path)
