"""
Builders for synthetic lines files.
"""

from __future__ import annotations

import struct

import pytest


def header(version="5", layers=1, signature=None) -> bytes:
    """45-byte signature padded with spaces, then the layer count."""
    if signature is None:
        signature = f"reMarkable .lines file, version={version}"
    raw = signature.encode("latin-1").ljust(45, b" ")[:45]
    return raw + struct.pack("<I", layers)


def stroke(pen=2, color=0, width=2.0, segments=(), long_layout=True,
           segment_count=None, extra=0) -> bytes:
    """Stroke record followed by its segments."""
    count = len(segments) if segment_count is None else segment_count
    if long_layout:
        data = struct.pack("<IIIfII", pen, color, 0, width, extra, count)
    else:
        data = struct.pack("<IIIfI", pen, color, 0, width, count)
    for seg in segments:
        data += segment(*seg)
    return data


def segment(x, y, pressure=0.5, tilt=0.5, r1=0.0, r2=0.0) -> bytes:
    return struct.pack("<ffffff", x, y, pressure, tilt, r1, r2)


def layer(*strokes: bytes) -> bytes:
    return struct.pack("<I", len(strokes)) + b"".join(strokes)


def lines_file(*layers: bytes, version="5") -> bytes:
    return header(version, len(layers)) + b"".join(layers)


@pytest.fixture
def single_stroke_file():
    """One layer, one fineliner stroke with three segments."""
    return lines_file(layer(stroke(pen=2, width=0.5, segments=[
        (100.0, 200.0), (110.0, 210.0), (120.0, 220.0),
    ])))
