"""
Error taxonomy and per-conversion diagnostics.

Fatal conditions are raised as ConversionError subclasses. Recoverable
conditions are recorded on a Diagnostics collector and logged, never raised
past the decoder.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum


class ErrorKind(str, Enum):
    """Kinds of conditions a conversion can run into."""
    INVALID_FORMAT = "invalid_format"
    TRUNCATED = "truncated"
    UNKNOWN_PEN = "unknown_pen"
    UNKNOWN_COLOR = "unknown_color"
    UNSUPPORTED_VERSION = "unsupported_version"
    CORRUPT_COUNT = "corrupt_count"
    IO_ERROR = "io_error"


class ConversionError(Exception):
    """Base class for everything that can go wrong converting a page."""
    kind = ErrorKind.INVALID_FORMAT


class InvalidFormatError(ConversionError, ValueError):
    """Bad signature, zero layers, or a buffer too short to hold a header."""
    kind = ErrorKind.INVALID_FORMAT


class TruncatedError(ConversionError, EOFError):
    """Fewer bytes left in the buffer than a read asked for."""
    kind = ErrorKind.TRUNCATED

    def __init__(self, wanted: int, available: int, position: int):
        super().__init__(
            f"Expected {wanted} bytes at offset {position}, got {available}"
        )
        self.wanted = wanted
        self.available = available
        self.position = position


class ConversionIOError(ConversionError, OSError):
    """Input could not be read or output could not be written."""
    kind = ErrorKind.IO_ERROR


@dataclass(frozen=True)
class Diagnostic:
    """One recovery decision taken during a conversion."""
    kind: ErrorKind
    message: str


@dataclass
class Diagnostics:
    """
    Collects recovery decisions for a single conversion.

    In verbose mode every entry is logged at WARNING, otherwise at DEBUG so
    that recoverable conditions stay silent under a default handler.
    """
    verbose: bool = False
    entries: list[Diagnostic] = field(default_factory=list)

    def note(self, kind: ErrorKind, logger: logging.Logger, msg: str, *args) -> None:
        message = msg % args if args else msg
        self.entries.append(Diagnostic(kind, message))
        logger.log(logging.WARNING if self.verbose else logging.DEBUG, message)

    def of_kind(self, kind: ErrorKind) -> list[Diagnostic]:
        return [d for d in self.entries if d.kind == kind]

    def __len__(self) -> int:
        return len(self.entries)
