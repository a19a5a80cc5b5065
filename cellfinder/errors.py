"""Typed errors raised by the cell detection engine."""

from __future__ import annotations


class CellDetectionError(Exception):
    """Base class for every error raised by cellfinder."""

    kind = "error"


class InvalidInput(CellDetectionError):
    """Zero-area image, malformed pixel buffer or malformed segment list."""

    kind = "invalid_input"


class NoLinesDetected(CellDetectionError):
    """A line-based producer found nothing to cut along."""

    kind = "no_lines_detected"


class DegenerateGeometry(CellDetectionError):
    """Arrangement produced no positive-area cell."""

    kind = "degenerate_geometry"


class UnsupportedMode(CellDetectionError):
    """Unknown detection strategy identifier."""

    kind = "unsupported_mode"
