"""Grid layout schema.

One representation for uniform, structured (spanning cells) and freeform
(pixel rectangles) layouts, with conversions to and from bounds, segments
and compact strings such as "4x4" or "1L4S".
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .detector.arrangement import arrange
from .detector.utils import Rect

UNIFORM = "uniform"
STRUCTURED = "structured"
FREEFORM = "freeform"

MAX_GRID_DIM = 10
DEFAULT_GRID = "4x4"
DEFAULT_CELL_COUNT = 16

_COMPACT_RE = re.compile(r"^(\d+)x(\d+)$", re.IGNORECASE)


@dataclass
class GridCell:
    """Cell of a uniform or structured grid, in row/column units."""
    row: int
    col: int
    row_span: int = 1
    col_span: int = 1
    cell_type: Optional[str] = None   # "image", "text" or "branding"

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "row": self.row,
            "col": self.col,
            "rowSpan": self.row_span,
            "colSpan": self.col_span,
        }
        if self.cell_type:
            out["cellType"] = self.cell_type
        return out


@dataclass
class GridSpec:
    """A layout: grid cells for uniform/structured, pixel rects for freeform."""
    mode: str
    rows: Optional[int] = None
    cols: Optional[int] = None
    cells: List[Union[GridCell, Rect]] = field(default_factory=list)
    preset_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"mode": self.mode, "cells": [c.to_dict() for c in self.cells]}
        if self.rows is not None:
            out["rows"] = self.rows
        if self.cols is not None:
            out["cols"] = self.cols
        if self.preset_id:
            out["presetId"] = self.preset_id
        return out


def default_cells(rows: int, cols: int) -> List[GridCell]:
    return [GridCell(r, c) for r in range(rows) for c in range(cols)]


def _typed(rows: int, cols: int, kind) -> List[GridCell]:
    return [GridCell(r, c, cell_type=kind(r, c)) for r in range(rows) for c in range(cols)]


PRESETS: Dict[str, GridSpec] = {
    "2x2": GridSpec(UNIFORM, 2, 2, preset_id="2x2"),
    "2x2-B": GridSpec(STRUCTURED, 3, 2, [
        GridCell(0, 0, 1, 2, "image"),
        GridCell(1, 0, cell_type="image"),
        GridCell(1, 1, cell_type="image"),
        GridCell(2, 0, 1, 2, "image"),
    ], preset_id="2x2-B"),
    "3x3": GridSpec(UNIFORM, 3, 3, preset_id="3x3"),
    "3x3-A": GridSpec(STRUCTURED, 3, 3, _typed(
        3, 3, lambda r, c: "text" if (r, c) == (1, 1) else "image"), preset_id="3x3-A"),
    "3x3-B": GridSpec(STRUCTURED, 3, 3, _typed(
        3, 3, lambda r, c: "text" if r == 1 else "image"), preset_id="3x3-B"),
    "3x3-C": GridSpec(UNIFORM, 3, 3, _typed(3, 3, lambda r, c: "image"), preset_id="3x3-C"),
    "3x3-D": GridSpec(STRUCTURED, 3, 3, _typed(
        3, 3, lambda r, c: "text" if r == c else "image"), preset_id="3x3-D"),
    "4x4": GridSpec(UNIFORM, 4, 4, preset_id="4x4"),
    "4x4-A": GridSpec(STRUCTURED, 4, 4, _typed(
        4, 4, lambda r, c: "text" if r in (1, 2) and c in (1, 2) else "image"), preset_id="4x4-A"),
    "4x4-B": GridSpec(STRUCTURED, 4, 4, _typed(
        4, 4, lambda r, c: "text" if c in (1, 2) else "image"), preset_id="4x4-B"),
    "4x4-C": GridSpec(STRUCTURED, 4, 4, _typed(
        4, 4, lambda r, c: "branding" if r in (0, 3) or c in (0, 3) else "image"), preset_id="4x4-C"),
    "1L4S": GridSpec(STRUCTURED, 2, 4, [
        GridCell(0, 0, 1, 4),
        GridCell(1, 0),
        GridCell(1, 1),
        GridCell(1, 2),
        GridCell(1, 3),
    ], preset_id="1L4S"),
    "3N": GridSpec(STRUCTURED, 1, 3, [GridCell(0, 0), GridCell(0, 1), GridCell(0, 2)], preset_id="3N"),
}


def get_preset(preset_id: str) -> Optional[GridSpec]:
    """Independent copy of a built-in preset, or None."""
    spec = PRESETS.get(preset_id)
    return normalize_spec(copy.deepcopy(spec)) if spec is not None else None


def normalize_spec(spec: Optional[GridSpec]) -> Optional[GridSpec]:
    """Fill implied cells of a uniform spec; grow structured rows/cols to cover spans."""
    if spec is None:
        return None
    if spec.mode == UNIFORM and spec.rows is not None and spec.cols is not None:
        cells = list(spec.cells) if spec.cells else default_cells(spec.rows, spec.cols)
        return GridSpec(UNIFORM, spec.rows, spec.cols, cells, spec.preset_id)
    if spec.mode == STRUCTURED and spec.cells:
        rows = spec.rows or 0
        cols = spec.cols or 0
        for cell in spec.cells:
            rows = max(rows, cell.row + cell.row_span)
            cols = max(cols, cell.col + cell.col_span)
        return GridSpec(STRUCTURED, rows, cols, list(spec.cells), spec.preset_id)
    return spec


def spec_to_bounds(spec: GridSpec, width: float, height: float) -> Optional[Tuple[List[float], List[float]]]:
    """Evenly spaced pixel bounds of a grid spec (None for freeform specs)."""
    spec = normalize_spec(spec)
    if spec is None or not width or not height or spec.mode == FREEFORM:
        return None
    rows = spec.rows or 1
    cols = spec.cols or 1
    x_bounds = [c * width / cols for c in range(cols + 1)]
    y_bounds = [r * height / rows for r in range(rows + 1)]
    return x_bounds, y_bounds


def bounds_to_spec(x_bounds: Optional[Sequence[float]], y_bounds: Optional[Sequence[float]]) -> GridSpec:
    """Uniform spec matching the bounds' row/column count (2x2 when unusable)."""
    if not x_bounds or not y_bounds or len(x_bounds) < 2 or len(y_bounds) < 2:
        return GridSpec(UNIFORM, 2, 2, default_cells(2, 2))
    rows = len(y_bounds) - 1
    cols = len(x_bounds) - 1
    return GridSpec(UNIFORM, rows, cols, default_cells(rows, cols))


def segments_to_spec(segments, width: float, height: float) -> GridSpec:
    """Freeform spec whose cells are the arrangement of the segments."""
    return GridSpec(FREEFORM, cells=arrange(segments or [], width, height))


def spec_to_cells(
    spec: GridSpec,
    width: float,
    height: float,
    x_bounds: Optional[Sequence[float]] = None,
    y_bounds: Optional[Sequence[float]] = None,
) -> List[Rect]:
    """Pixel rectangles of a spec.

    Grid cells are placed on the given bounds (evenly spaced when omitted),
    spans included.
    """
    spec = normalize_spec(spec)
    if spec is None:
        return []
    if spec.mode == FREEFORM:
        return [c for c in spec.cells if isinstance(c, Rect)]
    if x_bounds is None or y_bounds is None:
        bounds = spec_to_bounds(spec, width, height)
        if bounds is None:
            return []
        x_bounds, y_bounds = bounds
    out = []
    for cell in spec.cells:
        c2 = min(cell.col + cell.col_span, len(x_bounds) - 1)
        r2 = min(cell.row + cell.row_span, len(y_bounds) - 1)
        if cell.col >= c2 or cell.row >= r2:
            continue
        x, y = x_bounds[cell.col], y_bounds[cell.row]
        out.append(Rect(x, y, x_bounds[c2] - x, y_bounds[r2] - y))
    return out


def spec_to_compact_string(spec: Optional[GridSpec]) -> str:
    spec = normalize_spec(spec)
    if spec is None:
        return DEFAULT_GRID
    if spec.preset_id:
        return spec.preset_id
    if spec.mode == UNIFORM and spec.rows is not None and spec.cols is not None:
        return f"{spec.rows}x{spec.cols}"
    if spec.mode == STRUCTURED:
        if spec.rows == 2 and spec.cols == 4 and len(spec.cells) == 5:
            return "1L4S"
        if spec.rows == 1 and spec.cols == 3:
            return "3N"
        return f"structured_{len(spec.cells)}"
    if spec.mode == FREEFORM:
        return f"freeform_{len(spec.cells)}"
    return DEFAULT_GRID


def parse_compact_grid(text: Optional[str]) -> GridSpec:
    """Parse "RxC" or a preset id; rows/cols clamped to 1..10, anything else is 4x4."""
    if not isinstance(text, str) or not text.strip():
        return get_preset(DEFAULT_GRID)
    t = text.strip()
    if t in PRESETS:
        return get_preset(t)
    m = _COMPACT_RE.match(t)
    if m:
        rows = max(1, min(MAX_GRID_DIM, int(m.group(1))))
        cols = max(1, min(MAX_GRID_DIM, int(m.group(2))))
        return GridSpec(UNIFORM, rows, cols, default_cells(rows, cols))
    return get_preset(DEFAULT_GRID)


def cell_count(spec: Optional[GridSpec]) -> int:
    spec = normalize_spec(spec)
    if spec is None:
        return DEFAULT_CELL_COUNT
    if spec.cells:
        return len(spec.cells)
    if spec.mode == UNIFORM and spec.rows is not None and spec.cols is not None:
        return spec.rows * spec.cols
    return DEFAULT_CELL_COUNT
