"""Segment arrangement: axis-aligned segments to non-overlapping cells.

Pipeline:
1. Normalize segments to horizontal/vertical (diagonals ignored)
2. Build the coordinate lattice from segment coordinates and image borders
3. Atomic grid: one cell per positive-area lattice cell
4. Block adjacency wherever a segment covers the shared boundary
5. Flood fill connected atomic cells
6. Rectangular components become one cell, irregular ones stay atomic
"""

from __future__ import annotations

from bisect import bisect_left
from collections import deque
from dataclasses import dataclass
from numbers import Real
from typing import Iterable, List, Sequence, Set, Tuple

from ..errors import DegenerateGeometry, InvalidInput
from .utils import Rect, Segment, clamp, pdebug, sort_reading_order


@dataclass(frozen=True)
class _HLine:
    y: float
    x1: float
    x2: float


@dataclass(frozen=True)
class _VLine:
    x: float
    y1: float
    y2: float


def _coerce_segment(seg) -> Segment:
    if isinstance(seg, Segment):
        return seg
    try:
        if isinstance(seg, dict):
            values = (seg["x1"], seg["y1"], seg["x2"], seg["y2"])
        else:
            values = tuple(seg)
    except (KeyError, TypeError) as e:
        raise InvalidInput(f"malformed segment: {seg!r}") from e
    if len(values) != 4 or not all(isinstance(v, Real) and not isinstance(v, bool) for v in values):
        raise InvalidInput(f"malformed segment: {seg!r}")
    if any(v != v for v in values):
        raise InvalidInput(f"segment has NaN coordinates: {seg!r}")
    return Segment(*(float(v) for v in values))


def normalize_segments(
    segments: Iterable,
    width: float,
    height: float,
    eps: float = 1.0,
) -> Tuple[List[_HLine], List[_VLine]]:
    """Split segments into clamped horizontal and vertical lines.

    Segments that are neither horizontal nor vertical within ``eps``, or that
    have no length after clamping, are ignored.
    """
    horizontals: List[_HLine] = []
    verticals: List[_VLine] = []
    for raw in segments:
        s = _coerce_segment(raw)
        if abs(s.y1 - s.y2) <= eps:
            y = clamp((s.y1 + s.y2) / 2.0, 0, height)
            x1 = clamp(min(s.x1, s.x2), 0, width)
            x2 = clamp(max(s.x1, s.x2), 0, width)
            if x2 - x1 > eps:
                horizontals.append(_HLine(y, x1, x2))
        elif abs(s.x1 - s.x2) <= eps:
            x = clamp((s.x1 + s.x2) / 2.0, 0, width)
            y1 = clamp(min(s.y1, s.y2), 0, height)
            y2 = clamp(max(s.y1, s.y2), 0, height)
            if y2 - y1 > eps:
                verticals.append(_VLine(x, y1, y2))
        else:
            pdebug(f"[arrange] ignoring diagonal segment {s}")
    return horizontals, verticals


def build_lattice(values: Iterable[float], size: float, eps: float) -> List[float]:
    """Sorted unique coordinates in [0, size]; near-duplicates merged.

    The image borders 0 and ``size`` always survive a merge.
    """
    out: List[float] = []
    for v in sorted(set([0.0, float(size)] + [clamp(float(v), 0, size) for v in values])):
        if out and v - out[-1] <= eps:
            if v in (0.0, float(size)):
                out[-1] = v
            continue
        out.append(v)
    if out[0] != 0.0:
        out[0] = 0.0
    if out[-1] != float(size):
        out[-1] = float(size)
    return out


def _snap(lattice: Sequence[float], v: float) -> int:
    """Index of the lattice coordinate nearest to ``v``."""
    i = bisect_left(lattice, v)
    if i <= 0:
        return 0
    if i >= len(lattice):
        return len(lattice) - 1
    return i if lattice[i] - v < v - lattice[i - 1] else i - 1


def _covered(lattice: Sequence[float], a: float, b: float, eps: float) -> range:
    """Indices j whose interval [lattice[j], lattice[j+1]] overlaps [a, b] by more than eps."""
    js = [
        j for j in range(len(lattice) - 1)
        if min(b, lattice[j + 1]) - max(a, lattice[j]) > eps
    ]
    return range(js[0], js[-1] + 1) if js else range(0)


def arrange(segments: Sequence, width: float, height: float, eps: float = 1.0) -> List[Rect]:
    """Convert separator segments into non-overlapping rectangular cells.

    Args:
        segments: Segment objects, (x1, y1, x2, y2) tuples or dicts
        width, height: Image dimensions
        eps: Coordinate tolerance in pixels

    Returns:
        Cells sorted top-to-bottom, left-to-right. Their union is the image.

    Raises:
        InvalidInput: non-positive dimensions or malformed segments
        DegenerateGeometry: no positive-area cell could be formed
    """
    if not isinstance(width, Real) or not isinstance(height, Real) or width <= 0 or height <= 0:
        raise InvalidInput(f"image has zero area ({width}x{height})")
    if segments is None:
        segments = []
    width = float(width)
    height = float(height)
    eps = max(0.0, float(eps))

    horizontals, verticals = normalize_segments(segments, width, height, eps)
    full = [Rect(0.0, 0.0, width, height)]
    if not horizontals and not verticals:
        return full

    xs = build_lattice(
        [v.x for v in verticals] + [h.x1 for h in horizontals] + [h.x2 for h in horizontals],
        width, eps,
    )
    ys = build_lattice(
        [h.y for h in horizontals] + [v.y1 for v in verticals] + [v.y2 for v in verticals],
        height, eps,
    )
    cols = len(xs) - 1
    rows = len(ys) - 1
    if cols < 1 or rows < 1:
        raise DegenerateGeometry("lattice has no positive-area cell")
    if cols == 1 and rows == 1:
        return full

    # Boundary (i, j) in v_blocked: the line x = xs[i] is closed for row j
    v_blocked: Set[Tuple[int, int]] = set()
    for v in verticals:
        i = _snap(xs, v.x)
        if 0 < i < cols:
            for j in _covered(ys, v.y1, v.y2, eps):
                v_blocked.add((i, j))
    # Boundary (i, j) in h_blocked: the line y = ys[j] is closed for column i
    h_blocked: Set[Tuple[int, int]] = set()
    for h in horizontals:
        j = _snap(ys, h.y)
        if 0 < j < rows:
            for i in _covered(xs, h.x1, h.x2, eps):
                h_blocked.add((i, j))

    cells = _components_to_cells(xs, ys, v_blocked, h_blocked)
    if not cells:
        raise DegenerateGeometry("arrangement produced no positive-area cell")
    pdebug(f"[arrange] lattice={cols}x{rows} segments={len(horizontals) + len(verticals)} cells={len(cells)}")
    return sort_reading_order(cells)


def _components_to_cells(
    xs: Sequence[float],
    ys: Sequence[float],
    v_blocked: Set[Tuple[int, int]],
    h_blocked: Set[Tuple[int, int]],
) -> List[Rect]:
    cols = len(xs) - 1
    rows = len(ys) - 1
    seen = [[False] * cols for _ in range(rows)]
    cells: List[Rect] = []

    for j0 in range(rows):
        for i0 in range(cols):
            if seen[j0][i0]:
                continue
            seen[j0][i0] = True
            members = []
            queue = deque([(i0, j0)])
            while queue:
                i, j = queue.popleft()
                members.append((i, j))
                neighbours = []
                if i + 1 < cols and (i + 1, j) not in v_blocked:
                    neighbours.append((i + 1, j))
                if i > 0 and (i, j) not in v_blocked:
                    neighbours.append((i - 1, j))
                if j + 1 < rows and (i, j + 1) not in h_blocked:
                    neighbours.append((i, j + 1))
                if j > 0 and (i, j) not in h_blocked:
                    neighbours.append((i, j - 1))
                for ni, nj in neighbours:
                    if not seen[nj][ni]:
                        seen[nj][ni] = True
                        queue.append((ni, nj))

            i_min = min(i for i, _ in members)
            i_max = max(i for i, _ in members)
            j_min = min(j for _, j in members)
            j_max = max(j for _, j in members)
            if len(members) == (i_max - i_min + 1) * (j_max - j_min + 1):
                cells.append(Rect(xs[i_min], ys[j_min], xs[i_max + 1] - xs[i_min], ys[j_max + 1] - ys[j_min]))
            else:
                # Irregular region: a bounding box would claim cells it does not own
                for i, j in sorted(members, key=lambda ij: (ij[1], ij[0])):
                    cells.append(Rect(xs[i], ys[j], xs[i + 1] - xs[i], ys[j + 1] - ys[j]))

    return [c for c in cells if c.w > 0 and c.h > 0]
