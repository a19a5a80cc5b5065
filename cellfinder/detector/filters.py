"""Post-processing filters for detected cells.

Filters:
- Strip and tiny-fragment removal
- Minimum cell size
- Empty cell filtering
- Border evidence on all four sides
- Junction filtering for separator segments
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np
from numpy.typing import NDArray

from .utils import Rect, Segment, pdebug, rect_bounds_int


def filter_min_size(cells: Sequence[Rect], min_px: float) -> List[Rect]:
    """Drop cells narrower or shorter than ``min_px``."""
    return [c for c in cells if c.w >= min_px and c.h >= min_px]


def filter_strips(cells: Sequence[Rect], max_aspect: float) -> List[Rect]:
    """Drop long thin cells (gutters mistaken for panels)."""
    keep = [c for c in cells if c.aspect <= max_aspect]
    if len(keep) != len(cells):
        pdebug(f"[filter] strips removed: {len(cells) - len(keep)}")
    return keep


def filter_tiny(cells: Sequence[Rect], tiny_frac: float) -> List[Rect]:
    """Drop cells whose area is below ``tiny_frac`` of the mean cell area."""
    if len(cells) < 2:
        return list(cells)
    mean_area = sum(c.area for c in cells) / len(cells)
    keep = [c for c in cells if c.area >= tiny_frac * mean_area]
    if len(keep) != len(cells):
        pdebug(f"[filter] tiny removed: {len(cells) - len(keep)}")
    return keep


def content_ratio(cell: Rect, content_mask: NDArray) -> float:
    """Fraction of content pixels inside a cell."""
    h, w = content_mask.shape[:2]
    x1, y1, x2, y2 = rect_bounds_int(cell, w, h)
    region = content_mask[y1:y2, x1:x2]
    if region.size == 0:
        return 0.0
    return float(np.count_nonzero(region)) / region.size


def filter_empty_cells(
    cells: Sequence[Rect],
    content_mask: NDArray,
    min_content_ratio: float,
) -> List[Rect]:
    """Filter out cells that contain mostly background.

    Args:
        cells: Candidate cells
        content_mask: Boolean mask, true on content pixels
        min_content_ratio: Minimum fraction of content pixels

    Returns:
        Cells holding enough content
    """
    filtered = []
    for cell in cells:
        if content_ratio(cell, content_mask) >= min_content_ratio:
            filtered.append(cell)
        else:
            pdebug(f"[filter] rejected empty cell at ({cell.x:.0f},{cell.y:.0f})")
    return filtered


def _side_coverage(band: NDArray, axis: int) -> float:
    """Fraction of positions along a side where the band holds a dark pixel."""
    if band.size == 0:
        return 0.0
    return float(band.any(axis=axis).mean())


def has_border_evidence(
    cell: Rect,
    dark_mask: NDArray,
    band_px: int,
    min_frac: float,
    image_border_counts: bool = True,
) -> bool:
    """True when every side of the cell is backed by a dark stroke.

    Each side is checked in a band of ``band_px`` pixels around it; the side
    counts when dark pixels cover at least ``min_frac`` of its length. Sides
    lying on the image edge count as evidence when ``image_border_counts``.
    """
    h, w = dark_mask.shape[:2]
    x1, y1, x2, y2 = rect_bounds_int(cell, w, h)
    if x2 <= x1 or y2 <= y1:
        return False
    b = max(0, int(band_px))

    def on_edge(pos: int, size: int) -> bool:
        return image_border_counts and (pos <= b or pos >= size - b)

    # Horizontal sides: band rows around y, coverage measured along x
    for y in (y1, y2):
        if on_edge(y, h):
            continue
        band = dark_mask[max(0, y - b - 1):min(h, y + b + 1), x1:x2]
        if _side_coverage(band, axis=0) < min_frac:
            return False
    # Vertical sides: band columns around x, coverage measured along y
    for x in (x1, x2):
        if on_edge(x, w):
            continue
        band = dark_mask[y1:y2, max(0, x - b - 1):min(w, x + b + 1)]
        if _side_coverage(band, axis=1) < min_frac:
            return False
    return True


def filter_by_border_evidence(
    cells: Sequence[Rect],
    dark_mask: NDArray,
    band_px: int,
    min_frac: float,
    image_border_counts: bool = True,
) -> List[Rect]:
    keep = [
        c for c in cells
        if has_border_evidence(c, dark_mask, band_px, min_frac, image_border_counts)
    ]
    pdebug(f"[filter] border evidence: {len(keep)}/{len(cells)}")
    return keep


def _touches(end_x: float, end_y: float, other: Segment, tol: float) -> bool:
    """True when the point lies on ``other`` within ``tol``."""
    if other.is_horizontal:
        lo, hi = sorted((other.x1, other.x2))
        return abs(end_y - other.y1) <= tol and lo - tol <= end_x <= hi + tol
    lo, hi = sorted((other.y1, other.y2))
    return abs(end_x - other.x1) <= tol and lo - tol <= end_y <= hi + tol


def filter_segments_by_junction(
    segments: Sequence[Segment],
    width: float,
    height: float,
    tol: float,
) -> List[Segment]:
    """Keep segments whose two ends both meet a perpendicular line or the image edge.

    Frame strokes join other strokes; hatching, text underlines and speed
    lines usually end in the open.
    """
    def end_ok(px: float, py: float, seg: Segment) -> bool:
        if px <= tol or py <= tol or px >= width - tol or py >= height - tol:
            return True
        return any(
            _touches(px, py, other, tol)
            for other in segments
            if other is not seg and other.is_horizontal != seg.is_horizontal
        )

    keep = [
        s for s in segments
        if end_ok(s.x1, s.y1, s) and end_ok(s.x2, s.y2, s)
    ]
    pdebug(f"[filter] junctions: {len(keep)}/{len(segments)} segments")
    return keep
