"""Connected-component extraction.

Labels a binary mask into bounding-box blobs, then cleans them up:
- area / width / height filtering
- proximity merging (padding + merge gap), iterated to a fixed point
- removal of rectangles contained in a larger one
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import cv2
import numpy as np
from numpy.typing import NDArray

from .utils import Rect, pdebug, sort_reading_order


@dataclass
class ComponentOptions:
    """Blob filtering and merging parameters."""
    min_area_px: int = 0
    min_area_frac: float = 0.0      # Of the image area
    min_w_frac: float = 0.0         # Of the image width
    min_h_frac: float = 0.0         # Of the image height
    pad_px: int = 0
    merge_gap_px: int = 0


def connected_components(mask: NDArray, opts: ComponentOptions) -> List[Rect]:
    """4-connected components of a mask as filtered, merged rectangles.

    Returns:
        Rectangles sorted top-to-bottom, left-to-right
    """
    if mask.size == 0:
        return []
    h, w = mask.shape[:2]
    binary = np.ascontiguousarray(mask, dtype=np.uint8)
    num_labels, _labels, stats, _centroids = cv2.connectedComponentsWithStats(binary, connectivity=4)

    min_area = max(opts.min_area_px, opts.min_area_frac * w * h)
    min_w = opts.min_w_frac * w
    min_h = opts.min_h_frac * h

    rects = []
    # Label 0 is the background
    for label_id in range(1, num_labels):
        x, y, cw, ch, area = (int(v) for v in stats[label_id])
        if area < min_area or cw < min_w or ch < min_h:
            continue
        rects.append(Rect(float(x), float(y), float(cw), float(ch)))

    raw = len(rects)
    rects = merge_nearby_rects(rects, opts.pad_px, opts.merge_gap_px, w, h)
    rects = remove_contained(rects)
    pdebug(f"[components] labels={num_labels - 1} kept={raw} merged={len(rects)}")
    return sort_reading_order(rects)


def _should_merge(a: Rect, b: Rect, gap: float) -> bool:
    # Signed distances between the boxes; negative means overlap
    dx = max(a.x, b.x) - min(a.right, b.right)
    dy = max(a.y, b.y) - min(a.bottom, b.bottom)
    if dx < 0 and dy < 0:
        return True
    return gap > 0 and dx <= gap and dy <= gap


def merge_nearby_rects(
    rects: Sequence[Rect],
    pad_px: float,
    merge_gap_px: float,
    width: float,
    height: float,
) -> List[Rect]:
    """Merge rects whose padded boxes overlap or lie within the merge gap.

    Each pass builds a fresh output list; passes repeat until nothing merges.
    """
    current = [r.padded(pad_px, width, height) if pad_px > 0 else r for r in rects]
    changed = True
    while changed:
        changed = False
        merged: List[Rect] = []
        for rect in current:
            for idx, other in enumerate(merged):
                if _should_merge(rect, other, merge_gap_px):
                    merged[idx] = other.united(rect)
                    changed = True
                    break
            else:
                merged.append(rect)
        current = merged
    return current


def remove_contained(rects: Sequence[Rect]) -> List[Rect]:
    """Drop rects fully inside a larger one (exact duplicates keep the first)."""
    keep = []
    for i, r in enumerate(rects):
        inside = False
        for j, other in enumerate(rects):
            if i == j or not other.contains(r):
                continue
            if other.area > r.area or (other == r and j < i):
                inside = True
                break
        if not inside:
            keep.append(r)
    return keep
