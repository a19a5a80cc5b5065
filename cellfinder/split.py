"""Cell export helpers.

Crop the detected cells out of the source image, optionally trimming a
border (the separator line) from every side.
"""

from __future__ import annotations

from typing import Collection, List, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from .detector.utils import Rect, clamp, pdebug
from .errors import InvalidInput


def _crop(image: NDArray, x: int, y: int, w: int, h: int) -> NDArray:
    ih, iw = image.shape[:2]
    x1 = int(clamp(x, 0, iw))
    y1 = int(clamp(y, 0, ih))
    x2 = int(clamp(x + w, x1, iw))
    y2 = int(clamp(y + h, y1, ih))
    return np.array(image[y1:y2, x1:x2], copy=True)


def split_by_bounds(
    image: NDArray,
    x_bounds: Sequence[float],
    y_bounds: Sequence[float],
    trim: int = 0,
) -> List[NDArray]:
    """Row-major crops of a grid given by its bounds.

    Raises:
        InvalidInput: fewer than two bounds on an axis, or a cell whose size
            is not positive after trimming
    """
    if len(x_bounds) < 2 or len(y_bounds) < 2:
        raise InvalidInput("bounds need at least two values per axis")
    trim = max(0, int(trim))
    crops = []
    for r in range(len(y_bounds) - 1):
        for c in range(len(x_bounds) - 1):
            x = int(round(x_bounds[c])) + trim
            y = int(round(y_bounds[r])) + trim
            w = int(round(x_bounds[c + 1] - x_bounds[c])) - 2 * trim
            h = int(round(y_bounds[r + 1] - y_bounds[r])) - 2 * trim
            if w <= 0 or h <= 0:
                raise InvalidInput(f"cell {r},{c} has non-positive size")
            crops.append(_crop(image, x, y, w, h))
    return crops


def crop_cells(
    image: NDArray,
    cells: Sequence[Rect],
    trim: int = 0,
    excluded: Optional[Collection[int]] = None,
) -> List[NDArray]:
    """Crops of free-form cells, skipping the indices in ``excluded``.

    The trim never shrinks a crop below 1 px.

    Raises:
        InvalidInput: a cell with non-positive width or height
    """
    trim = max(0, int(trim))
    excluded = set(excluded or ())
    crops = []
    for idx, cell in enumerate(cells):
        if idx in excluded:
            continue
        if cell.w <= 0 or cell.h <= 0:
            raise InvalidInput(f"cell {idx} has non-positive size")
        w = max(1, int(round(cell.w)) - 2 * trim)
        h = max(1, int(round(cell.h)) - 2 * trim)
        crops.append(_crop(image, int(round(cell.x)) + trim, int(round(cell.y)) + trim, w, h))
    pdebug(f"[split] exported {len(crops)}/{len(cells)} cells")
    return crops
