"""Isolated shapes on a dark background.

Thin separators are rasterised into a mask and subtracted from the content
mask before labelling, so no component ever crosses a separator pixel even
when shapes touch across it.
"""

from __future__ import annotations

from typing import List, Sequence

import cv2
import numpy as np
from numpy.typing import NDArray

from ..config import DetectorConfig
from .components import ComponentOptions, connected_components
from .filters import filter_min_size
from .signals import ImageSignals
from .tiles import find_separators
from .utils import Candidate, Segment, pdebug

MODE = "isolated"


def rasterize_segments(segments: Sequence[Segment], width: int, height: int, dilate_px: int) -> NDArray:
    """Boolean mask of the segments, grown by ``dilate_px`` on each side."""
    canvas = np.zeros((height, width), dtype=np.uint8)
    for s in segments:
        p1 = (int(round(min(s.x1, width - 1))), int(round(min(s.y1, height - 1))))
        p2 = (int(round(min(s.x2, width - 1))), int(round(min(s.y2, height - 1))))
        cv2.line(canvas, p1, p2, 255, 1)
    if dilate_px > 0 and segments:
        k = 2 * dilate_px + 1
        canvas = cv2.dilate(canvas, np.ones((k, k), np.uint8))
    return canvas > 0


def detect_isolated(signals: ImageSignals, config: DetectorConfig) -> List[Candidate]:
    cfg = config.isolated
    segments = find_separators(signals, cfg)
    content = signals.content_mask(cfg.background_threshold)
    if segments:
        content = content & ~rasterize_segments(
            segments, signals.width, signals.height, cfg.separator_dilate_px
        )
    opts = ComponentOptions(min_area_frac=cfg.min_area_frac, pad_px=cfg.pad_px)
    cells = filter_min_size(connected_components(content, opts), config.min_cell_px)
    pdebug(f"[isolated] {len(segments)} separators -> {len(cells)} shapes")
    if not cells:
        return []
    return [Candidate(mode=MODE, source="isolated:components", cells=cells, segments=segments)]
