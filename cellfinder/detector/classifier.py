"""Image style heuristics for strategy shortlisting.

Classifies images from cheap signals as:
- dark background: tiles or isolated shapes
- light background with full-span lines: grids, tiles or framed panels
- light background without lines: gutter-separated panels

The shortlist only narrows which strategies detect_best runs; scoring
still picks the winner.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from ..config import DetectorConfig
from .scoring import MODES
from .signals import ImageSignals
from .uniform import find_grid_lines
from .utils import pdebug


@dataclass
class PageFeatures:
    """Features extracted from an image for shortlisting."""
    border_luminance: float  # Median luminance of the image border
    col_lines: int           # Full-span vertical dark lines
    row_lines: int           # Full-span horizontal dark lines


# Thresholds for the background classes
DARK_BACKGROUND_MAX = 60.0
LIGHT_BACKGROUND_MIN = 200.0


def extract_features(signals: ImageSignals, config: DetectorConfig) -> PageFeatures:
    cfg = config.uniform
    kwargs = dict(
        black_threshold=cfg.black_threshold,
        darkness_threshold=cfg.darkness_threshold,
        min_line_px=cfg.min_line_px,
        max_line_frac=cfg.max_line_frac,
        min_gap=cfg.min_gap,
        min_span_frac=cfg.min_span_frac,
    )
    return PageFeatures(
        border_luminance=signals.border_luminance(),
        col_lines=len(find_grid_lines(signals, "x", **kwargs)),
        row_lines=len(find_grid_lines(signals, "y", **kwargs)),
    )


def shortlist_modes(features: PageFeatures) -> List[str]:
    """Strategies worth running for an image, in strategy order."""
    if features.border_luminance <= DARK_BACKGROUND_MAX:
        picked = {"tiles", "isolated", "uniform"}
    elif features.border_luminance >= LIGHT_BACKGROUND_MIN:
        if features.col_lines and features.row_lines:
            picked = {"uniform", "tiles", "lineform", "freeform"}
        else:
            picked = {"freeform", "lineform", "tiles"}
    else:
        picked = set(MODES)
    modes = [m for m in MODES if m in picked]
    pdebug(f"[shortlist] {features} -> {modes}")
    return modes
