"""Freeform panel detection.

For pages of irregular panels separated by white gutters. Producers, tried
in order until one yields enough cells:
1. Non-white content blobs (panel interiors)
2. White-gap tracks fed to the arrangement engine, empty cells dropped
3. Black-line grid
"""

from __future__ import annotations

from typing import List, Optional

from ..config import DetectorConfig
from .arrangement import arrange
from .components import ComponentOptions, connected_components
from .filters import filter_empty_cells, filter_min_size
from .signals import ImageSignals
from .tracks import TrackOptions, detect_separator_segments
from .uniform import line_grid_candidate
from .utils import Candidate, pdebug, run_producers

MODE = "freeform"


def content_candidate(signals: ImageSignals, config: DetectorConfig) -> Optional[Candidate]:
    """Bounding boxes of non-white blobs."""
    cfg = config.freeform
    mask = ~signals.light_mask(cfg.white_threshold)
    opts = ComponentOptions(
        min_area_frac=cfg.min_content_area_frac,
        pad_px=cfg.content_pad_px,
        merge_gap_px=cfg.content_merge_gap_px,
    )
    cells = filter_min_size(connected_components(mask, opts), config.min_cell_px)
    pdebug(f"[freeform] content blobs: {len(cells)}")
    if not cells:
        return None
    return Candidate(mode=MODE, source="freeform:content", cells=cells)


def gap_options(config: DetectorConfig) -> TrackOptions:
    cfg = config.freeform
    return TrackOptions(
        min_run_fraction=cfg.min_run_fraction,
        min_thickness_px=cfg.min_gap_px,
        max_thickness_px=cfg.max_gap_px,
        merge_gap_px=cfg.merge_gap,
        max_track_gap_px=cfg.max_track_gap_px,
        min_overlap_ratio=cfg.min_overlap_ratio,
    )


def gaps_candidate(signals: ImageSignals, config: DetectorConfig) -> Optional[Candidate]:
    """Cells bounded by white gutter tracks."""
    cfg = config.freeform
    light = signals.light_mask(cfg.white_threshold)
    segments = detect_separator_segments(light, gap_options(config))
    if not segments:
        pdebug("[freeform] no gutter tracks")
        return None
    cells = arrange(segments, signals.width, signals.height, config.arrangement_eps)
    cells = filter_empty_cells(cells, ~light, cfg.min_content_ratio)
    cells = filter_min_size(cells, config.min_cell_px)
    pdebug(f"[freeform] gutters: {len(segments)} segments -> {len(cells)} cells")
    if not cells:
        return None
    return Candidate(mode=MODE, source="freeform:gaps", cells=cells, segments=segments)


def detect_freeform(signals: ImageSignals, config: DetectorConfig) -> List[Candidate]:
    min_cells = config.freeform.min_cells
    return run_producers(
        [
            lambda: content_candidate(signals, config),
            lambda: gaps_candidate(signals, config),
            lambda: line_grid_candidate(signals, config, MODE, config.freeform.line_threshold),
        ],
        accept=lambda c: c.count >= min_cells,
    )
