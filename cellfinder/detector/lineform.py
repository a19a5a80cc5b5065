"""Freeform-on-lines detection.

For pages whose panels are framed by dark strokes of any layout. Dark-line
tracks are arranged into cells, and a cell survives only when a stroke
backs each of its four sides. Long thin strips (gutters between frames)
and tiny fragments are dropped.

Producers:
1. All dark-line tracks
2. Tracks whose both ends meet another stroke or the image edge
3. Black-line grid
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from ..config import DetectorConfig
from .arrangement import arrange
from .filters import (
    filter_by_border_evidence,
    filter_min_size,
    filter_segments_by_junction,
    filter_strips,
    filter_tiny,
)
from .signals import ImageSignals
from .tracks import TrackOptions, detect_separator_segments
from .uniform import line_grid_candidate
from .utils import Candidate, Segment, pdebug, run_producers

MODE = "lineform"


def _cells_from_segments(
    signals: ImageSignals,
    config: DetectorConfig,
    segments: Sequence[Segment],
    source: str,
) -> Optional[Candidate]:
    if not segments:
        return None
    cfg = config.lineform
    cells = arrange(segments, signals.width, signals.height, config.arrangement_eps)
    cells = filter_by_border_evidence(
        cells,
        signals.dark_mask(cfg.black_threshold),
        cfg.border_band_px,
        cfg.border_evidence_frac,
        cfg.image_border_counts,
    )
    cells = filter_strips(cells, config.scoring.strip_aspect)
    cells = filter_tiny(cells, config.scoring.tiny_frac)
    cells = filter_min_size(cells, config.min_cell_px)
    pdebug(f"[{source}] {len(segments)} segments -> {len(cells)} cells")
    if not cells:
        return None
    return Candidate(mode=MODE, source=source, cells=cells, segments=list(segments))


def detect_lineform(signals: ImageSignals, config: DetectorConfig) -> List[Candidate]:
    cfg = config.lineform
    opts = TrackOptions(
        min_run_fraction=cfg.min_run_fraction,
        min_thickness_px=cfg.min_thickness_px,
        max_thickness_px=cfg.max_thickness_px,
        merge_gap_px=cfg.merge_gap,
        max_track_gap_px=cfg.max_track_gap_px,
        min_overlap_ratio=cfg.min_overlap_ratio,
    )
    tracked: List[List[Segment]] = []

    def segments() -> List[Segment]:
        # Shared by the first two producers
        if not tracked:
            tracked.append(detect_separator_segments(signals.dark_mask(cfg.black_threshold), opts))
        return tracked[0]

    def junction_segments() -> List[Segment]:
        return filter_segments_by_junction(
            segments(), signals.width, signals.height, cfg.junction_tol_px
        )

    return run_producers(
        [
            lambda: _cells_from_segments(signals, config, segments(), "lineform:tracks"),
            lambda: _cells_from_segments(signals, config, junction_segments(), "lineform:junctions"),
            lambda: line_grid_candidate(signals, config, MODE, cfg.black_threshold),
        ],
        accept=lambda c: c.count >= cfg.min_cells,
    )
