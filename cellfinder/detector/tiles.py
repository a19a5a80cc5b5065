"""Adjacent tile detection.

For sheets of tiles that touch each other, split by thin dark separators or
laid out on a dark background. Both detectors always run:
(a) thin high-continuity separator tracks fed to the arrangement engine
(b) foreground blobs on the dark background
The black-line grid is tried only when neither finds two tiles.
"""

from __future__ import annotations

from typing import List, Optional, Union

from ..config import DetectorConfig, IsolatedConfig, TilesConfig
from ..errors import DegenerateGeometry, NoLinesDetected
from .arrangement import arrange
from .components import ComponentOptions, connected_components
from .filters import filter_min_size
from .signals import ImageSignals
from .tracks import TrackOptions, detect_separator_segments
from .uniform import line_grid_candidate
from .utils import Candidate, Segment, pdebug

MODE = "tiles"


def separator_options(cfg: Union[TilesConfig, IsolatedConfig]) -> TrackOptions:
    """Track options for 1-8 px separators that run almost unbroken."""
    return TrackOptions(
        min_run_fraction=cfg.min_run_fraction,
        min_thickness_px=cfg.min_separator_px,
        max_thickness_px=cfg.max_separator_px,
        merge_gap_px=0,
        max_track_gap_px=cfg.max_track_gap_px,
        min_overlap_ratio=cfg.min_overlap_ratio,
        min_fill_ratio=cfg.min_fill_ratio,
    )


def find_separators(signals: ImageSignals, cfg: Union[TilesConfig, IsolatedConfig]) -> List[Segment]:
    mask = signals.dark_mask(cfg.separator_threshold)
    return detect_separator_segments(mask, separator_options(cfg))


def separators_candidate(signals: ImageSignals, config: DetectorConfig) -> Optional[Candidate]:
    segments = find_separators(signals, config.tiles)
    if not segments:
        return None
    cells = arrange(segments, signals.width, signals.height, config.arrangement_eps)
    cells = filter_min_size(cells, config.min_cell_px)
    pdebug(f"[tiles] separators: {len(segments)} segments -> {len(cells)} cells")
    if not cells:
        return None
    return Candidate(mode=MODE, source="tiles:separators", cells=cells, segments=segments)


def components_candidate(signals: ImageSignals, config: DetectorConfig) -> Optional[Candidate]:
    cfg = config.tiles
    opts = ComponentOptions(
        min_area_frac=cfg.min_tile_area_frac,
        merge_gap_px=cfg.component_merge_gap_px,
    )
    cells = connected_components(signals.content_mask(cfg.background_threshold), opts)
    cells = filter_min_size(cells, config.min_cell_px)
    pdebug(f"[tiles] components: {len(cells)}")
    if not cells:
        return None
    return Candidate(mode=MODE, source="tiles:components", cells=cells)


def detect_tiles(signals: ImageSignals, config: DetectorConfig) -> List[Candidate]:
    found = [
        c for c in (
            separators_candidate(signals, config),
            components_candidate(signals, config),
        )
        if c is not None
    ]
    if any(c.count >= 2 for c in found):
        return found
    try:
        found.append(line_grid_candidate(signals, config, MODE, config.tiles.separator_threshold))
    except (NoLinesDetected, DegenerateGeometry) as e:
        pdebug(f"[tiles] line grid: {e.kind}: {e}")
    return found
