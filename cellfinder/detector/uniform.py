"""Uniform grid detection.

For images made of R x C equally sized cells separated by dark lines:
1. Line-aware darkness profiles per column/row (glyph columns rejected)
2. Runs above the darkness threshold become line candidates
3. Close lines merged (thickness-weighted)
4. First/last line used as the outer bound when it hugs the image edge
5. Exactly C-1 / R-1 inner cuts picked against even targets
6. Minimum gap enforced between consecutive bounds

Also hosts the black-line grid used as the last fallback by the freeform
and tiles strategies.
"""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple

from ..config import DetectorConfig, UniformConfig
from ..errors import NoLinesDetected
from .filters import filter_min_size
from .line_selector import enforce_min_gap, pick_n_lines, target_positions
from .signals import ImageSignals, line_aware_profile
from .tracks import LineCandidate, find_runs, merge_close_lines, runs_to_lines
from .utils import Candidate, cells_from_bounds, pdebug

MODE = "uniform"
MAX_TRIM_PX = 20


def find_grid_lines(
    signals: ImageSignals,
    axis: str,
    black_threshold: float,
    darkness_threshold: float,
    min_line_px: int,
    max_line_frac: float,
    min_gap: float,
    min_span_frac: float,
) -> List[LineCandidate]:
    """Dark lines across the image: vertical lines for axis="x", horizontal for "y"."""
    size = signals.width if axis == "x" else signals.height
    mask = signals.dark_mask(black_threshold)
    prof = line_aware_profile(mask, axis, min_span_frac)
    max_len = max(min_line_px, int(size * max_line_frac))
    runs = find_runs(prof, darkness_threshold, min_line_px, max_len)
    return merge_close_lines(runs_to_lines(runs), min_gap)


def split_outer_lines(
    lines: Sequence[LineCandidate],
    size: float,
    border_frac: float,
) -> Tuple[float, float, List[LineCandidate]]:
    """Outer bounds and the remaining inner lines along one axis.

    The first (last) line is the outer frame only when it lies within
    ``border_frac * size`` of the start (end) edge and its outer side touches
    that edge, within one line thickness (at least 2 px); otherwise the image
    edge is the bound and the line stays an inner divider.
    """
    inner = sorted(lines, key=lambda l: l.position)
    band = border_frac * size
    start, end = 0.0, float(size)
    if inner and _is_frame(inner[0], inner[0].position - inner[0].thickness / 2.0, band):
        first = inner.pop(0)
        start = max(0.0, first.position - first.thickness / 2.0)
    if inner and _is_frame(inner[-1], size - inner[-1].position - inner[-1].thickness / 2.0, band):
        last = inner.pop()
        end = min(float(size), last.position + last.thickness / 2.0)
    return start, end, inner


def _is_frame(line: LineCandidate, edge_gap: float, band: float) -> bool:
    """Whether a line ``edge_gap`` px from the image edge is the outer frame."""
    centre_gap = edge_gap + line.thickness / 2.0
    return centre_gap <= band and edge_gap <= max(2.0, line.thickness)


def _axis_bounds(
    lines: Sequence[LineCandidate],
    size: float,
    cuts: int,
    cfg: UniformConfig,
) -> Tuple[List[float], int]:
    """Bounds along one axis and the number of cuts backed by a detected line."""
    start, end, inner = split_outer_lines(lines, size, cfg.border_frac)
    rel = [l.position - start for l in inner]
    picked = [start + p for p in pick_n_lines(rel, cuts, end - start)]
    detected = {round(l.position, 6) for l in inner}
    backed = sum(1 for p in picked if round(p, 6) in detected)
    bounds = enforce_min_gap([start] + sorted(picked) + [end], cfg.min_gap)
    return bounds, backed


def even_bounds(size: float, count: int) -> List[float]:
    return [0.0] + target_positions(count - 1, size) + [float(size)]


def detect_uniform(signals: ImageSignals, config: DetectorConfig) -> List[Candidate]:
    """Uniform grid candidate for ``config.uniform.rows`` x ``config.uniform.cols``.

    Never raises for a lineless image: an evenly spaced candidate with zero
    support is returned instead.
    """
    cfg = config.uniform
    w, h = signals.width, signals.height
    kwargs = dict(
        black_threshold=cfg.black_threshold,
        darkness_threshold=cfg.darkness_threshold,
        min_line_px=cfg.min_line_px,
        max_line_frac=cfg.max_line_frac,
        min_gap=cfg.min_gap,
        min_span_frac=cfg.min_span_frac,
    )
    col_lines = find_grid_lines(signals, "x", **kwargs)
    row_lines = find_grid_lines(signals, "y", **kwargs)
    pdebug(f"[uniform] lines x={len(col_lines)} y={len(row_lines)} grid={cfg.rows}x{cfg.cols}")

    required = (cfg.cols - 1) + (cfg.rows - 1)
    if not col_lines and not row_lines:
        x_bounds = even_bounds(w, cfg.cols)
        y_bounds = even_bounds(h, cfg.rows)
        return [Candidate(
            mode=MODE,
            source="uniform:even",
            cells=cells_from_bounds(x_bounds, y_bounds),
            x_bounds=x_bounds,
            y_bounds=y_bounds,
            support=0.0 if required else 1.0,
        )]

    x_bounds, x_backed = _axis_bounds(col_lines, w, cfg.cols - 1, cfg)
    y_bounds, y_backed = _axis_bounds(row_lines, h, cfg.rows - 1, cfg)

    inner_thickness = [
        l.thickness
        for lines, size in ((col_lines, w), (row_lines, h))
        for l in split_outer_lines(lines, size, cfg.border_frac)[2]
    ]
    trim = min(MAX_TRIM_PX, int(math.ceil(max(inner_thickness)))) if inner_thickness else 0

    return [Candidate(
        mode=MODE,
        source="uniform:lines",
        cells=cells_from_bounds(x_bounds, y_bounds),
        x_bounds=x_bounds,
        y_bounds=y_bounds,
        support=(x_backed + y_backed) / required if required else 1.0,
        suggested_trim=trim,
    )]


def line_grid_candidate(
    signals: ImageSignals,
    config: DetectorConfig,
    mode: str,
    black_threshold: float,
) -> Candidate:
    """Cells between every detected dark line, with no fixed count.

    Raises:
        NoLinesDetected: no dark line in either direction
    """
    cfg = config.uniform
    kwargs = dict(
        black_threshold=black_threshold,
        darkness_threshold=cfg.darkness_threshold,
        min_line_px=cfg.min_line_px,
        max_line_frac=cfg.max_line_frac,
        min_gap=cfg.min_gap,
        min_span_frac=cfg.min_span_frac,
    )
    col_lines = find_grid_lines(signals, "x", **kwargs)
    row_lines = find_grid_lines(signals, "y", **kwargs)
    if not col_lines and not row_lines:
        raise NoLinesDetected("no dark grid lines found")

    bounds = []
    for lines, size in ((col_lines, signals.width), (row_lines, signals.height)):
        start, end, inner = split_outer_lines(lines, size, cfg.border_frac)
        bounds.append([start] + [l.position for l in inner] + [end])
    x_bounds, y_bounds = bounds

    cells = filter_min_size(cells_from_bounds(x_bounds, y_bounds), config.min_cell_px)
    pdebug(f"[{mode}] line grid {len(x_bounds) - 1}x{len(y_bounds) - 1} -> {len(cells)} cells")
    return Candidate(
        mode=mode,
        source=f"{mode}:linegrid",
        cells=cells,
        x_bounds=x_bounds,
        y_bounds=y_bounds,
    )
