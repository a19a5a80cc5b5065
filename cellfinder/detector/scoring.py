"""Candidate scoring and selection.

Every strategy's candidates are scored on the same scale so they can be
compared:
- count reward inside the strategy's expected range
- boundary support (fraction of cuts backed by image evidence)
- coverage of the image
- penalties for strips, tiny fragments and a single dominant cell
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from ..config import DetectorConfig
from ..errors import DegenerateGeometry
from .utils import Candidate, pdebug

# Strategy order, also the final tie-break
MODES: Tuple[str, ...] = ("uniform", "freeform", "lineform", "tiles", "isolated")

W_COUNT = 0.30
W_SUPPORT = 0.25
W_COVERAGE = 0.20
W_SHAPE = 0.25


def expected_range(mode: str, config: DetectorConfig) -> Tuple[int, int]:
    """Inclusive (min, max) cell count a strategy is expected to produce."""
    sc = config.scoring
    if mode == "uniform":
        n = config.uniform.rows * config.uniform.cols
        return n, n
    if mode in ("tiles", "isolated"):
        return min(2, sc.max_tile_cells), sc.max_tile_cells
    return sc.min_cells, max(sc.min_cells, sc.max_cells)


def expected_default(mode: str, config: DetectorConfig) -> int:
    if mode == "uniform":
        return config.uniform.rows * config.uniform.cols
    return config.scoring.default_cells


def score_candidate(candidate: Candidate, width: float, height: float, config: DetectorConfig) -> float:
    """Score a candidate for quality.

    Higher score = better detection. Used to compare different strategies.

    Returns:
        Quality score (0.0 to 1.0)
    """
    cells = candidate.cells
    image_area = float(width) * float(height)
    if not cells or image_area <= 0:
        return 0.0

    sc = config.scoring
    n = len(cells)
    lo, hi = expected_range(candidate.mode, config)

    if lo <= n <= hi:
        count_score = 1.0
    elif n < lo:
        count_score = n / lo
    else:
        count_score = hi / n

    areas = [c.area for c in cells]
    coverage = min(sum(areas) / image_area, 1.0)

    strips = sum(1 for c in cells if c.aspect > sc.strip_aspect) / n
    mean_area = sum(areas) / n
    tiny = sum(1 for a in areas if a < sc.tiny_frac * mean_area) / n if n > 1 else 0.0
    dominant = 1.0 if hi > 1 and max(areas) > sc.dominant_frac * image_area else 0.0
    penalty = min(1.0, strips + tiny + dominant)

    support = min(1.0, max(0.0, candidate.support))
    score = (
        count_score * W_COUNT
        + support * W_SUPPORT
        + coverage * W_COVERAGE
        + (1.0 - penalty) * W_SHAPE
    )
    return min(1.0, max(0.0, score))


def select_best(
    candidates: Sequence[Candidate],
    width: float,
    height: float,
    config: DetectorConfig,
) -> Candidate:
    """Score every candidate and return the best one.

    Ties go to the count closest to the strategy's expected default, then
    to strategy order, then to production order.

    Raises:
        DegenerateGeometry: no candidate at all
    """
    if not candidates:
        raise DegenerateGeometry("no strategy produced a candidate")

    ranked: List[Tuple[Tuple[float, int, int, int], Candidate]] = []
    for idx, cand in enumerate(candidates):
        cand.score = score_candidate(cand, width, height, config)
        order = MODES.index(cand.mode) if cand.mode in MODES else len(MODES)
        key = (
            -round(cand.score, 9),
            abs(cand.count - expected_default(cand.mode, config)),
            order,
            idx,
        )
        ranked.append((key, cand))
        pdebug(f"[score] {cand.source}: {cand.count} cells, support={cand.support:.2f}, score={cand.score:.3f}")

    ranked.sort(key=lambda kv: kv[0])
    best = ranked[0][1]
    pdebug(f"[score] best: {best.source} (score={best.score:.3f})")
    return best
