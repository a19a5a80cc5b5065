"""Line selection for uniform grids.

Reduces detected inner line positions to exactly K cuts that best divide a
content length into K+1 equal parts.
"""

from __future__ import annotations

from itertools import combinations
from math import comb
from typing import List, Sequence

# Subset counts above this switch from exhaustive search to dynamic programming
MAX_EXHAUSTIVE_SUBSETS = 5000
_EPS = 1e-9


def target_positions(count: int, size: float) -> List[float]:
    """Evenly spaced cut positions ``size * t / (count + 1)``."""
    return [size * t / (count + 1) for t in range(1, count + 1)]


def pick_n_lines(candidates: Sequence[float], count: int, size: float) -> List[float]:
    """Pick exactly ``count`` cut positions inside ``[0, size]``.

    Args:
        candidates: Detected inner line positions, relative to the content start
        count: Number of cuts wanted (K)
        size: Content length

    Returns:
        ``count`` positions in increasing order
    """
    if count <= 0:
        return []
    targets = target_positions(count, size)
    positions = sorted(float(p) for p in candidates)

    if not positions:
        return targets

    if len(positions) <= count:
        while len(positions) < count:
            # Bisect the largest gap, borders included
            edges = [0.0] + positions + [float(size)]
            gaps = [(edges[i + 1] - edges[i], i) for i in range(len(edges) - 1)]
            length, idx = max(gaps, key=lambda g: (g[0], -g[1]))
            positions.append(edges[idx] + length / 2.0)
            positions.sort()
        return positions

    if comb(len(positions), count) <= MAX_EXHAUSTIVE_SUBSETS:
        return _best_subset_exhaustive(positions, targets)
    return _best_subset_dp(positions, targets)


def _best_subset_exhaustive(positions: List[float], targets: List[float]) -> List[float]:
    best: List[float] = []
    best_score = float("inf")
    for subset in combinations(positions, len(targets)):
        score = sum(abs(p - t) for p, t in zip(subset, targets))
        if score < best_score - _EPS:
            best_score = score
            best = list(subset)
    return best or list(targets)


def _best_subset_dp(positions: List[float], targets: List[float]) -> List[float]:
    """Minimum-cost ordered assignment of targets to candidates.

    Ties resolve to the lexicographically first index subset, matching the
    exhaustive search.
    """
    n, k = len(positions), len(targets)
    inf = float("inf")
    # best[i][m]: cost of matching the last m targets using positions[i:]
    best = [[inf] * (k + 1) for _ in range(n + 1)]
    for i in range(n + 1):
        best[i][0] = 0.0
    for i in range(n - 1, -1, -1):
        for m in range(1, k + 1):
            if n - i < m:
                continue
            take = abs(positions[i] - targets[k - m]) + best[i + 1][m - 1]
            best[i][m] = min(take, best[i + 1][m])

    out = []
    i, m = 0, k
    while m > 0:
        take = abs(positions[i] - targets[k - m]) + best[i + 1][m - 1]
        if take <= best[i + 1][m] + _EPS:
            out.append(positions[i])
            m -= 1
        i += 1
    return out


def enforce_min_gap(bounds: Sequence[float], gap: float) -> List[float]:
    """Nudge interior bounds so consecutive cuts are never closer than ``gap``.

    The first and last bound stay fixed; order is preserved.
    """
    b = list(bounds)
    for i in range(1, len(b) - 1):
        prev = b[i - 1]
        nxt = b[i + 1]
        mid = (prev + nxt) / 2.0
        if b[i] - prev < gap:
            b[i] = min(prev + gap, mid)
        if nxt - b[i] < gap:
            b[i] = max(nxt - gap, mid)
    return b
