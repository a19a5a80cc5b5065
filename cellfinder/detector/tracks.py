"""Run and track finding.

1-D: threshold-crossing runs in a profile, merged into line candidates.
2-D: runs followed across consecutive rows (or columns) as tracks, which
tolerate anti-aliased, slightly bowed or briefly occluded lines because each
track greedily takes the run it overlaps best instead of requiring exact
continuity.

Pipeline for separators:
1. Per-row runs of the mask, small holes bridged
2. Greedy overlap matching of open tracks to runs
3. Closed tracks emitted as mid-line segments, filtered by thickness/length
4. Collinear merge and near-duplicate removal
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from .utils import Segment, clamp, pdebug


@dataclass(frozen=True)
class Run:
    """Half-open index range [start, end)."""
    start: int
    end: int

    @property
    def thickness(self) -> int:
        return self.end - self.start

    @property
    def position(self) -> float:
        return self.start + self.thickness / 2.0


@dataclass(frozen=True)
class LineCandidate:
    """A detected 1-D line: centre position and thickness."""
    position: float
    thickness: float


@dataclass
class TrackOptions:
    """Parameters for 2-D track building."""
    min_run_fraction: float = 0.12   # Minimum run/segment length vs the image side
    min_thickness_px: int = 2
    max_thickness_px: int = 40
    merge_gap_px: int = 2            # Holes bridged inside a row run
    max_track_gap_px: int = 2        # Rows a track may skip before it closes
    min_overlap_ratio: float = 0.45  # overlap / union needed to extend a track
    min_fill_ratio: float = 0.0      # Matched rows / thickness


@dataclass
class Track:
    """A run extended across the orthogonal dimension."""
    axis_start: int
    axis_end: int
    cross_start: int
    cross_end: int
    last: int
    hits: int = 1

    @property
    def thickness(self) -> int:
        return self.cross_end - self.cross_start

    @property
    def length(self) -> int:
        return self.axis_end - self.axis_start


# ---------------------------------------------------------------------------
# 1-D runs
# ---------------------------------------------------------------------------

def find_runs(
    prof: Sequence[float],
    threshold: float,
    min_run_length: int = 1,
    max_run_length: Optional[int] = None,
) -> List[Run]:
    """Maximal ranges where the profile is >= threshold.

    Args:
        prof: Profile values
        threshold: Minimum value inside a run
        min_run_length: Shorter runs are noise
        max_run_length: Longer runs are bands, not lines (None = unbounded)

    Returns:
        Runs in increasing order
    """
    values = np.asarray(prof, dtype=np.float64)
    if values.size == 0:
        return []
    runs = mask_runs(values >= threshold, 1)
    return [
        r for r in runs
        if r.thickness >= min_run_length
        and (max_run_length is None or r.thickness <= max_run_length)
    ]


def mask_runs(row: NDArray, min_len: int = 1) -> List[Run]:
    """Runs of true values in a 1-D boolean array."""
    row = np.asarray(row, dtype=bool)
    if row.size == 0:
        return []
    padded = np.zeros(row.size + 2, dtype=np.int8)
    padded[1:-1] = row
    d = np.diff(padded)
    starts = np.flatnonzero(d == 1)
    ends = np.flatnonzero(d == -1)
    return [Run(int(s), int(e)) for s, e in zip(starts, ends) if e - s >= min_len]


def merge_run_gaps(runs: List[Run], max_gap: int) -> List[Run]:
    """Join runs separated by at most ``max_gap`` indices."""
    if len(runs) <= 1:
        return list(runs)
    ordered = sorted(runs, key=lambda r: r.start)
    out = [ordered[0]]
    for cur in ordered[1:]:
        prev = out[-1]
        if cur.start - prev.end <= max_gap:
            out[-1] = Run(prev.start, max(prev.end, cur.end))
        else:
            out.append(cur)
    return out


def merge_close_lines(lines: Sequence[LineCandidate], min_gap: float) -> List[LineCandidate]:
    """Merge lines whose centres are closer than ``min_gap``.

    The merged position is thickness-weighted; the thickness is the max.
    """
    ordered = sorted(lines, key=lambda l: l.position)
    if len(ordered) <= 1:
        return ordered
    out = [ordered[0]]
    for cur in ordered[1:]:
        prev = out[-1]
        if cur.position - prev.position < min_gap:
            total = prev.thickness + cur.thickness
            pos = (
                (prev.position * prev.thickness + cur.position * cur.thickness) / total
                if total > 0 else (prev.position + cur.position) / 2.0
            )
            out[-1] = LineCandidate(pos, max(prev.thickness, cur.thickness))
        else:
            out.append(cur)
    return out


def runs_to_lines(runs: Sequence[Run]) -> List[LineCandidate]:
    return [LineCandidate(r.position, float(r.thickness)) for r in runs]


# ---------------------------------------------------------------------------
# 2-D tracks
# ---------------------------------------------------------------------------

def _overlap(a1: int, a2: int, b1: int, b2: int) -> int:
    return max(0, min(a2, b2) - max(a1, b1))


def build_tracks(mask: NDArray, opts: TrackOptions) -> List[Track]:
    """Follow row runs down the mask as horizontal tracks.

    Vertical tracks are obtained by passing the transposed mask.
    """
    n_rows, row_len = mask.shape
    min_len = max(2, int(row_len * opts.min_run_fraction))

    open_tracks: List[Track] = []
    closed: List[Track] = []

    for y in range(n_rows):
        runs = merge_run_gaps(mask_runs(mask[y], min_len), opts.merge_gap_px)

        still_open = []
        for tr in open_tracks:
            if y - tr.last - 1 > opts.max_track_gap_px:
                closed.append(tr)
            else:
                still_open.append(tr)
        open_tracks = still_open

        matched = [False] * len(runs)
        for tr in open_tracks:
            best_idx = -1
            best_score = 0.0
            for idx, run in enumerate(runs):
                if matched[idx]:
                    continue
                ov = _overlap(tr.axis_start, tr.axis_end, run.start, run.end)
                if ov <= 0:
                    continue
                union = max(tr.axis_end, run.end) - min(tr.axis_start, run.start)
                score = ov / union if union > 0 else 0.0
                if score > best_score:
                    best_score = score
                    best_idx = idx
            if best_idx >= 0 and best_score >= opts.min_overlap_ratio:
                run = runs[best_idx]
                matched[best_idx] = True
                tr.axis_start = min(tr.axis_start, run.start)
                tr.axis_end = max(tr.axis_end, run.end)
                tr.cross_end = y + 1
                tr.last = y
                tr.hits += 1

        for idx, run in enumerate(runs):
            if not matched[idx]:
                open_tracks.append(Track(run.start, run.end, y, y + 1, y))

    return closed + open_tracks


def tracks_to_segments(
    tracks: Sequence[Track],
    row_len: int,
    opts: TrackOptions,
    horizontal: bool,
) -> List[Segment]:
    """Emit surviving tracks as segments at the middle of their thickness."""
    min_len = max(2, int(row_len * opts.min_run_fraction))
    out = []
    for tr in tracks:
        if tr.thickness < opts.min_thickness_px or tr.thickness > opts.max_thickness_px:
            continue
        if tr.length < min_len:
            continue
        if opts.min_fill_ratio > 0 and tr.hits / tr.thickness < opts.min_fill_ratio:
            continue
        mid = (tr.cross_start + tr.cross_end) / 2.0
        if horizontal:
            out.append(Segment(float(tr.axis_start), mid, float(tr.axis_end), mid))
        else:
            out.append(Segment(mid, float(tr.axis_start), mid, float(tr.axis_end)))
    return out


def collect_tracks(mask: NDArray, orientation: str, opts: TrackOptions) -> List[Segment]:
    """Horizontal ("h") or vertical ("v") separator segments of a mask."""
    if mask.size == 0:
        return []
    horizontal = orientation == "h"
    m = mask if horizontal else mask.T
    tracks = build_tracks(m, opts)
    segments = tracks_to_segments(tracks, m.shape[1], opts, horizontal)
    pdebug(f"[tracks] {orientation}: {len(tracks)} tracks -> {len(segments)} segments")
    return segments


# ---------------------------------------------------------------------------
# Segment clean-up
# ---------------------------------------------------------------------------

def merge_collinear_segments(
    segments: Sequence[Segment],
    orientation: str,
    axis_eps: float = 2.0,
    gap_eps: float = 2.0,
) -> List[Segment]:
    """Merge segments on (nearly) the same line whose spans touch."""
    if not segments:
        return []
    horizontal = orientation == "h"

    def cross(s: Segment) -> float:
        return s.y1 if horizontal else s.x1

    def span(s: Segment):
        if horizontal:
            return min(s.x1, s.x2), max(s.x1, s.x2)
        return min(s.y1, s.y2), max(s.y1, s.y2)

    # Group by cross position
    ordered = sorted(segments, key=cross)
    groups: List[List[Segment]] = [[ordered[0]]]
    for seg in ordered[1:]:
        if abs(cross(seg) - cross(groups[-1][0])) <= axis_eps:
            groups[-1].append(seg)
        else:
            groups.append([seg])

    out = []
    for group in groups:
        pos = cross(group[0])
        spans = sorted(span(s) for s in group)
        cur0, cur1 = spans[0]
        for s0, s1 in spans[1:]:
            if s0 <= cur1 + gap_eps:
                cur1 = max(cur1, s1)
            else:
                out.append(_make(horizontal, pos, cur0, cur1))
                cur0, cur1 = s0, s1
        out.append(_make(horizontal, pos, cur0, cur1))
    return out


def _make(horizontal: bool, pos: float, a: float, b: float) -> Segment:
    if horizontal:
        return Segment(a, pos, b, pos)
    return Segment(pos, a, pos, b)


def remove_near_duplicates(segments: Sequence[Segment], eps: float = 1.5) -> List[Segment]:
    """Drop segments whose four coordinates all lie within ``eps`` of a kept one."""
    out: List[Segment] = []
    for s in segments:
        dup = any(
            abs(s.x1 - t.x1) <= eps and abs(s.y1 - t.y1) <= eps
            and abs(s.x2 - t.x2) <= eps and abs(s.y2 - t.y2) <= eps
            for t in out
        )
        if not dup:
            out.append(s)
    return out


def clamp_segments(segments: Sequence[Segment], w: int, h: int) -> List[Segment]:
    return [
        Segment(clamp(s.x1, 0, w), clamp(s.y1, 0, h), clamp(s.x2, 0, w), clamp(s.y2, 0, h))
        for s in segments
    ]


def drop_short_segments(segments: Sequence[Segment], w: int, h: int, frac: float = 0.06) -> List[Segment]:
    min_len = max(6.0, min(w, h) * frac)
    return [s for s in segments if s.length >= min_len]


def detect_separator_segments(mask: NDArray, opts: TrackOptions) -> List[Segment]:
    """Full separator pipeline on one mask: tracks in both directions, cleaned."""
    h, w = mask.shape[:2]
    horizontals = merge_collinear_segments(collect_tracks(mask, "h", opts), "h")
    verticals = merge_collinear_segments(collect_tracks(mask, "v", opts), "v")
    segments = clamp_segments(horizontals + verticals, w, h)
    segments = drop_short_segments(segments, w, h)
    return remove_near_duplicates(segments)
