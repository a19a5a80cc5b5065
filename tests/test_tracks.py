"""Tests for runs, close-line merging and 2-D tracks."""

import numpy as np

from cellfinder.detector.tracks import (
    LineCandidate,
    Run,
    TrackOptions,
    collect_tracks,
    detect_separator_segments,
    find_runs,
    mask_runs,
    merge_close_lines,
    merge_collinear_segments,
    merge_run_gaps,
    remove_near_duplicates,
)
from cellfinder.detector.utils import Segment


def test_find_runs_threshold_and_bounds():
    prof = [0.0, 0.5, 0.6, 0.0, 0.9, 0.9, 0.9, 0.9]
    assert find_runs(prof, 0.5) == [Run(1, 3), Run(4, 8)]
    assert find_runs(prof, 0.5, min_run_length=3) == [Run(4, 8)]
    assert find_runs(prof, 0.5, max_run_length=2) == [Run(1, 3)]
    assert find_runs([], 0.5) == []


def test_run_position_and_thickness():
    run = Run(98, 102)
    assert run.thickness == 4
    assert run.position == 100.0


def test_merge_close_lines_is_thickness_weighted():
    merged = merge_close_lines([LineCandidate(10, 2), LineCandidate(14, 6)], 8)
    assert merged == [LineCandidate(13.0, 6)]
    apart = merge_close_lines([LineCandidate(10, 2), LineCandidate(30, 2)], 8)
    assert len(apart) == 2


def test_mask_runs_and_gap_bridging():
    row = np.array([1, 1, 0, 1, 1, 1, 0, 0, 0, 1], dtype=bool)
    runs = mask_runs(row)
    assert runs == [Run(0, 2), Run(3, 6), Run(9, 10)]
    assert merge_run_gaps(runs, 1) == [Run(0, 6), Run(9, 10)]


def test_collect_tracks_tolerates_small_holes():
    mask = np.zeros((40, 100), dtype=bool)
    mask[20:23, 5:95] = True
    mask[21, 50] = False
    segs = collect_tracks(mask, "h", TrackOptions(min_thickness_px=2, max_thickness_px=10))
    assert segs == [Segment(5.0, 21.5, 95.0, 21.5)]


def test_collect_tracks_rejects_thick_bands():
    mask = np.zeros((100, 100), dtype=bool)
    mask[10:80, :] = True
    assert collect_tracks(mask, "h", TrackOptions(max_thickness_px=40)) == []


def test_vertical_tracks_from_transposed_mask():
    mask = np.zeros((100, 60), dtype=bool)
    mask[:, 30:32] = True
    segs = collect_tracks(mask, "v", TrackOptions())
    assert segs == [Segment(31.0, 0.0, 31.0, 100.0)]


def test_merge_collinear_segments_joins_touching_spans():
    segs = [Segment(0, 10, 40, 10), Segment(41, 11, 90, 11), Segment(0, 50, 20, 50)]
    merged = merge_collinear_segments(segs, "h")
    assert Segment(0, 10, 90, 10) in merged
    assert Segment(0, 50, 20, 50) in merged
    assert len(merged) == 2


def test_remove_near_duplicates():
    segs = [Segment(0, 10, 50, 10), Segment(1, 10.5, 50.5, 10.5), Segment(0, 30, 50, 30)]
    assert remove_near_duplicates(segs) == [segs[0], segs[2]]


def test_detect_separator_segments_on_cross():
    mask = np.zeros((200, 200), dtype=bool)
    mask[99:101, :] = True
    mask[:, 99:101] = True
    opts = TrackOptions(min_run_fraction=0.25, min_thickness_px=1, max_thickness_px=8,
                        max_track_gap_px=1, min_overlap_ratio=0.6, min_fill_ratio=0.85)
    segs = detect_separator_segments(mask, opts)
    assert sorted(segs, key=lambda s: (s.x1, s.y1)) == [
        Segment(0.0, 100.0, 200.0, 100.0),
        Segment(100.0, 0.0, 100.0, 200.0),
    ]


def test_track_bridges_missing_rows_up_to_the_gap():
    mask = np.zeros((40, 100), dtype=bool)
    mask[10:12, 5:95] = True
    mask[14:16, 5:95] = True
    segs = collect_tracks(mask, "h", TrackOptions(max_track_gap_px=2))
    assert segs == [Segment(5.0, 13.0, 95.0, 13.0)]


def test_track_closes_after_the_gap():
    mask = np.zeros((40, 100), dtype=bool)
    mask[10:12, 5:95] = True
    mask[14:16, 5:95] = True
    segs = collect_tracks(mask, "h", TrackOptions(max_track_gap_px=1))
    assert sorted(s.y1 for s in segs) == [11.0, 15.0]


def test_single_missing_row_with_unit_gap():
    mask = np.zeros((40, 100), dtype=bool)
    mask[10:12, 5:95] = True
    mask[13:15, 5:95] = True
    segs = collect_tracks(mask, "h", TrackOptions(max_track_gap_px=1))
    assert segs == [Segment(5.0, 12.5, 95.0, 12.5)]
