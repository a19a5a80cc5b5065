"""Tests for the segment arrangement engine."""

import pytest

from cellfinder.detector.arrangement import arrange, build_lattice
from cellfinder.detector.utils import Rect, Segment
from cellfinder.errors import InvalidInput


def assert_partition(cells, width, height):
    """Cells cover the image exactly once."""
    assert sum(c.area for c in cells) == pytest.approx(width * height)
    for i, a in enumerate(cells):
        assert a.w > 0 and a.h > 0
        assert 0 <= a.x and a.right <= width and 0 <= a.y and a.bottom <= height
        for b in cells[i + 1:]:
            assert a.intersected(b).area == 0


def test_no_segments_gives_full_cell():
    assert arrange([], 120, 80) == [Rect(0.0, 0.0, 120.0, 80.0)]


def test_cross_gives_four_cells():
    segs = [Segment(0, 50, 100, 50), Segment(50, 0, 50, 100)]
    cells = arrange(segs, 100, 100)
    assert cells == [
        Rect(0.0, 0.0, 50.0, 50.0),
        Rect(50.0, 0.0, 50.0, 50.0),
        Rect(0.0, 50.0, 50.0, 50.0),
        Rect(50.0, 50.0, 50.0, 50.0),
    ]


def test_t_junction_merges_rectangular_region():
    segs = [(0, 50, 100, 50), (50, 0, 50, 50)]
    cells = arrange(segs, 100, 100)
    assert cells == [
        Rect(0.0, 0.0, 50.0, 50.0),
        Rect(50.0, 0.0, 50.0, 50.0),
        Rect(0.0, 50.0, 100.0, 50.0),
    ]


def test_irregular_region_emits_atomic_cells():
    # L-shaped region around the top-right quadrant
    segs = [
        {"x1": 50, "y1": 0, "x2": 50, "y2": 50},
        {"x1": 50, "y1": 50, "x2": 100, "y2": 50},
    ]
    cells = arrange(segs, 100, 100)
    assert len(cells) == 4
    assert all(c.w == 50 and c.h == 50 for c in cells)
    assert_partition(cells, 100, 100)


def test_comic_layout_partitions_image():
    segs = [
        Segment(0, 100, 300, 100),
        Segment(120, 0, 120, 100),
        Segment(200, 100, 200, 250),
        Segment(0, 180, 200, 180),
    ]
    cells = arrange(segs, 300, 250)
    assert_partition(cells, 300, 250)
    assert Rect(0.0, 0.0, 120.0, 100.0) in cells
    assert Rect(200.0, 100.0, 100.0, 150.0) in cells


def test_diagonal_segments_ignored():
    assert arrange([(0, 0, 100, 100)], 100, 100) == [Rect(0.0, 0.0, 100.0, 100.0)]


def test_segments_clamped_to_image():
    cells = arrange([(-20, 40, 500, 40)], 100, 80)
    assert cells == [Rect(0.0, 0.0, 100.0, 40.0), Rect(0.0, 40.0, 100.0, 40.0)]


def test_near_duplicate_coordinates_merge():
    cells = arrange([(0, 40, 100, 40), (0, 40.5, 100, 40.5)], 100, 80, eps=1.0)
    assert len(cells) == 2


def test_lattice_keeps_image_borders():
    assert build_lattice([0.4, 50, 99.7], 100, 1.0) == [0.0, 50, 100.0]


def test_output_sorted_reading_order():
    segs = [Segment(0, 30, 90, 30), Segment(30, 0, 30, 90), Segment(60, 0, 60, 90)]
    cells = arrange(segs, 90, 90)
    keys = [(c.y, c.x) for c in cells]
    assert keys == sorted(keys)


@pytest.mark.parametrize("segments, width, height", [
    ([], 0, 100),
    ([], 100, -1),
    ([(0, 0, 10)], 100, 100),
    ([{"x1": 0, "y1": 0}], 100, 100),
    ([("a", 0, 10, 0)], 100, 100),
    ([5], 100, 100),
])
def test_invalid_input(segments, width, height):
    with pytest.raises(InvalidInput):
        arrange(segments, width, height)
