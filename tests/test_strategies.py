"""End-to-end tests for the five detection strategies."""

import pytest

from cellfinder import CellDetector, DetectorConfig, detect
from cellfinder.detector.signals import ImageSignals
from cellfinder.detector.tracks import LineCandidate
from cellfinder.detector.uniform import line_grid_candidate, split_outer_lines
from cellfinder.errors import NoLinesDetected
from cellfinder.image_utils import as_rgba

from conftest import blank


def approx_bounds(bounds, expected, tol=2.0):
    assert len(bounds) == len(expected)
    for got, want in zip(bounds, expected):
        assert abs(got - want) <= tol


def test_uniform_round_trip(grid_image):
    cand = detect(grid_image, "uniform")
    assert cand.source == "uniform:lines"
    approx_bounds(cand.x_bounds, [0, 100, 200, 300, 400])
    approx_bounds(cand.y_bounds, [0, 100, 200, 300, 400])
    assert cand.count == 16
    assert cand.support == pytest.approx(1.0)
    assert cand.suggested_trim == 4


def test_uniform_with_outer_frame(framed_grid_image):
    cand = detect(framed_grid_image, "uniform")
    approx_bounds(cand.x_bounds, [0, 100, 200, 300, 400])
    approx_bounds(cand.y_bounds, [0, 100, 200, 300, 400])


def test_uniform_grid_string(grid_image):
    cand = CellDetector().detect(grid_image, "uniform", grid="2x2")
    approx_bounds(cand.x_bounds, [0, 200, 400])
    assert cand.count == 4


def test_uniform_lineless_image_is_even():
    cand = detect(blank(400, 200), "uniform")
    assert cand.source == "uniform:even"
    assert cand.x_bounds == [0.0, 100.0, 200.0, 300.0, 400.0]
    assert cand.y_bounds == [0.0, 50.0, 100.0, 150.0, 200.0]
    assert cand.support == 0.0


def test_line_grid_raises_without_lines():
    signals = ImageSignals.from_rgba(as_rgba(blank(100, 100)))
    with pytest.raises(NoLinesDetected):
        line_grid_candidate(signals, DetectorConfig(), "freeform", 80)


def test_tiles_on_thin_cross_beat_uniform(cross_tiles_image):
    tiles = detect(cross_tiles_image, "tiles")
    uniform = detect(cross_tiles_image, "uniform")
    assert tiles.count == 4
    assert tiles.source == "tiles:separators"
    assert tiles.score > uniform.score


def test_tiles_on_white_canvas_cross():
    img = blank(200, 200)
    img[99:101, :] = 0
    img[:, 99:101] = 0
    tiles = detect(img, "tiles")
    assert tiles.count == 4
    assert tiles.score > detect(img, "uniform").score


def test_tiles_components_on_dark_background(isolated_shapes_image):
    detector = CellDetector()
    detector.detect(isolated_shapes_image, "tiles")
    sources = {c.source: c for c in detector.last_candidates}
    assert sources["tiles:components"].count == 3


def test_isolated_shapes(isolated_shapes_image):
    cand = detect(isolated_shapes_image, "isolated")
    assert cand.source == "isolated:components"
    assert [(c.x, c.y, c.w, c.h) for c in cand.cells] == [
        (20.0, 60.0, 60.0, 80.0),
        (120.0, 60.0, 60.0, 80.0),
        (220.0, 60.0, 60.0, 80.0),
    ]


def test_isolated_never_crosses_separator(cross_tiles_image):
    cand = detect(cross_tiles_image, "isolated")
    assert cand.count == 4
    for cell in cand.cells:
        assert not (cell.x < 100 < cell.right)
        assert not (cell.y < 100 < cell.bottom)


def test_freeform_content_blobs(gutter_panels_image):
    cand = detect(gutter_panels_image, "freeform")
    assert cand.source == "freeform:content"
    assert [(c.x, c.y, c.w, c.h) for c in cand.cells] == [
        (20.0, 20.0, 120.0, 160.0),
        (160.0, 20.0, 120.0, 160.0),
    ]


def test_freeform_falls_back_to_line_grid(grid_image):
    cand = detect(grid_image, "freeform")
    assert cand.source == "freeform:linegrid"
    assert cand.count == 16


def test_lineform_framed_panels(framed_panels_image):
    cand = detect(framed_panels_image, "lineform")
    assert cand.source == "lineform:tracks"
    assert cand.count == 2
    left, right = cand.cells
    assert abs(left.x - 11.5) <= 2 and abs(left.right - 138.5) <= 2
    assert abs(right.x - 161.5) <= 2 and abs(right.right - 288.5) <= 2
    for cell in cand.cells:
        assert abs(cell.y - 11.5) <= 2 and abs(cell.bottom - 288.5) <= 2


def test_candidate_cells_never_overlap(framed_panels_image, cross_tiles_image, grid_image):
    for img in (framed_panels_image, cross_tiles_image, grid_image):
        for mode in ("uniform", "freeform", "lineform", "tiles", "isolated"):
            cells = detect(img, mode).cells
            for i, a in enumerate(cells):
                assert a.w > 0 and a.h > 0
                for b in cells[i + 1:]:
                    assert a.intersected(b).area == 0


def test_uniform_divider_near_edge_is_a_cut():
    img = blank(400, 400)
    for p in (40, 200, 360):
        img[:, p - 2:p + 2] = 0
        img[p - 2:p + 2, :] = 0
    cand = detect(img, "uniform")
    approx_bounds(cand.x_bounds, [0, 40, 200, 360, 400])
    approx_bounds(cand.y_bounds, [0, 40, 200, 360, 400])
    assert cand.support == pytest.approx(1.0)


def test_split_outer_lines_needs_an_edge_touching_frame():
    lines = [LineCandidate(2.0, 4.0), LineCandidate(40.0, 4.0), LineCandidate(200.0, 4.0)]
    start, end, inner = split_outer_lines(lines, 400, 0.12)
    assert (start, end) == (0.0, 400.0)
    assert [l.position for l in inner] == [40.0, 200.0]

    start, end, inner = split_outer_lines(lines[1:], 400, 0.12)
    assert (start, end) == (0.0, 400.0)
    assert [l.position for l in inner] == [40.0, 200.0]
