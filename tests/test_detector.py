"""Tests for the CellDetector entry points."""

import numpy as np
import pytest

from cellfinder import (
    CellDetector,
    DetectorConfig,
    InvalidInput,
    UnsupportedMode,
    arrange,
    detect,
    detect_best,
)
from cellfinder.detector.utils import Rect


def test_detect_best_prefers_uniform_on_grid(grid_image):
    best = detect_best(grid_image)
    assert best.mode == "uniform"
    assert best.count == 16


def test_detect_best_on_cross_finds_four_cells(cross_tiles_image):
    best = detect_best(cross_tiles_image)
    assert best.count == 4
    assert best.mode != "uniform"


def test_detect_best_is_idempotent(framed_panels_image):
    first = detect_best(framed_panels_image).to_dict()
    second = detect_best(framed_panels_image).to_dict()
    assert first == second


def test_parallel_matches_sequential(grid_image):
    sequential = detect_best(grid_image, config=DetectorConfig(use_shortlist=False))
    parallel = detect_best(grid_image, config=DetectorConfig(use_shortlist=False, parallel=True))
    assert parallel.to_dict() == sequential.to_dict()


def test_explicit_shortlist(cross_tiles_image):
    best = detect_best(cross_tiles_image, shortlist=["uniform"])
    assert best.mode == "uniform"
    with pytest.raises(UnsupportedMode):
        detect_best(cross_tiles_image, shortlist=["uniform", "bogus"])


def test_unknown_mode_raises(grid_image):
    with pytest.raises(UnsupportedMode):
        detect(grid_image, "diagonal")


def test_zero_area_image_raises():
    with pytest.raises(InvalidInput):
        detect(np.zeros((0, 10, 3), dtype=np.uint8), "uniform")


def test_raw_bytes_input(grid_image):
    rgba = np.concatenate([grid_image, np.full((400, 400, 1), 255, np.uint8)], axis=2)
    cand = CellDetector().detect(rgba.tobytes(), "uniform", width=400, height=400)
    assert cand.count == 16


def test_run_reports_errors_without_raising(grid_image):
    detector = CellDetector()
    bad = detector.run(grid_image, mode="diagonal")
    assert not bad.success
    assert bad.error_kind == "unsupported_mode"
    assert bad.candidate is None

    empty = detector.run(b"", mode="uniform", width=0, height=0)
    assert not empty.success
    assert empty.error_kind == "invalid_input"

    ok = detector.run(grid_image)
    assert ok.success
    assert ok.candidate.count == 16
    assert ok.elapsed_ms >= 0
    assert ok.candidates


def test_input_buffer_untouched(grid_image):
    before = grid_image.copy()
    detect_best(grid_image)
    assert np.array_equal(before, grid_image)


def test_arrange_entry_point():
    assert arrange([], 64, 32) == [Rect(0.0, 0.0, 64.0, 32.0)]
    assert len(CellDetector().arrange([(0, 16, 64, 16)], 64, 32)) == 2


def test_candidate_to_dict(grid_image):
    data = detect(grid_image, "uniform").to_dict()
    assert data["mode"] == "uniform"
    assert len(data["xBounds"]) == 5
    assert data["suggestedTrim"] == 4
    assert len(data["cells"]) == 16
