"""Tests for candidate scoring, selection and shortlisting."""

import pytest

from cellfinder.config import DetectorConfig
from cellfinder.detector.classifier import PageFeatures, shortlist_modes
from cellfinder.detector.scoring import expected_range, score_candidate, select_best
from cellfinder.detector.utils import Candidate, Rect, cells_from_bounds
from cellfinder.errors import DegenerateGeometry


def grid_cells(n, size=100.0):
    step = size / n
    bounds = [i * step for i in range(n + 1)]
    return cells_from_bounds(bounds, bounds)


def test_expected_ranges():
    config = DetectorConfig()
    assert expected_range("uniform", config) == (16, 16)
    assert expected_range("freeform", config) == (2, 36)
    assert expected_range("tiles", config) == (2, 100)


def test_perfect_candidate_scores_one():
    cand = Candidate("tiles", "tiles:separators", grid_cells(2))
    assert score_candidate(cand, 100, 100, DetectorConfig()) == pytest.approx(1.0)


def test_empty_candidate_scores_zero():
    assert score_candidate(Candidate("freeform", "freeform:gaps", []), 100, 100, DetectorConfig()) == 0.0


def test_support_and_penalties_lower_score():
    config = DetectorConfig()
    good = Candidate("freeform", "freeform:gaps", grid_cells(2))
    weak = Candidate("freeform", "freeform:gaps", grid_cells(2), support=0.2)
    strips = Candidate("freeform", "freeform:gaps", [Rect(0, 0, 100, 5), Rect(0, 5, 100, 95)])
    single = Candidate("freeform", "freeform:gaps", [Rect(0, 0, 100, 100)])
    s_good = score_candidate(good, 100, 100, config)
    assert score_candidate(weak, 100, 100, config) < s_good
    assert score_candidate(strips, 100, 100, config) < s_good
    assert score_candidate(single, 100, 100, config) < s_good


def test_select_best_tie_breaks_on_expected_count():
    config = DetectorConfig()
    tiles = Candidate("tiles", "tiles:separators", grid_cells(4))
    uniform = Candidate("uniform", "uniform:lines", grid_cells(4))
    best = select_best([tiles, uniform], 100, 100, config)
    assert best is uniform
    assert tiles.score == pytest.approx(uniform.score)


def test_select_best_tie_breaks_on_strategy_order():
    config = DetectorConfig()
    a = Candidate("lineform", "lineform:tracks", grid_cells(2))
    b = Candidate("freeform", "freeform:gaps", grid_cells(2))
    assert select_best([a, b], 100, 100, config) is b


def test_select_best_requires_candidates():
    with pytest.raises(DegenerateGeometry):
        select_best([], 100, 100, DetectorConfig())


def test_shortlist_by_background():
    dark = PageFeatures(border_luminance=10, col_lines=0, row_lines=0)
    assert shortlist_modes(dark) == ["uniform", "tiles", "isolated"]
    lined = PageFeatures(border_luminance=255, col_lines=3, row_lines=3)
    assert shortlist_modes(lined) == ["uniform", "freeform", "lineform", "tiles"]
    plain = PageFeatures(border_luminance=255, col_lines=0, row_lines=0)
    assert shortlist_modes(plain) == ["freeform", "lineform", "tiles"]
    mid = PageFeatures(border_luminance=120, col_lines=1, row_lines=1)
    assert shortlist_modes(mid) == ["uniform", "freeform", "lineform", "tiles", "isolated"]
