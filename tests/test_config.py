"""Tests for configuration dataclasses."""

import pytest

from cellfinder.config import PRESETS, DetectorConfig, ScoringConfig, UniformConfig


def test_defaults():
    config = DetectorConfig()
    assert config.uniform.rows == 4 and config.uniform.cols == 4
    assert config.uniform.black_threshold == 80
    assert config.uniform.darkness_threshold == pytest.approx(0.15)
    assert config.uniform.min_gap == 8
    assert config.freeform.white_threshold == 220
    assert config.freeform.min_run_fraction == pytest.approx(0.12)


def test_out_of_range_values_clamped():
    cfg = UniformConfig(rows=50, cols=0, black_threshold=300, darkness_threshold=-1.0)
    assert cfg.rows == 10
    assert cfg.cols == 1
    assert cfg.black_threshold == 255
    assert cfg.darkness_threshold == 0.0


def test_non_numeric_values_fall_back_to_default():
    cfg = UniformConfig(rows="many", min_gap=None)
    assert cfg.rows == 4
    assert cfg.min_gap == 8


def test_from_dict_ignores_unknown_keys():
    config = DetectorConfig.from_dict({
        "uniform": {"rows": 3, "colour": "red"},
        "scoring": {"max_cells": 12},
        "parallel": True,
        "not_a_field": 1,
        "tiles": "broken",
    })
    assert config.uniform.rows == 3
    assert config.scoring.max_cells == 12
    assert config.parallel is True
    assert config.tiles.max_separator_px == 8


def test_round_trip_dict():
    config = DetectorConfig(scoring=ScoringConfig(default_cells=9))
    assert DetectorConfig.from_dict(config.to_dict()) == config


def test_copy_is_deep():
    config = DetectorConfig()
    clone = config.copy()
    clone.uniform.rows = 2
    assert config.uniform.rows == 4


def test_from_yaml(tmp_path):
    path = tmp_path / "detect.yaml"
    path.write_text("uniform:\n  rows: 3\n  cols: 5\nlineform:\n  border_evidence_frac: 1.5\ndebug: true\n")
    config = DetectorConfig.from_yaml(path)
    assert (config.uniform.rows, config.uniform.cols) == (3, 5)
    assert config.lineform.border_evidence_frac == 1.0
    assert config.debug is True


def test_empty_yaml(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert DetectorConfig.from_yaml(path) == DetectorConfig()


def test_presets():
    assert set(PRESETS) == {"Icon grid", "Comic page", "Dark tiles"}
    assert PRESETS["Comic page"].scoring.max_cells == 16


def test_nan_values_fall_back_to_default():
    cfg = UniformConfig(rows=float("nan"), darkness_threshold=float("nan"))
    assert cfg.rows == 4
    assert cfg.darkness_threshold == pytest.approx(0.15)


def test_nan_from_yaml(tmp_path):
    path = tmp_path / "nan.yaml"
    path.write_text("uniform:\n  black_threshold: .nan\nscoring:\n  strip_aspect: .inf\n")
    config = DetectorConfig.from_yaml(path)
    assert config.uniform.black_threshold == 80
    assert config.scoring.strip_aspect == 8.0
