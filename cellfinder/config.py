"""Configuration dataclasses for cellfinder.

Each numeric field carries its documented bounds in the dataclass field
metadata; out-of-range values are clamped on construction instead of raising.
"""

from __future__ import annotations

import copy
import math
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Union

import yaml


def bounded(default, lo, hi):
    """Dataclass field with a default and inclusive clamping bounds."""
    return field(default=default, metadata={"min": lo, "max": hi})


def _clamp_fields(obj) -> None:
    for f in fields(obj):
        lo = f.metadata.get("min")
        hi = f.metadata.get("max")
        if lo is None and hi is None:
            continue
        value = getattr(obj, f.name)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            # Non-numeric or non-finite values fall back to the documented default
            setattr(obj, f.name, f.default)
            continue
        value = min(max(value, lo), hi)
        if isinstance(f.default, int):
            value = int(round(value))
        else:
            value = float(value)
        setattr(obj, f.name, value)


def _filtered(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in (data or {}).items() if k in cls.__dataclass_fields__}


class _Section:
    """Mixin shared by the per-strategy configuration sections."""

    def __post_init__(self) -> None:
        _clamp_fields(self)

    def copy(self):
        """Return a deep copy of this section."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        """Create from dictionary, ignoring unknown keys."""
        return cls(**_filtered(cls, data))


@dataclass
class UniformConfig(_Section):
    """Uniform grid: evenly distributed dark cut lines."""

    rows: int = bounded(4, 1, 10)
    cols: int = bounded(4, 1, 10)
    black_threshold: int = bounded(80, 0, 255)       # Luminance at or below = dark
    darkness_threshold: float = bounded(0.15, 0.0, 1.0)  # Profile fraction for a line
    min_line_px: int = bounded(1, 1, 200)            # Thinnest accepted line
    max_line_frac: float = bounded(0.08, 0.005, 0.5)  # Thickest line vs axis length
    min_gap: int = bounded(8, 2, 500)                # Minimum spacing between cuts
    min_span_frac: float = bounded(0.5, 0.0, 1.0)    # Longest dark run needed to count as a line
    border_frac: float = bounded(0.12, 0.0, 0.5)     # Outermost line within this band = image border


@dataclass
class FreeformConfig(_Section):
    """Freeform panels: content blobs first, then white gutters, then lines."""

    white_threshold: int = bounded(220, 0, 255)      # Luminance at or above = gutter
    min_run_fraction: float = bounded(0.12, 0.01, 1.0)
    min_gap_px: int = bounded(2, 1, 200)             # Thinnest gutter
    max_gap_px: int = bounded(40, 1, 500)            # Thickest gutter
    merge_gap: int = bounded(2, 0, 50)               # Holes bridged inside one row run
    max_track_gap_px: int = bounded(2, 1, 50)
    min_overlap_ratio: float = bounded(0.45, 0.0, 1.0)
    min_content_area_frac: float = bounded(0.01, 0.0, 1.0)
    content_merge_gap_px: int = bounded(4, 0, 200)
    content_pad_px: int = bounded(0, 0, 100)
    min_content_ratio: float = bounded(0.02, 0.0, 1.0)  # Cells emptier than this are gutter
    line_threshold: int = bounded(80, 0, 255)        # Black-line grid fallback
    min_cells: int = bounded(2, 1, 100)


@dataclass
class LineformConfig(_Section):
    """Freeform on lines: panels framed by dark strokes."""

    black_threshold: int = bounded(90, 0, 255)
    min_run_fraction: float = bounded(0.15, 0.01, 1.0)
    min_thickness_px: int = bounded(1, 1, 100)
    max_thickness_px: int = bounded(12, 1, 200)
    merge_gap: int = bounded(1, 0, 50)
    max_track_gap_px: int = bounded(3, 1, 50)
    min_overlap_ratio: float = bounded(0.5, 0.0, 1.0)
    border_band_px: int = bounded(3, 0, 50)          # Search band around each cell side
    border_evidence_frac: float = bounded(0.6, 0.0, 1.0)
    image_border_counts: bool = True                 # Image edge is valid border evidence
    junction_tol_px: int = bounded(6, 0, 100)
    min_cells: int = bounded(2, 1, 100)


@dataclass
class TilesConfig(_Section):
    """Adjacent tiles: thin separators or blobs on a dark background."""

    separator_threshold: int = bounded(80, 0, 255)
    min_separator_px: int = bounded(1, 1, 64)
    max_separator_px: int = bounded(8, 1, 64)
    min_run_fraction: float = bounded(0.25, 0.01, 1.0)
    min_fill_ratio: float = bounded(0.85, 0.0, 1.0)  # Track continuity
    max_track_gap_px: int = bounded(1, 1, 50)
    min_overlap_ratio: float = bounded(0.6, 0.0, 1.0)
    background_threshold: int = bounded(40, 0, 255)  # Luminance above = foreground
    min_tile_area_frac: float = bounded(0.005, 0.0, 1.0)
    component_merge_gap_px: int = bounded(0, 0, 100)


@dataclass
class IsolatedConfig(_Section):
    """Isolated shapes on a dark background, cut along thin separators."""

    separator_threshold: int = bounded(80, 0, 255)
    min_separator_px: int = bounded(1, 1, 64)
    max_separator_px: int = bounded(8, 1, 64)
    min_run_fraction: float = bounded(0.25, 0.01, 1.0)
    min_fill_ratio: float = bounded(0.85, 0.0, 1.0)
    max_track_gap_px: int = bounded(1, 1, 50)
    min_overlap_ratio: float = bounded(0.6, 0.0, 1.0)
    background_threshold: int = bounded(40, 0, 255)
    separator_dilate_px: int = bounded(1, 0, 20)
    min_area_frac: float = bounded(0.002, 0.0, 1.0)
    pad_px: int = bounded(0, 0, 100)


@dataclass
class ScoringConfig(_Section):
    """Candidate scoring thresholds."""

    strip_aspect: float = bounded(8.0, 1.0, 100.0)   # Longer/shorter side above = strip
    tiny_frac: float = bounded(0.15, 0.0, 1.0)       # Area below this x mean = fragment
    dominant_frac: float = bounded(0.6, 0.0, 1.0)    # One cell above this x image = dominant
    min_cells: int = bounded(2, 1, 100)
    max_cells: int = bounded(36, 1, 400)
    max_tile_cells: int = bounded(100, 1, 1000)      # Upper bound for tiles/isolated
    default_cells: int = bounded(6, 1, 400)          # Tie-break target for freeform modes


@dataclass
class DetectorConfig:
    """Configuration for the cell detection engine.

    All fractional parameters are relative to image dimensions so results
    stay stable across resolutions.
    """

    uniform: UniformConfig = field(default_factory=UniformConfig)
    freeform: FreeformConfig = field(default_factory=FreeformConfig)
    lineform: LineformConfig = field(default_factory=LineformConfig)
    tiles: TilesConfig = field(default_factory=TilesConfig)
    isolated: IsolatedConfig = field(default_factory=IsolatedConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    arrangement_eps: float = bounded(1.0, 0.0, 10.0)  # Coordinate merge tolerance
    min_cell_px: int = bounded(4, 1, 1000)           # Smaller cells are dropped
    use_shortlist: bool = True    # Narrow detect_best with cheap image signals
    parallel: bool = False        # Run strategies on the shared thread pool
    max_workers: int = bounded(2, 1, 16)
    debug: bool = False

    def __post_init__(self) -> None:
        _clamp_fields(self)

    def copy(self) -> "DetectorConfig":
        """Return a deep copy of this configuration."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DetectorConfig":
        """Create from dictionary.

        Sections may be given as nested dicts; unknown keys are ignored.
        """
        data = data or {}
        kwargs = _filtered(cls, data)
        for name, section_cls in _SECTIONS.items():
            if isinstance(kwargs.get(name), dict):
                kwargs[name] = section_cls.from_dict(kwargs[name])
            elif name in kwargs and not isinstance(kwargs[name], section_cls):
                del kwargs[name]
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "DetectorConfig":
        """Load a configuration from a YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            data = {}
        return cls.from_dict(data)


_SECTIONS = {
    "uniform": UniformConfig,
    "freeform": FreeformConfig,
    "lineform": LineformConfig,
    "tiles": TilesConfig,
    "isolated": IsolatedConfig,
    "scoring": ScoringConfig,
}


# Preset configurations for different source images
PRESETS: Dict[str, DetectorConfig] = {
    "Icon grid": DetectorConfig(
        uniform=UniformConfig(rows=4, cols=4, black_threshold=90, min_span_frac=0.6),
        scoring=ScoringConfig(default_cells=16, max_cells=64),
    ),
    "Comic page": DetectorConfig(
        freeform=FreeformConfig(white_threshold=230, max_gap_px=60, min_content_area_frac=0.02),
        lineform=LineformConfig(black_threshold=100, max_thickness_px=16, border_evidence_frac=0.5),
        scoring=ScoringConfig(default_cells=6, max_cells=16, strip_aspect=6.0),
    ),
    "Dark tiles": DetectorConfig(
        tiles=TilesConfig(background_threshold=50, max_separator_px=6),
        isolated=IsolatedConfig(background_threshold=50, separator_dilate_px=2),
        scoring=ScoringConfig(default_cells=12, max_tile_cells=200),
    ),
}
