"""cellfinder - multi-strategy cell detection for raster images.

Finds the rectangular cells (panels, tiles, icons) of one image so each can
be exported on its own, combining several detection strategies with a
common scoring step.
"""

__version__ = "1.0.0"

from .detector import CellDetector, DetectionResult, Candidate, Rect, Segment, arrange, detect, detect_best
from .config import DetectorConfig, PRESETS
from .errors import (
    CellDetectionError,
    DegenerateGeometry,
    InvalidInput,
    NoLinesDetected,
    UnsupportedMode,
)

__all__ = [
    "CellDetector",
    "DetectionResult",
    "Candidate",
    "Rect",
    "Segment",
    "DetectorConfig",
    "PRESETS",
    "CellDetectionError",
    "DegenerateGeometry",
    "InvalidInput",
    "NoLinesDetected",
    "UnsupportedMode",
    "arrange",
    "detect",
    "detect_best",
]
