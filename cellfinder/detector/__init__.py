"""Cell detection engine for cellfinder.

This package provides a modular architecture for cell detection:
- base.py: Core CellDetector class with main detection flow
- signals.py: Masks and profiles from the RGBA buffer
- tracks.py: 1-D runs and 2-D line tracks
- line_selector.py: Exactly-K cut selection for uniform grids
- components.py: Connected components and rect merging
- arrangement.py: Separator segments to non-overlapping cells
- uniform.py, freeform.py, lineform.py, tiles.py, isolated.py: Strategies
- scoring.py: Candidate scoring and selection
- classifier.py: Strategy shortlisting from cheap image features
- filters.py: Post-processing filters
- utils.py: Shared utilities and data structures
"""

from __future__ import annotations

from .base import CellDetector, DetectionResult, STRATEGIES, arrange, detect, detect_best
from .utils import Candidate, Rect, Segment

__all__ = [
    "CellDetector",
    "DetectionResult",
    "STRATEGIES",
    "Candidate",
    "Rect",
    "Segment",
    "arrange",
    "detect",
    "detect_best",
]
