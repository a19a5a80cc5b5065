"""Core CellDetector class with main detection flow.

This is the main entry point for cell detection, coordinating:
- Buffer coercion and signal extraction
- The five detection strategies (uniform, freeform, lineform, tiles, isolated)
- Strategy shortlisting
- Candidate scoring and selection
- The segment arrangement engine for user-corrected boundaries
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from ..config import DetectorConfig
from ..errors import CellDetectionError, UnsupportedMode
from ..grid_schema import parse_compact_grid
from ..image_utils import as_rgba
from .arrangement import arrange as arrange_segments
from .classifier import extract_features, shortlist_modes
from .freeform import detect_freeform
from .isolated import detect_isolated
from .lineform import detect_lineform
from .scoring import MODES, select_best
from .signals import ImageSignals
from .tiles import detect_tiles
from .uniform import detect_uniform
from .utils import Candidate, Rect, log, pdebug

Strategy = Callable[[ImageSignals, DetectorConfig], List[Candidate]]

STRATEGIES: Dict[str, Strategy] = {
    "uniform": detect_uniform,
    "freeform": detect_freeform,
    "lineform": detect_lineform,
    "tiles": detect_tiles,
    "isolated": detect_isolated,
}


@dataclass
class DetectionResult:
    """Result of a detection run."""
    success: bool
    candidate: Optional[Candidate] = None
    error_message: Optional[str] = None
    error_kind: Optional[str] = None
    elapsed_ms: float = 0.0
    candidates: List[Candidate] = field(default_factory=list)


class CellDetector:
    """Multi-strategy cell detector.

    Strategies are pure functions of the image signals and configuration;
    the detector only coordinates them and keeps the last candidate list
    for inspection.

    Thread-safe with internal locking for shared state.
    """

    # Shared thread pool
    _executor: Optional[ThreadPoolExecutor] = None
    _executor_lock = threading.Lock()

    def __init__(self, config: Optional[DetectorConfig] = None):
        """Initialize detector with configuration.

        Args:
            config: Detection parameters. Uses defaults if None.
        """
        self.config = config or DetectorConfig()
        self._lock = threading.Lock()
        self._last_candidates: List[Candidate] = []

    @classmethod
    def get_executor(cls, max_workers: int = 2) -> ThreadPoolExecutor:
        """Get or create shared thread pool executor."""
        with cls._executor_lock:
            if cls._executor is None:
                cls._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="cell_detect")
            return cls._executor

    @property
    def last_candidates(self) -> List[Candidate]:
        """Every scored candidate of the last detection pass (thread-safe)."""
        with self._lock:
            return list(self._last_candidates)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def detect(self, image, mode: str, grid: Optional[str] = None, width=None, height=None) -> Candidate:
        """Run one strategy and return its best candidate.

        Args:
            image: RGBA/RGB/gray array, or raw RGBA bytes with width/height
            mode: Strategy identifier
            grid: Optional "RxC" grid string for the uniform strategy

        Raises:
            UnsupportedMode: unknown strategy
            InvalidInput: malformed or zero-area image
            DegenerateGeometry: the strategy produced no candidate
        """
        strategy = self._strategy(mode)
        config = self._config_for(grid)
        signals = self._signals(image, width, height)
        candidates = strategy(signals, config)
        return self._select(candidates, signals, config)

    def detect_best(
        self,
        image,
        shortlist: Optional[Sequence[str]] = None,
        grid: Optional[str] = None,
        width=None,
        height=None,
    ) -> Candidate:
        """Run several strategies and return the highest scoring candidate.

        Args:
            image: RGBA/RGB/gray array, or raw RGBA bytes with width/height
            shortlist: Strategies to run; derived from image features when
                None and ``config.use_shortlist`` is set, otherwise all
            grid: Optional "RxC" grid string for the uniform strategy
        """
        config = self._config_for(grid)
        signals = self._signals(image, width, height)

        if shortlist is not None:
            modes = [m for m in MODES if m in set(shortlist)]
            for m in shortlist:
                self._strategy(m)
        elif config.use_shortlist:
            modes = shortlist_modes(extract_features(signals, config))
        else:
            modes = list(MODES)
        if not modes:
            raise UnsupportedMode("empty strategy shortlist")

        pdebug(f"[detect_best] {signals.width}x{signals.height} modes={modes}")
        candidates: List[Candidate] = []
        if config.parallel and len(modes) > 1:
            executor = self.get_executor(config.max_workers)
            futures = [executor.submit(STRATEGIES[m], signals, config) for m in modes]
            # Wait for every strategy before scoring; results keep strategy order
            for fut in futures:
                candidates.extend(fut.result())
        else:
            for m in modes:
                candidates.extend(STRATEGIES[m](signals, config))
        return self._select(candidates, signals, config)

    def arrange(self, segments, width: float, height: float) -> List[Rect]:
        """Convert user-edited separator segments into cells."""
        return arrange_segments(segments, width, height, self.config.arrangement_eps)

    def run(self, image, mode: Optional[str] = None, grid: Optional[str] = None, width=None, height=None) -> DetectionResult:
        """Detect without raising: errors are reported in the result.

        ``mode=None`` or "auto" runs :meth:`detect_best`.
        """
        start = time.perf_counter()
        try:
            if mode in (None, "auto"):
                cand = self.detect_best(image, grid=grid, width=width, height=height)
            else:
                cand = self.detect(image, mode, grid=grid, width=width, height=height)
        except CellDetectionError as e:
            elapsed = (time.perf_counter() - start) * 1000
            log.warning("Cell detection failed (%s): %s", e.kind, e)
            return DetectionResult(
                success=False,
                error_message=str(e),
                error_kind=e.kind,
                elapsed_ms=elapsed,
            )
        elapsed = (time.perf_counter() - start) * 1000
        return DetectionResult(
            success=True,
            candidate=cand,
            elapsed_ms=elapsed,
            candidates=self.last_candidates,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _strategy(mode: str) -> Strategy:
        try:
            return STRATEGIES[mode]
        except (KeyError, TypeError):
            raise UnsupportedMode(f"unknown detection mode: {mode!r}") from None

    def _config_for(self, grid: Optional[str]) -> DetectorConfig:
        if not grid:
            return self.config
        spec = parse_compact_grid(grid)
        config = self.config.copy()
        config.uniform.rows = spec.rows
        config.uniform.cols = spec.cols
        return config

    def _signals(self, image, width, height) -> ImageSignals:
        if isinstance(image, ImageSignals):
            return image
        return ImageSignals.from_rgba(as_rgba(image, width, height))

    def _select(self, candidates: List[Candidate], signals: ImageSignals, config: DetectorConfig) -> Candidate:
        try:
            best = select_best(candidates, signals.width, signals.height, config)
        finally:
            with self._lock:
                self._last_candidates = list(candidates)
        if config.debug:
            for c in candidates:
                pdebug(f"[candidates] {c.source}: {c.count} cells score={c.score:.3f}")
        return best


def detect(image, mode: str, config: Optional[DetectorConfig] = None, **kwargs) -> Candidate:
    """Run one strategy on an image."""
    return CellDetector(config).detect(image, mode, **kwargs)


def detect_best(image, shortlist: Optional[Sequence[str]] = None, config: Optional[DetectorConfig] = None, **kwargs) -> Candidate:
    """Run the shortlisted strategies and return the best candidate."""
    return CellDetector(config).detect_best(image, shortlist=shortlist, **kwargs)


def arrange(segments, width: float, height: float, config: Optional[DetectorConfig] = None) -> List[Rect]:
    """Convert axis-aligned separator segments into non-overlapping cells."""
    return CellDetector(config).arrange(segments, width, height)
