"""Shared utilities and data structures for cell detection.

Contains:
- Rect, Segment and Candidate value types
- The pdebug logger used by every detection route
- Common geometry helpers
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..errors import DegenerateGeometry, NoLinesDetected

log = logging.getLogger("Cells")


def pdebug(*parts: object) -> None:
    """Debug logger for cell detection."""
    if log.isEnabledFor(logging.DEBUG):
        log.debug("[Cells] " + " ".join(map(str, parts)))


def clamp(value: float, lo: float, hi: float) -> float:
    return lo if value < lo else hi if value > hi else value


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in pixel space."""
    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    @property
    def area(self) -> float:
        return self.w * self.h

    @property
    def aspect(self) -> float:
        """Longer side over shorter side (inf for degenerate rects)."""
        short = min(self.w, self.h)
        return max(self.w, self.h) / short if short > 0 else float("inf")

    def is_empty(self) -> bool:
        return self.w <= 0 or self.h <= 0

    def intersected(self, other: "Rect") -> "Rect":
        x1 = max(self.x, other.x)
        y1 = max(self.y, other.y)
        x2 = min(self.right, other.right)
        y2 = min(self.bottom, other.bottom)
        return Rect(x1, y1, max(0.0, x2 - x1), max(0.0, y2 - y1))

    def united(self, other: "Rect") -> "Rect":
        x1 = min(self.x, other.x)
        y1 = min(self.y, other.y)
        return Rect(x1, y1, max(self.right, other.right) - x1, max(self.bottom, other.bottom) - y1)

    def contains(self, other: "Rect") -> bool:
        return (
            self.x <= other.x
            and self.y <= other.y
            and self.right >= other.right
            and self.bottom >= other.bottom
        )

    def padded(self, pad: float, width: float, height: float) -> "Rect":
        """Grow by ``pad`` on every side, clamped to the image."""
        x1 = clamp(self.x - pad, 0, width)
        y1 = clamp(self.y - pad, 0, height)
        x2 = clamp(self.right + pad, 0, width)
        y2 = clamp(self.bottom + pad, 0, height)
        return Rect(x1, y1, x2 - x1, y2 - y1)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}


@dataclass(frozen=True)
class Segment:
    """Axis-aligned line segment (horizontal when y1 == y2)."""
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def is_horizontal(self) -> bool:
        return self.y1 == self.y2

    @property
    def length(self) -> float:
        return ((self.x2 - self.x1) ** 2 + (self.y2 - self.y1) ** 2) ** 0.5

    def to_dict(self) -> Dict[str, float]:
        return {"x1": self.x1, "y1": self.y1, "x2": self.x2, "y2": self.y2}


@dataclass
class Candidate:
    """One strategy's proposed cell set plus its score and provenance."""
    mode: str
    source: str
    cells: List[Rect]
    x_bounds: Optional[List[float]] = None
    y_bounds: Optional[List[float]] = None
    score: float = 0.0
    support: float = 1.0          # Fraction of boundaries backed by image evidence
    suggested_trim: int = 0
    segments: List[Segment] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.cells)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "mode": self.mode,
            "source": self.source,
            "score": round(self.score, 4),
            "support": round(self.support, 4),
            "cells": [c.to_dict() for c in self.cells],
        }
        if self.x_bounds is not None and self.y_bounds is not None:
            out["xBounds"] = list(self.x_bounds)
            out["yBounds"] = list(self.y_bounds)
            out["suggestedTrim"] = self.suggested_trim
        if self.segments:
            out["segments"] = [s.to_dict() for s in self.segments]
        return out


Producer = Callable[[], Optional[Candidate]]


def run_producers(producers: Sequence[Producer], accept: Callable[[Candidate], bool]) -> List[Candidate]:
    """Evaluate producers in order until one yields an acceptable candidate.

    Returns:
        ``[accepted]`` on success, otherwise every candidate produced.
        A producer that raises NoLinesDetected or DegenerateGeometry yields
        no candidate; any other exception propagates.
    """
    produced: List[Candidate] = []
    for producer in producers:
        try:
            cand = producer()
        except (NoLinesDetected, DegenerateGeometry) as e:
            pdebug(f"[producer] {getattr(producer, '__name__', producer)}: {e.kind}: {e}")
            continue
        if cand is None:
            continue
        if accept(cand):
            pdebug(f"[producer] accepted {cand.source} ({cand.count} cells)")
            return [cand]
        produced.append(cand)
    return produced


def cells_from_bounds(x_bounds: Sequence[float], y_bounds: Sequence[float]) -> List[Rect]:
    """Row-major grid cells between consecutive bounds."""
    cells = []
    for j in range(len(y_bounds) - 1):
        for i in range(len(x_bounds) - 1):
            w = x_bounds[i + 1] - x_bounds[i]
            h = y_bounds[j + 1] - y_bounds[j]
            if w > 0 and h > 0:
                cells.append(Rect(x_bounds[i], y_bounds[j], w, h))
    return cells


def sort_reading_order(rects: Iterable[Rect]) -> List[Rect]:
    """Sort top-to-bottom, then left-to-right."""
    return sorted(rects, key=lambda r: (r.y, r.x, r.h, r.w))


def rect_bounds_int(rect: Rect, width: int, height: int) -> Tuple[int, int, int, int]:
    """Integer (x1, y1, x2, y2) of a rect, clamped to the image."""
    x1 = int(clamp(round(rect.x), 0, width))
    y1 = int(clamp(round(rect.y), 0, height))
    x2 = int(clamp(round(rect.right), x1, width))
    y2 = int(clamp(round(rect.bottom), y1, height))
    return x1, y1, x2, y2
