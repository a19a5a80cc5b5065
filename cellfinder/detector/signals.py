"""Pixel signal extraction.

Turns the RGBA buffer into binary masks and 1-D profiles:
- dark/light masks from white-composited luminance
- per-row/per-column predicate fraction (profiles)
- longest contiguous predicate run per row/column
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from ..image_utils import composite_luminance

DARK = "dark"
LIGHT = "light"


def build_mask(lum: NDArray, threshold: float, predicate: str = DARK) -> NDArray:
    """Binary mask of pixels satisfying the luminance predicate.

    Args:
        lum: Composited luminance (H, W)
        threshold: Luminance threshold (0-255)
        predicate: "dark" (L <= threshold) or "light" (L >= threshold)

    Returns:
        Boolean array of shape (H, W)
    """
    if predicate == DARK:
        return lum <= threshold
    if predicate == LIGHT:
        return lum >= threshold
    raise ValueError(f"unknown predicate: {predicate!r}")


def profile(mask: NDArray, axis: str) -> NDArray:
    """Fraction of true pixels per column (axis="x") or per row (axis="y")."""
    if mask.size == 0:
        n = mask.shape[1] if axis == "x" else mask.shape[0]
        return np.zeros(n, dtype=np.float64)
    return mask.mean(axis=0 if axis == "x" else 1, dtype=np.float64)


def longest_runs(mask: NDArray, axis: str) -> NDArray:
    """Longest contiguous run of true pixels in each column or row.

    For axis="x" the run is measured down each column, for axis="y" along
    each row.
    """
    m = mask.T if axis == "x" else mask
    n_lines, length = m.shape
    out = np.zeros(n_lines, dtype=np.int64)
    if m.size == 0:
        return out

    padded = np.zeros((n_lines, length + 2), dtype=np.int8)
    padded[:, 1:-1] = m
    d = np.diff(padded, axis=1)
    # np.nonzero walks row-major, so starts and ends pair up line by line
    s_rows, s_cols = np.nonzero(d == 1)
    _, e_cols = np.nonzero(d == -1)
    if s_rows.size:
        np.maximum.at(out, s_rows, e_cols - s_cols)
    return out


def line_aware_profile(mask: NDArray, axis: str, min_span_frac: float) -> NDArray:
    """Profile zeroed wherever the longest run is shorter than the span.

    A column holding a vertical line has a long contiguous run; a column
    crossing glyphs or artwork only has short ones, so it is dropped even when
    its overall darkness is high.
    """
    prof = profile(mask, axis)
    if prof.size == 0:
        return prof
    axis_len = mask.shape[0] if axis == "x" else mask.shape[1]
    runs = longest_runs(mask, axis)
    prof = prof.copy()
    prof[runs < min_span_frac * axis_len] = 0.0
    return prof


@dataclass(frozen=True)
class ImageSignals:
    """Per-invocation view of one image: RGBA, luminance and size."""
    rgba: NDArray
    lum: NDArray
    width: int
    height: int

    @classmethod
    def from_rgba(cls, rgba: NDArray) -> "ImageSignals":
        lum = composite_luminance(rgba)
        lum.flags.writeable = False
        h, w = rgba.shape[:2]
        return cls(rgba=rgba, lum=lum, width=int(w), height=int(h))

    @property
    def area(self) -> int:
        return self.width * self.height

    def dark_mask(self, threshold: float) -> NDArray:
        return build_mask(self.lum, threshold, DARK)

    def light_mask(self, threshold: float) -> NDArray:
        return build_mask(self.lum, threshold, LIGHT)

    def content_mask(self, background_threshold: float) -> NDArray:
        """Pixels brighter than a dark background."""
        return self.lum > background_threshold

    def border_luminance(self, border_pct: float = 0.04) -> float:
        """Median luminance of the image border strips."""
        h, w = self.height, self.width
        if h == 0 or w == 0:
            return 255.0
        b = max(1, min(int(min(h, w) * border_pct), min(h, w)))
        samples = np.concatenate([
            self.lum[:b, :].ravel(),
            self.lum[h - b:, :].ravel(),
            self.lum[:, :b].ravel(),
            self.lum[:, w - b:].ravel(),
        ])
        return float(np.median(samples))
