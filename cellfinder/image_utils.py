"""Image conversion utilities for cellfinder.

Coerces caller-supplied pixels into the read-only RGBA buffer the detectors
work on, and computes white-composited luminance.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np
from numpy.typing import NDArray

from .errors import InvalidInput


def as_rgba(
    data: Union[NDArray, bytes, bytearray, memoryview],
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> NDArray:
    """Convert pixel data to a read-only NumPy array (HxWx4 RGBA uint8).

    Accepts grayscale (H, W), RGB (H, W, 3) or RGBA (H, W, 4) arrays, or a
    raw row-major RGBA byte buffer together with ``width`` and ``height``.

    Raises:
        InvalidInput: if the data cannot be interpreted as an image or has
            zero area.
    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        if not width or not height or width <= 0 or height <= 0:
            raise InvalidInput("raw buffers need a positive width and height")
        arr = np.frombuffer(bytes(data), dtype=np.uint8)
        if arr.size != width * height * 4:
            raise InvalidInput(
                f"buffer holds {arr.size} bytes, expected {width * height * 4} for {width}x{height} RGBA"
            )
        arr = arr.reshape((height, width, 4))
    else:
        arr = np.asarray(data)
        if arr.dtype != np.uint8:
            if arr.dtype.kind == "f" and arr.size and float(np.nanmax(arr)) <= 1.0:
                arr = arr * 255.0
            arr = np.clip(np.nan_to_num(arr), 0, 255).astype(np.uint8)
        opaque = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        if arr.ndim == 2:
            arr = np.concatenate([arr[:, :, None]] * 3 + [opaque], axis=2)
        elif arr.ndim == 3 and arr.shape[2] == 3:
            arr = np.concatenate([arr, opaque], axis=2)
        elif arr.ndim != 3 or arr.shape[2] != 4:
            raise InvalidInput(f"unsupported pixel array shape {arr.shape}")

    h, w = arr.shape[:2]
    if h == 0 or w == 0:
        raise InvalidInput(f"image has zero area ({w}x{h})")

    # Contiguous private copy, frozen for the whole detection pass
    arr = np.array(arr, dtype=np.uint8, order="C", copy=True)
    arr.flags.writeable = False
    return arr


def composite_luminance(rgba: NDArray) -> NDArray:
    """Luminance of RGBA pixels blended onto a white background.

    ``L = 0.299R + 0.587G + 0.114B`` then ``L' = L*a + 255*(1-a)`` so fully
    transparent pixels read as white.

    Returns:
        float32 array of shape (H, W) in [0, 255]
    """
    if rgba.size == 0:
        return np.zeros(rgba.shape[:2], dtype=np.float32)
    rgb = rgba[:, :, :3].astype(np.float32)
    lum = 0.299 * rgb[:, :, 0] + 0.587 * rgb[:, :, 1] + 0.114 * rgb[:, :, 2]
    alpha = rgba[:, :, 3].astype(np.float32) / 255.0
    return lum * alpha + 255.0 * (1.0 - alpha)


def load_rgba(path: Union[str, Path]) -> NDArray:
    """Read an image file into a read-only RGBA array using OpenCV."""
    img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if img is None:
        raise InvalidInput(f"could not read image: {path}")
    if img.dtype != np.uint8:
        img = cv2.convertScaleAbs(img, alpha=255.0 / max(float(img.max()), 1.0))
    if img.ndim == 2:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    elif img.shape[2] == 3:
        img = cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    else:
        img = cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
    return as_rgba(img)


def save_rgba(path: Union[str, Path], rgba: NDArray) -> None:
    """Write an RGBA array to an image file using OpenCV."""
    bgra = cv2.cvtColor(np.array(rgba, copy=True), cv2.COLOR_RGBA2BGRA)
    if not cv2.imwrite(str(path), bgra):
        raise OSError(f"could not write image: {path}")
