"""Shared fixtures: synthetic images drawn with numpy."""

import numpy as np
import pytest


def blank(width, height, value=255):
    return np.full((height, width, 3), value, dtype=np.uint8)


def draw_frame(img, x1, y1, x2, y2, t=3, value=0):
    """Draw a rectangular stroke of thickness ``t`` inside [x1, x2) x [y1, y2)."""
    img[y1:y1 + t, x1:x2] = value
    img[y2 - t:y2, x1:x2] = value
    img[y1:y2, x1:x1 + t] = value
    img[y1:y2, x2 - t:x2] = value
    return img


@pytest.fixture
def grid_image():
    """400x400 white image, 4x4 grid of 4 px black dividers at 100/200/300."""
    img = blank(400, 400)
    for p in (100, 200, 300):
        img[:, p - 2:p + 2] = 0
        img[p - 2:p + 2, :] = 0
    return img


@pytest.fixture
def framed_grid_image(grid_image):
    """Same grid with a 4 px outer frame."""
    img = grid_image.copy()
    img[:4, :] = 0
    img[-4:, :] = 0
    img[:, :4] = 0
    img[:, -4:] = 0
    return img


@pytest.fixture
def cross_tiles_image():
    """Four coloured 200x200 quadrants split by a 2 px black cross."""
    img = np.zeros((200, 200, 3), dtype=np.uint8)
    img[:100, :100] = (200, 80, 80)
    img[:100, 100:] = (80, 200, 80)
    img[100:, :100] = (80, 80, 200)
    img[100:, 100:] = (220, 220, 120)
    img[99:101, :] = 0
    img[:, 99:101] = 0
    return img


@pytest.fixture
def framed_panels_image():
    """300x300 white page with two panels framed by 3 px black strokes."""
    img = blank(300, 300)
    draw_frame(img, 10, 10, 140, 290)
    draw_frame(img, 160, 10, 290, 290)
    return img


@pytest.fixture
def gutter_panels_image():
    """300x200 white page with two grey panels separated by a white gutter."""
    img = blank(300, 200)
    img[20:180, 20:140] = 120
    img[20:180, 160:280] = 120
    return img


@pytest.fixture
def isolated_shapes_image():
    """300x200 black background with three white squares."""
    img = blank(300, 200, value=0)
    for x in (20, 120, 220):
        img[60:140, x:x + 60] = 255
    return img
