"""Tests for cell export crops."""

import numpy as np
import pytest

from cellfinder.detector.utils import Rect
from cellfinder.errors import InvalidInput
from cellfinder.split import crop_cells, split_by_bounds


@pytest.fixture
def image():
    return np.arange(100 * 100 * 4, dtype=np.uint32).reshape(100, 100, 4).astype(np.uint8)


def test_split_by_bounds(image):
    crops = split_by_bounds(image, [0, 50, 100], [0, 50, 100])
    assert len(crops) == 4
    assert all(c.shape == (50, 50, 4) for c in crops)
    assert np.array_equal(crops[1], image[0:50, 50:100])


def test_split_with_trim(image):
    crops = split_by_bounds(image, [0, 50, 100], [0, 50, 100], trim=2)
    assert crops[0].shape == (46, 46, 4)
    assert np.array_equal(crops[3], image[52:98, 52:98])


def test_split_rejects_bad_bounds(image):
    with pytest.raises(InvalidInput):
        split_by_bounds(image, [0, 50, 100], [0, 50, 100], trim=30)
    with pytest.raises(InvalidInput):
        split_by_bounds(image, [0], [0, 100])


def test_crop_cells(image):
    cells = [Rect(0, 0, 10, 10), Rect(20, 20, 4, 4)]
    crops = crop_cells(image, cells, trim=3)
    assert crops[0].shape == (4, 4, 4)
    assert crops[1].shape == (1, 1, 4)
    assert len(crop_cells(image, cells, excluded={0})) == 1


def test_crop_cells_rejects_empty_cell(image):
    with pytest.raises(InvalidInput):
        crop_cells(image, [Rect(0, 0, 0, 5)])


def test_crops_are_copies(image):
    crop = crop_cells(image, [Rect(0, 0, 10, 10)])[0]
    crop[:] = 7
    assert image[0, 0, 0] == 0
