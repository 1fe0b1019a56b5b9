from typing import Callable, List, Sequence

import numpy as np
import pytest

from morphlab.pixel import BLACK, WHITE
from morphlab.raster import Raster


def _raster_from_rows(rows: Sequence[str]) -> Raster:
    """'1' is WHITE, '0' is BLACK; one string per image row."""
    height, width = len(rows), len(rows[0])
    array = np.empty((height, width, 4), dtype=np.uint8)
    for y, row in enumerate(rows):
        assert len(row) == width
        for x, char in enumerate(row):
            array[y, x] = WHITE.as_tuple() if char == "1" else BLACK.as_tuple()
    return Raster(array)


def _rows_of(raster: Raster) -> List[str]:
    rows = []
    for y in range(raster.height):
        chars = []
        for x in range(raster.width):
            pixel = raster.get_pixel(x, y)
            if pixel == WHITE:
                chars.append("1")
            elif pixel == BLACK:
                chars.append("0")
            else:
                chars.append("?")
        rows.append("".join(chars))
    return rows


@pytest.fixture
def make_raster() -> Callable[[Sequence[str]], Raster]:
    return _raster_from_rows


@pytest.fixture
def rows_of() -> Callable[[Raster], List[str]]:
    return _rows_of


@pytest.fixture
def random_binary() -> Raster:
    rng = np.random.default_rng(7)
    mask = rng.random((9, 12)) < 0.5
    array = np.empty((9, 12, 4), dtype=np.uint8)
    array[...] = BLACK.as_tuple()
    array[mask] = WHITE.as_tuple()
    return Raster(array)


@pytest.fixture
def color_raster() -> Raster:
    rng = np.random.default_rng(3)
    return Raster(rng.integers(0, 256, size=(6, 8, 4), dtype=np.uint8))
