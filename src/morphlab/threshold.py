"""
Luma thresholding that turns an RGBA raster into pure black/white.
"""
from __future__ import annotations

import numpy as np

from morphlab.pixel import BLACK, WHITE
from morphlab.raster import Raster


DEFAULT_THRESHOLD = 128

LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)


def luma(raster: Raster) -> np.ndarray:
    """
    Weighted brightness of every pixel.

    Computed on the raw channel values (no gamma linearisation).

    Returns:
        float64 array of shape (height, width)
    """
    rgb = raster.array[..., :3].astype(np.float64)
    wr, wg, wb = LUMA_WEIGHTS
    return wr * rgb[..., 0] + wg * rgb[..., 1] + wb * rgb[..., 2]


def binarize(raster: Raster, threshold: float = DEFAULT_THRESHOLD) -> Raster:
    """
    Map every pixel to BLACK when its luma is below ``threshold``, WHITE otherwise.

    Alpha is always forced opaque. Binarizing an already binary raster with
    the same threshold returns an equal raster.
    """
    below = luma(raster) < threshold
    output = np.empty_like(raster.array)
    output[...] = WHITE.as_tuple()
    output[below] = BLACK.as_tuple()
    return Raster(output)
