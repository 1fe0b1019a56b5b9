"""
Morphological operations for binary RGBA rasters.

Every operation reads an immutable raster plus a structuring element and
returns a new raster of the same size. Neighbours that fall outside the
raster are replaced by the pixel being computed (replicate-border-via-center),
which differs from clamping to the nearest edge pixel.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Literal, Tuple

import numpy as np

from morphlab.errors import InvalidArgument
from morphlab.kernel import KernelValue, StructuringElement
from morphlab.pixel import BLACK, WHITE
from morphlab.raster import Raster


logger = logging.getLogger(__name__)

Extremum = Literal["dilate", "erode"]
BandFunction = Callable[[int, int], np.ndarray]

_WHITE = np.array(WHITE.as_tuple(), dtype=np.uint8)
_BLACK = np.array(BLACK.as_tuple(), dtype=np.uint8)


# ============================================================================
# Neighbourhood sampling
# ============================================================================

def _neighbors(image: np.ndarray, dy: int, dx: int, y0: int, y1: int) -> np.ndarray:
    """
    Sample ``image[y + dy, x + dx]`` for every output row ``y0 <= y < y1``.

    Where the offset lands off the raster, the pixel ``image[y, x]`` itself
    is used instead.
    """
    h, w = image.shape[:2]
    sampled = image[y0:y1].copy()

    top, bottom = max(y0, -dy), min(y1, h - dy)
    left, right = max(0, -dx), min(w, w - dx)
    if top < bottom and left < right:
        sampled[top - y0:bottom - y0, left:right] = image[top + dy:bottom + dy, left + dx:right + dx]

    return sampled


def _run_banded(band: BandFunction, height: int, workers: int) -> np.ndarray:
    """Evaluate ``band(y0, y1)`` over row bands and stitch the results together."""
    if workers < 1:
        raise InvalidArgument(f"workers must be >= 1, got {workers}")

    n_bands = min(int(workers), height)
    if n_bands <= 1:
        return band(0, height)

    bounds = np.linspace(0, height, n_bands + 1).astype(int)
    ranges = [(int(a), int(b)) for a, b in zip(bounds[:-1], bounds[1:]) if b > a]

    with ThreadPoolExecutor(max_workers=n_bands) as pool:
        parts = list(pool.map(lambda r: band(*r), ranges))

    return np.concatenate(parts, axis=0)


# ============================================================================
# Dilation / erosion
# ============================================================================

def _apply_morphology(
    raster: Raster,
    kernel: StructuringElement,
    operation: Extremum,
    workers: int = 1
) -> Raster:
    """
    Fold every FOREGROUND neighbour with a componentwise max or min.

    BACKGROUND and DONT_CARE cells are skipped. The fold is seeded with the
    lattice identity (BLACK for max, WHITE for min), so a kernel without
    FOREGROUND cells yields a uniform BLACK / WHITE raster.
    """
    if operation == "dilate":
        seed, fold = _BLACK, np.maximum
    elif operation == "erode":
        seed, fold = _WHITE, np.minimum
    else:
        raise InvalidArgument(f"Unsupported morphological operator: {operation}")

    image = raster.array
    offsets = kernel.active_offsets(KernelValue.FOREGROUND)

    def band(y0: int, y1: int) -> np.ndarray:
        result = np.empty((y1 - y0,) + image.shape[1:], dtype=np.uint8)
        result[...] = seed
        for dy, dx in offsets:
            fold(result, _neighbors(image, dy, dx, y0, y1), out=result)
        return result

    started = time.perf_counter()
    output = _run_banded(band, raster.height, workers)
    logger.debug(
        "%s %dx%d with %dx%d kernel (%d active cells) in %.3fs",
        operation, raster.width, raster.height, kernel.dimension, kernel.dimension,
        len(offsets), time.perf_counter() - started,
    )
    return Raster(output)


def dilate(raster: Raster, kernel: StructuringElement, workers: int = 1) -> Raster:
    """
    Dilate a binary raster - grows white regions.

    Args:
        raster: Input raster
        kernel: Structuring element; only FOREGROUND cells are sampled
        workers: Number of threads sharing the rows

    Returns:
        Dilated raster
    """
    return _apply_morphology(raster, kernel, "dilate", workers)


def erode(raster: Raster, kernel: StructuringElement, workers: int = 1) -> Raster:
    """
    Erode a binary raster - shrinks white regions.

    Args:
        raster: Input raster
        kernel: Structuring element; only FOREGROUND cells are sampled
        workers: Number of threads sharing the rows

    Returns:
        Eroded raster
    """
    return _apply_morphology(raster, kernel, "erode", workers)


def opening(raster: Raster, kernel: StructuringElement, workers: int = 1) -> Raster:
    """
    Morphological opening = Erode -> Dilate.

    Only the kernel's size is used: both passes run with a flat
    (all-FOREGROUND) element of the same dimension, whatever cells were edited.
    """
    flat = StructuringElement.full(kernel.dimension)
    return dilate(erode(raster, flat, workers), flat, workers)


def closing(raster: Raster, kernel: StructuringElement, workers: int = 1) -> Raster:
    """
    Morphological closing = Dilate -> Erode.

    Like ``opening``, runs with a flat element of the kernel's dimension.
    """
    flat = StructuringElement.full(kernel.dimension)
    return erode(dilate(raster, flat, workers), flat, workers)


# ============================================================================
# Hit-or-miss family
# ============================================================================

def _match_mask(raster: Raster, kernel: StructuringElement, workers: int = 1) -> np.ndarray:
    """Boolean (H, W) mask of locations whose neighbourhood matches the kernel exactly."""
    image = raster.array
    requirements: List[Tuple[int, int, np.ndarray]] = [
        (dy, dx, _WHITE) for dy, dx in kernel.active_offsets(KernelValue.FOREGROUND)
    ] + [
        (dy, dx, _BLACK) for dy, dx in kernel.active_offsets(KernelValue.BACKGROUND)
    ]

    def band(y0: int, y1: int) -> np.ndarray:
        matched = np.ones((y1 - y0, image.shape[1]), dtype=bool)
        for dy, dx, required in requirements:
            sampled = _neighbors(image, dy, dx, y0, y1)
            matched &= np.all(sampled == required, axis=-1)
            if not matched.any():
                break
        return matched

    return _run_banded(band, raster.height, workers)


def hit_or_miss(raster: Raster, kernel: StructuringElement, workers: int = 1) -> Raster:
    """
    Hit-or-miss transform for pattern matching.

    FOREGROUND cells must see exactly WHITE, BACKGROUND cells exactly BLACK,
    DONT_CARE cells are ignored. Matching locations become WHITE, the rest BLACK.
    """
    matched = _match_mask(raster, kernel, workers)
    output = np.empty_like(raster.array)
    output[...] = _BLACK
    output[matched] = _WHITE
    logger.debug("hit_or_miss matched %d of %d pixels", int(matched.sum()), matched.size)
    return Raster(output)


def thinning(raster: Raster, kernel: StructuringElement, workers: int = 1) -> Raster:
    """Force matching locations to BLACK, keep every other pixel."""
    matched = _match_mask(raster, kernel, workers)
    output = raster.array.copy()
    output[matched] = _BLACK
    return Raster(output)


def thickening(raster: Raster, kernel: StructuringElement, workers: int = 1) -> Raster:
    """Force matching locations to WHITE, keep every other pixel."""
    matched = _match_mask(raster, kernel, workers)
    output = raster.array.copy()
    output[matched] = _WHITE
    return Raster(output)


# ============================================================================
# Operation registry
# ============================================================================

Operation = Callable[..., Raster]

OPERATIONS: Dict[str, Operation] = {
    "dilate": dilate,
    "erode": erode,
    "open": opening,
    "close": closing,
    "hit_or_miss": hit_or_miss,
    "thinning": thinning,
    "thickening": thickening,
}


def apply_operation(name: str, raster: Raster, kernel: StructuringElement, workers: int = 1) -> Raster:
    """Run an operation by its registry name."""
    key = name.strip().lower().replace("-", "_")
    if key not in OPERATIONS:
        raise InvalidArgument(
            f"Unknown operation: {name} (expected one of {', '.join(OPERATIONS)})"
        )
    return OPERATIONS[key](raster, kernel, workers)
