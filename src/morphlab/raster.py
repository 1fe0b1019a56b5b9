"""
Immutable RGBA8 raster.

The buffer is a ``(height, width, 4)`` uint8 array, row-major with a
top-left origin. It is flagged read-only once wrapped, so every transform
has to build a new raster.
"""
from __future__ import annotations

from typing import Union

import numpy as np

from morphlab.errors import InvalidArgument, PreconditionViolation
from morphlab.pixel import Pixel


class Raster:
    """Owned RGBA8 buffer with explicit width/height."""

    __slots__ = ("_data",)

    def __init__(self, data: np.ndarray) -> None:
        data = np.asarray(data)
        if data.ndim != 3 or data.shape[2] != 4:
            raise InvalidArgument(f"Raster expects an (H, W, 4) array, got shape {data.shape}")
        if data.shape[0] <= 0 or data.shape[1] <= 0:
            raise InvalidArgument("Raster width and height must be positive")
        if data.dtype != np.uint8:
            raise InvalidArgument(f"Raster expects uint8 data, got {data.dtype}")
        # private copy: no caller array or view may alias the pixels
        owned = data.copy()
        owned.flags.writeable = False
        self._data = owned

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_bytes(cls, data: Union[bytes, bytearray, memoryview], width: int, height: int) -> Raster:
        """Wrap a decoded RGBA8 buffer of exactly ``width * height * 4`` bytes."""
        width, height = int(width), int(height)
        if width <= 0 or height <= 0:
            raise InvalidArgument("Width and height must be positive integers")

        expected = width * height * 4
        if len(data) != expected:
            raise InvalidArgument(
                f"Buffer length {len(data)} does not match {width}x{height} RGBA ({expected})"
            )

        return cls(np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, 4))

    @classmethod
    def from_array(cls, array: np.ndarray) -> Raster:
        """Copy an ``(H, W, 4)`` array into a new raster."""
        array = np.asarray(array)
        if array.dtype != np.uint8:
            raise InvalidArgument(f"Raster expects uint8 data, got {array.dtype}")
        return cls(array)

    @classmethod
    def filled(cls, width: int, height: int, pixel: Pixel) -> Raster:
        if width <= 0 or height <= 0:
            raise InvalidArgument("Width and height must be positive integers")
        array = np.empty((int(height), int(width), 4), dtype=np.uint8)
        array[...] = pixel.as_tuple()
        return cls(array)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def width(self) -> int:
        return int(self._data.shape[1])

    @property
    def height(self) -> int:
        return int(self._data.shape[0])

    @property
    def array(self) -> np.ndarray:
        """Read-only view of the pixel data."""
        return self._data.view()

    def to_bytes(self) -> bytes:
        return self._data.tobytes()

    def copy(self) -> Raster:
        return Raster(self._data)

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise PreconditionViolation(
                f"Pixel ({x}, {y}) out of bounds for {self.width}x{self.height} raster"
            )

    def get_pixel(self, x: int, y: int) -> Pixel:
        """Pixel at column ``x``, row ``y``."""
        self._check_bounds(x, y)
        return Pixel.from_sequence(self._data[y, x].tolist())

    def with_pixel(self, x: int, y: int, pixel: Pixel) -> Raster:
        """Return a copy of this raster with one pixel replaced."""
        self._check_bounds(x, y)
        data = self._data.copy()
        data[y, x] = pixel.as_tuple()
        return Raster(data)

    # ------------------------------------------------------------------
    # Value semantics
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Raster):
            return NotImplemented
        return self._data.shape == other._data.shape and bool(np.array_equal(self._data, other._data))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Raster(width={self.width}, height={self.height})"
