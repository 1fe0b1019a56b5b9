"""
RGBA pixel value with componentwise lattice operations.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

from morphlab.errors import InvalidArgument


@dataclass(frozen=True)
class Pixel:
    """Four unsigned 8-bit channels in RGBA order."""
    r: int
    g: int
    b: int
    a: int = 255

    def __post_init__(self) -> None:
        for name in ("r", "g", "b", "a"):
            channel = getattr(self, name)
            if isinstance(channel, bool) or int(channel) != channel:
                raise InvalidArgument(f"Pixel channel must be an integer, got {channel!r}")
            if not 0 <= channel <= 255:
                raise InvalidArgument(f"Pixel channel out of range: {channel}")
            object.__setattr__(self, name, int(channel))

    def min(self, other: Pixel) -> Pixel:
        """Componentwise minimum (not a total order over pixels)."""
        return Pixel(
            min(self.r, other.r),
            min(self.g, other.g),
            min(self.b, other.b),
            min(self.a, other.a),
        )

    def max(self, other: Pixel) -> Pixel:
        """Componentwise maximum."""
        return Pixel(
            max(self.r, other.r),
            max(self.g, other.g),
            max(self.b, other.b),
            max(self.a, other.a),
        )

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)

    @classmethod
    def from_sequence(cls, values: Sequence[int]) -> Pixel:
        if len(values) != 4:
            raise InvalidArgument(f"Pixel expects 4 channels, got {len(values)}")
        return cls(*values)


WHITE = Pixel(255, 255, 255, 255)
BLACK = Pixel(0, 0, 0, 255)
