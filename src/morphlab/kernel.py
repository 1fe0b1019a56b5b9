"""
Ternary structuring element for binary morphology.

Cells are stored row-major; ``get(x, y)`` addresses column ``x`` of row ``y``.
The dimension is always odd so that ``center`` is a whole cell.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Sequence, Tuple, Union

import numpy as np

from morphlab.errors import InvalidArgument, PreconditionViolation


class KernelValue(Enum):
    FOREGROUND = "1"
    BACKGROUND = "0"
    DONT_CARE = "x"

    @classmethod
    def parse(cls, token: Union[str, int, KernelValue]) -> KernelValue:
        if isinstance(token, KernelValue):
            return token
        text = str(token).strip().lower()
        for value in cls:
            if value.value == text:
                return value
        raise InvalidArgument(f"Unknown kernel cell value: {token!r}")


CellRows = Sequence[Union[str, Sequence[Union[str, int, KernelValue]]]]


def _full_cells(dimension: int) -> List[KernelValue]:
    return [KernelValue.FOREGROUND] * (dimension * dimension)


def _check_dimension(dimension: int) -> int:
    if isinstance(dimension, bool) or int(dimension) != dimension:
        raise InvalidArgument(f"Kernel dimension must be an integer, got {dimension!r}")
    dimension = int(dimension)
    if dimension <= 0:
        raise InvalidArgument(f"Kernel dimension must be positive, got {dimension}")
    if dimension % 2 == 0:
        raise InvalidArgument(f"Kernel dimension must be odd, got {dimension}")
    return dimension


@dataclass
class StructuringElement:
    """
    Odd-sized square mask of FOREGROUND / BACKGROUND / DONT_CARE cells.

    A freshly constructed element is the 1x1 identity ``[FOREGROUND]``.
    """
    dimension: int = 1
    cells: List[KernelValue] = field(default_factory=lambda: [KernelValue.FOREGROUND])

    def __post_init__(self) -> None:
        self.dimension = _check_dimension(self.dimension)
        if len(self.cells) != self.dimension * self.dimension:
            raise InvalidArgument(
                f"Expected {self.dimension * self.dimension} cells, got {len(self.cells)}"
            )
        self.cells = [KernelValue.parse(cell) for cell in self.cells]

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def full(cls, dimension: int) -> StructuringElement:
        """All-FOREGROUND (flat) element of the given size."""
        dimension = _check_dimension(dimension)
        return cls(dimension, _full_cells(dimension))

    @classmethod
    def from_rows(cls, rows: CellRows) -> StructuringElement:
        """
        Build an element from rows of cell tokens.

        Rows may be strings (``"x1x"``) or sequences of ``KernelValue`` /
        tokens. The result must be square with an odd side.
        """
        parsed: List[List[KernelValue]] = []
        for row in rows:
            tokens: Iterable = row.replace(" ", "") if isinstance(row, str) else row
            parsed.append([KernelValue.parse(token) for token in tokens])

        dimension = len(parsed)
        if dimension == 0 or any(len(row) != dimension for row in parsed):
            raise InvalidArgument("Kernel rows must form a non-empty square")
        _check_dimension(dimension)

        return cls(dimension, [cell for row in parsed for cell in row])

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    @property
    def center(self) -> int:
        return (self.dimension - 1) // 2

    def resize(self, dimension: int) -> None:
        """
        Replace the mask with an all-FOREGROUND one of a new odd size.

        Individual cell edits are discarded. Raises ``InvalidArgument`` for
        even or non-positive sizes and leaves the element untouched.
        """
        dimension = _check_dimension(dimension)
        self.cells = _full_cells(dimension)
        self.dimension = dimension

    def _index(self, x: int, y: int) -> int:
        if not (0 <= x < self.dimension and 0 <= y < self.dimension):
            raise PreconditionViolation(
                f"Kernel cell ({x}, {y}) out of bounds for dimension {self.dimension}"
            )
        return y * self.dimension + x

    def get(self, x: int, y: int) -> KernelValue:
        return self.cells[self._index(x, y)]

    def set(self, x: int, y: int, value: Union[str, KernelValue]) -> None:
        self.cells[self._index(x, y)] = KernelValue.parse(value)

    def toggle(self, x: int, y: int) -> KernelValue:
        """Flip FOREGROUND and BACKGROUND; a DONT_CARE cell becomes FOREGROUND."""
        index = self._index(x, y)
        current = self.cells[index]
        new_value = KernelValue.BACKGROUND if current is KernelValue.FOREGROUND else KernelValue.FOREGROUND
        self.cells[index] = new_value
        return new_value

    def mark_dont_care(self, x: int, y: int) -> None:
        self.cells[self._index(x, y)] = KernelValue.DONT_CARE

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def active_offsets(self, value: KernelValue = KernelValue.FOREGROUND) -> List[Tuple[int, int]]:
        """``(dy, dx)`` offsets, relative to the center, of every cell equal to ``value``."""
        c = self.center
        offsets = []
        for y in range(self.dimension):
            for x in range(self.dimension):
                if self.cells[y * self.dimension + x] is value:
                    offsets.append((y - c, x - c))
        return offsets

    def to_rows(self) -> List[str]:
        d = self.dimension
        return ["".join(cell.value for cell in self.cells[y * d:(y + 1) * d]) for y in range(d)]

    def to_array(self) -> np.ndarray:
        """Integer matrix: 1 foreground, 0 background, -1 don't care."""
        lookup = {KernelValue.FOREGROUND: 1, KernelValue.BACKGROUND: 0, KernelValue.DONT_CARE: -1}
        values = [lookup[cell] for cell in self.cells]
        return np.array(values, dtype=np.int8).reshape(self.dimension, self.dimension)

    def copy(self) -> StructuringElement:
        return StructuringElement(self.dimension, list(self.cells))
