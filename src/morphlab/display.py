"""
OpenCV window shell: renders rasters and the structuring element, and turns
mouse clicks on the kernel grid into cell edits.
"""
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

import cv2
import numpy as np

from morphlab.kernel import KernelValue, StructuringElement
from morphlab.raster import Raster


CELL_COLORS: Dict[KernelValue, Tuple[int, int, int]] = {
    KernelValue.FOREGROUND: (255, 255, 255),
    KernelValue.BACKGROUND: (0, 0, 0),
    KernelValue.DONT_CARE: (128, 128, 128),
}
GRID_COLOR = (0, 160, 255)

CONTROLS = [
    "D - Dilate    E - Erode",
    "O - Open      C - Close",
    "H - Hit/Miss",
    "T - Thinning  K - Thickening",
    "+/- Kernel size",
    "R - Reset     S - Save",
    "Q - Quit",
    "Click: toggle cell",
    "Right click: don't care",
]


# ============================================================================
# Rendering Helpers
# ============================================================================

def to_bgr(raster: Raster) -> np.ndarray:
    """RGBA raster -> BGR array for cv2.imshow."""
    return cv2.cvtColor(raster.array, cv2.COLOR_RGBA2BGR)


def add_label(image: np.ndarray, text: str) -> np.ndarray:
    """Add text label to image top-left corner."""
    if image.ndim == 2:
        display = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    else:
        display = image.copy()

    font = cv2.FONT_HERSHEY_SIMPLEX
    font_scale = 0.5
    thickness = 1
    (text_w, text_h), _ = cv2.getTextSize(text, font, font_scale, thickness)

    cv2.rectangle(display, (0, 0), (text_w + 10, text_h + 10), (0, 0, 0), -1)
    cv2.putText(display, text, (5, text_h + 5), font, font_scale, (0, 255, 0), thickness)

    return display


def kernel_to_image(kernel: StructuringElement, cell_size: int = 24) -> np.ndarray:
    """
    Draw the kernel as a grid of filled cells.

    FOREGROUND cells are white, BACKGROUND black, DONT_CARE grey; the center
    cell gets an inner marker.
    """
    cell_size = max(4, int(cell_size))
    side = kernel.dimension * cell_size
    image = np.zeros((side + 1, side + 1, 3), dtype=np.uint8)

    for y in range(kernel.dimension):
        for x in range(kernel.dimension):
            top_left = (x * cell_size, y * cell_size)
            bottom_right = ((x + 1) * cell_size, (y + 1) * cell_size)
            cv2.rectangle(image, top_left, bottom_right, CELL_COLORS[kernel.get(x, y)], -1)
            cv2.rectangle(image, top_left, bottom_right, GRID_COLOR, 1)

    c = kernel.center * cell_size + cell_size // 2
    cv2.circle(image, (c, c), max(1, cell_size // 6), GRID_COLOR, -1)

    return image


def cell_at(kernel: StructuringElement, px: int, py: int, cell_size: int = 24) -> Optional[Tuple[int, int]]:
    """Kernel cell under window coordinates ``(px, py)``, or ``None`` outside the grid."""
    cell_size = max(4, int(cell_size))
    if px < 0 or py < 0:
        return None
    x, y = px // cell_size, py // cell_size
    if x >= kernel.dimension or y >= kernel.dimension:
        return None
    return int(x), int(y)


def create_info_panel(
    width: int,
    height: int,
    image_size: Tuple[int, int],
    kernel_dimension: int,
    history: List[str]
) -> np.ndarray:
    """Create info panel with session state and controls."""
    panel = np.zeros((height, width, 3), dtype=np.uint8)

    font = cv2.FONT_HERSHEY_SIMPLEX
    yellow = (0, 255, 255)
    white = (255, 255, 255)
    green = (0, 255, 0)

    y = 25
    line_h = 20

    cv2.putText(panel, "=== SESSION ===", (10, y), font, 0.45, yellow, 1)
    y += line_h + 5
    cv2.putText(panel, f"Image: {image_size[0]}x{image_size[1]}", (10, y), font, 0.4, white, 1)
    y += line_h
    cv2.putText(panel, f"Kernel: {kernel_dimension}x{kernel_dimension}", (10, y), font, 0.4, green, 1)
    y += line_h
    last = history[-1] if history else "-"
    cv2.putText(panel, f"Ops: {len(history)} (last: {last})", (10, y), font, 0.4, white, 1)
    y += line_h + 10

    cv2.putText(panel, "=== CONTROLS ===", (10, y), font, 0.45, yellow, 1)
    y += line_h + 5
    for ctrl in CONTROLS:
        cv2.putText(panel, ctrl, (10, y), font, 0.35, white, 1)
        y += line_h - 3

    return panel


# ============================================================================
# Window Manager
# ============================================================================

ClickHandler = Callable[[int, int, bool], None]


class MorphologyDisplay:
    """Manages the Original / Current / Kernel / Info windows."""

    def __init__(self, window_size: Tuple[int, int] = (480, 360), cell_size: int = 24):
        self.window_size = window_size
        self.cell_size = cell_size
        self.windows = ["1-Original", "2-Current", "3-Kernel", "4-Info"]
        self._kernel: Optional[StructuringElement] = None
        self._on_click: Optional[ClickHandler] = None
        self._setup_windows()

    def _setup_windows(self):
        """Create and position windows in a 2x2 grid."""
        w, h = self.window_size
        gap = 5
        title_bar = 30

        positions = [
            (0, 0), (w + gap, 0),
            (0, h + gap + title_bar), (w + gap, h + gap + title_bar),
        ]

        for i, name in enumerate(self.windows):
            if name == "3-Kernel":
                cv2.namedWindow(name, cv2.WINDOW_AUTOSIZE)
            else:
                cv2.namedWindow(name, cv2.WINDOW_NORMAL)
                cv2.resizeWindow(name, w, h)
            cv2.moveWindow(name, positions[i][0], positions[i][1])

        cv2.setMouseCallback("3-Kernel", self._mouse_event)

    def _mouse_event(self, event, px, py, flags, param):
        if self._kernel is None or self._on_click is None:
            return
        if event not in (cv2.EVENT_LBUTTONDOWN, cv2.EVENT_RBUTTONDOWN):
            return
        cell = cell_at(self._kernel, px, py, self.cell_size)
        if cell is not None:
            self._on_click(cell[0], cell[1], event == cv2.EVENT_RBUTTONDOWN)

    def on_cell_click(self, handler: ClickHandler) -> None:
        """Register ``handler(x, y, dont_care)`` for clicks on the kernel grid."""
        self._on_click = handler

    def update(
        self,
        original: Raster,
        current: Raster,
        kernel: StructuringElement,
        history: List[str]
    ):
        """Update all windows."""
        self._kernel = kernel
        w, h = self.window_size
        cv2.imshow(self.windows[0], add_label(to_bgr(original), "Original"))
        cv2.imshow(self.windows[1], add_label(to_bgr(current), "Current"))
        cv2.imshow(self.windows[2], kernel_to_image(kernel, self.cell_size))
        cv2.imshow(
            self.windows[3],
            create_info_panel(w, h, (current.width, current.height), kernel.dimension, history),
        )

    def destroy(self):
        cv2.destroyAllWindows()
