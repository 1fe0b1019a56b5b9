"""
Application state for an interactive morphology session.

The session owns the original (binarized) raster, the current raster and the
structuring element. The engine functions stay pure; the session is the only
place where "current" gets replaced.
"""
from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from morphlab.codec import decode_image, load_image
from morphlab.errors import InvalidArgument
from morphlab.kernel import KernelValue, StructuringElement
from morphlab.morphology import apply_operation
from morphlab.raster import Raster
from morphlab.threshold import DEFAULT_THRESHOLD, binarize


logger = logging.getLogger(__name__)


@dataclass
class SessionSnapshot:
    """Serializable record of a session: images, kernel and applied operations."""
    width: int
    height: int
    original: bytes
    current: bytes
    kernel_rows: List[str]
    threshold: float = DEFAULT_THRESHOLD
    history: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "original": base64.b64encode(self.original).decode("ascii"),
            "current": base64.b64encode(self.current).decode("ascii"),
            "kernel": list(self.kernel_rows),
            "threshold": self.threshold,
            "history": list(self.history),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SessionSnapshot:
        try:
            return cls(
                width=int(data["width"]),
                height=int(data["height"]),
                original=base64.b64decode(data["original"]),
                current=base64.b64decode(data["current"]),
                kernel_rows=list(data["kernel"]),
                threshold=data.get("threshold", DEFAULT_THRESHOLD),
                history=list(data.get("history", [])),
            )
        except KeyError as exc:
            raise InvalidArgument(f"Snapshot is missing field {exc}") from exc


class MorphologySession:
    """Original/current rasters plus the structuring element being edited."""

    def __init__(self, threshold: float = DEFAULT_THRESHOLD, workers: int = 1) -> None:
        if workers < 1:
            raise InvalidArgument(f"workers must be >= 1, got {workers}")
        self.threshold = threshold
        self.workers = workers
        self.kernel = StructuringElement()
        self.original: Optional[Raster] = None
        self.current: Optional[Raster] = None
        self.history: List[str] = []

    @property
    def is_loaded(self) -> bool:
        return self.current is not None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_raster(self, raster: Raster) -> Raster:
        """Binarize a decoded raster and make it both the original and the current image."""
        binary = binarize(raster, self.threshold)
        self.original = binary
        self.current = binary
        self.history = []
        logger.debug("loaded %dx%d raster", binary.width, binary.height)
        return binary

    def load_bytes(self, data: bytes) -> Raster:
        # decode before touching state so a DecodeFailure leaves the session as it was
        return self.load_raster(decode_image(data))

    def load_path(self, path: Union[str, Path]) -> Raster:
        return self.load_raster(load_image(path))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def apply(self, name: str) -> Raster:
        """Run a named operation on the current raster and make its result current."""
        if self.current is None:
            raise RuntimeError("No image loaded")
        result = apply_operation(name, self.current, self.kernel, self.workers)
        self.current = result
        self.history.append(name)
        logger.debug("applied %s (%d operations since load)", name, len(self.history))
        return result

    def dilate(self) -> Raster:
        return self.apply("dilate")

    def erode(self) -> Raster:
        return self.apply("erode")

    def open(self) -> Raster:
        return self.apply("open")

    def close(self) -> Raster:
        return self.apply("close")

    def hit_or_miss(self) -> Raster:
        return self.apply("hit_or_miss")

    def thinning(self) -> Raster:
        return self.apply("thinning")

    def thickening(self) -> Raster:
        return self.apply("thickening")

    def reset(self) -> Optional[Raster]:
        """Discard every applied operation."""
        self.current = self.original
        self.history = []
        return self.current

    # ------------------------------------------------------------------
    # Kernel editing
    # ------------------------------------------------------------------

    def resize_kernel(self, dimension: int) -> StructuringElement:
        self.kernel.resize(dimension)
        return self.kernel

    def toggle_cell(self, x: int, y: int) -> KernelValue:
        return self.kernel.toggle(x, y)

    def mark_dont_care(self, x: int, y: int) -> None:
        self.kernel.mark_dont_care(x, y)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> SessionSnapshot:
        if self.original is None or self.current is None:
            raise RuntimeError("No image loaded")
        return SessionSnapshot(
            width=self.current.width,
            height=self.current.height,
            original=self.original.to_bytes(),
            current=self.current.to_bytes(),
            kernel_rows=self.kernel.to_rows(),
            threshold=self.threshold,
            history=list(self.history),
        )

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot, workers: int = 1) -> MorphologySession:
        session = cls(threshold=snapshot.threshold, workers=workers)
        session.original = Raster.from_bytes(snapshot.original, snapshot.width, snapshot.height)
        session.current = Raster.from_bytes(snapshot.current, snapshot.width, snapshot.height)
        session.kernel = StructuringElement.from_rows(snapshot.kernel_rows)
        session.history = list(snapshot.history)
        return session
