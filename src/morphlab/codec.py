"""
Conversion between encoded image files and RGBA8 rasters (OpenCV backed).
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import cv2
import numpy as np

from morphlab.errors import DecodeFailure
from morphlab.raster import Raster


logger = logging.getLogger(__name__)

_ALPHA_FORMATS = {".png", ".tif", ".tiff", ".webp"}


def _to_rgba8(decoded: np.ndarray) -> np.ndarray:
    """Normalise whatever ``cv2.imdecode`` produced to (H, W, 4) uint8 RGBA."""
    if decoded.dtype == np.uint16:
        decoded = (decoded >> 8).astype(np.uint8)
    elif decoded.dtype != np.uint8:
        decoded = np.clip(decoded, 0, 255).astype(np.uint8)

    if decoded.ndim == 2:
        return cv2.cvtColor(decoded, cv2.COLOR_GRAY2RGBA)

    channels = decoded.shape[2]
    if channels == 1:
        return cv2.cvtColor(decoded[..., 0], cv2.COLOR_GRAY2RGBA)
    if channels == 3:
        return cv2.cvtColor(decoded, cv2.COLOR_BGR2RGBA)
    if channels == 4:
        return cv2.cvtColor(decoded, cv2.COLOR_BGRA2RGBA)

    raise DecodeFailure(f"Unsupported channel count: {channels}")


def decode_image(data: bytes) -> Raster:
    """
    Decode PNG/JPEG/BMP/... bytes into an RGBA8 raster.

    Raises:
        DecodeFailure: If the bytes are empty or not a supported image
    """
    if not data:
        raise DecodeFailure("No image data to decode")

    buffer = np.frombuffer(bytes(data), dtype=np.uint8)
    decoded = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
    if decoded is None:
        raise DecodeFailure("Unable to decode image")

    rgba = _to_rgba8(decoded)
    logger.debug("decoded %dx%d image (%d bytes)", rgba.shape[1], rgba.shape[0], len(data))
    return Raster(np.ascontiguousarray(rgba))


def encode_image(raster: Raster, ext: str = ".png") -> bytes:
    """Encode a raster into the file format named by ``ext``."""
    if not ext.startswith("."):
        ext = "." + ext
    if ext.lower() in _ALPHA_FORMATS:
        pixels = cv2.cvtColor(raster.array, cv2.COLOR_RGBA2BGRA)
    else:
        pixels = cv2.cvtColor(raster.array, cv2.COLOR_RGBA2BGR)
    ok, encoded = cv2.imencode(ext, pixels)
    if not ok:
        raise RuntimeError(f"Unable to encode image as {ext}")
    return encoded.tobytes()


def load_image(path: Union[str, Path]) -> Raster:
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Image not found: {path}")
    return decode_image(path.read_bytes())


def save_image(raster: Raster, path: Union[str, Path]) -> Path:
    """Encode by the path suffix (PNG when there is none) and write to disk."""
    path = Path(path)
    ext = path.suffix or ".png"
    path.write_bytes(encode_image(raster, ext))
    return path
