"""
Exception types raised by the morphology engine and its collaborators.
"""
from __future__ import annotations


class InvalidArgument(ValueError):
    """A caller supplied a value outside the accepted domain (e.g. an even kernel size)."""


class PreconditionViolation(IndexError):
    """Coordinate access outside a raster or structuring element."""


class DecodeFailure(RuntimeError):
    """Encoded image bytes could not be turned into a raster."""
