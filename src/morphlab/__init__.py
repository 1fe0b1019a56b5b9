"""
Binary image morphology on RGBA8 rasters.
"""
from morphlab.errors import DecodeFailure, InvalidArgument, PreconditionViolation
from morphlab.kernel import KernelValue, StructuringElement
from morphlab.morphology import (
    OPERATIONS,
    apply_operation,
    closing,
    dilate,
    erode,
    hit_or_miss,
    opening,
    thickening,
    thinning,
)
from morphlab.pixel import BLACK, WHITE, Pixel
from morphlab.raster import Raster
from morphlab.threshold import binarize, luma

__version__ = "0.1.0"
