"""Calibration image list loading and decoding."""

from .decode import ImageDecoder, LetterboxDecoder
from .manifest import CalibrationImageList, load_image_list

__all__ = [
    "CalibrationImageList",
    "load_image_list",
    "ImageDecoder",
    "LetterboxDecoder",
]
