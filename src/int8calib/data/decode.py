"""Image decoding into the flat CHW float layout the network input expects."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, Tuple, Union

import albumentations as A
import cv2
import numpy as np

from ..errors import DecodeError


class ImageDecoder(Protocol):
    """Decode ``path`` into ``height * width * channels`` float32 values."""

    def __call__(self, path: str, height: int, width: int) -> np.ndarray:
        ...


class LetterboxDecoder:
    """
    Read an image with OpenCV and letterbox it into the network input.

    The image is resized keeping its aspect ratio, centred on a canvas filled
    with ``pad_value`` and scaled to ``[0, 1]``. Output is RGB (or grayscale),
    CHW ordered and flattened.
    """

    def __init__(self, channels: int = 3, pad_value: int = 128) -> None:
        if channels not in (1, 3):
            raise ValueError(f"Unsupported channel count: {channels}")
        self.channels = channels
        self.pad_value = pad_value

    def __call__(self, path: Union[str, Path], height: int, width: int) -> np.ndarray:
        image = self._read_image(str(path))
        canvas = self._letterbox(image, height, width)
        if canvas.ndim == 2:
            canvas = canvas[:, :, None]
        chw = np.transpose(canvas.astype(np.float32) / 255.0, (2, 0, 1))
        return np.ascontiguousarray(chw).reshape(-1)

    def _read_image(self, path: str) -> np.ndarray:
        flag = cv2.IMREAD_GRAYSCALE if self.channels == 1 else cv2.IMREAD_COLOR
        image = cv2.imread(path, flag)
        if image is None:
            raise DecodeError(f"Unable to read image: {path}")
        if self.channels == 3:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        return image

    def _letterbox(self, image: np.ndarray, height: int, width: int) -> np.ndarray:
        return self.build_transforms(image.shape[:2], height, width)(image=image)["image"]

    def build_transforms(self, source_hw: Tuple[int, int], height: int, width: int) -> A.Compose:
        """Letterbox transforms fitting a ``source_hw`` image into ``height x width``."""
        src_h, src_w = source_hw
        scale = min(height / src_h, width / src_w)
        longest = max(1, int(round(max(src_h, src_w) * scale)))
        return A.Compose(
            [
                A.LongestMaxSize(max_size=longest, interpolation=cv2.INTER_LINEAR),
                A.PadIfNeeded(
                    min_height=height,
                    min_width=width,
                    border_mode=cv2.BORDER_CONSTANT,
                    value=self.pad_value,
                ),
                # Rounding in the resize can overshoot the target by a pixel.
                A.CenterCrop(height=height, width=width),
            ]
        )
