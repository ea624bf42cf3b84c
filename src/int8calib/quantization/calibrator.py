"""INT8 entropy calibrator combining image staging and table caching."""

from __future__ import annotations

import enum
import logging
from typing import Optional, Sequence

import numpy as np
import torch

from ..config import CalibratorConfig
from ..data.decode import ImageDecoder, LetterboxDecoder
from ..data.manifest import CalibrationImageList, load_image_list
from ..utils import make_rng, select_device
from .cache import BytesLike, CalibrationCacheStore
from .staging import Batch, BatchResult, BatchStager, Exhausted

LOGGER = logging.getLogger(__name__)


class CalibratorState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    EXHAUSTED = "exhausted"
    CLOSED = "closed"


class Int8Calibrator:
    """
    Supply calibration batches and persist the resulting calibration table.

    Construction loads and shuffles the image list and allocates the device
    input buffer. ``get_batch`` is called repeatedly by the calibration engine
    until it reports exhaustion; ``read_cache``/``write_cache`` are independent
    of the batch state and stay usable after ``close``.
    """

    def __init__(
        self,
        config: CalibratorConfig,
        decoder: Optional[ImageDecoder] = None,
        rng: Optional[np.random.Generator] = None,
        device: Optional[torch.device] = None,
    ) -> None:
        self.config = config
        self.state = CalibratorState.UNINITIALIZED
        self.cache = CalibrationCacheStore(config.calibration_table, use_cache=config.use_cache)

        self.image_list: CalibrationImageList = load_image_list(
            config.calibration_set, image_root=config.image_root
        )
        self.image_list.shuffle(rng if rng is not None else make_rng(config.seed))

        self.stager = BatchStager(
            self.image_list,
            batch_size=config.batch_size,
            input_h=config.input_h,
            input_w=config.input_w,
            input_element_count=int(config.input_element_count),
            input_binding_name=config.input_binding_name,
            decoder=decoder or LetterboxDecoder(config.input_channels, config.pad_value),
            device=device if device is not None else select_device(config.device),
        )
        self.state = CalibratorState.READY
        LOGGER.info(
            "Calibrator ready: %d images, batch size %d, %d full batches available",
            len(self.image_list),
            config.batch_size,
            len(self.image_list) // config.batch_size,
        )

    @property
    def batch_size(self) -> int:
        return self.config.batch_size

    @property
    def cursor(self) -> int:
        return self.stager.cursor

    @property
    def input_binding_name(self) -> str:
        return self.config.input_binding_name

    def get_batch(self, binding_names: Sequence[str]) -> BatchResult:
        """Stage the next batch for ``binding_names`` or report exhaustion."""
        if self.state is CalibratorState.CLOSED:
            raise RuntimeError("Calibrator has been closed.")
        if self.state is CalibratorState.EXHAUSTED:
            return Exhausted.EXHAUSTED

        result = self.stager.get_batch(binding_names)
        if not isinstance(result, Batch):
            self.state = CalibratorState.EXHAUSTED
        return result

    def read_cache(self) -> Optional[bytes]:
        return self.cache.read_cache()

    def write_cache(self, data: BytesLike) -> None:
        self.cache.write_cache(data)

    def close(self) -> None:
        if self.state is CalibratorState.CLOSED:
            return
        self.stager.close()
        self.state = CalibratorState.CLOSED

    def __enter__(self) -> "Int8Calibrator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
