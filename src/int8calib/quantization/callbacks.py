"""Engine-facing calibrator callbacks that never raise into the engine."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..errors import CalibrationError
from .calibrator import Int8Calibrator
from .staging import Batch

LOGGER = logging.getLogger(__name__)


class CalibratorCallbacks:
    """
    Translate :class:`Int8Calibrator` into the binding-pointer callback shape.

    TensorRT catches exceptions raised inside these callbacks and treats a
    failed ``get_batch`` as the end of the data, so errors are recorded on
    ``self.error`` instead. Once an error is recorded no further batches are
    staged and no calibration table is written; the engine builder re-raises
    it through :meth:`raise_if_failed`.
    """

    def __init__(self, calibrator: Int8Calibrator) -> None:
        self.calibrator = calibrator
        self.error: Optional[CalibrationError] = None

    def get_batch_size(self) -> int:  # noqa: D401 - interface defined by TensorRT
        return self.calibrator.batch_size

    def get_batch(self, names: Sequence[str], *args, **kwargs) -> Optional[List[int]]:  # noqa: D401
        if self.error is not None:
            return None
        try:
            result = self.calibrator.get_batch(list(names))
        except CalibrationError as exc:
            self._record(exc, "get_batch")
            return None
        if isinstance(result, Batch):
            return [result.handle.ptr]
        return None

    def read_calibration_cache(self, *args, **kwargs) -> Optional[bytes]:  # noqa: D401
        try:
            return self.calibrator.read_cache()
        except CalibrationError as exc:
            self._record(exc, "read_calibration_cache")
            return None

    def write_calibration_cache(self, cache, *args, **kwargs) -> None:  # noqa: D401
        if self.error is not None:
            LOGGER.error("Not writing calibration table after failure: %s", self.error)
            return
        try:
            self.calibrator.write_cache(memoryview(cache))
        except CalibrationError as exc:
            self._record(exc, "write_calibration_cache")

    def raise_if_failed(self) -> None:
        if self.error is not None:
            raise self.error

    def _record(self, exc: CalibrationError, callback: str) -> None:
        LOGGER.critical("Calibration aborted in %s: %s", callback, exc)
        if self.error is None:
            self.error = exc
