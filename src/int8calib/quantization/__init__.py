"""INT8 calibration: batch staging, calibration table caching and the calibrator."""

from .cache import CalibrationCacheStore
from .callbacks import CalibratorCallbacks
from .calibrator import CalibratorState, Int8Calibrator
from .staging import (
    EXHAUSTED,
    Batch,
    BatchResult,
    BatchStager,
    DeviceBufferHandle,
    DeviceInputBuffer,
    Exhausted,
)

__all__ = [
    "Int8Calibrator",
    "CalibratorState",
    "CalibrationCacheStore",
    "CalibratorCallbacks",
    "BatchStager",
    "DeviceInputBuffer",
    "DeviceBufferHandle",
    "Batch",
    "BatchResult",
    "Exhausted",
    "EXHAUSTED",
]
