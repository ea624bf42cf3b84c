"""Calibration table persistence."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from ..errors import CacheWriteError, ConfigurationError

LOGGER = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]


class CalibrationCacheStore:
    """
    Read and write the calibration table file verbatim.

    A missing, empty or unreadable file is reported as ``None`` so the caller
    falls back to live calibration. Write failures are raised since they decide
    whether the next run can skip calibration.
    """

    def __init__(self, path: Union[str, Path], use_cache: bool = True) -> None:
        if not str(path).strip():
            raise ConfigurationError("Calibration table path must not be empty.")
        self.path = Path(path)
        self.use_cache = use_cache
        self._table: Optional[bytes] = None

    def read_cache(self) -> Optional[bytes]:
        if not self.use_cache:
            return None
        if self._table is not None:
            return self._table
        if not self.path.is_file():
            LOGGER.info("No calibration table at %s; running live calibration", self.path)
            return None
        try:
            data = self.path.read_bytes()
        except OSError as exc:
            LOGGER.warning("Unable to read calibration table %s: %s", self.path, exc)
            return None
        if not data:
            LOGGER.warning("Calibration table %s is empty; ignoring it", self.path)
            return None

        self._table = data
        LOGGER.info("Loaded calibration table from %s (%d bytes)", self.path, len(data))
        return self._table

    def write_cache(self, data: BytesLike) -> None:
        payload = bytes(data)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("wb") as handle:
                handle.write(payload)
        except OSError as exc:
            raise CacheWriteError(f"Unable to write calibration table {self.path}: {exc}") from exc
        LOGGER.info("Wrote calibration table to %s (%d bytes)", self.path, len(payload))
