"""Batch staging: decode calibration images and upload them to the device."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple, Union

import numpy as np
import torch

from ..data.decode import ImageDecoder
from ..errors import (
    BindingContractViolation,
    CalibrationFatalError,
    DecodeError,
    DeviceTransferError,
)

LOGGER = logging.getLogger(__name__)

CLAMP_MIN = 0.0
CLAMP_MAX = 1.0


class DeviceInputBuffer:
    """Fixed-size float32 device allocation holding one calibration batch."""

    def __init__(self, element_count: int, device: torch.device) -> None:
        self.element_count = element_count
        self.device = device
        self._tensor: Optional[torch.Tensor] = torch.empty(
            element_count, dtype=torch.float32, device=device
        )
        LOGGER.info(
            "Allocated %.1f KiB calibration input buffer on %s",
            self.nbytes / 1024,
            device,
        )

    @property
    def tensor(self) -> torch.Tensor:
        if self._tensor is None:
            raise RuntimeError("Device input buffer has been released.")
        return self._tensor

    @property
    def ptr(self) -> int:
        """Device address handed to the calibration engine."""
        return int(self.tensor.data_ptr())

    @property
    def nbytes(self) -> int:
        return self.element_count * torch.finfo(torch.float32).bits // 8

    @property
    def released(self) -> bool:
        return self._tensor is None

    def upload(self, host: np.ndarray) -> None:
        """Blocking host-to-device copy of a full batch."""
        if host.size != self.element_count:
            raise DeviceTransferError(
                f"Host batch has {host.size} elements, device buffer holds {self.element_count}."
            )
        try:
            self.tensor.copy_(torch.from_numpy(host))
            if self.device.type == "cuda":
                torch.cuda.synchronize(self.device)
        except RuntimeError as exc:
            raise DeviceTransferError(f"Host-to-device copy failed: {exc}") from exc

    def to_host(self) -> np.ndarray:
        """Copy the current buffer contents back to a new host array."""
        return self.tensor.detach().cpu().numpy().copy()

    def release(self) -> None:
        if self._tensor is None:
            return
        self._tensor = None
        if self.device.type == "cuda":
            torch.cuda.empty_cache()
        LOGGER.info("Released calibration input buffer on %s", self.device)


@dataclass(frozen=True)
class DeviceBufferHandle:
    """
    Address of the device buffer after a batch has been staged into it.

    The buffer is reused by the next batch, so ``to_host`` only reflects this
    batch until ``get_batch`` is called again. The handle does not keep the
    device memory alive after the stager is closed.
    """

    ptr: int
    batch_index: int
    paths: Tuple[str, ...]
    _buffer: DeviceInputBuffer = field(repr=False, compare=False)

    def to_host(self) -> np.ndarray:
        return self._buffer.to_host()


@dataclass(frozen=True)
class Batch:
    handle: DeviceBufferHandle


class Exhausted(enum.Enum):
    """Not enough images remain for a full batch."""

    EXHAUSTED = "exhausted"

    def __bool__(self) -> bool:
        return False


EXHAUSTED = Exhausted.EXHAUSTED

BatchResult = Union[Batch, Exhausted]


class BatchStager:
    """
    Walk the shuffled image list and stage one batch per request.

    The cursor only moves forward, by exactly ``batch_size`` per produced batch.
    A request that cannot be filled completely reports ``EXHAUSTED``; partial
    batches are never staged.
    """

    def __init__(
        self,
        image_list: Sequence[str],
        *,
        batch_size: int,
        input_h: int,
        input_w: int,
        input_element_count: int,
        input_binding_name: str,
        decoder: ImageDecoder,
        device: torch.device,
    ) -> None:
        self.image_list = image_list
        self.batch_size = batch_size
        self.input_h = input_h
        self.input_w = input_w
        self.input_element_count = input_element_count
        self.input_binding_name = input_binding_name
        self.decoder = decoder
        self.buffer = DeviceInputBuffer(batch_size * input_element_count, device)
        self._cursor = 0
        self._batches = 0

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def batches_produced(self) -> int:
        return self._batches

    @property
    def remaining(self) -> int:
        return len(self.image_list) - self._cursor

    def get_batch(self, binding_names: Sequence[str]) -> BatchResult:
        self._check_binding(binding_names)

        if self._cursor + self.batch_size > len(self.image_list):
            LOGGER.info(
                "Calibration data exhausted after %d batches (%d images left over)",
                self._batches,
                self.remaining,
            )
            return EXHAUSTED

        paths = tuple(self.image_list[self._cursor : self._cursor + self.batch_size])
        host = np.empty((self.batch_size, self.input_element_count), dtype=np.float32)
        for row, path in enumerate(paths):
            self._stage_image(path, host[row])

        self.buffer.upload(host.reshape(-1))
        self._cursor += self.batch_size
        self._batches += 1
        LOGGER.debug("Staged calibration batch %d (cursor=%d)", self._batches, self._cursor)

        handle = DeviceBufferHandle(
            ptr=self.buffer.ptr,
            batch_index=self._batches - 1,
            paths=paths,
            _buffer=self.buffer,
        )
        return Batch(handle)

    def close(self) -> None:
        self.buffer.release()

    def _check_binding(self, binding_names: Sequence[str]) -> None:
        received = binding_names[0] if len(binding_names) else None
        if received != self.input_binding_name:
            raise BindingContractViolation(self.input_binding_name, received)

    def _stage_image(self, path: str, out: np.ndarray) -> None:
        try:
            data = self.decoder(path, self.input_h, self.input_w)
        except CalibrationFatalError:
            raise
        except Exception as exc:
            raise DecodeError(f"Failed to decode calibration image {path}: {exc}") from exc

        values = np.asarray(data, dtype=np.float32).reshape(-1)
        if values.size != self.input_element_count:
            raise DecodeError(
                f"Decoded {path} into {values.size} elements, expected {self.input_element_count}."
            )
        np.clip(values, CLAMP_MIN, CLAMP_MAX, out=out)
