"""Exception hierarchy shared by the calibration components."""

from __future__ import annotations


class CalibrationError(Exception):
    """Base class for every error raised by the calibrator."""


class ConfigurationError(CalibrationError, ValueError):
    """Invalid or missing configuration detected before calibration starts."""


class ManifestNotFound(ConfigurationError):
    """The calibration image manifest does not exist."""


class ManifestUnreadable(ConfigurationError):
    """The calibration image manifest exists but cannot be read."""


class CalibrationFatalError(CalibrationError):
    """Unrecoverable failure while producing calibration batches."""


class BindingContractViolation(CalibrationFatalError):
    """The engine asked for an input binding the calibrator was not built for."""

    def __init__(self, expected: str, received: str | None) -> None:
        super().__init__(
            f"Input binding mismatch: expected '{expected}', engine requested '{received}'."
        )
        self.expected = expected
        self.received = received


class DecodeError(CalibrationFatalError):
    """A calibration image could not be decoded into the expected input layout."""


class DeviceTransferError(CalibrationFatalError):
    """Copying a staged batch to device memory failed."""


class CacheWriteError(CalibrationError, OSError):
    """The calibration table could not be persisted."""
