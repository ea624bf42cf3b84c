"""Calibrator configuration and its construction from YAML dictionaries."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import ConfigurationError

REQUIRED_KEYS = ("batch_size", "calibration_set", "calibration_table", "input_h", "input_w")
DEVICE_PATTERN = re.compile(r"^(auto|cpu|cuda(:\d+)?)$")


@dataclass(frozen=True)
class CalibratorConfig:
    """Everything the calibrator needs to stage batches and cache the table."""

    batch_size: int
    calibration_set: Path
    calibration_table: str
    input_h: int
    input_w: int
    input_channels: int = 3
    input_binding_name: str = "data"
    use_cache: bool = True
    image_root: Optional[Path] = None
    device: str = "auto"
    seed: Optional[int] = None
    pad_value: int = 128
    input_element_count: Optional[int] = None

    def __post_init__(self) -> None:
        for name in ("batch_size", "input_h", "input_w", "input_channels"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"'{name}' must be a positive integer, got {value!r}.")
        if not str(self.calibration_table).strip():
            raise ConfigurationError("'calibration_table' must be a non-empty path.")
        if not self.input_binding_name:
            raise ConfigurationError("'input_binding_name' must be a non-empty string.")
        if not isinstance(self.use_cache, bool):
            raise ConfigurationError(f"'use_cache' must be true or false, got {self.use_cache!r}.")
        if not isinstance(self.device, str) or not DEVICE_PATTERN.match(self.device):
            raise ConfigurationError(
                f"'device' must be one of auto, cpu, cuda or cuda:N, got {self.device!r}."
            )
        if self.seed is not None and (isinstance(self.seed, bool) or not isinstance(self.seed, int)):
            raise ConfigurationError(f"'seed' must be an integer, got {self.seed!r}.")
        pad = self.pad_value
        if isinstance(pad, bool) or not isinstance(pad, int) or not 0 <= pad <= 255:
            raise ConfigurationError(f"'pad_value' must be an integer in [0, 255], got {pad!r}.")

        expected = self.input_h * self.input_w * self.input_channels
        if self.input_element_count is None:
            object.__setattr__(self, "input_element_count", expected)
        elif self.input_element_count != expected:
            raise ConfigurationError(
                f"'input_element_count' ({self.input_element_count}) does not match "
                f"input_h * input_w * input_channels ({expected})."
            )

    @property
    def batch_element_count(self) -> int:
        """Number of float elements in one staged batch."""
        return self.batch_size * int(self.input_element_count)


def build_calibrator_config(cfg: Dict[str, Any]) -> CalibratorConfig:
    """
    Construct the calibrator configuration from a configuration dictionary.

    Accepts either the ``calibration`` mapping itself or a full config file
    containing a ``calibration`` section.
    """

    section = cfg.get("calibration", cfg)
    missing = [key for key in REQUIRED_KEYS if section.get(key) in (None, "")]
    # An empty table path is reported by CalibratorConfig with a clearer message.
    missing = [key for key in missing if key != "calibration_table"]
    if missing:
        raise ConfigurationError(f"Missing calibration config keys: {', '.join(missing)}.")

    return CalibratorConfig(
        batch_size=section["batch_size"],
        calibration_set=Path(section["calibration_set"]),
        calibration_table=str(section.get("calibration_table") or ""),
        input_h=section["input_h"],
        input_w=section["input_w"],
        input_channels=section.get("input_channels", 3),
        input_binding_name=section.get("input_binding_name", "data"),
        use_cache=section.get("use_cache", True),
        image_root=Path(section["image_root"]) if section.get("image_root") else None,
        device=section.get("device", "auto"),
        seed=section.get("seed"),
        pad_value=section.get("pad_value", 128),
        input_element_count=section.get("input_element_count"),
    )
