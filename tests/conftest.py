"""Shared fixtures for calibrator tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Sequence

import numpy as np
import pytest
import torch

from int8calib.config import CalibratorConfig

INPUT_H = 4
INPUT_W = 5
CHANNELS = 3
ELEMENTS = INPUT_H * INPUT_W * CHANNELS


class FakeDecoder:
    """Return a constant buffer per image and remember what was decoded."""

    def __init__(self, values: Dict[str, np.ndarray] | None = None) -> None:
        self.values = values or {}
        self.calls: List[str] = []

    def __call__(self, path: str, height: int, width: int) -> np.ndarray:
        self.calls.append(path)
        if path in self.values:
            return self.values[path]
        index = int(Path(path).stem.split("_")[-1])
        return np.full(height * width * CHANNELS, index / 100.0, dtype=np.float32)


@pytest.fixture
def write_manifest(tmp_path: Path) -> Callable[[Sequence[str]], Path]:
    def _write(lines: Sequence[str]) -> Path:
        manifest = tmp_path / "calibration_images.txt"
        manifest.write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")
        return manifest

    return _write


@pytest.fixture
def image_paths() -> Callable[[int], List[str]]:
    def _paths(count: int) -> List[str]:
        return [f"/data/calib/img_{i}.jpg" for i in range(count)]

    return _paths


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., CalibratorConfig]:
    def _make(manifest: Path, **overrides) -> CalibratorConfig:
        params = dict(
            batch_size=4,
            calibration_set=manifest,
            calibration_table=str(tmp_path / "calibration.table"),
            input_h=INPUT_H,
            input_w=INPUT_W,
            input_channels=CHANNELS,
            input_binding_name="data",
            device="cpu",
        )
        params.update(overrides)
        return CalibratorConfig(**params)

    return _make


@pytest.fixture
def fake_decoder() -> FakeDecoder:
    return FakeDecoder()


@pytest.fixture
def cpu() -> torch.device:
    return torch.device("cpu")
