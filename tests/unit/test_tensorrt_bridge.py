"""Tests for the TensorRT calibrator adapter."""

import numpy as np
import pytest

trt = pytest.importorskip("tensorrt")

from int8calib.errors import BindingContractViolation  # noqa: E402
from int8calib.quantization import Int8Calibrator  # noqa: E402
from int8calib.quantization.callbacks import CalibratorCallbacks  # noqa: E402
from int8calib.quantization.tensorrt_bridge import TensorRTEntropyCalibrator  # noqa: E402


@pytest.fixture
def bridge(write_manifest, image_paths, make_config, fake_decoder):
    config = make_config(write_manifest(image_paths(6)))
    calibrator = Int8Calibrator(config, decoder=fake_decoder, rng=np.random.default_rng(0))
    yield TensorRTEntropyCalibrator(calibrator)
    calibrator.close()


def test_is_entropy_calibrator(bridge) -> None:
    assert isinstance(bridge, trt.IInt8EntropyCalibrator2)
    assert isinstance(bridge, CalibratorCallbacks)
    assert bridge.get_batch_size() == 4


def test_batches_then_none(bridge) -> None:
    pointers = bridge.get_batch(["data"])

    assert pointers == [bridge.calibrator.stager.buffer.ptr]
    assert bridge.get_batch(["data"]) is None
    bridge.raise_if_failed()


def test_binding_violation_is_held_for_the_builder(bridge) -> None:
    assert bridge.get_batch(["images"]) is None
    with pytest.raises(BindingContractViolation):
        bridge.raise_if_failed()


def test_cache_callbacks(bridge) -> None:
    assert bridge.read_calibration_cache() is None
    bridge.write_calibration_cache(b"table")
    assert bridge.read_calibration_cache() == b"table"
