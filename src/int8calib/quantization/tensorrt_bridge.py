"""TensorRT adapter for :class:`Int8Calibrator` and INT8 engine building."""

from __future__ import annotations

import logging
from pathlib import Path

import tensorrt as trt

from ..utils import ensure_dir
from .callbacks import CalibratorCallbacks
from .calibrator import Int8Calibrator

LOGGER = logging.getLogger(__name__)


class TensorRTEntropyCalibrator(CalibratorCallbacks, trt.IInt8EntropyCalibrator2):
    """Expose the calibrator through TensorRT's binding-pointer callbacks."""

    def __init__(self, calibrator: Int8Calibrator) -> None:
        trt.IInt8EntropyCalibrator2.__init__(self)
        CalibratorCallbacks.__init__(self, calibrator)


def build_int8_engine(
    onnx_path: Path,
    calibrator: Int8Calibrator,
    engine_path: Path,
    *,
    workspace_gb: float = 4.0,
    fp16: bool = False,
) -> Path:
    """
    Parse an ONNX model, calibrate it to INT8 and write the serialized engine.

    Any calibration error recorded during the build is raised here, before an
    engine is written.
    """

    trt_logger = trt.Logger(trt.Logger.WARNING)
    builder = trt.Builder(trt_logger)
    network = builder.create_network(1 << int(trt.NetworkDefinitionCreationFlag.EXPLICIT_BATCH))
    parser = trt.OnnxParser(network, trt_logger)

    LOGGER.info("Parsing ONNX model %s", onnx_path)
    if not parser.parse(Path(onnx_path).read_bytes()):
        errors = [str(parser.get_error(i)) for i in range(parser.num_errors)]
        raise RuntimeError(f"Failed to parse {onnx_path}: {'; '.join(errors)}")

    config = builder.create_builder_config()
    config.set_memory_pool_limit(trt.MemoryPoolType.WORKSPACE, int(workspace_gb * (1 << 30)))
    config.set_flag(trt.BuilderFlag.INT8)
    if fp16:
        config.set_flag(trt.BuilderFlag.FP16)
    trt_calibrator = TensorRTEntropyCalibrator(calibrator)
    config.int8_calibrator = trt_calibrator

    LOGGER.info("Building INT8 engine (batch size %d)", calibrator.batch_size)
    serialized = builder.build_serialized_network(network, config)
    trt_calibrator.raise_if_failed()
    if serialized is None:
        raise RuntimeError("TensorRT failed to build the INT8 engine.")

    engine_path = Path(engine_path)
    ensure_dir(engine_path.parent)
    engine_path.write_bytes(bytes(serialized))
    LOGGER.info("Saved INT8 engine to %s", engine_path)
    return engine_path
