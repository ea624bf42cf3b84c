"""Calibrate an INT8 TensorRT engine using PTQ."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from tqdm import tqdm

from int8calib.config import build_calibrator_config
from int8calib.errors import CalibrationError, ConfigurationError
from int8calib.quantization import Batch, Int8Calibrator
from int8calib.utils import create_logger, load_config, set_seed


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run INT8 post-training calibration.")
    parser.add_argument(
        "--config", type=Path, default=Path("configs/quantization/ptq.yaml"), help="Path to ptq.yaml."
    )
    parser.add_argument("--onnx", type=Path, default=None, help="ONNX model to calibrate.")
    parser.add_argument("--engine", type=Path, default=None, help="Output path for the INT8 engine.")
    parser.add_argument("--device", type=str, default=None, help="Override device (auto|cpu|cuda).")
    parser.add_argument("--log-file", type=Path, default=None, help="Optional log file.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Stage every calibration batch without building an engine.",
    )
    return parser.parse_args(argv)


def dry_run(calibrator: Int8Calibrator) -> int:
    """Drive the calibrator to exhaustion and return the number of batches staged."""
    total = len(calibrator.image_list) // calibrator.batch_size
    names = [calibrator.input_binding_name]
    batches = 0
    with tqdm(total=total, desc="calibration batches", unit="batch") as progress:
        while isinstance(calibrator.get_batch(names), Batch):
            batches += 1
            progress.update(1)
    return batches


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    logger = create_logger("calibrate_int8", args.log_file)

    try:
        config: Dict[str, Any] = load_config(args.config)
        calib_section = dict(config.get("calibration", {}))
        if args.device:
            calib_section["device"] = args.device
        calib_cfg = build_calibrator_config(calib_section)
        if calib_cfg.seed is not None:
            set_seed(int(calib_cfg.seed))

        export_cfg = config.get("export", {})
        with Int8Calibrator(calib_cfg) as calibrator:
            if args.dry_run:
                batches = dry_run(calibrator)
                logger.info(
                    "Dry run staged %d batches (%d of %d images)",
                    batches,
                    calibrator.cursor,
                    len(calibrator.image_list),
                )
                return 0

            from int8calib.quantization.tensorrt_bridge import build_int8_engine

            onnx_path = args.onnx or export_cfg.get("onnx")
            engine_path = args.engine or export_cfg.get("engine")
            if not onnx_path or not engine_path:
                raise ConfigurationError("Both an ONNX model and an engine output path are required.")
            build_int8_engine(
                Path(onnx_path),
                calibrator,
                Path(engine_path),
                workspace_gb=float(export_cfg.get("workspace_gb", 4.0)),
                fp16=bool(export_cfg.get("fp16", False)),
            )
    except CalibrationError as exc:
        logger.error("Calibration failed: %s", exc)
        return 1

    logger.info("Calibration finished")
    return 0


if __name__ == "__main__":
    sys.exit(main())
