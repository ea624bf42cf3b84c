"""
INT8 post-training calibration package.

Provides the calibration image list, batch staging onto the inference device,
calibration table caching, and the TensorRT calibrator adapter.
"""

__all__ = ["config", "data", "errors", "quantization", "utils"]
