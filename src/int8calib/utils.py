"""Utility helpers for configuration, logging, seeding, and device selection."""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import torch

from .errors import ConfigurationError

try:
    import yaml
except ImportError:  # pragma: no cover - dependency resolved later
    yaml = None


def load_config(path: Path) -> Dict[str, Any]:
    """Load a YAML configuration file into a dictionary."""
    if yaml is None:
        raise ImportError("PyYAML is required to load configuration files.")
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Configuration file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as handle:
            config = yaml.safe_load(handle) or {}
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Unable to read configuration file {path}: {exc}") from exc
    if not isinstance(config, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping.")
    return config


def ensure_dir(path: Path) -> Path:
    """Create a directory (including parents) if it does not exist."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def create_logger(name: str, log_file: Optional[Path] = None) -> logging.Logger:
    """Return a configured logger writing to stdout and optional file."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        ensure_dir(log_file.parent)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def set_seed(seed: int) -> None:
    """Seed Python, NumPy, and PyTorch for reproducibility."""
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)
    torch.cuda.manual_seed_all(seed)


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """
    Build the random source used to shuffle calibration images.

    Without a seed every run draws a different sample order, which keeps the
    calibration from following the dataset's file order.
    """
    return np.random.default_rng(seed)


def select_device(requested: str) -> torch.device:
    """Resolve ``auto``/``cpu``/``cuda``/``cuda:N`` into a torch device."""
    if requested == "cpu":
        return torch.device("cpu")
    if requested.startswith("cuda") and not torch.cuda.is_available():
        raise ConfigurationError("CUDA requested but not available.")
    if requested.startswith("cuda"):
        try:
            device = torch.device(requested)
        except RuntimeError as exc:
            raise ConfigurationError(f"Unknown device '{requested}'.") from exc
        if device.index is not None and device.index >= torch.cuda.device_count():
            raise ConfigurationError(
                f"CUDA device {device.index} requested but only {torch.cuda.device_count()} available."
            )
        return device
    if requested == "auto" and torch.cuda.is_available():
        return torch.device("cuda")
    if requested != "auto":
        raise ConfigurationError(f"Unknown device '{requested}'.")
    return torch.device("cpu")
