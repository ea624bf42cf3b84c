"""Smoke tests for configuration loading and validation."""

from pathlib import Path

import pytest

from int8calib.config import CalibratorConfig, build_calibrator_config
from int8calib.errors import ConfigurationError
import torch

from int8calib.utils import load_config, select_device


def _section(**overrides):
    section = {
        "batch_size": 8,
        "calibration_set": "calib.txt",
        "calibration_table": "calib.table",
        "input_h": 416,
        "input_w": 416,
    }
    section.update(overrides)
    return section


def test_missing_yaml_dependency(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure helpful error when PyYAML is unavailable."""
    yaml_file = tmp_path / "config.yaml"
    yaml_file.write_text("key: value\n", encoding="utf-8")

    monkeypatch.setitem(load_config.__globals__, "yaml", None)

    with pytest.raises(ImportError):
        load_config(yaml_file)


def test_load_shipped_ptq_config() -> None:
    config_path = Path(__file__).resolve().parents[2] / "configs" / "quantization" / "ptq.yaml"
    cfg = build_calibrator_config(load_config(config_path))

    assert cfg.batch_size == 4
    assert cfg.input_binding_name == "data"
    assert cfg.use_cache is True
    assert cfg.input_element_count == 416 * 416 * 3


def test_defaults_and_derived_element_count() -> None:
    cfg = build_calibrator_config({"calibration": _section()})

    assert cfg.input_channels == 3
    assert cfg.input_element_count == 416 * 416 * 3
    assert cfg.batch_element_count == 8 * 416 * 416 * 3
    assert cfg.device == "auto"
    assert cfg.image_root is None
    assert cfg.calibration_set == Path("calib.txt")


def test_empty_table_path_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="calibration_table"):
        build_calibrator_config(_section(calibration_table=""))


@pytest.mark.parametrize("batch_size", [0, -2, "4", True])
def test_batch_size_must_be_positive_int(batch_size) -> None:
    with pytest.raises(ConfigurationError):
        build_calibrator_config(_section(batch_size=batch_size))


def test_missing_required_keys() -> None:
    section = _section()
    del section["input_w"]
    with pytest.raises(ConfigurationError, match="input_w"):
        build_calibrator_config(section)


def test_inconsistent_element_count() -> None:
    with pytest.raises(ConfigurationError, match="input_element_count"):
        CalibratorConfig(
            batch_size=1,
            calibration_set=Path("calib.txt"),
            calibration_table="calib.table",
            input_h=2,
            input_w=2,
            input_element_count=5,
        )


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(tmp_path / "nope.yaml")


def test_config_file_must_be_a_mapping(tmp_path: Path) -> None:
    yaml_file = tmp_path / "list.yaml"
    yaml_file.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="mapping"):
        load_config(yaml_file)


@pytest.mark.parametrize("device", ["gpu", "cuda:x", "CPU", "", 0])
def test_unknown_device_rejected_when_built(device) -> None:
    with pytest.raises(ConfigurationError, match="device"):
        build_calibrator_config(_section(device=device))


@pytest.mark.parametrize("device", ["auto", "cpu", "cuda", "cuda:1"])
def test_known_devices_accepted(device) -> None:
    assert build_calibrator_config(_section(device=device)).device == device


@pytest.mark.parametrize("use_cache", ["false", "true", "no", 0, 1, None])
def test_use_cache_must_be_boolean(use_cache) -> None:
    with pytest.raises(ConfigurationError, match="use_cache"):
        build_calibrator_config(_section(use_cache=use_cache))


def test_use_cache_false_is_kept() -> None:
    assert build_calibrator_config(_section(use_cache=False)).use_cache is False


@pytest.mark.parametrize("pad_value", [-1, 256, "128"])
def test_pad_value_range(pad_value) -> None:
    with pytest.raises(ConfigurationError, match="pad_value"):
        build_calibrator_config(_section(pad_value=pad_value))


def test_select_device_errors_are_configuration_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    assert select_device("cpu") == torch.device("cpu")
    with pytest.raises(ConfigurationError):
        select_device("gpu")

    monkeypatch.setattr(torch.cuda, "is_available", lambda: False)
    assert select_device("auto") == torch.device("cpu")
    with pytest.raises(ConfigurationError, match="CUDA"):
        select_device("cuda")
