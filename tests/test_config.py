"""
Tests for the configuration module.
"""

import pytest

from facedetect.config import (
    AppConfig,
    DetectionConfig,
    OutputConfig,
    VisualizationConfig,
    _validate,
    load_config,
)
from facedetect.errors import ConfigError


def test_load_defaults():
    """Test loading configuration without any file."""
    config = load_config(None)
    assert isinstance(config, AppConfig)
    assert config.detection.iou_threshold == 0.15
    assert config.detection.quality_threshold == 1.0
    assert config.detection.size_threshold == 40.0
    assert config.detection.perturbs == 63
    assert config.input.bbox == "0,0,1,1"
    assert config.output.pretty is False
    assert config.output.debug_path == "debug.jpg"


def test_validation_failure():
    """Test fail-fast validation."""
    bad_config = AppConfig(detection=DetectionConfig(iou_threshold=1.5))
    with pytest.raises(ConfigError, match="iou_threshold"):
        _validate(bad_config)

    bad_config = AppConfig(detection=DetectionConfig(perturbs=64))
    with pytest.raises(ValueError, match="perturbs"):
        _validate(bad_config)

    bad_config = AppConfig(detection=DetectionConfig(scale_factor=1.0))
    with pytest.raises(ConfigError, match="scale_factor"):
        _validate(bad_config)

    bad_config = AppConfig(output=OutputConfig(jpeg_quality=101))
    with pytest.raises(ConfigError, match="jpeg_quality"):
        _validate(bad_config)

    bad_config = AppConfig(visualization=VisualizationConfig(eye_alpha=2.0))
    with pytest.raises(ConfigError, match="eye_alpha"):
        _validate(bad_config)


def test_env_override(monkeypatch):
    """Test environment variable overrides."""
    monkeypatch.setenv("FACE_DETECT_DETECTION_IOU_THRESHOLD", "0.3")
    monkeypatch.setenv("FACE_DETECT_OUTPUT_PRETTY", "true")
    monkeypatch.setenv("FACE_DETECT_OUTPUT_DEBUG", "false")

    config = load_config(None)

    assert config.detection.iou_threshold == 0.3
    assert config.output.pretty is True
    assert config.output.debug is False


def test_bad_env_value(monkeypatch):
    monkeypatch.setenv("FACE_DETECT_DETECTION_MIN_SIZE", "twenty")
    with pytest.raises(ConfigError, match="min_size"):
        load_config(None)


def test_overrides_beat_env(monkeypatch):
    monkeypatch.setenv("FACE_DETECT_DETECTION_QUALITY_THRESHOLD", "4.0")

    config = load_config(None, overrides={"detection": {"quality_threshold": 2.5}})

    assert config.detection.quality_threshold == 2.5


def test_none_overrides_leave_lower_layers(monkeypatch):
    monkeypatch.setenv("FACE_DETECT_INPUT_BBOX", "0.1,0.1,0.5,0.5")

    config = load_config(None, overrides={"input": {"bbox": None, "source": "a.jpg"}})

    assert config.input.bbox == "0.1,0.1,0.5,0.5"
    assert config.input.source == "a.jpg"


def test_yaml_file(tmp_path, monkeypatch):
    """Test YAML values sit between env vars and defaults."""
    path = tmp_path / "config.yaml"
    path.write_text(
        "detection:\n"
        "  min_size: 32\n"
        "  size_threshold: 60\n"
        "visualization:\n"
        "  face_color: [255, 0, 0]\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("FACE_DETECT_DETECTION_SIZE_THRESHOLD", "80")

    config = load_config(str(path))

    assert config.detection.min_size == 32
    assert config.detection.size_threshold == 80.0
    assert config.detection.iou_threshold == 0.15
    assert config.visualization.face_color == (255, 0, 0)


def test_yaml_must_be_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(str(path))


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "absent.yaml"))
