"""
Configuration management for the face detection system.

Provides a layered configuration system with the following precedence
(highest to lowest):

    CLI arguments > Environment variables > YAML config file > Defaults

Design constraints:
    - The system MUST run with zero configuration (safe defaults only).
    - Missing or invalid values fail early and loudly (ConfigError).
    - No detection logic, I/O, or model loading belongs here.

Non-goals:
    - No dynamic reloading.
    - No database-backed or remote configuration.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import yaml

from facedetect.errors import ConfigError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Project root resolution
# ---------------------------------------------------------------------------
# Resolved relative to this file's location: facedetect/config.py → repo root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def get_project_root() -> Path:
    """Return the resolved project root directory."""
    return _PROJECT_ROOT


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CascadeConfig:
    """Classifier blob locations.

    Attributes:
        face_path: pico facefinder cascade (relative to project root).
        pupil_path: pico puploc cascade (relative to project root).
        pupil_seed: Seed for the pupil locator's perturbations; a fixed
                    seed makes every run reproducible.
    """

    face_path: str = "models/facefinder"
    pupil_path: str = "models/puploc"
    pupil_seed: int = 0


@dataclass(frozen=True)
class DetectionConfig:
    """Scan, clustering and acceptance parameters.

    Attributes:
        min_size: Smallest scanned window side in pixels.
        shift_factor: Window step as a fraction of window size.
        scale_factor: Geometric window growth between scales.
        angle: Cascade rotation as a fraction of 2*pi (0 = upright only).
        iou_threshold: Overlap ratio at which windows merge into one face.
        quality_threshold: Minimum clustered score to accept a face.
        size_threshold: Minimum face size in pixels.
        perturbs: Random starts per pupil search (max 63).
    """

    min_size: int = 20
    shift_factor: float = 0.1
    scale_factor: float = 1.1
    angle: float = 0.0
    iou_threshold: float = 0.15
    quality_threshold: float = 1.0
    size_threshold: float = 40.0
    perturbs: int = 63


@dataclass(frozen=True)
class InputConfig:
    """Input configuration.

    Attributes:
        source: Path to the image file. Required at run time.
        bbox: Normalized search box "x,y,w,h".
    """

    source: Optional[str] = None
    bbox: str = "0,0,1,1"


@dataclass(frozen=True)
class OutputConfig:
    """Output behavior configuration.

    Attributes:
        pretty: Indent the JSON document.
        debug: Write a debug image with face/eye overlays.
        debug_path: Where the debug JPEG goes (relative to the working dir).
        jpeg_quality: Debug JPEG quality (0-100).
        save_path: Optional file that also receives the JSON document.
    """

    pretty: bool = False
    debug: bool = False
    debug_path: str = "debug.jpg"
    jpeg_quality: int = 95
    save_path: Optional[str] = None


@dataclass(frozen=True)
class VisualizationConfig:
    """Debug overlay rendering parameters.

    Attributes:
        face_color: BGR fill for face squares.
        face_alpha: Opacity of face squares.
        eye_color: BGR fill for eye squares.
        eye_alpha: Opacity of eye squares.
    """

    face_color: Tuple[int, int, int] = (0, 255, 0)
    face_alpha: float = 0.25
    eye_color: Tuple[int, int, int] = (0, 0, 255)
    eye_alpha: float = 0.75


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration.

    Aggregates all sub-configurations into a single, frozen object.
    """

    cascade: CascadeConfig = field(default_factory=CascadeConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    input: InputConfig = field(default_factory=InputConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    visualization: VisualizationConfig = field(default_factory=VisualizationConfig)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

_MAX_PERTURBS = 63


def _validate(config: AppConfig) -> None:
    """Validate configuration values. Raises ConfigError on invalid state."""
    det = config.detection

    if det.min_size < 1:
        raise ConfigError(f"detection.min_size must be >= 1, got {det.min_size}.")

    if not (0.0 < det.shift_factor <= 1.0):
        raise ConfigError(
            f"detection.shift_factor must be in (0.0, 1.0], got {det.shift_factor}."
        )

    if det.scale_factor <= 1.0:
        raise ConfigError(
            f"detection.scale_factor must be greater than 1.0, got {det.scale_factor}."
        )

    if not (0.0 <= det.angle <= 1.0):
        raise ConfigError(f"detection.angle must be in [0.0, 1.0], got {det.angle}.")

    if not (0.0 < det.iou_threshold < 1.0):
        raise ConfigError(
            f"detection.iou_threshold must be in (0.0, 1.0), got {det.iou_threshold}."
        )

    if det.size_threshold < 0:
        raise ConfigError(
            f"detection.size_threshold must be non-negative, got {det.size_threshold}."
        )

    if not (1 <= det.perturbs <= _MAX_PERTURBS):
        raise ConfigError(
            f"detection.perturbs must be in [1, {_MAX_PERTURBS}], got {det.perturbs}."
        )

    if not (0 <= config.output.jpeg_quality <= 100):
        raise ConfigError(
            f"output.jpeg_quality must be in [0, 100], got {config.output.jpeg_quality}."
        )

    vis = config.visualization
    for name, alpha in (("face_alpha", vis.face_alpha), ("eye_alpha", vis.eye_alpha)):
        if not (0.0 <= alpha <= 1.0):
            raise ConfigError(f"visualization.{name} must be in [0.0, 1.0], got {alpha}.")


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------

def _parse_tuple(value, expected_len: int, cast_type=float):
    """Convert a list from YAML into a tuple of the expected type and length."""
    if isinstance(value, (list, tuple)):
        if len(value) != expected_len:
            raise ConfigError(
                f"Expected {expected_len} values, got {len(value)}: {value}"
            )
        return tuple(cast_type(v) for v in value)
    return value


def _parse_bool(value) -> bool:
    """Accept real booleans and the usual env-var spellings."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off", ""):
        return False
    raise ConfigError(f"Expected a boolean, got {value!r}.")


def _build(cls, raw: dict, casts: dict):
    """Build a config section from a raw dict, casting the known keys."""
    kwargs = {}
    for key, cast in casts.items():
        if key in raw:
            value = raw[key]
            try:
                kwargs[key] = None if value is None else cast(value)
            except (TypeError, ValueError) as e:
                raise ConfigError(f"Invalid value for {key}: {value!r} ({e})") from e
    return cls(**kwargs)


def _build_cascade_config(raw: dict) -> CascadeConfig:
    """Build CascadeConfig from a raw YAML dict."""
    return _build(CascadeConfig, raw, {
        "face_path": str,
        "pupil_path": str,
        "pupil_seed": int,
    })


def _build_detection_config(raw: dict) -> DetectionConfig:
    """Build DetectionConfig from a raw YAML dict."""
    return _build(DetectionConfig, raw, {
        "min_size": int,
        "shift_factor": float,
        "scale_factor": float,
        "angle": float,
        "iou_threshold": float,
        "quality_threshold": float,
        "size_threshold": float,
        "perturbs": int,
    })


def _build_input_config(raw: dict) -> InputConfig:
    """Build InputConfig from a raw YAML dict."""
    return _build(InputConfig, raw, {"source": str, "bbox": str})


def _build_output_config(raw: dict) -> OutputConfig:
    """Build OutputConfig from a raw YAML dict."""
    return _build(OutputConfig, raw, {
        "pretty": _parse_bool,
        "debug": _parse_bool,
        "debug_path": str,
        "jpeg_quality": int,
        "save_path": str,
    })


def _build_visualization_config(raw: dict) -> VisualizationConfig:
    """Build VisualizationConfig from a raw YAML dict."""
    return _build(VisualizationConfig, raw, {
        "face_color": lambda v: _parse_tuple(v, 3, int),
        "face_alpha": float,
        "eye_color": lambda v: _parse_tuple(v, 3, int),
        "eye_alpha": float,
    })


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------

_ENV_PREFIX = "FACE_DETECT_"


def _apply_env_overrides(raw: dict) -> dict:
    """Apply environment variable overrides to the raw config dict.

    Environment variables follow the pattern:
        FACE_DETECT_DETECTION_IOU_THRESHOLD=0.2
        FACE_DETECT_CASCADE_FACE_PATH=/opt/cascades/facefinder
    """
    env_map = {
        f"{_ENV_PREFIX}CASCADE_FACE_PATH": ("cascade", "face_path"),
        f"{_ENV_PREFIX}CASCADE_PUPIL_PATH": ("cascade", "pupil_path"),
        f"{_ENV_PREFIX}CASCADE_PUPIL_SEED": ("cascade", "pupil_seed"),
        f"{_ENV_PREFIX}DETECTION_MIN_SIZE": ("detection", "min_size"),
        f"{_ENV_PREFIX}DETECTION_SHIFT_FACTOR": ("detection", "shift_factor"),
        f"{_ENV_PREFIX}DETECTION_SCALE_FACTOR": ("detection", "scale_factor"),
        f"{_ENV_PREFIX}DETECTION_IOU_THRESHOLD": ("detection", "iou_threshold"),
        f"{_ENV_PREFIX}DETECTION_QUALITY_THRESHOLD": ("detection", "quality_threshold"),
        f"{_ENV_PREFIX}DETECTION_SIZE_THRESHOLD": ("detection", "size_threshold"),
        f"{_ENV_PREFIX}INPUT_SOURCE": ("input", "source"),
        f"{_ENV_PREFIX}INPUT_BBOX": ("input", "bbox"),
        f"{_ENV_PREFIX}OUTPUT_PRETTY": ("output", "pretty"),
        f"{_ENV_PREFIX}OUTPUT_DEBUG": ("output", "debug"),
        f"{_ENV_PREFIX}OUTPUT_DEBUG_PATH": ("output", "debug_path"),
        f"{_ENV_PREFIX}OUTPUT_SAVE_PATH": ("output", "save_path"),
    }

    for env_var, (section, key) in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            raw.setdefault(section, {})[key] = value
            logger.debug("Config override from env: %s=%s", env_var, value)

    return raw


def _apply_overrides(raw: dict, overrides: dict) -> dict:
    """Layer explicit (CLI) overrides on top; None values are ignored."""
    for section, values in overrides.items():
        for key, value in values.items():
            if value is not None:
                raw.setdefault(section, {})[key] = value
    return raw


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------

def load_config(
    config_path: Optional[str] = None,
    overrides: Optional[dict] = None,
) -> AppConfig:
    """Load and validate application configuration.

    Precedence (highest → lowest):
        overrides > Environment variables > YAML file > Hard-coded defaults

    Args:
        config_path: Path to a YAML configuration file. If None,
                     the system runs entirely on defaults (safe for
                     programmatic usage).
        overrides: Nested {section: {key: value}} dict, typically built
                   from CLI arguments. None values leave lower layers intact.

    Returns:
        A validated, frozen AppConfig instance.

    Raises:
        FileNotFoundError: If config_path is provided but does not exist.
        ConfigError: If any configuration value is invalid.
        yaml.YAMLError: If the YAML file is malformed.
    """
    raw: dict = {}

    # --- Layer 1: YAML file ---
    if config_path is not None:
        resolved = Path(config_path)
        if not resolved.is_absolute() and not resolved.is_file():
            resolved = _PROJECT_ROOT / resolved

        if not resolved.is_file():
            raise FileNotFoundError(
                f"Configuration file not found: {resolved}. "
                f"Provide a valid path or omit to use defaults."
            )

        logger.info("Loading config from: %s", resolved)
        with open(resolved, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        if not isinstance(raw, dict):
            raise ConfigError(f"Configuration file must contain a mapping: {resolved}")

    # --- Layer 2: Environment variable overrides ---
    raw = _apply_env_overrides(raw)

    # --- Layer 3: Explicit overrides ---
    if overrides:
        raw = _apply_overrides(raw, overrides)

    # --- Build typed configs ---
    config = AppConfig(
        cascade=_build_cascade_config(raw.get("cascade") or {}),
        detection=_build_detection_config(raw.get("detection") or {}),
        input=_build_input_config(raw.get("input") or {}),
        output=_build_output_config(raw.get("output") or {}),
        visualization=_build_visualization_config(raw.get("visualization") or {}),
    )

    # --- Validate ---
    _validate(config)

    logger.debug("Configuration loaded: %s", config)
    return config
