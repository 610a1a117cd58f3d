"""
Classifier loading for the face detection system.

Responsibility:
    Read the facefinder and puploc cascade blobs from disk and unpack them
    into ready-to-run cascade objects.

Non-goals:
    - No preprocessing, scanning, or image-level logic.
    - No automatic model downloading.
    - No fallback to alternative models.

Failure behavior:
    - Missing or unreadable blobs raise ResourceError with the exact
      expected path.
    - Truncated or malformed blobs raise ResourceError from the unpacker.
"""

import logging
from pathlib import Path

from facedetect.cascade import PicoFaceCascade, PicoPupilCascade
from facedetect.config import CascadeConfig, get_project_root
from facedetect.errors import ResourceError

logger = logging.getLogger(__name__)


def _read_blob(path_str: str, description: str, config_key: str) -> bytes:
    path = Path(path_str)
    if not path.is_absolute():
        path = get_project_root() / path

    # Fail fast with actionable messages
    if not path.is_file():
        raise ResourceError(
            f"{description} not found.\n"
            f"  Expected: {path}\n"
            f"  Provide the file or update 'cascade.{config_key}' in your config."
        )

    logger.info("Loading %s: %s", description.lower(), path)
    try:
        return path.read_bytes()
    except OSError as e:
        raise ResourceError(f"Cannot read {description.lower()} at {path}: {e}") from e


def load_face_cascade(config: CascadeConfig) -> PicoFaceCascade:
    """Load and unpack the face finder cascade.

    Raises:
        ResourceError: If the blob is missing, unreadable, or corrupt.
    """
    packet = _read_blob(config.face_path, "Face cascade", "face_path")
    cascade = PicoFaceCascade.unpack(packet)
    logger.info("Face cascade loaded (%d trees).", cascade.tree_count)
    return cascade


def load_pupil_cascade(config: CascadeConfig) -> PicoPupilCascade:
    """Load and unpack the pupil localization cascade.

    Raises:
        ResourceError: If the blob is missing, unreadable, or corrupt.
    """
    packet = _read_blob(config.pupil_path, "Pupil cascade", "pupil_path")
    cascade = PicoPupilCascade.unpack(packet, seed=config.pupil_seed)
    logger.info("Pupil cascade loaded (%d stages).", cascade.stages)
    return cascade
