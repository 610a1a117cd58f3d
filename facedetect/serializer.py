"""
Serialization for the face detection pipeline.

Responsibility:
    Render a FoundFaces result as the JSON document printed on stdout,
    and optionally persist it to a file.

Output schema:
    {"faces": [{"face": {"cx": int, "cy": int, "size": int},
                "lefteye": {...},      # omitted when not found
                "righteye": {...},     # omitted when not found
                "quality": float}]}

Non-goals:
    - No rendering, display, or detection logic.
"""

import json
import logging
from pathlib import Path

from facedetect.detection import FoundFaces

logger = logging.getLogger(__name__)

_PRETTY_INDENT = 3


def to_json(found: FoundFaces, pretty: bool = False) -> str:
    """Encode the result; ``pretty`` changes whitespace only."""
    payload = found.to_dict()
    if pretty:
        return json.dumps(payload, indent=_PRETTY_INDENT)
    return json.dumps(payload, separators=(",", ":"))


def save_json(found: FoundFaces, output_path: str, pretty: bool = False) -> None:
    """Write the JSON document to ``output_path``.

    Raises:
        OSError: If the output path is not writable.
    """
    _ensure_parent_dir(output_path)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(to_json(found, pretty))
        f.write("\n")

    logger.info("JSON output saved: %s (%d faces)", output_path, len(found))


def _ensure_parent_dir(path: str) -> None:
    """Create parent directories if they don't exist."""
    parent = Path(path).parent
    parent.mkdir(parents=True, exist_ok=True)
