"""
Output handling for the face detection pipeline.

Responsibility:
    Route a finished result to its sinks: the JSON document on stdout,
    an optional JSON file, and the optional debug JPEG.

Non-goals:
    - No detection logic.
    - No input acquisition.
"""

import logging
import sys
from typing import Optional, TextIO

import cv2
import numpy as np

from facedetect.config import OutputConfig
from facedetect.detection import FoundFaces
from facedetect.errors import ResourceError
from facedetect.serializer import save_json, to_json

logger = logging.getLogger(__name__)


class OutputHandler:
    """Writes the JSON result and debug artifacts of one run.

    Usage:
        handler = OutputHandler(config.output)
        handler.save_debug_image(overlay)   # only when debugging
        handler.emit(found)
    """

    def __init__(self, config: OutputConfig, stream: Optional[TextIO] = None) -> None:
        self._config = config
        self._stream = stream if stream is not None else sys.stdout

    def emit(self, found: FoundFaces) -> None:
        """Print the JSON document and write it to save_path if configured.

        Raises:
            ResourceError: If save_path is not writable.
        """
        if self._config.save_path:
            try:
                save_json(found, self._config.save_path, self._config.pretty)
            except OSError as e:
                raise ResourceError(
                    f"Cannot write JSON output to {self._config.save_path}: {e}"
                ) from e

        print(to_json(found, self._config.pretty), file=self._stream)
        self._stream.flush()

    def save_debug_image(self, image: np.ndarray) -> None:
        """Write the annotated region as a JPEG.

        An empty search region has nothing to encode and is skipped.

        Raises:
            ResourceError: If the image cannot be encoded or written.
        """
        if image.size == 0:
            logger.warning("Search region is empty; skipping debug image.")
            return

        path = self._config.debug_path
        params = [cv2.IMWRITE_JPEG_QUALITY, self._config.jpeg_quality]
        try:
            ok = cv2.imwrite(path, image, params)
        except cv2.error as e:
            raise ResourceError(f"Cannot encode debug image {path}: {e}") from e
        if not ok:
            raise ResourceError(f"Cannot write debug image: {path}")

        logger.info("Debug image saved: %s", path)
