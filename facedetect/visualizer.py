"""
Visualization for the face detection pipeline.

Responsibility:
    Accumulate translucent face and eye overlays on a copy of the search
    region. This is a pure rendering module and performs no I/O.

Usage:
    canvas = DebugCanvas(region_image, config)
    canvas.draw_face(face)           # once per accepted face
    canvas.draw_eye(eye)             # once per found eye
    image = canvas.finalize()        # exactly once

All coordinates are region-local (sample-buffer) coordinates.
"""

from typing import Tuple

import cv2
import numpy as np

from facedetect.config import VisualizationConfig


class DebugCanvas:
    """Overlay accumulator owned by a single detection run."""

    def __init__(self, image: np.ndarray, config: VisualizationConfig) -> None:
        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        self._image = image.copy()
        self._config = config
        self._finalized = False

    def draw_face(self, face) -> None:
        """Fill the face square (row, col, scale) translucently."""
        self._fill_square(face.row, face.col, int(face.scale),
                          self._config.face_color, self._config.face_alpha)

    def draw_eye(self, eye) -> None:
        """Fill the eye square (row, col, scale) translucently."""
        self._fill_square(eye.row, eye.col, int(eye.scale),
                          self._config.eye_color, self._config.eye_alpha)

    def finalize(self) -> np.ndarray:
        """Return the annotated image; the canvas accepts no more drawing."""
        self._check_open()
        self._finalized = True
        return self._image

    def _check_open(self) -> None:
        if self._finalized:
            raise RuntimeError("DebugCanvas has already been finalized.")

    def _fill_square(
        self,
        row: int,
        col: int,
        scale: int,
        color: Tuple[int, int, int],
        alpha: float,
    ) -> None:
        self._check_open()
        h, w = self._image.shape[:2]
        half = scale // 2
        x1, y1 = max(col - half, 0), max(row - half, 0)
        x2, y2 = min(col + half, w), min(row + half, h)
        if x2 <= x1 or y2 <= y1:
            return

        roi = self._image[y1:y2, x1:x2]
        fill = np.empty_like(roi)
        fill[:] = color
        self._image[y1:y2, x1:x2] = cv2.addWeighted(fill, alpha, roi, 1.0 - alpha, 0.0)
