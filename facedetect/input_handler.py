"""
Image acquisition for the face detection pipeline.

Responsibility:
    Read one still image from disk into a BGR numpy array.

Non-goals:
    - No video, webcam, or directory sources.
    - No resizing: detections must map 1:1 back onto the source pixels.
    - No retries.
"""

import logging
from pathlib import Path

import cv2
import numpy as np

from facedetect.errors import ResourceError

logger = logging.getLogger(__name__)

# Image extensions recognized by this handler
_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp"}


def load_image(source: str) -> np.ndarray:
    """Load an image file as a BGR uint8 array of shape (H, W, 3).

    Raises:
        ResourceError: If the file is missing, has an unsupported extension,
                       or cannot be decoded.
    """
    path = Path(source)

    if not path.is_file():
        raise ResourceError(
            f"Input image not found: '{source}'. Provide a valid image file path."
        )

    ext = path.suffix.lower()
    if ext not in _IMAGE_EXTENSIONS:
        raise ResourceError(
            f"Unrecognized file extension: '{ext}' for source '{source}'. "
            f"Supported images: {sorted(_IMAGE_EXTENSIONS)}."
        )

    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise ResourceError(f"Cannot decode image file: '{source}'.")

    h, w = image.shape[:2]
    logger.info("Loaded image %s (%dx%d)", source, w, h)
    return image
