"""
Preprocessing for the face detection pipeline.

Responsibility:
    Crop the search region out of a BGR image and convert it into the
    flat grayscale SampleBuffer both cascades read from.

Non-goals:
    - No image acquisition or I/O.
    - No detection or coordinate mapping.

Hard-coded:
    - Luminance weights 0.299 R + 0.587 G + 0.114 B applied to channels
      widened to 16 bits (v * 257) and divided by 256. The pico cascades
      were trained on exactly this conversion; any other formula silently
      degrades detection quality.
"""

import numpy as np

from facedetect.detection import SampleBuffer
from facedetect.region import PixelRegion

_LUMA_R = 0.299
_LUMA_G = 0.587
_LUMA_B = 0.114
_WIDEN_8_TO_16 = 257


def crop_region(image: np.ndarray, region: PixelRegion) -> np.ndarray:
    """Return a view of ``image`` restricted to ``region``."""
    return image[region.y1:region.y2, region.x1:region.x2]


def to_luminance(image: np.ndarray) -> np.ndarray:
    """Convert a BGR (or already grayscale) uint8 image to uint8 luminance.

    Args:
        image: Array of shape (H, W, 3+) in BGR order, or (H, W) grayscale.

    Returns:
        A uint8 array of shape (H, W).
    """
    if image.ndim == 2:
        return image.astype(np.uint8, copy=False)

    wide = image[..., :3].astype(np.float64) * _WIDEN_8_TO_16
    blue, green, red = wide[..., 0], wide[..., 1], wide[..., 2]
    gray = (_LUMA_R * red + _LUMA_G * green + _LUMA_B * blue) / 256
    return gray.astype(np.uint8)


def build_sample_buffer(image: np.ndarray, region: PixelRegion) -> SampleBuffer:
    """Build the detector's grayscale buffer for the search region.

    The buffer is decoupled from the source image origin: pixel (x, y) of the
    source lands at (x - x1, y - y1) in the buffer.

    Args:
        image: Source image, BGR numpy array (H, W, 3).
        region: Clamped search region.

    Returns:
        SampleBuffer with rows == region.height and cols == region.width.
        A zero-area region yields a zero-length buffer.
    """
    rows, cols = region.height, region.width
    if region.is_empty:
        return SampleBuffer(pixels=np.zeros(0, dtype=np.uint8), rows=rows, cols=cols, dim=cols)

    gray = to_luminance(crop_region(image, region))
    pixels = np.ascontiguousarray(gray).reshape(-1)
    return SampleBuffer(pixels=pixels, rows=rows, cols=cols, dim=cols)
