"""
Search region selection.

Responsibility:
    Parse the normalized "x,y,w,h" bounding box and turn it into an
    integer pixel rectangle clamped to the image bounds.

Edge cases:
    - Missing, unparseable or non-finite components keep their default
      (0, 0, 1, 1 position-wise), never zero.
    - A zero-width, zero-height or inverted box collapses to a zero-area
      region. Downstream stages treat it as "no detections".
"""

import logging
import math
from dataclasses import dataclass
from typing import Sequence

from facedetect.errors import ConfigError

logger = logging.getLogger(__name__)

_DEFAULT_BOX = (0.0, 0.0, 1.0, 1.0)


@dataclass(frozen=True, slots=True)
class NormalizedBox:
    """Search box as fractions of image width/height."""

    x: float = 0.0
    y: float = 0.0
    w: float = 1.0
    h: float = 1.0

    def as_tuple(self):
        return (self.x, self.y, self.w, self.h)


@dataclass(frozen=True, slots=True)
class PixelRegion:
    """Pixel rectangle [x1, x2) x [y1, y2) inside the source image.

    (x1, y1) is the offset used to map detections back to the source image.
    """

    x1: int
    y1: int
    x2: int
    y2: int

    @property
    def width(self) -> int:
        return self.x2 - self.x1

    @property
    def height(self) -> int:
        return self.y2 - self.y1

    @property
    def offset(self):
        return self.x1, self.y1

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0


def parse_bounding_box(bbox: str) -> NormalizedBox:
    """Parse an "x,y,w,h" string, falling back per component to the default.

    Surrounding quotes are trimmed and components beyond the fourth are
    ignored.
    """
    values = list(_DEFAULT_BOX)
    parts = bbox.strip().strip("'\"").split(",")[:4]

    for index, part in enumerate(parts):
        try:
            value = float(part.strip())
        except ValueError:
            logger.debug("Ignoring bbox component %d: %r", index, part)
            continue
        if math.isfinite(value):
            values[index] = value

    return NormalizedBox(*values)


def select_region(box, width: int, height: int) -> PixelRegion:
    """Compute the clamped pixel region for a normalized box.

    Args:
        box: A NormalizedBox or a sequence of at least four floats (x, y, w, h).
        width: Source image width in pixels (> 0).
        height: Source image height in pixels (> 0).

    Returns:
        A PixelRegion with 0 <= x1 <= x2 <= width and 0 <= y1 <= y2 <= height.

    Raises:
        ConfigError: If fewer than four box components are given.
    """
    params: Sequence[float] = box.as_tuple() if isinstance(box, NormalizedBox) else tuple(box)
    if len(params) < 4:
        raise ConfigError(f"Bounding box needs four values (x, y, w, h), got {len(params)}.")

    x, y, w, h = params[:4]
    # Clamp before flooring: huge finite boxes overflow to inf.
    x1 = _to_pixel(width * x, width)
    y1 = _to_pixel(height * y, height)
    x2 = _to_pixel(width * (x + w), width)
    y2 = _to_pixel(height * (y + h), height)

    # Inverted or empty boxes collapse onto the min edge.
    x2 = max(x2, x1)
    y2 = max(y2, y1)

    region = PixelRegion(x1, y1, x2, y2)
    logger.debug("Search region: %s (image %dx%d)", region, width, height)
    return region


def _to_pixel(value: float, limit: int) -> int:
    return math.floor(min(max(value, 0.0), float(limit)))
