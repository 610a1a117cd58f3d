"""
Eye search windows and final result assembly.

Eye windows follow a fixed anthropometric prior: both eyes sit 7.5% of
the face size above the face center, the left one 17.5% to the left and
the right one 18.5% to the right, each searched at a quarter of the face
size. These ratios are part of the pupil cascade's contract and are not
configurable.
"""

import math
from typing import Optional

from facedetect.detection import AcceptedFace, EyeEstimate, EyeResult, FaceResult, Location
from facedetect.region import PixelRegion

_EYE_ROW_RATIO = 0.075
_LEFT_EYE_COL_RATIO = -0.175
_RIGHT_EYE_COL_RATIO = 0.185
_EYE_SCALE_RATIO = 0.25


def _pixel_offset(ratio: float, scale: int) -> int:
    """Nearest whole-pixel offset, rounding halves away from zero."""
    value = ratio * scale
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _eye_seed(face: AcceptedFace, col_ratio: float) -> EyeEstimate:
    return EyeEstimate(
        row=face.row - _pixel_offset(_EYE_ROW_RATIO, face.scale),
        col=face.col + _pixel_offset(col_ratio, face.scale),
        scale=_EYE_SCALE_RATIO * face.scale,
    )


def left_eye_seed(face: AcceptedFace) -> EyeEstimate:
    return _eye_seed(face, _LEFT_EYE_COL_RATIO)


def right_eye_seed(face: AcceptedFace) -> EyeEstimate:
    return _eye_seed(face, _RIGHT_EYE_COL_RATIO)


def to_location(region: PixelRegion, row: int, col: int, size) -> Location:
    """Map a sample-buffer position back to original-image pixels.

    Cropping never resizes, so ``size`` is carried over unchanged.
    """
    offset_x, offset_y = region.offset
    return Location(cx=offset_x + int(col), cy=offset_y + int(row), size=int(size))


def _eye_location(region: PixelRegion, eye: Optional[EyeResult]) -> Optional[Location]:
    if eye is None or not eye.found:
        return None
    return to_location(region, eye.row, eye.col, eye.scale)


def assemble_face(
    face: AcceptedFace,
    left_eye: Optional[EyeResult],
    right_eye: Optional[EyeResult],
    region: PixelRegion,
) -> FaceResult:
    """Build the reported FaceResult for one accepted face."""
    return FaceResult(
        face=to_location(region, face.row, face.col, face.scale),
        left_eye=_eye_location(region, left_eye),
        right_eye=_eye_location(region, right_eye),
        quality=face.score,
    )
