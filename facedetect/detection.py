"""
Data transfer objects for the face detection pipeline.

Two coordinate spaces appear here:
    - Sample-buffer space (row, col): local to the cropped search region.
      Used by RawDetection, AcceptedFace, EyeEstimate and EyeResult.
    - Original-image space (cx, cy): used by Location only. This is the
      only space ever exposed to callers.

Non-goals:
    - No rendering logic.
    - No file I/O.
    - No coordinate remapping (that belongs in assembler).
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class SampleBuffer:
    """Dense row-major grayscale intensities of the search region.

    Attributes:
        pixels: Flat uint8 array of length rows * cols.
        rows: Region height in pixels.
        cols: Region width in pixels.
        dim: Row stride of ``pixels`` (equal to cols).
    """

    pixels: np.ndarray
    rows: int
    cols: int
    dim: int

    @property
    def is_empty(self) -> bool:
        return self.pixels.size == 0


@dataclass(frozen=True, slots=True)
class RawDetection:
    """A single scanned window accepted by the face cascade.

    Attributes:
        row: Window center row.
        col: Window center column.
        scale: Window side length in pixels.
        score: Cascade confidence.
    """

    row: int
    col: int
    scale: int
    score: float


@dataclass(frozen=True, slots=True)
class AcceptedFace:
    """A clustered face candidate, in sample-buffer coordinates."""

    row: int
    col: int
    scale: int
    score: float


@dataclass(frozen=True, slots=True)
class EyeEstimate:
    """Search window handed to the pupil locator."""

    row: int
    col: int
    scale: float


@dataclass(frozen=True, slots=True)
class EyeResult:
    """Pupil locator output. Non-positive row or col means "not found"."""

    row: int
    col: int
    scale: float

    @property
    def found(self) -> bool:
        return self.row > 0 and self.col > 0


@dataclass(frozen=True, slots=True)
class Location:
    """Center point and side length in original-image pixels."""

    cx: int
    cy: int
    size: int

    def to_dict(self) -> dict:
        return {"cx": self.cx, "cy": self.cy, "size": self.size}


@dataclass(frozen=True)
class FaceResult:
    """One reported face with independently optional eye locations.

    A face without eyes is still a valid result.
    """

    face: Optional[Location]
    left_eye: Optional[Location]
    right_eye: Optional[Location]
    quality: float

    def to_dict(self) -> dict:
        """Return a plain dict for JSON; absent locations are omitted, not null."""
        out = {}
        if self.face is not None:
            out["face"] = self.face.to_dict()
        if self.left_eye is not None:
            out["lefteye"] = self.left_eye.to_dict()
        if self.right_eye is not None:
            out["righteye"] = self.right_eye.to_dict()
        out["quality"] = round(float(self.quality), 4)
        return out


@dataclass(frozen=True)
class FoundFaces:
    """Ordered results of one run, in cluster output order."""

    faces: Tuple[FaceResult, ...] = ()

    def to_dict(self) -> dict:
        return {"faces": [f.to_dict() for f in self.faces]}

    def __len__(self) -> int:
        return len(self.faces)
