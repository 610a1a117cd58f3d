"""
facedetect: frontal face and pupil detection for still images.

Public API:
    - Detector: The single entry point for face detection.
    - FoundFaces / FaceResult / Location: Result objects.
    - ConfigError / ResourceError: Fatal error types.

All other modules in this package are internal implementation details
and should not be imported directly by consumers.

Usage:
    from facedetect import Detector

    detector = Detector()
    found = detector.detect(image)
"""

from facedetect.detection import FaceResult, FoundFaces, Location
from facedetect.detector import Detector
from facedetect.errors import ConfigError, ResourceError

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "Detector",
    "FaceResult",
    "FoundFaces",
    "Location",
    "ResourceError",
    "__version__",
]
