"""
Detector: the single public API for face detection.

This module is the ONLY intended programmatic entry point for consumers
of the face detection library. All other modules are internal.

Public contract:
    Detector.detect(image: np.ndarray) -> FoundFaces
    Detector.detect_with_overlay(image: np.ndarray) -> (FoundFaces, np.ndarray)

Pipeline (strictly sequential):
    select_region → build_sample_buffer → FaceDetector.detect →
    cluster_detections → filter_faces (quality, then size) → PupilLocator.locate (x2 per face)
    → assemble_face

Constraints:
    - Input must be a BGR numpy array (as returned by OpenCV).
    - Each call is independent and deterministic.
    - Thread-safety is not guaranteed (single-threaded design).

Non-goals:
    - No file reading or writing of any kind.
"""

import logging
from typing import List, Optional, Tuple

import numpy as np

from facedetect.assembler import assemble_face, left_eye_seed, right_eye_seed
from facedetect.cascade import FaceDetector, PupilLocator, ScanParams
from facedetect.config import AppConfig, load_config
from facedetect.detection import FaceResult, FoundFaces
from facedetect.model_loader import load_face_cascade, load_pupil_cascade
from facedetect.postprocessor import cluster_detections, filter_faces, meets_size
from facedetect.preprocessor import build_sample_buffer, crop_region
from facedetect.region import PixelRegion, parse_bounding_box, select_region
from facedetect.visualizer import DebugCanvas

logger = logging.getLogger(__name__)


class Detector:
    """Face and eye detector over a configurable search region.

    Usage:
        detector = Detector()                      # Loads default cascades
        detector = Detector(config=my_config)       # Custom config
        detector = Detector(face_detector=stub,     # Swap in any strategy
                            pupil_locator=stub)
        found = detector.detect(image)              # BGR numpy array

    Cascades are loaded once in the constructor; each detect() call only
    pays for preprocessing and scanning.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        face_detector: Optional[FaceDetector] = None,
        pupil_locator: Optional[PupilLocator] = None,
    ) -> None:
        """Initialize the detector, loading any cascade not supplied.

        Raises:
            ResourceError: If a cascade blob is missing or corrupt.
        """
        if config is None:
            config = load_config()

        if face_detector is None:
            face_detector = load_face_cascade(config.cascade)
        if pupil_locator is None:
            pupil_locator = load_pupil_cascade(config.cascade)

        self._config = config
        self._face_detector = face_detector
        self._pupil_locator = pupil_locator

        det = config.detection
        logger.info(
            "Detector initialized (quality>=%.2f, size>=%.0f, iou=%.2f)",
            det.quality_threshold, det.size_threshold, det.iou_threshold,
        )

    @property
    def config(self) -> AppConfig:
        """Return the active configuration (read-only)."""
        return self._config

    def detect(self, image: np.ndarray) -> FoundFaces:
        """Detect faces and eyes in a single BGR image.

        Returns:
            FoundFaces in cluster order. Empty when nothing is found or the
            search region has zero area.

        Raises:
            TypeError: If image is not a numpy ndarray.
            ValueError: If image has incorrect shape or is empty.
        """
        found, _ = self._run(image, with_overlay=False)
        return found

    def detect_with_overlay(self, image: np.ndarray) -> Tuple[FoundFaces, np.ndarray]:
        """Like detect(), also returning the search region with overlays drawn."""
        found, overlay = self._run(image, with_overlay=True)
        return found, overlay

    def _run(self, image: np.ndarray, with_overlay: bool):
        self._validate_image(image)
        det = self._config.detection

        h, w = image.shape[:2]
        region = select_region(parse_bounding_box(self._config.input.bbox), w, h)
        buffer = build_sample_buffer(image, region)
        canvas = DebugCanvas(crop_region(image, region), self._config.visualization) if with_overlay else None

        if buffer.is_empty:
            logger.info("Search region %s has zero area; nothing to scan.", _describe(region))
            return FoundFaces(), canvas.finalize() if canvas is not None else None

        params = ScanParams(
            min_size=det.min_size,
            max_size=min(buffer.rows, buffer.cols),
            shift_factor=det.shift_factor,
            scale_factor=det.scale_factor,
            angle=det.angle,
        )
        raw = self._face_detector.detect(buffer, params)
        candidates = cluster_detections(raw, det.iou_threshold)
        qualified = filter_faces(candidates, det.quality_threshold, size_threshold=0)
        logger.debug(
            "Raw detections: %d, clusters: %d, above quality: %d",
            len(raw), len(candidates), len(qualified),
        )

        results: List[FaceResult] = []
        for face in qualified:
            # The overlay shows every qualified face, including undersized ones.
            if canvas is not None:
                canvas.draw_face(face)
            if not meets_size(face, det.size_threshold):
                continue

            left = self._pupil_locator.locate(left_eye_seed(face), buffer, det.perturbs, det.angle)
            right = self._pupil_locator.locate(right_eye_seed(face), buffer, det.perturbs, det.angle)
            results.append(assemble_face(face, left, right, region))

            if canvas is not None:
                for eye in (left, right):
                    if eye.found:
                        canvas.draw_eye(eye)

        logger.info("Found %d face(s) in region %s", len(results), _describe(region))
        found = FoundFaces(tuple(results))
        return found, canvas.finalize() if canvas is not None else None

    @staticmethod
    def _validate_image(image: np.ndarray) -> None:
        """Validate that the input image meets the API contract.

        Raises:
            TypeError: If image is not a numpy ndarray.
            ValueError: If image is empty or has wrong dimensions.
        """
        if not isinstance(image, np.ndarray):
            raise TypeError(
                f"Expected image to be a numpy ndarray, "
                f"got {type(image).__name__}. "
                f"Use cv2.imread() to obtain images."
            )

        if image.size == 0:
            raise ValueError("Image is empty (zero size).")

        if image.ndim != 3:
            raise ValueError(
                f"Expected a 3-dimensional image (H, W, C), "
                f"got {image.ndim} dimensions with shape {image.shape}. "
                f"Grayscale images must be converted to BGR first."
            )

        if image.shape[2] != 3:
            raise ValueError(
                f"Expected 3 channels (BGR), got {image.shape[2]} channels. "
                f"Input must be a BGR image as returned by OpenCV."
            )


def _describe(region: PixelRegion) -> str:
    return f"[{region.x1},{region.y1})-[{region.x2},{region.y2})"
