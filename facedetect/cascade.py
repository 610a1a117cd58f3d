"""
Pixel-comparison cascades (pico/pigo binary format).

Responsibility:
    Define the two pluggable detector contracts used by the pipeline and
    provide their default implementations backed by pico-format blobs:

        FaceDetector.detect(buffer, params) -> List[RawDetection]
        PupilLocator.locate(seed, buffer, perturbs, angle) -> EyeResult

    Any object satisfying these protocols can replace the defaults, e.g.
    a stub returning canned detections in tests.

Constraints:
    - Implementations are deterministic for identical inputs, have no side
      effects and keep no mutable state between calls.
    - The face scan is vectorized per scale: every window of one scale is
      pushed through the trees together and dropped as soon as its running
      score falls under a stage threshold.

Blob layouts (little-endian):
    facefinder: 8 skipped bytes, uint32 tree_depth, uint32 tree_count, then
        per tree: (4 * 2^depth - 4) int8 node codes, 2^depth float32 leaf
        predictions, one float32 threshold.
    puploc: uint32 stages, float32 scale multiplier, uint32 trees per stage,
        uint32 tree_depth, then per stage and tree: (4 * 2^depth - 4) int8
        node codes and 2^depth (dr, dc) float32 pairs.
"""

import logging
import struct
from dataclasses import dataclass
from typing import List, Protocol, Tuple

import numpy as np

from facedetect.detection import EyeEstimate, EyeResult, RawDetection, SampleBuffer
from facedetect.errors import ResourceError

logger = logging.getLogger(__name__)

# cos/sin * 256, indexed by int(32 * angle) with angle in [0, 1] (fraction of 2*pi)
_Q_COS = (256, 251, 236, 212, 181, 142, 97, 49, 0, -49, -97, -142, -181, -212, -236, -251,
          -256, -251, -236, -212, -181, -142, -97, -49, 0, 49, 97, 142, 181, 212, 236, 251, 256)
_Q_SIN = (0, 49, 97, 142, 181, 212, 236, 251, 256, 251, 236, 212, 181, 142, 97, 49,
          0, -49, -97, -142, -181, -212, -236, -251, -256, -251, -236, -212, -181, -142, -97, -49, 0)

_FACE_HEADER = struct.Struct("<II")
_FACE_HEADER_OFFSET = 8
_PUPIL_HEADER = struct.Struct("<IfII")


@dataclass(frozen=True)
class ScanParams:
    """Multi-scale sliding-window parameters.

    Attributes:
        min_size: Smallest window side in pixels.
        max_size: Largest window side; the shorter region dimension.
        shift_factor: Window step as a fraction of the window size.
        scale_factor: Geometric growth of the window size per scale (> 1).
        angle: Rotation as a fraction of a full turn; 0 means upright.
    """

    min_size: int
    max_size: int
    shift_factor: float = 0.1
    scale_factor: float = 1.1
    angle: float = 0.0


class FaceDetector(Protocol):
    """Protocol for face cascades."""

    def detect(self, buffer: SampleBuffer, params: ScanParams) -> List[RawDetection]:
        ...


class PupilLocator(Protocol):
    """Protocol for pupil localization cascades."""

    def locate(
        self,
        seed: EyeEstimate,
        buffer: SampleBuffer,
        perturbs: int,
        angle: float = 0.0,
    ) -> EyeResult:
        ...


def _rotation(angle: float) -> Tuple[int, int]:
    """Quantized (cos, sin) * 256 for a rotation given as a fraction of 2*pi."""
    index = int(32.0 * angle)
    if not 0 <= index < len(_Q_COS):
        raise ValueError(f"Rotation angle must be in [0, 1], got {angle}.")
    return _Q_COS[index], _Q_SIN[index]


def _sample_points(r, c, codes, node, qcos, qsin, rows, cols):
    """Pixel coordinates of the two points compared at tree node ``node``.

    ``r`` and ``c`` are window centers pre-multiplied by 65536; ``qcos`` and
    ``qsin`` already include the window scale.
    """
    r1 = np.clip((r + qcos * codes[node] - qsin * codes[node + 1]) >> 16, 0, rows - 1)
    c1 = np.clip((c + qsin * codes[node] + qcos * codes[node + 1]) >> 16, 0, cols - 1)
    r2 = np.clip((r + qcos * codes[node + 2] - qsin * codes[node + 3]) >> 16, 0, rows - 1)
    c2 = np.clip((c + qsin * codes[node + 2] + qcos * codes[node + 3]) >> 16, 0, cols - 1)
    return r1, c1, r2, c2


class PicoFaceCascade:
    """Face finder cascade: a chain of binary pixel-comparison trees.

    Each tree adds a leaf prediction to a running score. A window is rejected
    as soon as the score drops to or below the tree's threshold; survivors
    are scored relative to the final threshold.
    """

    def __init__(
        self,
        tree_depth: int,
        codes: np.ndarray,
        predictions: np.ndarray,
        thresholds: np.ndarray,
    ) -> None:
        self.tree_depth = tree_depth
        self.tree_count = len(thresholds)
        self._leaves = 2 ** tree_depth
        # (trees, 4 * leaves); node 0 is padding so that node i sits at 4*i.
        self._codes = codes.astype(np.int64)
        self._predictions = predictions.astype(np.float32)
        self._thresholds = thresholds.astype(np.float32)

    @classmethod
    def unpack(cls, packet: bytes) -> "PicoFaceCascade":
        """Decode a facefinder blob.

        Raises:
            ResourceError: If the blob is truncated or its header is invalid.
        """
        try:
            tree_depth, tree_count = _FACE_HEADER.unpack_from(packet, _FACE_HEADER_OFFSET)
        except struct.error as e:
            raise ResourceError(f"Face cascade header is truncated: {e}") from e

        if not 0 < tree_depth <= 16:
            raise ResourceError(f"Face cascade has invalid tree depth {tree_depth}.")

        leaves = 2 ** tree_depth
        node_bytes = 4 * leaves - 4
        record = node_bytes + 4 * leaves + 4
        pos = _FACE_HEADER_OFFSET + _FACE_HEADER.size
        expected = pos + tree_count * record
        if len(packet) < expected:
            raise ResourceError(
                f"Face cascade is truncated: expected {expected} bytes "
                f"for {tree_count} trees, got {len(packet)}."
            )

        codes = np.zeros((tree_count, 4 * leaves), dtype=np.int8)
        predictions = np.empty((tree_count, leaves), dtype=np.float32)
        thresholds = np.empty(tree_count, dtype=np.float32)

        for t in range(tree_count):
            codes[t, 4:] = np.frombuffer(packet, dtype=np.int8, count=node_bytes, offset=pos)
            pos += node_bytes
            predictions[t] = np.frombuffer(packet, dtype="<f4", count=leaves, offset=pos)
            pos += 4 * leaves
            thresholds[t] = np.frombuffer(packet, dtype="<f4", count=1, offset=pos)[0]
            pos += 4

        logger.debug("Unpacked face cascade: depth=%d, trees=%d", tree_depth, tree_count)
        return cls(tree_depth, codes, predictions, thresholds)

    def detect(self, buffer: SampleBuffer, params: ScanParams) -> List[RawDetection]:
        """Scan every window position and scale; return windows scoring > 0."""
        if buffer.is_empty or self.tree_count == 0:
            return []

        qcos, qsin = _rotation(params.angle)
        detections: List[RawDetection] = []

        scale = params.min_size
        while scale <= params.max_size:
            step = max(int(params.shift_factor * scale), 1)
            offset = scale // 2 + 1
            rows = np.arange(offset, buffer.rows - offset + 1, step, dtype=np.int64)
            cols = np.arange(offset, buffer.cols - offset + 1, step, dtype=np.int64)

            if rows.size and cols.size:
                rr, cc = np.meshgrid(rows, cols, indexing="ij")
                rr, cc = rr.ravel(), cc.ravel()
                hits, scores = self._classify(rr, cc, scale, qcos, qsin, buffer)
                detections.extend(
                    RawDetection(row=int(r), col=int(c), scale=scale, score=float(q))
                    for r, c, q in zip(rr[hits], cc[hits], scores)
                    if q > 0.0
                )

            scale = max(int(scale * params.scale_factor), scale + 1)

        return detections

    def _classify(self, rows, cols, scale, qcos, qsin, buffer):
        """Run all windows of one scale through the cascade.

        Returns:
            (indices of surviving windows, their scores).
        """
        pixels = buffer.pixels
        qc, qs = scale * qcos, scale * qsin
        r = rows * 65536
        c = cols * 65536
        index = np.arange(rows.size)
        score = np.zeros(rows.size, dtype=np.float32)

        for t in range(self.tree_count):
            codes = self._codes[t]
            node = np.ones(index.size, dtype=np.int64)
            for _ in range(self.tree_depth):
                r1, c1, r2, c2 = _sample_points(r, c, codes, 4 * node, qc, qs, buffer.rows, buffer.cols)
                node = 2 * node + (pixels[r1 * buffer.dim + c1] <= pixels[r2 * buffer.dim + c2])

            score = score + self._predictions[t, node - self._leaves]
            alive = score > self._thresholds[t]
            if not alive.all():
                r, c, index, score = r[alive], c[alive], index[alive], score[alive]
                if index.size == 0:
                    break

        return index, score - self._thresholds[-1]


class PicoPupilCascade:
    """Pupil localization cascade: regression trees refining an eye window.

    Each stage sums (dr, dc) leaf offsets over its trees, moves the window
    center by offset * scale and shrinks the scale by a fixed multiplier.
    The search is repeated from randomly perturbed starts and the median
    row, column and scale are reported.
    """

    def __init__(
        self,
        tree_depth: int,
        scale_multiplier: float,
        codes: np.ndarray,
        predictions: np.ndarray,
        seed: int = 0,
    ) -> None:
        self.tree_depth = tree_depth
        self.stages, self.trees = codes.shape[:2]
        self._leaves = 2 ** tree_depth
        self._scale_multiplier = np.float32(scale_multiplier)
        # (stages, trees, 4 * leaves - 4) and (stages, trees, leaves, 2)
        self._codes = codes.astype(np.int64)
        self._predictions = predictions.astype(np.float32)
        self._seed = seed

    @classmethod
    def unpack(cls, packet: bytes, seed: int = 0) -> "PicoPupilCascade":
        """Decode a puploc blob.

        Raises:
            ResourceError: If the blob is truncated or its header is invalid.
        """
        try:
            stages, scale_multiplier, trees, tree_depth = _PUPIL_HEADER.unpack_from(packet, 0)
        except struct.error as e:
            raise ResourceError(f"Pupil cascade header is truncated: {e}") from e

        if not 0 < tree_depth <= 16:
            raise ResourceError(f"Pupil cascade has invalid tree depth {tree_depth}.")

        leaves = 2 ** tree_depth
        node_bytes = 4 * leaves - 4
        record = node_bytes + 8 * leaves
        pos = _PUPIL_HEADER.size
        expected = pos + stages * trees * record
        if len(packet) < expected:
            raise ResourceError(
                f"Pupil cascade is truncated: expected {expected} bytes "
                f"for {stages}x{trees} trees, got {len(packet)}."
            )

        codes = np.empty((stages, trees, node_bytes), dtype=np.int8)
        predictions = np.empty((stages, trees, leaves, 2), dtype=np.float32)

        for s in range(stages):
            for t in range(trees):
                codes[s, t] = np.frombuffer(packet, dtype=np.int8, count=node_bytes, offset=pos)
                pos += node_bytes
                predictions[s, t] = np.frombuffer(
                    packet, dtype="<f4", count=2 * leaves, offset=pos
                ).reshape(leaves, 2)
                pos += 8 * leaves

        logger.debug(
            "Unpacked pupil cascade: stages=%d, trees=%d, depth=%d",
            stages, trees, tree_depth,
        )
        return cls(tree_depth, scale_multiplier, codes, predictions, seed=seed)

    def locate(
        self,
        seed: EyeEstimate,
        buffer: SampleBuffer,
        perturbs: int,
        angle: float = 0.0,
    ) -> EyeResult:
        """Refine an eye window; returns (-1, -1, 0) when the buffer is empty."""
        if buffer.is_empty or perturbs <= 0:
            return EyeResult(row=-1, col=-1, scale=0.0)

        # A fresh generator per call keeps results reproducible.
        rng = np.random.default_rng(self._seed)
        jitter = rng.random((3, perturbs), dtype=np.float32)
        base = np.float32(seed.scale)
        half = np.float32(0.5)

        r = np.float32(seed.row) + base * np.float32(0.15) * (half - jitter[0])
        c = np.float32(seed.col) + base * np.float32(0.15) * (half - jitter[1])
        s = base * (np.float32(0.925) + np.float32(0.15) * jitter[2])

        r, c, s = self._regress(r, c, s, angle, buffer)

        mid = perturbs // 2
        return EyeResult(
            row=int(np.sort(r)[mid]),
            col=int(np.sort(c)[mid]),
            scale=float(np.sort(s)[mid]),
        )

    def _regress(self, r, c, s, angle, buffer):
        pixels = buffer.pixels
        qcos, qsin = _rotation(angle)
        cos_f, sin_f = np.float32(qcos / 256), np.float32(qsin / 256)

        for i in range(self.stages):
            dr = np.zeros(r.size, dtype=np.float32)
            dc = np.zeros(r.size, dtype=np.float32)
            ri = np.trunc(r).astype(np.int64) * 65536
            ci = np.trunc(c).astype(np.int64) * 65536
            si = np.floor(s + 0.5).astype(np.int64)
            qc, qs = si * qcos, si * qsin

            for j in range(self.trees):
                codes = self._codes[i, j]
                node = np.zeros(r.size, dtype=np.int64)
                for _ in range(self.tree_depth):
                    r1, c1, r2, c2 = _sample_points(ri, ci, codes, 4 * node, qc, qs, buffer.rows, buffer.cols)
                    node = 2 * node + 1 + (pixels[r1 * buffer.dim + c1] > pixels[r2 * buffer.dim + c2])

                leaf = self._predictions[i, j, node - (self._leaves - 1)]
                dr += leaf[:, 0]
                dc += leaf[:, 1]

            r = r + s * (cos_f * dr - sin_f * dc)
            c = c + s * (sin_f * dr + cos_f * dc)
            s = s * self._scale_multiplier

        return r, c, s
