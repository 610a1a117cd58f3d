"""
Postprocessing for the face detection pipeline.

Responsibility:
    Merge overlapping raw cascade windows into one candidate per face and
    keep only candidates that pass the quality and size thresholds.

Non-goals:
    - No drawing, saving, or display logic.
    - No coordinate remapping (candidates stay in sample-buffer space).

Clustering rule:
    Detections are visited in a total order (score descending, then row,
    col, scale). Each unassigned detection seeds a cluster that absorbs
    every later unassigned detection whose square overlaps the seed with
    IoU >= threshold. A cluster reports the integer mean row, col and
    scale of its members and the sum of their scores. Passes repeat until
    no two clusters overlap, so the result is independent of input order
    and re-clustering it changes nothing.
"""

import logging
from typing import Iterable, List, Sequence

from facedetect.detection import AcceptedFace

logger = logging.getLogger(__name__)


def intersection_over_union(a, b) -> float:
    """IoU of two squares centered at (col, row) with side ``scale``."""
    r1, c1, s1 = float(a.row), float(a.col), float(a.scale)
    r2, c2, s2 = float(b.row), float(b.col), float(b.scale)

    over_row = max(0.0, min(r1 + s1 / 2, r2 + s2 / 2) - max(r1 - s1 / 2, r2 - s2 / 2))
    over_col = max(0.0, min(c1 + s1 / 2, c2 + s2 / 2) - max(c1 - s1 / 2, c2 - s2 / 2))
    overlap = over_row * over_col
    union = s1 * s1 + s2 * s2 - overlap
    if union <= 0.0:
        return 0.0
    return overlap / union


def _order_key(det):
    return (-det.score, det.row, det.col, det.scale)


def _merge_pass(detections: Sequence[AcceptedFace], iou_threshold: float) -> List[AcceptedFace]:
    assigned = [False] * len(detections)
    clusters: List[AcceptedFace] = []

    for i, seed in enumerate(detections):
        if assigned[i]:
            continue
        rows = cols = scales = count = 0
        score = 0.0
        for j in range(i, len(detections)):
            if assigned[j]:
                continue
            other = detections[j]
            if intersection_over_union(seed, other) >= iou_threshold:
                assigned[j] = True
                rows += other.row
                cols += other.col
                scales += other.scale
                score += other.score
                count += 1
        clusters.append(AcceptedFace(
            row=rows // count,
            col=cols // count,
            scale=scales // count,
            score=score,
        ))

    return clusters


def cluster_detections(detections: Iterable, iou_threshold: float) -> List[AcceptedFace]:
    """Merge overlapping detections into one candidate per face.

    Args:
        detections: RawDetection or AcceptedFace objects (anything with
                    row, col, scale and score).
        iou_threshold: Overlap ratio in (0, 1) at which two windows are
                       considered the same face.

    Returns:
        Clustered candidates, sorted by descending score. Empty input
        yields an empty list.
    """
    current = sorted(
        (AcceptedFace(row=d.row, col=d.col, scale=d.scale, score=d.score) for d in detections),
        key=_order_key,
    )
    total = len(current)

    while current:
        merged = sorted(_merge_pass(current, iou_threshold), key=_order_key)
        if len(merged) == len(current):
            break
        current = merged

    logger.debug("Clustered %d raw detections into %d candidates", total, len(current))
    return current


def meets_size(face: AcceptedFace, size_threshold: float) -> bool:
    """True when the face scale reaches the whole-pixel part of size_threshold."""
    return face.scale >= int(size_threshold)


def filter_faces(
    candidates: Iterable[AcceptedFace],
    quality_threshold: float,
    size_threshold: float,
) -> List[AcceptedFace]:
    """Keep candidates with score >= quality_threshold and scale >= int(size_threshold).

    Rejected candidates are dropped silently. Input order is preserved.
    """
    return [
        face for face in candidates
        if face.score >= quality_threshold and meets_size(face, size_threshold)
    ]
