"""
Builders for synthetic pico-format cascade blobs.

The blobs are tiny hand-built cascades whose behavior is easy to predict,
so the pipeline can be exercised without a trained model.
"""

import struct


def pack_face_cascade(trees, depth=1):
    """Pack (codes, predictions, threshold) tuples into a facefinder blob."""
    blob = bytearray(8)
    blob += struct.pack("<II", depth, len(trees))
    for codes, predictions, threshold in trees:
        blob += struct.pack(f"<{len(codes)}b", *codes)
        blob += struct.pack(f"<{len(predictions)}f", *predictions)
        blob += struct.pack("<f", threshold)
    return bytes(blob)


def pack_pupil_cascade(stages, scale_multiplier=1.0, depth=1):
    """Pack stages of (codes, flat (dr, dc) predictions) trees into a puploc blob."""
    trees = len(stages[0]) if stages else 0
    blob = bytearray(struct.pack("<IfII", len(stages), scale_multiplier, trees, depth))
    for stage in stages:
        for codes, predictions in stage:
            blob += struct.pack(f"<{len(codes)}b", *codes)
            blob += struct.pack(f"<{len(predictions)}f", *predictions)
    return bytes(blob)


# Compares a pixel with itself (always "<="), landing on the second leaf.
SAME_PIXEL = [0, 0, 0, 0]
