"""
Shared fixtures: synthetic pico-format cascade blobs.
"""

import pytest

from cascade_blobs import SAME_PIXEL, pack_face_cascade, pack_pupil_cascade


@pytest.fixture
def accept_all_face_blob():
    """Every window scores 2.0."""
    return pack_face_cascade([(SAME_PIXEL, [-1.0, 2.0], 0.0)])


@pytest.fixture
def reject_all_face_blob():
    """Every window is rejected."""
    return pack_face_cascade([(SAME_PIXEL, [2.0, -1.0], 0.0)])


@pytest.fixture
def identity_pupil_blob():
    """Regression with zero offsets: the window stays where it starts."""
    return pack_pupil_cascade([[(SAME_PIXEL, [0.0, 0.0, 0.0, 0.0])]])


@pytest.fixture
def cascade_files(tmp_path, reject_all_face_blob, identity_pupil_blob):
    """Write a reject-everything face cascade and an identity pupil cascade."""
    face_path = tmp_path / "facefinder"
    pupil_path = tmp_path / "puploc"
    face_path.write_bytes(reject_all_face_blob)
    pupil_path.write_bytes(identity_pupil_blob)
    return face_path, pupil_path
