"""
Tests for image acquisition.
"""

import cv2
import numpy as np
import pytest

from facedetect.errors import ResourceError
from facedetect.input_handler import load_image


def test_load_png(tmp_path):
    path = tmp_path / "gray.png"
    cv2.imwrite(str(path), np.full((12, 20, 3), 99, dtype=np.uint8))

    image = load_image(str(path))

    assert image.shape == (12, 20, 3)
    assert image.dtype == np.uint8
    assert int(image[0, 0, 0]) == 99


def test_missing_file(tmp_path):
    with pytest.raises(ResourceError, match="not found"):
        load_image(str(tmp_path / "nope.jpg"))


def test_unsupported_extension(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello", encoding="utf-8")
    with pytest.raises(ResourceError, match="extension"):
        load_image(str(path))


def test_undecodable_image(tmp_path):
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"not really a jpeg")
    with pytest.raises(ResourceError, match="decode"):
        load_image(str(path))
