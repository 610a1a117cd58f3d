"""
Tests for JSON serialization and output routing.
"""

import io
import json

import numpy as np
import pytest

from facedetect.config import OutputConfig
from facedetect.detection import FaceResult, FoundFaces, Location
from facedetect.errors import ResourceError
from facedetect.output_handler import OutputHandler
from facedetect.serializer import save_json, to_json

FOUND = FoundFaces((
    FaceResult(
        face=Location(120, 80, 64),
        left_eye=Location(108, 75, 16),
        right_eye=None,
        quality=12.345678,
    ),
))


def test_compact_json_layout():
    assert to_json(FOUND) == (
        '{"faces":[{"face":{"cx":120,"cy":80,"size":64},'
        '"lefteye":{"cx":108,"cy":75,"size":16},"quality":12.3457}]}'
    )


def test_empty_result():
    assert to_json(FoundFaces()) == '{"faces":[]}'


def test_pretty_changes_whitespace_only():
    pretty = to_json(FOUND, pretty=True)
    compact = to_json(FOUND)

    assert "\n" in pretty
    assert json.loads(pretty) == json.loads(compact)
    assert "".join(pretty.split()) == compact


def test_absent_eyes_are_omitted_not_null():
    payload = json.loads(to_json(FOUND))
    face = payload["faces"][0]
    assert "righteye" not in face
    assert None not in face.values()


def test_save_json(tmp_path):
    out = tmp_path / "nested" / "faces.json"
    save_json(FOUND, str(out))
    assert json.loads(out.read_text(encoding="utf-8")) == FOUND.to_dict()


def test_output_handler_emits_one_line():
    stream = io.StringIO()
    OutputHandler(OutputConfig(), stream=stream).emit(FOUND)
    assert stream.getvalue() == to_json(FOUND) + "\n"


def test_output_handler_skips_empty_debug_image(tmp_path):
    path = tmp_path / "debug.jpg"
    handler = OutputHandler(OutputConfig(debug_path=str(path)))
    handler.save_debug_image(np.zeros((0, 0, 3), dtype=np.uint8))
    assert not path.exists()


def test_output_handler_writes_debug_image(tmp_path):
    path = tmp_path / "debug.jpg"
    handler = OutputHandler(OutputConfig(debug_path=str(path)))
    handler.save_debug_image(np.full((32, 48, 3), 127, dtype=np.uint8))
    assert path.is_file()
    assert path.read_bytes()[:2] == b"\xff\xd8"


def test_output_handler_unwritable_debug_path(tmp_path):
    handler = OutputHandler(OutputConfig(debug_path=str(tmp_path / "missing" / "debug.jpg")))
    with pytest.raises(ResourceError):
        handler.save_debug_image(np.full((8, 8, 3), 127, dtype=np.uint8))
