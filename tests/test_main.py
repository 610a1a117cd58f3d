"""
Tests for the command-line entry point.
"""

import json

import cv2
import numpy as np
import pytest

import main


@pytest.fixture
def cascade_env(monkeypatch, cascade_files):
    face_path, pupil_path = cascade_files
    monkeypatch.setenv("FACE_DETECT_CASCADE_FACE_PATH", str(face_path))
    monkeypatch.setenv("FACE_DETECT_CASCADE_PUPIL_PATH", str(pupil_path))


@pytest.fixture
def black_png(tmp_path):
    path = tmp_path / "black.png"
    cv2.imwrite(str(path), np.zeros((60, 80, 3), dtype=np.uint8))
    return path


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        main.main(["--version"])
    assert exc.value.code == 0
    assert "FaceDetect v" in capsys.readouterr().out


def test_missing_input_flag():
    assert main.main([]) == 1


def test_bad_number_is_usage_error():
    with pytest.raises(SystemExit) as exc:
        main.main(["--in", "x.jpg", "--fq", "abc"])
    assert exc.value.code == 2


def test_invalid_threshold(black_png, cascade_env):
    assert main.main(["--in", str(black_png), "--iou", "1.5"]) == 1


def test_missing_image(tmp_path, cascade_env):
    assert main.main(["--in", str(tmp_path / "absent.jpg")]) == 1


def test_missing_cascade(black_png, tmp_path, monkeypatch):
    monkeypatch.setenv("FACE_DETECT_CASCADE_FACE_PATH", str(tmp_path / "nothing"))
    assert main.main(["--in", str(black_png)]) == 1


def test_no_faces(black_png, cascade_env, capsys):
    assert main.main(["--in", str(black_png)]) == 0
    assert capsys.readouterr().out == '{"faces":[]}\n'


def test_pretty_output_same_value(black_png, cascade_env, capsys):
    assert main.main(["--in", str(black_png), "--pretty"]) == 0
    out = capsys.readouterr().out
    assert json.loads(out) == {"faces": []}


def test_debug_writes_image_in_working_dir(black_png, cascade_env, tmp_path, monkeypatch, capsys):
    workdir = tmp_path / "run"
    workdir.mkdir()
    monkeypatch.chdir(workdir)

    assert main.main(["--in", str(black_png), "--debug", "--bbox", "0,0,0.5,0.5"]) == 0

    debug = cv2.imread(str(workdir / "debug.jpg"))
    assert debug is not None
    assert debug.shape == (30, 40, 3)
    assert capsys.readouterr().out == '{"faces":[]}\n'


def test_config_file(black_png, cascade_env, tmp_path, capsys):
    config = tmp_path / "config.yaml"
    config.write_text("output:\n  pretty: true\n", encoding="utf-8")

    assert main.main(["--in", str(black_png), "--config", str(config)]) == 0

    out = capsys.readouterr().out
    assert "\n" in out.rstrip("\n")
    assert json.loads(out) == {"faces": []}


def test_huge_bbox_is_clamped(black_png, cascade_env, capsys):
    assert main.main(["--in", str(black_png), "--bbox", "0,0,1e308,1e308"]) == 0
    assert capsys.readouterr().out == '{"faces":[]}\n'
