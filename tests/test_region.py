"""
Tests for bounding box parsing and search region selection.
"""

import pytest

from facedetect.errors import ConfigError
from facedetect.region import NormalizedBox, PixelRegion, parse_bounding_box, select_region


def test_parse_default_whole_image():
    assert parse_bounding_box("0,0,1,1") == NormalizedBox(0.0, 0.0, 1.0, 1.0)


def test_parse_trims_quotes_and_whitespace():
    assert parse_bounding_box("'0.25, 0.5 ,0.5,0.25'") == NormalizedBox(0.25, 0.5, 0.5, 0.25)
    assert parse_bounding_box('"0.1,0.2,0.3,0.4"') == NormalizedBox(0.1, 0.2, 0.3, 0.4)


def test_parse_falls_back_per_component():
    """Bad or missing components keep their default, not zero."""
    assert parse_bounding_box("0.5,abc") == NormalizedBox(0.5, 0.0, 1.0, 1.0)
    assert parse_bounding_box("x,y,oops,0.5") == NormalizedBox(0.0, 0.0, 1.0, 0.5)
    assert parse_bounding_box("") == NormalizedBox()
    assert parse_bounding_box("0.1,0.1,nan,inf") == NormalizedBox(0.1, 0.1, 1.0, 1.0)


def test_parse_ignores_extra_components():
    assert parse_bounding_box("0.1,0.2,0.3,0.4,0.5,0.6") == NormalizedBox(0.1, 0.2, 0.3, 0.4)


def test_select_whole_image():
    region = select_region(NormalizedBox(), 640, 480)
    assert region == PixelRegion(0, 0, 640, 480)
    assert region.offset == (0, 0)


def test_select_floors_coordinates():
    region = select_region(NormalizedBox(0.25, 0.1, 0.5, 0.5), 101, 51)
    assert region == PixelRegion(25, 5, 75, 30)
    assert region.width == 50
    assert region.height == 25


@pytest.mark.parametrize("box", [
    (0.5, 0.5, 1.0, 1.0),
    (-0.5, -0.5, 2.0, 2.0),
    (0.9, 0.0, 0.5, 1.5),
    (1.5, 1.5, 0.5, 0.5),
])
def test_select_clamps_to_image_bounds(box):
    """The region never leaves [0, W] x [0, H]."""
    region = select_region(box, 200, 100)
    assert 0 <= region.x1 <= region.x2 <= 200
    assert 0 <= region.y1 <= region.y2 <= 100


def test_select_overflowing_box():
    assert select_region((0.5, 0.5, 1.0, 1.0), 200, 100) == PixelRegion(100, 50, 200, 100)


def test_select_zero_area():
    """Zero width or height gives an empty region, not an error."""
    assert select_region((0.2, 0.0, 0.0, 1.0), 100, 100).is_empty
    assert select_region((0.0, 0.3, 1.0, 0.0), 100, 100).is_empty


def test_select_inverted_box_collapses():
    region = select_region((0.8, 0.0, -0.5, 1.0), 100, 100)
    assert region.is_empty
    assert region.width == 0


def test_select_requires_four_components():
    with pytest.raises(ConfigError, match="four values"):
        select_region((0.0, 0.0, 1.0), 100, 100)


@pytest.mark.parametrize("bbox, expected", [
    ("0,0,1e308,1", PixelRegion(0, 0, 640, 480)),
    ("0,0,1e308,1e308", PixelRegion(0, 0, 640, 480)),
    ("1e308,1e308,1,1", PixelRegion(640, 480, 640, 480)),
    ("-1e308,0,1,1", PixelRegion(0, 0, 0, 480)),
    ("1e308,0,1e308,1", PixelRegion(640, 0, 640, 480)),
])
def test_select_huge_components_are_clamped(bbox, expected):
    """Finite but enormous components clamp instead of overflowing."""
    assert select_region(parse_bounding_box(bbox), 640, 480) == expected
