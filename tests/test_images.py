"""Tests for data URL and aspect ratio helpers."""

import pytest

from property_stage.services.images import (
    DEFAULT_ASPECT_RATIO,
    detect_aspect_ratio,
    snap_aspect_ratio,
    split_data_url,
)
from tests.conftest import make_image_data_url


def test_split_data_url_strips_prefix() -> None:
    assert split_data_url("data:image/jpg;base64,AAAA") == ("AAAA", "image/jpeg")
    assert split_data_url("data:image/webp;base64,BBBB") == ("BBBB", "image/webp")


def test_split_data_url_sniffs_bare_base64() -> None:
    png = make_image_data_url().split(",", 1)[1]

    assert split_data_url(png) == (png, "image/png")
    assert split_data_url("abc") == ("abc", "image/jpeg")


@pytest.mark.parametrize(
    ("width", "height", "expected"),
    [
        (1000, 1000, "1:1"),
        (4032, 3024, "4:3"),
        (3024, 4032, "3:4"),
        (1920, 1080, "16:9"),
        (1080, 1920, "9:16"),
        (1500, 1000, "4:3"),
        (0, 10, DEFAULT_ASPECT_RATIO),
    ],
)
def test_snap_aspect_ratio(width: int, height: int, expected: str) -> None:
    assert snap_aspect_ratio(width, height) == expected


def test_detect_aspect_ratio_reads_real_images() -> None:
    assert detect_aspect_ratio(make_image_data_url(160, 90, fmt="JPEG")) == "16:9"


def test_detect_aspect_ratio_falls_back_on_garbage() -> None:
    assert detect_aspect_ratio("data:image/png;base64,bm90IGFuIGltYWdl") == DEFAULT_ASPECT_RATIO
    assert detect_aspect_ratio("data:image/png;base64,***") == DEFAULT_ASPECT_RATIO
