"""Tests for resolution, approximation and Laplacian pyramids."""
import os

import numpy as np
import pytest

from focus_fusion.config import FusionConfig
from focus_fusion.errors import ShapeMismatchError
from focus_fusion.grid import Image
from focus_fusion.pyramids import (
    build_approximation_pyramid,
    build_image_pyramid,
    build_laplacian_pyramid,
    build_pyramids_stack,
    max_divisions,
)


def random_image(width, height, seed=0):
    rng = np.random.default_rng(seed)
    return Image(rng.integers(0, 256, size=(height, width), dtype=np.uint8))


@pytest.mark.parametrize(
    "width,height,min_dimension,expected",
    [
        (320, 320, 40, 3),
        (319, 320, 40, 2),
        (640, 80, 40, 1),
        (79, 500, 40, 0),
        (30, 30, 40, 0),
        (100, 90, 10, 3),
        (4, 4, 2, 1),
    ],
)
def test_max_divisions(width, height, min_dimension, expected):
    assert max_divisions(width, height, min_dimension=min_dimension, shrink_factor=2) == expected


def test_max_divisions_other_factor():
    # 40 * 3**2 = 360 <= 400 < 40 * 3**3
    assert max_divisions(400, 400, min_dimension=40, shrink_factor=3) == 2


def test_pyramid_depth_320():
    image = random_image(320, 320)
    divisions = max_divisions(image.width, image.height)
    pyramid = build_image_pyramid(image, divisions)
    assert [level.size for level in pyramid] == [(320, 320), (160, 160), (80, 80), (40, 40)]
    assert pyramid[0] is image


def test_pyramid_sizes_round_down():
    image = random_image(331, 250)
    pyramid = build_image_pyramid(image, max_divisions(image.width, image.height))
    assert [level.size for level in pyramid] == [(331, 250), (165, 125), (82, 62)]


def test_zero_divisions_is_single_level():
    image = random_image(30, 30)
    assert build_image_pyramid(image, 0) == [image]
    assert build_approximation_pyramid([image]) == []


def test_approximations_match_parent_sizes():
    pyramid = build_image_pyramid(random_image(200, 120), 2)
    approximations = build_approximation_pyramid(pyramid)
    assert len(approximations) == 2
    for level, approximation in zip(pyramid, approximations):
        assert approximation.size == level.size


def test_laplacian_is_level_minus_approximation():
    pyramid = build_image_pyramid(random_image(200, 120), 2)
    approximations = build_approximation_pyramid(pyramid)
    laplacian = build_laplacian_pyramid(pyramid, approximations)
    assert len(laplacian) == 2
    for level, approximation, detail in zip(pyramid, approximations, laplacian):
        expected = level.pixels.astype(np.int64) - approximation.pixels.astype(np.int64)
        np.testing.assert_array_equal(detail.pixels, expected)
    assert laplacian[0].pixels.min() < 0


def test_flat_image_has_no_detail():
    image = Image(np.full((90, 120), 77, dtype=np.uint8))
    pyramid = build_image_pyramid(image, 1)
    laplacian = build_laplacian_pyramid(pyramid, build_approximation_pyramid(pyramid))
    assert not laplacian[0].pixels.any()


def test_laplacian_rejects_inconsistent_inputs():
    pyramid = build_image_pyramid(random_image(200, 120), 2)
    approximations = build_approximation_pyramid(pyramid)
    with pytest.raises(ShapeMismatchError):
        build_laplacian_pyramid(pyramid, approximations[:1])
    with pytest.raises(ShapeMismatchError):
        build_laplacian_pyramid(pyramid, approximations[::-1])


def test_stack_pyramids_share_shape():
    images = [random_image(160, 100, seed=i) for i in range(3)]
    image_pyramids, laplacian_pyramids, top_levels = build_pyramids_stack(images)
    assert len(image_pyramids) == len(laplacian_pyramids) == len(top_levels) == 3
    shapes = [[level.size for level in pyramid] for pyramid in laplacian_pyramids]
    assert shapes[0] == shapes[1] == shapes[2] == [(160, 100)]
    assert all(top.size == (80, 50) for top in top_levels)


def test_workers_match_sequential():
    images = [random_image(160, 160, seed=i) for i in range(4)]
    _, sequential, _ = build_pyramids_stack(images, FusionConfig(workers=1))
    _, threaded, _ = build_pyramids_stack(images, FusionConfig(workers=3))
    for a, b in zip(sequential, threaded):
        for level_a, level_b in zip(a, b):
            np.testing.assert_array_equal(level_a.pixels, level_b.pixels)


def test_debug_dumps(tmp_path):
    images = [random_image(100, 100, seed=i) for i in range(2)]
    build_pyramids_stack(
        images,
        image_pyramid_dir=str(tmp_path / "image"),
        laplacian_pyramid_dir=str(tmp_path / "laplacian"),
    )
    assert os.path.isfile(tmp_path / "image" / "image_001" / "level_01.png")
    assert os.path.isfile(tmp_path / "laplacian" / "image_000" / "level_00.png")
    assert not os.path.exists(tmp_path / "laplacian" / "image_000" / "level_01.png")


def test_empty_stack():
    assert build_pyramids_stack([]) == ([], [], [])
