"""Resolution / approximation / Laplacian pyramids for focus fusion.

Every level is produced with the align-corners bilinear resampler. The
"approximation" of level k is level k+1 resized back up to level k's size;
it stands in for a low-pass filtered copy of level k, so no Gaussian blur is
applied anywhere.

References:
    Burt & Adelson (1983): The Laplacian Pyramid as a Compact Image Code.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor

import cv2
import numpy as np

from focus_fusion.config import DEFAULT_CONFIG, FusionConfig
from focus_fusion.errors import ShapeMismatchError
from focus_fusion.grid import DetailImage, Image
from focus_fusion.resample import resize_image


def max_divisions(width: int, height: int, min_dimension: int = 40, shrink_factor: int = 2) -> int:
    """Number of times the image can shrink before its smaller side drops below `min_dimension`.

    Equals ``floor(log_F(min(width, height) / T))`` clamped to 0, computed with
    integers so that exact powers (e.g. 320 / 40 = 2**3) are not lost to
    floating point rounding.
    """
    smallest = min(width, height)
    divisions = 0
    while min_dimension * shrink_factor ** (divisions + 1) <= smallest:
        divisions += 1
    return divisions


def build_image_pyramid(image: Image, divisions: int, shrink_factor: int = 2) -> list[Image]:
    """Build a resolution pyramid [P0, P1, ..., P_divisions].

    Level i is the original resized to ``floor(W / F**i) x floor(H / F**i)``;
    each level is resampled from the full-resolution image, not from its parent.
    """
    pyramid = [image]
    for level in range(1, divisions + 1):
        scale = shrink_factor**level
        pyramid.append(resize_image(image, image.width // scale, image.height // scale))

    return pyramid


def build_approximation_pyramid(pyramid: list[Image]) -> list[Image]:
    """Resize each level k+1 back up to the size of level k."""
    return [
        resize_image(pyramid[k + 1], pyramid[k].width, pyramid[k].height)
        for k in range(len(pyramid) - 1)
    ]


def build_laplacian_pyramid(pyramid: list[Image], approximations: list[Image]) -> list[DetailImage]:
    """Detail levels ``L_k = P_k - A_k`` in signed integers.

    Raises:
        ShapeMismatchError: If the level counts or any level sizes disagree.
    """
    if len(approximations) != len(pyramid) - 1:
        raise ShapeMismatchError(
            f"Expected {len(pyramid) - 1} approximation levels, got {len(approximations)}"
        )

    return [level - approximation for level, approximation in zip(pyramid, approximations)]


def _decompose(image: Image, divisions: int, shrink_factor: int) -> tuple[list[Image], list[DetailImage]]:
    pyramid = build_image_pyramid(image, divisions, shrink_factor)
    approximations = build_approximation_pyramid(pyramid)
    return pyramid, build_laplacian_pyramid(pyramid, approximations)


def build_pyramids_stack(
    images: list[Image],
    config: FusionConfig = DEFAULT_CONFIG,
    image_pyramid_dir: str | None = None,
    laplacian_pyramid_dir: str | None = None,
) -> tuple[list[list[Image]], list[list[DetailImage]], list[Image]]:
    """Build resolution and Laplacian pyramids for each image in a stack.

    The division count is derived from the first image and shared by every
    member, so all pyramids have the same number of levels and the same
    size at each level.

    Args:
        images: Stack members, all of the same size.
        config: Shrink factor, floor size and worker count.
        image_pyramid_dir: Optional directory to dump every resolution level as PNG.
        laplacian_pyramid_dir: Optional directory to dump every detail level as PNG.

    Returns:
        (image_pyramids, laplacian_pyramids, top_levels), indexed by stack member.
    """
    if not images:
        return [], [], []

    divisions = max_divisions(
        images[0].width, images[0].height, config.min_dimension, config.shrink_factor
    )
    logging.debug(
        "Building %d-level pyramids for %d images (%dx%d)",
        divisions + 1,
        len(images),
        images[0].width,
        images[0].height,
    )

    # Members are independent; the executor's map() is the join before fusion.
    if config.workers > 1:
        with ThreadPoolExecutor(max_workers=config.workers) as executor:
            results = list(
                executor.map(lambda image: _decompose(image, divisions, config.shrink_factor), images)
            )
    else:
        results = [_decompose(image, divisions, config.shrink_factor) for image in images]

    image_pyramids = [pyramid for pyramid, _ in results]
    laplacian_pyramids = [laplacian for _, laplacian in results]
    top_levels = [pyramid[-1] for pyramid in image_pyramids]

    # save pyramids if directories are provided
    if image_pyramid_dir is not None:
        for i, pyramid in enumerate(image_pyramids):
            image_dir = os.path.join(image_pyramid_dir, f"image_{i:03d}")
            os.makedirs(image_dir, exist_ok=True)
            for k, level in enumerate(pyramid):
                cv2.imwrite(os.path.join(image_dir, f"level_{k:02d}.png"), level.pixels.copy())

    if laplacian_pyramid_dir is not None:
        for i, laplacian in enumerate(laplacian_pyramids):
            image_dir = os.path.join(laplacian_pyramid_dir, f"image_{i:03d}")
            os.makedirs(image_dir, exist_ok=True)
            for k, level in enumerate(laplacian):
                cv2.imwrite(os.path.join(image_dir, f"level_{k:02d}.png"), shift_for_display(level))

    return image_pyramids, laplacian_pyramids, top_levels


def shift_for_display(detail: DetailImage) -> np.ndarray:
    """Map a signed detail level to uint8 with zero at mid-gray."""
    return np.clip(detail.pixels + 128, 0, 255).astype(np.uint8)
