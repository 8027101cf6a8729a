"""Fusion + reconstruction for focus stacking.

This module picks, per level and per pixel, the Laplacian response with the
largest magnitude across the stack, averages the coarsest resolution level,
and reconstructs the final all-in-focus image from the fused pyramid.
"""

from __future__ import annotations

import logging
import os

import cv2
import numpy as np

from focus_fusion.config import DEFAULT_CONFIG, FusionConfig
from focus_fusion.errors import ShapeMismatchError, StackValidationError
from focus_fusion.grid import DetailImage, Image, PixelGrid, mean_grids
from focus_fusion.pyramids import build_pyramids_stack, shift_for_display
from focus_fusion.resample import resize_detail

MIN_STACK_SIZE = 2


def validate_stack(images: list[Image]) -> None:
    """Check that the stack can be fused.

    Raises:
        StackValidationError: If there are fewer than two images or their sizes differ.
    """
    if len(images) < MIN_STACK_SIZE:
        raise StackValidationError(
            f"At least {MIN_STACK_SIZE} images are required for fusion, got {len(images)}"
        )

    for idx, image in enumerate(images):
        if not isinstance(image, Image):
            raise StackValidationError(
                f"Stack member {idx} is a {type(image).__name__}, expected an 8-bit Image"
            )

    first = images[0]
    for idx, image in enumerate(images[1:], start=1):
        if not first.is_compatible(image):
            raise StackValidationError(
                f"Image dimensions mismatch: image {idx} is {image.width}x{image.height}, "
                f"expected {first.width}x{first.height}"
            )


def fuse_laplacian_pyramids(
    laplacian_pyramids: list[list[DetailImage]],
    output_dir: str | None = None,
) -> list[DetailImage]:
    """Fuse Laplacian pyramid levels by maximum absolute response.

    At every level and pixel the fused value is the member's detail value with
    the largest magnitude, sign preserved. On exact magnitude ties the member
    with the lowest stack index wins.

    Args:
        laplacian_pyramids: Laplacian pyramids for all images, identical shapes.
        output_dir: Optional directory to save debug visualizations.

    Returns:
        Fused Laplacian pyramid levels.

    Raises:
        ShapeMismatchError: If the pyramids differ in level count or level size.
    """
    num_images = len(laplacian_pyramids)
    if num_images == 0:
        return []

    num_levels = len(laplacian_pyramids[0])
    for pyramid in laplacian_pyramids[1:]:
        if len(pyramid) != num_levels:
            raise ShapeMismatchError(
                f"Cannot fuse pyramids with {num_levels} and {len(pyramid)} levels"
            )

    fused_laplacian = []
    for k in range(num_levels):
        reference = laplacian_pyramids[0][k]
        for pyramid in laplacian_pyramids[1:]:
            reference.check_compatible(pyramid[k], f"fuse level {k} of")

        stack = np.stack([pyramid[k].pixels for pyramid in laplacian_pyramids], axis=0)  # (N, H, W)
        # argmax returns the first index among equal magnitudes
        idx_selected = np.argmax(np.abs(stack), axis=0)
        Lk_fused = np.take_along_axis(stack, idx_selected[np.newaxis, :, :], axis=0)[0]
        fused_laplacian.append(DetailImage(Lk_fused))

        # save fused laplacian level for debugging if output_dir is provided
        if output_dir is not None:
            os.makedirs(output_dir, exist_ok=True)
            cv2.imwrite(
                os.path.join(output_dir, f"fused_laplacian_level_{k}.png"),
                shift_for_display(fused_laplacian[-1]),
            )

    return fused_laplacian


def fuse_top_level(top_levels: list[PixelGrid], output_dir: str | None = None) -> DetailImage:
    """Average the coarsest pyramid levels (lowest-frequency content) of the stack.

    Args:
        top_levels: Coarsest level of each member's resolution pyramid.
        output_dir: Optional directory to save debug visualizations.

    Returns:
        Pixelwise mean, truncated toward zero.

    Raises:
        ShapeMismatchError: If any level's size differs from the first.
    """
    fused_top = mean_grids(top_levels)

    if output_dir is not None:
        os.makedirs(output_dir, exist_ok=True)
        cv2.imwrite(
            os.path.join(output_dir, "fused_top_level.png"),
            np.clip(fused_top.pixels, 0, 255).astype(np.uint8),
        )

    return fused_top


def reconstruct_from_pyramid(
    fused_laplacian: list[DetailImage],
    fused_top: DetailImage,
    max_value: int = 255,
) -> Image:
    """Reconstruct the final image from a fused Laplacian pyramid.

    Walks from the coarsest detail level to the finest: the running result is
    resized to the level's size and the fused detail is added. The full
    resolution sum is clamped to [0, max_value].

    Args:
        fused_laplacian: Fused Laplacian levels, finest first.
        fused_top: Mean of the coarsest resolution level.
        max_value: Upper clamp bound of the output.

    Returns:
        Reconstructed 8-bit image.
    """
    current = fused_top

    for k in reversed(range(len(fused_laplacian))):
        Lk = fused_laplacian[k]
        up = resize_detail(current, Lk.width, Lk.height)
        current = up + Lk

    return current.clamp(0, max_value)


def fuse_pyramids_and_reconstruct(
    laplacian_pyramids: list[list[DetailImage]],
    top_levels: list[Image],
    max_value: int = 255,
    output_dir: str | None = None,
) -> Image:
    """Fuse pyramids and reconstruct the final image."""
    fused_laplacian = fuse_laplacian_pyramids(laplacian_pyramids, output_dir=output_dir)
    fused_top = fuse_top_level(top_levels, output_dir=output_dir)
    return reconstruct_from_pyramid(fused_laplacian, fused_top, max_value=max_value)


def fuse_stack(
    images: list[Image],
    config: FusionConfig = DEFAULT_CONFIG,
    debug_dir: str | None = None,
) -> Image:
    """Fuse a focus stack into a single all-in-focus image.

    Args:
        images: At least two 8-bit images of identical size.
        config: Pyramid and clamping parameters.
        debug_dir: Optional directory receiving every intermediate level as PNG.

    Returns:
        Fused image with the same width and height as the inputs.

    Raises:
        StackValidationError: If the stack is too small or its sizes differ.
    """
    validate_stack(images)
    logging.info("Fusing %d images of %dx%d", len(images), images[0].width, images[0].height)

    image_pyramid_dir = laplacian_pyramid_dir = fused_dir = None
    if debug_dir is not None:
        image_pyramid_dir = os.path.join(debug_dir, "image_pyramids")
        laplacian_pyramid_dir = os.path.join(debug_dir, "laplacian_pyramids")
        fused_dir = os.path.join(debug_dir, "fused_pyramid")

    _, laplacian_pyramids, top_levels = build_pyramids_stack(
        images,
        config,
        image_pyramid_dir=image_pyramid_dir,
        laplacian_pyramid_dir=laplacian_pyramid_dir,
    )
    logging.debug("Built %d detail levels per image", len(laplacian_pyramids[0]))

    fused = fuse_pyramids_and_reconstruct(
        laplacian_pyramids,
        top_levels,
        max_value=config.max_value,
        output_dir=fused_dir,
    )

    if not fused.is_compatible(images[0]):
        raise ShapeMismatchError(
            f"Reconstruction produced {fused.width}x{fused.height}, "
            f"expected {images[0].width}x{images[0].height}"
        )
    return fused
