"""Bilinear resampling with align-corners coordinate mapping.

Target pixel (x, y) samples the source at
``(x * (src_w - 1) / (dst_w - 1), y * (src_h - 1) / (dst_h - 1))``, so the four
corners of the output always equal the four corners of the input.
"""

from __future__ import annotations

import logging

import numpy as np

from focus_fusion.grid import DetailImage, Image

UINT8_MAX = 255


def _sample_coordinates(source_length: int, target_length: int) -> np.ndarray:
    # Multiply before dividing so the last coordinate lands exactly on source_length - 1.
    coords = np.arange(target_length, dtype=np.float64) * (source_length - 1) / (target_length - 1)
    return np.clip(coords, 0.0, float(source_length - 1))


def bilinear_sample(source: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resample a 2D array to (height, width) as float64, without clamping.

    Args:
        source: (H, W) array of any numeric dtype.
        width: Target width, >= 2.
        height: Target height, >= 2.

    Returns:
        (height, width) float64 array of interpolated values.

    Raises:
        ValueError: If a target dimension is below 2 (the coordinate ratio is undefined).
    """
    if width < 2 or height < 2:
        raise ValueError(f"Resize targets must be at least 2x2, got {width}x{height}.")

    src_h, src_w = source.shape
    xs = _sample_coordinates(src_w, width)
    ys = _sample_coordinates(src_h, height)

    x0 = np.floor(xs).astype(np.intp)
    x1 = np.ceil(xs).astype(np.intp)
    y0 = np.floor(ys).astype(np.intp)
    y1 = np.ceil(ys).astype(np.intp)
    dx = (xs - x0)[np.newaxis, :]
    dy = (ys - y0)[:, np.newaxis]

    values = source.astype(np.float64)
    top_left = values[y0[:, np.newaxis], x0[np.newaxis, :]]
    top_right = values[y0[:, np.newaxis], x1[np.newaxis, :]]
    bottom_left = values[y1[:, np.newaxis], x0[np.newaxis, :]]
    bottom_right = values[y1[:, np.newaxis], x1[np.newaxis, :]]

    top = top_left + (top_right - top_left) * dx
    bottom = bottom_left + (bottom_right - bottom_left) * dx
    return top + (bottom - top) * dy


def resize_image(image: Image, width: int, height: int) -> Image:
    """Resize an 8-bit image; interpolated values outside [0, 255] are clamped."""
    values = bilinear_sample(image.pixels, width, height)

    drift = (values < 0) | (values > UINT8_MAX)
    if drift.any():
        logging.warning(
            "%d interpolated value(s) outside [0, %d] (range %.2f..%.2f), clamping",
            int(drift.sum()),
            UINT8_MAX,
            float(values.min()),
            float(values.max()),
        )
        values = np.clip(values, 0, UINT8_MAX)

    return Image(values.astype(np.uint8), max_value=image.max_value)


def resize_detail(detail: DetailImage, width: int, height: int) -> DetailImage:
    """Resize a signed grid; values are truncated toward zero, never clamped."""
    return DetailImage(np.trunc(bilinear_sample(detail.pixels, width, height)))
