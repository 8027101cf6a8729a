"""Exceptions raised by the focus fusion pipeline."""

from __future__ import annotations


class FocusFusionError(Exception):
    """Base class for all focus fusion errors."""


class StackValidationError(FocusFusionError, ValueError):
    """The input stack cannot be fused (too few images, mismatched sizes, wrong dtype)."""


class ShapeMismatchError(FocusFusionError, ValueError):
    """Two grids that must share a shape do not.

    Raised from grid arithmetic on values the pipeline produced itself, so it
    signals a logic defect rather than bad input.
    """


class ImageReadError(FocusFusionError, OSError):
    """An image file is missing or could not be decoded."""


class ImageWriteError(FocusFusionError, OSError):
    """An image could not be encoded or written."""
