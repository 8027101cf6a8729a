"""Focus fusion: all-in-focus composites from a stack of grayscale images.

Each image is decomposed into a bilinear Laplacian pyramid, the strongest
detail at every level and pixel is kept, the coarsest level is averaged, and
the fused pyramid is collapsed back to full resolution.
"""

from focus_fusion.config import DEFAULT_CONFIG, FusionConfig
from focus_fusion.errors import (
    FocusFusionError,
    ImageReadError,
    ImageWriteError,
    ShapeMismatchError,
    StackValidationError,
)
from focus_fusion.fusion import (
    fuse_laplacian_pyramids,
    fuse_stack,
    fuse_top_level,
    reconstruct_from_pyramid,
)
from focus_fusion.grid import DetailImage, Image, PixelGrid
from focus_fusion.image_io import load_image, save_image
from focus_fusion.pyramids import (
    build_approximation_pyramid,
    build_image_pyramid,
    build_laplacian_pyramid,
    build_pyramids_stack,
    max_divisions,
)
from focus_fusion.resample import resize_detail, resize_image

__all__ = [
    "DEFAULT_CONFIG",
    "FusionConfig",
    "FocusFusionError",
    "ImageReadError",
    "ImageWriteError",
    "ShapeMismatchError",
    "StackValidationError",
    "fuse_laplacian_pyramids",
    "fuse_stack",
    "fuse_top_level",
    "reconstruct_from_pyramid",
    "DetailImage",
    "Image",
    "PixelGrid",
    "load_image",
    "save_image",
    "build_approximation_pyramid",
    "build_image_pyramid",
    "build_laplacian_pyramid",
    "build_pyramids_stack",
    "max_divisions",
    "resize_detail",
    "resize_image",
]
