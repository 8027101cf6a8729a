"""Loading and saving grayscale pixel maps (PGM or anything OpenCV decodes).

Also reads the plain-text stack files that list one image path per line.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import cv2

from focus_fusion.errors import ImageReadError, ImageWriteError
from focus_fusion.grid import Image

DEFAULT_SEARCH_DIRS = ("stack",)


def load_image(path: str | os.PathLike) -> Image:
    """Decode an image file as 8-bit grayscale.

    Raises:
        ImageReadError: If the file is missing or cannot be decoded.
    """
    path = Path(path)
    if not path.is_file():
        raise ImageReadError(f"No such image file: {path}")

    pixels = cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)
    if pixels is None:
        raise ImageReadError(f"Could not decode image: {path}")

    return Image(pixels)


def save_image(image: Image, path: str | os.PathLike) -> None:
    """Encode an image; the format follows the file extension (e.g. `.pgm`).

    Raises:
        ImageWriteError: If OpenCV cannot encode or write the file.
    """
    try:
        written = cv2.imwrite(str(path), image.pixels.copy())
    except cv2.error as e:
        raise ImageWriteError(f"Failed to write {path}: {e}") from e
    if not written:
        raise ImageWriteError(f"Failed to write {path}")


def read_stack_file(path: str | os.PathLike) -> list[str]:
    """Return the image paths listed in a stack file, one per non-blank line."""
    with open(path, "r") as f:
        return [line.strip() for line in f if line.strip()]


def resolve_image_path(entry: str, search_dirs: tuple[str, ...] = DEFAULT_SEARCH_DIRS) -> Path | None:
    """Find the file an entry of a stack file refers to.

    The entry is tried as given (relative to the working directory, or
    absolute), then under each search directory in order.
    """
    for candidate in candidate_paths(entry, search_dirs):
        if candidate.is_file():
            return candidate
    return None


def candidate_paths(entry: str, search_dirs: tuple[str, ...] = DEFAULT_SEARCH_DIRS) -> list[Path]:
    """Locations an entry may refer to, in lookup order."""
    candidates = [Path(entry)]
    candidates.extend(Path(directory) / entry.lstrip("/\\") for directory in search_dirs)
    return candidates


def load_stack(
    entries: list[str],
    search_dirs: tuple[str, ...] = DEFAULT_SEARCH_DIRS,
) -> tuple[list[Image], list[str]]:
    """Load every image of a stack that can be found and decoded.

    Unreadable entries are logged and skipped, so the result may be shorter
    than `entries`.

    Returns:
        (images, paths) for the successfully loaded entries, in input order.
    """
    images: list[Image] = []
    paths: list[str] = []
    for entry in entries:
        existing = [path for path in candidate_paths(entry, search_dirs) if path.is_file()]
        if not existing:
            logging.error("Error loading image '%s': not found (searched %s)", entry, ", ".join(search_dirs))
            continue

        # A file that exists but fails to decode falls through to the next location.
        for path in existing:
            try:
                image = load_image(path)
            except ImageReadError as e:
                logging.debug("Could not load '%s' from %s: %s", entry, path, e)
                continue
            images.append(image)
            paths.append(str(path))
            logging.debug("Loaded %s (%dx%d)", path, image.width, image.height)
            break
        else:
            logging.error("Error loading image '%s': no readable image at %s", entry, ", ".join(map(str, existing)))

    return images, paths
