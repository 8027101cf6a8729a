"""Focus fusion CLI entry point.

Usage:
    focus-fusion stack.txt [-o result.pgm]

`stack.txt` lists the images to combine, one path per line. Paths that do not
resolve from the working directory are looked up under `./stack/`.
"""

from __future__ import annotations

import argparse
import logging
import sys

from focus_fusion.config import FusionConfig
from focus_fusion.errors import FocusFusionError, ImageWriteError, StackValidationError
from focus_fusion.fusion import MIN_STACK_SIZE, fuse_stack
from focus_fusion.image_io import DEFAULT_SEARCH_DIRS, load_stack, read_stack_file, save_image

STACK_FILE_HELP = (
    "Text file containing the paths to the images to be combined, one per line. "
    'Paths are tried as given, then under the "./stack/" directory.'
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="focus-fusion",
        description="Fuse a stack of grayscale images into one all-in-focus image.",
    )
    parser.add_argument("stack_file", help=STACK_FILE_HELP)
    parser.add_argument("-o", "--output", default="result.pgm", help="Fused output path")
    parser.add_argument(
        "--stack-dir",
        action="append",
        default=[],
        help="Extra directory to search for stack entries (may be repeated)",
    )
    parser.add_argument("--workers", type=int, default=1, help="Threads used to build pyramids")
    parser.add_argument(
        "--debug-dir",
        default=None,
        help="[Optional] Write every pyramid level of the run to this directory",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug-level logging")
    return parser


def main(args: list[str] | None = None) -> int:
    parser = build_parser()
    opts = parser.parse_args(args)

    logging.basicConfig(level=logging.DEBUG if opts.verbose else logging.INFO)

    if not opts.stack_file.endswith(".txt"):
        parser.print_usage(sys.stderr)
        logging.error("File provided did not end in .txt: %s", opts.stack_file)
        return 1

    try:
        entries = read_stack_file(opts.stack_file)
    except OSError as e:
        logging.error("Could not read stack file: %s", e)
        return 1

    search_dirs = tuple(opts.stack_dir) + DEFAULT_SEARCH_DIRS
    images, paths = load_stack(entries, search_dirs)

    if len(images) < MIN_STACK_SIZE:
        if not images:
            logging.error("No valid images were found in the provided text file '%s'", opts.stack_file)
        else:
            logging.error(
                "Not enough valid images were found in the provided text file '%s', "
                "only %d files were found, at least %d are required.",
                opts.stack_file,
                len(images),
                MIN_STACK_SIZE,
            )
        logging.error(STACK_FILE_HELP)
        return 1

    width, height = images[0].size
    for path, image in zip(paths, images):
        if image.size != (width, height):
            logging.error(
                "Image dimensions mismatch. All images must have the same width and height. "
                "Image '%s' has dimensions %dx%d, expected %dx%d",
                path,
                image.width,
                image.height,
                width,
                height,
            )
            return 1

    try:
        config = FusionConfig(workers=opts.workers)
    except ValueError as e:
        logging.error("%s", e)
        return 1

    try:
        fused = fuse_stack(images, config, debug_dir=opts.debug_dir)
    except StackValidationError as e:
        logging.error("%s", e)
        return 1
    except FocusFusionError as e:
        logging.error("An error occurred while fusing the stack: %s", e)
        return 1

    try:
        save_image(fused, opts.output)
    except ImageWriteError as e:
        logging.error("Failed to write final image: %s", e)
        return 1

    logging.info("Saved fused image to: %s", opts.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
