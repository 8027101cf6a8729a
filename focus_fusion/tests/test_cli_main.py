"""Tests for the command-line entry point."""
import logging

import numpy as np
import pytest

from focus_fusion.cli_main import main
from focus_fusion.grid import Image
from focus_fusion.image_io import load_image, save_image


@pytest.fixture
def stack_dir(tmp_path, monkeypatch):
    """Two 96x80 images under ./stack/ and a stack file naming them."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "stack").mkdir()
    rng = np.random.default_rng(5)
    for name in ("near.pgm", "far.pgm"):
        pixels = rng.integers(0, 256, size=(80, 96), dtype=np.uint8)
        save_image(Image(pixels), tmp_path / "stack" / name)
    (tmp_path / "stack.txt").write_text("near.pgm\nfar.pgm\n")
    return tmp_path


def test_fuses_stack(stack_dir):
    assert main(["stack.txt"]) == 0
    result = load_image(stack_dir / "result.pgm")
    assert result.size == (96, 80)


def test_custom_output_and_workers(stack_dir):
    assert main(["stack.txt", "-o", "fused.png", "--workers", "2", "--debug-dir", "debug"]) == 0
    assert (stack_dir / "fused.png").is_file()
    assert (stack_dir / "debug" / "fused_pyramid").is_dir()


def test_extra_stack_dir(stack_dir):
    (stack_dir / "stack").rename(stack_dir / "shots")
    assert main(["stack.txt"]) == 1
    assert main(["stack.txt", "--stack-dir", "shots"]) == 0


def test_rejects_non_txt(stack_dir, caplog):
    with caplog.at_level(logging.ERROR):
        assert main(["stack.csv"]) == 1
    assert "did not end in .txt" in caplog.text


def test_missing_stack_file(stack_dir):
    assert main(["nope.txt"]) == 1


def test_not_enough_images(stack_dir, caplog):
    (stack_dir / "stack.txt").write_text("near.pgm\nmissing.pgm\n")
    with caplog.at_level(logging.ERROR):
        assert main(["stack.txt"]) == 1
    assert "only 1 files were found" in caplog.text


def test_no_images(stack_dir, caplog):
    (stack_dir / "stack.txt").write_text("missing.pgm\n")
    with caplog.at_level(logging.ERROR):
        assert main(["stack.txt"]) == 1
    assert "No valid images" in caplog.text


def test_dimension_mismatch(stack_dir, caplog):
    save_image(Image(np.zeros((80, 95), dtype=np.uint8)), stack_dir / "stack" / "small.pgm")
    (stack_dir / "stack.txt").write_text("near.pgm\nfar.pgm\nsmall.pgm\n")
    with caplog.at_level(logging.ERROR):
        assert main(["stack.txt"]) == 1
    assert "Image dimensions mismatch" in caplog.text
    assert "small.pgm" in caplog.text
    assert not (stack_dir / "result.pgm").exists()


def test_invalid_workers(stack_dir):
    assert main(["stack.txt", "--workers", "0"]) == 1
