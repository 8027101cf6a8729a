"""Named parameters for pyramid construction and output clamping."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FusionConfig:
    """Parameters shared by every stage of one fusion run.

    Attributes:
        shrink_factor: Per-level size divisor between consecutive pyramid levels.
        min_dimension: The coarsest level's smaller side never drops below this.
        max_value: Largest output intensity; results are clamped to [0, max_value].
        workers: Number of threads used to build per-image pyramids (1 = sequential).
    """

    shrink_factor: int = 2
    min_dimension: int = 40
    max_value: int = 255
    workers: int = 1

    def __post_init__(self) -> None:
        if not isinstance(self.shrink_factor, int) or self.shrink_factor < 2:
            raise ValueError(f"`shrink_factor` must be an integer >= 2, got {self.shrink_factor!r}.")
        # Levels are resampled with align-corners bilinear, which needs >= 2 samples per axis.
        if self.min_dimension < 2:
            raise ValueError(f"`min_dimension` must be >= 2, got {self.min_dimension}.")
        if not 1 <= self.max_value <= 255:
            raise ValueError(f"`max_value` must be within [1, 255], got {self.max_value}.")
        if self.workers < 1:
            raise ValueError(f"`workers` must be >= 1, got {self.workers}.")


DEFAULT_CONFIG = FusionConfig()
