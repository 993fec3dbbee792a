#!/usr/bin/env python3
"""Configuration dataclass for the colorsearch pipeline."""

from __future__ import annotations

import multiprocessing
import os
from dataclasses import dataclass
from pathlib import Path

# Maximum bin index; bin count is DEPTH + 1
DEPTH = 255
TOP_K = 5
NUM_WORKERS = 5
IMAGE_EXTENSION = ".jpg"

# 16-bit channel samples are reduced to 8 bits before binning
QUANTIZE_SHIFT = 8


@dataclass
class SearchConfig:
    """Settings for one similarity search run."""

    # Required Settings
    query_path: Path
    dataset_dir: Path

    # Algorithm Settings
    depth: int = DEPTH
    top_k: int = TOP_K

    # Concurrency Settings
    num_workers: int | None = NUM_WORKERS  # None = one per CPU core
    start_method: str | None = None  # None = platform default

    # Candidate filter (case sensitive suffix match)
    extension: str = IMAGE_EXTENSION

    show_progress: bool = False

    def __post_init__(self) -> None:
        """Normalize paths and resolve the worker count."""
        self.query_path = Path(self.query_path)
        self.dataset_dir = Path(self.dataset_dir)
        if self.num_workers is None:
            self.num_workers = os.cpu_count() or 1

    @property
    def bin_count(self) -> int:
        """Number of histogram bins.

        Returns:
            depth + 1.
        """
        return self.depth + 1

    def validate(self) -> None:
        """Validate configuration parameters.

        Raises:
            ValueError: If any parameter is invalid.
        """
        if self.depth <= 0:
            msg = f"depth must be positive, got {self.depth}"
            raise ValueError(msg)
        if self.top_k <= 0:
            msg = f"top_k must be positive, got {self.top_k}"
            raise ValueError(msg)
        if self.num_workers is None or self.num_workers <= 0:
            msg = f"num_workers must be positive, got {self.num_workers}"
            raise ValueError(msg)
        if not self.extension:
            msg = "extension must not be empty"
            raise ValueError(msg)
        if (self.start_method is not None
                and self.start_method not in multiprocessing.get_all_start_methods()):
            msg = f"unsupported start method: {self.start_method}"
            raise ValueError(msg)
