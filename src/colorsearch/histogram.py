"""Color histogram construction and histogram intersection.

Red, green and blue samples are quantized from 16 bits to 8 (v >> 8) and
counted in one shared set of depth + 1 bins, so an image of W x H pixels
contributes 3 * W * H samples. Quantized values above depth are clamped
into the last bin.
"""

import logging
from collections.abc import Sequence
from pathlib import Path

import numpy as np
import numpy.typing as npt

from .config import DEPTH, QUANTIZE_SHIFT
from .models import Histogram
from .pixels import read_pixels

logger = logging.getLogger(__name__)

# Returned by intersection_distance for histograms of different length
LENGTH_MISMATCH = -1


def histogram_from_pixels(
    name: str, rgba: npt.NDArray[np.uint16], depth: int = DEPTH
) -> Histogram:
    """Build a histogram from an RGBA pixel grid.

    Args:
        name: Identity of the image (its path).
        rgba: Array of shape (height, width, 4) with 16-bit samples.
        depth: Maximum bin index.

    Returns:
        Histogram with depth + 1 bins.
    """
    height, width = rgba.shape[:2]
    samples = rgba[:, :, :3].ravel() >> QUANTIZE_SHIFT
    quantized = np.minimum(samples, depth).astype(np.intp)
    bins = np.bincount(quantized, minlength=depth + 1)
    return Histogram(
        name=name,
        bins=tuple(int(count) for count in bins),
        width=width,
        height=height,
    )


def compute_histogram(image_path: str | Path, depth: int = DEPTH) -> Histogram:
    """Decode an image file and compute its color histogram.

    Args:
        image_path: Path to the image file.
        depth: Maximum bin index.

    Returns:
        Histogram named after image_path.

    Raises:
        OpenFailedError: If the file cannot be read.
        DecodeFailedError: If the file is not a decodable image.
    """
    rgba = read_pixels(image_path)
    histogram = histogram_from_pixels(str(image_path), rgba, depth)
    logger.debug(f"Histogram for {image_path}: {histogram.width}x{histogram.height}")
    return histogram


def intersection_distance(hist1: Sequence[int], hist2: Sequence[int]) -> int:
    """Histogram intersection: sum of bin-wise minima.

    Higher values mean more similar. Symmetric, and bounded above by
    min(sum(hist1), sum(hist2)).

    Args:
        hist1: First bin vector.
        hist2: Second bin vector.

    Returns:
        The intersection, or LENGTH_MISMATCH if the lengths differ.
    """
    if len(hist1) != len(hist2):
        return LENGTH_MISMATCH
    return sum(min(a, b) for a, b in zip(hist1, hist2, strict=True))
