"""Image decoding to 16-bit RGBA pixel grids."""

from pathlib import Path
from typing import Any

import cv2
import numpy as np
import numpy.typing as npt

from .errors import DecodeFailedError, OpenFailedError

# 8-bit samples are widened so that v * 257 >> 8 == v
_WIDEN_8_TO_16 = 257
_RGBA_CHANNELS = 4
_GRAYSCALE_NDIM = 2

_TO_RGBA = {
    1: cv2.COLOR_GRAY2RGBA,
    3: cv2.COLOR_BGR2RGBA,
    4: cv2.COLOR_BGRA2RGBA,
}


def to_rgba16(img: npt.NDArray[Any]) -> npt.NDArray[np.uint16]:
    """Convert a decoded OpenCV image to an RGBA grid of 16-bit samples.

    Args:
        img: Image as returned by cv2.imdecode (grayscale, BGR or BGRA,
            8 or 16 bits per sample).

    Returns:
        Array of shape (height, width, 4), channel order R, G, B, A,
        values in [0, 65535].

    Raises:
        ValueError: If the sample type or channel layout is unsupported.
    """
    if img.dtype == np.uint8:
        scale = _WIDEN_8_TO_16
    elif img.dtype == np.uint16:
        scale = 1
    else:
        msg = f"unsupported sample type {img.dtype}"
        raise ValueError(msg)

    channels = 1 if img.ndim == _GRAYSCALE_NDIM else img.shape[2]
    if channels not in _TO_RGBA:
        msg = f"unsupported channel count {channels}"
        raise ValueError(msg)

    height, width = img.shape[:2]
    if height == 0 or width == 0:
        return np.zeros((height, width, _RGBA_CHANNELS), dtype=np.uint16)

    if img.ndim > _GRAYSCALE_NDIM and channels == 1:
        img = img[:, :, 0]

    rgba = cv2.cvtColor(img, _TO_RGBA[channels]).astype(np.uint16)
    if scale != 1:
        rgba *= np.uint16(scale)
    return rgba


def read_pixels(path: str | Path) -> npt.NDArray[np.uint16]:
    """Read and decode an image file into a 16-bit RGBA pixel grid.

    Args:
        path: Path to the image file.

    Returns:
        Array of shape (height, width, 4) with values in [0, 65535].

    Raises:
        OpenFailedError: If the file cannot be opened or read.
        DecodeFailedError: If the contents are empty or not a decodable image.
    """
    path = Path(path)
    try:
        with path.open("rb") as f:
            data = f.read()
    except OSError as e:
        raise OpenFailedError(str(path), e.strerror or str(e)) from e

    if not data:
        raise DecodeFailedError(str(path), "empty file")

    buf = np.frombuffer(data, dtype=np.uint8)
    try:
        img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise DecodeFailedError(str(path), f"decoder error: {e}") from e

    if img is None:
        raise DecodeFailedError(str(path), "unsupported or corrupt image data")

    try:
        return to_rgba16(img)
    except ValueError as e:
        raise DecodeFailedError(str(path), str(e)) from e
