"""
Image decoding helpers.
"""
import io
from pathlib import Path
from typing import Union

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import ImageDecodeError


def bgr_from_bytes(data: bytes) -> np.ndarray:
    """Convert raw bytes → OpenCV‑BGR ndarray, with PIL fallback for broader format support.

    Raises ImageDecodeError when neither decoder understands the payload.
    """
    if not data:
        raise ImageDecodeError("Empty image payload")

    # First try OpenCV's decoder (fast for JPG, PNG)
    arr = np.frombuffer(data, np.uint8)
    bgr = cv2.imdecode(arr, cv2.IMREAD_COLOR)

    if bgr is None:
        # Fall back to PIL which supports more formats (like WebP)
        try:
            img = Image.open(io.BytesIO(data)).convert("RGB")
        except (UnidentifiedImageError, OSError) as e:
            raise ImageDecodeError(f"Unsupported or corrupt image: {e}") from e
        bgr = cv2.cvtColor(np.array(img), cv2.COLOR_RGB2BGR)

    if bgr.size == 0:
        raise ImageDecodeError("Failed to decode image (empty or corrupt)")

    # Ensure correct color format
    if len(bgr.shape) == 2:  # Grayscale
        bgr = cv2.cvtColor(bgr, cv2.COLOR_GRAY2BGR)
    elif bgr.shape[2] == 4:  # RGBA
        bgr = cv2.cvtColor(bgr, cv2.COLOR_BGRA2BGR)

    return bgr


def bgr_from_path(path: Union[str, Path]) -> np.ndarray:
    """Read an image file from disk. OSError propagates for unreadable files."""
    try:
        return bgr_from_bytes(Path(path).read_bytes())
    except ImageDecodeError as e:
        raise ImageDecodeError(f"{path}: {e}") from e

