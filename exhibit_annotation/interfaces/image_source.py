"""
Image decoding for the view layer.

Images are returned as RGB uint8 arrays of shape (H, W, 3).
"""

from pathlib import Path
from typing import Union

import cv2
import numpy as np


def read_image(path: Union[str, Path]) -> np.ndarray:
    """
    Read an image file.

    Raises:
        ValueError: If the file is missing or cannot be decoded
    """
    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise ValueError(f"Could not read image: {path}")
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode an encoded image (PNG, JPEG, ...) held in memory.

    Raises:
        ValueError: If the bytes are not a decodable image
    """
    buffer = np.frombuffer(data, dtype=np.uint8)
    if buffer.size == 0:
        raise ValueError("Empty image data")
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if image is None:
        raise ValueError("Could not decode image data")
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
