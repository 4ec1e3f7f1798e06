# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.

"""Image decoding and encoding through OpenCV, in RGB channel order."""

from pathlib import Path
from typing import Union

import cv2
import numpy as np


def load_rgb(path: Union[str, Path]) -> np.ndarray:
    """Read an image file as an RGB uint8 array of shape (h, w, 3)."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"No image at {path}")
    bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if bgr is None:
        raise ValueError(f"Cannot decode image {path}")
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def save_rgb(path: Union[str, Path], image: np.ndarray) -> None:
    """Write an RGB (or single-channel) uint8 image; the format follows the suffix."""
    if image.ndim == 3:
        image = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
    if not cv2.imwrite(str(path), image):
        raise OSError(f"Cannot write image {path}")
