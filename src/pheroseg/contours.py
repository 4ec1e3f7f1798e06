# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Contour extraction from pheromone channels.

Pipeline:
    1. Sum all channels into one grid
    2. Binarize at the contour threshold (after normalization)
    3. Invert, so low-pheromone pixels become foreground
    4. Discrete Laplacian convolution (8-neighbour kernel)
    5. Clip and invert again: edges dark (0.0) on a light background (1.0)
    6. Close the border: the outermost ring is forced to background

The result is a float grid holding exactly 0.0 (edge) or 1.0 (background).
"""

from typing import Sequence

import numpy as np
from scipy.ndimage import convolve

from pheroseg.pheromones import PheromoneChannel, combine

LAPLACE_KERNEL = np.array([[1.0, 1.0, 1.0],
                           [1.0, -8.0, 1.0],
                           [1.0, 1.0, 1.0]])

STRAIGHT_LAPLACE_KERNEL = np.array([[0.0, 1.0, 0.0],
                                    [1.0, -4.0, 1.0],
                                    [0.0, 1.0, 0.0]])

BACKGROUND = 1.0
EDGE = 0.0


class DegenerateInput(ValueError):
    """Raised for images too small to carry a closed contour."""


def close_border(contour: np.ndarray, fill: float = BACKGROUND) -> np.ndarray:
    """Crop the outermost 1px ring and paste the interior onto a fresh canvas.

    Args:
        contour: 2D contour grid, at least 3×3.
        fill: Canvas value the ring takes.

    Returns:
        New grid of the same shape with the ring set to ``fill``.
    """
    h, w = contour.shape
    if h < 3 or w < 3:
        raise DegenerateInput(f"contour of shape {contour.shape} is too small to close")
    canvas = np.full_like(contour, fill)
    canvas[1:h - 1, 1:w - 1] = contour[1:h - 1, 1:w - 1]
    return canvas


def edge_response(binary: np.ndarray, kernel: np.ndarray = LAPLACE_KERNEL) -> np.ndarray:
    """Laplacian response of a binary grid, replicating border pixels."""
    return convolve(binary.astype(np.float64), kernel, mode="nearest")


def contour_map(channels: Sequence[PheromoneChannel],
                threshold: float = 0.33,
                kernel: np.ndarray = LAPLACE_KERNEL) -> np.ndarray:
    """Reduce pheromone channels to a closed contour map.

    Args:
        channels: Pheromone channels of identical shape (left untouched).
        threshold: Binarization threshold in [0, 1] of the normalized sum.
        kernel: Edge kernel; the 8-neighbour Laplacian by default.

    Returns:
        Float grid with 1.0 for background and 0.0 for contour pixels.
    """
    if not channels:
        raise DegenerateInput("no pheromone channels to extract a contour from")
    h, w = channels[0].shape
    if h < 3 or w < 3:
        raise DegenerateInput(f"image of {w}x{h} pixels is too small for contour extraction")

    total = combine(channels).binarize(threshold)
    inverted = 1.0 - total.data
    response = edge_response(inverted, kernel)
    contour = 1.0 - np.clip(response, 0.0, 1.0)
    return close_border(contour)
