# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.

"""Debug and result images for pheromones, contours and segments.

All functions return RGB uint8 arrays and never touch the filesystem.
"""

from typing import Sequence, Tuple

import numpy as np

from pheroseg.colors import generate_color
from pheroseg.contours import BACKGROUND, contour_map
from pheroseg.pheromones import PheromoneChannel
from pheroseg.regions import UNSEGMENTED, Segmentation, extract_segments


def visualize_pheromones(channels: Sequence[PheromoneChannel]) -> np.ndarray:
    """Alpha-blend each normalized channel in its own colour over black.

    Channel ``i`` uses ``generate_color(i)`` with per-pixel opacity equal to
    its normalized intensity.
    """
    h, w = channels[0].shape
    out = np.zeros((h, w, 3), dtype=np.float64)
    for i, channel in enumerate(channels):
        alpha = channel.copy().normalize().data[..., None]
        color = np.asarray(generate_color(i), dtype=np.float64)
        out = out * (1.0 - alpha) + color * alpha
    return np.clip(np.round(out), 0, 255).astype(np.uint8)


def contour_image(channels: Sequence[PheromoneChannel], threshold: float = 0.33) -> np.ndarray:
    """Black contour lines on white."""
    contour = contour_map(channels, threshold)
    gray = (contour * 255).astype(np.uint8)
    return np.repeat(gray[..., None], 3, axis=2)


def overlayed_contour(image: np.ndarray, channels: Sequence[PheromoneChannel],
                      threshold: float = 0.33) -> np.ndarray:
    """The input image with contour pixels painted black."""
    contour = contour_map(channels, threshold)
    out = image.copy()
    out[contour != BACKGROUND] = 0
    return out


def labeled_regions(segmentation: Segmentation) -> np.ndarray:
    """Each segment in its unique label colour, contour pixels black."""
    labels = segmentation.labels
    palette = np.array([generate_color(i) for i in range(len(segmentation))] or [(0, 0, 0)],
                       dtype=np.uint8)
    out = palette[np.maximum(labels, 0)]
    out[labels == UNSEGMENTED] = 0
    return out


def colorized_regions(image: np.ndarray, channels: Sequence[PheromoneChannel],
                      threshold: float = 0.33) -> Tuple[np.ndarray, Segmentation]:
    """Each segment painted in its mean colour, contour pixels black."""
    segmentation = extract_segments(contour_map(channels, threshold))
    labels = segmentation.labels
    out = np.zeros_like(image)
    inside = labels != UNSEGMENTED
    if inside.any():
        ids = labels[inside]
        counts = np.bincount(ids, minlength=len(segmentation))
        colors = image[inside].astype(np.float64)
        means = np.stack([np.bincount(ids, weights=colors[:, c], minlength=len(segmentation))
                          for c in range(3)], axis=1) / np.maximum(counts, 1)[:, None]
        out[inside] = np.floor(means[ids]).astype(np.uint8)
    return out, segmentation
