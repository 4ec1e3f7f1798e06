# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Segmentation quality metrics.

Three competing objectives scored on an RGB image and its segments:

- ``edge_value``: colour contrast across segment borders (maximized)
- ``connectivity_measure``: rank-weighted cross-segment neighbours (minimized)
- ``overall_deviation``: mean per-segment spread around the colour
  centroid (minimized)

All metrics work on a label grid (see ``pheroseg.regions``) and visit
neighbours in the canonical Moore order of ``pheroseg.geometry``.
"""

from typing import Iterator, Tuple, Union

import numpy as np

from pheroseg.colors import ColorDistance, euclidean, mean_color
from pheroseg.geometry import NEIGHBOURHOOD
from pheroseg.regions import UNSEGMENTED, Segmentation, labels_from_segments

_OUTSIDE = -2


def _label_grid(image: np.ndarray, segments) -> np.ndarray:
    if isinstance(segments, Segmentation):
        return segments.labels
    h, w = image.shape[:2]
    return labels_from_segments(segments, w, h)


def _border_masks(labels: np.ndarray) -> Iterator[Tuple[int, Tuple[int, int], np.ndarray]]:
    """Yield (rank, offset, mask) where mask marks pixels whose neighbour at
    ``offset`` is inside the image and not in the pixel's own segment."""
    h, w = labels.shape
    padded = np.pad(labels, 1, mode="constant", constant_values=_OUTSIDE)
    for rank, (dx, dy) in enumerate(NEIGHBOURHOOD):
        nb = padded[1 + dy:1 + dy + h, 1 + dx:1 + dx + w]
        same = (labels != UNSEGMENTED) & (nb == labels)
        yield rank, (dx, dy), (nb != _OUTSIDE) & ~same


def edge_value(image: np.ndarray,
               segments: Union[Segmentation, list],
               distance: ColorDistance = euclidean) -> float:
    """Sum of colour distances to every in-bounds neighbour in another segment.

    Pixels outside any segment count all their in-bounds neighbours.
    """
    labels = _label_grid(image, segments)
    h, w = labels.shape
    img = image.astype(np.float64)
    padded = np.pad(img, ((1, 1), (1, 1), (0, 0)), mode="edge")
    total = 0.0
    for _, (dx, dy), mask in _border_masks(labels):
        nb = padded[1 + dy:1 + dy + h, 1 + dx:1 + dx + w]
        total += float(np.sum(distance(img, nb)[mask]))
    return total


def connectivity_measure(image: np.ndarray,
                         segments: Union[Segmentation, list],
                         distance: ColorDistance = euclidean) -> float:
    """Sum of ``1 / (rank + 1)`` over every cross-segment neighbour.

    ``distance`` is accepted for a uniform metric signature and unused.
    """
    labels = _label_grid(image, segments)
    total = 0.0
    for rank, _, mask in _border_masks(labels):
        total += float(np.count_nonzero(mask)) / (rank + 1)
    return total


def segment_deviation(image: np.ndarray, segment, distance: ColorDistance = euclidean) -> float:
    """Summed colour distance of a segment's pixels to its 8-bit centroid."""
    pts = np.asarray(list(segment), dtype=np.intp)
    colors = image[pts[:, 1], pts[:, 0]]
    centroid = mean_color(image, segment)
    return float(np.sum(distance(colors, centroid)))


def overall_deviation(image: np.ndarray,
                      segments: Union[Segmentation, list],
                      distance: ColorDistance = euclidean) -> float:
    """Mean over segments of their summed deviation; 0.0 without segments."""
    labels = _label_grid(image, segments)
    inside = labels != UNSEGMENTED
    if not inside.any():
        return 0.0

    ids = labels[inside]
    colors = image[inside].astype(np.float64)
    n = int(ids.max()) + 1
    counts = np.bincount(ids, minlength=n)
    present = counts > 0

    sums = np.stack([np.bincount(ids, weights=colors[:, c], minlength=n)
                     for c in range(colors.shape[1])], axis=1)
    centroids = np.floor(sums / np.maximum(counts, 1)[:, None])
    per_pixel = distance(colors, centroids[ids])
    per_segment = np.bincount(ids, weights=per_pixel, minlength=n)
    return float(per_segment[present].mean())


def score(image: np.ndarray,
          segments: Union[Segmentation, list],
          distance: ColorDistance = euclidean) -> dict:
    """All three objectives as a dict."""
    return {
        "edge_value": edge_value(image, segments, distance),
        "connectivity_measure": connectivity_measure(image, segments, distance),
        "overall_deviation": overall_deviation(image, segments, distance),
    }
