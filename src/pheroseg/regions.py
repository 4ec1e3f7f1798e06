# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Region extraction: flood-fill a contour map into disjoint segments."""

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
from scipy.ndimage import label

from pheroseg.contours import BACKGROUND, contour_map
from pheroseg.geometry import Point
from pheroseg.pheromones import PheromoneChannel

#: 4-connectivity: up, down, left, right only
FOUR_CONNECTED = np.array([[0, 1, 0],
                           [1, 1, 1],
                           [0, 1, 0]], dtype=bool)

UNSEGMENTED = -1


@dataclass
class Segmentation:
    """Extracted segments of one contour map.

    Attributes:
        labels: int grid, segment index per pixel or ``UNSEGMENTED`` (-1)
            for contour pixels.
        segments: Pixel sets, ``segments[i]`` holds every pixel labelled ``i``.
    """

    labels: np.ndarray
    segments: List[frozenset]

    def __len__(self) -> int:
        return len(self.segments)


def extract_segments(contour: np.ndarray) -> Segmentation:
    """Flood-fill every 4-connected run of exact-background pixels.

    Segments are numbered in raster order of their first pixel; identity
    is the member pixel set, not the number.
    """
    background = contour == BACKGROUND
    components, count = label(background, structure=FOUR_CONNECTED)
    labels = components.astype(np.int64) - 1

    segments: List[frozenset] = []
    if count:
        ys, xs = np.nonzero(background)
        ids = labels[ys, xs]
        order = np.argsort(ids, kind="stable")
        bounds = np.searchsorted(ids[order], np.arange(count + 1))
        for i in range(count):
            sel = order[bounds[i]:bounds[i + 1]]
            segments.append(frozenset(Point(int(x), int(y)) for x, y in zip(xs[sel], ys[sel])))
    return Segmentation(labels=labels, segments=segments)


def labels_from_segments(segments: Sequence, width: int, height: int) -> np.ndarray:
    """Rebuild a label grid from pixel sets; uncovered pixels stay ``UNSEGMENTED``."""
    labels = np.full((height, width), UNSEGMENTED, dtype=np.int64)
    for i, segment in enumerate(segments):
        if not segment:
            continue
        pts = np.asarray(list(segment), dtype=np.intp)
        labels[pts[:, 1], pts[:, 0]] = i
    return labels


def region_segmentation(channels: Sequence[PheromoneChannel],
                        threshold: float = 0.33) -> Segmentation:
    """Contour extraction followed by region extraction."""
    return extract_segments(contour_map(channels, threshold))
