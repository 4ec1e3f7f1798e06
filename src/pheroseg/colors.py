# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""RGB colour helpers: distances, segment colours and centroids.

Distance functions accept either single pixels (length-3 sequences) or
arrays of pixels with the channel axis last, and broadcast like numpy.
"""

from typing import Callable, Dict, Iterable, Tuple

import numpy as np

ColorDistance = Callable[[np.ndarray, np.ndarray], np.ndarray]


def _diff(a, b) -> np.ndarray:
    return np.asarray(b, dtype=np.float64) - np.asarray(a, dtype=np.float64)


def euclidean_squared(a, b):
    d = _diff(a, b)
    return np.sum(d * d, axis=-1)


def euclidean(a, b):
    return np.sqrt(euclidean_squared(a, b))


def manhattan(a, b):
    return np.sum(np.abs(_diff(a, b)), axis=-1)


def cosine_unnormed(a, b):
    return np.sum(np.asarray(a, dtype=np.float64) * np.asarray(b, dtype=np.float64), axis=-1)


def cosine(a, b):
    """Cosine similarity; black pixels have no direction and yield nan."""
    mag_a = np.sqrt(cosine_unnormed(a, a))
    mag_b = np.sqrt(cosine_unnormed(b, b))
    with np.errstate(divide="ignore", invalid="ignore"):
        return cosine_unnormed(a, b) / (mag_a * mag_b)


def cosine_distance(a, b):
    """``1 - cosine``; black is at 0 from black and at 1 from any other colour."""
    similarity = cosine(a, b)
    black_a = cosine_unnormed(a, a) == 0.0
    black_b = cosine_unnormed(b, b) == 0.0
    undefined = np.where(black_a & black_b, 0.0, 1.0)
    return np.where(np.isnan(similarity), undefined, 1.0 - similarity)


DISTANCES: Dict[str, ColorDistance] = {
    "euclidean": euclidean,
    "euclidean_squared": euclidean_squared,
    "manhattan": manhattan,
    "cosine": cosine_distance,
}


def generate_color(num: int) -> Tuple[int, int, int]:
    """Deterministic, well-spread colour for segment or channel ``num``."""
    i = num + 1
    return ((i * 98) % 255, (i * 57) % 255, (i * 157) % 255)


def mean_color(image: np.ndarray, points: Iterable) -> np.ndarray:
    """Per-channel mean colour of ``points``, truncated to 8 bits like a pixel."""
    pts = list(points)
    xs = np.fromiter((p[0] for p in pts), dtype=np.intp, count=len(pts))
    ys = np.fromiter((p[1] for p in pts), dtype=np.intp, count=len(pts))
    mean = image[ys, xs].astype(np.float64).mean(axis=0)
    return np.floor(mean).astype(np.uint8)
