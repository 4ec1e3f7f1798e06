# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Pheromone channels: dense per-pixel intensity grids.

A channel is a ``height × width`` float64 array with elementwise
arithmetic. Values are expected to stay non-negative; operations clamp
where noted, construction never enforces it.
"""

from typing import Iterable, List, Sequence

import numpy as np


def _indices(points: Iterable) -> tuple:
    """Split an iterable of (x, y) points into numpy (rows, cols) index arrays."""
    pts = list(points)
    if not pts:
        empty = np.empty(0, dtype=np.intp)
        return empty, empty
    arr = np.asarray(pts, dtype=np.intp)
    return arr[:, 1], arr[:, 0]


class PheromoneChannel:
    """One pheromone grid, mutated in place by its operations."""

    def __init__(self, data: np.ndarray):
        self.data = np.asarray(data, dtype=np.float64)

    @classmethod
    def zeros(cls, width: int, height: int) -> "PheromoneChannel":
        return cls(np.zeros((height, width), dtype=np.float64))

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def shape(self) -> tuple:
        return self.data.shape

    def __getitem__(self, point) -> float:
        return float(self.data[point[1], point[0]])

    def copy(self) -> "PheromoneChannel":
        return PheromoneChannel(self.data.copy())

    def _check_shape(self, other: "PheromoneChannel") -> None:
        if other.shape != self.shape:
            raise ValueError(
                f"channel shape mismatch: {self.shape} vs {other.shape}")

    # ------------------------------------------------------------------
    # Reductions
    # ------------------------------------------------------------------

    def max(self) -> float:
        return float(self.data.max(initial=0.0))

    def min(self) -> float:
        return float(self.data.min(initial=np.inf))

    # ------------------------------------------------------------------
    # Elementwise operations
    # ------------------------------------------------------------------

    def normalize(self) -> "PheromoneChannel":
        """Scale so the maximum becomes 1.0; no-op for a zero or unit maximum."""
        peak = self.max()
        if peak != 0.0 and peak != 1.0:
            self.data /= peak
        return self

    def binarize(self, threshold: float = 0.5) -> "PheromoneChannel":
        """Normalize, then map values strictly above ``threshold`` to 1.0, others to 0.0."""
        self.normalize()
        self.data = (self.data > threshold).astype(np.float64)
        return self

    def clamp(self, ceiling: float) -> "PheromoneChannel":
        np.minimum(self.data, ceiling, out=self.data)
        return self

    def add(self, other: "PheromoneChannel") -> "PheromoneChannel":
        self._check_shape(other)
        self.data += other.data
        return self

    def mul(self, other: "PheromoneChannel") -> "PheromoneChannel":
        self._check_shape(other)
        self.data *= other.data
        return self

    def add_scalar(self, k: float) -> "PheromoneChannel":
        self.data += k
        np.maximum(self.data, 0.0, out=self.data)
        return self

    def mul_scalar(self, k: float) -> "PheromoneChannel":
        self.data *= k
        return self

    # ------------------------------------------------------------------
    # Point-set updates
    # ------------------------------------------------------------------

    def increase(self, points: Iterable, amount: float) -> "PheromoneChannel":
        """Add ``amount`` once to every pixel in ``points``."""
        rows, cols = _indices(points)
        self.data[rows, cols] += amount
        return self

    def multiply(self, points: Iterable, factor: float) -> "PheromoneChannel":
        """Scale every pixel in ``points`` by ``factor``."""
        rows, cols = _indices(points)
        self.data[rows, cols] *= factor
        return self

    def __repr__(self) -> str:
        return (f"PheromoneChannel({self.width}x{self.height}, "
                f"max={self.max():.3g})")


# ============================================================
# Channel-set helpers
# ============================================================

def clone_channels(channels: Sequence[PheromoneChannel]) -> List[PheromoneChannel]:
    return [c.copy() for c in channels]


def zeros_like_channels(channels: Sequence[PheromoneChannel]) -> List[PheromoneChannel]:
    return [PheromoneChannel(np.zeros_like(c.data)) for c in channels]


def combine(channels: Sequence[PheromoneChannel]) -> PheromoneChannel:
    """Elementwise sum of all channels as a new channel."""
    total = channels[0].copy()
    for channel in channels[1:]:
        total.add(channel)
    return total
