# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Integer pixel geometry for PheroSeg.

Provides the immutable ``Point`` type, the 8-neighbour (Moore)
neighbourhood in its canonical order, inclusive rectangle containment
and the Euclidean / Manhattan distances used by the ant walk.
"""

import math
from typing import Iterator, NamedTuple, Tuple

import numpy as np


class Point(NamedTuple):
    """Integer pixel coordinate (x = column, y = row)."""

    x: int
    y: int

    @classmethod
    def spawn(cls, rng: np.random.Generator, width: int, height: int) -> "Point":
        """Draw a uniformly distributed pixel inside a width × height image."""
        return cls(int(rng.integers(0, width)), int(rng.integers(0, height)))

    def __add__(self, other) -> "Point":
        return Point(self.x + other[0], self.y + other[1])

    def neighbours(self) -> Iterator["Point"]:
        """Iterate the 8 Moore neighbours in canonical order."""
        for dx, dy in NEIGHBOURHOOD:
            yield Point(self.x + dx, self.y + dy)

    def is_within_rectangle(self, a: "Point", b: "Point") -> bool:
        """Inclusive containment test; corners may be given in any order."""
        return (min(a.x, b.x) <= self.x <= max(a.x, b.x)
                and min(a.y, b.y) <= self.y <= max(a.y, b.y))

    def euclidean_squared_distance(self, other: "Point") -> float:
        dx = float(other.x - self.x)
        dy = float(other.y - self.y)
        return dx * dx + dy * dy

    def euclidean_distance(self, other: "Point") -> float:
        return math.sqrt(self.euclidean_squared_distance(other))

    def manhattan_distance(self, other: "Point") -> int:
        return abs(other.x - self.x) + abs(other.y - self.y)


#: Moore offsets, axis-aligned first. Rank in this tuple weights the
#: connectivity measure, so the order is part of the contract.
NEIGHBOURHOOD: Tuple[Tuple[int, int], ...] = (
    (1, 0),
    (-1, 0),
    (0, -1),
    (0, 1),
    (1, -1),
    (1, 1),
    (-1, 1),
    (-1, -1),
)


def image_rectangle(width: int, height: int) -> Tuple[Point, Point]:
    """Corner pair spanning every pixel of a width × height image."""
    return Point(0, 0), Point(width - 1, height - 1)
