# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Single ant agent and its weighted random walk.

An ant walks from a random start towards a random target over the 8
Moore neighbours. Each candidate is weighted by:

    1. Image bounds (outside pixels get weight 0)
    2. A revisit penalty (×0.01 for pixels this ant already visited)
    3. Progress towards the target: ``dist - new_dist + 3``
    4. Colour similarity: divided by ``128 + manhattan_rgb(current, candidate)``
    5. Pheromone, multiplied per channel or summed and added

The colour term depends on the image only and is precomputed once per
image by ``color_terms``.

With return-to-origin enabled, an ant that reaches its target turns
around and walks back to its start before it is done.
"""

import enum
from typing import Optional, Sequence, Set

import numpy as np

from pheroseg.colors import manhattan
from pheroseg.geometry import NEIGHBOURHOOD, Point
from pheroseg.pheromones import PheromoneChannel

REVISIT_FACTOR = 0.01
TARGET_BIAS = 3.0
COLOR_BIAS = 128.0
PHEROMONE_FLOOR = 1e-4
ADDITIVE_GAIN = 0.01

_OFFSETS = np.array(NEIGHBOURHOOD, dtype=np.intp)


def color_terms(image: np.ndarray) -> np.ndarray:
    """Colour factor of every pixel towards each neighbour.

    Args:
        image: RGB uint8 image of shape (h, w, 3).

    Returns:
        Array of shape (h, w, 8): ``1 / (128 + manhattan_rgb)`` from a pixel
        to its neighbour of that rank, 0 where the neighbour lies outside.
    """
    h, w = image.shape[:2]
    pixels = image.astype(np.float64)
    terms = np.zeros((h, w, len(NEIGHBOURHOOD)), dtype=np.float64)
    for rank, (dx, dy) in enumerate(NEIGHBOURHOOD):
        src = (slice(max(0, -dy), h - max(0, dy)), slice(max(0, -dx), w - max(0, dx)))
        dst = (slice(max(0, dy), h + min(0, dy)), slice(max(0, dx), w + min(0, dx)))
        terms[src + (rank,)] = 1.0 / (COLOR_BIAS + manhattan(pixels[src], pixels[dst]))
    return terms


class AntState(enum.Enum):
    WALKING = "walking"
    RETURNING = "returning"
    DONE = "done"


class Ant:
    """One transient agent; its ``visited`` set grows monotonically."""

    def __init__(self, position: Point, target: Point):
        self.start = position
        self.position = position
        self.target = target
        self.visited: Set[Point] = set()
        self.state = AntState.WALKING
        self.steps = 0

    @classmethod
    def spawn(cls, rng: np.random.Generator, width: int, height: int) -> "Ant":
        position = Point.spawn(rng, width, height)
        target = Point.spawn(rng, width, height)
        return cls(position, target)

    def neighbour_weights(self,
                          image: np.ndarray,
                          channels: Sequence[PheromoneChannel],
                          pheromone_mode: str = "multiplicative",
                          colors: Optional[np.ndarray] = None) -> np.ndarray:
        """Sampling weight of each neighbour, in canonical neighbourhood order.

        ``colors`` is the ``color_terms`` array of ``image``; it is computed
        on the fly when omitted.
        """
        h, w = image.shape[:2]
        if colors is None:
            colors = color_terms(image)
        x, y = self.position
        cand = _OFFSETS + (x, y)
        inside = (cand[:, 0] >= 0) & (cand[:, 0] < w) & (cand[:, 1] >= 0) & (cand[:, 1] < h)
        cx = np.clip(cand[:, 0], 0, w - 1)
        cy = np.clip(cand[:, 1], 0, h - 1)

        tx, ty = self.target
        dist = self.target.euclidean_distance(self.position)
        new_dist = np.sqrt((tx - cand[:, 0]) ** 2.0 + (ty - cand[:, 1]) ** 2.0)
        revisit = np.array([REVISIT_FACTOR if Point(int(px), int(py)) in self.visited else 1.0
                            for px, py in cand])

        weights = revisit * (dist - new_dist + TARGET_BIAS) * colors[y, x]
        if pheromone_mode == "additive":
            weights = weights + revisit * ADDITIVE_GAIN * sum(ch.data[cy, cx] for ch in channels)
        else:
            for channel in channels:
                weights = weights * (channel.data[cy, cx] + PHEROMONE_FLOOR)
        return np.where(inside, np.maximum(weights, 0.0), 0.0)

    def _reach_target(self, return_to_origin: bool) -> None:
        if return_to_origin and self.state is AntState.WALKING:
            self.state = AntState.RETURNING
            self.target = self.start
        else:
            self.state = AntState.DONE

    def run(self, rng: np.random.Generator, image: np.ndarray, rules,
            channels: Sequence[PheromoneChannel],
            colors: Optional[np.ndarray] = None) -> Set[Point]:
        """Walk until done or out of steps; returns the visited pixels.

        An all-zero weight vector ends the walk where the ant stands.
        """
        if colors is None:
            colors = color_terms(image)
        while self.state is not AntState.DONE:
            if self.position == self.target:
                self._reach_target(rules.return_to_origin)
                continue
            if self.steps >= rules.max_ant_steps:
                self.state = AntState.DONE
                break
            self.visited.add(self.position)
            weights = self.neighbour_weights(image, channels, rules.pheromone_mode, colors)
            total = weights.sum()
            if not total > 0.0:
                self.state = AntState.DONE
                break
            dx, dy = NEIGHBOURHOOD[int(rng.choice(8, p=weights / total))]
            self.position = Point(self.position.x + dx, self.position.y + dy)
            self.steps += 1
        self.visited.add(self.position)
        return self.visited
