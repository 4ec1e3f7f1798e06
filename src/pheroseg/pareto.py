# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Scored segmentation attempts and their Pareto archive.

An attempt is better with a higher edge value, a lower connectivity
measure and a lower overall deviation. The archive keeps only attempts
that no other member strictly dominates.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Sequence

import numpy as np

from pheroseg.colors import ColorDistance, euclidean
from pheroseg.metrics import connectivity_measure, edge_value, overall_deviation
from pheroseg.pheromones import PheromoneChannel, clone_channels
from pheroseg.regions import Segmentation, region_segmentation

logger = logging.getLogger(__name__)

CONTOUR_THRESHOLD = 0.33


@dataclass
class Attempt:
    """Pheromone snapshot, its segmentation, and the three objectives."""

    pheromones: List[PheromoneChannel]
    segmentation: Segmentation
    edge_value: float
    connectivity_measure: float
    overall_deviation: float
    meta: dict = field(default_factory=dict)

    @classmethod
    def evaluate(cls, image: np.ndarray,
                 pheromones: Sequence[PheromoneChannel],
                 threshold: float = CONTOUR_THRESHOLD,
                 distance: ColorDistance = euclidean,
                 **meta) -> "Attempt":
        """Segment a copy of ``pheromones`` and score it on ``image``."""
        snapshot = clone_channels(pheromones)
        segmentation = region_segmentation(snapshot, threshold)
        return cls(
            pheromones=snapshot,
            segmentation=segmentation,
            edge_value=edge_value(image, segmentation, distance),
            connectivity_measure=connectivity_measure(image, segmentation, distance),
            overall_deviation=overall_deviation(image, segmentation, distance),
            meta=dict(meta),
        )

    @property
    def segments(self) -> List[frozenset]:
        return self.segmentation.segments

    @property
    def objectives(self) -> tuple:
        return (self.edge_value, self.connectivity_measure, self.overall_deviation)

    def stat_info(self) -> str:
        """Short label: segment count and the objectives in scientific notation."""
        return (f"segs{len(self.segments)}-e{self.edge_value:.2E}"
                f"-c{self.connectivity_measure:.2E}-d{self.overall_deviation:.2E}")


def dominates(a, b) -> bool:
    """Non-strict dominance: ``a`` is at least as good as ``b`` on all objectives."""
    return (a.edge_value >= b.edge_value
            and a.connectivity_measure <= b.connectivity_measure
            and a.overall_deviation <= b.overall_deviation)


def strictly_dominates(a, b) -> bool:
    """Pareto dominance: at least as good everywhere and better somewhere."""
    return dominates(a, b) and not dominates(b, a)


class ParetoArchive:
    """Mutually non-dominated attempts.

    Attempts with identical objectives do not dominate each other and
    are all retained.
    """

    def __init__(self):
        self._members: List[Attempt] = []

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[Attempt]:
        return iter(list(self._members))

    def __contains__(self, attempt) -> bool:
        return any(m is attempt for m in self._members)

    def insert(self, attempt) -> bool:
        """Add ``attempt`` and drop every member it dominates.

        Returns:
            False if an existing member dominates ``attempt`` (it is rejected).
        """
        if any(strictly_dominates(m, attempt) for m in self._members):
            logger.debug("rejected dominated attempt %s", _label(attempt))
            return False
        kept = [m for m in self._members if not strictly_dominates(attempt, m)]
        evicted = len(self._members) - len(kept)
        if evicted:
            logger.debug("attempt %s evicted %d member(s)", _label(attempt), evicted)
        kept.append(attempt)
        self._members = kept
        return True

    def extend(self, attempts) -> None:
        for attempt in attempts:
            self.insert(attempt)

    def drain(self) -> List[Attempt]:
        """Remove and return every member."""
        members, self._members = self._members, []
        return members


def _label(attempt) -> str:
    if hasattr(attempt, "stat_info"):
        return attempt.stat_info()
    return repr(attempt)
